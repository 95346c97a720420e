"""
Application settings and configuration management.

Uses Pydantic Settings for validation and environment variable support.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMSettings(BaseSettings):
    """LLM API configuration."""

    model: str = Field(
        default="deepseek/deepseek-chat",
        description="LiteLLM model string, e.g. 'deepseek/deepseek-chat', 'openai/gpt-4o'. "
                    "The provider prefix tells LiteLLM which API to route the request to.",
    )
    api_key: str = Field(default="", description="API key for the model's provider")
    api_base: str | None = Field(
        default=None, description="Override the provider base URL (OpenAI-compatible endpoints)"
    )
    max_tokens: int = Field(default=1024, description="Maximum tokens in response")
    temperature: float = Field(default=0.0, description="Sampling temperature")

    model_config = SettingsConfigDict(env_prefix="LLM_")


class ToolSettings(BaseSettings):
    """Tool backend configuration."""

    backend: Literal["noop", "http", "mcp"] = Field(
        default="noop",
        description="Which executor runs tool calls: 'noop' (echo only), "
                    "'http' (POST to bridge_url) or 'mcp' (spawn the server in server_dir).",
    )
    server: str = Field(default="iplocate", description="Server alias the model is told to use")

    # HTTP bridge
    bridge_url: str = Field(default="", description="Bridge endpoint for the 'http' backend")
    bridge_timeout: float = Field(default=30.0, description="HTTP bridge request timeout in seconds")

    # MCP subprocess
    server_dir: Path = Field(
        default=Path("./mcp-server-iplocate"),
        description="Working directory of the MCP server checkout",
    )
    server_command: str = Field(default="node", description="Executable that starts the MCP server")
    server_args: list[str] = Field(
        default_factory=lambda: ["dist/index.js"],
        description="Arguments for server_command. Set via TOOLS__SERVER_ARGS='[\"dist/index.js\"]'",
    )
    server_env: dict[str, str] = Field(
        default_factory=dict,
        description="Extra environment variables for the server process, e.g. IPLOCATE_API_KEY",
    )
    handshake_timeout: float = Field(default=15.0, description="MCP initialize timeout in seconds")
    settle_delay: float = Field(default=0.5, description="Pause after the handshake in seconds")
    discovery_timeout: float = Field(default=5.0, description="list_tools timeout in seconds")
    call_timeout: float = Field(default=30.0, description="Per tool call timeout in seconds")

    strict_arguments: bool = Field(
        default=False,
        description="Fail the query when a tool call's arguments are not valid JSON "
                    "instead of substituting an empty payload",
    )

    model_config = SettingsConfigDict(env_prefix="TOOLS_")


class Settings(BaseSettings):
    """Main application settings."""

    # Environment
    environment: Literal["development", "production"] = Field(
        default="development", description="Deployment environment"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_file: Path | None = Field(default=None, description="Log file path")

    # Sub-configurations
    llm: LLMSettings = Field(default_factory=LLMSettings)
    tools: ToolSettings = Field(default_factory=ToolSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def load_settings(env_file: str | Path | None = None) -> Settings:
    """
    Load settings from file and environment.

    Args:
        env_file: Path to .env file (optional)

    Returns:
        Loaded settings instance
    """
    global _settings
    if env_file:
        _settings = Settings(_env_file=env_file)
    else:
        _settings = Settings()
    return _settings
