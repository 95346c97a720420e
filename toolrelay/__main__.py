"""
toolrelay CLI entry point.

Provides command-line interface for asking questions and inspecting the
configured tool backend.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from toolrelay import __version__
from toolrelay.config.logging import get_logger, result, section, setup_logging
from toolrelay.config.settings import Settings, load_settings
from toolrelay.errors import ConnectError, OrchestrationError
from toolrelay.llm import ArgumentPolicy, ChatClient, LLMError, run_once
from toolrelay.tools.components import ToolComponents

DEFAULT_QUERIES = (
    "Get full IP details for 8.8.8.8",
    "Check if 1.1.1.1 is VPN, proxy, or Tor",
)


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog="toolrelay",
        description="Answer questions with a chat model that can call MCP tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"toolrelay {__version__}",
    )

    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to .env file (default: .env in current directory)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override logging level from config",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Config command
    subparsers.add_parser(
        "config",
        help="Show current configuration",
    )

    # Tools command
    subparsers.add_parser(
        "tools",
        help="Connect to the configured tool backend and list its tools",
    )

    # Query command
    query_parser = subparsers.add_parser(
        "query",
        help="Ask a single question",
    )
    query_parser.add_argument(
        "question",
        help='Question to ask, e.g. "Get full IP details for 8.8.8.8"',
    )
    query_parser.add_argument(
        "--backend",
        choices=["noop", "http", "mcp"],
        default=None,
        help="Override the tool backend from config",
    )

    # Run command
    run_parser = subparsers.add_parser(
        "run",
        help="Run a batch of questions (default: the IPLocate demo queries)",
    )
    run_parser.add_argument(
        "--query",
        dest="queries",
        action="append",
        default=None,
        help="Question to ask; repeat for several (default: built-in demo queries)",
    )
    run_parser.add_argument(
        "--backend",
        choices=["noop", "http", "mcp"],
        default=None,
        help="Override the tool backend from config",
    )

    return parser


def cmd_config(settings: Settings) -> int:
    """Show current configuration."""
    logger = get_logger(__name__)

    logger.info("\n=== toolrelay Configuration ===\n")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Log Level: {settings.log_level}")
    logger.info(f"Log File: {settings.log_file or 'None (console only)'}")
    logger.info(f"\nLLM Model: {settings.llm.model}")
    logger.info(f"LLM API Key: {'Set' if settings.llm.api_key else 'Not set'}")
    logger.info(f"LLM API Base: {settings.llm.api_base or 'provider default'}")
    logger.info(f"\nTool Backend: {settings.tools.backend}")
    logger.info(f"Tool Server Alias: {settings.tools.server}")
    if settings.tools.backend == "http":
        logger.info(f"Bridge URL: {settings.tools.bridge_url or 'Not set'}")
    if settings.tools.backend == "mcp":
        logger.info(f"Server Directory: {settings.tools.server_dir}")
        logger.info(
            f"Server Command: {settings.tools.server_command} {' '.join(settings.tools.server_args)}"
        )
    logger.info(f"Discovery Timeout: {settings.tools.discovery_timeout}s")
    logger.info(f"Call Timeout: {settings.tools.call_timeout}s")
    logger.info(f"Strict Arguments: {settings.tools.strict_arguments}")

    return 0


async def cmd_tools(settings: Settings) -> int:
    """List the tools the configured backend offers."""
    logger = get_logger(__name__)

    try:
        async with ToolComponents(settings.tools).open_executor() as (executor, tool_names):
            section(f"Tools ({executor.name()} backend, server '{settings.tools.server}')")
            for name in tool_names:
                sys.stdout.write(f"  - {name}\n")
    except ConnectError as e:
        logger.error(f"Could not start tool server: {e}")
        return 1
    except ValueError as e:
        logger.error(str(e))
        return 1

    return 0


async def cmd_ask(queries: list[str], settings: Settings) -> int:
    """
    Run each query through the orchestration loop and print the answers.

    Queries run one after another against one backend connection. The first
    tool or LLM failure stops the batch.
    """
    logger = get_logger(__name__)

    if not settings.llm.api_key:
        logger.error("LLM API key not set. Add LLM__API_KEY=<your-key> to your .env file.")
        return 1

    chat_client = ChatClient(settings.llm)
    policy = ArgumentPolicy.STRICT if settings.tools.strict_arguments else ArgumentPolicy.LENIENT

    try:
        async with ToolComponents(settings.tools).open_executor() as (executor, tool_names):
            logger.info(f"Using {executor.name()} backend with {len(tool_names)} tools")
            logger.info(f"Processing {len(queries)} queries with {settings.llm.model}")

            for i, question in enumerate(queries, start=1):
                logger.info(f"Query {i}/{len(queries)}: {question}")
                answer = await run_once(
                    chat_client,
                    settings.llm.model,
                    question,
                    executor,
                    server=settings.tools.server,
                    tool_names=tool_names,
                    argument_policy=policy,
                )

                if answer is None:
                    logger.warning(f"No answer received for query: {question}")
                    continue

                result(f"Answer for: {question}", answer)

    except ConnectError as e:
        logger.error(f"Could not start tool server: {e}")
        return 1
    except OrchestrationError as e:
        print(f"\nTool error ({e.tool_name}): {e.cause}", file=sys.stderr)
        return 1
    except LLMError as e:
        print(f"\nLLM error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        logger.error(str(e))
        return 1

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Load settings
    try:
        settings = load_settings(env_file=args.env_file)
    except Exception as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    # Override log level if specified
    if args.log_level:
        settings.log_level = args.log_level

    if getattr(args, "backend", None):
        settings.tools.backend = args.backend

    # Setup logging
    setup_logging(settings)

    # Execute command
    if args.command == "config":
        return cmd_config(settings)
    elif args.command == "tools":
        return asyncio.run(cmd_tools(settings))
    elif args.command == "query":
        return asyncio.run(cmd_ask([args.question], settings))
    elif args.command == "run":
        return asyncio.run(cmd_ask(args.queries or list(DEFAULT_QUERIES), settings))
    else:
        # Default: show help
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
