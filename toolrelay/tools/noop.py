"""
No-op tool executor.

Used when no real backend is configured so the orchestration loop can still
run end to end. It never touches a tool server.
"""

from __future__ import annotations

import logging
from typing import Any

from toolrelay.tools.base import BridgeInvokePayload, ToolExecutor

logger = logging.getLogger(__name__)

NOOP_NOTE = "Noop executor; not calling any MCP server"


class NoopExecutor(ToolExecutor):
    """Echoes the payload back inside a note instead of calling a tool."""

    def name(self) -> str:
        return "noop"

    async def execute(self, payload: BridgeInvokePayload) -> dict[str, Any]:
        logger.info(f"[noop] would call {payload.server}/{payload.tool} with {payload.arguments}")
        return {
            "note": NOOP_NOTE,
            "payload": payload.model_dump(),
        }
