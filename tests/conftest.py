"""
Shared test fixtures and utilities for conversation-engine testing.

Nothing here talks to a model or an exchange. ScriptedGateway replays a fixed
sequence of responses and records every message it is sent, which is enough to
drive the ConversationDriver deterministically.
"""

import asyncio
import os
import sys
from typing import Any, Dict, List, Optional, Sequence

import pytest

# Ensure project root is on sys.path so 'src' package imports resolve in tests
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from src.abstractions.dto.gateway import ConversationHandle, GatewayResponse
from src.abstractions.dto.tools import ToolInvocationRequest
from src.abstractions.errors import GatewayTransportError
from src.agents.config import DriverConfig
from src.infrastructure.tools.tool_base import FunctionTool, object_schema
from src.infrastructure.tools.tool_manager import ToolRegistry

# -----------------------------------------------------------------------------
# Stub gateway
# -----------------------------------------------------------------------------


def calls(*items: Any) -> GatewayResponse:
    """
    Build a ``calls`` response. Each item is a tool name or a (name, args) tuple;
    call ids are assigned positionally.
    """
    invocations = []
    for index, item in enumerate(items):
        name, args = (item, {}) if isinstance(item, str) else item
        invocations.append(ToolInvocationRequest(name=name, arguments=dict(args), call_id=f"call_{index}"))
    return GatewayResponse.calls(invocations)


def text(content: str) -> GatewayResponse:
    return GatewayResponse.text(content)


class ScriptedGateway:
    """Replays ``script`` in order. Exceptions in the script are raised from ``send``."""

    model = "scripted"

    def __init__(self, script: Sequence[Any], fail_start: Optional[BaseException] = None) -> None:
        self.script = list(script)
        self.fail_start = fail_start
        self.sent: List[Any] = []
        self.started_with: Optional[Dict[str, Any]] = None

    async def start(self, system_prompt: str = "", tools=None) -> ConversationHandle:
        if self.fail_start is not None:
            raise self.fail_start
        self.started_with = {"system_prompt": system_prompt, "tools": list(tools or [])}
        return ConversationHandle(id="scripted")

    async def send(self, handle: ConversationHandle, message: Any) -> GatewayResponse:
        self.sent.append(message if isinstance(message, str) else list(message))
        if not self.script:
            raise GatewayTransportError("script exhausted")
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    @property
    def tool_names(self) -> List[str]:
        return [t["name"] for t in (self.started_with or {}).get("tools", [])]


# -----------------------------------------------------------------------------
# Pytest fixtures and helpers
# -----------------------------------------------------------------------------


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def fast_config():
    """Driver config with no delays, so tests run in milliseconds."""
    return DriverConfig(turn_delay_ms=0, per_call_timeout_ms=1000, master_timeout_ms=5000)


@pytest.fixture
def call_log():
    return []


@pytest.fixture
def registry(call_log):
    """Registry with margin/orders/echo tools that record their calls."""

    async def margin(params):
        call_log.append(("getAvailableMargin", params))
        return {"availableMargin": 1000}

    def open_orders(params):
        call_log.append(("getOpenOrders", params))
        return {"openOrders": []}

    async def echo(params):
        call_log.append(("echo", params))
        return params.get("value")

    async def broken(params):
        call_log.append(("broken", params))
        raise RuntimeError("exchange unavailable")

    return ToolRegistry([
        FunctionTool("getAvailableMargin", "Retrieves available margin.", margin),
        FunctionTool("getOpenOrders", "Retrieves open orders.", open_orders),
        FunctionTool(
            "echo",
            "Returns its input.",
            echo,
            object_schema({"value": {"type": "string"}}, ["value"]),
        ),
        FunctionTool("broken", "Always fails.", broken),
    ])
