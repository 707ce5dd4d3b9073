"""
Error taxonomy for the conversation engine.

Recoverable kinds (UnknownToolError, ToolExecutionError, ExecutionTimeoutError)
are turned into outcomes and handed back to the model. Fatal kinds
(GatewayTransportError, MasterTimeoutError, FatalToolError when configured to
halt) end the conversation and are surfaced to the caller.
"""
from __future__ import annotations

from typing import Optional


class ConversationError(Exception):
    """Base class for all engine errors."""

    kind: str = "ConversationError"


class UnknownToolError(ConversationError, KeyError):
    kind = "UnknownTool"

    def __init__(self, name: str) -> None:
        self.tool_name = name
        super().__init__(f"Tool '{name}' not found")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class DuplicateToolError(ConversationError, ValueError):
    kind = "DuplicateTool"

    def __init__(self, name: str) -> None:
        self.tool_name = name
        super().__init__(f"Tool '{name}' is already registered")


class ToolExecutionError(ConversationError):
    kind = "ToolExecutionFailure"

    def __init__(self, tool_name: str, message: str) -> None:
        self.tool_name = tool_name
        super().__init__(message)


class ExecutionTimeoutError(ToolExecutionError):
    kind = "ExecutionTimeout"

    def __init__(self, tool_name: str, timeout_ms: float) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(tool_name, f"Tool '{tool_name}' timed out after {timeout_ms:g}ms")


class FatalToolError(ConversationError):
    """Raised by a handler to signal a condition the model cannot recover from."""

    kind = "FatalToolError"


class GatewayTransportError(ConversationError):
    kind = "GatewayTransportFailure"

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        self.cause = cause
        super().__init__(message)


class MasterTimeoutError(ConversationError):
    kind = "MasterTimeoutExceeded"

    def __init__(self, timeout_ms: float) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(f"Master script timeout reached after {timeout_ms / 1000:g} seconds.")


class ConfigurationError(ConversationError, ValueError):
    kind = "ConfigurationError"


__all__ = [
    "ConversationError",
    "UnknownToolError",
    "DuplicateToolError",
    "ToolExecutionError",
    "ExecutionTimeoutError",
    "FatalToolError",
    "GatewayTransportError",
    "MasterTimeoutError",
    "ConfigurationError",
]
