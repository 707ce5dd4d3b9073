"""
Gateway response DTO: either a batch of requested tool calls or free text.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Literal, Optional

from src.abstractions.dto.tools import ToolInvocationRequest

ResponseKind = Literal["calls", "text"]


@dataclass
class GatewayResponse:
    kind: ResponseKind
    invocations: List[ToolInvocationRequest] = field(default_factory=list)
    content: str = ""
    raw: Optional[Any] = None

    @classmethod
    def calls(cls, invocations: List[ToolInvocationRequest], raw: Any = None) -> "GatewayResponse":
        return cls(kind="calls", invocations=list(invocations), raw=raw)

    @classmethod
    def text(cls, content: Optional[str], raw: Any = None) -> "GatewayResponse":
        return cls(kind="text", content=content or "", raw=raw)


@dataclass
class ConversationHandle:
    """Opaque handle for one model session; the gateway keys its history on it."""

    id: str
    system_prompt: str = ""


__all__ = ["GatewayResponse", "ConversationHandle", "ResponseKind"]
