"""
Capability gateway port. The driver depends on this; infra implements.
"""
from __future__ import annotations
from typing import Protocol, Union, Sequence, Optional, Dict, Any, TYPE_CHECKING

if TYPE_CHECKING:
    from src.abstractions.dto.gateway import ConversationHandle, GatewayResponse
    from src.abstractions.dto.tools import ToolInvocationOutcome

Message = Union[str, Sequence["ToolInvocationOutcome"]]

class ICapabilityGateway(Protocol):
    @property
    def model(self) -> str:
        ...
    async def start(self, system_prompt: str = "", tools: Optional[Sequence[Dict[str, Any]]] = None) -> "ConversationHandle":
        """Open a session advertising ``tools``. Raises GatewayTransportError when it cannot be established."""
        ...
    async def send(self, handle: "ConversationHandle", message: Message) -> "GatewayResponse":
        """
        Send the task prompt or an outcome batch. The gateway keeps the full
        history for ``handle``; callers never resend earlier turns.
        """
        ...

__all__ = ["ICapabilityGateway", "Message"]
