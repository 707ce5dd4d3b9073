"""
Agents runtime port (contract only). No implementations here.
Presentation → (IConversationRuntime) → driver, infra implements the gateway and registry ports.
"""
from __future__ import annotations
from typing import Protocol, Optional, List, Dict, Any, TYPE_CHECKING

if TYPE_CHECKING:
    from src.domain.entities.conversation_state import ConversationResult, ConversationState

class IConversationRuntime(Protocol):
    def tool_declarations(self) -> List[Dict[str, Any]]:
        ...
    async def run(self, prompt: str, state: Optional["ConversationState"] = None) -> "ConversationResult":
        ...

__all__ = ["IConversationRuntime"]
