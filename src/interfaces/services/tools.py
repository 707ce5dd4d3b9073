"""
Tool registry port.
"""
from __future__ import annotations
from typing import Protocol, List, Dict, Any, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from src.interfaces.agents.tool import ITool

class IToolRegistry(Protocol):
    def register(self, tool: "ITool") -> None:
        ...
    def list_tools(self) -> List[Dict[str, Any]]:
        ...
    def __contains__(self, name: object) -> bool:
        ...
    async def dispatch(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Any:
        ...

__all__ = ["IToolRegistry"]
