"""
Tool port (contract only) used by BL and infra adapters.
"""
from __future__ import annotations
from typing import Protocol, Dict, Any

class ITool(Protocol):
    name: str
    description: str
    input_schema: Dict[str, Any]

    def run(self, input: Dict[str, Any]) -> Any:
        ...

    def get_tool_definition(self) -> Dict[str, Any]:
        ...

__all__ = ["ITool"]
