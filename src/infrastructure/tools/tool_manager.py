"""
Tool registry: name -> declaration + handler, and dispatch.

The registry is pure data plus dispatch. It holds no per-call state, so the
same instance can serve several independent conversations.
"""

import asyncio
import inspect
import logging
from typing import Any, Dict, Iterable, List, Optional

from src.abstractions.errors import DuplicateToolError, UnknownToolError
from .tool_base import Tool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """
    Manages a collection of tools and handles tool registration and dispatch.
    """

    def __init__(self, tools: Optional[Iterable[Tool]] = None):
        """
        Initialize tool registry.

        Args:
            tools: Optional tools to register up front, in declaration order
        """
        self.tools: Dict[str, Tool] = {}
        for tool in tools or ():
            self.register(tool)

    def register(self, tool: Tool) -> None:
        """
        Register a tool instance.

        Raises:
            DuplicateToolError: If a tool with the same name is already present
        """
        if tool.name in self.tools:
            raise DuplicateToolError(tool.name)
        self.tools[tool.name] = tool
        logger.debug("Registered tool: %s", tool.name)

    def get_tool(self, name: str) -> Tool:
        """
        Get a registered tool by name.

        Raises:
            UnknownToolError: If tool is not found
        """
        if name not in self.tools:
            raise UnknownToolError(name)
        return self.tools[name]

    def names(self) -> List[str]:
        return list(self.tools.keys())

    def __contains__(self, name: object) -> bool:
        return name in self.tools

    def __len__(self) -> int:
        return len(self.tools)

    def list_tools(self) -> List[Dict[str, Any]]:
        """
        Declarations for every registered tool, in registration order.

        Returns:
            List of ``{"name", "description", "parameters"}`` dictionaries
        """
        return [tool.get_tool_definition() for tool in self.tools.values()]

    async def dispatch(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Any:
        """
        Execute a tool by name with the given arguments.

        Coroutine handlers are awaited; plain handlers run in a worker thread
        so a blocking exchange call never stalls the event loop. Handler
        exceptions propagate unchanged.

        Raises:
            UnknownToolError: If tool is not found
        """
        tool = self.get_tool(name)
        args = dict(arguments or {})
        if inspect.iscoroutinefunction(tool.run) or inspect.iscoroutinefunction(getattr(tool, "handler", None)):
            return await tool.run(args)
        result = await asyncio.to_thread(tool.run, args)
        if inspect.isawaitable(result):
            result = await result
        return result
