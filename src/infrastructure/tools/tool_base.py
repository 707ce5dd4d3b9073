"""
Tool contract shared by every capability the model may request.

A tool is a named operation with a JSONSchema-like parameter description and a
handler. ``run`` may be a coroutine function or a plain function; the driver
awaits coroutines and pushes plain functions onto a worker thread.

The schema is advisory metadata surfaced to the model. Nothing validates
arguments against it before ``run`` is called, so malformed arguments reach
the handler unchecked and each handler must defend itself.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

Handler = Callable[[Dict[str, Any]], Union[Any, Awaitable[Any]]]


def object_schema(properties: Optional[Dict[str, Any]] = None, required: Optional[List[str]] = None) -> Dict[str, Any]:
    """Build the ``{"type": "object", ...}`` schema shape used for every tool."""
    return {
        "type": "object",
        "properties": dict(properties or {}),
        "required": list(required or []),
    }


class Tool(ABC):
    """
    Base class for registry tools.

    Subclasses provide ``name``, ``description``, ``input_schema`` and ``run``.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name used in function calling format."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what the tool does."""
        pass

    @property
    @abstractmethod
    def input_schema(self) -> Dict[str, Any]:
        """
        JSONSchema object defining accepted arguments.
        Must include:
        - type: "object"
        - properties: Parameter definitions
        - required: List of required property names
        """
        pass

    @abstractmethod
    def run(self, input: Dict[str, Any]) -> Any:
        """Execute the tool with the given arguments. May return an awaitable."""
        pass

    def get_tool_definition(self) -> Dict[str, Any]:
        """Get the declaration advertised to the model.

        Malformed schemas degrade to an empty object schema rather than
        breaking the whole declaration list.
        """
        try:
            schema = self.input_schema
        except RecursionError:
            schema = None

        if not isinstance(schema, dict):
            schema = {}

        properties = schema.get("properties", {}) or {}
        required = [r for r in (schema.get("required", []) or []) if r in properties]

        return {
            "name": self.name,
            "description": self.description,
            "parameters": object_schema(properties, required),
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


class FunctionTool(Tool):
    """
    Wrap a bare callable as a Tool.

    Example:
        FunctionTool("getOpenOrders", "Retrieves open orders.", lambda params: client.get_open_orders())
    """

    def __init__(
        self,
        name: str,
        description: str,
        handler: Handler,
        input_schema: Optional[Dict[str, Any]] = None,
    ) -> None:
        if not name:
            raise ValueError("Tool name must be a non-empty string")
        self._name = name
        self._description = description
        self._handler = handler
        self._schema = input_schema or object_schema()

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def input_schema(self) -> Dict[str, Any]:
        return self._schema

    @property
    def handler(self) -> Handler:
        return self._handler

    def run(self, input: Dict[str, Any]) -> Any:
        return self._handler(input)
