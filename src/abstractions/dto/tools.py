"""
Shared tool DTOs: invocation requests, outcomes and their wire serialization.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence


@dataclass
class ToolInvocationRequest:
    """A tool call requested by the model. Lives for one turn only."""

    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)
    call_id: Optional[str] = None


@dataclass
class ToolFailure:
    kind: str
    message: str


@dataclass
class ToolInvocationOutcome:
    """
    Result of one invocation: exactly one of ``payload`` / ``failure`` is meaningful.

    ``payload`` may legitimately be ``None`` (a handler returning nothing), so
    success is decided by the absence of ``failure``.
    """

    name: str
    payload: Any = None
    failure: Optional[ToolFailure] = None
    call_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, request: ToolInvocationRequest, payload: Any) -> "ToolInvocationOutcome":
        return cls(name=request.name, payload=payload, call_id=request.call_id)

    @classmethod
    def failed(cls, request: ToolInvocationRequest, kind: str, message: str) -> "ToolInvocationOutcome":
        return cls(name=request.name, failure=ToolFailure(kind=kind, message=message), call_id=request.call_id)

    def to_wire(self) -> Dict[str, Any]:
        """Shape sent back to the model: ``{functionName, response: {result} | {error}}``."""
        if self.failure is not None:
            response: Dict[str, Any] = {"error": f"Execution failed: {self.failure.message}"}
        else:
            response = {"result": self.payload}
        return {"functionName": self.name, "response": response}


def serialize_outcomes(outcomes: Sequence[ToolInvocationOutcome]) -> str:
    """Serialize an outcome batch deterministically, preserving request order."""
    return json.dumps([o.to_wire() for o in outcomes], sort_keys=True, default=str, ensure_ascii=False)


def serialize_payload(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    try:
        return json.dumps(payload, sort_keys=True, default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(payload)


__all__ = [
    "ToolInvocationRequest",
    "ToolFailure",
    "ToolInvocationOutcome",
    "serialize_outcomes",
    "serialize_payload",
]
