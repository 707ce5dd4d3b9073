"""
POCO DTOs for a single conversation run. No framework dependencies.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from src.abstractions.dto.tools import ToolInvocationOutcome, ToolInvocationRequest


class TerminationReason(str, enum.Enum):
    NO_FURTHER_CALLS = "NoFurtherCalls"
    EXPLICIT_COMPLETION = "ExplicitCompletion"
    MASTER_TIMEOUT_EXCEEDED = "MasterTimeoutExceeded"
    GATEWAY_TRANSPORT_FAILURE = "GatewayTransportFailure"
    FATAL_TOOL_ERROR = "FatalToolError"
    MAX_TURNS_EXCEEDED = "MaxTurnsExceeded"


@dataclass
class HistoryEntry:
    turn: int
    request: ToolInvocationRequest
    outcome: ToolInvocationOutcome


@dataclass
class ConversationState:
    """
    Owned by a single driver run and mutated only at turn boundaries.

    ``history`` only ever receives whole turns, so a run abandoned mid-turn
    leaves the completed turns intact for diagnostics.
    """

    turn_index: int = 1
    history: List[HistoryEntry] = field(default_factory=list)
    terminal: bool = False
    termination_reason: Optional[TerminationReason] = None

    def record_turn(self, pairs: List[Tuple[ToolInvocationRequest, ToolInvocationOutcome]]) -> None:
        for request, outcome in pairs:
            self.history.append(HistoryEntry(turn=self.turn_index, request=request, outcome=outcome))

    def terminate(self, reason: TerminationReason) -> bool:
        """Mark the state terminal. Returns False if it was already terminal."""
        if self.terminal:
            return False
        self.terminal = True
        self.termination_reason = reason
        return True

    def advance(self) -> None:
        self.turn_index += 1


@dataclass
class ConversationResult:
    reason: TerminationReason
    state: ConversationState
    output: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.reason in (TerminationReason.NO_FURTHER_CALLS, TerminationReason.EXPLICIT_COMPLETION)

    @property
    def history(self) -> List[HistoryEntry]:
        return self.state.history


__all__ = ["TerminationReason", "HistoryEntry", "ConversationState", "ConversationResult"]
