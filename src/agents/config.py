"""
Driver policy switches.

The turn-policy variants (single call vs all calls per turn, implicit exit vs
explicit completion tool, fixed delay / per-call timeout / master timeout) are
orthogonal options on one driver rather than separate implementations.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

CallsPerTurn = Literal["first", "all"]
ExitMode = Literal["implicit", "explicit-tool"]

# Defaults carried over from the trading script this engine grew out of.
DEFAULT_TURN_DELAY_MS = 1500
DEFAULT_PER_CALL_TIMEOUT_MS = 10000
DEFAULT_MASTER_TIMEOUT_MS = 180000


@dataclass
class DriverConfig:
    calls_per_turn: CallsPerTurn = "all"
    exit_mode: ExitMode = "implicit"
    completion_tool: str = "finish"
    summary_field: str = "summary"
    turn_delay_ms: float = DEFAULT_TURN_DELAY_MS
    per_call_delay_ms: float = 0
    per_call_timeout_ms: Optional[float] = DEFAULT_PER_CALL_TIMEOUT_MS
    master_timeout_ms: Optional[float] = DEFAULT_MASTER_TIMEOUT_MS
    max_turns: Optional[int] = None
    concurrent_calls: bool = True
    report_unknown_tools: bool = True
    halt_on_fatal_tool_error: bool = False

    def __post_init__(self) -> None:
        if self.calls_per_turn not in ("first", "all"):
            raise ValueError(f"calls_per_turn must be 'first' or 'all', got {self.calls_per_turn!r}")
        if self.exit_mode not in ("implicit", "explicit-tool"):
            raise ValueError(f"exit_mode must be 'implicit' or 'explicit-tool', got {self.exit_mode!r}")
        if not self.completion_tool:
            raise ValueError("completion_tool must be a non-empty name")
        for label in ("turn_delay_ms", "per_call_delay_ms"):
            if getattr(self, label) < 0:
                raise ValueError(f"{label} must be >= 0")
        for label in ("per_call_timeout_ms", "master_timeout_ms"):
            value = getattr(self, label)
            if value is not None and value <= 0:
                raise ValueError(f"{label} must be > 0 or None")
        if self.max_turns is not None and self.max_turns < 1:
            raise ValueError("max_turns must be >= 1 or None")


__all__ = ["DriverConfig", "CallsPerTurn", "ExitMode"]
