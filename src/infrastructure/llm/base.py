"""
Capability Gateway base.

Defines a provider-agnostic session wrapper that:
- Opens a conversation advertising the tool declarations
- Keeps the full message history per conversation handle
- Converts provider responses into GatewayResponse (calls or text)
- Converts outcome batches back into provider messages

Provider-specific payload shapes live in subclasses. Any provider/SDK error
while talking to the model surfaces as GatewayTransportError; the driver
treats that as fatal and never retries.
"""

from __future__ import annotations

import json
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from src.abstractions.dto.gateway import ConversationHandle, GatewayResponse
from src.abstractions.dto.tools import ToolInvocationOutcome, ToolInvocationRequest
from src.abstractions.errors import GatewayTransportError

logger = logging.getLogger(__name__)

NOT_EXECUTED = "Call was not executed."


@dataclass
class GatewaySession:
    system_prompt: str
    tools: List[Dict[str, Any]]
    messages: List[Dict[str, Any]] = field(default_factory=list)
    pending: List[ToolInvocationRequest] = field(default_factory=list)


class CapabilityGateway(ABC):
    """
    Abstract base for model sessions exposed as "send message, receive calls or text".

    Responsibilities:
    - Session bookkeeping (history, calls awaiting results)
    - Robust argument parsing shared by providers
    - Provider-specific request/response mapping in concrete subclasses
    """

    def __init__(self, model: str) -> None:
        self.model = model
        self._sessions: Dict[str, GatewaySession] = {}

    # ----------------------------------------------------------------- public

    async def start(self, system_prompt: str = "", tools: Optional[Sequence[Dict[str, Any]]] = None) -> ConversationHandle:
        handle = ConversationHandle(id=uuid.uuid4().hex, system_prompt=system_prompt)
        session = GatewaySession(system_prompt=system_prompt, tools=list(tools or []))
        try:
            await self._open(session)
        except GatewayTransportError:
            raise
        except Exception as e:
            raise GatewayTransportError(f"Could not start conversation with {self.model}: {e}", cause=e) from e
        self._sessions[handle.id] = session
        logger.debug("Started conversation %s with %d tool(s)", handle.id, len(session.tools))
        return handle

    async def send(self, handle: ConversationHandle, message: Any) -> GatewayResponse:
        session = self._sessions.get(handle.id)
        if session is None:
            raise GatewayTransportError(f"Unknown conversation handle: {handle.id}")

        if isinstance(message, str):
            new_messages = [self._user_message(message)]
        else:
            new_messages = self._outcome_messages(list(message), session.pending)

        mark = len(session.messages)
        session.messages.extend(new_messages)
        try:
            raw = await self._complete(session)
        except Exception as e:
            # Keep history consistent with what the model has actually seen.
            del session.messages[mark:]
            raise GatewayTransportError(f"Model request failed: {e}", cause=e) from e

        response, assistant_message = self._parse(raw)
        session.messages.append(assistant_message)
        session.pending = list(response.invocations) if response.kind == "calls" else []
        return response

    def history(self, handle: ConversationHandle) -> List[Dict[str, Any]]:
        """Copy of the provider-shaped history for ``handle`` (diagnostics)."""
        session = self._sessions.get(handle.id)
        return list(session.messages) if session else []

    # ------------------------------------------------------ provider contract

    async def _open(self, session: GatewaySession) -> None:
        """Hook for an initial exchange (auth probe). Default: nothing to do."""
        return None

    @abstractmethod
    def _user_message(self, text: str) -> Dict[str, Any]:
        ...

    @abstractmethod
    def _outcome_messages(
        self, outcomes: List[ToolInvocationOutcome], pending: List[ToolInvocationRequest]
    ) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def _complete(self, session: GatewaySession) -> Any:
        ...

    @abstractmethod
    def _parse(self, raw: Any) -> Tuple[GatewayResponse, Dict[str, Any]]:
        ...

    # ---------------------------------------------------------------- helpers

    @staticmethod
    def _match_outcomes(
        outcomes: List[ToolInvocationOutcome], pending: List[ToolInvocationRequest]
    ) -> Tuple[List[Tuple[ToolInvocationRequest, Optional[ToolInvocationOutcome]]], List[ToolInvocationOutcome]]:
        """
        Pair every pending call with its outcome by call id.

        Returns (pairs in pending order, outcomes that matched no pending id).
        Pending calls without an outcome get ``None``; providers must still
        answer them.
        """
        by_id: Dict[str, ToolInvocationOutcome] = {}
        orphans: List[ToolInvocationOutcome] = []
        pending_ids = {p.call_id for p in pending if p.call_id}
        for outcome in outcomes:
            if outcome.call_id and outcome.call_id in pending_ids and outcome.call_id not in by_id:
                by_id[outcome.call_id] = outcome
            else:
                orphans.append(outcome)
        pairs = [(p, by_id.get(p.call_id or "")) for p in pending]
        return pairs, orphans

    @staticmethod
    def _parse_args_safely(raw: Any) -> Dict[str, Any]:
        """
        Convert function call arguments to a dict robustly:
        - dict passthrough
        - JSON string (with or without ``` fences)
        - Extract first balanced {...} object from a string if needed
        """
        if isinstance(raw, dict):
            return raw
        if isinstance(raw, str):
            text = raw.strip()
            if text.startswith("```"):
                end = text.find("```", 3)
                if end != -1:
                    text = text[3:end].strip()
                    if text.lower().startswith("json"):
                        text = text[4:].strip()
            try:
                obj = json.loads(text)
                return obj if isinstance(obj, dict) else {}
            except json.JSONDecodeError:
                start = text.find("{")
                while start != -1:
                    depth = 0
                    for i in range(start, len(text)):
                        ch = text[i]
                        if ch == "{":
                            depth += 1
                        elif ch == "}":
                            depth -= 1
                            if depth == 0:
                                candidate = text[start:i + 1]
                                try:
                                    obj = json.loads(candidate)
                                    if isinstance(obj, dict):
                                        return obj
                                except json.JSONDecodeError:
                                    pass
                                break
                    start = text.find("{", start + 1)
        return {}


__all__ = ["CapabilityGateway", "GatewaySession", "NOT_EXECUTED"]
