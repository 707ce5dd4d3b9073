"""
Anthropic Capability Gateway.

Based on: https://docs.anthropic.com/claude/docs/tool-use

- Tools are advertised as ``{"name", "description", "input_schema"}``
- ``tool_use`` blocks become ToolInvocationRequest
- Outcomes go back as one user message of ``tool_result`` blocks
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional, Tuple

from anthropic import AsyncAnthropic
from dotenv import load_dotenv

from src.abstractions.dto.gateway import GatewayResponse
from src.abstractions.dto.tools import (
    ToolInvocationOutcome,
    ToolInvocationRequest,
    serialize_outcomes,
    serialize_payload,
)
from .base import NOT_EXECUTED, CapabilityGateway, GatewaySession

DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-20250514"


class AnthropicGateway(CapabilityGateway):
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: int = 1024,
        temperature: Optional[float] = None,
        client: Any = None,
    ) -> None:
        load_dotenv()
        super().__init__(model or os.getenv("ANTHROPIC_MODEL") or DEFAULT_ANTHROPIC_MODEL)
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY", "")
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.client = client or AsyncAnthropic(api_key=self.api_key)

    def _user_message(self, text: str) -> Dict[str, Any]:
        return {"role": "user", "content": text}

    def _outcome_messages(
        self, outcomes: List[ToolInvocationOutcome], pending: List[ToolInvocationRequest]
    ) -> List[Dict[str, Any]]:
        pairs, orphans = self._match_outcomes(outcomes, pending)
        blocks: List[Dict[str, Any]] = []
        for request, outcome in pairs:
            if outcome is None:
                content, is_error = f"Error: {NOT_EXECUTED}", True
            elif outcome.ok:
                content, is_error = serialize_payload(outcome.payload), False
            else:
                content, is_error = f"Error: {outcome.to_wire()['response']['error']}", True
            blocks.append({
                "type": "tool_result",
                "tool_use_id": request.call_id,
                "content": content,
                "is_error": is_error,
            })
        if orphans or not blocks:
            blocks.append({"type": "text", "text": serialize_outcomes(orphans)})
        return [{"role": "user", "content": blocks}]

    async def _complete(self, session: GatewaySession) -> Any:
        payload: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": session.messages,
        }
        if session.system_prompt:
            payload["system"] = session.system_prompt
        if session.tools:
            payload["tools"] = [
                {
                    "name": decl["name"],
                    "description": decl.get("description") or "",
                    "input_schema": decl.get("parameters") or {"type": "object", "properties": {}},
                }
                for decl in session.tools
            ]
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        return await self.client.messages.create(**payload)

    def _parse(self, raw: Any) -> Tuple[GatewayResponse, Dict[str, Any]]:
        texts: List[str] = []
        invocations: List[ToolInvocationRequest] = []
        wire_blocks: List[Dict[str, Any]] = []

        for block in getattr(raw, "content", None) or []:
            block_type = getattr(block, "type", None)
            if block_type == "text":
                # The API rejects empty text blocks when history is replayed.
                if not block.text:
                    continue
                texts.append(block.text)
                wire_blocks.append({"type": "text", "text": block.text})
            elif block_type == "tool_use":
                args = self._parse_args_safely(block.input)
                invocations.append(ToolInvocationRequest(name=block.name, arguments=args, call_id=block.id))
                wire_blocks.append({"type": "tool_use", "id": block.id, "name": block.name, "input": args})

        assistant = {"role": "assistant", "content": wire_blocks or "(no content)"}
        if invocations:
            return GatewayResponse.calls(invocations, raw=raw), assistant
        return GatewayResponse.text("\n".join(texts).strip(), raw=raw), assistant


__all__ = ["AnthropicGateway", "DEFAULT_ANTHROPIC_MODEL"]
