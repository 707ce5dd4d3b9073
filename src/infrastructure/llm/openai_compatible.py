"""
OpenAI-compatible Capability Gateway.

Supports any provider exposing an OpenAI Chat Completions-compatible API with
native function calling:
- OpenAI (https://api.openai.com/v1)
- DeepSeek (https://api.deepseek.com)
- Ollama (http://localhost:11434/v1)
- Gemini (https://generativelanguage.googleapis.com/v1beta/openai/)

Behavior:
- Advertises tool declarations as ``tools=[{"type": "function", ...}]``
- Reads ``message.tool_calls`` into ToolInvocationRequest (arguments parsed robustly)
- Answers each pending call id with a ``tool`` role message in the next send
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv
from openai import AsyncOpenAI

from src.abstractions.dto.gateway import GatewayResponse
from src.abstractions.dto.tools import (
    ToolInvocationOutcome,
    ToolInvocationRequest,
    serialize_outcomes,
)
from .base import NOT_EXECUTED, CapabilityGateway, GatewaySession


class OpenAICompatibleGateway(CapabilityGateway):
    """
    Provider-agnostic gateway for the OpenAI-compatible chat API.

    Example usage for Gemini:
        gateway = OpenAICompatibleGateway(
            api_key=os.getenv("GEMINI_API_KEY"),
            base_url="https://generativelanguage.googleapis.com/v1beta/openai/",
            model="gemini-1.5-flash",
        )

    Example usage for Ollama:
        gateway = OpenAICompatibleGateway(
            api_key=os.getenv("OLLAMA_API_KEY", "ollama"),  # placeholder if unused
            base_url=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434/v1"),
            model=os.getenv("OLLAMA_MODEL", "llama3.1"),
        )
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        verify_on_start: bool = False,
        client: Any = None,
    ) -> None:
        load_dotenv()
        self.api_key = api_key or os.getenv("OPENAI_API_KEY") or "ollama"
        self.base_url = base_url or os.getenv("OPENAI_BASE_URL") or "https://api.openai.com/v1"
        super().__init__(model or os.getenv("OPENAI_MODEL") or "gpt-4o-mini")
        self.temperature = temperature
        self.verify_on_start = verify_on_start
        self.client = client or AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)

    def _is_ollama_openai_compat(self) -> bool:
        """
        Heuristic: detect Ollama when using its OpenAI-compatible /v1 endpoint.
        Avoids setting OpenAI-only fields that Ollama may not accept.
        """
        base = (self.base_url or "").lower()
        return "ollama" in base or ":11434" in base

    def _build_openai_tools(self, tools: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": decl["name"],
                    "description": decl.get("description") or "",
                    "parameters": decl.get("parameters") or {"type": "object", "properties": {}},
                },
            }
            for decl in tools
        ]

    # ------------------------------------------------------ provider contract

    async def _open(self, session: GatewaySession) -> None:
        if session.system_prompt:
            session.messages.append({"role": "system", "content": session.system_prompt})
        if self.verify_on_start and not self._is_ollama_openai_compat():
            # Cheap authenticated call so bad keys fail at start rather than mid-run.
            await self.client.models.retrieve(self.model)

    def _user_message(self, text: str) -> Dict[str, Any]:
        return {"role": "user", "content": text}

    def _outcome_messages(
        self, outcomes: List[ToolInvocationOutcome], pending: List[ToolInvocationRequest]
    ) -> List[Dict[str, Any]]:
        pairs, orphans = self._match_outcomes(outcomes, pending)
        messages: List[Dict[str, Any]] = []
        for request, outcome in pairs:
            body = outcome.to_wire()["response"] if outcome is not None else {"error": NOT_EXECUTED}
            messages.append({
                "role": "tool",
                "tool_call_id": request.call_id,
                "content": json.dumps(body, sort_keys=True, default=str, ensure_ascii=False),
            })
        if orphans or not messages:
            messages.append(self._user_message(serialize_outcomes(orphans)))
        return messages

    async def _complete(self, session: GatewaySession) -> Any:
        payload: Dict[str, Any] = {"model": self.model, "messages": session.messages}
        if session.tools:
            payload["tools"] = self._build_openai_tools(session.tools)
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        return await self.client.chat.completions.create(**payload)

    def _parse(self, raw: Any) -> Tuple[GatewayResponse, Dict[str, Any]]:
        message = raw.choices[0].message
        content = getattr(message, "content", None) or ""
        invocations: List[ToolInvocationRequest] = []
        wire_calls: List[Dict[str, Any]] = []

        for index, call in enumerate(getattr(message, "tool_calls", None) or []):
            fn = getattr(call, "function", None)
            raw_name = str(getattr(fn, "name", "") or "")
            raw_args = getattr(fn, "arguments", None)
            name = raw_name.split(".")[-1] if "." in raw_name else raw_name
            call_id = getattr(call, "id", None) or f"call_{index}"
            invocations.append(
                ToolInvocationRequest(name=name, arguments=self._parse_args_safely(raw_args), call_id=call_id)
            )
            wire_calls.append({
                "id": call_id,
                "type": "function",
                "function": {
                    "name": raw_name,
                    "arguments": raw_args if isinstance(raw_args, str) else json.dumps(raw_args or {}),
                },
            })

        assistant: Dict[str, Any] = {"role": "assistant", "content": content}
        if wire_calls:
            assistant["tool_calls"] = wire_calls
            return GatewayResponse.calls(invocations, raw=raw), assistant
        return GatewayResponse.text(content, raw=raw), assistant


__all__ = ["OpenAICompatibleGateway"]
