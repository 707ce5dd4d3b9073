"""
Render helpers for the CLI.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List

from rich.box import ROUNDED
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from src.domain.entities.conversation_state import ConversationResult

_PREVIEW = 80


def _preview(value: Any) -> str:
    text = value if isinstance(value, str) else json.dumps(value, default=str, ensure_ascii=False)
    text = text if len(text) <= _PREVIEW else text[: _PREVIEW - 3] + "..."
    return escape(text)


def list_tools(console: Console, declarations: List[Dict[str, Any]]) -> None:
    """Render a table of advertised tools."""
    table = Table(title="Registered Tools", box=ROUNDED)
    table.add_column("Name", no_wrap=True)
    table.add_column("Description")
    table.add_column("Required Params")

    for decl in declarations:
        req = ", ".join((decl.get("parameters") or {}).get("required", []))
        table.add_row(decl["name"], decl.get("description", ""), req or "-")

    console.print(table)


def show_config(console: Console, provider: str, gateway: Any, config: Any) -> None:
    """Display current provider and driver configuration."""
    content = (
        f"Provider: {provider}\n"
        f"Base URL: {getattr(gateway, 'base_url', '-')}\n"
        f"Model: {getattr(gateway, 'model', '')}\n"
        f"Calls per turn: {config.calls_per_turn}\n"
        f"Exit mode: {config.exit_mode}\n"
        f"Turn delay: {config.turn_delay_ms:g}ms\n"
        f"Per-call timeout: {config.per_call_timeout_ms or 'none'}\n"
        f"Master timeout: {config.master_timeout_ms or 'none'}\n"
        f"Max turns: {config.max_turns or 'unbounded'}"
    )
    console.print(Panel(content, title="Configuration", box=ROUNDED))


def show_history(console: Console, result: ConversationResult) -> None:
    table = Table(title="Tool Calls", box=ROUNDED)
    table.add_column("Turn", justify="right")
    table.add_column("Tool", no_wrap=True)
    table.add_column("Arguments")
    table.add_column("Outcome")

    for entry in result.history:
        outcome = entry.outcome
        if outcome.ok:
            shown = f"[success]{_preview(outcome.payload)}[/success]"
        else:
            shown = f"[error]{outcome.failure.kind}: {_preview(outcome.failure.message)}[/error]"
        table.add_row(str(entry.turn), entry.request.name, _preview(entry.request.arguments), shown)

    console.print(table)


def show_result(console: Console, result: ConversationResult) -> None:
    """Print the history table and the final response or failure."""
    if result.history:
        show_history(console, result)

    reason = result.reason.value
    if result.ok:
        body = str(result.output) if result.output else "The model's final response was empty."
        console.print(Panel(escape(body), title=f"Final response ({reason})", box=ROUNDED, border_style="success"))
    else:
        console.print(Panel(escape(str(result.error or reason)), title=f"CONVERSATION HALTED ({reason})", box=ROUNDED, border_style="error"))
