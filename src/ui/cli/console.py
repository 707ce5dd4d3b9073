"""
Console and logging setup for the trader CLI.
"""

import logging
import os
import sys
from typing import Dict, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

# Style names used by the render helpers: success/error tint outcomes,
# warning/muted are available to log markup.
PALETTES: Dict[str, Dict[str, str]] = {
    "dark": {"success": "green", "error": "bold red", "warning": "yellow", "muted": "grey70"},
    "light": {"success": "dark_green", "error": "red", "warning": "dark_orange", "muted": "grey42"},
}

NOISY_LOGGERS = ("httpx", "httpcore", "openai", "anthropic", "urllib3")


def _color_policy(use_color: Optional[bool]):
    """
    Returns (color enabled, force_terminal).

    NO_COLOR disables color unless TRADER_FORCE_COLOR is set; ``use_color=None``
    follows whether stdout is a terminal.
    """
    forced = (os.getenv("TRADER_FORCE_COLOR") or "").lower() in ("1", "true", "yes", "on")
    if use_color is False:
        return False, False
    if forced:
        return True, True
    tty = bool(getattr(sys.stdout, "isatty", lambda: False)())
    wanted = tty if use_color is None else True
    enabled = wanted and os.getenv("NO_COLOR") is None
    return enabled, enabled and tty


def make_console(theme_name: str = "dark", use_color: Optional[bool] = None) -> Console:
    """Create a Rich console with the selected palette and color policy."""
    palette = PALETTES.get(theme_name, PALETTES["dark"])
    enabled, force_terminal = _color_policy(use_color)
    return Console(
        theme=Theme(palette),
        no_color=not enabled,
        color_system="auto" if enabled else None,
        force_terminal=force_terminal,
        highlight=False,
    )


def configure_logging(console: Console, verbose: bool = False) -> None:
    """Route the standard logging tree through Rich on ``console``."""
    handler = RichHandler(console=console, show_path=False, markup=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root = logging.getLogger()
    for existing in list(root.handlers):
        if isinstance(existing, RichHandler):
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    # SDK transports are noisy at DEBUG
    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)


__all__ = ["make_console", "configure_logging", "PALETTES"]
