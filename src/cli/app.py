"""
Command-line entry point: run one autonomous trading conversation.

The model is given the trading tools and a task prompt; the driver executes
whatever tools it requests and feeds the results back until it stops calling
tools, calls the completion tool, or a timeout fires.

Run:
  python -m src.cli.app
  python -m src.cli.app --provider anthropic --max-turns 8 --exit-mode explicit-tool

Exit status is 0 when the model finished, 1 on missing configuration or any
fatal termination (gateway failure, master timeout, fatal tool error, max turns).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

# Ensure project root is importable when run directly
CURRENT_DIR = os.path.dirname(__file__)
ROOT_DIR = os.path.abspath(os.path.join(CURRENT_DIR, "..", ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from src.abstractions.errors import ConfigurationError
from src.api.di.composition import PROVIDERS, build_driver, build_gateway, build_registry
from src.infrastructure.tools.config import Config
from src.ui.cli.console import configure_logging, make_console
from src.ui.cli.handlers import list_tools, show_config, show_result

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = """
You are an autonomous trading AI. Your goal is to grow the account balance.
1. Fetch historical price data for 'PI_XBTUSD' (60-minute interval).
2. Check available margin and any open positions or orders.
3. Analyze the data and explain your reasoning.
4. If any open orders seem unnecessary, cancel one.
5. Conclude by holding for 10 seconds and then provide a final summary.
""".strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trader", description="Run a tool-using model conversation against Kraken Futures.")
    parser.add_argument("--provider", choices=PROVIDERS, default=None, help="Model provider (default: $LLM_PROVIDER)")
    parser.add_argument("--model", default=None, help="Model id override")
    parser.add_argument("--base-url", default=None, help="OpenAI-compatible base URL override")
    parser.add_argument("--prompt-file", default=None, help="Read the task prompt from a file")
    parser.add_argument("--system-prompt", default="", help="Optional system instruction")
    parser.add_argument("--calls-per-turn", choices=("first", "all"), default=None)
    parser.add_argument("--exit-mode", choices=("implicit", "explicit-tool"), default=None)
    parser.add_argument("--max-turns", type=int, default=None)
    parser.add_argument("--turn-delay-ms", type=float, default=None)
    parser.add_argument("--timeout-ms", dest="per_call_timeout_ms", type=float, default=None, help="Per-call tool timeout (0 disables)")
    parser.add_argument("--master-timeout-ms", type=float, default=None, help="Whole-run timeout (0 disables)")
    parser.add_argument("--list-tools", action="store_true", help="Print the tool declarations and exit")
    parser.add_argument("--theme", choices=("dark", "light"), default="dark")
    parser.add_argument("--no-color", action="store_true")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log outgoing tool batches")
    return parser


def _read_prompt(path: Optional[str]) -> str:
    if not path:
        return DEFAULT_PROMPT
    with open(path, "r", encoding="utf-8") as fh:
        return fh.read().strip()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    console = make_console(args.theme, use_color=False if args.no_color else None)
    configure_logging(console, verbose=args.verbose)

    provider = (args.provider or Config.LLM_PROVIDER).lower()
    try:
        if not args.list_tools:
            Config.validate_required(provider)
        config = Config.driver_config(
            calls_per_turn=args.calls_per_turn,
            exit_mode=args.exit_mode,
            max_turns=args.max_turns,
            turn_delay_ms=args.turn_delay_ms,
            per_call_timeout_ms=args.per_call_timeout_ms,
            master_timeout_ms=args.master_timeout_ms,
        )
        prompt = _read_prompt(args.prompt_file)
        gateway = build_gateway(provider, model=args.model, base_url=args.base_url)
    except (ConfigurationError, OSError) as e:
        console.print(f"Error: {e}", style="error", markup=False)
        return 1

    registry = build_registry()
    driver = build_driver(gateway, registry, config, system_prompt=args.system_prompt)

    if args.list_tools:
        list_tools(console, driver.tool_declarations())
        return 0

    show_config(console, provider, gateway, config)
    logger.info("Starting trading conversation with multi-layered timeouts...")
    result = asyncio.run(driver.run(prompt))
    show_result(console, result)
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
