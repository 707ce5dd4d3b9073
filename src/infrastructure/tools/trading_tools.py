"""
Trading tools exposed to the model: thin adapters over KrakenFuturesClient.

Names, descriptions and schemas match what the model is prompted with, so
they stay camelCase. Client calls are blocking and run on a worker thread via
the registry; ``hold`` is a coroutine.
"""

import asyncio
from typing import Any, Dict, List

from src.infrastructure.exchange.kraken_futures import KrakenFuturesClient
from .tool_base import Tool, object_schema


class KrakenTool(Tool):
    """Base for tools backed by a Kraken Futures client."""

    def __init__(self, client: KrakenFuturesClient):
        self.client = client

    @property
    def input_schema(self) -> Dict[str, Any]:
        return object_schema()


class GetHistoricPriceDataTool(KrakenTool):
    @property
    def name(self) -> str:
        return "getHistoricPriceData"

    @property
    def description(self) -> str:
        return "Fetches historical OHLC price data."

    @property
    def input_schema(self) -> Dict[str, Any]:
        return object_schema(
            {
                "pair": {"type": "string", "description": "Futures symbol, e.g. PI_XBTUSD"},
                "interval": {"type": "number", "description": "Candle interval in minutes"},
            },
            ["pair", "interval"],
        )

    def run(self, input: Dict[str, Any]) -> Any:
        return self.client.get_history(input.get("pair"), input.get("interval", 60))


class GetAvailableMarginTool(KrakenTool):
    @property
    def name(self) -> str:
        return "getAvailableMargin"

    @property
    def description(self) -> str:
        return "Retrieves available margin."

    def run(self, input: Dict[str, Any]) -> Any:
        return self.client.get_accounts()


class GetOpenPositionsTool(KrakenTool):
    @property
    def name(self) -> str:
        return "getOpenPositions"

    @property
    def description(self) -> str:
        return "Fetches open positions."

    def run(self, input: Dict[str, Any]) -> Any:
        return self.client.get_open_positions()


class GetOpenOrdersTool(KrakenTool):
    @property
    def name(self) -> str:
        return "getOpenOrders"

    @property
    def description(self) -> str:
        return "Retrieves open orders."

    def run(self, input: Dict[str, Any]) -> Any:
        return self.client.get_open_orders()


class CancelOrderTool(KrakenTool):
    @property
    def name(self) -> str:
        return "cancelOrder"

    @property
    def description(self) -> str:
        return "Cancels a specific order."

    @property
    def input_schema(self) -> Dict[str, Any]:
        return object_schema(
            {"order_id": {"type": "string", "description": "Identifier of the order to cancel"}},
            ["order_id"],
        )

    def run(self, input: Dict[str, Any]) -> Any:
        order_id = input.get("order_id")
        if not isinstance(order_id, str) or not order_id.strip():
            raise ValueError("order_id must be a non-empty string")
        return self.client.cancel_order(order_id.strip())


class HoldTool(Tool):
    """Pauses for ``duration`` seconds. Needs no exchange access."""

    def __init__(self, max_duration: float = 300):
        self.max_duration = max_duration

    @property
    def name(self) -> str:
        return "hold"

    @property
    def description(self) -> str:
        return "Pauses execution."

    @property
    def input_schema(self) -> Dict[str, Any]:
        return object_schema(
            {"duration": {"type": "number", "description": "Seconds to wait"}},
            ["duration"],
        )

    async def run(self, input: Dict[str, Any]) -> str:
        try:
            duration = float(input.get("duration"))
        except (TypeError, ValueError):
            raise ValueError("duration must be a number of seconds") from None
        if duration < 0 or duration > self.max_duration:
            raise ValueError(f"duration must be between 0 and {self.max_duration:g} seconds")
        await asyncio.sleep(duration)
        return f"Held for {input.get('duration')} seconds."


def build_trading_tools(client: KrakenFuturesClient) -> List[Tool]:
    """Tools in the order they are advertised to the model."""
    return [
        GetHistoricPriceDataTool(client),
        GetAvailableMarginTool(client),
        GetOpenPositionsTool(client),
        GetOpenOrdersTool(client),
        CancelOrderTool(client),
        HoldTool(),
    ]
