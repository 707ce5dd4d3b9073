"""
Composition module (edge wiring).

Every collaborator is constructed here once and passed into the driver; no
module-level client or registry singletons.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from src.abstractions.errors import ConfigurationError
from src.infrastructure.tools.config import Config

if TYPE_CHECKING:
    from src.agents.config import DriverConfig
    from src.interfaces.agents.runtime import IConversationRuntime
    from src.infrastructure.exchange.kraken_futures import KrakenFuturesClient
    from src.infrastructure.llm.base import CapabilityGateway
    from src.infrastructure.tools.tool_manager import ToolRegistry

PROVIDERS = ("gemini", "openai", "deepseek", "ollama", "anthropic", "custom")


def build_gateway(
    provider: str,
    model: Optional[str] = None,
    base_url: Optional[str] = None,
    api_key: Optional[str] = None,
) -> "CapabilityGateway":
    """
    Construct the capability gateway for a provider choice.
    """
    provider = (provider or "").lower().strip()
    if provider == "anthropic":
        from src.infrastructure.llm.anthropic_gateway import AnthropicGateway
        return AnthropicGateway(api_key=api_key or Config.ANTHROPIC_API_KEY, model=model or Config.ANTHROPIC_MODEL)

    from src.infrastructure.llm.openai_compatible import OpenAICompatibleGateway
    if provider == "gemini":
        defaults = (Config.GEMINI_API_KEY, Config.GEMINI_BASE_URL, Config.GEMINI_MODEL)
    elif provider == "deepseek":
        defaults = (Config.DEEPSEEK_API_KEY, Config.DEEPSEEK_BASE_URL, Config.DEEPSEEK_MODEL)
    elif provider == "ollama":
        defaults = (Config.OLLAMA_API_KEY, Config.OLLAMA_BASE_URL, Config.OLLAMA_MODEL)
    elif provider in ("openai", "custom"):
        defaults = (Config.OPENAI_API_KEY, Config.OPENAI_BASE_URL, Config.OPENAI_MODEL)
    else:
        raise ConfigurationError(f"Unknown provider {provider!r}; expected one of {', '.join(PROVIDERS)}")

    key, url, default_model = defaults
    return OpenAICompatibleGateway(api_key=api_key or key, base_url=base_url or url, model=model or default_model)


def build_exchange_client() -> "KrakenFuturesClient":
    from src.infrastructure.exchange.kraken_futures import KrakenFuturesClient
    return KrakenFuturesClient(Config.KRAKEN_API_KEY, Config.KRAKEN_API_SECRET, base_url=Config.KRAKEN_BASE_URL)


def build_registry(client: Optional["KrakenFuturesClient"] = None) -> "ToolRegistry":
    """
    Registry holding the trading tools, in advertised order.
    """
    from src.infrastructure.tools.tool_manager import ToolRegistry
    from src.infrastructure.tools.trading_tools import build_trading_tools
    return ToolRegistry(build_trading_tools(client or build_exchange_client()))


def build_driver(
    gateway: "CapabilityGateway",
    registry: "ToolRegistry",
    config: Optional["DriverConfig"] = None,
    system_prompt: str = "",
) -> "IConversationRuntime":
    from src.agents.driver import ConversationDriver
    return ConversationDriver(gateway, registry, config or Config.driver_config(), system_prompt=system_prompt)
