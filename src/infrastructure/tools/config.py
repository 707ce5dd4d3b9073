"""
Configuration module for loading environment variables and settings.

This module handles:
1. Loading API keys from .env file
2. Setting default provider and driver configurations
3. Validating required settings for a trading run
"""

import os
from typing import List, Optional

from dotenv import load_dotenv

from src.abstractions.errors import ConfigurationError
from src.agents.config import (
    DEFAULT_MASTER_TIMEOUT_MS,
    DEFAULT_PER_CALL_TIMEOUT_MS,
    DEFAULT_TURN_DELAY_MS,
    DriverConfig,
)

# Load environment variables from .env file
load_dotenv()

PROVIDER_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


def _optional_number(name: str, default: Optional[float]) -> Optional[float]:
    """Read a millisecond setting; empty, "0" or "none" disables it."""
    raw = os.getenv(name)
    if raw is None:
        return default
    raw = raw.strip().lower()
    if raw in ("", "0", "none", "off"):
        return None
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number of milliseconds, got {raw!r}") from None


class Config:
    """Configuration manager for exchange credentials, model providers and driver knobs."""

    # Exchange
    KRAKEN_API_KEY: str = os.getenv('KRAKEN_API_KEY', '')
    KRAKEN_API_SECRET: str = os.getenv('KRAKEN_API_SECRET', '')
    KRAKEN_BASE_URL: str = os.getenv('KRAKEN_BASE_URL', 'https://futures.kraken.com')

    # Model provider: openai | deepseek | ollama | gemini | anthropic | custom
    LLM_PROVIDER: str = os.getenv('LLM_PROVIDER', 'gemini').strip().lower()

    # OpenAI-compatible endpoints (support DeepSeek, Ollama, Gemini, custom)
    OPENAI_API_KEY: str = os.getenv('OPENAI_API_KEY', '')
    OPENAI_BASE_URL: str = os.getenv('OPENAI_BASE_URL', 'https://api.openai.com/v1')
    OPENAI_MODEL: str = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')

    DEEPSEEK_API_KEY: str = os.getenv('DEEPSEEK_API_KEY', '')
    DEEPSEEK_BASE_URL: str = os.getenv('DEEPSEEK_BASE_URL', 'https://api.deepseek.com')
    DEEPSEEK_MODEL: str = os.getenv('DEEPSEEK_MODEL', 'deepseek-chat')

    OLLAMA_API_KEY: str = os.getenv('OLLAMA_API_KEY', 'ollama')  # placeholder, often unused
    OLLAMA_BASE_URL: str = os.getenv('OLLAMA_BASE_URL', 'http://localhost:11434/v1')
    OLLAMA_MODEL: str = os.getenv('OLLAMA_MODEL', 'llama3.1')

    GEMINI_API_KEY: str = os.getenv('GEMINI_API_KEY', '')
    GEMINI_BASE_URL: str = os.getenv('GEMINI_BASE_URL', 'https://generativelanguage.googleapis.com/v1beta/openai/')
    GEMINI_MODEL: str = os.getenv('GEMINI_MODEL', 'gemini-1.5-flash')

    ANTHROPIC_API_KEY: str = os.getenv('ANTHROPIC_API_KEY', '')
    ANTHROPIC_MODEL: str = os.getenv('ANTHROPIC_MODEL', 'claude-sonnet-4-20250514')

    # Driver knobs (milliseconds)
    TURN_DELAY_MS: Optional[float] = _optional_number('TURN_DELAY_MS', DEFAULT_TURN_DELAY_MS)
    FUNCTION_EXEC_TIMEOUT_MS: Optional[float] = _optional_number('FUNCTION_EXEC_TIMEOUT_MS', DEFAULT_PER_CALL_TIMEOUT_MS)
    MASTER_TIMEOUT_MS: Optional[float] = _optional_number('MASTER_TIMEOUT_MS', DEFAULT_MASTER_TIMEOUT_MS)
    MAX_TURNS: Optional[float] = _optional_number('MAX_TURNS', None)
    CALLS_PER_TURN: str = os.getenv('CALLS_PER_TURN', 'all')
    EXIT_MODE: str = os.getenv('EXIT_MODE', 'implicit')
    COMPLETION_TOOL: str = os.getenv('COMPLETION_TOOL', 'finish')

    @classmethod
    def missing_required(cls, provider: Optional[str] = None) -> List[str]:
        """Names of required environment variables that are unset."""
        provider = (provider or cls.LLM_PROVIDER).lower()
        missing = [name for name in ('KRAKEN_API_KEY', 'KRAKEN_API_SECRET') if not getattr(cls, name)]
        key_name = PROVIDER_KEY_ENV.get(provider)
        if key_name and not getattr(cls, key_name):
            missing.append(key_name)
        return missing

    @classmethod
    def validate_required(cls, provider: Optional[str] = None) -> None:
        """
        Raises:
            ConfigurationError: naming every missing variable
        """
        missing = cls.missing_required(provider)
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables ({', '.join(missing)})."
            )

    @classmethod
    def driver_config(cls, **overrides) -> DriverConfig:
        """Build a DriverConfig from the environment; keyword overrides win, None overrides are ignored."""
        values = {
            "calls_per_turn": cls.CALLS_PER_TURN,
            "exit_mode": cls.EXIT_MODE,
            "completion_tool": cls.COMPLETION_TOOL,
            "turn_delay_ms": cls.TURN_DELAY_MS or 0,
            "per_call_timeout_ms": cls.FUNCTION_EXEC_TIMEOUT_MS,
            "master_timeout_ms": cls.MASTER_TIMEOUT_MS,
            "max_turns": int(cls.MAX_TURNS) if cls.MAX_TURNS else None,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        # 0 disables a timeout, as it does in the environment
        for key in ("per_call_timeout_ms", "master_timeout_ms"):
            if values[key] == 0:
                values[key] = None
        try:
            return DriverConfig(**values)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
