import pytest

from src.abstractions.errors import ConfigurationError
from src.infrastructure.tools import config as config_module
from src.infrastructure.tools.config import Config


@pytest.fixture
def configured(monkeypatch):
    monkeypatch.setattr(Config, "KRAKEN_API_KEY", "k")
    monkeypatch.setattr(Config, "KRAKEN_API_SECRET", "s")
    monkeypatch.setattr(Config, "GEMINI_API_KEY", "g")
    return Config


def test_validate_required_passes_when_everything_is_set(configured):
    configured.validate_required("gemini")
    assert configured.missing_required("gemini") == []


def test_missing_variables_are_all_named(monkeypatch):
    monkeypatch.setattr(Config, "KRAKEN_API_KEY", "")
    monkeypatch.setattr(Config, "KRAKEN_API_SECRET", "")
    monkeypatch.setattr(Config, "ANTHROPIC_API_KEY", "")

    with pytest.raises(ConfigurationError) as info:
        Config.validate_required("anthropic")

    message = str(info.value)
    for name in ("KRAKEN_API_KEY", "KRAKEN_API_SECRET", "ANTHROPIC_API_KEY"):
        assert name in message


def test_ollama_needs_no_provider_key(configured):
    assert configured.missing_required("ollama") == []


@pytest.mark.parametrize("raw, expected", [
    ("2500", 2500.0),
    (" 10.5 ", 10.5),
    ("", None),
    ("0", None),
    ("none", None),
    ("OFF", None),
])
def test_optional_number_parsing(monkeypatch, raw, expected):
    monkeypatch.setenv("SOME_TIMEOUT_MS", raw)
    assert config_module._optional_number("SOME_TIMEOUT_MS", 1000) == expected


def test_optional_number_default_and_garbage(monkeypatch):
    monkeypatch.delenv("SOME_TIMEOUT_MS", raising=False)
    assert config_module._optional_number("SOME_TIMEOUT_MS", 1000) == 1000
    monkeypatch.setenv("SOME_TIMEOUT_MS", "soon")
    with pytest.raises(ConfigurationError):
        config_module._optional_number("SOME_TIMEOUT_MS", 1000)


def test_driver_config_from_environment_with_overrides(monkeypatch):
    monkeypatch.setattr(Config, "TURN_DELAY_MS", None)
    monkeypatch.setattr(Config, "MASTER_TIMEOUT_MS", 60000.0)
    monkeypatch.setattr(Config, "MAX_TURNS", 12.0)
    monkeypatch.setattr(Config, "CALLS_PER_TURN", "all")

    cfg = Config.driver_config(calls_per_turn="first", per_call_timeout_ms=None)

    assert cfg.turn_delay_ms == 0
    assert cfg.master_timeout_ms == 60000.0
    assert cfg.max_turns == 12
    assert cfg.calls_per_turn == "first"
    # None overrides leave the environment value in place
    assert cfg.per_call_timeout_ms == Config.FUNCTION_EXEC_TIMEOUT_MS


def test_driver_config_invalid_value_is_configuration_error(monkeypatch):
    monkeypatch.setattr(Config, "EXIT_MODE", "whenever")
    with pytest.raises(ConfigurationError, match="exit_mode"):
        Config.driver_config()


def test_zero_timeout_override_disables_like_environment(monkeypatch):
    monkeypatch.setattr(Config, "MASTER_TIMEOUT_MS", 60000.0)
    monkeypatch.setattr(Config, "FUNCTION_EXEC_TIMEOUT_MS", 10000.0)

    cfg = Config.driver_config(master_timeout_ms=0, per_call_timeout_ms=0)

    assert cfg.master_timeout_ms is None
    assert cfg.per_call_timeout_ms is None
