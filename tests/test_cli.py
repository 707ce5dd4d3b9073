import pytest

from src.abstractions.errors import GatewayTransportError
from src.cli import app
from src.infrastructure.tools.config import Config
from tests.conftest import ScriptedGateway, calls, text


@pytest.fixture
def no_delays(monkeypatch):
    monkeypatch.setattr(Config, "TURN_DELAY_MS", None)
    monkeypatch.setattr(Config, "MASTER_TIMEOUT_MS", 5000.0)
    monkeypatch.setattr(Config, "MAX_TURNS", None)


@pytest.fixture
def wired(monkeypatch, registry, no_delays):
    """Replace the real gateway and exchange with in-memory stand-ins."""
    holder = {}

    def fake_gateway(provider, model=None, base_url=None, api_key=None):
        return holder["gateway"]

    monkeypatch.setattr(app, "build_gateway", fake_gateway)
    monkeypatch.setattr(app, "build_registry", lambda client=None: registry)
    monkeypatch.setattr(Config, "validate_required", classmethod(lambda cls, provider=None: None))
    return holder


def test_list_tools_needs_no_credentials(monkeypatch, capsys, no_delays):
    monkeypatch.setattr(Config, "KRAKEN_API_KEY", "")
    monkeypatch.setattr(Config, "KRAKEN_API_SECRET", "")

    code = app.main(["--list-tools", "--provider", "ollama", "--no-color"])

    out = capsys.readouterr().out
    assert code == 0
    assert "getHistoricPriceData" in out
    assert "cancelOrder" in out


def test_list_tools_shows_completion_tool_in_explicit_mode(capsys, no_delays):
    code = app.main(["--list-tools", "--provider", "ollama", "--exit-mode", "explicit-tool", "--no-color"])
    assert code == 0
    assert "finish" in capsys.readouterr().out


def test_missing_credentials_exit_with_error(monkeypatch, capsys, no_delays):
    monkeypatch.setattr(Config, "KRAKEN_API_KEY", "")
    monkeypatch.setattr(Config, "KRAKEN_API_SECRET", "")

    code = app.main(["--provider", "ollama", "--no-color"])

    assert code == 1
    assert "KRAKEN_API_KEY" in capsys.readouterr().out


def test_successful_run_exits_zero(wired, capsys, call_log):
    wired["gateway"] = ScriptedGateway([calls("getAvailableMargin"), text("Balance OK.")])

    code = app.main(["--provider", "openai", "--no-color"])

    assert code == 0
    assert call_log == [("getAvailableMargin", {})]
    assert wired["gateway"].sent[0] == app.DEFAULT_PROMPT
    assert "Balance OK." in capsys.readouterr().out


def test_prompt_file_is_used(wired, tmp_path):
    prompt = tmp_path / "task.txt"
    prompt.write_text("  Only check margin.  \n", encoding="utf-8")
    wired["gateway"] = ScriptedGateway([text("ok")])

    assert app.main(["--prompt-file", str(prompt), "--no-color"]) == 0
    assert wired["gateway"].sent[0] == "Only check margin."


def test_missing_prompt_file_is_an_error(wired, tmp_path):
    wired["gateway"] = ScriptedGateway([text("ok")])
    assert app.main(["--prompt-file", str(tmp_path / "absent.txt"), "--no-color"]) == 1


def test_fatal_termination_exits_one(wired):
    wired["gateway"] = ScriptedGateway([GatewayTransportError("connection reset")])
    assert app.main(["--provider", "openai", "--no-color"]) == 1


def test_max_turns_flag_bounds_the_run(wired):
    wired["gateway"] = ScriptedGateway([calls("getOpenOrders")] * 5)
    assert app.main(["--max-turns", "1", "--no-color"]) == 1
    assert len(wired["gateway"].sent) == 1


def test_zero_timeouts_on_command_line_disable_them(wired, monkeypatch):
    seen = {}
    real_build_driver = app.build_driver

    def capture(gateway, registry, config=None, system_prompt=""):
        seen["config"] = config
        return real_build_driver(gateway, registry, config, system_prompt=system_prompt)

    monkeypatch.setattr(app, "build_driver", capture)
    wired["gateway"] = ScriptedGateway([text("ok")])

    code = app.main(["--master-timeout-ms", "0", "--timeout-ms", "0", "--no-color"])

    assert code == 0
    assert seen["config"].master_timeout_ms is None
    assert seen["config"].per_call_timeout_ms is None
