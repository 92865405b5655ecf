from __future__ import annotations

import pytest
from typer.testing import CliRunner

from ipmipower import cli
from ipmipower.errors import ControllerConnectError
from ipmipower.services.ipmi_controller import PowerState
from ipmipower.services.power_service import PowerService

from conftest import FakeController

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("IPMI_HOST", "WOL_MAC", "WEB_PORT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def _use_controller(monkeypatch, controller: FakeController) -> None:
    monkeypatch.setattr(cli, "build_power_service", lambda settings: PowerService(controller))


def test_power_on_command_issues_command(monkeypatch):
    controller = FakeController(PowerState.OFF)
    _use_controller(monkeypatch, controller)

    result = runner.invoke(cli.app, ["--host", "10.9.9.9", "power-on"])

    assert result.exit_code == 0
    assert "10.9.9.9: power_on_issued" in result.stdout
    assert controller.power_on_calls == 1


def test_power_on_command_already_on(monkeypatch):
    _use_controller(monkeypatch, FakeController(PowerState.ON))

    result = runner.invoke(cli.app, ["power-on"])

    assert result.exit_code == 0
    assert "already_on" in result.stdout


def test_power_on_command_failure_exit_code(monkeypatch):
    _use_controller(monkeypatch, FakeController(connect_error=ControllerConnectError("auth failed")))

    result = runner.invoke(cli.app, ["power-on"])

    assert result.exit_code == 1
    assert "Error: query_failed: auth failed" in result.stderr


def test_status_command(monkeypatch):
    _use_controller(monkeypatch, FakeController(PowerState.OFF))

    result = runner.invoke(cli.app, ["--host", "bmc.lan", "status"])

    assert result.exit_code == 0
    assert "bmc.lan: OFF" in result.stdout


def test_status_command_unknown(monkeypatch):
    _use_controller(monkeypatch, FakeController(connect_error=ControllerConnectError("down")))

    result = runner.invoke(cli.app, ["status"])

    assert result.exit_code == 1
    assert "UNKNOWN" in result.stdout


def test_invalid_mac_is_fatal(monkeypatch):
    called = []
    monkeypatch.setattr(cli, "run", lambda settings: called.append(settings))

    result = runner.invoke(cli.app, ["--mac", "00:11:22", "serve"])

    assert result.exit_code == 1
    assert "Error: Invalid configuration" in result.stderr
    assert "Traceback" not in result.stderr
    assert called == []


def test_serve_passes_flags_over_env(monkeypatch):
    captured = []
    monkeypatch.setattr(cli, "run", lambda settings: captured.append(settings))
    monkeypatch.setenv("IPMI_HOST", "10.0.0.1")
    monkeypatch.setenv("WEB_PORT", "8080")

    result = runner.invoke(cli.app, ["--host", "10.0.0.2", "--mac", "aa-bb-cc-dd-ee-ff", "serve"])

    assert result.exit_code == 0
    settings = captured[0]
    assert settings.ipmi_host == "10.0.0.2"
    assert settings.web_port == 8080
    assert settings.wol_mac == "aa:bb:cc:dd:ee:ff"


def test_no_command_runs_serve(monkeypatch):
    captured = []
    monkeypatch.setattr(cli, "run", lambda settings: captured.append(settings))

    result = runner.invoke(cli.app, ["--wol-port", "4009"])

    assert result.exit_code == 0
    assert captured[0].wol_port == 4009


def test_help_documents_env_fallback():
    result = runner.invoke(cli.app, ["--help"])
    assert result.exit_code == 0
    assert "IPMI_HOST" in result.stdout


def test_power_on_accepts_flags_after_command(monkeypatch):
    captured = []

    def fake_build(settings):
        captured.append(settings)
        return PowerService(FakeController(PowerState.OFF))

    monkeypatch.setattr(cli, "build_power_service", fake_build)

    result = runner.invoke(cli.app, ["power-on", "--host", "10.9.9.8", "--timeout", "2.5"])

    assert result.exit_code == 0
    assert "10.9.9.8: power_on_issued" in result.stdout
    assert captured[0].action_timeout_seconds == 2.5


def test_status_accepts_flags_after_command(monkeypatch):
    _use_controller(monkeypatch, FakeController(PowerState.ON))

    result = runner.invoke(cli.app, ["status", "--host", "bmc2.lan"])

    assert result.exit_code == 0
    assert "bmc2.lan: ON" in result.stdout


def test_command_flag_wins_over_global_flag(monkeypatch):
    captured = []
    monkeypatch.setattr(cli, "run", lambda settings: captured.append(settings))

    result = runner.invoke(cli.app, ["--web-port", "8080", "serve", "--web-port", "8081", "--mac", "aa:bb:cc:dd:ee:ff"])

    assert result.exit_code == 0
    assert captured[0].web_port == 8081
    assert captured[0].wol_mac == "aa:bb:cc:dd:ee:ff"
