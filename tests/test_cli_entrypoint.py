from __future__ import annotations

import importlib

import pytest
from pydantic import SecretStr

from fleetbot.cli import CliCommandHandler


def test_console_entrypoint_exposes_app() -> None:
    pytest.importorskip("typer")

    module = importlib.import_module("fleetbot.main")

    assert hasattr(module, "app")
    assert module.app is not None


def test_both_backends_are_rejected(monkeypatch) -> None:
    typer = pytest.importorskip("typer")
    module = importlib.import_module("fleetbot.main")

    monkeypatch.setattr(module.settings, "minecraft_enabled", True)
    monkeypatch.setattr(module.settings, "valheim_enabled", True)

    with pytest.raises(typer.BadParameter):
        module._build_registry()


def test_cli_handler_reports_players_and_commands() -> None:
    class Transport:
        def call(self, command: str) -> str:
            return f"ran {command}"

    class Lister:
        def players(self):
            return 1, ["alice"]

    handler = CliCommandHandler(sender=Transport(), lister=Lister())

    assert handler.submit_command("list") == "ran list"
    assert handler.players() == {"player_count": 1, "players": ["alice"]}


def test_cli_handler_without_console_refuses_commands() -> None:
    class Lister:
        def players(self):
            return 0, []

    with pytest.raises(RuntimeError):
        CliCommandHandler(sender=None, lister=Lister()).submit_command("list")


def test_show_config_masks_secrets(monkeypatch) -> None:
    pytest.importorskip("typer")
    from typer.testing import CliRunner

    module = importlib.import_module("fleetbot.main")
    monkeypatch.setattr(module.settings, "minecraft_rcon_password", SecretStr("hunter2"))

    result = CliRunner().invoke(module.app, ["show-config"])

    assert result.exit_code == 0
    assert "minecraft_rcon_address" in result.output
    assert "hunter2" not in result.output
    assert "app_name" not in result.output
