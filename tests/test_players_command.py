from __future__ import annotations

import asyncio
from datetime import datetime, timedelta

from conftest import click_event, command_event

from fleetbot.errors import TransportError
from fleetbot.workflows import PlayersCommand

T0 = datetime(2024, 5, 1, 20, 0, 0)


class StubLister:
    def __init__(self, count: int = 0, names: list[str] | None = None, fail: bool = False) -> None:
        self.count = count
        self.names = names or []
        self.fail = fail
        self.calls = 0

    def players(self) -> tuple[int, list[str]]:
        self.calls += 1
        if self.fail:
            raise TransportError("connection lost")
        return self.count, list(self.names)


def _command(lister: StubLister, now: datetime = T0) -> PlayersCommand:
    return PlayersCommand(lister, debounce=timedelta(seconds=10), clock=lambda: now)


def test_lists_players_with_refresh_button(responder) -> None:
    handled = asyncio.run(_command(StubLister(2, ["alice", "bob"])).handle_command(command_event("players"), responder))

    assert handled is True
    message = responder.sent[0]
    assert message.field_value("Player Count") == "2"
    assert message.field_value("Players") == "alice, bob"
    assert message.field_value("Last Refresh") == "2024/05/01 20:00:00"
    assert [a.custom_id for a in message.affordances] == ["refresh_players"]


def test_empty_server_shows_placeholder(responder) -> None:
    asyncio.run(_command(StubLister(0)).handle_command(command_event("players"), responder))

    assert responder.sent[0].field_value("Players") == "<none>"


def test_refresh_is_debounced(responder) -> None:
    asyncio.run(_command(StubLister(1, ["alice"])).handle_command(command_event("players"), responder))
    listing = responder.sent[0]
    lister = StubLister(0)

    early = asyncio.run(_command(lister, T0 + timedelta(seconds=4)).handle_interaction(
        click_event("refresh_players", listing), responder
    ))
    late = asyncio.run(_command(lister, T0 + timedelta(seconds=12)).handle_interaction(
        click_event("refresh_players", listing), responder
    ))

    assert early is False
    assert responder.notices == ["Please wait at least 6 seconds before retrying."]
    assert late is True
    assert lister.calls == 1
    assert responder.updated[-1].field_value("Player Count") == "0"


def test_listing_failure_is_reported(responder) -> None:
    handled = asyncio.run(_command(StubLister(fail=True)).handle_command(command_event("players"), responder))

    assert handled is False
    assert responder.sent == []
    assert responder.notices == ["The bot encountered an error:\nfailed getting player count: connection lost"]


def test_only_refresh_button_matches() -> None:
    command = _command(StubLister())

    assert command.matches("refresh_players")
    assert not command.matches("retry_restart")
