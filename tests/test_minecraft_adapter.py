from __future__ import annotations

import pytest

from fleetbot.adapters.minecraft import MinecraftClient, parse_player_list
from fleetbot.errors import ProtocolParseError, TransportError


class StubSender:
    def __init__(self, responses: dict[str, str] | None = None, fail: bool = False) -> None:
        self.responses = responses or {}
        self.fail = fail
        self.commands: list[str] = []

    def call(self, command: str) -> str:
        self.commands.append(command)
        if self.fail:
            raise TransportError("connection lost")
        return self.responses.get(command, "")


def test_parse_empty_server_without_name_segment() -> None:
    assert parse_player_list("There are 0 of a max of 20 players online:") == (0, [])
    assert parse_player_list("There are 0 of a max of 20 players online.") == (0, [])


def test_parse_players_with_names() -> None:
    count, names = parse_player_list("There are 2 of a max of 20 players online: alice, bob_99")

    assert count == 2
    assert names == ["alice", "bob_99"]


def test_parse_trusts_count_when_names_are_short() -> None:
    assert parse_player_list("There are 3 of a max of 20 players online: alice") == (3, ["alice"])
    assert parse_player_list("There are 1 of a max of 20 players online:") == (1, [])


@pytest.mark.parametrize("payload", ["", "Unknown or incomplete command, see below for error"])
def test_parse_rejects_malformed_response(payload: str) -> None:
    with pytest.raises(ProtocolParseError) as excinfo:
        parse_player_list(payload)

    assert excinfo.value.payload == payload


def test_client_counts_players_through_list_command() -> None:
    sender = StubSender({"list": "There are 4 of a max of 10 players online: a, b, c, d"})
    client = MinecraftClient(sender)

    assert client.count_players() == 4
    assert client.players() == (4, ["a", "b", "c", "d"])
    assert sender.commands == ["list", "list"]


def test_client_issues_privileged_commands() -> None:
    sender = StubSender()
    client = MinecraftClient(sender)

    client.whitelist("Steve")
    client.restart()
    client.notify("hello there")

    assert sender.commands == ["whitelist add Steve", "restart", "say hello there"]


def test_transport_failure_is_not_mistaken_for_an_empty_server() -> None:
    client = MinecraftClient(StubSender(fail=True))

    with pytest.raises(TransportError):
        client.count_players()


def test_parse_names_are_split_on_first_colon() -> None:
    assert parse_player_list("There are 3 players online: bob2") == (3, ["bob2"])
    assert parse_player_list("There are 2/20 players online: alice1, bob_99") == (2, ["alice1", "bob_99"])
    assert parse_player_list("There are 1 of a max of 20 players online: x:y") == (1, ["x:y"])
