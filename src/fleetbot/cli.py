"""CLI-side handler wrappers for talking to a server without Discord."""

from __future__ import annotations

from fleetbot.adapters.game_command import CommandSender
from fleetbot.capabilities import PlayerLister


class CliCommandHandler:
    """Simple sync facade over a command transport and a player lister."""

    def __init__(self, sender: CommandSender | None, lister: PlayerLister) -> None:
        self._sender = sender
        self._lister = lister

    def submit_command(self, command: str) -> str:
        if self._sender is None:
            raise RuntimeError("this backend has no command console")
        return self._sender.call(command)

    def players(self) -> dict[str, object]:
        count, names = self._lister.players()
        return {"player_count": count, "players": names}
