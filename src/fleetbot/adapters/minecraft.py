"""Minecraft server control over RCON.

Turns raw RCON responses into typed results. The ``list`` response format is the
only fragile part, and it is parsed here so the workflows never see it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from fleetbot.adapters.game_command import CommandSender
from fleetbot.errors import ProtocolParseError

# "There are 2 of a max of 20 players online: alice, bob"
# "There are 3/20 players online:"
# "There are 3 players online: bob2"
_HEADER_RE = re.compile(r"^\D*?(?P<count>\d+)(?:\D+?(?P<max>\d+))?\D*$")


def parse_player_list(payload: str) -> tuple[int, list[str]]:
    """Parse the ``list`` command response into the player count and names.

    Everything before the first ``:`` is the header holding the counts, the rest
    is the name list. The count is authoritative. Names are best effort: a name
    segment shorter than the count is returned as-is.
    """
    header, _, name_segment = payload.strip().partition(":")
    match = _HEADER_RE.match(header)
    if match is None:
        raise ProtocolParseError("invalid player list response", payload=payload)

    count = int(match.group("count"))
    if count < 1:
        return count, []

    names = [name.strip() for name in name_segment.split(",")]
    return count, [name for name in names if name]


@dataclass(slots=True)
class MinecraftClient:
    """Exposes the server features the bot needs on top of an RCON transport."""

    transport: CommandSender
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("fleetbot.minecraft"))

    def send_command(self, command: str) -> str:
        response = self.transport.call(command)
        self.logger.info("rcon_response_received", extra={"command": command, "payload": response})
        return response

    def whitelist(self, username: str) -> None:
        self.send_command(f"whitelist add {username}")

    def restart(self) -> None:
        self.send_command("restart")

    def notify(self, message: str) -> None:
        self.send_command(f"say {message}")

    def count_players(self) -> int:
        count, _ = self.players()
        return count

    def players(self) -> tuple[int, list[str]]:
        return parse_player_list(self.send_command("list"))
