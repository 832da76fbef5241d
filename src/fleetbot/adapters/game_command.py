"""Boundary for game command transport integrations."""

from typing import Protocol


class CommandSender(Protocol):
    """Interface to send line-oriented commands to a game server."""

    def call(self, command: str) -> str:
        """Deliver ``command`` and return the server's textual response."""
