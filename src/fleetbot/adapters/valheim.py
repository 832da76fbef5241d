"""Valheim status queries over the connectionless A2S protocol."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

import a2s

from fleetbot.adapters.rcon_transport import parse_address
from fleetbot.errors import TransportError
from fleetbot.models import NAMES_UNAVAILABLE

DEFAULT_QUERY_PORT = 2457


@dataclass(slots=True)
class ValheimClient:
    """Counts players through A2S ``info`` queries.

    Valheim does not report player names, so :meth:`players` returns the
    :data:`NAMES_UNAVAILABLE` placeholder instead of an empty list.
    """

    address: str
    timeout_seconds: float = 1.0
    query_info: Callable[..., Any] = a2s.info
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("fleetbot.valheim"))

    def info(self) -> Any:
        host, port = parse_address(self.address, DEFAULT_QUERY_PORT)
        try:
            return self.query_info((host, port), timeout=self.timeout_seconds)
        except (OSError, EOFError, a2s.BrokenMessageError) as exc:
            self.logger.error("a2s_query_failed", extra={"address": self.address, "error": repr(exc)})
            raise TransportError(f"querying {self.address} failed: {exc}") from exc

    def count_players(self) -> int:
        return int(self.info().player_count)

    def players(self) -> tuple[int, list[str]]:
        return self.count_players(), [NAMES_UNAVAILABLE]
