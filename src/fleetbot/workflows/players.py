"""Read-only player listing with a debounced refresh button."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable

from fleetbot.capabilities import PlayerLister
from fleetbot.chat.embeds import (
    Affordance,
    ButtonStyle,
    EmbedField,
    RenderedMessage,
    error_notice,
    format_timestamp,
)
from fleetbot.chat.events import InteractionEvent, Responder
from fleetbot.errors import RateLimited
from fleetbot.registry import CommandSpec
from fleetbot.workflows.debounce import message_remaining_wait

PLAYER_COUNT_FIELD = "Player Count"
PLAYER_NAMES_FIELD = "Players"
LAST_REFRESH_FIELD = "Last Refresh"
NO_PLAYERS = "<none>"


class PlayersCommand:
    name = "players"
    refresh_id = "refresh_players"

    def __init__(
        self,
        lister: PlayerLister,
        *,
        debounce: timedelta = timedelta(seconds=10),
        clock: Callable[[], datetime] = datetime.now,
        logger: logging.Logger | None = None,
    ) -> None:
        self._lister = lister
        self._debounce = debounce
        self._clock = clock
        self._logger = logger or logging.getLogger("fleetbot.workflows.players")

    def build(self) -> CommandSpec:
        return CommandSpec(name=self.name, description="List the players currently online on the server")

    def matches(self, custom_id: str) -> bool:
        return custom_id == self.refresh_id

    async def handle_command(self, event: InteractionEvent, responder: Responder) -> bool:
        return await self._refresh(responder, update=False)

    async def handle_interaction(self, event: InteractionEvent, responder: Responder) -> bool:
        remaining = message_remaining_wait(event.message, LAST_REFRESH_FIELD, self._debounce, self._clock())
        if remaining is not None:
            await responder.ephemeral(str(RateLimited(remaining)))
            return False
        return await self._refresh(responder, update=True)

    async def _refresh(self, responder: Responder, *, update: bool) -> bool:
        try:
            count, names = await asyncio.to_thread(self._lister.players)
        except Exception as exc:  # noqa: BLE001 - surfaced to the requester.
            self._logger.error("listing_players_failed", extra={"error": repr(exc)})
            await responder.ephemeral(error_notice(f"failed getting player count: {exc}"))
            return False

        message = RenderedMessage(
            title="Players on the Server",
            description="Click Refresh to get the current status.",
            fields=[
                EmbedField(PLAYER_COUNT_FIELD, str(count)),
                EmbedField(PLAYER_NAMES_FIELD, ", ".join(names) if names else NO_PLAYERS),
                EmbedField(LAST_REFRESH_FIELD, format_timestamp(self._clock())),
            ],
            affordances=[Affordance(self.refresh_id, "Refresh", emoji="♻️", style=ButtonStyle.SECONDARY)],
        )
        if update:
            await responder.update(message)
        else:
            await responder.send(message)
        return True
