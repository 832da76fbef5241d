"""Discord client wiring the gateway events into the registry."""

from __future__ import annotations

import logging

import discord

from fleetbot.chat.discord_adapter import (
    ChannelReplier,
    DiscordCommandInstaller,
    InteractionResponder,
    to_channel_message,
    to_event,
)
from fleetbot.registry import FleetRegistry, GuildRegistry


def build_intents(*, with_messages: bool) -> discord.Intents:
    """Guild events always; message content only when an operand reads channel messages."""
    intents = discord.Intents.none()
    intents.guilds = True
    if with_messages:
        intents.guild_messages = True
        intents.message_content = True
    return intents


class FleetClient(discord.Client):
    def __init__(
        self,
        registry: GuildRegistry | FleetRegistry,
        *,
        application_id: int | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(intents=build_intents(with_messages=bool(registry.operands)), application_id=application_id)
        self._registry = registry
        self._installer = DiscordCommandInstaller(self)
        self._logger = logger or logging.getLogger("fleetbot.bot")

    async def setup_hook(self) -> None:
        await self._registry.start(self._installer)

    async def on_ready(self) -> None:
        self._logger.info("bot_ready", extra={"user": str(self.user), "guilds": len(self.guilds)})

    async def on_guild_available(self, guild: discord.Guild) -> None:
        await self._registry.discover(str(guild.id), guild.name, self._installer)

    async def on_guild_join(self, guild: discord.Guild) -> None:
        await self._registry.discover(str(guild.id), guild.name, self._installer)

    async def on_interaction(self, interaction: discord.Interaction) -> None:
        event = to_event(interaction)
        if event is None:
            return
        await self._registry.dispatch(event, InteractionResponder(interaction))

    async def on_message(self, message: discord.Message) -> None:
        if not self._registry.operands:
            return
        await self._registry.dispatch_message(to_channel_message(message, self.user), ChannelReplier(message.channel))
