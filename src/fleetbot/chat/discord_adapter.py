"""Translation between discord.py objects and the platform-neutral chat model."""

from __future__ import annotations

from typing import Any

import discord

from fleetbot.chat.embeds import Affordance, ButtonStyle, EmbedField, RenderedMessage
from fleetbot.chat.events import ChannelMessage, ChatMember, EventKind, InteractionEvent
from fleetbot.registry import CommandSpec

_BUTTON_STYLES = {
    ButtonStyle.PRIMARY: discord.ButtonStyle.primary,
    ButtonStyle.SECONDARY: discord.ButtonStyle.secondary,
    ButtonStyle.SUCCESS: discord.ButtonStyle.success,
    ButtonStyle.DANGER: discord.ButtonStyle.danger,
}


def command_payload(spec: CommandSpec) -> dict[str, Any]:
    """Build the JSON body Discord expects when registering a slash command."""
    return {
        "type": discord.AppCommandType.chat_input.value,
        "name": spec.name,
        "description": spec.description,
        "options": [
            {
                "type": discord.AppCommandOptionType.string.value,
                "name": option.name,
                "description": option.description,
                "required": option.required,
            }
            for option in spec.options
        ],
    }


def to_member(user: discord.abc.User) -> ChatMember:
    # Plain users (e.g. in DMs) carry no roles.
    roles = getattr(user, "roles", None) or []
    return ChatMember(
        id=str(user.id),
        mention=user.mention,
        display_name=user.display_name,
        role_ids=frozenset(str(role.id) for role in roles),
    )


def to_rendered(message: discord.Message) -> RenderedMessage:
    embed = message.embeds[0] if message.embeds else None

    affordances: list[Affordance] = []
    for row in message.components:
        for child in getattr(row, "children", [row]):
            custom_id = getattr(child, "custom_id", None)
            if custom_id:
                affordances.append(Affordance(custom_id=custom_id, label=getattr(child, "label", None) or ""))

    if embed is None:
        return RenderedMessage(title="", affordances=affordances)
    return RenderedMessage(
        title=embed.title or "",
        description=embed.description or "",
        fields=[EmbedField(embed_field.name or "", embed_field.value or "") for embed_field in embed.fields],
        affordances=affordances,
    )


def to_event(interaction: discord.Interaction) -> InteractionEvent | None:
    """Convert an interaction into an event, or ``None`` for kinds we do not handle."""
    data: dict[str, Any] = dict(interaction.data or {})
    tenant_id = str(interaction.guild_id) if interaction.guild_id else None
    member = to_member(interaction.user)

    if interaction.type is discord.InteractionType.application_command:
        options = {
            option["name"]: str(option["value"])
            for option in data.get("options", [])
            if "value" in option
        }
        return InteractionEvent(
            kind=EventKind.COMMAND,
            interaction_id=str(interaction.id),
            tenant_id=tenant_id,
            member=member,
            command_name=data.get("name"),
            options=options,
        )

    if interaction.type is discord.InteractionType.component:
        return InteractionEvent(
            kind=EventKind.COMPONENT,
            interaction_id=str(interaction.id),
            tenant_id=tenant_id,
            member=member,
            custom_id=data.get("custom_id"),
            message=to_rendered(interaction.message) if interaction.message else None,
        )
    return None


def to_channel_message(message: discord.Message, own_user: discord.abc.User | None) -> ChannelMessage:
    return ChannelMessage(
        tenant_id=str(message.guild.id) if message.guild else None,
        channel_id=str(message.channel.id),
        author=to_member(message.author),
        content=message.content,
        from_self=own_user is not None and message.author.id == own_user.id,
    )


def to_embed(message: RenderedMessage) -> discord.Embed:
    embed = discord.Embed(title=message.title or None, description=message.description or None)
    for embed_field in message.fields:
        embed.add_field(name=embed_field.name, value=embed_field.value, inline=False)
    return embed


def to_view(message: RenderedMessage) -> discord.ui.View | None:
    """Build the button row for ``message``.

    Must be called from a running event loop. The view is stopped before it is
    sent so discord.py never tracks it: clicks are routed through
    ``on_interaction`` and the message itself holds the state.
    """
    if not message.affordances:
        return None

    view = discord.ui.View(timeout=None)
    for affordance in message.affordances:
        view.add_item(
            discord.ui.Button(
                label=affordance.label,
                custom_id=affordance.custom_id,
                emoji=affordance.emoji,
                style=_BUTTON_STYLES[affordance.style],
            )
        )
    view.stop()
    return view


class InteractionResponder:
    """Answers one Discord interaction.

    :meth:`defer` acknowledges the interaction before any slow work runs.
    Afterwards replies go through the interaction webhook. A command is
    deferred with a public "thinking" placeholder: the first message replaces
    it, and an ephemeral notice removes it first so the notice stays private.
    """

    def __init__(self, interaction: discord.Interaction) -> None:
        self._interaction = interaction
        self._deferred = False
        self._placeholder = False

    async def defer(self) -> None:
        if self._interaction.response.is_done():
            return
        if self._interaction.type is discord.InteractionType.application_command:
            await self._interaction.response.defer(thinking=True)
            self._placeholder = True
        else:
            await self._interaction.response.defer()
        self._deferred = True

    async def send(self, message: RenderedMessage) -> None:
        view = to_view(message)
        kwargs: dict[str, Any] = {"embed": to_embed(message)}
        if view is not None:
            kwargs["view"] = view

        if not self._deferred:
            await self._interaction.response.send_message(**kwargs)
            return
        await self._interaction.followup.send(**kwargs)
        self._placeholder = False

    async def update(self, message: RenderedMessage) -> None:
        if not self._deferred:
            await self._interaction.response.edit_message(embed=to_embed(message), view=to_view(message))
            return
        await self._interaction.edit_original_response(embed=to_embed(message), view=to_view(message))

    async def ephemeral(self, content: str) -> None:
        if not self._deferred:
            await self._interaction.response.send_message(content, ephemeral=True)
            return
        if self._placeholder:
            await self._interaction.delete_original_response()
            self._placeholder = False
        await self._interaction.followup.send(content, ephemeral=True)


class ChannelReplier:
    def __init__(self, channel: discord.abc.Messageable) -> None:
        self._channel = channel

    async def reply(self, content: str) -> None:
        await self._channel.send(content)


class DiscordCommandInstaller:
    """Registers slash commands per guild through the REST API."""

    def __init__(self, client: discord.Client) -> None:
        self._client = client

    async def install(self, tenant_id: str, spec: CommandSpec) -> None:
        application_id = self._client.application_id
        if application_id is None:
            raise RuntimeError("application id is unknown; log in first or configure it explicitly")
        await self._client.http.upsert_guild_command(application_id, int(tenant_id), command_payload(spec))
