"""Platform-neutral inbound events and the reply surface handlers talk to."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from fleetbot.chat.embeds import RenderedMessage


class EventKind(str, Enum):
    COMMAND = "command"
    COMPONENT = "component"


@dataclass(slots=True, frozen=True)
class ChatMember:
    """The member behind an event, with role ids as delivered in the payload."""

    id: str
    mention: str
    display_name: str
    role_ids: frozenset[str] = frozenset()

    def has_role(self, role_id: str) -> bool:
        return bool(role_id) and role_id in self.role_ids


@dataclass(slots=True)
class InteractionEvent:
    """A command invocation or a button click."""

    kind: EventKind
    interaction_id: str
    tenant_id: str | None
    member: ChatMember
    command_name: str | None = None
    options: dict[str, str] = field(default_factory=dict)
    custom_id: str | None = None
    message: RenderedMessage | None = None


@dataclass(slots=True, frozen=True)
class ChannelMessage:
    """A plain message posted in a channel."""

    tenant_id: str | None
    channel_id: str
    author: ChatMember
    content: str
    from_self: bool = False


class Responder(Protocol):
    """Answers a single interaction."""

    async def defer(self) -> None:
        """Acknowledge the interaction so slow work can run before the reply."""

    async def send(self, message: RenderedMessage) -> None:
        """Post ``message`` as a new reply visible to the channel."""

    async def update(self, message: RenderedMessage) -> None:
        """Replace the message the clicked button belongs to."""

    async def ephemeral(self, content: str) -> None:
        """Reply with a notice only the invoking member can see."""


class Replier(Protocol):
    async def reply(self, content: str) -> None:
        """Post ``content`` to the channel the message came from."""
