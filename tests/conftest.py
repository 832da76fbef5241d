from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from fleetbot.chat.embeds import RenderedMessage
from fleetbot.chat.events import ChatMember, EventKind, InteractionEvent

APPROVER_ROLE = "1001"


@dataclass
class RecordingResponder:
    sent: list[RenderedMessage] = field(default_factory=list)
    updated: list[RenderedMessage] = field(default_factory=list)
    notices: list[str] = field(default_factory=list)
    deferred: int = 0

    async def defer(self) -> None:
        self.deferred += 1

    async def send(self, message: RenderedMessage) -> None:
        self.sent.append(message)

    async def update(self, message: RenderedMessage) -> None:
        self.updated.append(message)

    async def ephemeral(self, content: str) -> None:
        self.notices.append(content)

    @property
    def last(self) -> RenderedMessage:
        return (self.sent + self.updated)[-1]


def member(*roles: str, user_id: str = "42") -> ChatMember:
    return ChatMember(id=user_id, mention=f"<@{user_id}>", display_name=f"user{user_id}", role_ids=frozenset(roles))


def command_event(name: str, *, options: dict[str, str] | None = None, tenant_id: str = "guild-1", by=None):
    return InteractionEvent(
        kind=EventKind.COMMAND,
        interaction_id="i-1",
        tenant_id=tenant_id,
        member=by or member(),
        command_name=name,
        options=options or {},
    )


def click_event(custom_id: str, message: RenderedMessage | None, *, tenant_id: str = "guild-1", by=None):
    return InteractionEvent(
        kind=EventKind.COMPONENT,
        interaction_id="i-2",
        tenant_id=tenant_id,
        member=by or member(),
        custom_id=custom_id,
        message=message,
    )


@pytest.fixture
def responder() -> RecordingResponder:
    return RecordingResponder()
