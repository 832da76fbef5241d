"""Rendered chat messages and the text formats embedded in them.

Workflows keep no state of their own: everything they need on the next click is
written into the message they render and read back from the copy the platform
delivers with the click. All of that text coupling lives in this module.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

TIMESTAMP_FORMAT = "%Y/%m/%d %H:%M:%S"

LAST_TRY_FIELD = "Last try"
PLAYERS_FIELD = "Players"


class ButtonStyle(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    SUCCESS = "success"
    DANGER = "danger"


@dataclass(slots=True, frozen=True)
class Affordance:
    """A button attached to a rendered message."""

    custom_id: str
    label: str
    emoji: str | None = None
    style: ButtonStyle = ButtonStyle.SECONDARY


@dataclass(slots=True, frozen=True)
class EmbedField:
    name: str
    value: str


@dataclass(slots=True)
class RenderedMessage:
    """Platform-neutral description of an embed plus its buttons."""

    title: str
    description: str = ""
    fields: list[EmbedField] = field(default_factory=list)
    affordances: list[Affordance] = field(default_factory=list)

    @property
    def closed(self) -> bool:
        """A message without buttons can no longer be acted on."""
        return not self.affordances

    def field_value(self, name: str) -> str | None:
        for embed_field in self.fields:
            if embed_field.name == name:
                return embed_field.value
        return None

    def offers(self, custom_id: str) -> bool:
        return any(affordance.custom_id == custom_id for affordance in self.affordances)


def format_timestamp(moment: datetime) -> str:
    return moment.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a timestamp written by :func:`format_timestamp`; ``None`` if unreadable."""
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), TIMESTAMP_FORMAT)
    except ValueError:
        return None


def error_notice(detail: str) -> str:
    return f"The bot encountered an error:\n{detail}"
