"""Debounce decisions based on timestamps carried in rendered messages."""

from __future__ import annotations

from datetime import datetime, timedelta

from fleetbot.chat.embeds import RenderedMessage, parse_timestamp


def remaining_wait(last_attempt: str | None, window: timedelta, now: datetime) -> timedelta | None:
    """Return how long the caller still has to wait, or ``None`` when not debounced.

    Unreadable timestamps and timestamps from the future never debounce.
    """
    last = parse_timestamp(last_attempt)
    if last is None or last > now:
        return None

    remaining = last + window - now
    if remaining <= timedelta(0):
        return None
    return remaining


def message_remaining_wait(
    message: RenderedMessage | None,
    field_name: str,
    window: timedelta,
    now: datetime,
) -> timedelta | None:
    if message is None:
        return None
    return remaining_wait(message.field_value(field_name), window, now)
