"""Error taxonomy shared by transports, adapters and workflows."""

from __future__ import annotations

from datetime import timedelta


class FleetBotError(Exception):
    """Base class for all errors raised by fleetbot."""


class TransportError(FleetBotError):
    """A command could not be delivered over the control connection."""


class ReconnectExhausted(TransportError):
    """The transport used up its reconnect budget and refuses further calls."""


class ProtocolParseError(FleetBotError):
    """The remote answered, but not in a shape we understand."""

    def __init__(self, message: str, *, payload: str) -> None:
        super().__init__(f"{message}: {payload!r}")
        self.payload = payload


class RoleDenied(FleetBotError):
    """The clicking member lacks the role required for an affordance."""

    def __init__(self, role: str, message: str) -> None:
        super().__init__(message)
        self.role = role


class RateLimited(FleetBotError):
    """An affordance was used again before its debounce window elapsed."""

    def __init__(self, remaining: timedelta) -> None:
        seconds = max(1, round(remaining.total_seconds()))
        super().__init__(f"Please wait at least {seconds} seconds before retrying.")
        self.remaining = remaining
