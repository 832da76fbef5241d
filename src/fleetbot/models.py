from __future__ import annotations

from dataclasses import dataclass

# Shown instead of player names by backends that only report a count, so
# "nobody online" and "names not supported" stay distinguishable.
NAMES_UNAVAILABLE = "<unknown>"


@dataclass(slots=True, frozen=True)
class ActionRequest:
    """A privileged action as recovered from the invoking event or the request message."""

    workflow: str
    requester: str
    subject: str | None = None
