"""Small capability interfaces the workflows depend on, and executors built from them.

Backends implement whichever subset they support: the RCON client counts
players, restarts and broadcasts; the Kubernetes adapters scale and delete pods;
the A2S client only counts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from fleetbot.models import ActionRequest


class PlayerCounter(Protocol):
    def count_players(self) -> int:
        """Return the number of players currently online."""


class PlayerLister(Protocol):
    def players(self) -> tuple[int, list[str]]:
        """Return the player count and the best-effort list of names."""


class Notifier(Protocol):
    def notify(self, message: str) -> None:
        """Broadcast ``message`` to players on the server."""


class Executor(Protocol):
    def perform(self, request: ActionRequest) -> None:
        """Carry out the privileged action, raising on failure."""


class Restarter(Protocol):
    def restart(self) -> None: ...


class Scaler(Protocol):
    def scale_down(self) -> None: ...

    def scale_up(self) -> None: ...


class Whitelister(Protocol):
    def whitelist(self, username: str) -> None: ...


class NoopNotifier:
    """Notifier for backends that cannot message players."""

    def notify(self, message: str) -> None:
        return None


@dataclass(slots=True)
class RestartExecutor:
    restarter: Restarter

    def perform(self, request: ActionRequest) -> None:
        self.restarter.restart()


@dataclass(slots=True)
class ScaleDownExecutor:
    scaler: Scaler

    def perform(self, request: ActionRequest) -> None:
        self.scaler.scale_down()


@dataclass(slots=True)
class ScaleUpExecutor:
    scaler: Scaler

    def perform(self, request: ActionRequest) -> None:
        self.scaler.scale_up()


@dataclass(slots=True)
class WhitelistExecutor:
    whitelister: Whitelister

    def perform(self, request: ActionRequest) -> None:
        if not request.subject:
            raise ValueError("no username to whitelist")
        self.whitelister.whitelist(request.subject)
