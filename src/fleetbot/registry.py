"""Binds commands and operands to tenants and routes inbound events to them.

Two deployment shapes are supported. :class:`GuildRegistry` serves one fixed
guild and installs its commands at startup. :class:`FleetRegistry` serves every
guild the bot is a member of and installs a fresh copy of each command the first
time a guild is discovered; repeated discovery events for the same guild are
ignored.
"""

from __future__ import annotations

import copy
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Protocol, Self

from fleetbot.chat.events import ChannelMessage, EventKind, InteractionEvent, Replier, Responder
from fleetbot.telemetry.logging import with_fields


@dataclass(slots=True, frozen=True)
class OptionSpec:
    """A string option of an application command."""

    name: str
    description: str
    required: bool = True


@dataclass(slots=True)
class CommandSpec:
    """Metadata registered with the chat platform for one command."""

    name: str
    description: str
    options: list[OptionSpec] = field(default_factory=list)


class Command(Protocol):
    @property
    def name(self) -> str: ...

    def build(self) -> CommandSpec: ...

    def matches(self, custom_id: str) -> bool:
        """Return True when ``custom_id`` is one of this command's buttons."""

    async def handle_command(self, event: InteractionEvent, responder: Responder) -> Any: ...

    async def handle_interaction(self, event: InteractionEvent, responder: Responder) -> Any: ...


class Operand(Protocol):
    """A passive component reacting to plain channel messages."""

    @property
    def name(self) -> str: ...

    async def handle_message(self, message: ChannelMessage, replier: Replier) -> None: ...


class CommandInstaller(Protocol):
    async def install(self, tenant_id: str, spec: CommandSpec) -> None:
        """Register ``spec`` with the platform for ``tenant_id``."""


class Tenant:
    """The commands and operands installed for a single guild."""

    def __init__(
        self,
        tenant_id: str,
        *,
        commands: list[Command],
        operands: list[Operand],
        logger: logging.Logger | logging.LoggerAdapter,
    ) -> None:
        self.tenant_id = tenant_id
        self.commands = commands
        self.operands = operands
        self._logger = with_fields(logger, tenant=tenant_id)

    async def install(self, installer: CommandInstaller) -> None:
        for operand in self.operands:
            self._logger.info("installing_operand", extra={"operand": operand.name})

        for command in self.commands:
            self._logger.info("installing_command", extra={"command": command.name})
            try:
                await installer.install(self.tenant_id, command.build())
            except Exception:  # noqa: BLE001 - one rejected command must not block the others.
                self._logger.exception("installing_command_failed", extra={"command": command.name})

    async def dispatch(self, event: InteractionEvent, responder: Responder) -> bool:
        handled = False
        for command in self.commands:
            if event.kind is EventKind.COMMAND:
                if event.command_name != command.name:
                    continue
                handler, event_name = command.handle_command, "handling_command"
            else:
                if not event.custom_id or not command.matches(event.custom_id):
                    continue
                handler, event_name = command.handle_interaction, "handling_interaction"

            handled = True
            logger = with_fields(self._logger, command=command.name, interaction=event.interaction_id)
            logger.info(event_name)
            try:
                await responder.defer()
                await handler(event, responder)
            except Exception:  # noqa: BLE001 - event callbacks have no caller to propagate to.
                logger.exception(f"{event_name}_failed")
        return handled

    async def dispatch_message(self, message: ChannelMessage, replier: Replier) -> None:
        for operand in self.operands:
            try:
                await operand.handle_message(message, replier)
            except Exception:  # noqa: BLE001 - event callbacks have no caller to propagate to.
                self._logger.exception("handling_operand_failed", extra={"operand": operand.name})


class _Registry(ABC):
    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self._commands: list[Command] = []
        self._operands: list[Operand] = []
        self._logger = logger or logging.getLogger("fleetbot.registry")

    @property
    def commands(self) -> list[Command]:
        return list(self._commands)

    @property
    def operands(self) -> list[Operand]:
        return list(self._operands)

    def with_command(self, *commands: Command) -> Self:
        self._commands.extend(commands)
        return self

    def with_operand(self, *operands: Operand) -> Self:
        self._operands.extend(operands)
        return self

    async def start(self, installer: CommandInstaller) -> None:
        """Install whatever can be installed before any guild is known."""

    async def discover(self, tenant_id: str, tenant_name: str, installer: CommandInstaller) -> bool:
        """React to the platform announcing a guild. Returns True if commands were installed."""
        return False

    @abstractmethod
    def tenant(self, tenant_id: str | None) -> Tenant | None:
        """Return the tenant serving ``tenant_id``, if any."""

    async def dispatch(self, event: InteractionEvent, responder: Responder) -> bool:
        tenant = self.tenant(event.tenant_id)
        if tenant is None:
            self._logger.debug("event_for_unknown_tenant", extra={"tenant": event.tenant_id})
            return False
        return await tenant.dispatch(event, responder)

    async def dispatch_message(self, message: ChannelMessage, replier: Replier) -> None:
        if message.from_self:
            return
        tenant = self.tenant(message.tenant_id)
        if tenant is not None:
            await tenant.dispatch_message(message, replier)


class GuildRegistry(_Registry):
    """Serves a single, fixed guild."""

    def __init__(self, guild_id: str, *, logger: logging.Logger | None = None) -> None:
        super().__init__(logger=logger)
        self._guild_id = guild_id
        self._tenant: Tenant | None = None

    async def start(self, installer: CommandInstaller) -> None:
        self._tenant = Tenant(
            self._guild_id,
            commands=self.commands,
            operands=self.operands,
            logger=self._logger,
        )
        await self._tenant.install(installer)

    def tenant(self, tenant_id: str | None) -> Tenant | None:
        if tenant_id != self._guild_id:
            return None
        return self._tenant


class FleetRegistry(_Registry):
    """Serves every guild, installing commands lazily as guilds are discovered."""

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        super().__init__(logger=logger)
        self._lock = threading.Lock()
        self._tenants: dict[str, Tenant] = {}

    @property
    def registered_tenants(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._tenants)

    async def discover(self, tenant_id: str, tenant_name: str, installer: CommandInstaller) -> bool:
        logger = with_fields(self._logger, tenant=tenant_id, tenant_name=tenant_name)
        with self._lock:
            if tenant_id in self._tenants:
                logger.warning("skipping_tenant", extra={"reason": "already registered"})
                return False
            tenant = Tenant(
                tenant_id,
                commands=[copy.copy(command) for command in self._commands],
                operands=[copy.copy(operand) for operand in self._operands],
                logger=self._logger,
            )
            self._tenants[tenant_id] = tenant

        logger.info("initializing_tenant")
        await tenant.install(installer)
        return True

    def tenant(self, tenant_id: str | None) -> Tenant | None:
        if tenant_id is None:
            return None
        with self._lock:
            return self._tenants.get(tenant_id)
