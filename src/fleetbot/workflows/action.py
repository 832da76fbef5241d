"""Approval-gated action workflow.

A single :class:`ActionWorkflow` drives restart, wind-down, wake-up and
whitelist requests. Each inbound event is handled on its own: the request
message rendered by the previous step carries everything the next step needs
(the subject, the precondition value, the last attempt timestamp and the
buttons that are still valid).

    REQUESTED --precondition holds--> execute --> COMPLETED
        |
        +--precondition fails--> AWAITING_EMPTY --Override (role)--> OVERRIDDEN --> execute
                                      |  ^
                                      |  +--Retry (debounced)-- re-run the precondition
                                      +--Abort--> ABORTED

A failed execution leaves the message untouched so the request can be tried again.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Protocol, Sequence

from fleetbot.capabilities import Executor, Notifier, PlayerCounter
from fleetbot.chat.embeds import (
    LAST_TRY_FIELD,
    PLAYERS_FIELD,
    Affordance,
    ButtonStyle,
    EmbedField,
    RenderedMessage,
    error_notice,
    format_timestamp,
)
from fleetbot.chat.events import ChatMember, InteractionEvent, Responder
from fleetbot.errors import RateLimited, RoleDenied
from fleetbot.models import ActionRequest
from fleetbot.registry import CommandSpec, OptionSpec
from fleetbot.telemetry.logging import with_fields
from fleetbot.workflows.debounce import message_remaining_wait

STALE_NOTICE = "This request is no longer active."


class ActionState(str, Enum):
    REQUESTED = "requested"
    AWAITING_EMPTY = "awaiting_empty"
    OVERRIDDEN = "overridden"
    ABORTED = "aborted"
    COMPLETED = "completed"


class AffordanceKind(str, Enum):
    OVERRIDE = "override"
    ABORT = "abort"
    RETRY = "retry"


@dataclass(slots=True, frozen=True)
class AffordanceSpec:
    kind: AffordanceKind
    key: str
    label: str
    emoji: str | None
    style: ButtonStyle


OVERRIDE = AffordanceSpec(AffordanceKind.OVERRIDE, "override", "Override", "⚠️", ButtonStyle.DANGER)
ABORT = AffordanceSpec(AffordanceKind.ABORT, "abort", "Abort", "🛑", ButtonStyle.SECONDARY)
RETRY = AffordanceSpec(AffordanceKind.RETRY, "retry", "Retry", "🔃", ButtonStyle.PRIMARY)
APPROVE = AffordanceSpec(AffordanceKind.OVERRIDE, "approve", "Approve", "✅", ButtonStyle.SUCCESS)

GATED_AFFORDANCES = (OVERRIDE, ABORT, RETRY)


@dataclass(slots=True, frozen=True)
class PreconditionResult:
    satisfied: bool
    fields: tuple[EmbedField, ...] = ()


class Precondition(Protocol):
    def check(self) -> PreconditionResult:
        """Evaluate the gate. May block on the network."""


@dataclass(slots=True)
class EmptyServer:
    """Holds when nobody is online."""

    counter: PlayerCounter

    def check(self) -> PreconditionResult:
        count = self.counter.count_players()
        return PreconditionResult(satisfied=count < 1, fields=(EmbedField(PLAYERS_FIELD, str(count)),))


class AlwaysBlock:
    """Never holds: every request waits for an approver."""

    def check(self) -> PreconditionResult:
        return PreconditionResult(satisfied=False)


class AlwaysSatisfied:
    def check(self) -> PreconditionResult:
        return PreconditionResult(satisfied=True)


@dataclass(slots=True, frozen=True)
class SubjectOption:
    """A required command option that is carried through the request as an embed field."""

    option: str
    field: str
    description: str


@dataclass(slots=True, frozen=True)
class ActionTexts:
    """User-facing strings. ``{subject}``, ``{mention}``, ``{role}`` and ``{requester}`` are substituted."""

    command_description: str
    completed_title: str
    completed_description: str
    failure: str
    request_title: str = ""
    request_description: str = ""
    aborted_title: str = "Aborted"
    aborted_description: str = "The request was aborted by {mention}."
    denied: str = "Only members with the <@&{role}> role can do this. Please wait :-)"
    precondition_failure: str = "failed getting player count"
    announcement: str | None = None


class ActionWorkflow:
    """Parametrized request/approve/execute state machine for one command."""

    def __init__(
        self,
        name: str,
        *,
        texts: ActionTexts,
        precondition: Precondition,
        executor: Executor,
        notifier: Notifier | None = None,
        override_role: str = "",
        debounce: timedelta = timedelta(seconds=10),
        affordances: Sequence[AffordanceSpec] = GATED_AFFORDANCES,
        subject: SubjectOption | None = None,
        clock: Callable[[], datetime] = datetime.now,
        logger: logging.Logger | None = None,
    ) -> None:
        self._name = name
        self._texts = texts
        self._precondition = precondition
        self._executor = executor
        self._notifier = notifier
        self._override_role = override_role
        self._debounce = debounce
        self._affordances = tuple(affordances)
        self._subject = subject
        self._clock = clock
        self._logger = logger or logging.getLogger(f"fleetbot.workflows.{name}")
        self._by_custom_id = {self.custom_id(spec): spec for spec in self._affordances}

    @property
    def name(self) -> str:
        return self._name

    def custom_id(self, spec: AffordanceSpec) -> str:
        return f"{spec.key}_{self._name}"

    def build(self) -> CommandSpec:
        options = []
        if self._subject:
            options.append(OptionSpec(name=self._subject.option, description=self._subject.description))
        return CommandSpec(name=self._name, description=self._texts.command_description, options=options)

    def matches(self, custom_id: str) -> bool:
        return custom_id in self._by_custom_id

    async def handle_command(self, event: InteractionEvent, responder: Responder) -> ActionState | None:
        """Handle a fresh invocation of the command."""
        subject = None
        if self._subject:
            subject = (event.options.get(self._subject.option) or "").strip()
            if not subject:
                await responder.ephemeral(error_notice(f"missing required option {self._subject.option!r}"))
                return None

        request = ActionRequest(workflow=self._name, requester=event.member.mention, subject=subject)
        await self._announce(event.member)
        return await self._attempt(request, responder, update=False)

    async def handle_interaction(self, event: InteractionEvent, responder: Responder) -> ActionState | None:
        """Handle a click on one of the buttons of a previously rendered request."""
        custom_id = event.custom_id or ""
        spec = self._by_custom_id.get(custom_id)
        if spec is None:
            return None

        logger = with_fields(self._logger, affordance=spec.key, member=event.member.id)
        message = event.message
        if message is None or not message.offers(custom_id):
            logger.info("stale_affordance_ignored")
            await responder.ephemeral(STALE_NOTICE)
            return None

        request = ActionRequest(
            workflow=self._name,
            requester=event.member.mention,
            subject=message.field_value(self._subject.field) if self._subject else None,
        )
        try:
            if spec.kind is AffordanceKind.ABORT:
                return await self._abort(event.member, responder)
            if spec.kind is AffordanceKind.OVERRIDE:
                self._require_role(event.member)
                return await self._execute(request, responder, update=True, via=ActionState.OVERRIDDEN)

            self._require_debounce_elapsed(message)
            return await self._attempt(request, responder, update=True)
        except RoleDenied as exc:
            logger.info("role_denied", extra={"role": exc.role})
            await responder.ephemeral(str(exc))
        except RateLimited as exc:
            logger.info("rate_limited", extra={"remaining_seconds": exc.remaining.total_seconds()})
            await responder.ephemeral(str(exc))
        return None

    async def _attempt(self, request: ActionRequest, responder: Responder, *, update: bool) -> ActionState | None:
        try:
            result = await asyncio.to_thread(self._precondition.check)
        except Exception as exc:  # noqa: BLE001 - surfaced to the requester, request stays live.
            self._logger.error("precondition_check_failed", extra={"error": repr(exc)})
            await responder.ephemeral(error_notice(f"{self._texts.precondition_failure}: {exc}"))
            return None

        if result.satisfied:
            return await self._execute(request, responder, update=update, via=ActionState.REQUESTED)

        await self._render(responder, self._request_message(request, result), update=update)
        self._logger.info("action_awaiting_precondition", extra={"fields": [f.value for f in result.fields]})
        return ActionState.AWAITING_EMPTY

    async def _execute(
        self,
        request: ActionRequest,
        responder: Responder,
        *,
        update: bool,
        via: ActionState,
    ) -> ActionState | None:
        self._logger.info("action_executing", extra={"via": via.value, "requester": request.requester})
        try:
            await asyncio.to_thread(self._executor.perform, request)
        except Exception as exc:  # noqa: BLE001 - surfaced to the requester, request stays live.
            self._logger.exception("action_failed", extra={"via": via.value})
            await responder.ephemeral(error_notice(f"{self._texts.failure}: {exc}"))
            return None

        completed = RenderedMessage(
            title=self._texts.completed_title,
            description=self._texts.completed_description.format(subject=request.subject or ""),
        )
        await self._render(responder, completed, update=update)
        self._logger.info("action_completed", extra={"via": via.value})
        return ActionState.COMPLETED

    async def _abort(self, member: ChatMember, responder: Responder) -> ActionState:
        aborted = RenderedMessage(
            title=self._texts.aborted_title,
            description=self._texts.aborted_description.format(mention=member.mention),
        )
        await responder.update(aborted)
        self._logger.info("action_aborted", extra={"member": member.id})
        return ActionState.ABORTED

    async def _announce(self, member: ChatMember) -> None:
        if self._notifier is None or not self._texts.announcement:
            return
        message = self._texts.announcement.format(requester=member.display_name)
        try:
            await asyncio.to_thread(self._notifier.notify, message)
        except Exception as exc:  # noqa: BLE001 - bystander notice is best effort.
            self._logger.warning("announcement_failed", extra={"error": repr(exc)})

    def _require_role(self, member: ChatMember) -> None:
        if not member.has_role(self._override_role):
            raise RoleDenied(self._override_role, self._texts.denied.format(role=self._override_role))

    def _require_debounce_elapsed(self, message: RenderedMessage) -> None:
        remaining = message_remaining_wait(message, LAST_TRY_FIELD, self._debounce, self._clock())
        if remaining is not None:
            raise RateLimited(remaining)

    def _request_message(self, request: ActionRequest, result: PreconditionResult) -> RenderedMessage:
        fields = []
        if self._subject:
            fields.append(EmbedField(self._subject.field, request.subject or ""))
        fields.extend(result.fields)
        fields.append(EmbedField(LAST_TRY_FIELD, format_timestamp(self._clock())))
        return RenderedMessage(
            title=self._texts.request_title,
            description=self._texts.request_description,
            fields=fields,
            affordances=[
                Affordance(custom_id=self.custom_id(spec), label=spec.label, emoji=spec.emoji, style=spec.style)
                for spec in self._affordances
            ],
        )

    @staticmethod
    async def _render(responder: Responder, message: RenderedMessage, *, update: bool) -> None:
        if update:
            await responder.update(message)
        else:
            await responder.send(message)
