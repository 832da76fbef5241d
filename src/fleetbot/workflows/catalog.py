"""The concrete commands offered to chat members."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable

from fleetbot.capabilities import (
    Notifier,
    PlayerCounter,
    Restarter,
    RestartExecutor,
    Scaler,
    ScaleDownExecutor,
    ScaleUpExecutor,
    Whitelister,
    WhitelistExecutor,
)
from fleetbot.workflows.action import (
    APPROVE,
    GATED_AFFORDANCES,
    ActionTexts,
    ActionWorkflow,
    AlwaysBlock,
    AlwaysSatisfied,
    EmptyServer,
    SubjectOption,
)

RESTART_TEXTS = ActionTexts(
    command_description="Restart the server",
    request_title="Requesting Restart",
    request_description="The server is waiting for all players to leave. Retry when it's empty.",
    completed_title="Restarting Server",
    completed_description="The server will be back shortly. Please stand by.",
    aborted_description="The restart was aborted by {mention}.",
    denied="Only members with the <@&{role}> role can override your Restart. Please wait :-)",
    failure="failed to restart the server",
    announcement="{requester} is requesting a server restart. You can leave the server to comply with their request.",
)

WINDDOWN_TEXTS = ActionTexts(
    command_description="Wind down the server",
    request_title="Requesting Winddown",
    request_description="The server is waiting for all players to leave. Retry when it's empty.",
    completed_title="Winding down Server",
    completed_description="Use /wakeup to bring it back.",
    aborted_description="The winddown was aborted by {mention}.",
    denied="Only members with the <@&{role}> role can override your winddown. Please wait :-)",
    failure="failed to wind down the server",
    announcement="{requester} is requesting a server wind down. You can leave the server to comply with their request.",
)

WAKEUP_TEXTS = ActionTexts(
    command_description="Wakeup the server",
    completed_title="Waking up Server",
    completed_description="Use /winddown to bring it down.",
    failure="failed to scale up the server",
)

WHITELIST_TEXTS = ActionTexts(
    command_description="Whitelist a player on the Minecraft server",
    request_title="Requesting Whitelist",
    request_description="Please wait for approval :-)",
    completed_title="Approved",
    completed_description="Welcome on the Server **{subject}**!",
    denied="Only members with the <@&{role}> role can confirm your Whitelist. Please wait :-)",
    failure="failed to whitelist the player",
)

MINECRAFT_NAME = SubjectOption(
    option="minecraft-name",
    field="Username",
    description="The name of your Minecraft Account",
)


def restart_workflow(
    *,
    counter: PlayerCounter,
    restarter: Restarter,
    notifier: Notifier | None,
    override_role: str,
    debounce: timedelta,
    clock: Callable[[], datetime] = datetime.now,
) -> ActionWorkflow:
    return ActionWorkflow(
        "restart",
        texts=RESTART_TEXTS,
        precondition=EmptyServer(counter),
        executor=RestartExecutor(restarter),
        notifier=notifier,
        override_role=override_role,
        debounce=debounce,
        affordances=GATED_AFFORDANCES,
        clock=clock,
    )


def winddown_workflow(
    *,
    counter: PlayerCounter,
    scaler: Scaler,
    notifier: Notifier | None,
    override_role: str,
    debounce: timedelta,
    clock: Callable[[], datetime] = datetime.now,
) -> ActionWorkflow:
    return ActionWorkflow(
        "winddown",
        texts=WINDDOWN_TEXTS,
        precondition=EmptyServer(counter),
        executor=ScaleDownExecutor(scaler),
        notifier=notifier,
        override_role=override_role,
        debounce=debounce,
        affordances=GATED_AFFORDANCES,
        clock=clock,
    )


def wakeup_workflow(*, scaler: Scaler) -> ActionWorkflow:
    return ActionWorkflow(
        "wakeup",
        texts=WAKEUP_TEXTS,
        precondition=AlwaysSatisfied(),
        executor=ScaleUpExecutor(scaler),
        affordances=(),
    )


def whitelist_workflow(*, whitelister: Whitelister, approver_role: str) -> ActionWorkflow:
    return ActionWorkflow(
        "whitelist",
        texts=WHITELIST_TEXTS,
        precondition=AlwaysBlock(),
        executor=WhitelistExecutor(whitelister),
        override_role=approver_role,
        affordances=(APPROVE,),
        subject=MINECRAFT_NAME,
    )
