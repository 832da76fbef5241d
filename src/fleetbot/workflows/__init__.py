"""Chat-driven workflows: gated privileged actions and read-only queries."""

from .action import (
    ABORT,
    APPROVE,
    GATED_AFFORDANCES,
    OVERRIDE,
    RETRY,
    ActionState,
    ActionTexts,
    ActionWorkflow,
    AffordanceKind,
    AffordanceSpec,
    AlwaysBlock,
    AlwaysSatisfied,
    EmptyServer,
    Precondition,
    PreconditionResult,
    SubjectOption,
)
from .catalog import restart_workflow, wakeup_workflow, whitelist_workflow, winddown_workflow
from .players import PlayersCommand

__all__ = [
    "ABORT",
    "APPROVE",
    "GATED_AFFORDANCES",
    "OVERRIDE",
    "RETRY",
    "ActionState",
    "ActionTexts",
    "ActionWorkflow",
    "AffordanceKind",
    "AffordanceSpec",
    "AlwaysBlock",
    "AlwaysSatisfied",
    "EmptyServer",
    "PlayersCommand",
    "Precondition",
    "PreconditionResult",
    "SubjectOption",
    "restart_workflow",
    "wakeup_workflow",
    "whitelist_workflow",
    "winddown_workflow",
]
