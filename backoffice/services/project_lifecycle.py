"""Project status state machine.

The transition table is fixed at import time and read-only. Explicit status
changes must follow it; progress updates may force a small set of
auto-transitions that bypass it.
"""

from types import MappingProxyType
from typing import FrozenSet, Mapping

from backoffice.exceptions import InvalidTransition, PreconditionFailed, ValidationError
from backoffice.models.project import ProjectStatus

S = ProjectStatus

STATUS_TRANSITIONS: Mapping[str, FrozenSet[str]] = MappingProxyType({
    source.value: frozenset(target.value for target in targets)
    for source, targets in {
        S.DRAFT: {S.ESTIMATION_PREPARED},
        S.ESTIMATION_PREPARED: {S.QUOTATION_SENT, S.ON_HOLD, S.CANCELLED},
        S.QUOTATION_SENT: {
            S.QUOTATION_APPROVED, S.QUOTATION_REJECTED, S.ON_HOLD, S.CANCELLED,
        },
        S.QUOTATION_APPROVED: {S.LPO_RECEIVED, S.ON_HOLD, S.CANCELLED},
        # team assignment is mandatory before work can start
        S.LPO_RECEIVED: {S.TEAM_ASSIGNED, S.ON_HOLD, S.CANCELLED},
        S.TEAM_ASSIGNED: {S.WORK_STARTED, S.ON_HOLD},
        S.WORK_STARTED: {S.IN_PROGRESS, S.ON_HOLD, S.CANCELLED},
        S.IN_PROGRESS: {S.WORK_COMPLETED, S.ON_HOLD, S.CANCELLED},
        S.WORK_COMPLETED: {S.QUALITY_CHECK, S.ON_HOLD},
        S.QUALITY_CHECK: {S.CLIENT_HANDOVER, S.WORK_COMPLETED},
        S.CLIENT_HANDOVER: {S.FINAL_INVOICE_SENT, S.ON_HOLD},
        S.FINAL_INVOICE_SENT: {S.PAYMENT_RECEIVED, S.ON_HOLD},
        S.PAYMENT_RECEIVED: {S.PROJECT_CLOSED},
        S.ON_HOLD: {S.IN_PROGRESS, S.WORK_STARTED, S.CANCELLED},
        S.QUOTATION_REJECTED: set(),
        S.CANCELLED: set(),
        S.PROJECT_CLOSED: set(),
    }.items()
})

# Statuses that trigger a stakeholder notification when entered
NOTIFY_ON_STATUSES = frozenset({
    S.QUOTATION_APPROVED.value,
    S.LPO_RECEIVED.value,
    S.TEAM_ASSIGNED.value,
    S.WORK_STARTED.value,
    S.WORK_COMPLETED.value,
    S.CLIENT_HANDOVER.value,
    S.ON_HOLD.value,
    S.CANCELLED.value,
    S.PROJECT_CLOSED.value,
})

MIN_PROGRESS = 0
MAX_PROGRESS = 100


def is_valid_status(status: str) -> bool:
    return status in STATUS_TRANSITIONS


def allowed_transitions(current: str) -> FrozenSet[str]:
    """Statuses reachable from ``current`` by an explicit transition"""
    return STATUS_TRANSITIONS.get(current, frozenset())


def can_transition(current: str, target: str) -> bool:
    return target in allowed_transitions(current)


def validate_transition(current: str, target: str) -> None:
    """
    Check an explicit status change against the transition table.

    Raises:
        ValidationError: If ``target`` is not a known status
        InvalidTransition: If ``target`` is not reachable from ``current``
    """
    if not is_valid_status(target):
        raise ValidationError(f"Unknown project status: {target}")
    if not can_transition(current, target):
        raise InvalidTransition(current, target)


def validate_progress(progress) -> int:
    if progress is None or isinstance(progress, bool) or not isinstance(progress, int):
        raise ValidationError("Progress must be an integer between 0 and 100")
    if progress < MIN_PROGRESS or progress > MAX_PROGRESS:
        raise ValidationError("Progress must be between 0 and 100")
    return progress


def resolve_progress_status(current: str, progress: int) -> str:
    """
    Status a project ends in after its progress is set to ``progress``.

    Applied in order, each step seeing the result of the previous one:
    team_assigned moves to work_started, work_started moves to in_progress
    once progress is above zero, and progress 100 forces work_completed.
    None of these consult the transition table.
    """
    status = current
    if progress >= MIN_PROGRESS and status == S.TEAM_ASSIGNED.value:
        status = S.WORK_STARTED.value
    if progress > MIN_PROGRESS and status == S.WORK_STARTED.value:
        status = S.IN_PROGRESS.value
    if progress == MAX_PROGRESS and status != S.WORK_COMPLETED.value:
        status = S.WORK_COMPLETED.value
    return status


def ensure_deletable(status: str) -> None:
    """Projects can only be removed while still in draft"""
    if status != S.DRAFT.value:
        raise PreconditionFailed("Cannot delete project that has already started")
