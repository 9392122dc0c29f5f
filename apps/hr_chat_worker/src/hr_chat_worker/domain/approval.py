"""Role- and change-type-gated approval workflow for salary drafts.

Mechanical changes go draft -> reviewed -> approved -> processing -> completed.
Discretionary changes add a CEO step: reviewed -> pending_ceo_approval ->
approved. Rejected and failed drafts loop back for rework or retry.
"""

from __future__ import annotations

from dataclasses import dataclass

from hr_chat_worker.domain.value_objects import ActorRole, ChangeType, DraftStatus

INVALID_TRANSITION = "INVALID_TRANSITION"
FORBIDDEN = "FORBIDDEN"
CHANGE_TYPE_MISMATCH = "CHANGE_TYPE_MISMATCH"

TERMINAL_STATUSES: frozenset[DraftStatus] = frozenset({DraftStatus.COMPLETED})

_HR = frozenset({ActorRole.HR_STAFF, ActorRole.HR_MANAGER})
_MANAGER = frozenset({ActorRole.HR_MANAGER})
_CEO = frozenset({ActorRole.CEO})
_SYSTEM = frozenset({ActorRole.SYSTEM})


@dataclass(frozen=True, slots=True)
class TransitionRule:
    roles: frozenset[ActorRole]
    change_type: ChangeType | None = None


TRANSITION_RULES: dict[tuple[DraftStatus, DraftStatus], TransitionRule] = {
    (DraftStatus.DRAFT, DraftStatus.REVIEWED): TransitionRule(_HR),
    (DraftStatus.DRAFT, DraftStatus.REJECTED): TransitionRule(_HR),
    (DraftStatus.REVIEWED, DraftStatus.APPROVED): TransitionRule(
        _MANAGER, ChangeType.MECHANICAL
    ),
    (DraftStatus.REVIEWED, DraftStatus.PENDING_CEO_APPROVAL): TransitionRule(
        _MANAGER, ChangeType.DISCRETIONARY
    ),
    (DraftStatus.REVIEWED, DraftStatus.DRAFT): TransitionRule(_HR),
    (DraftStatus.PENDING_CEO_APPROVAL, DraftStatus.APPROVED): TransitionRule(_CEO),
    (DraftStatus.PENDING_CEO_APPROVAL, DraftStatus.DRAFT): TransitionRule(_CEO),
    (DraftStatus.REJECTED, DraftStatus.DRAFT): TransitionRule(_HR),
    (DraftStatus.APPROVED, DraftStatus.PROCESSING): TransitionRule(_SYSTEM),
    (DraftStatus.PROCESSING, DraftStatus.COMPLETED): TransitionRule(_SYSTEM),
    (DraftStatus.PROCESSING, DraftStatus.FAILED): TransitionRule(_SYSTEM),
    (DraftStatus.FAILED, DraftStatus.PROCESSING): TransitionRule(_HR),
    (DraftStatus.FAILED, DraftStatus.REVIEWED): TransitionRule(_MANAGER),
}


@dataclass(frozen=True, slots=True)
class TransitionCheck:
    """Outcome of validating one requested status change."""

    valid: bool
    error_code: str | None = None
    message: str | None = None


def outgoing_statuses(current: DraftStatus) -> list[DraftStatus]:
    """Return every target reachable from ``current`` in table order."""
    return [target for source, target in TRANSITION_RULES if source == current]


def validate_transition(
    from_status: DraftStatus,
    to_status: DraftStatus,
    actor_role: ActorRole,
    change_type: ChangeType,
) -> TransitionCheck:
    """Check terminal status, edge existence, role and change type, in order."""
    if from_status in TERMINAL_STATUSES:
        return TransitionCheck(
            valid=False,
            error_code=INVALID_TRANSITION,
            message=f"Draft is {from_status.value} and can no longer change status",
        )

    rule = TRANSITION_RULES.get((from_status, to_status))
    if rule is None:
        return TransitionCheck(
            valid=False,
            error_code=INVALID_TRANSITION,
            message=f"Invalid transition: {from_status.value} -> {to_status.value}",
        )

    if actor_role not in rule.roles:
        return TransitionCheck(
            valid=False,
            error_code=FORBIDDEN,
            message=(
                f"Role {actor_role.value} is not allowed to transition from "
                f"{from_status.value} to {to_status.value}"
            ),
        )

    if rule.change_type is not None and change_type != rule.change_type:
        return TransitionCheck(
            valid=False,
            error_code=CHANGE_TYPE_MISMATCH,
            message=(
                f"Transition {from_status.value} -> {to_status.value} requires "
                f"change type {rule.change_type.value}"
            ),
        )

    return TransitionCheck(valid=True)


def get_next_actions(
    current: DraftStatus, actor_role: ActorRole, change_type: ChangeType
) -> list[DraftStatus]:
    """Return the statuses ``actor_role`` may move a draft to from ``current``."""
    if current in TERMINAL_STATUSES:
        return []
    return [
        target
        for target in outgoing_statuses(current)
        if validate_transition(current, target, actor_role, change_type).valid
    ]
