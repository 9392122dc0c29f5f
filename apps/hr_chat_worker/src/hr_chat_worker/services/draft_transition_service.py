"""Approval workflow operations on persisted salary drafts."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from hr_chat_worker.application.ports.repositories import (
    AuditLogRepositoryProtocol,
    SalaryDraftRepositoryProtocol,
    SessionProtocol,
)
from hr_chat_worker.db.models.approval_log import ApprovalLog
from hr_chat_worker.db.models.audit_log import AuditLog
from hr_chat_worker.db.models.salary_draft import SalaryDraft
from hr_chat_worker.domain.approval import get_next_actions, validate_transition
from hr_chat_worker.domain.errors import (
    DraftNotFoundError,
    InvalidDraftTransitionError,
    InvalidRequestError,
    compose_error_message,
)
from hr_chat_worker.domain.value_objects import (
    ActorRole,
    ApprovalAction,
    AuditEventType,
    DraftStatus,
)
from hr_chat_worker.services.audit_recorder import utc_now
from hr_chat_worker.services.salary_handler import DRAFT_ENTITY_TYPE

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TransitionInput:
    to_status: DraftStatus
    actor_email: str
    actor_role: ActorRole
    comment: str | None = None


@dataclass(frozen=True, slots=True)
class DraftWithActions:
    draft: SalaryDraft
    next_actions: list[DraftStatus]


def approval_action_for(to_status: DraftStatus) -> ApprovalAction:
    """Map a target status to the approval log action it records."""
    if to_status in (DraftStatus.REVIEWED, DraftStatus.PENDING_CEO_APPROVAL):
        return ApprovalAction.REVIEWED
    if to_status == DraftStatus.APPROVED:
        return ApprovalAction.APPROVED
    return ApprovalAction.REJECTED


class DraftTransitionService:
    """Validates and applies draft status changes.

    Competing requests are not serialized; the last committed write wins.
    """

    def __init__(
        self,
        *,
        repository: SalaryDraftRepositoryProtocol,
        audit_log_repository: AuditLogRepositoryProtocol,
        session: SessionProtocol,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repository = repository
        self._audit_log_repository = audit_log_repository
        self._session = session
        self._clock = clock

    def next_actions(self, draft_id: UUID, actor_role: ActorRole) -> DraftWithActions:
        draft = self._get_draft(draft_id)
        return DraftWithActions(
            draft=draft,
            next_actions=get_next_actions(draft.status, actor_role, draft.change_type),
        )

    def transition(self, draft_id: UUID, payload: TransitionInput) -> DraftWithActions:
        actor_email = payload.actor_email.strip()
        if not actor_email:
            raise InvalidRequestError(
                message=compose_error_message(
                    cause="actor_email must not be blank.",
                    action="Send the e-mail of the person performing the change.",
                )
            )

        try:
            draft = self._repository.get_for_update(draft_id)
            if draft is None:
                raise DraftNotFoundError(details={"draft_id": str(draft_id)})

            from_status = draft.status
            check = validate_transition(
                from_status, payload.to_status, payload.actor_role, draft.change_type
            )
            if not check.valid:
                raise InvalidDraftTransitionError(
                    code=check.error_code or "INVALID_TRANSITION",
                    message=check.message or "Transition is not allowed.",
                    details={
                        "from_status": from_status.value,
                        "to_status": payload.to_status.value,
                        "allowed_next_actions": [
                            status.value
                            for status in get_next_actions(
                                from_status, payload.actor_role, draft.change_type
                            )
                        ],
                    },
                )

            now = self._clock()
            draft.status = payload.to_status
            draft.updated_at = now
            if payload.to_status == DraftStatus.REVIEWED:
                draft.reviewed_by = actor_email
                draft.reviewed_at = now
            elif payload.to_status == DraftStatus.APPROVED:
                draft.approved_by = actor_email
                draft.approved_at = now

            self._repository.add_approval_log(
                ApprovalLog(
                    draft_id=draft.id,
                    action=approval_action_for(payload.to_status),
                    from_status=from_status,
                    to_status=payload.to_status,
                    actor_email=actor_email,
                    actor_role=payload.actor_role,
                    comment=payload.comment,
                    created_at=now,
                )
            )
            self._audit_log_repository.add(
                AuditLog(
                    event_type=AuditEventType.STATUS_CHANGED,
                    entity_type=DRAFT_ENTITY_TYPE,
                    entity_id=str(draft.id),
                    actor_email=actor_email,
                    actor_role=payload.actor_role,
                    details={
                        "from_status": from_status.value,
                        "to_status": payload.to_status.value,
                        "comment": payload.comment,
                    },
                    created_at=now,
                )
            )
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.info(
            "draft_status_changed",
            extra={
                "draft_id": str(draft_id),
                "from_status": from_status.value,
                "to_status": payload.to_status.value,
                "actor_role": payload.actor_role.value,
            },
        )
        updated = self._get_draft(draft_id)
        return DraftWithActions(
            draft=updated,
            next_actions=get_next_actions(
                updated.status, payload.actor_role, updated.change_type
            ),
        )

    def _get_draft(self, draft_id: UUID) -> SalaryDraft:
        draft = self._repository.get(draft_id)
        if draft is None:
            raise DraftNotFoundError(details={"draft_id": str(draft_id)})
        return draft
