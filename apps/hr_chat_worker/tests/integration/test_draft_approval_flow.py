from __future__ import annotations

from datetime import UTC, date, datetime
from uuid import UUID, uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from hr_chat_worker.db.models.approval_log import ApprovalLog
from hr_chat_worker.db.models.audit_log import AuditLog
from hr_chat_worker.db.models.salary_draft import SalaryDraft, SalaryDraftItem
from hr_chat_worker.domain.errors import InvalidDraftTransitionError
from hr_chat_worker.domain.value_objects import (
    ActorRole,
    AuditEventType,
    ChangeType,
    DraftStatus,
    SalaryItemType,
)
from hr_chat_worker.repositories.audit_log_repository import AuditLogRepository
from hr_chat_worker.repositories.salary_draft_repository import SalaryDraftRepository
from hr_chat_worker.services.draft_transition_service import (
    DraftTransitionService,
    TransitionInput,
)


def seed_draft(
    session: Session, employee_id: UUID, change_type: ChangeType
) -> UUID:
    now = datetime(2025, 3, 10, 1, 0, tzinfo=UTC)
    draft = SalaryDraft(
        id=uuid4(),
        employee_id=employee_id,
        chat_message_id=None,
        status=DraftStatus.DRAFT,
        change_type=change_type,
        reason="Proposal 1",
        before_base_salary=247_000,
        after_base_salary=280_000,
        before_total=267_000,
        after_total=300_000,
        effective_date=date(2025, 4, 1),
        created_at=now,
        updated_at=now,
        items=[
            SalaryDraftItem(
                position=0,
                item_type=SalaryItemType.BASE_SALARY,
                item_name="Base salary",
                before_amount=247_000,
                after_amount=280_000,
                is_changed=True,
            )
        ],
    )
    session.add(draft)
    session.commit()
    return draft.id


def build_service(session: Session) -> DraftTransitionService:
    return DraftTransitionService(
        repository=SalaryDraftRepository(session),
        audit_log_repository=AuditLogRepository(session),
        session=session,
    )


def test_discretionary_draft_reaches_approval_through_ceo(
    sqlite_session_factory: sessionmaker[Session],
    seeded_employee_id: UUID,
) -> None:
    with sqlite_session_factory() as session:
        draft_id = seed_draft(session, seeded_employee_id, ChangeType.DISCRETIONARY)
        service = build_service(session)

        steps = [
            (DraftStatus.REVIEWED, "staff@example.test", ActorRole.HR_STAFF),
            (
                DraftStatus.PENDING_CEO_APPROVAL,
                "manager@example.test",
                ActorRole.HR_MANAGER,
            ),
            (DraftStatus.APPROVED, "ceo@example.test", ActorRole.CEO),
        ]
        for to_status, email, role in steps:
            result = service.transition(
                draft_id,
                TransitionInput(to_status=to_status, actor_email=email, actor_role=role),
            )
            assert result.draft.status == to_status

        draft = session.get(SalaryDraft, draft_id)
        assert draft is not None
        assert draft.status == DraftStatus.APPROVED
        assert draft.reviewed_by == "staff@example.test"
        assert draft.approved_by == "ceo@example.test"

        logs = session.scalars(
            select(ApprovalLog)
            .where(ApprovalLog.draft_id == draft_id)
            .order_by(ApprovalLog.created_at.asc())
        ).all()
        assert [(log.from_status, log.to_status) for log in logs] == [
            (DraftStatus.DRAFT, DraftStatus.REVIEWED),
            (DraftStatus.REVIEWED, DraftStatus.PENDING_CEO_APPROVAL),
            (DraftStatus.PENDING_CEO_APPROVAL, DraftStatus.APPROVED),
        ]

        audits = session.scalars(
            select(AuditLog).where(AuditLog.entity_id == str(draft_id))
        ).all()
        assert [audit.event_type for audit in audits] == [
            AuditEventType.STATUS_CHANGED
        ] * 3


def test_rejected_transition_leaves_draft_untouched(
    sqlite_session_factory: sessionmaker[Session],
    seeded_employee_id: UUID,
) -> None:
    with sqlite_session_factory() as session:
        draft_id = seed_draft(session, seeded_employee_id, ChangeType.MECHANICAL)
        service = build_service(session)

        with pytest.raises(InvalidDraftTransitionError) as exc_info:
            service.transition(
                draft_id,
                TransitionInput(
                    to_status=DraftStatus.APPROVED,
                    actor_email="manager@example.test",
                    actor_role=ActorRole.HR_MANAGER,
                ),
            )

        assert exc_info.value.code == "INVALID_TRANSITION"
        draft = session.get(SalaryDraft, draft_id)
        assert draft is not None
        assert draft.status == DraftStatus.DRAFT
        assert session.scalars(select(ApprovalLog)).all() == []
