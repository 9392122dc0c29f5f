from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from uuid import UUID, uuid4

import pytest

from hr_chat_worker.db.models.approval_log import ApprovalLog
from hr_chat_worker.db.models.audit_log import AuditLog
from hr_chat_worker.db.models.salary_draft import SalaryDraft
from hr_chat_worker.domain.errors import (
    DraftNotFoundError,
    InvalidDraftTransitionError,
    InvalidRequestError,
)
from hr_chat_worker.domain.value_objects import (
    ActorRole,
    ApprovalAction,
    AuditEventType,
    ChangeType,
    DraftStatus,
)
from hr_chat_worker.services.draft_transition_service import (
    DraftTransitionService,
    TransitionInput,
    approval_action_for,
)

NOW = datetime(2025, 3, 11, 9, 0, tzinfo=UTC)


class FakeSession:
    def __init__(self) -> None:
        self.committed = False
        self.rolled_back = False

    def commit(self) -> None:
        self.committed = True

    def rollback(self) -> None:
        self.rolled_back = True

    def refresh(self, instance: object) -> None:
        _ = instance


@dataclass
class FakeSalaryDraftRepository:
    drafts: dict[UUID, SalaryDraft] = field(default_factory=dict)
    approval_logs: list[ApprovalLog] = field(default_factory=list)

    def get(self, draft_id: UUID) -> SalaryDraft | None:
        return self.drafts.get(draft_id)

    def get_for_update(self, draft_id: UUID) -> SalaryDraft | None:
        return self.drafts.get(draft_id)

    def add_all(self, drafts: Sequence[SalaryDraft]) -> list[SalaryDraft]:
        for draft in drafts:
            self.drafts[draft.id] = draft
        return list(drafts)

    def add_approval_log(self, log: ApprovalLog) -> ApprovalLog:
        self.approval_logs.append(log)
        return log


@dataclass
class FakeAuditLogRepository:
    entries: list[AuditLog] = field(default_factory=list)

    def add(self, entry: AuditLog) -> AuditLog:
        self.entries.append(entry)
        return entry


def build_draft(status: DraftStatus, change_type: ChangeType) -> SalaryDraft:
    return SalaryDraft(
        id=uuid4(),
        employee_id=uuid4(),
        chat_message_id=None,
        status=status,
        change_type=change_type,
        reason="",
        before_base_salary=247_000,
        after_base_salary=280_000,
        before_total=267_000,
        after_total=300_000,
        effective_date=date(2025, 4, 1),
        created_at=datetime(2025, 3, 10, tzinfo=UTC),
        updated_at=datetime(2025, 3, 10, tzinfo=UTC),
        items=[],
    )


def build_service(
    draft: SalaryDraft,
) -> tuple[
    DraftTransitionService, FakeSalaryDraftRepository, FakeAuditLogRepository, FakeSession
]:
    repository = FakeSalaryDraftRepository(drafts={draft.id: draft})
    audits = FakeAuditLogRepository()
    session = FakeSession()
    service = DraftTransitionService(
        repository=repository,
        audit_log_repository=audits,
        session=session,
        clock=lambda: NOW,
    )
    return service, repository, audits, session


def test_review_records_reviewer_and_logs() -> None:
    draft = build_draft(DraftStatus.DRAFT, ChangeType.DISCRETIONARY)
    service, repository, audits, session = build_service(draft)

    result = service.transition(
        draft.id,
        TransitionInput(
            to_status=DraftStatus.REVIEWED,
            actor_email="  staff@example.test ",
            actor_role=ActorRole.HR_STAFF,
            comment="checked",
        ),
    )

    assert result.draft.status == DraftStatus.REVIEWED
    assert result.draft.reviewed_by == "staff@example.test"
    assert result.draft.reviewed_at == NOW
    assert result.draft.updated_at == NOW
    assert result.next_actions == [DraftStatus.DRAFT]
    assert session.committed is True

    log = repository.approval_logs[0]
    assert log.action == ApprovalAction.REVIEWED
    assert log.from_status == DraftStatus.DRAFT
    assert log.to_status == DraftStatus.REVIEWED
    assert log.comment == "checked"

    audit = audits.entries[0]
    assert audit.event_type == AuditEventType.STATUS_CHANGED
    assert audit.entity_type == "salary_draft"
    assert audit.entity_id == str(draft.id)
    assert audit.actor_role == ActorRole.HR_STAFF
    assert audit.details == {
        "from_status": "draft",
        "to_status": "reviewed",
        "comment": "checked",
    }


def test_ceo_approval_records_approver() -> None:
    draft = build_draft(DraftStatus.PENDING_CEO_APPROVAL, ChangeType.DISCRETIONARY)
    service, repository, _, _ = build_service(draft)

    result = service.transition(
        draft.id,
        TransitionInput(
            to_status=DraftStatus.APPROVED,
            actor_email="ceo@example.test",
            actor_role=ActorRole.CEO,
        ),
    )

    assert result.draft.approved_by == "ceo@example.test"
    assert result.draft.approved_at == NOW
    assert repository.approval_logs[0].action == ApprovalAction.APPROVED


def test_forbidden_role_raises_403_error_without_changes() -> None:
    draft = build_draft(DraftStatus.REVIEWED, ChangeType.MECHANICAL)
    service, repository, audits, session = build_service(draft)

    with pytest.raises(InvalidDraftTransitionError) as exc_info:
        service.transition(
            draft.id,
            TransitionInput(
                to_status=DraftStatus.APPROVED,
                actor_email="staff@example.test",
                actor_role=ActorRole.HR_STAFF,
            ),
        )

    error = exc_info.value
    assert error.code == "FORBIDDEN"
    assert error.status_code == 403
    assert error.details == {
        "from_status": "reviewed",
        "to_status": "approved",
        "allowed_next_actions": ["draft"],
    }
    assert draft.status == DraftStatus.REVIEWED
    assert repository.approval_logs == []
    assert audits.entries == []
    assert session.rolled_back is True


def test_change_type_mismatch_raises_409_error() -> None:
    draft = build_draft(DraftStatus.REVIEWED, ChangeType.DISCRETIONARY)
    service, _, _, _ = build_service(draft)

    with pytest.raises(InvalidDraftTransitionError) as exc_info:
        service.transition(
            draft.id,
            TransitionInput(
                to_status=DraftStatus.APPROVED,
                actor_email="manager@example.test",
                actor_role=ActorRole.HR_MANAGER,
            ),
        )

    assert exc_info.value.code == "CHANGE_TYPE_MISMATCH"
    assert exc_info.value.status_code == 409


def test_unknown_edge_raises_invalid_transition() -> None:
    draft = build_draft(DraftStatus.COMPLETED, ChangeType.MECHANICAL)
    service, _, _, _ = build_service(draft)

    with pytest.raises(InvalidDraftTransitionError) as exc_info:
        service.transition(
            draft.id,
            TransitionInput(
                to_status=DraftStatus.DRAFT,
                actor_email="manager@example.test",
                actor_role=ActorRole.HR_MANAGER,
            ),
        )

    assert exc_info.value.code == "INVALID_TRANSITION"
    assert exc_info.value.status_code == 409


def test_missing_draft_raises_not_found() -> None:
    draft = build_draft(DraftStatus.DRAFT, ChangeType.MECHANICAL)
    service, _, _, _ = build_service(draft)

    with pytest.raises(DraftNotFoundError):
        service.transition(
            uuid4(),
            TransitionInput(
                to_status=DraftStatus.REVIEWED,
                actor_email="staff@example.test",
                actor_role=ActorRole.HR_STAFF,
            ),
        )


def test_blank_actor_email_is_rejected() -> None:
    draft = build_draft(DraftStatus.DRAFT, ChangeType.MECHANICAL)
    service, _, _, _ = build_service(draft)

    with pytest.raises(InvalidRequestError):
        service.transition(
            draft.id,
            TransitionInput(
                to_status=DraftStatus.REVIEWED,
                actor_email="   ",
                actor_role=ActorRole.HR_STAFF,
            ),
        )


def test_next_actions_for_role() -> None:
    draft = build_draft(DraftStatus.REVIEWED, ChangeType.DISCRETIONARY)
    service, _, _, _ = build_service(draft)

    result = service.next_actions(draft.id, ActorRole.HR_MANAGER)

    assert result.next_actions == [DraftStatus.PENDING_CEO_APPROVAL, DraftStatus.DRAFT]


@pytest.mark.parametrize(
    ("to_status", "action"),
    [
        (DraftStatus.REVIEWED, ApprovalAction.REVIEWED),
        (DraftStatus.PENDING_CEO_APPROVAL, ApprovalAction.REVIEWED),
        (DraftStatus.APPROVED, ApprovalAction.APPROVED),
        (DraftStatus.REJECTED, ApprovalAction.REJECTED),
        (DraftStatus.DRAFT, ApprovalAction.REJECTED),
    ],
)
def test_approval_action_for(to_status: DraftStatus, action: ApprovalAction) -> None:
    assert approval_action_for(to_status) == action
