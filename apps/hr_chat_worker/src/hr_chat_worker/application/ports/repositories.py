"""Repository ports for the ingestion pipeline and the approval workflow."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol
from uuid import UUID

from hr_chat_worker.db.models.approval_log import ApprovalLog
from hr_chat_worker.db.models.audit_log import AuditLog
from hr_chat_worker.db.models.chat_message import ChatMessage
from hr_chat_worker.db.models.employee import Employee
from hr_chat_worker.db.models.intent_record import IntentRecord
from hr_chat_worker.db.models.salary import Salary
from hr_chat_worker.db.models.salary_draft import SalaryDraft
from hr_chat_worker.domain.salary import MasterData


class SessionProtocol(Protocol):
    """Subset of SQLAlchemy session APIs used by services."""

    def commit(self) -> None: ...
    def rollback(self) -> None: ...
    def refresh(self, instance: object) -> None: ...


class ChatMessageRepositoryProtocol(Protocol):
    def get_by_google_message_id(
        self, google_message_id: str
    ) -> ChatMessage | None: ...

    def list_thread_messages(self, thread_name: str) -> list[ChatMessage]: ...

    def mark_processed(
        self, chat_message_id: UUID, processed_at: datetime
    ) -> None: ...

    def add(self, message: ChatMessage) -> ChatMessage: ...


class IntentRecordRepositoryProtocol(Protocol):
    def get_by_chat_message_id(
        self, chat_message_id: UUID
    ) -> IntentRecord | None: ...

    def add(self, record: IntentRecord) -> IntentRecord: ...


class EmployeeRepositoryProtocol(Protocol):
    def get_active_by_employee_number(
        self, employee_number: str
    ) -> Employee | None: ...

    def get_active_by_name(self, name: str) -> Employee | None: ...

    def get_current_salary(self, employee_id: UUID) -> Salary | None: ...


class MasterDataRepositoryProtocol(Protocol):
    def load_active(self) -> MasterData: ...


class SalaryDraftRepositoryProtocol(Protocol):
    def get(self, draft_id: UUID) -> SalaryDraft | None: ...

    def get_for_update(self, draft_id: UUID) -> SalaryDraft | None: ...

    def list_by_chat_message_id(self, chat_message_id: UUID) -> list[SalaryDraft]: ...

    def add_all(self, drafts: Sequence[SalaryDraft]) -> list[SalaryDraft]: ...

    def add_approval_log(self, log: ApprovalLog) -> ApprovalLog: ...


class AuditLogRepositoryProtocol(Protocol):
    def add(self, entry: AuditLog) -> AuditLog: ...
