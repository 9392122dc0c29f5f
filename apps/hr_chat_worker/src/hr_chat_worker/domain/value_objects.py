"""Closed vocabularies shared by the pipeline, the store and the API."""

from __future__ import annotations

from enum import StrEnum


class ChatCategory(StrEnum):
    """HR intent categories a chat message can be classified into."""

    SALARY = "salary"
    RETIREMENT = "retirement"
    HIRING = "hiring"
    CONTRACT = "contract"
    TRANSFER = "transfer"
    FOREIGNER = "foreigner"
    TRAINING = "training"
    HEALTH_CHECK = "health_check"
    ATTENDANCE = "attendance"
    OTHER = "other"


class ClassificationMethod(StrEnum):
    """How an intent classification was produced."""

    AI = "ai"
    REGEX = "regex"
    MANUAL = "manual"


class ChangeType(StrEnum):
    """Compensation change kinds."""

    MECHANICAL = "mechanical"
    DISCRETIONARY = "discretionary"


class DraftStatus(StrEnum):
    """Approval workflow states of a salary draft."""

    DRAFT = "draft"
    REVIEWED = "reviewed"
    PENDING_CEO_APPROVAL = "pending_ceo_approval"
    APPROVED = "approved"
    PROCESSING = "processing"
    COMPLETED = "completed"
    REJECTED = "rejected"
    FAILED = "failed"


class ActorRole(StrEnum):
    """Actors allowed to drive approval transitions."""

    HR_STAFF = "hr_staff"
    HR_MANAGER = "hr_manager"
    CEO = "ceo"
    SYSTEM = "system"


class AllowanceType(StrEnum):
    """Allowance components that can be driven by the allowance master."""

    POSITION = "position"
    REGION = "region"
    QUALIFICATION = "qualification"


class SalaryItemType(StrEnum):
    """Salary components compared in before/after change items."""

    BASE_SALARY = "base_salary"
    POSITION_ALLOWANCE = "position_allowance"
    REGION_ALLOWANCE = "region_allowance"
    QUALIFICATION_ALLOWANCE = "qualification_allowance"
    OTHER_ALLOWANCE = "other_allowance"


class ApprovalAction(StrEnum):
    """Approval log actions recorded on status changes."""

    REVIEWED = "reviewed"
    APPROVED = "approved"
    REJECTED = "rejected"


class AuditEventType(StrEnum):
    """Append-only audit events produced by this service."""

    CHAT_RECEIVED = "chat_received"
    INTENT_CLASSIFIED = "intent_classified"
    DRAFT_CREATED = "draft_created"
    STATUS_CHANGED = "status_changed"
