"""Salary draft API schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from hr_chat_worker.db.models.salary_draft import SalaryDraft, SalaryDraftItem
from hr_chat_worker.domain.value_objects import (
    ActorRole,
    ChangeType,
    DraftStatus,
    SalaryItemType,
)


class SalaryDraftItemResponse(BaseModel):
    item_type: SalaryItemType
    item_name: str
    before_amount: int
    after_amount: int
    is_changed: bool

    @classmethod
    def from_model(cls, item: SalaryDraftItem) -> SalaryDraftItemResponse:
        return cls(
            item_type=item.item_type,
            item_name=item.item_name,
            before_amount=item.before_amount,
            after_amount=item.after_amount,
            is_changed=item.is_changed,
        )


class SalaryDraftResponse(BaseModel):
    """Salary draft with its before/after items."""

    id: UUID
    employee_id: UUID
    chat_message_id: UUID | None
    status: DraftStatus
    change_type: ChangeType
    reason: str
    before_base_salary: int
    after_base_salary: int
    before_total: int
    after_total: int
    effective_date: date
    ai_confidence: float | None
    ai_reasoning: str | None
    applied_rules: dict[str, Any] | None
    reviewed_by: str | None
    reviewed_at: datetime | None
    approved_by: str | None
    approved_at: datetime | None
    created_at: datetime
    updated_at: datetime
    items: list[SalaryDraftItemResponse]

    @classmethod
    def from_model(cls, draft: SalaryDraft) -> SalaryDraftResponse:
        return cls(
            id=draft.id,
            employee_id=draft.employee_id,
            chat_message_id=draft.chat_message_id,
            status=draft.status,
            change_type=draft.change_type,
            reason=draft.reason,
            before_base_salary=draft.before_base_salary,
            after_base_salary=draft.after_base_salary,
            before_total=draft.before_total,
            after_total=draft.after_total,
            effective_date=draft.effective_date,
            ai_confidence=draft.ai_confidence,
            ai_reasoning=draft.ai_reasoning,
            applied_rules=draft.applied_rules,
            reviewed_by=draft.reviewed_by,
            reviewed_at=draft.reviewed_at,
            approved_by=draft.approved_by,
            approved_at=draft.approved_at,
            created_at=draft.created_at,
            updated_at=draft.updated_at,
            items=[SalaryDraftItemResponse.from_model(item) for item in draft.items],
        )


class NextActionsResponse(BaseModel):
    draft_id: UUID
    status: DraftStatus
    change_type: ChangeType
    actor_role: ActorRole
    next_actions: list[DraftStatus]


class TransitionRequest(BaseModel):
    """Payload for a draft status change."""

    to_status: DraftStatus
    actor_email: str = Field(min_length=1, max_length=255)
    actor_role: ActorRole
    comment: str | None = Field(default=None, max_length=500)

    @field_validator("actor_email")
    @classmethod
    def validate_actor_email(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("actor_email cannot be blank.")
        return trimmed


class TransitionResponse(BaseModel):
    draft: SalaryDraftResponse
    next_actions: list[DraftStatus]
