"""Schemas exchanged with the intent classifier and the parameter extractor."""

from __future__ import annotations

from pydantic import BaseModel, Field

from hr_chat_worker.domain.value_objects import (
    ChangeType,
    ChatCategory,
    ClassificationMethod,
)


class ThreadContext(BaseModel):
    """Classification of the message that opened the thread being replied to."""

    parent_category: ChatCategory
    parent_confidence: float = Field(ge=0.0, le=1.0)
    parent_snippet: str
    reply_count: int = Field(ge=0)


class IntentClassification(BaseModel):
    """Intent of one chat message."""

    category: ChatCategory
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str = ""
    classification_method: ClassificationMethod
    regex_pattern: str | None = None


class SalaryChangeParams(BaseModel):
    """Structured compensation change parameters extracted from free text.

    Any field may be missing; whether the set is sufficient is decided by the
    salary handler.
    """

    employee_identifier: str | None = None
    change_type: ChangeType
    target_salary: int | None = None
    allowance_type: str | None = None
    reasoning: str = ""
