"""API request and response schemas."""

from hr_chat_worker.api.schemas.salary_drafts import (
    NextActionsResponse,
    SalaryDraftResponse,
    TransitionRequest,
    TransitionResponse,
)

__all__ = [
    "NextActionsResponse",
    "SalaryDraftResponse",
    "TransitionRequest",
    "TransitionResponse",
]
