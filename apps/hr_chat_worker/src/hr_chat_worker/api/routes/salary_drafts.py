"""Salary draft approval routes."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from hr_chat_worker.api.dependencies import get_draft_transition_service
from hr_chat_worker.api.schemas.salary_drafts import (
    NextActionsResponse,
    SalaryDraftResponse,
    TransitionRequest,
    TransitionResponse,
)
from hr_chat_worker.domain.value_objects import ActorRole
from hr_chat_worker.services.draft_transition_service import (
    DraftTransitionService,
    TransitionInput,
)

router = APIRouter(prefix="/salary-drafts", tags=["Salary Drafts"])


@router.get(
    "/{draft_id}/next-actions",
    response_model=NextActionsResponse,
    responses={
        400: {"description": "Invalid actor role"},
        404: {"description": "Draft not found"},
    },
)
def get_draft_next_actions(
    draft_id: Annotated[UUID, Path()],
    actor_role: Annotated[ActorRole, Query()],
    service: Annotated[DraftTransitionService, Depends(get_draft_transition_service)],
) -> NextActionsResponse:
    """List the statuses the actor may move the draft to."""

    result = service.next_actions(draft_id, actor_role)
    return NextActionsResponse(
        draft_id=result.draft.id,
        status=result.draft.status,
        change_type=result.draft.change_type,
        actor_role=actor_role,
        next_actions=result.next_actions,
    )


@router.post(
    "/{draft_id}/transition",
    response_model=TransitionResponse,
    responses={
        400: {"description": "Invalid payload"},
        403: {"description": "Role not allowed on this transition"},
        404: {"description": "Draft not found"},
        409: {"description": "Transition not allowed from the current status"},
    },
)
def transition_draft(
    draft_id: Annotated[UUID, Path()],
    payload: TransitionRequest,
    service: Annotated[DraftTransitionService, Depends(get_draft_transition_service)],
) -> TransitionResponse:
    """Apply a validated status change and record it."""

    result = service.transition(
        draft_id,
        TransitionInput(
            to_status=payload.to_status,
            actor_email=payload.actor_email,
            actor_role=payload.actor_role,
            comment=payload.comment,
        ),
    )
    return TransitionResponse(
        draft=SalaryDraftResponse.from_model(result.draft),
        next_actions=result.next_actions,
    )
