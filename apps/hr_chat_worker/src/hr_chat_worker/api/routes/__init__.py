"""API router registration."""

from fastapi import APIRouter

from hr_chat_worker.api.routes import pubsub, salary_drafts

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(salary_drafts.router)

push_router = pubsub.router
