"""Pub/Sub push ingestion route."""

from __future__ import annotations

import json
import logging
from http import HTTPStatus
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from hr_chat_worker.api.dependencies import get_push_ingestion_service
from hr_chat_worker.services.push_ingestion_service import PushIngestionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pubsub", tags=["Pub/Sub"])


@router.post(
    "/push",
    responses={
        200: {"description": "Delivery acknowledged"},
        500: {"description": "Transient failure, redelivery requested"},
    },
)
async def receive_push(
    request: Request,
    service: Annotated[PushIngestionService, Depends(get_push_ingestion_service)],
) -> JSONResponse:
    """Acknowledge with 200 or request redelivery with 500."""

    raw_body = await request.body()
    try:
        body = json.loads(raw_body)
    except (UnicodeDecodeError, json.JSONDecodeError):
        logger.error("push_body_not_json")
        return JSONResponse(status_code=HTTPStatus.OK, content={"ok": True})

    outcome = await run_in_threadpool(service.ingest, body)
    if outcome.acknowledged:
        return JSONResponse(status_code=HTTPStatus.OK, content={"ok": True})
    return JSONResponse(
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        content={"error": outcome.error_code or outcome.reason},
    )
