"""Exception handlers for the draft approval API.

Every failure is rendered as ``{"code", "message", "details"?}``; the push
route never reaches these handlers because it maps outcomes itself.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from hr_chat_worker.domain.errors import DomainError, compose_error_message

logger = logging.getLogger(__name__)


def _error_body(code: str, message: str, details: dict[str, Any]) -> dict[str, Any]:
    body: dict[str, Any] = {"code": code, "message": message}
    if details:
        body["details"] = details
    return body


def _field_path(location: tuple[Any, ...] | list[Any]) -> str:
    """Render ``("body", "actor_email")`` as ``actor_email``."""

    parts = [str(part) for part in location]
    if parts and parts[0] in {"body", "query", "path"}:
        parts = parts[1:]
    return ".".join(parts)


async def handle_domain_error(_: Request, exc: DomainError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.code, exc.message, exc.details),
    )


async def handle_validation_error(
    _: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed payloads, unknown roles or statuses and bad ids as 400."""

    errors = exc.errors()
    return JSONResponse(
        status_code=HTTPStatus.BAD_REQUEST,
        content=_error_body(
            code="INVALID_REQUEST",
            message=compose_error_message(
                cause="Request payload validation failed.",
                action="Fix the invalid fields and send the request again.",
            ),
            details={
                "fields": sorted({_field_path(error["loc"]) for error in errors}),
                "errors": jsonable_encoder(errors),
            },
        ),
    )


async def handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(
        "api_database_error",
        extra={"path": request.url.path, "error": str(exc)},
    )
    return JSONResponse(
        status_code=HTTPStatus.SERVICE_UNAVAILABLE,
        content=_error_body(
            code="DB_ERROR",
            message=compose_error_message(
                cause="The draft store is unavailable.",
                action="Retry the request later.",
            ),
            details={},
        ),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("api_unexpected_error", extra={"path": request.url.path})
    return JSONResponse(
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        content=_error_body(
            code="INTERNAL_ERROR",
            message=compose_error_message(
                cause="An unexpected internal error occurred.",
                action="Retry later or contact support if the error persists.",
            ),
            details={"error_type": type(exc).__name__},
        ),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach all global handlers to the FastAPI application."""

    app.add_exception_handler(DomainError, cast(Any, handle_domain_error))
    app.add_exception_handler(
        RequestValidationError, cast(Any, handle_validation_error)
    )
    app.add_exception_handler(SQLAlchemyError, cast(Any, handle_database_error))
    app.add_exception_handler(Exception, handle_unexpected_error)
