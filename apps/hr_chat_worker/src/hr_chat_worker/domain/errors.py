"""Domain exceptions used across the ingestion pipeline and the API."""

from __future__ import annotations

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any


def compose_error_message(*, cause: str, action: str) -> str:
    """Build a user-facing error message with cause and corrective action."""

    return f"Cause: {cause} Action: {action}"


@dataclass(slots=True)
class PipelineError(Exception):
    """Base exception for failures raised while processing one chat event.

    ``retryable`` decides the ingestion outcome: retryable failures ask the
    delivery platform to redeliver, the rest are acknowledged and dropped.
    """

    code: str
    message: str
    retryable: bool
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


class ParseError(PipelineError):
    """Raised when a push envelope or its inner payload is malformed."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="PARSE_ERROR",
            message=message,
            retryable=False,
            details=details or {},
        )


class TransientInfraError(PipelineError):
    """Raised when the store or a model-backed collaborator is unavailable."""

    def __init__(
        self,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            retryable=True,
            details=details or {},
        )


class PermanentBusinessError(PipelineError):
    """Raised for business failures that a redelivery cannot fix."""

    def __init__(
        self,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            retryable=False,
            details=details or {},
        )


class EmployeeNotFoundError(PermanentBusinessError):
    """Raised when the extracted identifier matches no active employee."""

    def __init__(
        self,
        message: str = "Employee could not be resolved from the instruction.",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(code="EMPLOYEE_NOT_FOUND", message=message, details=details)


class SalaryCalculationError(PermanentBusinessError):
    """Raised when extracted parameters or master data cannot produce a draft."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(code="SALARY_CALC_ERROR", message=message, details=details)


@dataclass(slots=True)
class DomainError(Exception):
    """Base exception for predictable API-facing failures."""

    code: str
    message: str
    status_code: int
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


class InvalidRequestError(DomainError):
    """Raised when user sends semantically invalid input."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="INVALID_REQUEST",
            message=message
            or compose_error_message(
                cause="Request data violates business rules.",
                action="Adjust the input fields and try again.",
            ),
            status_code=HTTPStatus.BAD_REQUEST,
            details=details or {},
        )


class DraftNotFoundError(DomainError):
    """Raised when a salary draft id cannot be resolved."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="DRAFT_NOT_FOUND",
            message=message
            or compose_error_message(
                cause="Salary draft was not found.",
                action="Check the draft id and retry.",
            ),
            status_code=HTTPStatus.NOT_FOUND,
            details=details or {},
        )


class InvalidDraftTransitionError(DomainError):
    """Raised when a requested draft status change is not permitted.

    ``code`` carries the state-machine rejection reason: ``INVALID_TRANSITION``,
    ``FORBIDDEN`` or ``CHANGE_TYPE_MISMATCH``.
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=(
                HTTPStatus.FORBIDDEN if code == "FORBIDDEN" else HTTPStatus.CONFLICT
            ),
            details=details or {},
        )
