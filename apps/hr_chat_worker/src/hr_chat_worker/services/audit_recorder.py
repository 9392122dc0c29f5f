"""Fire-and-forget audit trail writes for the ingestion pipeline."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from hr_chat_worker.application.ports.repositories import (
    AuditLogRepositoryProtocol,
    SessionProtocol,
)
from hr_chat_worker.db.models.audit_log import AuditLog
from hr_chat_worker.domain.value_objects import AuditEventType

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


class AuditRecorder:
    """Writes one audit entry per call in its own commit.

    A failed write is rolled back and logged; it never reaches the caller.
    """

    def __init__(
        self,
        *,
        repository: AuditLogRepositoryProtocol,
        session: SessionProtocol,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repository = repository
        self._session = session
        self._clock = clock

    def record(
        self,
        *,
        event_type: AuditEventType,
        entity_type: str,
        entity_id: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        try:
            self._repository.add(
                AuditLog(
                    event_type=event_type,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    actor_email=None,
                    actor_role=None,
                    details=details or {},
                    created_at=self._clock(),
                )
            )
            self._session.commit()
        except Exception as exc:
            self._session.rollback()
            logger.warning(
                "audit_write_failed",
                extra={
                    "event_type": event_type.value,
                    "entity_id": entity_id,
                    "error": str(exc),
                },
            )
