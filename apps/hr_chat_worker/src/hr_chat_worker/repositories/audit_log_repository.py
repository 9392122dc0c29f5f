"""Audit log persistence operations."""

from __future__ import annotations

from sqlalchemy.orm import Session

from hr_chat_worker.db.models.audit_log import AuditLog


class AuditLogRepository:
    """Repository for the append-only audit trail."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, entry: AuditLog) -> AuditLog:
        self._session.add(entry)
        self._session.flush()
        return entry
