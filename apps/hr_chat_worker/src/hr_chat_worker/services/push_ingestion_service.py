"""Maps a push delivery to an acknowledge or retry outcome."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from hr_chat_worker.application.services.event_normalizer import parse_push_envelope
from hr_chat_worker.domain.errors import (
    ParseError,
    PermanentBusinessError,
    TransientInfraError,
)
from hr_chat_worker.services.audit_recorder import utc_now
from hr_chat_worker.services.message_pipeline import MessagePipeline, PipelineStatus

logger = logging.getLogger(__name__)


class IngestionDisposition(enum.StrEnum):
    ACKNOWLEDGE = "acknowledge"
    RETRY = "retry"


@dataclass(frozen=True, slots=True)
class IngestionOutcome:
    disposition: IngestionDisposition
    reason: str
    error_code: str | None = None

    @property
    def acknowledged(self) -> bool:
        return self.disposition == IngestionDisposition.ACKNOWLEDGE


class PushIngestionService:
    """Runs one push envelope through normalization and the pipeline.

    Only retryable failures request redelivery; malformed, filtered,
    duplicate and permanently failing events are acknowledged.
    """

    def __init__(
        self,
        *,
        pipeline: MessagePipeline,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._pipeline = pipeline
        self._clock = clock

    def ingest(self, body: object) -> IngestionOutcome:
        try:
            event = parse_push_envelope(body, now=self._clock())
        except ParseError as exc:
            logger.error("push_envelope_rejected", extra={"error": exc.message})
            return IngestionOutcome(
                disposition=IngestionDisposition.ACKNOWLEDGE,
                reason="parse_error",
                error_code=exc.code,
            )

        if event is None:
            return IngestionOutcome(
                disposition=IngestionDisposition.ACKNOWLEDGE,
                reason="filtered",
            )

        try:
            result = self._pipeline.process(event)
        except PermanentBusinessError as exc:
            logger.warning(
                "business_error_acknowledged",
                extra={
                    "google_message_id": event.google_message_id,
                    "error_code": exc.code,
                    "error": exc.message,
                    "details": exc.details,
                },
            )
            return IngestionOutcome(
                disposition=IngestionDisposition.ACKNOWLEDGE,
                reason="business_error",
                error_code=exc.code,
            )
        except TransientInfraError as exc:
            logger.error(
                "transient_failure_retry_requested",
                extra={
                    "google_message_id": event.google_message_id,
                    "error_code": exc.code,
                    "error": exc.message,
                },
            )
            return IngestionOutcome(
                disposition=IngestionDisposition.RETRY,
                reason="transient_error",
                error_code=exc.code,
            )
        except Exception:
            logger.exception(
                "unexpected_ingestion_failure",
                extra={"google_message_id": event.google_message_id},
            )
            return IngestionOutcome(
                disposition=IngestionDisposition.RETRY,
                reason="unexpected_error",
                error_code="INTERNAL_ERROR",
            )

        return IngestionOutcome(
            disposition=IngestionDisposition.ACKNOWLEDGE,
            reason=(
                "duplicate"
                if result.status == PipelineStatus.DUPLICATE
                else "processed"
            ),
        )
