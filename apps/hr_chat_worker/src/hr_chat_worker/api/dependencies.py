"""API dependency providers."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated
from zoneinfo import ZoneInfo

from fastapi import Depends
from sqlalchemy.orm import Session

from hr_chat_worker.application.services.event_enricher import enrich_chat_event
from hr_chat_worker.application.services.intent_classifier import (
    IntentClassifier,
    SalaryParamExtractor,
)
from hr_chat_worker.core.settings import Settings, get_settings
from hr_chat_worker.db.session import get_db_session
from hr_chat_worker.infrastructure.chat.chat_api import (
    ChatApiClient,
    HTTPChatApiClient,
)
from hr_chat_worker.infrastructure.llm.openai_classifier import (
    OpenAIIntentClassifier,
    OpenAISalaryParamExtractor,
)
from hr_chat_worker.infrastructure.llm.openai_client import (
    OpenAIClient,
    OpenAIResponsesClient,
)
from hr_chat_worker.repositories.audit_log_repository import AuditLogRepository
from hr_chat_worker.repositories.chat_message_repository import ChatMessageRepository
from hr_chat_worker.repositories.employee_repository import EmployeeRepository
from hr_chat_worker.repositories.intent_record_repository import (
    IntentRecordRepository,
)
from hr_chat_worker.repositories.master_data_repository import MasterDataRepository
from hr_chat_worker.repositories.salary_draft_repository import (
    SalaryDraftRepository,
)
from hr_chat_worker.services.audit_recorder import AuditRecorder
from hr_chat_worker.services.deduplicator import Deduplicator
from hr_chat_worker.services.draft_transition_service import DraftTransitionService
from hr_chat_worker.services.message_pipeline import MessagePipeline
from hr_chat_worker.services.push_ingestion_service import PushIngestionService
from hr_chat_worker.services.salary_handler import SalaryHandler
from hr_chat_worker.services.thread_context_loader import ThreadContextLoader


@lru_cache(maxsize=1)
def get_chat_api_client() -> ChatApiClient:
    """Return the process-wide chat REST client; its credentials are reused."""

    return HTTPChatApiClient.from_settings(get_settings())


@lru_cache(maxsize=1)
def get_openai_client() -> OpenAIClient:
    """Return the process-wide OpenAI Responses client and its connection pool."""

    return OpenAIResponsesClient.from_settings(get_settings())


def build_message_pipeline(
    *,
    session: Session,
    settings: Settings,
    chat_client: ChatApiClient,
    openai_client: OpenAIClient,
) -> MessagePipeline:
    """Wire the ingestion pipeline around one session and explicit clients."""

    chat_message_repository = ChatMessageRepository(session)
    intent_record_repository = IntentRecordRepository(session)
    audit_log_repository = AuditLogRepository(session)
    salary_draft_repository = SalaryDraftRepository(session)
    salary_handler = SalaryHandler(
        extractor=SalaryParamExtractor(
            OpenAISalaryParamExtractor(openai_client, model=settings.openai_model)
        ),
        employee_repository=EmployeeRepository(session),
        master_data_repository=MasterDataRepository(session),
        salary_draft_repository=salary_draft_repository,
        audit_log_repository=audit_log_repository,
        session=session,
        timezone=ZoneInfo(settings.app_timezone),
    )
    return MessagePipeline(
        deduplicator=Deduplicator(repository=chat_message_repository),
        enricher=lambda event: enrich_chat_event(event, chat_client),
        chat_message_repository=chat_message_repository,
        intent_record_repository=intent_record_repository,
        salary_draft_repository=salary_draft_repository,
        thread_context_loader=ThreadContextLoader(
            chat_message_repository=chat_message_repository,
            intent_record_repository=intent_record_repository,
            session=session,
        ),
        classifier=IntentClassifier(
            OpenAIIntentClassifier(openai_client, model=settings.openai_model)
        ),
        salary_handler=salary_handler,
        audit_recorder=AuditRecorder(repository=audit_log_repository, session=session),
        session=session,
    )


def get_push_ingestion_service(
    session: Annotated[Session, Depends(get_db_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    chat_client: Annotated[ChatApiClient, Depends(get_chat_api_client)],
    openai_client: Annotated[OpenAIClient, Depends(get_openai_client)],
) -> PushIngestionService:
    """Build push ingestion service with per-request session."""

    return PushIngestionService(
        pipeline=build_message_pipeline(
            session=session,
            settings=settings,
            chat_client=chat_client,
            openai_client=openai_client,
        )
    )


def get_draft_transition_service(
    session: Annotated[Session, Depends(get_db_session)],
) -> DraftTransitionService:
    """Build draft transition service with per-request session."""

    return DraftTransitionService(
        repository=SalaryDraftRepository(session),
        audit_log_repository=AuditLogRepository(session),
        session=session,
    )
