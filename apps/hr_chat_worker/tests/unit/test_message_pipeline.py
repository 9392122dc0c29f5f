from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID, uuid4

import pytest

from hr_chat_worker.application.schemas.chat_event import ChatEvent
from hr_chat_worker.application.schemas.classification import (
    IntentClassification,
    SalaryChangeParams,
    ThreadContext,
)
from hr_chat_worker.application.services.event_enricher import (
    Enriched,
    EnrichmentFallback,
    EnrichmentResult,
)
from hr_chat_worker.db.models.approval_log import ApprovalLog
from hr_chat_worker.db.models.audit_log import AuditLog
from hr_chat_worker.db.models.chat_message import ChatMessage
from hr_chat_worker.db.models.intent_record import IntentRecord
from hr_chat_worker.db.models.salary_draft import SalaryDraft
from hr_chat_worker.domain.errors import TransientInfraError
from hr_chat_worker.domain.value_objects import (
    AuditEventType,
    ChangeType,
    ChatCategory,
    ClassificationMethod,
)
from hr_chat_worker.services.audit_recorder import AuditRecorder
from hr_chat_worker.services.deduplicator import Deduplicator
from hr_chat_worker.services.message_pipeline import MessagePipeline, PipelineStatus
from hr_chat_worker.services.salary_handler import SalaryHandlingResult
from hr_chat_worker.services.thread_context_loader import ThreadContextLoader

NOW = datetime(2025, 3, 10, 1, 5, tzinfo=UTC)


class FakeSession:
    def __init__(self) -> None:
        self.commits = 0
        self.rolled_back = False

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rolled_back = True

    def refresh(self, instance: object) -> None:
        _ = instance


@dataclass
class FakeChatMessageRepository:
    messages: list[ChatMessage] = field(default_factory=list)
    add_error: Exception | None = None

    def get_by_google_message_id(self, google_message_id: str) -> ChatMessage | None:
        matches = [m for m in self.messages if m.google_message_id == google_message_id]
        return matches[0] if matches else None

    def list_thread_messages(self, thread_name: str) -> list[ChatMessage]:
        return sorted(
            (m for m in self.messages if m.thread_name == thread_name),
            key=lambda m: m.created_at,
        )

    def mark_processed(self, chat_message_id: UUID, processed_at: datetime) -> None:
        for message in self.messages:
            if message.id == chat_message_id:
                message.processed_at = processed_at

    def add(self, message: ChatMessage) -> ChatMessage:
        if self.add_error is not None:
            raise self.add_error
        message.id = message.id or uuid4()
        self.messages.append(message)
        return message


@dataclass
class FakeIntentRecordRepository:
    records: list[IntentRecord] = field(default_factory=list)

    def get_by_chat_message_id(self, chat_message_id: UUID) -> IntentRecord | None:
        matches = [r for r in self.records if r.chat_message_id == chat_message_id]
        return matches[-1] if matches else None

    def add(self, record: IntentRecord) -> IntentRecord:
        record.id = record.id or uuid4()
        self.records.append(record)
        return record


@dataclass
class FakeSalaryDraftRepository:
    drafts: list[SalaryDraft] = field(default_factory=list)

    def get(self, draft_id: UUID) -> SalaryDraft | None:
        return next((d for d in self.drafts if d.id == draft_id), None)

    def get_for_update(self, draft_id: UUID) -> SalaryDraft | None:
        return self.get(draft_id)

    def list_by_chat_message_id(self, chat_message_id: UUID) -> list[SalaryDraft]:
        return [d for d in self.drafts if d.chat_message_id == chat_message_id]

    def add_all(self, drafts: Sequence[SalaryDraft]) -> list[SalaryDraft]:
        self.drafts.extend(drafts)
        return list(drafts)

    def add_approval_log(self, log: ApprovalLog) -> ApprovalLog:
        return log


@dataclass
class FakeAuditLogRepository:
    entries: list[AuditLog] = field(default_factory=list)
    error: Exception | None = None

    def add(self, entry: AuditLog) -> AuditLog:
        if self.error is not None:
            raise self.error
        self.entries.append(entry)
        return entry


class FakeClassifier:
    def __init__(
        self,
        result: IntentClassification | None = None,
        error: Exception | None = None,
    ) -> None:
        self._result = result
        self.error = error
        self.calls: list[tuple[str, ThreadContext | None]] = []

    def classify(
        self, message_text: str, thread_context: ThreadContext | None = None
    ) -> IntentClassification:
        self.calls.append((message_text, thread_context))
        if self.error is not None:
            raise self.error
        assert self._result is not None
        return self._result


@dataclass
class FakeSalaryHandler:
    draft_ids: list[UUID] = field(default_factory=lambda: [uuid4(), uuid4()])
    calls: list[dict[str, Any]] = field(default_factory=list)

    def handle(
        self,
        *,
        chat_message_id: UUID,
        message_text: str,
        intent: IntentClassification,
    ) -> SalaryHandlingResult:
        self.calls.append(
            {
                "chat_message_id": chat_message_id,
                "message_text": message_text,
                "intent": intent,
            }
        )
        return SalaryHandlingResult(
            params=SalaryChangeParams(
                employee_identifier="E001",
                change_type=ChangeType.DISCRETIONARY,
                target_salary=300_000,
                reasoning="explicit target",
            ),
            drafts=[SalaryDraft(id=draft_id) for draft_id in self.draft_ids],
        )


@dataclass
class PipelineFixture:
    pipeline: MessagePipeline
    session: FakeSession
    chat_messages: FakeChatMessageRepository
    intents: FakeIntentRecordRepository
    drafts: FakeSalaryDraftRepository
    audits: FakeAuditLogRepository
    classifier: FakeClassifier
    salary_handler: FakeSalaryHandler
    enriched_events: list[ChatEvent]


def regex_result(
    category: ChatCategory, confidence: float = 0.93
) -> IntentClassification:
    return IntentClassification(
        category=category,
        confidence=confidence,
        reasoning="Matched keyword rule.",
        classification_method=ClassificationMethod.REGEX,
        regex_pattern="rule",
    )


def build_pipeline(
    *,
    classifier: FakeClassifier,
    chat_messages: FakeChatMessageRepository | None = None,
    intents: FakeIntentRecordRepository | None = None,
    drafts: FakeSalaryDraftRepository | None = None,
    audits: FakeAuditLogRepository | None = None,
    enricher_result: EnrichmentResult | None = None,
) -> PipelineFixture:
    session = FakeSession()
    chat_messages = chat_messages or FakeChatMessageRepository()
    intents = intents or FakeIntentRecordRepository()
    drafts = drafts or FakeSalaryDraftRepository()
    audits = audits or FakeAuditLogRepository()
    salary_handler = FakeSalaryHandler()
    enriched_events: list[ChatEvent] = []

    def enricher(event: ChatEvent) -> EnrichmentResult:
        enriched_events.append(event)
        return enricher_result or Enriched(event=event)

    pipeline = MessagePipeline(
        deduplicator=Deduplicator(repository=chat_messages),
        enricher=enricher,
        chat_message_repository=chat_messages,
        intent_record_repository=intents,
        salary_draft_repository=drafts,
        thread_context_loader=ThreadContextLoader(
            chat_message_repository=chat_messages,
            intent_record_repository=intents,
            session=session,
        ),
        classifier=classifier,
        salary_handler=salary_handler,
        audit_recorder=AuditRecorder(
            repository=audits, session=session, clock=lambda: NOW
        ),
        session=session,
        clock=lambda: NOW,
    )
    return PipelineFixture(
        pipeline=pipeline,
        session=session,
        chat_messages=chat_messages,
        intents=intents,
        drafts=drafts,
        audits=audits,
        classifier=classifier,
        salary_handler=salary_handler,
        enriched_events=enriched_events,
    )


def build_event(**overrides: Any) -> ChatEvent:
    values: dict[str, Any] = {
        "space_name": "spaces/AAA",
        "google_message_id": "spaces/AAA/messages/msg-1",
        "sender_user_id": "users/1001",
        "sender_name": "HR Staff",
        "text": "有給休暇の申請です",
        "created_at": datetime(2025, 3, 10, 1, 0, tzinfo=UTC),
    }
    values.update(overrides)
    return ChatEvent(**values)


def existing_message(
    google_message_id: str,
    *,
    thread_name: str | None = None,
    created_at: datetime | None = None,
    content: str = "",
    processed_at: datetime | None = None,
) -> ChatMessage:
    return ChatMessage(
        id=uuid4(),
        space_name="spaces/AAA",
        google_message_id=google_message_id,
        sender_user_id="users/1001",
        sender_name="HR Staff",
        sender_type="HUMAN",
        content=content,
        message_type="MESSAGE",
        thread_name=thread_name,
        processed_at=processed_at,
        created_at=created_at or datetime(2025, 3, 10, tzinfo=UTC),
    )


def test_processed_message_is_skipped_without_writes() -> None:
    chat_messages = FakeChatMessageRepository(
        messages=[existing_message("spaces/AAA/messages/msg-1", processed_at=NOW)]
    )
    fixture = build_pipeline(
        classifier=FakeClassifier(result=regex_result(ChatCategory.ATTENDANCE)),
        chat_messages=chat_messages,
    )

    result = fixture.pipeline.process(build_event())

    assert result.status == PipelineStatus.DUPLICATE
    assert len(fixture.chat_messages.messages) == 1
    assert fixture.intents.records == []
    assert fixture.audits.entries == []
    assert fixture.enriched_events == []
    assert fixture.classifier.calls == []
    assert fixture.session.commits == 0


def test_non_salary_message_is_recorded_and_classified() -> None:
    fixture = build_pipeline(
        classifier=FakeClassifier(result=regex_result(ChatCategory.ATTENDANCE))
    )

    result = fixture.pipeline.process(build_event())

    assert result.status == PipelineStatus.PROCESSED
    assert result.category == ChatCategory.ATTENDANCE
    assert result.draft_ids == []

    saved = fixture.chat_messages.messages[0]
    assert saved.google_message_id == "spaces/AAA/messages/msg-1"
    assert saved.content == "有給休暇の申請です"
    assert saved.processed_at == NOW
    assert result.chat_message_id == saved.id

    record = fixture.intents.records[0]
    assert record.chat_message_id == saved.id
    assert record.category == ChatCategory.ATTENDANCE
    assert record.classification_method == ClassificationMethod.REGEX
    assert record.llm_input is None
    assert record.extracted_params is None

    assert [entry.event_type for entry in fixture.audits.entries] == [
        AuditEventType.CHAT_RECEIVED,
        AuditEventType.INTENT_CLASSIFIED,
    ]
    assert fixture.audits.entries[1].details == {
        "category": "attendance",
        "classification_method": "regex",
    }
    assert fixture.salary_handler.calls == []


def test_model_classification_keeps_llm_input() -> None:
    fixture = build_pipeline(
        classifier=FakeClassifier(
            result=IntentClassification(
                category=ChatCategory.OTHER,
                confidence=0.6,
                reasoning="small talk",
                classification_method=ClassificationMethod.AI,
            )
        )
    )

    fixture.pipeline.process(build_event(text="こんにちは"))

    record = fixture.intents.records[0]
    assert record.llm_input == "こんにちは"
    assert record.llm_output == "small talk"


def test_salary_message_is_routed_to_salary_handler() -> None:
    fixture = build_pipeline(
        classifier=FakeClassifier(result=regex_result(ChatCategory.SALARY, 0.92))
    )

    result = fixture.pipeline.process(
        build_event(text="田中太郎さんの給与を30万円に変更してください")
    )

    assert result.draft_ids == fixture.salary_handler.draft_ids
    call = fixture.salary_handler.calls[0]
    assert call["chat_message_id"] == fixture.chat_messages.messages[0].id
    assert call["message_text"] == "田中太郎さんの給与を30万円に変更してください"
    assert fixture.intents.records[0].extracted_params == {
        "employee_identifier": "E001",
        "change_type": "discretionary",
        "target_salary": 300_000,
        "allowance_type": None,
        "reasoning": "explicit target",
    }


def test_enrichment_fallback_still_records_delivered_event() -> None:
    event = build_event()
    fixture = build_pipeline(
        classifier=FakeClassifier(result=regex_result(ChatCategory.ATTENDANCE)),
        enricher_result=EnrichmentFallback(event=event, reason="timeout"),
    )

    result = fixture.pipeline.process(event)

    assert result.status == PipelineStatus.PROCESSED
    assert fixture.chat_messages.messages[0].sender_name == "HR Staff"


def test_chat_message_write_failure_is_transient() -> None:
    fixture = build_pipeline(
        classifier=FakeClassifier(result=regex_result(ChatCategory.ATTENDANCE)),
        chat_messages=FakeChatMessageRepository(add_error=RuntimeError("db down")),
    )

    with pytest.raises(TransientInfraError) as exc_info:
        fixture.pipeline.process(build_event())

    assert exc_info.value.code == "DB_ERROR"
    assert fixture.session.rolled_back is True
    assert fixture.classifier.calls == []


def test_retry_after_classification_failure_resumes_recorded_message() -> None:
    classifier = FakeClassifier(
        result=regex_result(ChatCategory.ATTENDANCE),
        error=TransientInfraError(code="LLM_ERROR", message="timeout"),
    )
    fixture = build_pipeline(classifier=classifier)

    with pytest.raises(TransientInfraError):
        fixture.pipeline.process(build_event())

    assert fixture.chat_messages.messages[0].processed_at is None
    assert fixture.intents.records == []

    classifier.error = None
    result = fixture.pipeline.process(build_event())

    assert result.status == PipelineStatus.PROCESSED
    assert len(fixture.chat_messages.messages) == 1
    assert result.chat_message_id == fixture.chat_messages.messages[0].id
    assert fixture.chat_messages.messages[0].processed_at == NOW
    assert len(fixture.intents.records) == 1
    assert len(fixture.enriched_events) == 1
    assert [entry.event_type for entry in fixture.audits.entries] == [
        AuditEventType.CHAT_RECEIVED,
        AuditEventType.INTENT_CLASSIFIED,
    ]


def test_resumed_message_reuses_stored_classification() -> None:
    pending = existing_message(
        "spaces/AAA/messages/msg-1", content="田中太郎さんの給与を30万円に変更してください"
    )
    intents = FakeIntentRecordRepository(
        records=[
            IntentRecord(
                id=uuid4(),
                chat_message_id=pending.id,
                category=ChatCategory.SALARY,
                confidence_score=0.92,
                classification_method=ClassificationMethod.REGEX,
                regex_pattern="salary_change",
                llm_output="Matched keyword rule.",
            )
        ]
    )
    classifier = FakeClassifier(result=regex_result(ChatCategory.OTHER))
    fixture = build_pipeline(
        classifier=classifier,
        chat_messages=FakeChatMessageRepository(messages=[pending]),
        intents=intents,
    )

    result = fixture.pipeline.process(
        build_event(text="田中太郎さんの給与を30万円に変更してください")
    )

    assert result.category == ChatCategory.SALARY
    assert result.draft_ids == fixture.salary_handler.draft_ids
    assert classifier.calls == []
    assert len(fixture.intents.records) == 1
    assert fixture.intents.records[0].extracted_params is not None
    assert fixture.salary_handler.calls[0]["intent"].confidence == 0.92
    assert fixture.audits.entries == []
    assert fixture.enriched_events == []


def test_resumed_message_with_stored_drafts_is_not_drafted_again() -> None:
    pending = existing_message("spaces/AAA/messages/msg-1")
    stored_drafts = [
        SalaryDraft(id=uuid4(), chat_message_id=pending.id) for _ in range(3)
    ]
    intents = FakeIntentRecordRepository(
        records=[
            IntentRecord(
                id=uuid4(),
                chat_message_id=pending.id,
                category=ChatCategory.SALARY,
                confidence_score=0.92,
                classification_method=ClassificationMethod.REGEX,
            )
        ]
    )
    fixture = build_pipeline(
        classifier=FakeClassifier(result=regex_result(ChatCategory.SALARY)),
        chat_messages=FakeChatMessageRepository(messages=[pending]),
        intents=intents,
        drafts=FakeSalaryDraftRepository(drafts=stored_drafts),
    )

    result = fixture.pipeline.process(build_event())

    assert result.status == PipelineStatus.PROCESSED
    assert result.draft_ids == [draft.id for draft in stored_drafts]
    assert fixture.salary_handler.calls == []
    assert pending.processed_at == NOW


def test_audit_failure_does_not_stop_pipeline() -> None:
    fixture = build_pipeline(
        classifier=FakeClassifier(result=regex_result(ChatCategory.ATTENDANCE)),
        audits=FakeAuditLogRepository(error=RuntimeError("audit table locked")),
    )

    result = fixture.pipeline.process(build_event())

    assert result.status == PipelineStatus.PROCESSED
    assert fixture.session.rolled_back is True
    assert len(fixture.intents.records) == 1


def test_thread_reply_receives_parent_context() -> None:
    thread = "spaces/AAA/threads/t-1"
    parent = existing_message(
        "spaces/AAA/messages/parent",
        thread_name=thread,
        created_at=datetime(2025, 3, 10, 0, 0, tzinfo=UTC),
        content="有給休暇の申請です。" * 20,
    )
    chat_messages = FakeChatMessageRepository(messages=[parent])
    intents = FakeIntentRecordRepository(
        records=[
            IntentRecord(
                id=uuid4(),
                chat_message_id=parent.id,
                category=ChatCategory.ATTENDANCE,
                confidence_score=0.93,
                classification_method=ClassificationMethod.REGEX,
            )
        ]
    )
    classifier = FakeClassifier(result=regex_result(ChatCategory.ATTENDANCE, 0.837))
    fixture = build_pipeline(
        classifier=classifier, chat_messages=chat_messages, intents=intents
    )

    fixture.pipeline.process(
        build_event(
            google_message_id="spaces/AAA/messages/reply",
            text="よろしくお願いします",
            thread_name=thread,
            created_at=parent.created_at + timedelta(minutes=5),
        )
    )

    _, context = classifier.calls[0]
    assert context is not None
    assert context.parent_category == ChatCategory.ATTENDANCE
    assert context.parent_confidence == 0.93
    assert context.reply_count == 1
    assert len(context.parent_snippet) == 100


def test_first_message_of_thread_has_no_parent_context() -> None:
    classifier = FakeClassifier(result=regex_result(ChatCategory.ATTENDANCE))
    fixture = build_pipeline(classifier=classifier)

    fixture.pipeline.process(build_event(thread_name="spaces/AAA/threads/t-2"))

    assert classifier.calls[0][1] is None
