from __future__ import annotations

import re

import pytest

from hr_chat_worker.application.schemas.classification import (
    IntentClassification,
    SalaryChangeParams,
    ThreadContext,
)
from hr_chat_worker.application.services.intent_classifier import (
    REGEX_MIN_CONFIDENCE,
    THREAD_INHERITANCE_PATTERN,
    IntentClassifier,
    KeywordRule,
    SalaryParamExtractor,
    inherit_from_thread,
    match_keyword_rules,
)
from hr_chat_worker.domain.errors import TransientInfraError
from hr_chat_worker.domain.value_objects import (
    ChangeType,
    ChatCategory,
    ClassificationMethod,
)


class FakeLLMClassifier:
    def __init__(
        self,
        result: IntentClassification | None = None,
        error: Exception | None = None,
    ) -> None:
        self._result = result
        self._error = error
        self.calls: list[tuple[str, ThreadContext | None]] = []

    def classify(
        self, message_text: str, thread_context: ThreadContext | None = None
    ) -> IntentClassification:
        self.calls.append((message_text, thread_context))
        if self._error is not None:
            raise self._error
        assert self._result is not None
        return self._result


def ai_result(category: ChatCategory, confidence: float) -> IntentClassification:
    return IntentClassification(
        category=category,
        confidence=confidence,
        reasoning="model",
        classification_method=ClassificationMethod.AI,
    )


def thread_context(category: ChatCategory, confidence: float) -> ThreadContext:
    return ThreadContext(
        parent_category=category,
        parent_confidence=confidence,
        parent_snippet="有給休暇の申請です",
        reply_count=1,
    )


def test_confident_parent_is_inherited_with_decay() -> None:
    llm = FakeLLMClassifier(error=AssertionError("must not be called"))
    classifier = IntentClassifier(llm)

    result = classifier.classify(
        "よろしくお願いします", thread_context(ChatCategory.ATTENDANCE, 0.93)
    )

    assert result.category == ChatCategory.ATTENDANCE
    assert result.confidence == pytest.approx(0.837)
    assert result.classification_method == ClassificationMethod.REGEX
    assert result.regex_pattern == THREAD_INHERITANCE_PATTERN
    assert llm.calls == []


def test_parent_below_threshold_is_not_inherited() -> None:
    assert inherit_from_thread(thread_context(ChatCategory.SALARY, 0.89)) is None
    assert inherit_from_thread(None) is None


@pytest.mark.parametrize(
    ("text", "category", "rule_name"),
    [
        ("田中太郎さんの昇給をお願いします", ChatCategory.SALARY, "salary_raise"),
        ("退職届を受け取りました", ChatCategory.RETIREMENT, "retirement"),
        ("来月の入社手続きについて", ChatCategory.HIRING, "hiring"),
        ("在留資格の更新が必要です", ChatCategory.FOREIGNER, "foreigner"),
        ("健康診断の日程を決めたい", ChatCategory.HEALTH_CHECK, "health_check"),
        ("有給休暇の申請です", ChatCategory.ATTENDANCE, "attendance_leave"),
        ("来月から施設を異動します", ChatCategory.TRANSFER, "transfer"),
    ],
)
def test_keyword_rules_classify_without_llm(
    text: str, category: ChatCategory, rule_name: str
) -> None:
    llm = FakeLLMClassifier(error=AssertionError("must not be called"))

    result = IntentClassifier(llm).classify(text)

    assert result.category == category
    assert result.classification_method == ClassificationMethod.REGEX
    assert result.regex_pattern == rule_name
    assert result.confidence >= REGEX_MIN_CONFIDENCE
    assert llm.calls == []


def test_highest_confidence_rule_wins_and_ties_keep_first() -> None:
    rules = (
        KeywordRule("low", re.compile("申請"), ChatCategory.OTHER, 0.86),
        KeywordRule("first", re.compile("休暇"), ChatCategory.ATTENDANCE, 0.93),
        KeywordRule("second", re.compile("有給"), ChatCategory.TRAINING, 0.93),
    )

    result = match_keyword_rules("有給休暇の申請", rules)

    assert result is not None
    assert result.regex_pattern == "first"


def test_rule_below_threshold_is_ignored() -> None:
    rules = (
        KeywordRule("weak", re.compile("研修"), ChatCategory.TRAINING, 0.80),
    )

    assert match_keyword_rules("研修", rules) is None


def test_unmatched_text_falls_back_to_llm_with_context() -> None:
    context = thread_context(ChatCategory.SALARY, 0.5)
    llm = FakeLLMClassifier(result=ai_result(ChatCategory.OTHER, 0.7))

    result = IntentClassifier(llm).classify("こんにちは", context)

    assert result.category == ChatCategory.OTHER
    assert result.classification_method == ClassificationMethod.AI
    assert llm.calls == [("こんにちは", context)]


def test_llm_confidence_is_clamped() -> None:
    llm = FakeLLMClassifier(
        result=ai_result(ChatCategory.OTHER, 1.0).model_copy(update={"confidence": 1.7})
    )

    result = IntentClassifier(llm).classify("こんにちは")

    assert result.confidence == 1.0


def test_llm_failure_becomes_retryable_llm_error() -> None:
    llm = FakeLLMClassifier(error=TimeoutError("deadline exceeded"))

    with pytest.raises(TransientInfraError) as exc_info:
        IntentClassifier(llm).classify("こんにちは")

    assert exc_info.value.code == "LLM_ERROR"
    assert exc_info.value.retryable is True


class FakeLLMExtractor:
    def __init__(self, error: Exception | None = None) -> None:
        self._error = error

    def extract(self, message_text: str) -> SalaryChangeParams:
        if self._error is not None:
            raise self._error
        return SalaryChangeParams(
            employee_identifier="E001",
            change_type=ChangeType.DISCRETIONARY,
            target_salary=300_000,
        )


def test_salary_param_extractor_passes_through_result() -> None:
    params = SalaryParamExtractor(FakeLLMExtractor()).extract("E001 を30万円に")

    assert params.employee_identifier == "E001"
    assert params.target_salary == 300_000


def test_salary_param_extractor_wraps_failures() -> None:
    extractor = SalaryParamExtractor(FakeLLMExtractor(error=ValueError("bad json")))

    with pytest.raises(TransientInfraError) as exc_info:
        extractor.extract("E001 を30万円に")

    assert exc_info.value.code == "LLM_ERROR"
