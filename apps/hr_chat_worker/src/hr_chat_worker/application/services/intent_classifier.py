"""Intent classification policy: thread inheritance, keyword rules, then LLM."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Protocol

from hr_chat_worker.application.schemas.classification import (
    IntentClassification,
    SalaryChangeParams,
    ThreadContext,
)
from hr_chat_worker.domain.errors import TransientInfraError
from hr_chat_worker.domain.value_objects import ChatCategory, ClassificationMethod

logger = logging.getLogger(__name__)

THREAD_INHERITANCE_MIN_CONFIDENCE = 0.90
THREAD_INHERITANCE_DECAY = 0.9
THREAD_INHERITANCE_PATTERN = "thread_context_inheritance"
REGEX_MIN_CONFIDENCE = 0.85


class LLMIntentClassifier(Protocol):
    """Protocol for LLM-backed intent classification."""

    def classify(
        self, message_text: str, thread_context: ThreadContext | None = None
    ) -> IntentClassification:
        """Classify one chat message into a category."""
        ...


class LLMSalaryParamExtractor(Protocol):
    """Protocol for LLM-backed salary change parameter extraction."""

    def extract(self, message_text: str) -> SalaryChangeParams:
        """Extract structured salary change parameters from free text."""
        ...


@dataclass(frozen=True, slots=True)
class KeywordRule:
    name: str
    pattern: re.Pattern[str]
    category: ChatCategory
    confidence: float


# Specific patterns come first; among equal confidences the earlier rule wins.
KEYWORD_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(
        "salary_raise",
        re.compile(r"昇給|給与.*(?:アップ|引き上げ|増額)|ベースアップ|ベア"),
        ChatCategory.SALARY,
        0.95,
    ),
    KeywordRule(
        "salary_cut",
        re.compile(r"減給|給与.*(?:ダウン|引き下げ|減額)"),
        ChatCategory.SALARY,
        0.95,
    ),
    KeywordRule(
        "salary_change",
        re.compile(r"給与.*変更|月給.*変更|基本給.*変更|手当.*(?:追加|変更|廃止)"),
        ChatCategory.SALARY,
        0.92,
    ),
    KeywordRule(
        "salary_promotion",
        re.compile(r"昇格|等級.*変更|号俸"),
        ChatCategory.SALARY,
        0.90,
    ),
    KeywordRule(
        "social_insurance",
        re.compile(r"社会保険|健康保険|厚生年金|雇用保険|被保険者"),
        ChatCategory.SALARY,
        0.88,
    ),
    KeywordRule(
        "retirement",
        re.compile(r"退職(?:届|申請|手続き|日|予定)|辞職|辞める|離職|退社"),
        ChatCategory.RETIREMENT,
        0.95,
    ),
    KeywordRule(
        "leave_of_absence",
        re.compile(
            r"休職(?:申請|開始|期間|延長)?|育児休業|育休|産休|産前産後休暇|介護休暇"
        ),
        ChatCategory.RETIREMENT,
        0.92,
    ),
    KeywordRule(
        "reinstatement",
        re.compile(r"復職(?:予定|手続き|日)?|職場復帰"),
        ChatCategory.RETIREMENT,
        0.90,
    ),
    KeywordRule(
        "hiring",
        re.compile(r"入社(?:手続き|日|予定|書類)?|採用(?:決定|手続き)|内定|雇い入れ"),
        ChatCategory.HIRING,
        0.93,
    ),
    KeywordRule(
        "contract_change",
        re.compile(
            r"契約(?:変更|更新|期間|形態)|雇用形態.*変更|正社員(?:転換|登用)|パート.*正社員"
        ),
        ChatCategory.CONTRACT,
        0.90,
    ),
    KeywordRule(
        "transfer",
        re.compile(r"転勤|異動|配置転換|施設.*(?:変更|移動|転属)|部署.*変更"),
        ChatCategory.TRANSFER,
        0.90,
    ),
    KeywordRule(
        "foreigner",
        re.compile(r"在留資格|ビザ|外国人.*労働者|就労許可|在留カード|特定技能|技能実習"),
        ChatCategory.FOREIGNER,
        0.95,
    ),
    KeywordRule(
        "health_check",
        re.compile(r"健康診断|健診|人間ドック|定期健診|産業医"),
        ChatCategory.HEALTH_CHECK,
        0.95,
    ),
    KeywordRule(
        "training",
        re.compile(r"研修(?:参加|日程|申込)?|監査|実地指導|コンプライアンス.*研修"),
        ChatCategory.TRAINING,
        0.88,
    ),
    KeywordRule(
        "attendance_leave",
        re.compile(
            r"有給(?:休暇|申請|取得)?|年次有給|休暇(?:申請|取得)|残業(?:申請|承認)"
            r"|時間外(?:労働|申請)"
        ),
        ChatCategory.ATTENDANCE,
        0.93,
    ),
    KeywordRule(
        "attendance_record",
        re.compile(r"勤怠(?:修正|確認|入力)|遅刻|早退|欠勤|打刻"),
        ChatCategory.ATTENDANCE,
        0.90,
    ),
)


def inherit_from_thread(
    thread_context: ThreadContext | None,
) -> IntentClassification | None:
    """Reuse a confident parent classification for a thread reply."""
    if (
        thread_context is None
        or thread_context.parent_confidence < THREAD_INHERITANCE_MIN_CONFIDENCE
    ):
        return None
    return IntentClassification(
        category=thread_context.parent_category,
        confidence=thread_context.parent_confidence * THREAD_INHERITANCE_DECAY,
        reasoning=(
            "Inherited from the thread's opening message "
            f"({thread_context.parent_category.value}, "
            f"confidence {thread_context.parent_confidence:.2f})."
        ),
        classification_method=ClassificationMethod.REGEX,
        regex_pattern=THREAD_INHERITANCE_PATTERN,
    )


def match_keyword_rules(
    message_text: str, rules: tuple[KeywordRule, ...] = KEYWORD_RULES
) -> IntentClassification | None:
    """Return the highest-confidence keyword rule match above the threshold."""
    best: KeywordRule | None = None
    for rule in rules:
        if rule.pattern.search(message_text) is None:
            continue
        if best is None or rule.confidence > best.confidence:
            best = rule

    if best is None or best.confidence < REGEX_MIN_CONFIDENCE:
        return None
    return IntentClassification(
        category=best.category,
        confidence=best.confidence,
        reasoning=f'Matched keyword rule "{best.name}".',
        classification_method=ClassificationMethod.REGEX,
        regex_pattern=best.name,
    )


class IntentClassifier:
    """Classify messages with deterministic rules and an LLM fallback."""

    def __init__(self, llm_classifier: LLMIntentClassifier) -> None:
        self._llm_classifier = llm_classifier

    def classify(
        self, message_text: str, thread_context: ThreadContext | None = None
    ) -> IntentClassification:
        """Classify one message.

        Raises:
            TransientInfraError: the LLM call failed or broke its contract.
        """
        inherited = inherit_from_thread(thread_context)
        if inherited is not None:
            return inherited

        matched = match_keyword_rules(message_text)
        if matched is not None:
            return matched

        try:
            result = self._llm_classifier.classify(message_text, thread_context)
        except Exception as exc:
            raise TransientInfraError(
                code="LLM_ERROR",
                message=f"Intent classification failed: {exc}",
            ) from exc

        return result.model_copy(
            update={"confidence": min(max(result.confidence, 0.0), 1.0)}
        )


class SalaryParamExtractor:
    """Wrap the LLM extractor so contract failures become retryable errors."""

    def __init__(self, llm_extractor: LLMSalaryParamExtractor) -> None:
        self._llm_extractor = llm_extractor

    def extract(self, message_text: str) -> SalaryChangeParams:
        try:
            return self._llm_extractor.extract(message_text)
        except Exception as exc:
            raise TransientInfraError(
                code="LLM_ERROR",
                message=f"Salary parameter extraction failed: {exc}",
            ) from exc
