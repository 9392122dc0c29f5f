"""OpenAI adapters for intent classification and salary parameter extraction."""

from __future__ import annotations

from typing import Any

from hr_chat_worker.application.schemas.classification import (
    IntentClassification,
    SalaryChangeParams,
    ThreadContext,
)
from hr_chat_worker.domain.value_objects import (
    AllowanceType,
    ChangeType,
    ChatCategory,
    ClassificationMethod,
)
from hr_chat_worker.infrastructure.llm.openai_client import (
    OpenAIClient,
    extract_structured_output,
)
from hr_chat_worker.infrastructure.llm.prompts import (
    INTENT_CLASSIFICATION_PROMPT,
    SALARY_PARAM_EXTRACTION_PROMPT,
    THREAD_CONTEXT_TEMPLATE,
)

STRICT_INTENT_SCHEMA: dict[str, Any] = {
    "type": "json_schema",
    "name": "intent_classification",
    "strict": True,
    "schema": {
        "type": "object",
        "additionalProperties": False,
        "required": ["category", "confidence", "reasoning"],
        "properties": {
            "category": {
                "type": "string",
                "enum": [category.value for category in ChatCategory],
            },
            "confidence": {
                "type": "number",
            },
            "reasoning": {
                "type": "string",
            },
        },
    },
}

STRICT_SALARY_PARAMS_SCHEMA: dict[str, Any] = {
    "type": "json_schema",
    "name": "salary_change_params",
    "strict": True,
    "schema": {
        "type": "object",
        "additionalProperties": False,
        "required": [
            "employee_identifier",
            "change_type",
            "target_salary",
            "allowance_type",
            "reasoning",
        ],
        "properties": {
            "employee_identifier": {
                "type": ["string", "null"],
            },
            "change_type": {
                "type": "string",
                "enum": [change_type.value for change_type in ChangeType],
            },
            "target_salary": {
                "type": ["integer", "null"],
            },
            "allowance_type": {
                "type": ["string", "null"],
                "enum": [*(item.value for item in AllowanceType), None],
            },
            "reasoning": {
                "type": "string",
            },
        },
    },
}


def _messages(system_prompt: str, message_text: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": message_text},
    ]


class OpenAIIntentClassifier:
    """Classifies HR chat messages with strict JSON schema responses."""

    def __init__(self, client: OpenAIClient, *, model: str) -> None:
        self._client = client
        self._model = model

    def classify(
        self, message_text: str, thread_context: ThreadContext | None = None
    ) -> IntentClassification:
        prompt = INTENT_CLASSIFICATION_PROMPT
        if thread_context is not None:
            prompt = "\n\n".join(
                [
                    prompt,
                    THREAD_CONTEXT_TEMPLATE.format(
                        parent_category=thread_context.parent_category.value,
                        parent_confidence=thread_context.parent_confidence,
                        reply_count=thread_context.reply_count,
                        parent_snippet=thread_context.parent_snippet,
                    ),
                ]
            )

        response = self._client.responses_create(
            model=self._model,
            temperature=0,
            input=_messages(prompt, message_text),
            text={"format": STRICT_INTENT_SCHEMA},
        )
        payload = extract_structured_output(response)

        raw_category = payload.get("category")
        try:
            category = ChatCategory(raw_category)
        except ValueError as exc:
            raise ValueError(f"Unknown category from model: {raw_category}") from exc

        raw_confidence = payload.get("confidence")
        if isinstance(raw_confidence, bool) or not isinstance(
            raw_confidence, int | float
        ):
            raise ValueError("Model confidence is not a number")

        return IntentClassification(
            category=category,
            confidence=min(max(float(raw_confidence), 0.0), 1.0),
            reasoning=str(payload.get("reasoning") or ""),
            classification_method=ClassificationMethod.AI,
        )


class OpenAISalaryParamExtractor:
    """Extracts employee, change type and amounts from a salary request."""

    def __init__(self, client: OpenAIClient, *, model: str) -> None:
        self._client = client
        self._model = model

    def extract(self, message_text: str) -> SalaryChangeParams:
        response = self._client.responses_create(
            model=self._model,
            temperature=0,
            input=_messages(SALARY_PARAM_EXTRACTION_PROMPT, message_text),
            text={"format": STRICT_SALARY_PARAMS_SCHEMA},
        )
        payload = extract_structured_output(response)

        raw_change_type = payload.get("change_type")
        try:
            change_type = ChangeType(raw_change_type)
        except ValueError as exc:
            raise ValueError(
                f"Unknown change type from model: {raw_change_type}"
            ) from exc

        allowance_type = payload.get("allowance_type")
        if allowance_type is not None and allowance_type not in {
            item.value for item in AllowanceType
        }:
            allowance_type = None

        return SalaryChangeParams(
            employee_identifier=self._optional_string(
                payload.get("employee_identifier")
            ),
            change_type=change_type,
            target_salary=self._optional_int(payload.get("target_salary")),
            allowance_type=allowance_type,
            reasoning=str(payload.get("reasoning") or ""),
        )

    @staticmethod
    def _optional_string(value: Any) -> str | None:
        return value if isinstance(value, str) and value.strip() else None

    @staticmethod
    def _optional_int(value: Any) -> int | None:
        if isinstance(value, bool):
            return None
        return value if isinstance(value, int) else None
