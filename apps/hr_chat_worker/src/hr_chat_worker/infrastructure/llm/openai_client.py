"""OpenAI Responses API client boundary."""

from __future__ import annotations

import json
from typing import Any, Protocol

from openai import OpenAI

from hr_chat_worker.core.settings import Settings


class OpenAIClient(Protocol):
    """Minimum client protocol expected by the model adapters."""

    def responses_create(self, **kwargs: Any) -> dict[str, Any]:
        """Call OpenAI Responses API and return payload as dict."""


class OpenAIResponsesClient:
    """``OpenAIClient`` backed by the official SDK."""

    def __init__(self, client: OpenAI) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> OpenAIResponsesClient:
        return cls(
            OpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.openai_timeout_seconds,
                max_retries=0,
            )
        )

    def responses_create(self, **kwargs: Any) -> dict[str, Any]:
        response = self._client.responses.create(**kwargs)
        return response.model_dump()


def extract_structured_output(response: dict[str, Any]) -> dict[str, Any]:
    """Return the JSON object produced under a strict JSON schema format."""
    output = response.get("output")
    if not isinstance(output, list) or not output:
        raise ValueError("OpenAI response does not contain output items")

    first_item = output[0]
    if not isinstance(first_item, dict):
        raise ValueError("OpenAI output item has invalid format")

    content = first_item.get("content")
    if not isinstance(content, list) or not content:
        raise ValueError("OpenAI output does not contain content")

    content_item = content[0]
    if not isinstance(content_item, dict):
        raise ValueError("OpenAI content item has invalid format")

    parsed = content_item.get("parsed")
    if isinstance(parsed, dict):
        return parsed

    text = content_item.get("text")
    if isinstance(text, str):
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError("OpenAI output text is not valid JSON") from exc
        if isinstance(decoded, dict):
            return decoded

    raise ValueError("OpenAI response does not contain parsed JSON schema output")
