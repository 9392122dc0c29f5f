"""Best-effort completion of push payloads through the chat REST API.

Push deliveries may lack formatted text, annotations, attachments and the
sender display name. Those are fetched here; any lookup failure falls back to
the event as delivered and never fails the pipeline.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from hr_chat_worker.application.schemas.chat_event import ChatEvent, MentionedUser
from hr_chat_worker.application.services.event_normalizer import (
    extract_mentioned_users,
    is_edited,
    normalize_annotation,
    normalize_attachment,
)
from hr_chat_worker.infrastructure.chat.chat_api import ChatApiClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Enriched:
    event: ChatEvent


@dataclass(frozen=True, slots=True)
class EnrichmentFallback:
    event: ChatEvent
    reason: str


EnrichmentResult = Enriched | EnrichmentFallback


def member_resource_name(space_name: str, user_id: str) -> str:
    """Build ``spaces/{space}/members/{user}`` from a ``users/{user}`` id."""
    return f"{space_name}/members/{user_id.removeprefix('users/')}"


def _lookup_display_name(client: ChatApiClient, space_name: str, user_id: str) -> str:
    try:
        membership = client.get_member(member_resource_name(space_name, user_id))
    except Exception as exc:
        logger.warning(
            "member_lookup_failed",
            extra={"user_id": user_id, "error": str(exc)},
        )
        return ""
    member = (membership or {}).get("member") or {}
    return member.get("displayName") or ""


def _complete_mentions(
    client: ChatApiClient,
    space_name: str,
    mentioned_users: tuple[MentionedUser, ...],
) -> tuple[MentionedUser, ...]:
    completed: list[MentionedUser] = []
    for user in mentioned_users:
        if user.display_name or not user.user_id:
            completed.append(user)
            continue
        completed.append(
            user.model_copy(
                update={
                    "display_name": _lookup_display_name(
                        client, space_name, user.user_id
                    )
                }
            )
        )
    return tuple(completed)


def _merge(
    event: ChatEvent, message: Mapping[str, Any], client: ChatApiClient
) -> ChatEvent:
    formatted_text = message.get("formattedText")
    raw_annotations = message.get("annotations")
    raw_attachments = message.get("attachment")

    annotations = (
        tuple(normalize_annotation(raw) for raw in raw_annotations)
        if raw_annotations is not None
        else event.annotations
    )
    attachments = (
        tuple(normalize_attachment(raw) for raw in raw_attachments)
        if raw_attachments is not None
        else event.attachments
    )
    mentioned_users = _complete_mentions(
        client, event.space_name, extract_mentioned_users(annotations)
    )

    sender = message.get("sender") or {}
    sender_name = sender.get("displayName") or ""
    if not sender_name and sender.get("name"):
        sender_name = _lookup_display_name(client, event.space_name, sender["name"])

    return event.model_copy(
        update={
            "formatted_text": (
                formatted_text if formatted_text is not None else event.formatted_text
            ),
            "annotations": annotations,
            "attachments": attachments,
            "mentioned_users": mentioned_users,
            "is_edited": is_edited(message),
            "is_deleted": bool(message.get("deleteTime")),
            "sender_name": sender_name or event.sender_name,
        }
    )


def enrich_chat_event(event: ChatEvent, client: ChatApiClient) -> EnrichmentResult:
    """Fetch the full message detail and merge it into ``event``.

    Never raises: lookup or merge failures produce ``EnrichmentFallback``
    carrying the original event.
    """
    try:
        message = client.get_message(event.google_message_id)
    except Exception as exc:
        logger.warning(
            "chat_enrichment_failed",
            extra={"google_message_id": event.google_message_id, "error": str(exc)},
        )
        return EnrichmentFallback(event=event, reason=str(exc))

    if message is None:
        return EnrichmentFallback(event=event, reason="message_not_found")

    try:
        return Enriched(event=_merge(event, message, client))
    except Exception as exc:
        logger.warning(
            "chat_enrichment_failed",
            extra={"google_message_id": event.google_message_id, "error": str(exc)},
        )
        return EnrichmentFallback(event=event, reason=str(exc))
