"""Normalize Pub/Sub push envelopes carrying chat events into ``ChatEvent``.

Two inner payload shapes reach the topic:

* Workspace Events subscriptions: ``{"message": {...}}`` with the event kind
  in the ``ce-type`` delivery attribute.
* Chat app events: ``{"type": "MESSAGE" | "ADDED_TO_SPACE" | ..., "message":
  {...}, "space": {...}, "user": {...}}`` without ``ce-type``.

Both end up as the same ``ChatEvent``. Events that carry no message content
(deletions, membership changes, card clicks) and bot-authored messages yield
``None`` so the caller can acknowledge them without recording anything.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from hr_chat_worker.application.schemas.chat_event import (
    AnnotationType,
    ChatAnnotation,
    ChatAttachment,
    ChatEvent,
    ChatUser,
    MentionedUser,
    MessageType,
    RichLink,
    SenderType,
    SlashCommand,
    UserMention,
)
from hr_chat_worker.domain.errors import ParseError

SUPPORTED_CE_TYPES = frozenset(
    {
        "google.workspace.chat.message.v1.created",
        "google.workspace.chat.message.v1.updated",
    }
)
CHAT_APP_MESSAGE_TYPE = "MESSAGE"
ATTACHMENT_SOURCES = frozenset({"DRIVE_FILE", "UPLOADED_CONTENT"})

MESSAGE_NAME_PATTERN = re.compile(
    r"^spaces/(?P<space>[^/]+)/messages/(?P<message>[^/]+)$"
)
_FRACTION_PATTERN = re.compile(r"\.(\d{6})\d+")


@dataclass(frozen=True, slots=True)
class WorkspaceEventPayload:
    message: Mapping[str, Any] | None
    raw: dict[str, Any]


@dataclass(frozen=True, slots=True)
class ChatAppEventPayload:
    event_type: str
    message: Mapping[str, Any] | None
    raw: dict[str, Any]


ChatPayload = WorkspaceEventPayload | ChatAppEventPayload


def detect_payload_shape(payload: object) -> ChatPayload:
    """Classify a decoded inner payload into one of the known shapes."""
    if not isinstance(payload, dict):
        raise ParseError("Chat event payload is not a JSON object")

    message = payload.get("message")
    if message is not None and not isinstance(message, Mapping):
        raise ParseError("Chat event message field is not an object")

    event_type = payload.get("type")
    if event_type is not None:
        if not isinstance(event_type, str):
            raise ParseError("Chat app event type is not a string")
        return ChatAppEventPayload(event_type=event_type, message=message, raw=payload)

    if message is None:
        raise ParseError("No message field in chat event payload")
    return WorkspaceEventPayload(message=message, raw=payload)


def parse_rfc3339(value: object) -> datetime:
    """Parse an RFC 3339 timestamp, truncating sub-microsecond precision."""
    if not isinstance(value, str):
        raise ParseError(f"Timestamp is not a string: {value!r}")
    try:
        parsed = datetime.fromisoformat(_FRACTION_PATTERN.sub(r".\1", value))
    except ValueError as exc:
        raise ParseError(f"Invalid timestamp: {value}") from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


def _object_field(container: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = container.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ParseError(f"Field {key} is not an object", details={"field": key})
    return value


def _object_list_field(
    container: Mapping[str, Any], key: str
) -> list[Mapping[str, Any]]:
    value = container.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(
        isinstance(item, Mapping) for item in value
    ):
        raise ParseError(
            f"Field {key} is not a list of objects", details={"field": key}
        )
    return value


def _string_field(container: Mapping[str, Any], key: str) -> str | None:
    value = container.get(key)
    if value is None or isinstance(value, str):
        return value
    raise ParseError(f"Field {key} is not a string", details={"field": key})


def normalize_annotation(raw: Mapping[str, Any]) -> ChatAnnotation:
    """Normalize one chat API annotation object."""
    raw_type = raw.get("type")
    annotation_type = (
        AnnotationType(raw_type)
        if isinstance(raw_type, str) and raw_type in AnnotationType.__members__
        else AnnotationType.UNKNOWN
    )

    user_mention: UserMention | None = None
    slash_command: SlashCommand | None = None
    rich_link: RichLink | None = None

    if annotation_type == AnnotationType.USER_MENTION:
        user = _object_field(_object_field(raw, "userMention"), "user")
        if user:
            user_mention = UserMention(
                user=ChatUser(
                    name=user.get("name") or "",
                    display_name=user.get("displayName") or "",
                    type=user.get("type") or "HUMAN",
                )
            )

    command = _object_field(raw, "slashCommand")
    if annotation_type == AnnotationType.SLASH_COMMAND and command:
        slash_command = SlashCommand(
            command_id=str(command.get("commandId") or ""),
            command_name=command.get("commandName") or "",
        )

    link = _object_field(raw, "richLink")
    if annotation_type == AnnotationType.RICH_LINK and link:
        metadata = _object_field(link, "richLinkMetadata")
        rich_link = RichLink(uri=link.get("uri") or "", title=metadata.get("title"))

    return ChatAnnotation(
        type=annotation_type,
        start_index=raw.get("startIndex"),
        length=raw.get("length"),
        user_mention=user_mention,
        slash_command=slash_command,
        rich_link=rich_link,
    )


def normalize_attachment(raw: Mapping[str, Any]) -> ChatAttachment:
    source = _string_field(raw, "source")
    return ChatAttachment(
        name=raw.get("name") or "",
        content_name=raw.get("contentName"),
        content_type=raw.get("contentType"),
        download_uri=raw.get("downloadUri"),
        source=source if source in ATTACHMENT_SOURCES else None,
    )


def extract_mentioned_users(
    annotations: tuple[ChatAnnotation, ...],
) -> tuple[MentionedUser, ...]:
    """Return users referenced by USER_MENTION annotations, in text order."""
    return tuple(
        MentionedUser(
            user_id=annotation.user_mention.user.name,
            display_name=annotation.user_mention.user.display_name,
        )
        for annotation in annotations
        if annotation.type == AnnotationType.USER_MENTION
        and annotation.user_mention is not None
    )


def is_edited(message: Mapping[str, Any]) -> bool:
    last_update = message.get("lastUpdateTime")
    return bool(last_update) and last_update != message.get("createTime")


def _decode_envelope(body: object) -> tuple[Mapping[str, str], str]:
    if not isinstance(body, Mapping):
        raise ParseError("Invalid Pub/Sub push body structure")
    message = body.get("message")
    if not isinstance(message, Mapping):
        raise ParseError("Invalid Pub/Sub push body structure")
    if not isinstance(message.get("data"), str) or not isinstance(
        message.get("messageId"), str
    ):
        raise ParseError("Invalid Pub/Sub push body structure")

    attributes = message.get("attributes") or {}
    if not isinstance(attributes, Mapping):
        raise ParseError("Pub/Sub attributes must be an object")
    return attributes, message["data"]


def parse_push_envelope(
    body: object, *, now: datetime | None = None
) -> ChatEvent | None:
    """Turn a push body into a ``ChatEvent``, or ``None`` when it must be ignored.

    Raises:
        ParseError: the envelope, its base64 data, the inner JSON, the
            message resource name or a message field of the wrong type is
            malformed.
    """
    attributes, data = _decode_envelope(body)

    ce_type = attributes.get("ce-type") or ""
    if not isinstance(ce_type, str):
        raise ParseError("Pub/Sub ce-type attribute is not a string")
    if ce_type and ce_type not in SUPPORTED_CE_TYPES:
        return None

    try:
        decoded = base64.b64decode(data, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise ParseError("Failed to base64-decode Pub/Sub message data") from exc

    try:
        payload = json.loads(decoded)
    except json.JSONDecodeError as exc:
        raise ParseError("Failed to parse chat event JSON") from exc

    shape = detect_payload_shape(payload)
    if (
        isinstance(shape, ChatAppEventPayload)
        and shape.event_type != CHAT_APP_MESSAGE_TYPE
    ):
        return None
    if shape.message is None:
        raise ParseError("No message field in chat event payload")
    message = shape.message

    sender = _object_field(message, "sender")
    if sender.get("type") == SenderType.BOT.value:
        return None

    name = message.get("name")
    match = MESSAGE_NAME_PATTERN.match(name) if isinstance(name, str) else None
    if match is None:
        raise ParseError(f"Invalid message name format: {name}")

    thread = _object_field(message, "thread")
    thread_reply = (
        thread.get("threadReply") is True or message.get("threadReply") is True
    )
    quoted = _object_field(message, "quotedMessageMetadata")
    text = _string_field(message, "text")
    create_time = _string_field(message, "createTime")

    try:
        annotations = tuple(
            normalize_annotation(raw)
            for raw in _object_list_field(message, "annotations")
        )
        attachments = tuple(
            normalize_attachment(raw)
            for raw in _object_list_field(message, "attachment")
        )
        created_at = (
            parse_rfc3339(create_time)
            if create_time
            else (now or datetime.now(tz=UTC))
        )
        return ChatEvent(
            space_name=f"spaces/{match.group('space')}",
            google_message_id=name,
            sender_user_id=sender.get("name") or "users/unknown",
            sender_name=sender.get("displayName") or "",
            sender_type=SenderType.HUMAN,
            text=text or "",
            formatted_text=message.get("formattedText"),
            message_type=(
                MessageType.THREAD_REPLY if thread_reply else MessageType.MESSAGE
            ),
            thread_name=thread.get("name"),
            parent_message_id=quoted.get("name"),
            mentioned_users=extract_mentioned_users(annotations),
            annotations=annotations,
            attachments=attachments,
            is_edited=is_edited(message),
            is_deleted=bool(message.get("deleteTime")),
            raw_payload=shape.raw,
            created_at=created_at,
        )
    except ValidationError as exc:
        fields = {".".join(map(str, error["loc"])) for error in exc.errors()}
        raise ParseError(
            "Chat message fields have unexpected types",
            details={"fields": sorted(fields)},
        ) from exc
