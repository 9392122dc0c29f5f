"""Normalized representation of one inbound chat message."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class SenderType(StrEnum):
    HUMAN = "HUMAN"
    BOT = "BOT"


class MessageType(StrEnum):
    MESSAGE = "MESSAGE"
    THREAD_REPLY = "THREAD_REPLY"


class AnnotationType(StrEnum):
    USER_MENTION = "USER_MENTION"
    SLASH_COMMAND = "SLASH_COMMAND"
    RICH_LINK = "RICH_LINK"
    UNKNOWN = "UNKNOWN"


class ChatUser(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str
    type: str = "HUMAN"


class UserMention(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: ChatUser


class SlashCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    command_id: str
    command_name: str


class RichLink(BaseModel):
    model_config = ConfigDict(frozen=True)

    uri: str
    title: str | None = None


class ChatAnnotation(BaseModel):
    """Mention, slash command or link attached to a span of the message text."""

    model_config = ConfigDict(frozen=True)

    type: AnnotationType
    start_index: int | None = None
    length: int | None = None
    user_mention: UserMention | None = None
    slash_command: SlashCommand | None = None
    rich_link: RichLink | None = None


class ChatAttachment(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    content_name: str | None = None
    content_type: str | None = None
    download_uri: str | None = None
    source: Literal["DRIVE_FILE", "UPLOADED_CONTENT"] | None = None


class MentionedUser(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    display_name: str


class ChatEvent(BaseModel):
    """Canonical chat event; ``google_message_id`` is its idempotency key."""

    model_config = ConfigDict(frozen=True)

    space_name: str
    google_message_id: str
    sender_user_id: str
    sender_name: str
    sender_type: SenderType = SenderType.HUMAN
    text: str
    formatted_text: str | None = None
    message_type: MessageType = MessageType.MESSAGE
    thread_name: str | None = None
    parent_message_id: str | None = None
    mentioned_users: tuple[MentionedUser, ...] = ()
    annotations: tuple[ChatAnnotation, ...] = ()
    attachments: tuple[ChatAttachment, ...] = ()
    is_edited: bool = False
    is_deleted: bool = False
    raw_payload: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
