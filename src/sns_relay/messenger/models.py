"""Messenger-neutral message models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True, slots=True)
class Attachment:
    """Binary attachment uploaded alongside a message."""

    data: bytes
    filename: str = "attachment"


@dataclass(frozen=True, slots=True)
class IncomingMessage:
    chat_id: str
    message_id: str
    user_id: str
    user_display_name: str
    text: str
    timestamp: datetime
    guild_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class OutgoingMessage:
    chat_id: str
    text: str
    attachments: list[Attachment] = field(default_factory=list)
    reply_to_message_id: Optional[str] = None
    suppress_embeds: bool = False
    suppress_mentions: bool = False


@dataclass(frozen=True, slots=True)
class SentMessage:
    """A message accepted by the host, with the durable URL of each attachment."""

    chat_id: str
    message_id: str
    attachment_urls: list[str] = field(default_factory=list)
