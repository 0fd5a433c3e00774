"""Abstract messenger adapter interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from sns_relay.messenger.models import IncomingMessage, OutgoingMessage, SentMessage


class MessengerAdapter(ABC):
    """Base class for the chat host the pipeline reads from and writes to."""

    def __init__(self) -> None:
        self._message_callback: Callable[[IncomingMessage], Awaitable[None]] | None = None

    @abstractmethod
    async def start(self) -> None:
        """Connect to the platform and begin receiving messages."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Gracefully disconnect."""
        ...

    @abstractmethod
    async def send_message(self, message: OutgoingMessage) -> SentMessage:
        """Send a message and return what the host assigned to it."""
        ...

    @abstractmethod
    async def edit_message(self, chat_id: str, message_id: str, text: str) -> None:
        ...

    @abstractmethod
    async def delete_message(self, chat_id: str, message_id: str) -> None:
        ...

    @abstractmethod
    async def acknowledge(self, message: IncomingMessage, emoji: str) -> None:
        """Signal that a message is being worked on (react, hide embeds, typing)."""
        ...

    def is_healthy(self) -> bool:
        return True

    def on_message(self, callback: Callable[[IncomingMessage], Awaitable[None]]) -> None:
        """Register the callback invoked for every incoming message."""
        self._message_callback = callback
