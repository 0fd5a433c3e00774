"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Callable

import httpx
import pytest

from sns_relay.messenger.base import MessengerAdapter
from sns_relay.messenger.models import IncomingMessage, OutgoingMessage, SentMessage


class FakeAdapter(MessengerAdapter):
    """In-memory chat host that hands out fake durable attachment URLs."""

    def __init__(self) -> None:
        super().__init__()
        self.sent: list[OutgoingMessage] = []
        self.edited: list[tuple[str, str]] = []
        self.deleted: list[str] = []
        self.acknowledged: list[str] = []
        self._next_id = 0

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass

    async def send_message(self, message: OutgoingMessage) -> SentMessage:
        self.sent.append(message)
        self._next_id += 1
        urls = [
            f"https://cdn.discordapp.com/attachments/1/{self._next_id}/{att.filename}"
            for att in message.attachments
        ]
        return SentMessage(
            chat_id=message.chat_id, message_id=str(self._next_id), attachment_urls=urls
        )

    async def edit_message(self, chat_id: str, message_id: str, text: str) -> None:
        self.edited.append((message_id, text))

    async def delete_message(self, chat_id: str, message_id: str) -> None:
        self.deleted.append(message_id)

    async def acknowledge(self, message: IncomingMessage, emoji: str) -> None:
        self.acknowledged.append(message.message_id)

    @property
    def uploads(self) -> list[OutgoingMessage]:
        return [m for m in self.sent if m.attachments]

    @property
    def replies(self) -> list[OutgoingMessage]:
        return [m for m in self.sent if m.suppress_embeds]


class FakeClock:
    """Monotonic clock advanced only by the fake sleep."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def json_response(body: object, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(body).encode(), headers={"content-type": "application/json"})


def make_message(text: str, message_id: str = "1000") -> IncomingMessage:
    return IncomingMessage(
        chat_id="42",
        message_id=message_id,
        user_id="7",
        user_display_name="tester",
        text=text,
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        guild_id="9",
    )


@pytest.fixture
def fake_adapter() -> FakeAdapter:
    return FakeAdapter()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def mock_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Factory for an AsyncClient whose requests are answered by ``handler``."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(handler),
            headers={"User-Agent": "sns-relay-tests"},
        )

    return _make
