"""Status message that mirrors a downloader's progress updates."""

from __future__ import annotations

from typing import Optional

from sns_relay.core.models import ProgressUpdate
from sns_relay.messenger.base import MessengerAdapter
from sns_relay.messenger.models import OutgoingMessage, SentMessage


class StatusMessage:
    """Progress sink: sent on the first update, edited after, deleted when done."""

    def __init__(
        self,
        adapter: MessengerAdapter,
        chat_id: str,
        reply_to_message_id: Optional[str] = None,
    ):
        self._adapter = adapter
        self._chat_id = chat_id
        self._reply_to = reply_to_message_id
        self._sent: Optional[SentMessage] = None

    @property
    def active(self) -> bool:
        return self._sent is not None

    async def __call__(self, update: ProgressUpdate) -> None:
        if update.done:
            await self.retract()
            return

        if self._sent is None:
            self._sent = await self._adapter.send_message(
                OutgoingMessage(
                    chat_id=self._chat_id,
                    text=update.text,
                    reply_to_message_id=self._reply_to,
                    suppress_mentions=True,
                )
            )
        else:
            await self._adapter.edit_message(self._chat_id, self._sent.message_id, update.text)

    async def retract(self) -> None:
        if self._sent is None:
            return
        sent, self._sent = self._sent, None
        await self._adapter.delete_message(sent.chat_id, sent.message_id)
