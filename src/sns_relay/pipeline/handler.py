"""Message handler: filters incoming messages and hands them to the pipeline."""

from __future__ import annotations

from sns_relay.log import get_logger
from sns_relay.messenger.base import MessengerAdapter
from sns_relay.messenger.models import IncomingMessage, OutgoingMessage
from sns_relay.pipeline.orchestrator import SnsPipeline

logger = get_logger(__name__)


class MessageHandler:
    """Entry point registered on the messenger adapter."""

    def __init__(
        self,
        adapter: MessengerAdapter,
        pipeline: SnsPipeline,
        trigger_prefix: str = "",
    ):
        self._adapter = adapter
        self._pipeline = pipeline
        self._trigger_prefix = trigger_prefix

    async def handle(self, message: IncomingMessage) -> None:
        text = message.text.strip()
        if not text:
            return

        logger.debug("message_received", message_id=message.message_id, chat_id=message.chat_id)

        if text == "ping":
            await self._adapter.send_message(
                OutgoingMessage(
                    chat_id=message.chat_id,
                    text="pong",
                    reply_to_message_id=message.message_id,
                )
            )
            return

        if self._trigger_prefix and not text.startswith(self._trigger_prefix):
            return

        await self._pipeline.handle(message)
