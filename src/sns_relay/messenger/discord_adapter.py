"""Discord messenger adapter using discord.py v2+."""

from __future__ import annotations

import asyncio
import io
from datetime import datetime, timezone
from typing import Any

import discord

from sns_relay.config import DiscordConfig
from sns_relay.log import get_logger
from sns_relay.messenger.base import MessengerAdapter
from sns_relay.messenger.models import IncomingMessage, OutgoingMessage, SentMessage

logger = get_logger(__name__)

_Sendable = (discord.TextChannel, discord.Thread, discord.DMChannel, discord.VoiceChannel)


class DiscordAdapter(MessengerAdapter):
    """Discord bot adapter using discord.py."""

    def __init__(self, config: DiscordConfig):
        super().__init__()
        self.config = config
        intents = discord.Intents.default()
        intents.message_content = True
        intents.guild_messages = True
        self._client = discord.Client(intents=intents)
        self._task: asyncio.Task[Any] | None = None
        self._ready = asyncio.Event()

        @self._client.event
        async def on_ready() -> None:
            logger.info("discord_bot_ready", user=str(self._client.user))
            self._ready.set()

        @self._client.event
        async def on_message(message: discord.Message) -> None:
            if not self._accepts(message):
                return
            await self._on_discord_message(message)

    def _accepts(self, message: discord.Message) -> bool:
        if message.author == self._client.user:
            return False
        if self.config.ignore_bots and message.author.bot:
            return False
        # Guild channels only
        if message.guild is None:
            return False
        whitelist = self.config.channel_whitelist
        return not whitelist or str(message.channel.id) in whitelist

    async def start(self) -> None:
        if not self.config.token:
            raise ValueError("Discord bot token not configured")

        self._task = asyncio.create_task(self._client.start(self.config.token))
        try:
            await asyncio.wait_for(self._ready.wait(), timeout=30)
        except asyncio.TimeoutError:
            logger.warning("discord_ready_timeout")

        logger.info("discord_adapter_started", whitelist=self.config.channel_whitelist)

    async def stop(self) -> None:
        await self._client.close()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except (asyncio.CancelledError, Exception):
                pass
        logger.info("discord_adapter_stopped")

    def is_healthy(self) -> bool:
        return self._task is not None and not self._client.is_closed()

    async def _get_channel(self, chat_id: str) -> Any:
        channel = self._client.get_channel(int(chat_id))
        if channel is None:
            channel = await self._client.fetch_channel(int(chat_id))
        if not isinstance(channel, _Sendable):
            raise ValueError(f"Channel {chat_id} cannot receive messages")
        return channel

    async def send_message(self, message: OutgoingMessage) -> SentMessage:
        channel = await self._get_channel(message.chat_id)

        files = [
            discord.File(io.BytesIO(att.data), filename=att.filename)
            for att in message.attachments
        ]
        kwargs: dict[str, Any] = {"content": message.text or None}
        if files:
            kwargs["files"] = files
        if message.suppress_embeds:
            kwargs["suppress_embeds"] = True
        if message.suppress_mentions:
            kwargs["allowed_mentions"] = discord.AllowedMentions.none()
        if message.reply_to_message_id:
            kwargs["reference"] = discord.MessageReference(
                message_id=int(message.reply_to_message_id),
                channel_id=int(message.chat_id),
                fail_if_not_exists=False,
            )

        sent = await channel.send(**kwargs)
        return SentMessage(
            chat_id=message.chat_id,
            message_id=str(sent.id),
            attachment_urls=[att.url for att in sent.attachments],
        )

    async def edit_message(self, chat_id: str, message_id: str, text: str) -> None:
        channel = await self._get_channel(chat_id)
        await channel.get_partial_message(int(message_id)).edit(content=text)

    async def delete_message(self, chat_id: str, message_id: str) -> None:
        channel = await self._get_channel(chat_id)
        await channel.get_partial_message(int(message_id)).delete()

    async def acknowledge(self, message: IncomingMessage, emoji: str) -> None:
        channel = await self._get_channel(message.chat_id)
        # Embed suppression needs the full message, a partial one cannot edit flags
        try:
            original = await channel.fetch_message(int(message.message_id))
        except discord.HTTPException as e:
            logger.warning("discord_ack_fetch_failed", error=str(e), message_id=message.message_id)
            return

        results = await asyncio.gather(
            original.edit(suppress=True),
            original.add_reaction(emoji),
            self._trigger_typing(channel),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                logger.warning("discord_ack_failed", error=str(result), message_id=message.message_id)

    @staticmethod
    async def _trigger_typing(channel: Any) -> None:
        await channel.typing()

    async def _on_discord_message(self, message: discord.Message) -> None:
        if not self._message_callback:
            return

        incoming = IncomingMessage(
            chat_id=str(message.channel.id),
            message_id=str(message.id),
            user_id=str(message.author.id),
            user_display_name=message.author.display_name,
            text=message.content or "",
            timestamp=message.created_at or datetime.now(timezone.utc),
            guild_id=str(message.guild.id) if message.guild else None,
        )

        try:
            await self._message_callback(incoming)
        except Exception as e:
            logger.error(
                "discord_handler_error", error=str(e), channel_id=str(message.channel.id)
            )
