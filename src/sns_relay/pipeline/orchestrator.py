"""Drives every post link found in a chat message through its downloader.

Links are handled one after another. For each resolved post the media is
uploaded first, so the host hands back durable attachment URLs, and only
then are the content messages referencing those URLs sent.
"""

from __future__ import annotations

import asyncio
from contextlib import aclosing
from dataclasses import replace
from typing import TYPE_CHECKING, AsyncIterator, Callable, Optional, Sequence

from sns_relay.core.errors import MetadataError
from sns_relay.core.models import MediaFile, PlatformLink, PostData
from sns_relay.core.registry import DownloaderRegistry
from sns_relay.log import get_logger
from sns_relay.messenger.base import MessengerAdapter
from sns_relay.messenger.models import IncomingMessage, OutgoingMessage
from sns_relay.pipeline.progress import StatusMessage

if TYPE_CHECKING:
    from sns_relay.downloaders.base import ProgressFn, SnsDownloader

logger = get_logger(__name__)

MediaTransform = Callable[[Sequence[MediaFile]], list[MediaFile]]

DEFAULT_FAILURE_MESSAGE = "oops borked the download try again or go download it urself lol sorry 💀"


class SnsPipeline:
    def __init__(
        self,
        adapter: MessengerAdapter,
        registry: DownloaderRegistry,
        *,
        media_transform: Optional[MediaTransform] = None,
        failure_message: str = DEFAULT_FAILURE_MESSAGE,
        ack_emoji: str = "🤓",
        isolate_links: bool = False,
    ):
        self._adapter = adapter
        self._registry = registry
        self._media_transform = media_transform
        self._failure_message = failure_message
        self._ack_emoji = ack_emoji
        self._isolate_links = isolate_links

    def find_links(self, text: str) -> list[PlatformLink]:
        return self._registry.find_links(text)

    async def posts(
        self,
        links: Sequence[PlatformLink],
        progress: Optional[ProgressFn] = None,
    ) -> AsyncIterator[tuple[SnsDownloader, PostData]]:
        """Fetch links in order, yielding each post before the next fetch starts."""
        for link in links:
            downloader = self._registry.get(link.platform)
            logger.debug("sns_fetch_start", platform=link.platform.value, url=link.url)
            for post in await downloader.fetch_content(link, progress):
                if self._media_transform is not None and post.files:
                    files = await asyncio.to_thread(self._media_transform, post.files)
                    post = replace(post, files=tuple(files))
                yield downloader, post

    async def deliver(
        self, downloader: SnsDownloader, post: PostData, message: IncomingMessage
    ) -> None:
        """Upload the post's media, then send the text that links to it."""
        durable_urls: list[str] = []
        for batch in downloader.build_attachment_batches(post, message.chat_id):
            sent = await self._adapter.send_message(batch)
            durable_urls.extend(sent.attachment_urls)

        for content in downloader.build_content_messages(
            post, durable_urls, message.chat_id, reply_to_message_id=message.message_id
        ):
            await self._adapter.send_message(content)

        logger.info(
            "sns_post_delivered",
            platform=post.platform.value,
            author=post.author_handle,
            post_id=post.post_id,
            files=len(post.files),
        )

    async def handle(self, message: IncomingMessage) -> bool:
        """Process one chat message; returns False when it holds no post links."""
        try:
            links = self.find_links(message.text)
        except MetadataError as e:
            logger.warning("sns_link_invalid", error=str(e), message_id=message.message_id)
            await self._report_failure(message)
            return True

        if not links:
            return False

        logger.debug(
            "sns_links_found",
            message_id=message.message_id,
            requester=message.user_display_name,
            urls=[link.url for link in links],
        )

        await self._acknowledge(message)

        status = StatusMessage(self._adapter, message.chat_id, message.message_id)
        try:
            if self._isolate_links:
                for link in links:
                    await self._run([link], message, status)
            else:
                await self._run(links, message, status)
        finally:
            try:
                await status.retract()
            except Exception as e:
                logger.warning("sns_status_retract_failed", error=str(e))

        return True

    async def _run(
        self,
        links: Sequence[PlatformLink],
        message: IncomingMessage,
        status: StatusMessage,
    ) -> None:
        try:
            async with aclosing(self.posts(links, status)) as posts:
                async for downloader, post in posts:
                    await self.deliver(downloader, post, message)
        except Exception as e:
            logger.exception(
                "sns_pipeline_failed",
                error=str(e),
                error_type=type(e).__name__,
                message_id=message.message_id,
            )
            await self._report_failure(message)

    async def _report_failure(self, message: IncomingMessage) -> None:
        await self._adapter.send_message(
            OutgoingMessage(chat_id=message.chat_id, text=self._failure_message)
        )

    async def _acknowledge(self, message: IncomingMessage) -> None:
        try:
            await self._adapter.acknowledge(message, self._ack_emoji)
        except Exception as e:
            logger.warning("sns_ack_failed", error=str(e), message_id=message.message_id)
