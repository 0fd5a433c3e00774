"""Abstract downloader shared by every supported platform."""

from __future__ import annotations

import asyncio
import json
import re
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, ClassVar, Optional, Sequence, TypeVar
from zoneinfo import ZoneInfo

import httpx
from pydantic import BaseModel, ValidationError

from sns_relay.core.errors import FetchError, ParseError
from sns_relay.core.models import MediaFile, PlatformLink, PostData, ProgressUpdate
from sns_relay.core.types import Platform
from sns_relay.downloaders.util import DEFAULT_REFERENCE_TIMEZONE, file_ext_from_url, format_title
from sns_relay.log import get_logger
from sns_relay.messenger.models import Attachment, OutgoingMessage
from sns_relay.pipeline.chunking import (
    MAX_ATTACHMENTS_PER_MESSAGE,
    MAX_MESSAGE_LENGTH,
    chunk_list,
    join_message_bodies,
)

logger = get_logger(__name__)

ProgressFn = Callable[[ProgressUpdate], Awaitable[None]]
ModelT = TypeVar("ModelT", bound=BaseModel)

ATTACHMENT_PLACEHOLDER = "PLS DON'T DELETE ME !!! or it will break the image links"


class SnsDownloader(ABC):
    """Base class for all platform downloaders.

    Subclasses set ``platform``, ``url_pattern`` and ``file_prefix`` and
    implement link parsing and content fetching. Instances hold no per-request
    state and are shared by every message the bot handles.
    """

    platform: ClassVar[Platform]
    url_pattern: ClassVar[re.Pattern[str]]
    file_prefix: ClassVar[str]

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        reference_timezone: str = DEFAULT_REFERENCE_TIMEZONE,
        attachment_placeholder: str = ATTACHMENT_PLACEHOLDER,
        message_limit: int = MAX_MESSAGE_LENGTH,
    ):
        self._client = client
        self.tz = ZoneInfo(reference_timezone)
        self._attachment_placeholder = attachment_placeholder
        self._message_limit = message_limit

    # -- link extraction ----------------------------------------------------

    def find_links(self, text: str) -> list[PlatformLink]:
        """All links of this platform in ``text``, in order of appearance."""
        links = [self.create_link_from_match(m) for m in self.url_pattern.finditer(text)]
        if links:
            logger.debug("links_found", platform=self.platform.value, urls=[link.url for link in links])
        return links

    @abstractmethod
    def create_link_from_match(self, match: re.Match[str]) -> PlatformLink:
        ...

    # -- fetching -----------------------------------------------------------

    @abstractmethod
    def build_api_request(self, link: PlatformLink) -> httpx.Request:
        """Build the first API request for a link."""
        ...

    @abstractmethod
    async def fetch_content(
        self, link: PlatformLink, progress: Optional[ProgressFn] = None
    ) -> list[PostData]:
        """Resolve a link into zero or more posts with their media downloaded."""
        ...

    async def _fetch_json(self, request: httpx.Request, model: type[ModelT]) -> ModelT:
        try:
            response = await self._client.send(request)
        except httpx.HTTPError as e:
            raise FetchError(f"request to {request.url} failed: {e}") from e

        if not response.is_success:
            logger.error(
                "api_request_failed",
                platform=self.platform.value,
                url=str(request.url),
                status_code=response.status_code,
                body=response.text,
            )
            raise FetchError(
                f"{self.platform.display_name} API returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return model.model_validate(response.json())
        except (ValidationError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(
                "api_response_invalid",
                platform=self.platform.value,
                url=str(request.url),
                error=str(e),
            )
            raise ParseError(f"invalid {self.platform.display_name} API response") from e

    async def download_media(self, urls: Sequence[str]) -> list[MediaFile]:
        """Download every URL concurrently; results follow the input order."""
        tasks = [asyncio.create_task(self._download_one(url)) for url in urls]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

    async def _download_one(self, url: str) -> MediaFile:
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            raise FetchError(f"download of {url} failed: {e}") from e
        if not response.is_success:
            raise FetchError(
                f"download of {url} returned {response.status_code}",
                status_code=response.status_code,
            )
        return MediaFile(extension=file_ext_from_url(url), data=response.content)

    @staticmethod
    async def _report(progress: Optional[ProgressFn], text: str, done: bool = False) -> None:
        if progress is not None:
            await progress(ProgressUpdate(text=text, done=done))

    # -- message building ---------------------------------------------------

    def attachment_filename(self, post: PostData, index: int) -> str:
        file = post.files[index]
        return f"{self.file_prefix}-{post.author_handle}-{post.post_id}-{index + 1}.{file.extension}"

    def build_attachment_batches(self, post: PostData, chat_id: str) -> list[OutgoingMessage]:
        """Group the post's files into upload messages of at most 10 files each."""
        attachments = [
            Attachment(data=file.data, filename=self.attachment_filename(post, i))
            for i, file in enumerate(post.files)
        ]
        return [
            OutgoingMessage(
                chat_id=chat_id,
                text=self._attachment_placeholder,
                attachments=batch,
            )
            for batch in chunk_list(attachments, MAX_ATTACHMENTS_PER_MESSAGE)
        ]

    def canonical_url(self, post: PostData) -> str:
        return post.source_link.url

    def format_title(self, post: PostData) -> str:
        return format_title(self.platform, post.author_handle, post.timestamp, self.tz)

    def build_content_messages(
        self,
        post: PostData,
        durable_urls: Sequence[str],
        chat_id: str,
        reply_to_message_id: Optional[str] = None,
    ) -> list[OutgoingMessage]:
        """Title, canonical link and the uploaded media URLs, split to fit the limit."""
        header = f"{self.format_title(post)}\n<{self.canonical_url(post)}>"
        bodies = join_message_bodies(durable_urls, header=header, limit=self._message_limit)
        return [
            OutgoingMessage(
                chat_id=chat_id,
                text=body,
                reply_to_message_id=reply_to_message_id,
                suppress_embeds=True,
                suppress_mentions=True,
            )
            for body in bodies
        ]
