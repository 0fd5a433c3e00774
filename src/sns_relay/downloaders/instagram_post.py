"""Instagram posts and reels via the Bright Data datasets API (job based)."""

from __future__ import annotations

import re
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from sns_relay.core.errors import ContentError, ProtocolError
from sns_relay.core.models import InstagramMetadata, PlatformLink, PostData
from sns_relay.core.types import Platform
from sns_relay.downloaders.base import ProgressFn, SnsDownloader
from sns_relay.jobs.polling import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_TIMEOUT,
    JobEndpoints,
    JobPoller,
    JobStatus,
)
from sns_relay.log import get_logger
from sns_relay.schemas.brightdata import (
    InstagramPost,
    InstagramPostList,
    ProgressResponse,
    TriggerResponse,
)

logger = get_logger(__name__)


class BrightDataEndpoints(JobEndpoints):
    """Trigger, progress and snapshot endpoints of one Bright Data dataset."""

    def __init__(self, client: httpx.AsyncClient, api_token: str, dataset_id: str, api_base: str):
        self._client = client
        self._dataset_id = dataset_id
        self._api_base = api_base.rstrip("/")
        self._headers = {"Authorization": f"Bearer {api_token}"}

    def submit_request(self, payload: Any) -> httpx.Request:
        return self._client.build_request(
            "POST",
            f"{self._api_base}/trigger",
            params={"dataset_id": self._dataset_id, "include_errors": "true"},
            headers=self._headers,
            json=payload,
        )

    def parse_job_id(self, body: Any) -> Optional[str]:
        return TriggerResponse.model_validate(body).snapshot_id

    def status_request(self, job_id: str) -> httpx.Request:
        return self._client.build_request(
            "GET", f"{self._api_base}/progress/{job_id}", headers=self._headers
        )

    def parse_status(self, body: Any) -> JobStatus:
        return ProgressResponse.model_validate(body).status

    def result_request(self, job_id: str) -> httpx.Request:
        return self._client.build_request(
            "GET",
            f"{self._api_base}/snapshot/{job_id}",
            params={"format": "json"},
            headers=self._headers,
        )


class InstagramPostDownloader(SnsDownloader):
    platform = Platform.INSTAGRAM
    file_prefix = "ig"
    url_pattern = re.compile(
        r"https?://(?:www\.)?instagram\.com/(?:([\w.]+)/reels?/|(?:p|reels?|tv)/)([\w-]+)/?",
        re.IGNORECASE,
    )

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_token: str,
        dataset_id: str,
        api_base: str = "https://api.brightdata.com/datasets/v3",
        poll_timeout: float = DEFAULT_POLL_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_wait: Optional[float] = None,
        poller: Optional[JobPoller] = None,
        **kwargs,
    ):
        super().__init__(client, **kwargs)
        self.endpoints = BrightDataEndpoints(client, api_token, dataset_id, api_base)
        self.poller = poller or JobPoller(
            client,
            self.endpoints,
            timeout=poll_timeout,
            interval=poll_interval,
            max_wait=max_wait,
        )

    def create_link_from_match(self, match: re.Match[str]) -> PlatformLink:
        return PlatformLink(
            url=match.group(0),
            metadata=InstagramMetadata(),
            position=match.start(),
        )

    def build_api_request(self, link: PlatformLink) -> httpx.Request:
        return self.endpoints.submit_request([{"url": link.url}])

    async def fetch_snapshot(self, snapshot_id: str) -> InstagramPost:
        body = await self.poller.retrieve(snapshot_id)
        try:
            posts = InstagramPostList.validate_python(body)
        except ValidationError as e:
            logger.error("ig_snapshot_invalid", snapshot_id=snapshot_id, error=str(e))
            raise ProtocolError(f"invalid snapshot {snapshot_id}", job_id=snapshot_id) from e

        if not posts:
            raise ContentError("No Instagram posts found")

        # One URL submitted, one post back
        return posts[0]

    async def fetch_content(
        self, link: PlatformLink, progress: Optional[ProgressFn] = None
    ) -> list[PostData]:
        snapshot_id = await self.poller.submit([{"url": link.url}])

        await self._report(progress, "Waiting for IG data...")
        logger.debug("ig_waiting_for_snapshot", snapshot_id=snapshot_id)
        await self.poller.wait_until_ready(snapshot_id)

        await self._report(progress, "Downloading images...")
        post = await self.fetch_snapshot(snapshot_id)

        if not post.post_content:
            raise ContentError("No Instagram post content found")

        media_urls = [m.url for m in post.post_content if m.url]
        if not media_urls:
            raise ContentError("Instagram post has no media URLs")

        logger.debug("ig_downloading_media", snapshot_id=snapshot_id, count=len(media_urls))
        files = await self.download_media(media_urls)

        await self._report(progress, "Downloaded!", done=True)

        source_link = link
        if post.url and post.url != link.url:
            source_link = PlatformLink(url=post.url, metadata=link.metadata, position=link.position)

        return [
            PostData(
                source_link=source_link,
                author_handle=post.user_posted or "Unknown user",
                post_id=post.post_id or "Unknown ID",
                original_text=post.description or "",
                timestamp=post.timestamp,
                files=tuple(files),
            )
        ]
