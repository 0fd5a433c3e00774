"""TikTok videos via RapidAPI."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

import httpx

from sns_relay.core.errors import ContentError, MetadataError
from sns_relay.core.models import MediaFile, PlatformLink, PostData, TikTokMetadata
from sns_relay.core.types import Platform
from sns_relay.downloaders.base import ProgressFn, SnsDownloader
from sns_relay.log import get_logger
from sns_relay.schemas.tiktok import TikTokPostResponse

logger = get_logger(__name__)


class TikTokDownloader(SnsDownloader):
    platform = Platform.TIKTOK
    file_prefix = "tiktok"
    url_pattern = re.compile(
        r"https?://(?:www\.)?tiktok\.com/@[\w.-]+/video/(?P<id>\d+)",
        re.IGNORECASE,
    )

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_key: str,
        host: str = "tiktok-best-experience.p.rapidapi.com",
        mirror_index: int = 1,
        **kwargs,
    ):
        super().__init__(client, **kwargs)
        self._api_key = api_key
        self._host = host
        self.mirror_index = mirror_index

    def create_link_from_match(self, match: re.Match[str]) -> PlatformLink:
        video_id = match.groupdict().get("id")
        if not video_id:
            raise MetadataError(f"No video ID in TikTok URL: {match.group(0)}")
        return PlatformLink(
            url=match.group(0),
            metadata=TikTokMetadata(video_id=video_id),
            position=match.start(),
        )

    def build_api_request(self, link: PlatformLink) -> httpx.Request:
        meta = link.metadata
        if not isinstance(meta, TikTokMetadata):
            raise TypeError(f"not a TikTok link: {link.url}")
        return self._client.build_request(
            "GET",
            f"https://{self._host}/video/{meta.video_id}",
            headers={"x-rapidapi-host": self._host, "x-rapidapi-key": self._api_key},
        )

    def select_mirror(self, urls: list[str]) -> str:
        """Pick the configured CDN mirror, or the last one when fewer exist."""
        return urls[min(self.mirror_index, len(urls) - 1)]

    async def fetch_content(
        self, link: PlatformLink, progress: Optional[ProgressFn] = None
    ) -> list[PostData]:
        meta = link.metadata
        if not isinstance(meta, TikTokMetadata):
            raise TypeError(f"not a TikTok link: {link.url}")

        res = await self._fetch_json(self.build_api_request(link), TikTokPostResponse)

        detail = res.data.aweme_detail if res.data else None
        play_addr = detail.video.play_addr if detail and detail.video else None
        if detail is None or play_addr is None or play_addr.url_list is None:
            raise ContentError("No data")
        if not play_addr.url_list:
            raise ContentError("No TikTok videos urls found")

        await self._report(progress, "Downloading tiktoky...")
        url = self.select_mirror(play_addr.url_list)
        logger.debug("tiktok_downloading", url=url, mirrors=len(play_addr.url_list))

        (downloaded,) = await self.download_media([url])
        # Mirror URLs carry no usable extension
        file = MediaFile(extension="mp4", data=downloaded.data)

        timestamp = None
        if detail.create_time:
            timestamp = datetime.fromtimestamp(detail.create_time, tz=timezone.utc)

        await self._report(progress, "Downloaded!", done=True)

        return [
            PostData(
                source_link=link,
                author_handle=(detail.author.unique_id if detail.author else None) or "Unknown user",
                post_id=meta.video_id,
                timestamp=timestamp,
                files=(file,),
            )
        ]
