"""Instagram stories via RapidAPI, grouped into one post per capture day."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

import httpx

from sns_relay.core.errors import ContentError
from sns_relay.core.models import InstagramMetadata, PlatformLink, PostData
from sns_relay.core.types import Platform
from sns_relay.downloaders.base import ProgressFn, SnsDownloader
from sns_relay.downloaders.util import date_tag
from sns_relay.log import get_logger
from sns_relay.schemas.ig_stories import StoriesResponse, StoryItem

logger = get_logger(__name__)

UNKNOWN_DAY = "unknown"


@dataclass
class StoryDay:
    """Media URLs of the stories captured on one reference-timezone day."""

    key: str
    timestamp: Optional[datetime]
    urls: list[str] = field(default_factory=list)


def story_media_url(item: StoryItem) -> Optional[str]:
    # Video stories carry a thumbnail too; only fall back to it without a video
    return item.video_url or item.thumbnail_url or None


def bucket_stories(items: Sequence[StoryItem], tz) -> list[StoryDay]:
    """Group story media by capture day in ``tz``, keeping first-seen order.

    Items without a capture time share the ``unknown`` bucket. Days that end
    up without any media URL are dropped.
    """
    days: dict[str, StoryDay] = {}
    for item in items:
        if item.taken_at_date is not None:
            key = date_tag(item.taken_at_date, tz)
        else:
            logger.warning("ig_story_missing_timestamp", item=item.model_dump())
            key = UNKNOWN_DAY

        day = days.get(key)
        if day is None:
            timestamp = item.taken_at_date if key != UNKNOWN_DAY else None
            day = days[key] = StoryDay(key=key, timestamp=timestamp)

        url = story_media_url(item)
        if url:
            day.urls.append(url)
        else:
            logger.warning("ig_story_missing_media", item=item.model_dump())

    return [day for day in days.values() if day.urls]


class InstagramStoryDownloader(SnsDownloader):
    platform = Platform.INSTAGRAM_STORY
    file_prefix = "ig-story"
    url_pattern = re.compile(
        r"https?://(?:www\.)?instagram\.com/"
        r"(?!(?:reels?|stories|explore|accounts|direct)/)"
        r"([\w.-]{3,})/(?:\?\S*)?(?=\s|$)",
        re.IGNORECASE,
    )

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_key: str,
        host: str = "instagram-scraper-api2.p.rapidapi.com",
        **kwargs,
    ):
        super().__init__(client, **kwargs)
        self._api_key = api_key
        self._host = host

    def create_link_from_match(self, match: re.Match[str]) -> PlatformLink:
        return PlatformLink(
            url=match.group(0),
            metadata=InstagramMetadata(story=True),
            position=match.start(),
        )

    def build_api_request(self, link: PlatformLink) -> httpx.Request:
        return self._client.build_request(
            "GET",
            f"https://{self._host}/v1/stories",
            params={"username_or_id_or_url": link.url},
            headers={"x-rapidapi-host": self._host, "x-rapidapi-key": self._api_key},
        )

    async def fetch_content(
        self, link: PlatformLink, progress: Optional[ProgressFn] = None
    ) -> list[PostData]:
        res = await self._fetch_json(self.build_api_request(link), StoriesResponse)

        if res.data is None or res.data.items is None:
            raise ContentError("No data")
        if not res.data.items:
            raise ContentError("No Instagram stories found")

        username = "Unknown user"
        if res.data.additional_data and res.data.additional_data.user:
            username = res.data.additional_data.user.username or username

        await self._report(progress, f"Downloading {len(res.data.items)} stories...")

        posts = []
        for day in bucket_stories(res.data.items, self.tz):
            logger.debug("ig_story_day", day=day.key, count=len(day.urls))
            files = await self.download_media(day.urls)
            posts.append(
                PostData(
                    source_link=link,
                    author_handle=username,
                    post_id="",
                    timestamp=day.timestamp,
                    files=tuple(files),
                )
            )

        await self._report(progress, "Downloaded!", done=True)
        return posts

    def attachment_filename(self, post: PostData, index: int) -> str:
        ext = post.files[index].extension
        if post.timestamp:
            return f"{self.file_prefix}-{post.author_handle}-{date_tag(post.timestamp, self.tz)}-{index + 1}.{ext}"
        return f"{self.file_prefix}-{post.author_handle}-{index + 1}.{ext}"
