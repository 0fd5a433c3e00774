"""Twitter/X posts via the fxtwitter API."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

import httpx

from sns_relay.core.errors import ContentError, FetchError
from sns_relay.core.models import PlatformLink, PostData, TwitterMetadata
from sns_relay.core.types import Platform
from sns_relay.downloaders.base import ProgressFn, SnsDownloader
from sns_relay.log import get_logger
from sns_relay.schemas.fxtwitter import TweetMedia, TweetResponse

logger = get_logger(__name__)


class TwitterDownloader(SnsDownloader):
    platform = Platform.TWITTER
    file_prefix = "twitter"
    url_pattern = re.compile(
        r"https?://(?:(?:www|m|mobile)\.)?"
        r"(?:twitter\.com|x\.com)"
        r"/(\w+)/status/(\d+)(/(?:photo|video)/\d)?/?(?:\?\S+)?(?:#\S+)?",
        re.IGNORECASE,
    )

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_base: str = "https://api.fxtwitter.com",
        translate_to: str = "en",
        **kwargs,
    ):
        super().__init__(client, **kwargs)
        self._api_base = api_base.rstrip("/")
        self._translate_to = translate_to

    def create_link_from_match(self, match: re.Match[str]) -> PlatformLink:
        return PlatformLink(
            url=match.group(0),
            metadata=TwitterMetadata(username=match.group(1), post_id=match.group(2)),
            position=match.start(),
        )

    def build_api_request(self, link: PlatformLink) -> httpx.Request:
        meta = link.metadata
        if not isinstance(meta, TwitterMetadata):
            raise TypeError(f"not a Twitter link: {link.url}")
        url = f"{self._api_base}/{meta.username}/status/{meta.post_id}"
        if self._translate_to:
            url += f"/{self._translate_to}"
        return self._client.build_request("GET", url)

    async def fetch_content(
        self, link: PlatformLink, progress: Optional[ProgressFn] = None
    ) -> list[PostData]:
        res = await self._fetch_json(self.build_api_request(link), TweetResponse)

        if res.code != 200:
            raise FetchError(f"Failed to fetch tweet: {res.message}", status_code=res.code)
        if res.tweet is None:
            raise ContentError(f"Tweet not found: {res.message}")

        tweet = res.tweet
        media_urls = [_original_quality_url(m) for m in (tweet.media.all if tweet.media else [])]
        if media_urls:
            await self._report(progress, f"Downloading {len(media_urls)} files...")

        files = await self.download_media(media_urls)

        timestamp = None
        if tweet.created_timestamp:
            timestamp = datetime.fromtimestamp(tweet.created_timestamp, tz=timezone.utc)

        await self._report(progress, "Downloaded!", done=True)

        return [
            PostData(
                source_link=link,
                author_handle=tweet.author.screen_name,
                post_id=tweet.id,
                original_text=tweet.text,
                translated_text=tweet.translation.text if tweet.translation else None,
                translated_language=(
                    tweet.translation.source_lang_en or tweet.translation.source_lang
                    if tweet.translation
                    else None
                ),
                timestamp=timestamp,
                files=tuple(files),
            )
        ]

    def canonical_url(self, post: PostData) -> str:
        return f"https://x.com/{post.author_handle}/status/{post.post_id}"


def _original_quality_url(media: TweetMedia) -> str:
    if media.type == "photo":
        return f"{media.url}?name=orig"
    return media.url
