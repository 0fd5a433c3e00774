"""Registry of platform downloaders, looked up by platform tag."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sns_relay.core.errors import UnsupportedPlatformError
from sns_relay.core.models import PlatformLink
from sns_relay.core.types import Platform
from sns_relay.log import get_logger

if TYPE_CHECKING:
    from sns_relay.downloaders.base import SnsDownloader

logger = get_logger(__name__)


class DownloaderRegistry:
    """Tracks one downloader per platform, in registration order."""

    def __init__(self) -> None:
        self._downloaders: dict[Platform, SnsDownloader] = {}

    def register(self, downloader: SnsDownloader) -> None:
        self._downloaders[downloader.platform] = downloader
        logger.info("downloader_registered", platform=downloader.platform.value)

    def get(self, platform: Platform) -> SnsDownloader:
        try:
            return self._downloaders[platform]
        except KeyError:
            raise UnsupportedPlatformError(f"Unsupported platform: {platform}") from None

    def all(self) -> list[SnsDownloader]:
        return list(self._downloaders.values())

    def platforms(self) -> list[Platform]:
        return list(self._downloaders.keys())

    def find_links(self, text: str) -> list[PlatformLink]:
        """Links of every registered platform, ordered by where they appear in text."""
        links = [link for downloader in self.all() for link in downloader.find_links(text)]
        # Stable sort keeps registration order for links at the same offset
        return sorted(links, key=lambda link: link.position)
