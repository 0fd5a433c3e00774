"""Pipeline data model: links, media files and resolved posts."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from sns_relay.core.types import Platform


@dataclass(frozen=True, slots=True)
class TwitterMetadata:
    username: str
    post_id: str


@dataclass(frozen=True, slots=True)
class TikTokMetadata:
    video_id: str


@dataclass(frozen=True, slots=True)
class InstagramMetadata:
    """Instagram links carry nothing beyond the platform tag."""

    story: bool = False


LinkMetadata = Union[TwitterMetadata, TikTokMetadata, InstagramMetadata]


@dataclass(frozen=True, slots=True)
class PlatformLink:
    """A detected post URL plus the metadata parsed out of it."""

    url: str
    metadata: LinkMetadata
    # Offset of the match in the scanned text, used to merge platforms in text order
    position: int = field(default=0, compare=False)

    @property
    def platform(self) -> Platform:
        match self.metadata:
            case TwitterMetadata():
                return Platform.TWITTER
            case TikTokMetadata():
                return Platform.TIKTOK
            case InstagramMetadata(story=True):
                return Platform.INSTAGRAM_STORY
            case InstagramMetadata():
                return Platform.INSTAGRAM
        raise TypeError(f"Unknown link metadata: {self.metadata!r}")


@dataclass(frozen=True, slots=True)
class MediaFile:
    extension: str  # without the dot, e.g. "jpg", "mp4"
    data: bytes


@dataclass(frozen=True, slots=True)
class PostData:
    """Resolved content of one logical post."""

    source_link: PlatformLink
    author_handle: str
    post_id: str
    original_text: str = ""
    translated_text: Optional[str] = None
    translated_language: Optional[str] = None
    timestamp: Optional[datetime] = None
    files: tuple[MediaFile, ...] = ()

    @property
    def platform(self) -> Platform:
        return self.source_link.platform


@dataclass(frozen=True, slots=True)
class ProgressUpdate:
    text: str
    done: bool = False
