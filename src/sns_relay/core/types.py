"""Shared types and enumerations."""

from __future__ import annotations

from enum import StrEnum


class Platform(StrEnum):
    TWITTER = "twitter"
    INSTAGRAM = "instagram"
    INSTAGRAM_STORY = "instagram-story"
    TIKTOK = "tiktok"

    @property
    def display_name(self) -> str:
        """Name used in the title line of relayed posts."""
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    Platform.TWITTER: "Twitter",
    Platform.INSTAGRAM: "Instagram",
    Platform.INSTAGRAM_STORY: "Instagram",
    Platform.TIKTOK: "TikTok",
}
