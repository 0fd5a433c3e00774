"""Formatting helpers shared by the platform downloaders."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import urlparse
from zoneinfo import ZoneInfo

from sns_relay.core.types import Platform

DEFAULT_REFERENCE_TIMEZONE = "Asia/Seoul"
DEFAULT_EXTENSION = "jpg"


def file_ext_from_url(url: str) -> str:
    """Extension of the URL path's last segment, ignoring query and fragment."""
    suffix = PurePosixPath(urlparse(url).path).suffix
    return suffix.lstrip(".").lower() or DEFAULT_EXTENSION


def as_aware(value: datetime) -> datetime:
    # Providers send naive timestamps in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def date_tag(value: datetime, tz: ZoneInfo) -> str:
    """``YYMMDD`` of the calendar day ``value`` falls on in ``tz``."""
    return as_aware(value).astimezone(tz).strftime("%y%m%d")


def format_title(
    platform: Platform,
    username: str,
    timestamp: Optional[datetime],
    tz: ZoneInfo,
) -> str:
    """Inline-code title line, e.g. ```231001 someone Twitter Update```."""
    prefix = f"{date_tag(timestamp, tz)} " if timestamp else ""
    return f"`{prefix}{username} {platform.display_name} Update`"
