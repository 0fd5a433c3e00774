"""Response schema of the RapidAPI TikTok video endpoint."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class TikTokAuthor(BaseModel):
    unique_id: Optional[str] = None


class PlayAddr(BaseModel):
    url_list: Optional[list[str]] = None


class TikTokVideo(BaseModel):
    play_addr: Optional[PlayAddr] = None


class AwemeDetail(BaseModel):
    author: Optional[TikTokAuthor] = None
    video: Optional[TikTokVideo] = None
    create_time: Optional[int] = None


class TikTokData(BaseModel):
    aweme_detail: Optional[AwemeDetail] = None
    status_code: Optional[int] = None


class TikTokPostResponse(BaseModel):
    status: Optional[str] = None
    data: Optional[TikTokData] = None
