"""Response schema of the RapidAPI Instagram stories endpoint."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class StoryUser(BaseModel):
    username: Optional[str] = None
    full_name: Optional[str] = None


class StoryAdditionalData(BaseModel):
    user: Optional[StoryUser] = None


class StoryItem(BaseModel):
    taken_at_date: Optional[datetime] = None
    is_video: Optional[bool] = None
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None


class StoriesData(BaseModel):
    additional_data: Optional[StoryAdditionalData] = None
    count: Optional[int] = None
    items: Optional[list[StoryItem]] = None


class StoriesResponse(BaseModel):
    data: Optional[StoriesData] = None
