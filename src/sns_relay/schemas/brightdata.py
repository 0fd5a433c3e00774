"""Bright Data datasets API: trigger, progress and Instagram post snapshots."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, TypeAdapter

from sns_relay.jobs.polling import JobStatus


class TriggerResponse(BaseModel):
    snapshot_id: Optional[str] = None


class ProgressResponse(BaseModel):
    status: JobStatus
    snapshot_id: Optional[str] = None
    errors: Any = None


class PostContent(BaseModel):
    index: Optional[int] = None
    type: Optional[str] = None  # "Photo" | "Video"
    url: Optional[str] = None


class InstagramPost(BaseModel):
    url: Optional[str] = None
    user_posted: Optional[str] = None
    description: Optional[str] = None
    post_id: Optional[str] = None
    post_content: Optional[list[PostContent]] = None
    timestamp: Optional[datetime] = None


InstagramPostList = TypeAdapter(list[InstagramPost])
