"""Response schema of the fxtwitter status API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class TweetAuthor(BaseModel):
    screen_name: str
    name: Optional[str] = None


class TweetMedia(BaseModel):
    type: str = "photo"  # "photo" | "video" | "gif"
    url: str


class TweetMediaCollection(BaseModel):
    all: list[TweetMedia] = Field(default_factory=list)


class TweetTranslation(BaseModel):
    text: str
    source_lang: Optional[str] = None
    source_lang_en: Optional[str] = None


class Tweet(BaseModel):
    id: str
    text: str = ""
    author: TweetAuthor
    created_timestamp: Optional[int] = None
    media: Optional[TweetMediaCollection] = None
    translation: Optional[TweetTranslation] = None


class TweetResponse(BaseModel):
    code: int
    message: str = ""
    tweet: Optional[Tweet] = None
