"""Configuration loader with YAML parsing, env-var interpolation, and Pydantic validation."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

DEFAULT_USER_AGENT = "Private social media downloader Discord bot: https://github.com/sushiibot/sushii-sns"


class DiscordConfig(BaseModel):
    token: str
    channel_whitelist: list[str] = Field(default_factory=list)  # empty = every guild channel
    ignore_bots: bool = True

    @field_validator("channel_whitelist", mode="before")
    @classmethod
    def _split_whitelist(cls, value: object) -> object:
        # Accept "123, 456" from a single env var as well as a YAML list
        if value is None:
            return []
        # A single numeric id arrives from YAML as an int
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        if isinstance(value, list):
            return [str(part) for part in value]
        return value


class PipelineConfig(BaseModel):
    trigger_prefix: str = ""
    failure_message: str = "oops borked the download try again or go download it urself lol sorry 💀"
    ack_emoji: str = "🤓"
    attachment_placeholder: str = "PLS DON'T DELETE ME !!! or it will break the image links"
    reference_timezone: str = "Asia/Seoul"
    message_limit: int = 2000
    isolate_links: bool = False
    convert_heic: bool = True


class HttpConfig(BaseModel):
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = 30.0


class TwitterConfig(BaseModel):
    enabled: bool = True
    api_base: str = "https://api.fxtwitter.com"
    translate_to: str = "en"


class BrightDataConfig(BaseModel):
    api_token: Optional[str] = None
    api_base: str = "https://api.brightdata.com/datasets/v3"
    dataset_id: str = "gd_lk5ns7kz21pck8jpis"
    poll_timeout: float = 10.0  # seconds a snapshot may stay unknown (404)
    poll_interval: float = 0.5
    max_wait: Optional[float] = 300.0  # overall bound while the job reports "running"


class RapidApiConfig(BaseModel):
    api_key: Optional[str] = None


class TikTokConfig(BaseModel):
    host: str = "tiktok-best-experience.p.rapidapi.com"
    # Which of the play_addr CDN mirrors to download; meaning of the ordering is undocumented
    mirror_index: int = Field(default=1, ge=0)


class InstagramStoryConfig(BaseModel):
    host: str = "instagram-scraper-api2.p.rapidapi.com"


class ProvidersConfig(BaseModel):
    twitter: TwitterConfig = Field(default_factory=TwitterConfig)
    brightdata: BrightDataConfig = Field(default_factory=BrightDataConfig)
    rapidapi: RapidApiConfig = Field(default_factory=RapidApiConfig)
    tiktok: TikTokConfig = Field(default_factory=TikTokConfig)
    instagram_story: InstagramStoryConfig = Field(default_factory=InstagramStoryConfig)


class HealthConfig(BaseModel):
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 8080


class AppConfig(BaseModel):
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    discord: DiscordConfig
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    health: HealthConfig = Field(default_factory=HealthConfig)


_ENV_VAR_PATTERN = re.compile(r"\$\{(\w+)\}")


def _interpolate_env_vars(text: str) -> str:
    """Replace ${VAR_NAME} patterns with environment variable values."""

    def _replace(match: re.Match) -> str:
        value = os.environ.get(match.group(1))
        if value is None:
            return match.group(0)
        return value

    return _ENV_VAR_PATTERN.sub(_replace, text)


def _drop_unresolved(data: object) -> object:
    """Turn values that still read ``${VAR}`` into None so optional secrets stay unset."""
    if isinstance(data, dict):
        return {k: _drop_unresolved(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_drop_unresolved(v) for v in data]
    if isinstance(data, str) and _ENV_VAR_PATTERN.fullmatch(data):
        return None
    return data


def load_config(config_path: str | Path = "config.yaml", env_path: str | Path = ".env") -> AppConfig:
    """Load and validate configuration from YAML file with env-var interpolation."""
    env_file = Path(env_path)
    if env_file.exists():
        load_dotenv(env_file)

    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    raw_text = config_file.read_text(encoding="utf-8")
    data = yaml.safe_load(_interpolate_env_vars(raw_text)) or {}

    return AppConfig(**_drop_unresolved(data))
