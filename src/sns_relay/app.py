"""Application orchestrator - wires all components and manages lifecycle."""

from __future__ import annotations

from typing import Optional

import httpx

from sns_relay.config import AppConfig
from sns_relay.core.registry import DownloaderRegistry
from sns_relay.downloaders.instagram_post import InstagramPostDownloader
from sns_relay.downloaders.instagram_story import InstagramStoryDownloader
from sns_relay.downloaders.tiktok import TikTokDownloader
from sns_relay.downloaders.twitter import TwitterDownloader
from sns_relay.log import get_logger
from sns_relay.messenger.base import MessengerAdapter
from sns_relay.pipeline.handler import MessageHandler
from sns_relay.pipeline.orchestrator import SnsPipeline
from sns_relay.services.health import HealthServer

logger = get_logger(__name__)


def create_http_client(config: AppConfig) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        headers={"User-Agent": config.http.user_agent},
        timeout=config.http.timeout,
        follow_redirects=True,
    )


def build_registry(config: AppConfig, client: httpx.AsyncClient) -> DownloaderRegistry:
    """Register a downloader for every provider that has credentials configured."""
    providers = config.providers
    common = {
        "reference_timezone": config.pipeline.reference_timezone,
        "attachment_placeholder": config.pipeline.attachment_placeholder,
        "message_limit": config.pipeline.message_limit,
    }
    registry = DownloaderRegistry()

    if providers.twitter.enabled:
        registry.register(
            TwitterDownloader(
                client,
                api_base=providers.twitter.api_base,
                translate_to=providers.twitter.translate_to,
                **common,
            )
        )

    bd = providers.brightdata
    if bd.api_token:
        registry.register(
            InstagramPostDownloader(
                client,
                api_token=bd.api_token,
                dataset_id=bd.dataset_id,
                api_base=bd.api_base,
                poll_timeout=bd.poll_timeout,
                poll_interval=bd.poll_interval,
                max_wait=bd.max_wait,
                **common,
            )
        )
    else:
        logger.warning("downloader_disabled", platform="instagram", reason="no brightdata api_token")

    rapid_key = providers.rapidapi.api_key
    if rapid_key:
        registry.register(
            InstagramStoryDownloader(
                client, api_key=rapid_key, host=providers.instagram_story.host, **common
            )
        )
        registry.register(
            TikTokDownloader(
                client,
                api_key=rapid_key,
                host=providers.tiktok.host,
                mirror_index=providers.tiktok.mirror_index,
                **common,
            )
        )
    else:
        logger.warning(
            "downloader_disabled",
            platform="instagram-story,tiktok",
            reason="no rapidapi api_key",
        )

    return registry


class SnsRelayApp:
    """Top-level application orchestrator."""

    def __init__(self, config: AppConfig, adapter: Optional[MessengerAdapter] = None):
        self.config = config
        self.http = create_http_client(config)
        self.registry = build_registry(config, self.http)

        if adapter is None:
            from sns_relay.messenger.discord_adapter import DiscordAdapter

            adapter = DiscordAdapter(config.discord)
        self.adapter = adapter

        media_transform = None
        if config.pipeline.convert_heic:
            from sns_relay.media.convert import convert_heic_to_jpeg

            media_transform = convert_heic_to_jpeg

        self.pipeline = SnsPipeline(
            adapter,
            self.registry,
            media_transform=media_transform,
            failure_message=config.pipeline.failure_message,
            ack_emoji=config.pipeline.ack_emoji,
            isolate_links=config.pipeline.isolate_links,
        )
        self.handler = MessageHandler(adapter, self.pipeline, config.pipeline.trigger_prefix)
        self.health = HealthServer(config.health, adapter.is_healthy) if config.health.enabled else None

    async def start(self) -> None:
        """Start the health endpoint, then connect to the chat host."""
        if self.health is not None:
            await self.health.start()

        self.adapter.on_message(self.handler.handle)
        await self.adapter.start()

        logger.info(
            "sns_relay_started",
            platforms=[p.value for p in self.registry.platforms()],
        )

    async def stop(self) -> None:
        """Gracefully shut down all components."""
        try:
            await self.adapter.stop()
        except Exception as e:
            logger.error("adapter_stop_error", error=str(e))

        if self.health is not None:
            await self.health.stop()
        await self.http.aclose()
        logger.info("sns_relay_stopped")
