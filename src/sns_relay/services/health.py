"""HTTP health endpoint for container orchestration."""

from __future__ import annotations

from typing import Callable, Optional

from aiohttp import web

from sns_relay.config import HealthConfig
from sns_relay.log import get_logger

logger = get_logger(__name__)


class HealthServer:
    """Serves ``GET /v1/health``, OK while ``healthy()`` returns True."""

    def __init__(self, config: HealthConfig, healthy: Callable[[], bool]):
        self._config = config
        self._healthy = healthy
        self._runner: Optional[web.AppRunner] = None

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/", self._index)
        app.router.add_get("/v1/health", self._health)
        return app

    async def _index(self, _req: web.Request) -> web.Response:
        return web.Response(text="sns-relay")

    async def _health(self, _req: web.Request) -> web.Response:
        if await self.health_check():
            return web.Response(text="OK")
        return web.Response(text="NOT OK", status=500)

    async def start(self) -> None:
        self._runner = web.AppRunner(self.build_app(), access_log=None)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._config.host, self._config.port)
        await site.start()
        logger.info("health_server_started", host=self._config.host, port=self._config.port)

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        logger.info("health_server_stopped")

    async def health_check(self) -> bool:
        return self._healthy()
