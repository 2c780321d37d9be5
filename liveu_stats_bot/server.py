"""HTTP surface exposing the telemetry store as JSON."""

from __future__ import annotations

import contextlib
import logging
from typing import Awaitable, Callable, Optional

from aiohttp import web

from .telemetry import TelemetryStore

LOGGER = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


@web.middleware
async def cors_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        exc.headers["Access-Control-Allow-Origin"] = "*"
        raise
    response.headers["Access-Control-Allow-Origin"] = "*"
    return response


def build_app(store: TelemetryStore) -> web.Application:
    """Create the aiohttp application serving ``GET /stats``."""

    async def handle_stats(request: web.Request) -> web.Response:
        snapshot = await store.snapshot()
        return web.json_response(snapshot.as_dict())

    app = web.Application(middlewares=[cors_middleware])
    app.router.add_get("/stats", handle_stats, allow_head=False)
    return app


class StatsServer:
    """Minimal HTTP server exposing `/stats` for overlays and dashboards."""

    def __init__(self, store: TelemetryStore, host: str, port: int) -> None:
        self._store = store
        self._host = host
        self._port = port
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None

    async def start(self) -> None:
        self._runner = web.AppRunner(build_app(self._store))
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self._host, self._port)
        await self._site.start()
        LOGGER.info(
            "Stats endpoint listening on http://%s:%s/stats", self._host, self._port
        )

    async def stop(self) -> None:
        with contextlib.suppress(Exception):
            if self._site is not None:
                await self._site.stop()
        if self._runner is not None:
            await self._runner.cleanup()
        self._site = None
        self._runner = None
