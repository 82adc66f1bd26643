"""Gogs webhook receiver implementation using aiohttp.

This module implements the HTTP endpoint Gogs posts push, create and
pull_request deliveries to. Deliveries are unauthenticated machine-to-machine
calls; the receiver only validates the event header and hands the body to
the dispatcher.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from aiohttp import web

from ..config import ReceiverSettings
from .dispatcher import WebhookDispatcher
from .models import ALTERNATE_EVENT_HEADER, EVENT_HEADER, FULL_PATH

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Webhook Server
# ---------------------------------------------------------------------------


class WebhookServer:
    """Receives Gogs webhooks and triggers re-indexing.

    The dispatcher may block while owners re-index, so every delivery runs
    in the event loop's default executor.

    Attributes:
        dispatcher: Routes deliveries to the matching source owners
        settings: Receiver settings (listen address and port)
        app: aiohttp web application
        runner: aiohttp app runner
        site: aiohttp TCP site

    Example:
        >>> server = WebhookServer(dispatcher, ReceiverSettings(listen_port=8080))
        >>> await server.start()
        >>> # Server running...
        >>> await server.stop()
    """

    def __init__(
        self,
        dispatcher: WebhookDispatcher,
        settings: Optional[ReceiverSettings] = None,
    ):
        self.dispatcher = dispatcher
        self.settings = settings or ReceiverSettings()

        self.app = web.Application()
        self._setup_routes()

        self.runner: Optional[web.AppRunner] = None
        self.site: Optional[web.TCPSite] = None

    def _setup_routes(self) -> None:
        self.app.router.add_post("/" + FULL_PATH, self.handle_webhook)
        self.app.router.add_get("/health", self.health_check)

    async def handle_webhook(self, request: web.Request) -> web.Response:
        """Handle an incoming Gogs webhook.

        Args:
            request: aiohttp web request

        Returns:
            Plain text response (200 ``ok`` or 400 with the reason)
        """
        event_key = request.headers.get(EVENT_HEADER)
        if event_key is None:
            event_key = request.headers.get(ALTERNATE_EVENT_HEADER)
        body = await request.read()

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, self.dispatcher.dispatch, event_key, body)

        logger.info(
            f"Webhook delivery answered with {result.status}",
            extra={"event_type": event_key, "status": result.status, "reindexed": result.reindexed},
        )
        return web.Response(status=result.status, text=result.text, content_type="text/plain")

    async def health_check(self, request: web.Request) -> web.Response:
        return web.json_response({"status": "healthy", "path": "/" + FULL_PATH})

    async def start(self) -> None:
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()

        self.site = web.TCPSite(
            self.runner,
            self.settings.listen_host,
            self.settings.listen_port,
        )
        await self.site.start()

        logger.info(
            f"Webhook receiver listening on {self.settings.listen_host}:{self.settings.listen_port}",
            extra={
                "host": self.settings.listen_host,
                "port": self.settings.listen_port,
                "root_url": self.settings.root_url,
            },
        )

    async def stop(self) -> None:
        logger.info("Stopping webhook receiver...")
        if self.site:
            await self.site.stop()
        if self.runner:
            await self.runner.cleanup()
        logger.info("Webhook receiver stopped")


__all__ = ["WebhookServer"]
