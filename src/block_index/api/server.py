"""
API server exposing the engine's message surface, health and metrics.

Provides HTTP endpoints for:
- POST /v0/messages - Dispatch a JSON Message and return its MessageResponse
- GET /v0/health - Health check endpoint
- GET /metrics - Prometheus metrics endpoint
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from aiohttp import web
from pydantic import ValidationError

from block_index.engine import BlockIndexEngine, Message, MessageResponse, dispatch
from block_index.metrics import generate_metrics

logger = logging.getLogger(__name__)


async def _handle_health(_request: web.Request) -> web.Response:
    """Handle health check endpoint."""
    return web.json_response({"status": "healthy", "service": "block-index-api"})


async def _handle_metrics(_request: web.Request) -> web.Response:
    """Handle Prometheus metrics endpoint."""
    return web.Response(
        body=generate_metrics(),
        content_type="text/plain; version=0.0.4; charset=utf-8",
    )


def _json_response(response: MessageResponse, status: int = 200) -> web.Response:
    return web.Response(text=response.to_json(), status=status, content_type="application/json")


@dataclass(frozen=True, slots=True)
class ApiServerConfig:
    """Configuration for the API server."""

    host: str = "127.0.0.1"
    """Host address to bind to."""

    port: int = 5058
    """Port to listen on."""

    enabled: bool = True
    """Whether the API server is enabled."""


@dataclass(slots=True)
class ApiServer:
    """
    HTTP API server for the block index.

    Hosts that cannot embed the engine send messages here instead.
    Uses aiohttp to handle HTTP protocol details.
    """

    config: ApiServerConfig
    """Server configuration."""

    engine: BlockIndexEngine
    """Engine answering dispatched messages."""

    _runner: web.AppRunner | None = field(default=None, init=False)
    """The aiohttp application runner."""

    _site: web.TCPSite | None = field(default=None, init=False)
    """The TCP site for the server."""

    async def start(self) -> None:
        """Start the API server in the background."""
        if not self.config.enabled:
            logger.info("API server is disabled")
            return

        app = web.Application()
        app.add_routes(
            [
                web.get("/v0/health", _handle_health),
                web.get("/metrics", _handle_metrics),
                web.post("/v0/messages", self._handle_message),
            ]
        )

        self._runner = web.AppRunner(app)
        await self._runner.setup()

        self._site = web.TCPSite(self._runner, self.config.host, self.config.port)
        await self._site.start()

        logger.info(f"API server listening on {self.config.host}:{self.config.port}")

    async def run(self) -> None:
        """
        Run the API server until shutdown.

        This method blocks until stop() is called.
        """
        await self.start()

        # Keep running until stopped
        while self._runner is not None:
            await asyncio.sleep(1)

    def stop(self) -> None:
        """Request graceful shutdown."""
        if self._runner is not None:
            asyncio.create_task(self._async_stop())

    async def _async_stop(self) -> None:
        """Gracefully stop the server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            logger.info("API server stopped")

    async def _handle_message(self, request: web.Request) -> web.Response:
        """
        Handle a dispatched message.

        A body that is not a valid Message gets a 400 with the same
        `{success, error}` shape as handler failures. Everything else is a
        200, including requests the engine rejects.
        """
        body = await request.read()
        try:
            message = Message.model_validate_json(body)
        except ValidationError as exc:
            return _json_response(
                MessageResponse.failure(f"Invalid message: {exc.error_count()} errors"),
                status=400,
            )

        response = await dispatch(self.engine, message)
        return _json_response(response)
