"""HTTP server for health checks and queue status."""

from collections.abc import Callable

import structlog
from aiohttp import web

from threadwise.config.models import ServerConfig
from threadwise.infrastructure.event_queue import EventQueue


class HTTPServer:
    """HTTP server exposing liveness and queue status.

    This server provides endpoints for:
    - GET /healthz: Kubernetes liveness probe
    - GET /api/v1/status: Intake queue occupancy and in-flight replies

    Args:
        config: Server configuration containing host and port.
        event_queue: EventQueue whose counters are reported.
        logger: Structured logger for logging.
        in_flight: Returns the number of replies being generated.
    """

    def __init__(
        self,
        config: ServerConfig,
        event_queue: EventQueue,
        logger: structlog.BoundLogger,
        in_flight: Callable[[], int] | None = None,
    ) -> None:
        self.config = config
        self._event_queue = event_queue
        self._logger = logger
        self._in_flight = in_flight
        self._app: web.Application | None = None
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    @property
    def is_running(self) -> bool:
        """Return True if the server is running."""
        return self._site is not None

    @property
    def actual_port(self) -> int:
        """Return the actual port the server is listening on.

        Raises:
            RuntimeError: If the server is not running.
        """
        if self._site is None:
            raise RuntimeError("Server is not running")
        server = getattr(self._site, "_server", None)
        if server is None:
            raise RuntimeError("Server is not running")
        sockets = getattr(server, "sockets", None)
        if sockets:
            return sockets[0].getsockname()[1]
        raise RuntimeError("No sockets available")

    def create_app(self) -> web.Application:
        """Create and return the aiohttp Application."""
        app = web.Application()
        app.router.add_get("/healthz", self._handle_health_check)
        app.router.add_get("/api/v1/status", self._handle_status)
        return app

    async def start(self) -> None:
        """Start the HTTP server."""
        self._app = self.create_app()
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self.config.host, self.config.port)
        await self._site.start()
        self._logger.info(
            "HTTP server started",
            host=self.config.host,
            port=self.actual_port,
        )

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            self._app = None
            self._logger.info("HTTP server stopped")

    async def _handle_health_check(self, request: web.Request) -> web.Response:
        return web.json_response({"status": "ok"})

    async def _handle_status(self, request: web.Request) -> web.Response:
        """Handle GET /api/v1/status requests.

        Returns:
            JSON response with pending, processing, capacity and in_flight.
        """
        in_flight = self._in_flight() if self._in_flight is not None else 0
        return web.json_response(
            {
                "pending": self._event_queue.pending_count,
                "processing": self._event_queue.processing_count,
                "capacity": self._event_queue.capacity,
                "in_flight": in_flight,
            }
        )
