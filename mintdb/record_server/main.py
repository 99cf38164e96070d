"""
MintDB Record Server - Main entry point.

This module starts the record server:
- Opens durable storage and the record service
- Serves the HTTP API with uvicorn

Usage:
    python -m mintdb.record_server.main

Configuration is entirely via environment variables.
See config.py for all available settings.

Invariants:
    - Storage is opened before the HTTP server accepts requests
    - Storage is closed only after the HTTP server has stopped

How to change safely:
    - Test the shutdown sequence thoroughly
    - Keep storage lifecycle owned by Server, not by the app
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

import json_log_formatter
import uvicorn

from .api import create_http_app
from .config import ServerConfig
from .handlers import RecordService
from .storage import create_storage_backend

logger = logging.getLogger(__name__)


def setup_logging(config: ServerConfig) -> None:
    """Configure logging based on configuration.

    Args:
        config: Server configuration
    """
    level = getattr(logging, config.observability.log_level.upper(), logging.INFO)

    if config.observability.log_format == "json":
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # Reduce noise from libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


class Server:
    """MintDB server orchestrator.

    Manages the lifecycle of:
    - Storage backend and record service
    - HTTP server

    Example:
        >>> server = Server()
        >>> await server.start()
        >>> # Server is running
        >>> await server.stop()
    """

    def __init__(self, config: ServerConfig | None = None) -> None:
        """Initialize the server.

        Args:
            config: Optional server configuration (loaded from env if not provided)
        """
        self.config = config or ServerConfig.from_env()
        self._running = False
        self._shutdown_event = asyncio.Event()

        # Components (initialized in start())
        self.service: RecordService | None = None
        self.http_server: uvicorn.Server | None = None
        self._serve_task: asyncio.Task | None = None

    async def start(self) -> None:
        """Start the server and block until shutdown is requested."""
        if self._running:
            logger.warning("Server already running")
            return

        logger.info("Starting MintDB record server")
        self.config.log_config()

        try:
            backend = create_storage_backend(self.config.storage)
            self.service = RecordService.open(
                backend, max_record_size=self.config.storage.max_record_size
            )

            app = create_http_app(self.service, self.config)
            self.http_server = uvicorn.Server(
                uvicorn.Config(
                    app,
                    host=self.config.http.host,
                    port=self.config.http.port,
                    log_config=None,
                )
            )
            self._serve_task = asyncio.create_task(self.http_server.serve())

            self._running = True
            logger.info(
                "MintDB record server started",
                extra={"host": self.config.http.host, "port": self.config.http.port},
            )

            shutdown_task = asyncio.create_task(self._shutdown_event.wait())
            await asyncio.wait(
                {self._serve_task, shutdown_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
            shutdown_task.cancel()

        except Exception as e:
            logger.error(f"Server startup failed: {e}", exc_info=True)
            await self.stop()
            raise

    async def stop(self) -> None:
        """Stop the server gracefully."""
        if self.http_server is not None:
            self.http_server.should_exit = True
        if self._serve_task is not None:
            await asyncio.gather(self._serve_task, return_exceptions=True)
            self._serve_task = None

        if self.service is not None:
            self.service.close()
            self.service = None

        if self._running:
            self._running = False
            logger.info("MintDB record server stopped")

    def request_shutdown(self) -> None:
        """Request graceful shutdown."""
        self._shutdown_event.set()


def main() -> None:
    """Main entry point."""
    try:
        config = ServerConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    server = Server(config)

    def handle_signal(sig: int) -> None:
        logger.info(f"Received signal {sig}, initiating shutdown")
        server.request_shutdown()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, handle_signal, sig)

    try:
        loop.run_until_complete(server.start())
    except KeyboardInterrupt:
        pass
    finally:
        loop.run_until_complete(server.stop())
        loop.close()


if __name__ == "__main__":
    main()
