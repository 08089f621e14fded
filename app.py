#!/usr/bin/env python3
"""
Main entry point for the shortlink registry service.

Concurrency: one process, async I/O. The record store serializes every
mutation with an in-process lock, so the service runs a single uvicorn
worker.

Usage:
    python app.py

Environment variables:
    STORAGE_BACKEND - memory, file or redis
    STORAGE_PATH - Directory for the file backend
    REDIS_URL - Redis connection URL for the redis backend
    BASE_URL - Base URL for short links
    DEFAULT_VALIDITY_MINUTES - Validity when a request omits it (default 30)
    SWEEP_INTERVAL_SECONDS - Seconds between expired-record sweeps (0 disables)
    PORT - Port to listen on
    LOG_LEVEL - Logging level
"""

import asyncio
import signal
import sys
from contextlib import asynccontextmanager, suppress

import uvicorn
from fastapi import FastAPI

from config import Config, load_config
from shortlink.common.logging_config import setup_logging
from shortlink.errors import RegistryError
from shortlink.service import RegistryService
from shortlink.shortcode import ShortCodeGenerator
from shortlink.storage import RecordStore, RedisBlobBackend, create_backend
from web_app import create_app


def build_service(config: Config, logger) -> RegistryService:
    """Wire backend, store, generator and service from configuration."""
    backend = create_backend(
        config.storage_backend,
        storage_path=config.storage_path,
        redis_url=config.redis_url,
        logger=logger.getChild("storage"),
    )
    store = RecordStore(backend, key=config.storage_key, logger=logger.getChild("store"))
    generator = ShortCodeGenerator(
        default_length=config.short_code_length,
        max_attempts=config.max_generation_attempts,
    )
    return RegistryService(
        store=store,
        short_code_generator=generator,
        base_url=config.base_url,
        path_prefix=config.path_prefix,
        default_validity_minutes=config.default_validity_minutes,
        logger=logger.getChild("service"),
    )


async def sweep_periodically(service: RegistryService, interval_seconds: int, logger) -> None:
    """Remove expired records every interval until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            removed = await service.sweep_expired()
            logger.debug(f"Periodic sweep removed {removed} records")
        except RegistryError as e:
            # A failed sweep is retried on the next tick
            logger.error(f"Periodic sweep failed: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    config = app.state.config
    logger = app.state.logger

    logger.info("Starting shortlink registry...")
    logger.info(f"Storage backend: {config.storage_backend}")

    service = build_service(config, logger)
    if isinstance(service.store.backend, RedisBlobBackend):
        await service.store.backend.connect()
    app.state.service = service

    sweeper = None
    if config.sweep_interval_seconds > 0:
        sweeper = asyncio.create_task(
            sweep_periodically(service, config.sweep_interval_seconds, logger)
        )

    logger.info("Service started successfully")

    yield

    logger.info("Shutting down shortlink registry...")

    if sweeper:
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper

    await service.close()

    logger.info("Service stopped")


def create_app_for(config: Config, logger) -> FastAPI:
    """Create the app with a lifespan that builds the service at startup."""
    app = create_app(service_instance=None, config=config)
    app.state.logger = logger
    app.router.lifespan_context = lifespan
    return app


def main():
    """Main entry point."""
    config = load_config()

    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    logger.info("Shortlink Registry")
    logger.info(f"Configuration: {config.model_dump()}")

    app = create_app_for(config, logger)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        workers=config.workers,
        log_level=config.log_level.lower(),
        access_log=True,
    )

    server = uvicorn.Server(uvicorn_config)

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        server.should_exit = True

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        logger.info(f"Starting server on {config.host}:{config.port}")
        server.run()
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
