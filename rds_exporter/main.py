"""RDS Capacity Exporter - Entrypoint

Serves /metrics from the snapshot cache and /healthz, /readyz probes. The
cache is refreshed in the background every CACHE_TTL.
"""

import argparse
import asyncio
import dataclasses
import logging
import signal
import sys

from aiohttp import web
from botocore.exceptions import BotoCoreError

from rds_exporter.cache import SnapshotCache
from rds_exporter.config import Settings, parse_duration
from rds_exporter.exposition import CONTENT_TYPE, render
from rds_exporter.extractor import label_names
from rds_exporter.log import setup_logging
from rds_exporter.providers.aws import AWSProvider
from rds_exporter.providers.base import BaseProvider
from rds_exporter.refresher import CacheRefresher

logger = logging.getLogger(__name__)

CACHE = web.AppKey("cache", SnapshotCache)
LABEL_NAMES = web.AppKey("label_names", tuple)
SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


async def handle_healthz(request: web.Request) -> web.Response:
    return web.json_response({"status": "OK"})


async def handle_readyz(request: web.Request) -> web.Response:
    return web.json_response({"status": "OK"})


async def handle_metrics(request: web.Request) -> web.Response:
    # Never calls AWS; serves whatever the last refresh produced.
    snapshot = request.app[CACHE].snapshot()
    body = render(snapshot, request.app[LABEL_NAMES])
    return web.Response(body=body.encode("utf-8"), headers={"Content-Type": CONTENT_TYPE})


def create_app(cache: SnapshotCache, names: tuple[str, ...]) -> web.Application:
    app = web.Application()
    app[CACHE] = cache
    app[LABEL_NAMES] = names
    app.router.add_get("/healthz", handle_healthz)
    app.router.add_get("/readyz", handle_readyz)
    app.router.add_get("/metrics", handle_metrics)
    return app


async def serve(settings: Settings, provider: BaseProvider) -> None:
    cache = SnapshotCache()
    refresher = CacheRefresher(provider, cache, settings)
    app = create_app(cache, label_names(settings.tag_keys))

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in SHUTDOWN_SIGNALS:
        loop.add_signal_handler(sig, stop.set)

    try:
        runner = web.AppRunner(app)
        await runner.setup()
        try:
            site = web.TCPSite(runner, settings.host, settings.port)
            await site.start()
            logger.info("RDS exporter listening on %s:%d", settings.host, settings.port)

            refresher.start()
            await stop.wait()
            logger.info("Shutting down")
        finally:
            await refresher.stop()
            await runner.cleanup()
    finally:
        for sig in SHUTDOWN_SIGNALS:
            loop.remove_signal_handler(sig)


def parse_args(argv: list[str] | None, defaults: Settings) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="rds-exporter", description="Prometheus exporter for AWS RDS capacity"
    )
    parser.add_argument(
        "--port", type=int, default=defaults.port, help="Exporter listen port"
    )
    parser.add_argument(
        "--cache-ttl",
        "--cache_ttl",
        dest="cache_ttl",
        type=parse_duration,
        default=defaults.cache_ttl,
        help="Refresh interval, e.g. 1h, 15m, 90s (default: %(default)ss)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    try:
        settings = Settings.from_env()
        args = parse_args(argv, settings)
        settings = dataclasses.replace(settings, port=args.port, cache_ttl=args.cache_ttl)
        setup_logging(settings.log_level, settings.log_format)
    except ValueError as e:
        print(f"rds-exporter: invalid configuration: {e}", file=sys.stderr)
        return 2

    logger.info(
        "Starting RDS exporter: cache_ttl=%.0fs tags=%s", settings.cache_ttl, list(settings.tag_keys)
    )
    try:
        provider = AWSProvider(settings)
    except BotoCoreError as e:
        logger.error("Unable to load AWS SDK config: %s", e)
        return 1
    if not provider.health_check():
        return 1

    try:
        asyncio.run(serve(settings, provider))
    except OSError as e:
        logger.error("Error starting metric server: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
