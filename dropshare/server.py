# python
"""
dropshare/server.py
aiohttp file server: exposes one directory over HTTP and keeps every
WebSocket client's listing in sync with it.
"""
import asyncio
import argparse
import logging
import pathlib
import sys
from typing import Any, Dict, Optional

from aiohttp import web

from .config import load_config
from .resources import ResourceCache
from .router import ControlRouter
from .routes import (
    CONFIG_KEY,
    RESOURCES_KEY,
    ROUTER_KEY,
    SYNC_KEY,
    log_requests,
    setup_routes,
)
from .sync import SyncService
from .watcher import WatchError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%m/%d/%Y %H:%M:%S"


def _ensure_dirs(config: Dict[str, Any]) -> None:
    pathlib.Path(config["paths"]["files_dir"]).mkdir(parents=True, exist_ok=True)
    pathlib.Path(config["paths"]["events_file"]).parent.mkdir(parents=True, exist_ok=True)


async def _sync_lifecycle(app: web.Application):
    service = app[SYNC_KEY]
    await service.start()
    yield
    await service.stop()


async def _close_subscribers(app: web.Application) -> None:
    await app[SYNC_KEY].broadcaster.close_all()


def create_app(config: Dict[str, Any], watch: bool = True) -> web.Application:
    """
    Build the aiohttp application. The SyncService is started and stopped with
    the application (cleanup context), so a directory that cannot be watched
    fails the runner's setup.
    """
    _ensure_dirs(config)
    service = SyncService.from_config(config, watch=watch)
    app = web.Application(middlewares=[log_requests])
    app[CONFIG_KEY] = config
    app[SYNC_KEY] = service
    app[RESOURCES_KEY] = ResourceCache(pathlib.Path(config["paths"]["res_dir"]))
    app[ROUTER_KEY] = ControlRouter(service)
    app.cleanup_ctx.append(_sync_lifecycle)
    app.on_shutdown.append(_close_subscribers)
    setup_routes(app)
    return app


def _log_uncaught(loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
    logger.error(
        "=============== Uncaught exception! =============== %s",
        context.get("message", ""),
        exc_info=context.get("exception"),
    )


async def start_server(config: Optional[Dict[str, Any]] = None):
    config = load_config(config)
    asyncio.get_running_loop().set_exception_handler(_log_uncaught)
    host = config["server"]["host"]
    port = config["server"]["port"]

    app = create_app(config)
    runner = web.AppRunner(app, access_log=None)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    try:
        await site.start()
    except OSError as exc:
        logger.error("Failed to bind to port %s: %s", port, exc)
        await runner.cleanup()
        raise

    # Derive the actual bound address/port so callers (and tests) can connect
    # when port=0 (ephemeral).
    actual_host = host
    actual_port = port
    addresses = runner.addresses
    if addresses:
        actual_host, actual_port = addresses[0][0], addresses[0][1]
        if actual_host in ("0.0.0.0", "", None, "::"):
            actual_host = "127.0.0.1"

    print(f"Listening on {actual_host}:{actual_port}", flush=True)
    try:
        # block forever until cancelled (e.g., Ctrl+C)
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="dropshare")
    parser.add_argument("--host")
    parser.add_argument("--port", type=int)
    parser.add_argument("--files-dir")
    parser.add_argument("--read-interval-ms", type=int)
    parser.add_argument("--log-level")
    args = parser.parse_args(argv)

    overrides: Dict[str, Any] = {"server": {}, "paths": {}, "sync": {}}
    if args.host is not None:
        overrides["server"]["host"] = args.host
    if args.port is not None:
        overrides["server"]["port"] = args.port
    if args.files_dir is not None:
        overrides["paths"]["files_dir"] = args.files_dir
    if args.read_interval_ms is not None:
        overrides["sync"]["read_interval_ms"] = args.read_interval_ms
    if args.log_level is not None:
        overrides["log_level"] = args.log_level

    level = load_config(overrides)["log_level"]
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )
    try:
        asyncio.run(start_server(overrides))
    except KeyboardInterrupt:
        print("shutting down")
    except (WatchError, OSError) as exc:
        logger.error("Startup failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
