# python
"""
dropshare/routes.py
aiohttp request handlers: client page, static resources, download, upload,
delete and the WebSocket push channel.

Every mutation handler ends in SyncService.request_resync(), whether it
succeeded or not, so clients always reconverge on the directory's real state.
"""
import asyncio
import logging
import mimetypes
import os
import pathlib
import uuid
from typing import Tuple

from aiohttp import BodyPartReader, WSMsgType, web

from .broadcaster import Subscriber
from .files import InvalidEntryName, remove_entry, resolve_entry, upload_name
from .resources import ResourceCache
from .router import ControlRouter
from .session import Session, iso_ts
from .sync import SyncService
from .units import format_size

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
CACHE_CONTROL = "max-age=3600, public"

CONFIG_KEY = web.AppKey("config", dict)
SYNC_KEY = web.AppKey("sync", SyncService)
RESOURCES_KEY = web.AppKey("resources", ResourceCache)
ROUTER_KEY = web.AppKey("router", ControlRouter)


def _peer(request: web.Request) -> Tuple[str, int]:
    peer = request.transport.get_extra_info("peername") if request.transport else None
    if not peer:
        return (request.remote or "0.0.0.0", 0)
    return (peer[0], peer[1])


def _peer_label(request: web.Request) -> str:
    host, port = _peer(request)
    return f"{host}:{port}"


@web.middleware
async def log_requests(request: web.Request, handler):
    logger.info("REQ:  %s\t%s\t%s", _peer_label(request), request.method, request.path_qs)
    return await handler(request)


async def index(request: web.Request) -> web.Response:
    html = request.app[RESOURCES_KEY].index_html()
    if html is None:
        raise web.HTTPNotFound()
    return web.Response(
        body=html,
        content_type="text/html",
        charset="utf-8",
        headers={"Cache-Control": CACHE_CONTROL},
    )


async def resource(request: web.Request) -> web.Response:
    name = request.match_info["name"]
    res = request.app[RESOURCES_KEY].get(name)
    if res is None:
        raise web.HTTPNotFound()
    logger.info("SEND: %s\t\t%s (%s)", _peer_label(request), name, format_size(res.size))
    return web.Response(
        body=res.data, content_type=res.mime, headers={"Cache-Control": CACHE_CONTROL}
    )


async def download(request: web.Request) -> web.StreamResponse:
    service = request.app[SYNC_KEY]
    name = request.match_info["name"]
    try:
        path = resolve_entry(service.files_dir, name)
    except InvalidEntryName:
        raise web.HTTPBadRequest()

    try:
        f = await asyncio.to_thread(open, path, "rb")
    except OSError as exc:
        logger.warning("SEND failed for %s: %s", name, exc)
        # the client asked for something its view says exists; resend the truth
        service.request_resync()
        raise web.HTTPInternalServerError()

    try:
        size = os.fstat(f.fileno()).st_size
        resp = web.StreamResponse(status=200)
        resp.content_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
        resp.content_length = size
        await resp.prepare(request)
        logger.info("SEND: %s\t\t%s (%s)", _peer_label(request), name, format_size(size))
        while True:
            chunk = await asyncio.to_thread(f.read, CHUNK_SIZE)
            if not chunk:
                break
            await resp.write(chunk)
        await resp.write_eof()
        return resp
    finally:
        f.close()


async def delete(request: web.Request) -> web.Response:
    service = request.app[SYNC_KEY]
    name = request.match_info["name"]
    try:
        path = resolve_entry(service.files_dir, name)
        await asyncio.to_thread(remove_entry, path)
    except InvalidEntryName as exc:
        logger.warning("DEL rejected: %s", exc)
        return web.Response(status=400)
    except OSError as exc:
        logger.warning("DEL failed for %s: %s", name, exc)
        return web.Response(status=500)
    finally:
        service.request_resync()
    logger.info("DEL:  %s", path)
    return web.Response(status=200, content_type="text/html")


async def _store_part(part: BodyPartReader, path: pathlib.Path) -> int:
    f = await asyncio.to_thread(open, path, "wb")
    size = 0
    try:
        with f:
            while True:
                chunk = await part.read_chunk(CHUNK_SIZE)
                if not chunk:
                    break
                await asyncio.to_thread(f.write, chunk)
                size += len(chunk)
    except BaseException:
        await asyncio.to_thread(path.unlink, missing_ok=True)
        raise
    return size


async def upload(request: web.Request) -> web.Response:
    service = request.app[SYNC_KEY]
    peer = _peer_label(request)
    try:
        if not request.content_type.startswith("multipart/"):
            logger.warning("RECV rejected from %s: %s is not multipart", peer, request.content_type)
            return web.Response(status=400)
        reader = await request.multipart()
        while True:
            part = await reader.next()
            if part is None:
                break
            if not isinstance(part, BodyPartReader) or not part.filename:
                continue
            path = resolve_entry(service.files_dir, upload_name(part.filename))
            logger.info("RECV: %s\t\t%s", peer, path.name)
            size = await _store_part(part, path)
            logger.info("RECV: %s\t\t%s done (%s)", peer, path.name, format_size(size))
    except InvalidEntryName as exc:
        logger.warning("RECV rejected from %s: %s", peer, exc)
        return web.Response(status=400)
    except Exception as exc:
        logger.warning("RECV failed from %s: %s", peer, exc)
        return web.Response(status=500)
    finally:
        service.request_resync()
    return web.Response(status=200, content_type="text/html")


async def websocket(request: web.Request) -> web.WebSocketResponse:
    service = request.app[SYNC_KEY]
    config = request.app[CONFIG_KEY]
    router = request.app[ROUTER_KEY]

    ws = web.WebSocketResponse(heartbeat=30.0)
    await ws.prepare(request)

    host, port = _peer(request)
    session = Session(
        session_id=str(uuid.uuid4()),
        remote_ip=host,
        remote_port=port,
        started_ts=iso_ts(),
        _events_file=config["paths"]["events_file"],
    )
    subscriber = Subscriber(ws.send_str, close=ws.close, name=session.session_id)
    session.subscriber = subscriber
    try:
        service.register(subscriber)
        await session.log("session.connect", "connect")
        async for msg in ws:
            if msg.type == WSMsgType.TEXT:
                await router.dispatch(session, msg.data)
            elif msg.type == WSMsgType.BINARY:
                await session.log("control.invalid", "control", raw="<binary frame>")
            elif msg.type == WSMsgType.ERROR:
                logger.warning("WebSocket %s closed with error: %s", session.session_id, ws.exception())
    finally:
        service.unregister(subscriber)
        await session.log(
            "session.close",
            "close",
            duration_ms=session.duration_ms(),
            messages_in=session.messages_in,
            pushes=subscriber.delivered,
        )
    return ws


def setup_routes(app: web.Application) -> None:
    app.router.add_get("/", index)
    app.router.add_get("/res/{name}", resource)
    app.router.add_get("/files/{name}", download)
    app.router.add_get("/delete/{name}", delete)
    app.router.add_post("/upload", upload)
    app.router.add_get("/ws", websocket)
