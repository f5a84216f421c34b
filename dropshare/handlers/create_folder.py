# python
"""
dropshare/handlers/create_folder.py
Handler for CREATE_FOLDER: create the directory, then let the normal resync
path propagate it. Nothing is pushed synchronously.
"""
import asyncio
import logging

from dropshare.files import InvalidEntryName, make_folder, resolve_entry

logger = logging.getLogger(__name__)


async def run(service, session, name):
    try:
        path = resolve_entry(service.files_dir, name)
        await asyncio.to_thread(make_folder, path)
    except (InvalidEntryName, OSError) as exc:
        logger.warning("MKDIR failed for %r: %s", name, exc)
        await session.log("folder.error", "control", name=name, error=str(exc))
        return False
    finally:
        service.request_resync()
    logger.info("MKDIR: %s", path)
    return True
