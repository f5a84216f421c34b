# python
"""
dropshare/router.py
Control-message router for the push channel: validates client frames and
dispatches them to handlers.
"""
import logging
from typing import Optional, Dict, Any

from .protocol import CREATE_FOLDER, REQUEST_UPDATE, parse_control
from .session import Session
from .sync import SyncService

logger = logging.getLogger(__name__)


class ControlRouter:
    def __init__(self, service: SyncService):
        self.service = service

    async def dispatch(self, session: Session, raw: str) -> Optional[str]:
        """
        Dispatch a single text frame. Returns the handled event name, or None
        if the frame was invalid or its handler failed. Never raises for bad
        client input.
        """
        session.messages_in += 1
        message: Optional[Dict[str, Any]] = parse_control(raw)
        if message is None:
            logger.warning("Ignoring invalid control frame from %s", session.session_id)
            await session.log("control.invalid", "control", raw=(raw or "")[:256])
            return None

        event = message["event"]
        data = message.get("data")
        await session.log("control.input", "control", control=event)

        try:
            if event == REQUEST_UPDATE:
                from .handlers.request_update import run as request_update_run

                await request_update_run(self.service, session, data)
                return event
            if event == CREATE_FOLDER:
                from .handlers.create_folder import run as create_folder_run

                await create_folder_run(self.service, session, data)
                return event
        except Exception as exc:
            logger.exception("Control handler for %s failed", event)
            await session.log("control.error", "control", control=event, error=str(exc))
            return None

        # unreachable while CONTROL_SCHEMA and the branches above agree
        logger.warning("No handler for control event %s", event)
        return None
