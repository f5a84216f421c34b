# python
"""
dropshare/session.py
Per-connection Session record and JSONL event logging for push-channel clients.
"""
from dataclasses import dataclass, field
import asyncio
import json
import datetime
import pathlib
from typing import Optional, Any

from .broadcaster import Subscriber

_EVENT_LOCK = asyncio.Lock()

def iso_ts():
    """
    Return a timezone-aware UTC ISO timestamp (Z suffix) for logging.
    """
    dt = datetime.datetime.now(datetime.timezone.utc).replace(microsecond=0)
    return dt.isoformat().replace("+00:00", "Z")

def ensure_dir(path: pathlib.Path):
    path.mkdir(parents=True, exist_ok=True)

@dataclass
class Session:
    session_id: str
    remote_ip: str
    remote_port: int
    started_ts: str
    _events_file: str = "logs/events.jsonl"
    subscriber: Optional[Subscriber] = field(default=None, repr=False)
    messages_in: int = 0

    async def log(self, event: str, phase: str, **fields: Any) -> None:
        rec = {
            "ts": iso_ts(),
            "session_id": self.session_id,
            "remote_ip": self.remote_ip,
            "remote_port": self.remote_port,
            "event": event,
            "phase": phase,
            "version": "0.1",
            "payload": fields or {}
        }
        async with _EVENT_LOCK:
            ensure_dir(pathlib.Path(self._events_file).parent)
            with open(self._events_file, "a", encoding="utf-8") as f:
                f.write(json.dumps(rec, ensure_ascii=False) + "\n")

    def duration_ms(self) -> int:
        started = datetime.datetime.fromisoformat(self.started_ts.replace("Z", "+00:00"))
        now = datetime.datetime.now(datetime.timezone.utc)
        return int((now - started).total_seconds() * 1000)
