"""
Wire format for the WebSocket push channel.

Server -> client:  {"event": "UPDATE_FILES", "data": [{"name", "type", "size"}, ...]}
Client -> server:  {"event": "REQUEST_UPDATE"}
                   {"event": "CREATE_FOLDER", "data": "<folder name>"}
"""
from functools import lru_cache
from typing import Any, Dict, Optional
import json
import logging

import jsonschema

from .snapshot import Snapshot

logger = logging.getLogger(__name__)

UPDATE_FILES = "UPDATE_FILES"
REQUEST_UPDATE = "REQUEST_UPDATE"
CREATE_FOLDER = "CREATE_FOLDER"

CONTROL_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "$id": "control.schema.json",
    "oneOf": [
        {
            "type": "object",
            "properties": {
                "event": {"const": REQUEST_UPDATE},
                "data": {},
            },
            "required": ["event"],
            "additionalProperties": False,
        },
        {
            "type": "object",
            "properties": {
                "event": {"const": CREATE_FOLDER},
                "data": {"type": "string", "minLength": 1},
            },
            "required": ["event", "data"],
            "additionalProperties": False,
        },
    ],
}

ENTRY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "type": {"type": "string", "enum": ["f", "d"]},
        "size": {"type": "integer", "minimum": 0},
    },
    "required": ["name", "type", "size"],
    "additionalProperties": False,
}

UPDATE_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "$id": "update.schema.json",
    "type": "object",
    "properties": {
        "event": {"const": UPDATE_FILES},
        "data": {"type": "array", "items": ENTRY_SCHEMA},
    },
    "required": ["event", "data"],
    "additionalProperties": False,
}


@lru_cache(maxsize=8)
def encode_update(snapshot: Snapshot) -> str:
    """Serialize a snapshot as an UPDATE_FILES frame (cached per snapshot)."""
    return json.dumps(
        {"event": UPDATE_FILES, "data": snapshot.to_wire()}, ensure_ascii=False
    )


def parse_control(text: str) -> Optional[Dict[str, Any]]:
    """
    Parse and validate a client control frame. Returns None if the frame is
    not JSON or does not match CONTROL_SCHEMA.
    """
    if not text or not text.strip():
        return None
    try:
        obj = json.loads(text)
    except ValueError as e:
        logger.debug("Control frame is not JSON: %s", e)
        return None
    try:
        jsonschema.validate(instance=obj, schema=CONTROL_SCHEMA)
    except jsonschema.ValidationError as e:
        logger.debug("Control frame failed schema validation: %s", e.message)
        return None
    return obj
