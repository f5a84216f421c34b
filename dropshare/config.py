# python
"""
dropshare/config.py
Default configuration and environment overrides for the file server.
"""
import copy
import os
import pathlib
from typing import Any, Dict, Optional

from .env import load_env

RES_DIR = pathlib.Path(__file__).resolve().parent / "res"

DEFAULT_CONFIG: Dict[str, Any] = {
    "server": {"host": "0.0.0.0", "port": 8989},
    "paths": {
        "files_dir": "files",
        "res_dir": str(RES_DIR),
        "events_file": "logs/events.jsonl",
    },
    "sync": {
        "read_interval_ms": 200,
        "max_wait_ms": None,
        "send_timeout": 10.0,
        "watch_check_interval": 1.0,
        "watch_backoff_initial": 0.5,
        "watch_backoff_max": 30.0,
    },
    "log_level": "INFO",
    "version": "0.1",
}

# env var -> (section, key, converter); section None means top level
ENV_OVERRIDES = {
    "DROPSHARE_HOST": ("server", "host", str),
    "DROPSHARE_PORT": ("server", "port", int),
    "DROPSHARE_FILES_DIR": ("paths", "files_dir", str),
    "DROPSHARE_RES_DIR": ("paths", "res_dir", str),
    "DROPSHARE_EVENTS_FILE": ("paths", "events_file", str),
    "DROPSHARE_READ_INTERVAL_MS": ("sync", "read_interval_ms", int),
    "DROPSHARE_MAX_WAIT_MS": ("sync", "max_wait_ms", int),
    "DROPSHARE_SEND_TIMEOUT": ("sync", "send_timeout", float),
    "DROPSHARE_LOG_LEVEL": (None, "log_level", str),
}


def _merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def load_config(
    overrides: Optional[Dict[str, Any]] = None, environ: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    """
    Build a config dict: defaults, then DROPSHARE_* environment variables,
    then the caller's overrides (nested dicts are merged, not replaced).
    """
    if environ is None:
        load_env()
        environ = dict(os.environ)
    config = copy.deepcopy(DEFAULT_CONFIG)
    for var, (section, key, convert) in ENV_OVERRIDES.items():
        raw = environ.get(var)
        if raw is None or raw == "":
            continue
        try:
            value = convert(raw)
        except ValueError as exc:
            raise ValueError(f"invalid value for {var}: {raw!r}") from exc
        target = config[section] if section else config
        target[key] = value
    if overrides:
        _merge(config, copy.deepcopy(overrides))
    return config
