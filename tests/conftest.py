# Add project root to sys.path so pytest can import the dropshare package
import sys
from pathlib import Path

import pytest

# Insert project root (parent of this tests/ directory) at front of sys.path
# This makes `import dropshare` work when running `pytest` from the repo root.
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from dropshare.config import load_config  # noqa: E402


@pytest.fixture
def make_config(tmp_path: Path):
    """
    Build an isolated config rooted in tmp_path with a short debounce window.
    Real environment variables are ignored so the host's .env cannot leak in.
    """

    def _make(**sync):
        sync_cfg = {"read_interval_ms": 50, "watch_check_interval": 0.1}
        sync_cfg.update(sync)
        return load_config(
            {
                "server": {"host": "127.0.0.1", "port": 0},
                "paths": {
                    "files_dir": str(tmp_path / "files"),
                    "events_file": str(tmp_path / "logs" / "events.jsonl"),
                },
                "sync": sync_cfg,
            },
            environ={},
        )

    return _make
