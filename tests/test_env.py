# python
"""
tests/test_env.py
.env loading: explicit file via DROPSHARE_ENV_FILE, real environment wins.
"""
import os
from pathlib import Path

import pytest

from dropshare.env import ENV_FILE_VAR, load_env


@pytest.fixture
def fresh_env(monkeypatch):
    # register both names so monkeypatch removes whatever load_env adds
    for name in ("DROPSHARE_FROM_FILE", "DROPSHARE_ALREADY_SET"):
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)
    load_env.cache_clear()
    yield monkeypatch
    load_env.cache_clear()


def test_explicit_env_file_is_loaded(tmp_path: Path, fresh_env) -> None:
    env_file = tmp_path / "custom.env"
    env_file.write_text("DROPSHARE_FROM_FILE=yes\nDROPSHARE_ALREADY_SET=file\n")
    fresh_env.setenv(ENV_FILE_VAR, str(env_file))
    fresh_env.setenv("DROPSHARE_ALREADY_SET", "process")

    assert load_env() == env_file
    assert os.environ["DROPSHARE_FROM_FILE"] == "yes"
    assert os.environ["DROPSHARE_ALREADY_SET"] == "process"


def test_missing_explicit_file(tmp_path: Path, fresh_env) -> None:
    fresh_env.setenv(ENV_FILE_VAR, str(tmp_path / "nope.env"))
    assert load_env() is None
