"""
Locate and load the deployment's .env file.
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional
import os

from dotenv import find_dotenv, load_dotenv

ENV_FILE_VAR = "DROPSHARE_ENV_FILE"


@lru_cache(maxsize=1)
def load_env() -> Optional[Path]:
    """
    Load settings from a .env file once per process.

    DROPSHARE_ENV_FILE names the file explicitly; otherwise the nearest .env at
    or above the working directory is used. Variables already set in the
    environment are kept. Returns the file that was loaded, or None.
    """
    found = os.environ.get(ENV_FILE_VAR) or find_dotenv(usecwd=True)
    if not found or not Path(found).is_file():
        return None
    load_dotenv(dotenv_path=found, override=False)
    return Path(found)
