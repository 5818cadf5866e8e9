"""
`.env` loading.

The elevation API key usually lives in a `.env` file next to the checkout rather than
in the shell. `SIGHTLINE_ENV_FILE` names the file explicitly; otherwise the nearest
`.env` in the working directory or one of its parents is used.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import find_dotenv, load_dotenv


def find_env_file() -> Path | None:
    explicit = os.getenv("SIGHTLINE_ENV_FILE")
    if explicit:
        path = Path(explicit).expanduser().resolve()
        return path if path.is_file() else None

    found = find_dotenv(usecwd=True)
    return Path(found) if found else None


@lru_cache
def load_dotenv_if_present() -> Path | None:
    """Load the `.env` file once; returns its path (or None).

    Variables already set in the process environment are never overridden.
    """
    env_path = find_env_file()
    if env_path is None:
        return None
    load_dotenv(dotenv_path=env_path, override=False)
    return env_path
