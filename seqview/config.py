"""
seqview configuration — all environment variables in one place.

Read from environment at import time. Command-line flags override these.
"""

from __future__ import annotations

import os
from pathlib import Path


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        return default


class Config:
    """Runtime settings from environment variables."""

    # Where FilterState and the cursor survive between sessions
    STATE_FILE: Path = Path(os.environ.get("SEQVIEW_STATE_FILE", "~/.seqview/state.json")).expanduser()

    # Events per page for a fresh state file (0 = no paging)
    PAGE_SIZE: int = _int_env("SEQVIEW_PAGE_SIZE", 0)

    # DEBUG shows per-projection stage counts
    LOG_LEVEL: str = os.environ.get("SEQVIEW_LOG_LEVEL", "WARNING").upper()


# Singleton instance
config = Config()
