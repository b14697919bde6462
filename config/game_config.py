from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Final

# SHA-256 of the built-in debug password.
DEFAULT_DEBUG_HASH: Final = "cf367ea043cf65d7e2a528c6ec689f2ac35ab9a22084a319ed4ee9f3a6734a0d"
DEBUG_HASH_ENV: Final = "SAVE_DESMOND_DEBUG_HASH"
ERROR_LOG_PATH: Final = Path(__file__).with_name("save_desmond_errors.log")


def get_debug_password_hash() -> str:
    h = os.getenv(DEBUG_HASH_ENV)
    if h:
        return h.strip().lower()
    p = Path(__file__).with_name("debug_hash.txt")
    return p.read_text(encoding="utf-8").strip().lower() if p.exists() else DEFAULT_DEBUG_HASH


def log_error(message: str, path: Path | None = None) -> None:
    """Append a timestamped message to the shared error log."""

    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    entry = f"[{timestamp}] {message}\n"
    target = path or ERROR_LOG_PATH
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("a", encoding="utf-8") as fh:
            fh.write(entry)
    except OSError:
        # Logging failures should never interfere with gameplay.
        pass
