"""Runtime switch for the debugging commands."""

from __future__ import annotations

import hashlib
import hmac


class DebugMode:
    """Holds whether debug commands are available.

    Debug mode starts in whatever state the configuration asks for and can only
    move from disabled to enabled, through :meth:`promote`.
    """

    def __init__(self, enabled: bool = False, password_hash: str = "") -> None:
        self._enabled = bool(enabled)
        self._password_hash = password_hash.strip().lower()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def promote(self, password: str) -> bool:
        """Enable debug mode if ``password`` matches; returns the new state."""

        if self._enabled:
            return True
        if not self._password_hash:
            return False
        digest = hashlib.sha256(password.encode("utf-8")).hexdigest()
        if hmac.compare_digest(digest, self._password_hash):
            self._enabled = True
        return self._enabled
