"""In-memory admin sessions with a periodic expiry sweep."""

from __future__ import annotations

import logging
import secrets
import threading
import time
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

SESSION_LIFETIME = 3600


class SessionRegistry:
    """In-memory bearer tokens for the admin console.

    Tokens are only expired by ``sweep``; ``validate`` checks presence.
    Nothing is persisted, so a restart logs everybody out.
    """

    def __init__(self, lifetime: int = SESSION_LIFETIME, clock: Callable[[], float] = time.time):
        self.lifetime = lifetime
        self.clock = clock
        self._sessions: Dict[str, Dict[str, float]] = {}
        self._timer: Optional[threading.Timer] = None
        self._sweeping = False

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, token: object) -> bool:
        return token in self._sessions

    def create(self) -> str:
        token = secrets.token_hex(32)
        self._sessions[token] = {"createdAt": self.clock()}
        return token

    def validate(self, token: Optional[str]) -> bool:
        if not token:
            return False
        return token in self._sessions

    def destroy(self, token: Optional[str]) -> None:
        if token:
            self._sessions.pop(token, None)

    def sweep(self) -> int:
        now = self.clock()
        expired = [
            token
            for token, session in list(self._sessions.items())
            if now - session["createdAt"] > self.lifetime
        ]
        for token in expired:
            self._sessions.pop(token, None)
        if expired:
            logger.info("swept expired sessions", extra={"count": len(expired)})
        return len(expired)

    def start_sweeper(self, interval: float) -> None:
        self._sweeping = True
        self._schedule(interval)

    def _schedule(self, interval: float) -> None:
        def run():
            try:
                self.sweep()
            except Exception:
                logger.exception("session sweep failed")
            finally:
                if self._sweeping:
                    self._schedule(interval)

        timer = threading.Timer(interval, run)
        timer.daemon = True
        timer.start()
        self._timer = timer

    def stop_sweeper(self) -> None:
        self._sweeping = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
