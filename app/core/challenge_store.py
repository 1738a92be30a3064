import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Optional

from app.core.siwe import Challenge

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class StoredChallenge:
    """A challenge with the time it was handed out"""
    challenge: Challenge
    created_at: float

    def age(self, now: float) -> float:
        return now - self.created_at

    def is_expired(self, ttl_seconds: float, now: float) -> bool:
        return self.age(now) > ttl_seconds


class ChallengeStore:
    """
    In-memory store of outstanding sign-in challenges keyed by nonce.

    Owned by the application lifespan, one instance per process. Entries do
    not survive a restart; clients simply request a new challenge.
    All access goes through one lock so concurrent sign-ins and the periodic
    sweep never observe a half-consumed entry.
    """

    def __init__(self, clock: Clock = time.time):
        self._clock = clock
        self._entries: Dict[str, StoredChallenge] = {}
        self._lock = Lock()

    def now(self) -> float:
        return self._clock()

    def put(self, challenge: Challenge) -> StoredChallenge:
        entry = StoredChallenge(challenge=challenge, created_at=self._clock())
        with self._lock:
            if challenge.nonce in self._entries:
                logger.warning("Nonce collision, replacing outstanding challenge")
            self._entries[challenge.nonce] = entry
        return entry

    def get(self, nonce: str) -> Optional[StoredChallenge]:
        with self._lock:
            return self._entries.get(nonce)

    def delete(self, nonce: str) -> bool:
        with self._lock:
            return self._entries.pop(nonce, None) is not None

    def delete_if_current(self, nonce: str, challenge: Challenge) -> bool:
        """
        Atomically remove ``nonce`` only if it still maps to ``challenge``.

        Returns False when another caller consumed or replaced the entry
        first, which makes consumption at-most-once.
        """
        with self._lock:
            entry = self._entries.get(nonce)
            if entry is None or entry.challenge is not challenge:
                return False
            del self._entries[nonce]
            return True

    def sweep_expired(self, ttl_seconds: float) -> int:
        """Drop every entry older than ``ttl_seconds``, return how many."""
        now = self._clock()
        with self._lock:
            expired = [
                nonce for nonce, entry in self._entries.items()
                if entry.is_expired(ttl_seconds, now)
            ]
            for nonce in expired:
                del self._entries[nonce]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, nonce: object) -> bool:
        with self._lock:
            return nonce in self._entries
