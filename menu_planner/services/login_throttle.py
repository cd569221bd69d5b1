"""
In-process throttle for failed logins, keyed by (client IP, username).

After `max_failures` failures inside the window the key is locked for
`lockout`. State lives in this process only: restarts and additional
instances each start from an empty map.
"""
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from menu_planner.config import get_settings
from menu_planner.utils.logger import get_logger

logger = get_logger(__name__)

ThrottleKey = Tuple[str, str]


@dataclass
class _Entry:
    failures: int = 0
    first_failure_at: float = 0.0
    locked_until: Optional[float] = None


class LoginThrottle:
    def __init__(
        self,
        max_failures: int = 5,
        lockout_seconds: float = 15 * 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_failures = max_failures
        self.lockout_seconds = lockout_seconds
        self._clock = clock
        self._entries: Dict[ThrottleKey, _Entry] = {}
        self._lock = threading.Lock()

    def retry_after(self, key: ThrottleKey) -> Optional[int]:
        """Seconds until `key` unlocks, or None when it may attempt a login."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.locked_until is None:
                return None
            if now >= entry.locked_until:
                del self._entries[key]
                return None
            return max(1, int(entry.locked_until - now))

    def record_failure(self, key: ThrottleKey) -> bool:
        """Count a failed attempt. Returns True when this failure locked the key."""
        now = self._clock()
        with self._lock:
            self._prune(now)
            entry = self._entries.get(key)
            if entry is None or now - entry.first_failure_at > self.lockout_seconds:
                entry = _Entry(first_failure_at=now)
                self._entries[key] = entry
            entry.failures += 1
            if entry.failures >= self.max_failures and entry.locked_until is None:
                entry.locked_until = now + self.lockout_seconds
                logger.warning(f"Login locked for username={key[1]!r} ip={key[0]} after {entry.failures} failures")
                return True
            return False

    def reset(self, key: ThrottleKey) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _prune(self, now: float) -> None:
        # Drop keys whose lock or failure window has run out
        expired = [
            key for key, entry in self._entries.items()
            if (entry.locked_until is not None and now >= entry.locked_until)
            or (entry.locked_until is None and now - entry.first_failure_at > self.lockout_seconds)
        ]
        for key in expired:
            del self._entries[key]


_settings = get_settings()

login_throttle = LoginThrottle(
    max_failures=_settings.LOGIN_MAX_FAILURES,
    lockout_seconds=_settings.LOGIN_LOCKOUT_MINUTES * 60,
)
