import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from fantasy_disc_golf.exceptions import LockTimeoutError

logger = logging.getLogger(__name__)


class LeagueLock:
    """Single-writer lock around every state-changing league operation."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    @contextmanager
    def hold(self, timeout: float) -> Iterator[None]:
        if not self._lock.acquire(timeout=timeout):
            logger.warning("League lock not acquired within %.1fs", timeout)
            raise LockTimeoutError(timeout)
        try:
            yield
        finally:
            self._lock.release()

    @property
    def locked(self) -> bool:
        return self._lock.locked()


_PROCESS_LOCK = LeagueLock()


def process_lock() -> LeagueLock:
    return _PROCESS_LOCK
