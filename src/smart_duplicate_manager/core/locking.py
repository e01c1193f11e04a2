"""Re-entrant advisory lock allowing a single scan per process."""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class ScanLock:
    """
    Mutex with an owner and a reference count.

    The owning thread may acquire it again; every acquire needs a matching
    release. Other threads are refused (non-blocking) until the count drops
    back to zero.
    """

    def __init__(self):
        self._mutex = threading.Lock()
        self._owner: int | None = None
        self._count = 0

    @property
    def held(self) -> bool:
        """Whether any thread currently holds the lock."""
        with self._mutex:
            return self._count > 0

    @property
    def depth(self) -> int:
        """Current re-entrancy depth."""
        with self._mutex:
            return self._count

    def acquire(self) -> bool:
        """Try to take the lock; returns False if another thread holds it."""
        me = threading.get_ident()
        with self._mutex:
            if self._count and self._owner != me:
                return False
            self._owner = me
            self._count += 1
            return True

    def release(self) -> None:
        """Release one level of ownership."""
        me = threading.get_ident()
        with self._mutex:
            if not self._count or self._owner != me:
                raise RuntimeError("Scan lock released by a thread that does not hold it")
            self._count -= 1
            if self._count == 0:
                self._owner = None

    @contextmanager
    def hold(self) -> Iterator[bool]:
        """
        Context manager around acquire/release.

        Yields:
            True if the lock was taken, False if another scan is running
        """
        acquired = self.acquire()
        if not acquired:
            logger.debug("Scan lock busy")
        try:
            yield acquired
        finally:
            if acquired:
                self.release()
