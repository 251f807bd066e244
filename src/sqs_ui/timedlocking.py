import time
import threading
import logging

logger = logging.getLogger(__name__)

ACQUIRE_TIMEOUT = 30


class TimedLock:
    """Mutex that warns when acquisition or hold time crosses a threshold.

    Usage: ``with lock('operation_name'):``
    """

    def __init__(self, warn_threshold=1.0):
        self._lock = threading.Lock()
        self.warn_threshold = warn_threshold

    def __call__(self, name):
        return _TimedContext(name, self.warn_threshold, self._lock.acquire, self._lock.release)


class TimedRWLock:
    """Readers-writer lock with the same timing diagnostics as TimedLock.

    Any number of readers may hold the lock at once. A waiting writer blocks
    new readers so a steady read load cannot starve it.

    Usage: ``with lock.read('name'):`` / ``with lock.write('name'):``
    """

    def __init__(self, warn_threshold=1.0):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0
        self.warn_threshold = warn_threshold

    def read(self, name):
        return _TimedContext(name, self.warn_threshold, self._acquire_read, self._release_read)

    def write(self, name):
        return _TimedContext(name, self.warn_threshold, self._acquire_write, self._release_write)

    def _acquire_read(self, timeout):
        with self._cond:
            ok = self._cond.wait_for(lambda: not self._writer and not self._writers_waiting, timeout)
            if ok:
                self._readers += 1
            return ok

    def _release_read(self):
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def _acquire_write(self, timeout):
        with self._cond:
            self._writers_waiting += 1
            try:
                ok = self._cond.wait_for(lambda: not self._writer and self._readers == 0, timeout)
            finally:
                self._writers_waiting -= 1
            if ok:
                self._writer = True
            else:
                self._cond.notify_all()
            return ok

    def _release_write(self):
        with self._cond:
            self._writer = False
            self._cond.notify_all()


class _TimedContext:
    def __init__(self, name, warn_threshold, acquire, release):
        self.name = name
        self.warn_threshold = warn_threshold
        self._acquire = acquire
        self._release = release
        self._start = None

    def __enter__(self):
        start = time.monotonic()
        acquired = self._acquire(timeout=ACQUIRE_TIMEOUT)
        duration = time.monotonic() - start

        if not acquired:
            logger.error(f"[{self.name}] Lock acquisition timeout after {ACQUIRE_TIMEOUT}s!")
            raise TimeoutError(f"Lock {self.name} blocked >{ACQUIRE_TIMEOUT}s")
        elif duration > self.warn_threshold:
            logger.warning(f"[{self.name}] Lock took {duration:.2f}s to acquire")

        self._start = time.monotonic()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.monotonic() - self._start
        if duration > self.warn_threshold:
            logger.warning(f"[{self.name}] Lock held for {duration:.2f}s")
        self._release()
