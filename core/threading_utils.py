# core/threading_utils.py
import threading
from contextlib import contextmanager
from core.log import get_logger

# ───────────────────────────────────────────────
# Global Logger
# ───────────────────────────────────────────────
logger = get_logger("threads")

# ───────────────────────────────────────────────
# Read/write lock
# ───────────────────────────────────────────────

class RWLock:
    """
    Many readers or one writer.

    Writers are preferred: once a writer is waiting, new readers block
    until it has acquired and released the lock. Not reentrant.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self):
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self):
        with self._cond:
            if self._readers <= 0:
                raise RuntimeError("release_read() called without a matching acquire_read()")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self):
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self):
        with self._cond:
            if not self._writer:
                raise RuntimeError("release_write() called without a matching acquire_write()")
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self):
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self):
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


# ───────────────────────────────────────────────
# Thread Worker with stop support
# ───────────────────────────────────────────────

class ThreadWorker(threading.Thread):
    """
    Daemon thread around a target that receives its own stop Event.

    The target is expected to loop until the event is set, typically with
    ``while not stop_event.wait(interval): ...``.
    Each worker owns its event, so a worker restarted under the same name
    is never stopped by its predecessor.
    """

    def __init__(self, target, name):
        super().__init__(name=name, daemon=True)
        self._target_func = target
        self._stop_event = threading.Event()

    # --- public API ---
    def stop(self):
        """Signal the thread to stop."""
        self._stop_event.set()

    def run(self):
        try:
            self._target_func(self._stop_event)
        except Exception as e:
            logger.error("Unhandled exception in ThreadWorker '%s': %s", self.name, e, exc_info=True)
        finally:
            logger.debug("ThreadWorker stopped: %s", self.name)
