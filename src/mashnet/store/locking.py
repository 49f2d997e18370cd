# mashnet/store/locking.py
import threading
from contextlib import contextmanager


class ReadWriteLock:
    """
    Many readers or one writer.

    The writer may re-acquire the write side and may also take the read side,
    so a commit can run a scan against the store it is mutating. Readers may
    nest freely; there is no writer preference.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer: int | None = None
        self._write_depth = 0

    def _owns_write(self) -> bool:
        return self._writer == threading.get_ident()

    def acquire_read(self) -> None:
        with self._cond:
            if self._owns_write():
                self._write_depth += 1
                return
            while self._writer is not None:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            if self._owns_write():
                self._write_depth -= 1
                return
            if self._readers <= 0:
                raise RuntimeError("release_read without a matching acquire")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            if self._owns_write():
                self._write_depth += 1
                return
            while self._writer is not None or self._readers:
                self._cond.wait()
            self._writer = threading.get_ident()
            self._write_depth = 1

    def release_write(self) -> None:
        with self._cond:
            if not self._owns_write():
                raise RuntimeError("release_write from a thread that does not hold the lock")
            self._write_depth -= 1
            if self._write_depth == 0:
                self._writer = None
                self._cond.notify_all()

    @contextmanager
    def read(self):
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self):
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()
