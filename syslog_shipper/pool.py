"""Process-wide pool of reusable scratch buffers for frame assembly."""

import queue
import threading
from contextlib import contextmanager

DEFAULT_MAX_FREE = 64


class BufferPool:
    """Free list of bytearrays. Running dry or full is never an error."""

    def __init__(self, max_free: int = DEFAULT_MAX_FREE):
        self._free: queue.Queue = queue.Queue(maxsize=max_free)
        self._allocated = 0
        self._count_lock = threading.Lock()

    @property
    def allocated(self) -> int:
        """Number of buffers created because the free list was empty."""
        return self._allocated

    def free_count(self) -> int:
        return self._free.qsize()

    def acquire(self) -> bytearray:
        """Return an empty buffer, reusing a pooled one when available."""
        try:
            buf = self._free.get_nowait()
        except queue.Empty:
            with self._count_lock:
                self._allocated += 1
            return bytearray()
        del buf[:]
        return buf

    def release(self, buf: bytearray):
        try:
            self._free.put_nowait(buf)
        except queue.Full:
            pass

    @contextmanager
    def scratch(self):
        """Lend a buffer for the duration of the block."""
        buf = self.acquire()
        try:
            yield buf
        finally:
            self.release(buf)


_default_pool = BufferPool()


def default_pool() -> BufferPool:
    return _default_pool
