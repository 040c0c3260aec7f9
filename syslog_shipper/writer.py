"""SyslogWriter: lazily connected, thread-safe sender of syslog frames."""

import os
import socket
import threading

from syslog_shipper.dial import dial as default_dial
from syslog_shipper.errors import CloseError, DialError, WriteError
from syslog_shipper.framer import build_frame, local_now
from syslog_shipper.pool import default_pool
from syslog_shipper.severity import classify


class SyslogWriter:
    """Writes pre-formatted log lines to a syslog receiver.

    The connection is dialed on first use and re-dialed once whenever a send
    fails. Severity detection and framing happen outside the lock so that
    concurrent callers only serialize on the socket itself.

    Args:
        network: ``tcp``, ``udp``, ``unix``, ``unixgram`` (and the 4/6 variants).
        address: ``host:port`` or a filesystem path starting with ``/``.
        hostname: HOST field for networked frames. Resolved on first connect
            when empty: the machine hostname for local sockets, the local
            endpoint of the connection otherwise.
        tag: TAG field of every frame.
        dial: ``(network, address) -> connection`` hook.
        pid: PID field; defaults to this process.
        machine_hostname: defaults to ``socket.gethostname()``.
    """

    def __init__(self, network: str = "udp", address: str = "", hostname: str = "",
                 tag: str = "", dial=None, pid: int | str | None = None,
                 machine_hostname: str | None = None, pool=None, clock=None):
        self.network = network
        self.address = address
        self.tag = tag
        self._dial = dial or default_dial
        self._pid = str(os.getpid() if pid is None else pid)
        self._machine_hostname = (
            socket.gethostname() if machine_hostname is None else machine_hostname
        )
        self._pool = pool or default_pool()
        self._clock = clock or local_now

        self._lock = threading.Lock()
        self._conn = None
        self._local = False
        self._hostname = hostname

    @property
    def connected(self) -> bool:
        return self._conn is not None

    @property
    def local(self) -> bool:
        return self._local

    @property
    def hostname(self) -> str:
        return self._hostname

    def connect(self):
        """Drop any current connection and dial a fresh one."""
        with self._lock:
            self._connect()

    def close(self):
        """Close the connection if one is open. Safe to call repeatedly."""
        with self._lock:
            conn, self._conn = self._conn, None
            if conn is not None:
                try:
                    conn.close()
                except OSError as e:
                    raise CloseError(f"close {self.network} {self.address}: {e}") from e

    def write(self, p, priority: int | None = None) -> int:
        """Frame ``p`` and send it. Returns the number of bytes written.

        ``priority`` skips severity detection when the caller already knows it.
        Raises DialError when no connection can be made and WriteError when
        the send fails on a freshly dialed connection too.
        """
        if isinstance(p, str):
            p = p.encode("utf-8")
        elif isinstance(p, memoryview):
            p = p.tobytes()

        if priority is None:
            priority = classify(p)
        elif not 0 <= priority <= 7:
            raise ValueError(f"priority must be in 0..7, got {priority}")

        if self._conn is None:
            with self._lock:
                if self._conn is None:
                    self._connect()

        with self._pool.scratch() as buf:
            build_frame(buf, priority, p, tag=self.tag, pid=self._pid,
                        hostname=self._hostname, local=self._local, now=self._clock())
            return self._send(buf)

    def _send(self, frame: bytearray) -> int:
        with self._lock:
            if self._conn is not None:
                try:
                    return self._conn.write(frame)
                except OSError:
                    pass
            self._connect()
            try:
                return self._conn.write(frame)
            except OSError as e:
                self._discard()
                raise WriteError(f"write {self.network} {self.address}: {e}") from e

    def _connect(self):
        # Caller holds self._lock.
        self._discard()
        try:
            conn = self._dial(self.network, self.address)
        except (OSError, ValueError) as e:
            raise DialError(self.network, self.address, e) from e

        self._local = self.address.startswith("/")
        if not self._hostname:
            if self._local:
                self._hostname = self._machine_hostname
            else:
                try:
                    self._hostname = conn.local_addr()
                except OSError as e:
                    try:
                        conn.close()
                    except OSError:
                        pass
                    raise DialError(self.network, self.address, e) from e
        # Publish last: unlocked readers of _conn rely on local/hostname being set.
        self._conn = conn

    def _discard(self):
        conn, self._conn = self._conn, None
        if conn is not None:
            try:
                conn.close()
            except OSError:
                pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
