"""Shared pytest fixtures: fake transports, fixed clock, loopback receivers."""

import os
import shutil
import socket
import ssl
import subprocess
import tempfile
import threading
import time
from datetime import datetime, timezone

import pytest

FIXED_NOW = datetime(2024, 1, 15, 8, 3, 5, tzinfo=timezone.utc)


class FakeConnection:
    """Records every frame written; can be told to fail writes or close."""

    def __init__(self, local_addr: str = "10.0.0.5:40000", fail_writes: int = 0,
                 fail_close: bool = False):
        self.frames: list[bytes] = []
        self.closed = False
        self._local_addr = local_addr
        self._fail_writes = fail_writes
        self._fail_close = fail_close
        self._lock = threading.Lock()

    def write(self, data) -> int:
        with self._lock:
            if self.closed:
                raise OSError("write on closed connection")
            if self._fail_writes > 0:
                self._fail_writes -= 1
                raise BrokenPipeError("broken pipe")
            self.frames.append(bytes(data))
            return len(data)

    def close(self):
        self.closed = True
        if self._fail_close:
            raise OSError("close failed")

    def local_addr(self) -> str:
        if self._local_addr is None:
            raise OSError("transport endpoint is not connected")
        return self._local_addr


class FakeDialer:
    """Dial hook handing out FakeConnections built by ``factory``."""

    def __init__(self, factory=None, fail: int = 0):
        self.calls: list[tuple[str, str]] = []
        self.connections: list[FakeConnection] = []
        self._factory = factory or FakeConnection
        self._fail = fail
        self._lock = threading.Lock()

    def __call__(self, network: str, address: str):
        with self._lock:
            self.calls.append((network, address))
            if self._fail > 0:
                self._fail -= 1
                raise ConnectionRefusedError("connection refused")
            conn = self._factory()
            self.connections.append(conn)
            return conn

    @property
    def frames(self) -> list[bytes]:
        return [f for c in self.connections for f in c.frames]


@pytest.fixture
def dialer():
    return FakeDialer()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def udp_receiver():
    """Bind a UDP socket on an ephemeral port and yield (socket, port)."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(2.0)
    _, port = sock.getsockname()
    yield sock, port
    sock.close()


@pytest.fixture
def short_tmp_dir():
    """Temp dir with a path short enough for AF_UNIX socket names."""
    path = tempfile.mkdtemp(prefix="sl", dir="/tmp")
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def unixgram_receiver(short_tmp_dir):
    """Bind a unix datagram socket and yield (socket, path)."""
    path = os.path.join(short_tmp_dir, "log.sock")
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM)
    sock.bind(path)
    sock.settimeout(2.0)
    yield sock, path
    sock.close()


@pytest.fixture
def make_dialer():
    """Build a FakeDialer with custom connection behaviour."""
    def _make(fail: int = 0, **conn_kwargs):
        return FakeDialer(factory=lambda: FakeConnection(**conn_kwargs), fail=fail)
    return _make


@pytest.fixture
def dialer_of():
    """Build a FakeDialer handing out the given connections, then refusing."""
    def _make(*connections):
        it = iter(connections)

        def factory():
            try:
                return next(it)
            except StopIteration:
                raise ConnectionRefusedError("connection refused") from None
        return FakeDialer(factory=factory)
    return _make


@pytest.fixture
def fake_connection():
    return FakeConnection


@pytest.fixture(scope="session")
def cert_dir():
    """Generate a CA and a localhost server cert in a temp directory."""
    if shutil.which("openssl") is None:
        pytest.skip("openssl not available")
    with tempfile.TemporaryDirectory() as tmpdir:
        script = os.path.join(os.path.dirname(__file__), "..", "generate_certs.sh")
        result = subprocess.run(["sh", script, tmpdir], capture_output=True, text=True)
        assert result.returncode == 0, f"Cert gen failed: {result.stderr}"
        yield tmpdir


class TLSReceiver:
    """Loopback TLS listener that collects what each client sends."""

    def __init__(self, cert_dir: str):
        ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        ctx.load_cert_chain(
            certfile=os.path.join(cert_dir, "server.crt"),
            keyfile=os.path.join(cert_dir, "server.key"),
        )
        self.ca_file = os.path.join(cert_dir, "ca.crt")
        self.received: list[bytes] = []
        self.handshake_errors: list[Exception] = []
        self._stop = threading.Event()

        raw = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        raw.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        raw.bind(("127.0.0.1", 0))
        raw.listen(5)
        raw.settimeout(0.2)
        self.port = raw.getsockname()[1]
        self._srv = ctx.wrap_socket(raw, server_side=True)
        self._thread = threading.Thread(target=self._accept_loop, daemon=True)
        self._thread.start()

    def _accept_loop(self):
        while not self._stop.is_set():
            try:
                conn, _ = self._srv.accept()
            except socket.timeout:
                continue
            except ssl.SSLError as e:
                self.handshake_errors.append(e)
                continue
            except OSError:
                break
            conn.settimeout(2.0)
            buf = b""
            try:
                while True:
                    chunk = conn.recv(4096)
                    if not chunk:
                        break
                    buf += chunk
            except OSError:
                pass
            finally:
                conn.close()
            self.received.append(buf)

    def wait_for(self, count: int, timeout: float = 3.0) -> list[bytes]:
        deadline = time.monotonic() + timeout
        while len(self.received) < count and time.monotonic() < deadline:
            time.sleep(0.02)
        return self.received

    def close(self):
        self._stop.set()
        self._thread.join(timeout=2)
        self._srv.close()


@pytest.fixture
def tls_receiver(cert_dir):
    receiver = TLSReceiver(cert_dir)
    yield receiver
    receiver.close()
