"""Default dial hooks: open a socket for a (network, address) pair.

A dial hook takes ``(network, address)`` and returns a connection object with
``write(data) -> int``, ``close()`` and ``local_addr() -> str``, raising
``OSError`` when the endpoint cannot be reached. ``SyslogWriter`` accepts any
callable with that shape, so tests and callers can swap transports freely.
"""

import functools
import socket
import ssl

STREAM_NETWORKS = ("tcp", "tcp4", "tcp6", "unix")
DATAGRAM_NETWORKS = ("udp", "udp4", "udp6", "unixgram")

_FAMILIES = {
    "tcp": socket.AF_UNSPEC,
    "tcp4": socket.AF_INET,
    "tcp6": socket.AF_INET6,
    "udp": socket.AF_UNSPEC,
    "udp4": socket.AF_INET,
    "udp6": socket.AF_INET6,
}


class SocketConnection:
    """Thin wrapper giving a socket the connection interface."""

    def __init__(self, sock: socket.socket, stream: bool):
        self._sock = sock
        self._stream = stream

    @property
    def socket(self) -> socket.socket:
        return self._sock

    def write(self, data) -> int:
        """Send one frame. Stream sockets send it whole, datagrams in one packet."""
        if self._stream:
            self._sock.sendall(data)
            return len(data)
        return self._sock.send(data)

    def close(self):
        self._sock.close()

    def local_addr(self) -> str:
        return format_sockname(self._sock.family, self._sock.getsockname())


def format_sockname(family, name) -> str:
    """Render a socket name as ``host:port``, ``[v6host]:port`` or a path."""
    if family == socket.AF_INET:
        return f"{name[0]}:{name[1]}"
    if family == socket.AF_INET6:
        return f"[{name[0]}]:{name[1]}"
    if isinstance(name, bytes):
        return name.decode("utf-8", "replace")
    return str(name or "")


def split_host_port(address: str) -> tuple[str, int]:
    """Split ``host:port`` / ``[v6host]:port``. An empty host means localhost."""
    if address.startswith("["):
        end = address.find("]")
        if end < 0 or address[end + 1:end + 2] != ":":
            raise ValueError(f"invalid address {address!r}")
        host, port = address[1:end], address[end + 2:]
    else:
        host, sep, port = address.rpartition(":")
        if not sep or ":" in host:
            raise ValueError(f"invalid address {address!r}")
    if not port.isdigit():
        raise ValueError(f"invalid port in address {address!r}")
    return host or "localhost", int(port)


def _dial_ip(network: str, address: str, timeout: float | None) -> socket.socket:
    host, port = split_host_port(address)
    sock_type = socket.SOCK_STREAM if network.startswith("tcp") else socket.SOCK_DGRAM

    last_error: OSError | None = None
    for family, stype, proto, _, sockaddr in socket.getaddrinfo(
            host, port, _FAMILIES[network], sock_type):
        sock = socket.socket(family, stype, proto)
        try:
            sock.settimeout(timeout)
            sock.connect(sockaddr)
            return sock
        except OSError as e:
            last_error = e
            sock.close()
    if last_error is not None:
        raise last_error
    raise OSError(f"no addresses found for {address!r}")


def _dial_unix(network: str, address: str, timeout: float | None) -> socket.socket:
    sock_type = socket.SOCK_STREAM if network == "unix" else socket.SOCK_DGRAM
    sock = socket.socket(socket.AF_UNIX, sock_type)
    try:
        sock.settimeout(timeout)
        sock.connect(address)
    except OSError:
        sock.close()
        raise
    return sock


def dial(network: str, address: str, timeout: float | None = None) -> SocketConnection:
    """Connect to ``address`` over ``network``; raises OSError on failure."""
    network = network.lower()
    if network in _FAMILIES:
        sock = _dial_ip(network, address, timeout)
    elif network in ("unix", "unixgram"):
        sock = _dial_unix(network, address, timeout)
    else:
        raise OSError(f"unknown network {network!r}")
    return SocketConnection(sock, stream=network in STREAM_NETWORKS)


def make_dial(timeout: float | None = None):
    """Return a dial hook bound to a connect/send timeout."""
    return functools.partial(dial, timeout=timeout)


def make_tls_dial(context: ssl.SSLContext, server_hostname: str | None = None,
                  timeout: float | None = None):
    """Return a dial hook that wraps TCP connections in TLS."""

    def tls_dial(network: str, address: str) -> SocketConnection:
        network = network.lower()
        if network not in ("tcp", "tcp4", "tcp6"):
            raise OSError(f"TLS requires a tcp network, got {network!r}")
        raw = _dial_ip(network, address, timeout)
        try:
            sock = context.wrap_socket(
                raw, server_hostname=server_hostname or split_host_port(address)[0]
            )
        except OSError:
            raw.close()
            raise
        return SocketConnection(sock, stream=True)

    return tls_dial
