"""Exception types raised by the syslog writer."""


class SyslogError(Exception):
    """Base class for every failure surfaced by the writer."""


class DialError(SyslogError, ConnectionError):
    """The dial hook could not establish a connection."""

    def __init__(self, network: str, address: str, cause: Exception):
        super().__init__(f"dial {network} {address}: {cause}")
        self.network = network
        self.address = address
        self.cause = cause


class WriteError(SyslogError, OSError):
    """Writing a frame failed even after reconnecting."""


class CloseError(SyslogError, OSError):
    """Closing the connection failed."""
