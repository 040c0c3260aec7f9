"""Builds ``<PRI>TIMESTAMP HOST TAG[PID]: MSG`` frames."""

from datetime import datetime, timedelta

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def local_now() -> datetime:
    """Current time as an aware datetime in the machine's zone."""
    return datetime.now().astimezone()


def format_stamp(now: datetime) -> str:
    """``Jan _2 15:04:05``: no year or zone, day padded with a space."""
    return f"{_MONTHS[now.month - 1]} {now.day:2d} {now:%H:%M:%S}"


def format_rfc3339(now: datetime) -> str:
    """``2006-01-02T15:04:05+07:00``, with ``Z`` for a zero offset."""
    stamp = now.strftime("%Y-%m-%dT%H:%M:%S")
    offset = now.utcoffset()
    if offset is None or offset == timedelta(0):
        return stamp + "Z"
    sign = "+"
    if offset < timedelta(0):
        sign = "-"
        offset = -offset
    minutes = int(offset.total_seconds()) // 60
    return f"{stamp}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def build_frame(buf: bytearray, priority: int, message: bytes, *, tag: str, pid: str,
                hostname: str, local: bool, now: datetime) -> bytearray:
    """Append one complete frame to ``buf`` and return it.

    Local receivers get the short stamp and no hostname field; networked
    receivers get an RFC 3339 stamp followed by the hostname. Tag, hostname
    and message are copied verbatim.
    """
    buf += b"<%d>" % priority
    if local:
        buf += format_stamp(now).encode("ascii")
    else:
        buf += format_rfc3339(now).encode("ascii")
        buf += b" "
        buf += hostname.encode("utf-8")
    buf += b" "
    buf += tag.encode("utf-8")
    buf += b"["
    buf += pid.encode("ascii")
    buf += b"]: "
    buf += message
    return buf
