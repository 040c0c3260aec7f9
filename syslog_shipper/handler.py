"""Bridge from the stdlib ``logging`` module to a SyslogWriter."""

import json
import logging
from datetime import datetime, timezone

from syslog_shipper import severity
from syslog_shipper.writer import SyslogWriter

# LogRecord attributes that are not user-supplied extras.
_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message", "asctime",
}


def level_name(levelno: int) -> str:
    """Level vocabulary understood by the severity classifier."""
    if levelno >= logging.CRITICAL:
        return "fatal"
    if levelno >= logging.ERROR:
        return "error"
    if levelno >= logging.WARNING:
        return "warn"
    if levelno >= logging.INFO:
        return "info"
    if levelno >= logging.DEBUG:
        return "debug"
    return "trace"


def syslog_priority(levelno: int) -> int:
    if levelno >= logging.CRITICAL:
        return severity.LOG_CRIT
    if levelno >= logging.ERROR:
        return severity.LOG_ERR
    if levelno >= logging.WARNING:
        return severity.LOG_WARNING
    if levelno >= logging.INFO:
        return severity.LOG_INFO
    return severity.LOG_DEBUG


class JSONFormatter(logging.Formatter):
    """One compact JSON object per record, ``time`` then ``level`` first.

    ``time`` is always UTC with millisecond precision and a ``Z`` suffix so
    the classifier's fixed-offset check hits on every record.
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, timezone.utc)
        entry = {
            "time": created.strftime("%Y-%m-%dT%H:%M:%S") + f".{int(record.msecs):03d}Z",
            "level": level_name(record.levelno),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED and key not in entry:
                entry[key] = value
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        elif record.exc_text:
            entry["error"] = record.exc_text
        return json.dumps(entry, separators=(",", ":"), default=str)


class SyslogHandler(logging.Handler):
    """Logging handler that ships each formatted record through a SyslogWriter.

    The record's level is mapped to a syslog priority directly, so the
    writer never has to scan the formatted bytes.
    """

    terminator = "\n"

    def __init__(self, writer: SyslogWriter, level=logging.NOTSET):
        super().__init__(level)
        self.writer = writer
        self.setFormatter(JSONFormatter())

    def emit(self, record: logging.LogRecord):
        try:
            msg = self.format(record) + self.terminator
            self.writer.write(msg.encode("utf-8"), priority=syslog_priority(record.levelno))
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)

    def close(self):
        try:
            self.writer.close()
        finally:
            super().close()
