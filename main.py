#!/usr/bin/env python3
"""Entry point: ship log lines from stdin or a file to a syslog receiver."""

import argparse
import logging
import signal
import sys
import threading

from syslog_shipper.config import build_writer, load_config, load_yaml_config
from syslog_shipper.errors import SyslogError

logger = logging.getLogger(__name__)


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Ship log lines to syslog")
    parser.add_argument("--network", default=None,
                        help="tcp, udp, unix, unixgram (default: udp)")
    parser.add_argument("--address", default=None,
                        help="host:port or socket path (default: 127.0.0.1:514)")
    parser.add_argument("--hostname", default=None,
                        help="HOST field for networked frames")
    parser.add_argument("--tag", default=None, help="TAG field of every frame")
    parser.add_argument("--dial-timeout", type=float, default=None,
                        help="Connect/send timeout in seconds, 0 disables")
    parser.add_argument("--tls", action="store_true", default=None,
                        help="Wrap tcp connections in TLS")
    parser.add_argument("--tls-verify", action="store_true", default=None,
                        help="Verify the receiver certificate")
    parser.add_argument("--ca-file", default=None, help="CA bundle for --tls-verify")
    parser.add_argument("--log-level", default=None, help="Shipper's own log level")
    parser.add_argument("--config", default=None, help="Path to YAML config file")
    parser.add_argument("--file", default="-",
                        help="File to read lines from (default: stdin)")
    return parser


def ship_lines(writer, lines, shutdown_event: threading.Event) -> tuple[int, int]:
    """Write each non-empty line through ``writer``. Returns (sent, failed)."""
    sent = failed = 0
    for line in lines:
        if shutdown_event.is_set():
            break
        line = line.rstrip("\r\n")
        if not line:
            continue
        try:
            writer.write(line.encode("utf-8"))
            sent += 1
        except SyslogError as e:
            failed += 1
            logger.warning("Send failed: %s", e)
    return sent, failed


def main(argv: list[str] | None = None) -> int:
    args = build_cli_parser().parse_args(argv)
    config = load_config(args, load_yaml_config(args.config))

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [SHIPPER] %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )

    shutdown_event = threading.Event()

    def signal_handler(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        shutdown_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    logger.info("Shipping to %s %s as tag=%s (tls=%s)",
                config.network, config.address, config.tag, config.tls)

    try:
        writer = build_writer(config)
    except (ValueError, OSError) as e:
        logger.error("Invalid transport settings: %s", e)
        return 2

    try:
        if args.file == "-":
            sent, failed = ship_lines(writer, sys.stdin, shutdown_event)
        else:
            try:
                f = open(args.file, "r", encoding="utf-8", errors="replace")
            except OSError as e:
                logger.error("Cannot open %s: %s", args.file, e)
                return 2
            with f:
                sent, failed = ship_lines(writer, f, shutdown_event)
    finally:
        try:
            writer.close()
        except SyslogError as e:
            logger.warning("Close failed: %s", e)

    logger.info("Stats: %d lines sent, %d failed", sent, failed)
    return 1 if failed and not sent else 0


if __name__ == "__main__":
    sys.exit(main())
