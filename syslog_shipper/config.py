"""Configuration loading from CLI args, env vars, and optional YAML file."""

import logging
import os
from dataclasses import dataclass, fields

import yaml

from syslog_shipper.dial import make_dial, make_tls_dial, split_host_port
from syslog_shipper.tls_context import create_client_context
from syslog_shipper.writer import SyslogWriter

logger = logging.getLogger(__name__)


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class Config:
    network: str = "udp"
    address: str = "127.0.0.1:514"
    hostname: str = ""
    tag: str = "syslog-shipper"
    dial_timeout: float = 5.0
    tls: bool = False
    tls_verify: bool = False
    ca_file: str = ""
    log_level: str = "INFO"


_ENV_VARS = {
    "network": "SYSLOG_NETWORK",
    "address": "SYSLOG_ADDRESS",
    "hostname": "SYSLOG_HOSTNAME",
    "tag": "SYSLOG_TAG",
    "dial_timeout": "DIAL_TIMEOUT",
    "tls": "SYSLOG_TLS",
    "tls_verify": "TLS_VERIFY",
    "ca_file": "CA_FILE",
    "log_level": "LOG_LEVEL",
}

_CASTS = {"dial_timeout": float, "tls": _parse_bool, "tls_verify": _parse_bool}


def load_yaml_config(path: str | None) -> dict:
    """Load the ``syslog`` section of a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        logger.info("Loaded YAML config from %s", path)
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    return data.get("syslog", data)


def load_config(cli_args=None, yaml_data: dict | None = None) -> Config:
    """Build Config from defaults <- YAML <- env vars <- CLI args (highest priority)."""
    known = {f.name for f in fields(Config)}
    kwargs: dict = {}

    for key, value in (yaml_data or {}).items():
        key = key.replace("-", "_")
        if value is None:
            continue
        if key in known:
            kwargs[key] = value
        else:
            logger.warning("Ignoring unknown config key %r", key)

    for key, var in _ENV_VARS.items():
        if var in os.environ:
            kwargs[key] = os.environ[var]

    if cli_args is not None:
        for key in known:
            value = getattr(cli_args, key, None)
            if value is not None:
                kwargs[key] = value

    for key, cast in _CASTS.items():
        if key in kwargs:
            kwargs[key] = cast(kwargs[key])
    for key in known - set(_CASTS):
        if key in kwargs:
            kwargs[key] = str(kwargs[key])

    return Config(**kwargs)


def build_dial(config: Config):
    """Pick the dial hook matching the transport settings."""
    timeout = config.dial_timeout if config.dial_timeout > 0 else None
    if not config.tls:
        return make_dial(timeout)
    context = create_client_context(config.tls_verify, config.ca_file)
    server_hostname = split_host_port(config.address)[0]
    return make_tls_dial(context, server_hostname=server_hostname, timeout=timeout)


def build_writer(config: Config, **overrides) -> SyslogWriter:
    """Construct a SyslogWriter from a Config."""
    kwargs = {
        "network": config.network,
        "address": config.address,
        "hostname": config.hostname,
        "tag": config.tag,
        "dial": build_dial(config),
    }
    kwargs.update(overrides)
    return SyslogWriter(**kwargs)
