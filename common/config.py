from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv


DEFAULT_LISTEN_ADDR = ":9999"
DEFAULT_DISH_ADDR = "192.168.100.1:9200"

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def _default_env_file() -> str:
    return str(Path.cwd() / ".env")


@dataclass(frozen=True)
class Settings:
    listen_addr: str
    dish_addr: str
    log_level: str

    poll_interval_seconds: float
    device_timeout_seconds: float
    metrics_namespace: str


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("STARLINK_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    listen_addr = os.getenv("EXPORTER_LISTEN_ADDR", DEFAULT_LISTEN_ADDR)
    dish_addr = os.getenv("DISH_ADDR", DEFAULT_DISH_ADDR)
    log_level = os.getenv("LOG_LEVEL", "info")

    poll_interval_seconds = float(os.getenv("POLL_INTERVAL_SECONDS", "1.0"))
    device_timeout_seconds = float(os.getenv("DEVICE_TIMEOUT_SECONDS", "10"))

    # Prefix for every exported metric name, e.g. starlink_up.
    metrics_namespace = os.getenv("METRICS_NAMESPACE", "starlink")

    return Settings(
        listen_addr=listen_addr,
        dish_addr=dish_addr,
        log_level=log_level,
        poll_interval_seconds=poll_interval_seconds,
        device_timeout_seconds=device_timeout_seconds,
        metrics_namespace=metrics_namespace,
    )


def parse_log_level(name: str) -> int:
    """Map a verbosity name to a logging level, INFO when unknown."""
    return _LOG_LEVELS.get((name or "").strip().lower(), logging.INFO)


def parse_listen_address(addr: str) -> Tuple[str, int]:
    """Split a ``host:port`` listen address.

    An empty host (``":9999"``) binds every interface.

    Raises:
        ValueError: if the port is missing or not a number
    """
    host, sep, port = addr.strip().rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid listen address: {addr!r}")
    host = host.strip("[]") or "0.0.0.0"
    return host, int(port)
