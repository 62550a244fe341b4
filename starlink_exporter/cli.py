"""CLI entry point for the exporter."""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

import uvicorn
from prometheus_client import CollectorRegistry

from common.config import get_settings, parse_listen_address, parse_log_level
from dish_client.grpc_client import GrpcDeviceClient

from .accumulator import Accumulator
from .collector import build_collector
from .main import create_app
from .poller import HistoryPoller

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    p = argparse.ArgumentParser(description="Prometheus exporter for Starlink dish telemetry")
    p.add_argument("--listen", default=settings.listen_addr, help="address to listen on for metrics")
    p.add_argument("--dish", default=settings.dish_addr, help="Starlink dish gRPC address")
    p.add_argument(
        "--log-level",
        default=settings.log_level,
        help="log level (debug, info, warn, error)",
    )
    p.add_argument("--poll-interval", type=float, default=settings.poll_interval_seconds)
    p.add_argument("--timeout", type=float, default=settings.device_timeout_seconds,
                   help="deadline for each dish call, in seconds")
    p.add_argument("--namespace", default=settings.metrics_namespace, help="metric name prefix")
    return p


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    level = parse_log_level(args.log_level)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    host, port = parse_listen_address(args.listen)

    client = GrpcDeviceClient(args.dish, timeout_seconds=args.timeout)
    accumulator = Accumulator()
    poller = HistoryPoller(client, accumulator, interval=args.poll_interval)

    registry = CollectorRegistry()
    build_collector(client, accumulator, registry, namespace=args.namespace)

    app = create_app(registry, accumulator, poller=poller)

    logger.info("Starting Starlink exporter address=%s dish=%s", args.listen, args.dish)
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=host,
            port=port,
            log_level=logging.getLevelName(level).lower(),
            timeout_graceful_shutdown=5,
        )
    )
    try:
        # Handles SIGINT/SIGTERM; the app lifespan stops the poller.
        server.run()
    finally:
        poller.stop()
        client.close()
        logger.info("Exporter stopped")


if __name__ == "__main__":
    main()
