#!/usr/bin/env python3
"""
Service Ready Exporter - Entry Point

Serves service_ready_up for every host routed by a Kubernetes Ingress.
"""

import argparse
import platform
import sys
from pathlib import Path

# Add app directory to path for imports when running directly
APP_DIR = Path(__file__).parent
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

import uvicorn
from pydantic import ValidationError

from service_ready_exporter import __version__
from service_ready_exporter.config import ExporterConfig, load_config
from service_ready_exporter.server import create_server
from service_ready_exporter.utils.logging import get_logger, setup_logging

logger = get_logger("service_ready_exporter")


def parse_listen_address(address: str) -> tuple[str, int]:
    """
    Split a "[host]:port" listen address.

    An empty host (":9150") binds all interfaces.
    """
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise argparse.ArgumentTypeError(
            f"invalid listen address {address!r}, expected [host]:port"
        )
    host = host.strip("[]") or "0.0.0.0"
    return host, int(port)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Prometheus exporter for Ingress host readiness",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Listen on the default :9150
  python main.py

  # Custom address and metrics path
  python main.py --web.listen-address 127.0.0.1:9200 --web.telemetry-path /probe-metrics

  # Use custom config directory
  python main.py --config-dir /path/to/config
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"service-ready-exporter {__version__}",
    )
    parser.add_argument(
        "--config-dir",
        type=str,
        help="Configuration directory path (default: ~/.service-ready-exporter/)",
    )
    parser.add_argument(
        "--web.listen-address",
        dest="listen_address",
        type=parse_listen_address,
        help="Address to listen on for web interface and telemetry (default: :9150)",
    )
    parser.add_argument(
        "--web.telemetry-path",
        dest="metrics_path",
        type=str,
        help="Path under which to expose metrics (default: /metrics)",
    )
    parser.add_argument(
        "--kubeconfig",
        type=str,
        help="Kubeconfig file used when neither KUBECONFIG_CONTENT nor in-cluster credentials are available",
    )
    parser.add_argument(
        "--log.level",
        dest="log_level",
        choices=["debug", "info", "warning", "error"],
        help="Only log messages with the given severity or above",
    )
    return parser.parse_args(argv)


def apply_overrides(config: ExporterConfig, args: argparse.Namespace) -> ExporterConfig:
    """Apply CLI overrides on top of the loaded configuration."""
    data = config.model_dump()
    if args.listen_address:
        data["server"]["host"], data["server"]["port"] = args.listen_address
    if args.metrics_path:
        data["server"]["metrics_path"] = args.metrics_path
    if args.kubeconfig:
        data["kubernetes"]["kubeconfig"] = args.kubeconfig
    if args.log_level:
        data["server"]["log_level"] = args.log_level
    return ExporterConfig.model_validate(data)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = apply_overrides(load_config(args.config_dir), args)
    except ValidationError as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    setup_logging(config.server.log_level, config.server.log_file)

    logger.info("Starting service_ready_exporter version=%s", __version__)
    logger.info(
        "Build context python=%s implementation=%s platform=%s",
        platform.python_version(),
        platform.python_implementation(),
        platform.platform(),
    )

    bundle = create_server(config)

    logger.info(
        "Listening on address %s:%d, metrics at %s",
        config.server.host,
        config.server.port,
        config.server.metrics_path,
    )
    try:
        uvicorn.run(
            bundle.app,
            host=config.server.host,
            port=config.server.port,
            log_level=config.server.log_level,
            log_config=None,
        )
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        return 0
    except Exception:
        logger.exception("Error running HTTP server")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
