"""
Command-line interface for the procexporter application.

This module provides the main CLI entry point: it parses flags, loads and
validates the configuration, wires the process-table reader, the aggregation
pass and the Prometheus collector together, and serves metrics over HTTP
until interrupted.
"""

import argparse
import dataclasses
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional, Tuple

from prometheus_client import CollectorRegistry

from .. import __version__
from ..collectors import ProcGroupCollector
from ..config import get_config, set_config_path
from ..exposition import ProcMetricsCollector, make_exporter_app, make_exporter_server
from ..models.config import AppConfig, ExporterConfig
from ..system import ProcfsReader
from ..validation import (
    ConfigurationError,
    ValidationError,
    handle_cli_error,
    validate_listen_address,
    validate_non_empty_string,
    validate_positive_integer,
    validate_url_path,
)

# --- Logging Setup ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="procexporter",
        description="Export per-group process metrics for Prometheus.",
    )
    parser.add_argument(
        "--config.path",
        dest="config_path",
        type=Path,
        help="Path to the TOML configuration file with the process_names rules.",
    )
    parser.add_argument(
        "--procfs",
        dest="procfs_path",
        type=str,
        help="Path to read proc data from. Overrides exporter.procfs_path.",
    )
    parser.add_argument(
        "--web.listen-address",
        dest="listen_address",
        type=str,
        help="Address to listen on for web interface and telemetry, e.g. ':9256'.",
    )
    parser.add_argument(
        "--web.telemetry-path",
        dest="telemetry_path",
        type=str,
        help="Path under which to expose metrics, e.g. '/metrics'.",
    )
    parser.add_argument(
        "--clock-ticks",
        dest="clock_ticks",
        type=str,
        help="Kernel clock ticks per second (USER_HZ). Overrides exporter.clock_ticks.",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level. Overrides exporter.log_level.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def apply_cli_overrides(exporter: ExporterConfig, args: argparse.Namespace) -> ExporterConfig:
    """
    Return a copy of ``exporter`` with the command-line flags applied.

    Raises:
        ValidationError: If a flag value is invalid
    """
    overrides = {}
    if args.procfs_path is not None:
        overrides["procfs_path"] = Path(
            validate_non_empty_string(args.procfs_path, field_name="--procfs")
        )
    if args.listen_address is not None:
        validate_listen_address(args.listen_address, field_name="--web.listen-address")
        overrides["listen_address"] = args.listen_address
    if args.telemetry_path is not None:
        overrides["telemetry_path"] = validate_url_path(
            args.telemetry_path, field_name="--web.telemetry-path"
        )
    if args.clock_ticks is not None:
        overrides["clock_ticks"] = validate_positive_integer(
            args.clock_ticks, min_value=1, max_value=10000, field_name="--clock-ticks"
        )
    if args.log_level:
        overrides["log_level"] = args.log_level
    return dataclasses.replace(exporter, **overrides)


def build_registry(app_config: AppConfig) -> Tuple[CollectorRegistry, ProcGroupCollector]:
    """Wire the reader, aggregation pass and Prometheus collector together."""
    exporter = app_config.exporter
    group_collector = ProcGroupCollector(
        rule_set=app_config.rule_set,
        reader=ProcfsReader(exporter.procfs_path),
        clock_ticks=exporter.clock_ticks,
    )
    registry = CollectorRegistry()
    registry.register(ProcMetricsCollector(group_collector))
    return registry, group_collector


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line interface for the procexporter application.

    Raises:
        SystemExit: On configuration errors or invalid flags, before any
            socket is opened.
    """
    args = build_arg_parser().parse_args(argv)

    logger.info(f"Starting procexporter {__version__}")

    if args.config_path is not None:
        set_config_path(args.config_path)

    try:
        app_config = get_config()
    except (FileNotFoundError, ConfigurationError) as e:
        handle_cli_error(
            error=e,
            context="configuration loading",
            exit_code=1,
            logger=logger,
        )

    try:
        exporter = apply_cli_overrides(app_config.exporter, args)
        host, port = validate_listen_address(exporter.listen_address)
    except ValidationError as e:
        handle_cli_error(
            error=e,
            context="argument validation",
            exit_code=1,
            logger=logger,
        )
    app_config = dataclasses.replace(app_config, exporter=exporter)

    logging.getLogger().setLevel(exporter.log_level)
    logger.info(
        f"Reading metrics from {exporter.procfs_path} with "
        f"{len(app_config.rules)} process_names rules"
    )

    registry, _ = build_registry(app_config)
    app = make_exporter_app(registry, exporter.telemetry_path)

    try:
        server = make_exporter_server(app, (host, port))
    except OSError as e:
        handle_cli_error(
            error=e,
            context=f"binding {exporter.listen_address}",
            exit_code=1,
            logger=logger,
        )

    def shutdown_handler(signum, frame):
        logger.info(f"Signal {signal.strsignal(signum)} received. Shutting down...")
        # shutdown() blocks until serve_forever() returns, so it cannot run here
        threading.Thread(target=server.shutdown, daemon=True).start()

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)

    logger.info(f"Listening on {exporter.listen_address}, metrics at {exporter.telemetry_path}")
    try:
        server.serve_forever()
    finally:
        server.server_close()
        logger.info("procexporter stopped")


if __name__ == "__main__":
    main_cli()
