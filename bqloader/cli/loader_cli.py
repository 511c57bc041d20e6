"""
Command-line interface for the BigQuery loader.

Usage:
    bqloader run --config loader.yaml [options]
    bqloader check --config loader.yaml
"""

import argparse
import signal
import sys
import time

from pydantic import ValidationError

from bqloader.batch.pipeline import BatchReport, InsertPipeline, summarize
from bqloader.config.settings import LoaderSettings, load_settings
from bqloader.core.exceptions import BatchCardinalityError, SinkInitializationError
from bqloader.observability.logger import configure_logging, get_logger
from bqloader.observability.metrics import start_metrics_server
from bqloader.sink.connection import BigQueryConnection
from bqloader.sources.directory_source import DirectoryRecordSource

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_BATCH_ERROR = 2

# Global flag for graceful shutdown
_shutdown_requested = False


def signal_handler(signum, frame):  # type: ignore[no-untyped-def]
    """
    Handle SIGINT/SIGTERM: finish the current batch, then stop.
    """
    global _shutdown_requested
    signal_name = signal.Signals(signum).name
    logger.info(f"Received {signal_name} signal, stopping after the current batch...")
    _shutdown_requested = True


def _load(args: argparse.Namespace) -> LoaderSettings:
    overrides = {
        "batch_size": getattr(args, "batch_size", None),
        "spool_dir": getattr(args, "spool", None),
        "metrics_port": getattr(args, "metrics_port", None),
        "log_level": getattr(args, "log_level", None),
    }
    settings = load_settings(args.config, overrides=overrides, dotenv_path=args.env_file)
    configure_logging(settings.log_level, settings.log_format)
    return settings


def run_command(args: argparse.Namespace) -> int:
    """
    Process spooled records until the spool is drained (or forever with --watch).

    Returns:
        Process exit code
    """
    try:
        settings = _load(args)
    except (ValidationError, ValueError, FileNotFoundError) as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_CONFIG_ERROR

    if settings.spool_dir is None:
        logger.error("No spool directory configured (spool_dir or --spool)")
        return EXIT_CONFIG_ERROR

    if settings.metrics_port:
        start_metrics_server(settings.metrics_port)
        logger.info(f"Metrics available on port {settings.metrics_port}")

    source = DirectoryRecordSource(settings.spool_dir)
    connection = BigQueryConnection(settings)

    try:
        client = connection.open()
    except SinkInitializationError as e:
        logger.error(f"Could not create BigQuery client: {e}", exc_info=True)
        return EXIT_CONFIG_ERROR

    global _shutdown_requested
    _shutdown_requested = False
    previous_handlers = {
        signum: signal.signal(signum, signal_handler)
        for signum in (signal.SIGINT, signal.SIGTERM)
    }

    reports: list[BatchReport] = []
    try:
        pipeline = InsertPipeline(source, client, settings)

        while not _shutdown_requested:
            if args.max_batches is not None and len(reports) >= args.max_batches:
                break

            report = pipeline.process_batch()
            if report.pulled:
                reports.append(report)
                continue

            if not args.watch:
                break
            time.sleep(args.poll_interval)

    except BatchCardinalityError as e:
        logger.critical(f"Aborting: {e}", exc_info=True)
        return EXIT_BATCH_ERROR
    finally:
        connection.close()
        for signum, handler in previous_handlers.items():
            signal.signal(signum, handler)

    total = summarize(reports)
    logger.info("=" * 60)
    logger.info("LOAD COMPLETE")
    logger.info("=" * 60)
    logger.info(f"Batches processed: {len(reports)}")
    logger.info(f"Records pulled: {total.pulled}")
    logger.info(f"Records succeeded: {total.succeeded}")
    logger.info(f"Records failed: {total.failed} ({total.malformed} malformed)")
    logger.info("=" * 60)

    return EXIT_OK


def check_command(args: argparse.Namespace) -> int:
    """
    Validate configuration and build the client without inserting anything.

    Returns:
        Process exit code
    """
    try:
        settings = _load(args)
    except (ValidationError, ValueError, FileNotFoundError) as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_CONFIG_ERROR

    connection = BigQueryConnection(settings)
    try:
        client = connection.open()
    except SinkInitializationError as e:
        logger.error(f"Could not create BigQuery client: {e}")
        return EXIT_CONFIG_ERROR
    finally:
        connection.close()

    logger.info(
        f"Configuration valid: {client.project}.{settings.target} "
        f"(batch size {settings.batch_size})"
    )
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bqloader",
        description="Load spooled JSON documents into a BigQuery table",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Drain the spool directory once
  bqloader run --config loader.yaml --spool /var/spool/bqloader

  # Keep polling for new records, exposing metrics on port 9100
  bqloader run --config loader.yaml --watch --metrics-port 9100

  # Validate configuration and credentials
  bqloader check --config loader.yaml
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    def add_common(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--config", help="Path to the loader YAML configuration")
        sub.add_argument("--env-file", default=None, help="Optional .env file with BQLOADER_* variables")
        sub.add_argument(
            "--log-level",
            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            help="Override the configured log level",
        )

    run_parser = subparsers.add_parser("run", help="Insert spooled records")
    add_common(run_parser)
    run_parser.add_argument("--spool", help="Spool root directory (pending/, success/, failure/)")
    run_parser.add_argument("--batch-size", type=int, help="Maximum records per insert request (default: 500)")
    run_parser.add_argument("--max-batches", type=int, default=None, help="Stop after this many batches")
    run_parser.add_argument("--watch", action="store_true", help="Keep polling when the spool is empty")
    run_parser.add_argument(
        "--poll-interval",
        type=float,
        default=5.0,
        help="Seconds between polls in watch mode (default: 5)"
    )
    run_parser.add_argument("--metrics-port", type=int, help="Expose Prometheus metrics on this port")

    check_parser = subparsers.add_parser("check", help="Validate configuration and credentials")
    add_common(check_parser)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_CONFIG_ERROR

    if args.command == "run":
        return run_command(args)
    return check_command(args)


if __name__ == "__main__":
    sys.exit(main())
