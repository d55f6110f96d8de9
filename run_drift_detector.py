#!/usr/bin/env python3
"""
Command-line interface for driftwatch.

Cloud credentials are taken from each provider's standard chain (AWS CLI
profile or environment variables, GOOGLE_APPLICATION_CREDENTIALS, az login).

Usage:
    python run_drift_detector.py init
    python run_drift_detector.py detect
    python run_drift_detector.py detect --watch --interval 5m
    python run_drift_detector.py detect --provider aws --dry-run
    python run_drift_detector.py --config ./config/config.yaml detect --fail-on-drift --output-format json
"""

import argparse
import signal
import sys
import threading
from typing import List, Optional

from src.config import load_config, write_default_config
from src.driftwatch.core import PassResult, build_detectors, make_pass_runner
from src.driftwatch.errors import (
    ConfigurationError,
    DriftDetectedError,
    NotificationDispatchError,
    PassCancelledError,
    StateLoadError,
)
from src.driftwatch.models import Report
from src.driftwatch.notifiers import NotificationPolicy
from src.driftwatch.notifiers.base import format_value
from src.driftwatch.scheduler import MonitoringScheduler
from src.utils import parse_duration, setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Detect drift between Terraform state and live cloud resources",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_drift_detector.py detect
  python run_drift_detector.py detect --watch --interval 5m
  python run_drift_detector.py detect --provider aws --dry-run
        """,
    )
    parser.add_argument(
        "--config",
        help="Config file (default: ./config/config.yaml, ./config.yaml or ~/.driftwatch/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: from config, INFO)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output (DEBUG logging)")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.required = True

    detect = subparsers.add_parser("detect", help="Detect infrastructure drift")
    detect.add_argument("-w", "--watch", action="store_true", help="Continuous monitoring mode")
    detect.add_argument("-i", "--interval", help="Check interval for watch mode, e.g. 5m or 1h30m")
    detect.add_argument(
        "-p", "--provider", choices=["aws", "gcp", "azure"], help="Only check this provider"
    )
    detect.add_argument(
        "--dry-run", action="store_true", help="Detect drift but don't send notifications"
    )
    detect.add_argument("--no-notify", action="store_true", help="Disable all notifications")
    detect.add_argument(
        "--always-notify", action="store_true", help="Notify even when no drift is detected"
    )
    detect.add_argument(
        "--fail-on-drift",
        action="store_true",
        help="Exit with code 1 if drift is detected (useful for CI/CD)",
    )
    detect.add_argument(
        "--output-format",
        choices=["json", "pretty"],
        default="pretty",
        help="Output format for the drift report (default: pretty)",
    )

    init = subparsers.add_parser("init", help="Create a default configuration file")
    init.add_argument(
        "--path", default="config/config.yaml", help="Where to write the file (default: config/config.yaml)"
    )
    init.add_argument("--force", action="store_true", help="Overwrite an existing file")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the command-line drift detector."""
    args = build_parser().parse_args(argv)
    if args.command == "init":
        return run_init(args)
    return run_detect(args)


def run_init(args: argparse.Namespace) -> int:
    try:
        path = write_default_config(args.path, force=args.force)
    except FileExistsError as e:
        print(f"WARNING: {e}. Use --force to overwrite.", file=sys.stderr)
        return 1
    print(f"Configuration file created at {path}")
    print("\nNext steps:")
    print(f"  1. Edit {path} with your settings")
    print("  2. Set environment variables for sensitive data, e.g. SLACK_WEBHOOK_URL")
    print("  3. Run: python run_drift_detector.py detect")
    return 0


def run_detect(args: argparse.Namespace) -> int:
    logger = setup_logging(args.log_level)
    try:
        config = load_config(args.config)
        interval = parse_duration(args.interval) if args.interval else config.detection.interval_seconds
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if args.verbose:
        logger = setup_logging("DEBUG")
    elif not args.log_level:
        logger = setup_logging(config.log_level)
    if config.config_file:
        logger.info(f"Using config file: {config.config_file}")

    try:
        detectors = build_detectors(config, args.provider)
    except ConfigurationError as e:
        logger.error(str(e))
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    policy = NotificationPolicy(
        dry_run=args.dry_run,
        no_notify=args.no_notify,
        always_notify=args.always_notify,
        min_severity=config.detection.min_severity,
    )
    scheduler = MonitoringScheduler(make_pass_runner(config, detectors, policy), interval)

    cancel_event = threading.Event()
    install_signal_handlers(cancel_event)

    if args.watch:
        print(f"Starting continuous drift monitoring (interval: {interval:g}s). Press Ctrl+C to stop.")
        scheduler.run_forever(
            cancel_event, on_result=lambda result: emit_result(result, args.output_format)
        )
        print("Monitoring stopped")
        return 0

    try:
        result = scheduler.run_once(cancel_event)
    except StateLoadError as e:
        logger.error(f"Failed to load Terraform state: {e}")
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except PassCancelledError:
        logger.warning("Drift detection cancelled")
        return 0

    emit_result(result, args.output_format)

    if args.fail_on_drift and result.drift_count:
        error = DriftDetectedError(result.drift_count)
        logger.warning(f"{error}. Exiting with code 1")
        print(f"ERROR: {error}", file=sys.stderr)
        return 1
    if result.dispatch is not None:
        try:
            result.dispatch.raise_for_failures()
        except NotificationDispatchError as e:
            logger.error(f"{e}. Exiting with code 1")
            print(f"ERROR: {e}", file=sys.stderr)
            return 1
    return 0


def install_signal_handlers(cancel_event: threading.Event) -> None:
    """Set ``cancel_event`` on SIGINT/SIGTERM for a graceful shutdown."""

    def handle(signum: int, frame: object) -> None:
        print("\nReceived interrupt signal, shutting down gracefully...", file=sys.stderr)
        cancel_event.set()

    signal.signal(signal.SIGINT, handle)
    signal.signal(signal.SIGTERM, handle)


def emit_result(result: PassResult, output_format: str) -> None:
    if output_format == "json":
        print(result.report.to_json(indent=2))
    else:
        print_drift_report(result.report)
    for detector, error in result.detector_errors.items():
        print(f"WARNING: {detector} detector failed: {error}", file=sys.stderr)


def print_drift_report(report: Report) -> None:
    """Print a human-readable drift report."""
    print("\n" + "=" * 60)
    print("TERRAFORM DRIFT DETECTION REPORT")
    print("=" * 60)
    print(f"\nGenerated at: {report.timestamp.isoformat()}")

    if not report.has_drift:
        print(f"\n✅ {report.summary}")
    else:
        print(f"\n⚠️  Drift detected in {report.drift_count} resource(s):\n")
        for i, drift in enumerate(report.drifts, 1):
            print(f"{i}. {drift.resource_name} ({drift.resource_type})")
            print(f"   Provider: {drift.provider}")
            print(f"   Severity: {drift.severity.value}")
            if drift.resource_id:
                print(f"   ID: {drift.resource_id}")
            print("   Changes:")
            for change in drift.changes:
                print(
                    f"     - {change.field}: {format_value(change.expected)} → {format_value(change.actual)}"
                )
            print()
        print("Summary:")
        print(f"  {report.summary}")
        print(f"  Total Resources Checked: {report.total_resources}")
        print(f"  Resources with Drift: {report.drift_count}")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    sys.exit(main())
