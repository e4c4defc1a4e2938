#!/usr/bin/env python3
"""
API Tester CLI - Runs every API test configuration once.

Usage:
    api-tester [--config config.json] [--configs-dir configs] [--dry-run] [-v]

Exit codes:
    0: No incidents
    3: At least one incident, or the run itself failed
"""

import argparse
import logging
import sys

from api_tester.health import run_api_tests

EPILOG = """
Each *.json file in the configs directory describes one API (base_url,
optional request_jwt, default_options and controllers). Failed checks of an
API are reported as one Better Uptime incident; a heartbeat is sent after
every run when configured.

Exit codes:
  0  - no incidents
  3  - incidents reported, or the run failed

Examples:
  api-tester
  api-tester --configs-dir /etc/api-tester/configs
  BETTERUPTIME_TOKEN=... api-tester --config /etc/api-tester/config.json
  api-tester --dry-run -v
"""


def setup_logging(verbose: bool = False) -> None:
    """
    Configure root logging for a CLI run.

    Args:
        verbose: If True, also show request and summarizer DEBUG output
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser of the api-tester command."""
    parser = argparse.ArgumentParser(
        prog="api-tester",
        description="Check API controllers against declarative expectations "
        "and report failures to Better Uptime",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="global settings with the betteruptime section "
        "(default: ./config.json, then ./config.example.json)",
    )
    parser.add_argument(
        "--configs-dir",
        metavar="DIR",
        help="directory of per-API test configs (default: ./configs)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="print incidents to stdout, no Better Uptime incidents or heartbeat",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="log at DEBUG level",
    )
    return parser


def main() -> int:
    """
    Entry point of the api-tester command.

    Returns:
        Exit code of the run
    """
    args = build_parser().parse_args()
    setup_logging(verbose=args.verbose)

    logger = logging.getLogger(__name__)
    if args.dry_run:
        logger.info("Dry run, incidents are printed instead of sent")

    try:
        exit_code = run_api_tests(
            config_path=args.config,
            configs_dir=args.configs_dir,
            dry_run=args.dry_run,
        )
    except KeyboardInterrupt:
        logger.error("API tests interrupted")
        return 130
    except Exception as e:
        logger.error("API tests crashed: %s", e, exc_info=True)
        return 3

    logger.info("API tests finished with exit code %d", exit_code)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
