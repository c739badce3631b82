"""Command-line entry point for a sync run.

Exit codes:
    0: every entry reconciled
    1: at least one entry failed, or a store was unreachable
    2: configuration error
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from . import __version__
from .config import load_config
from .config_loader import discover_config_files, load_hierarchical_config
from .config_schema import FileConfig, build_config
from .core.database import DatabaseClient
from .core.discussions import DiscussionClient
from .errors import ConfigurationError, StoreError
from .logger import setup_logging
from .sync.reporter import format_sync_report, report_to_json
from .sync.runner import BatchRunner

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def _stderr_print(msg: str) -> None:
    print(msg, file=sys.stderr, flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="troubleshoot-sync",
        description="Sync troubleshooting articles to the database and GitHub Discussions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sync the default content directory (settings from .env or config.yml)
  troubleshoot-sync

  # Preview what would change, without touching anything
  troubleshoot-sync content/troubleshooting --dry-run

  # Limit concurrent reconciliations and emit a JSON report
  troubleshoot-sync --max-parallel 4 --json

The report is written to stdout; logs go to stderr.
        """,
    )
    parser.add_argument(
        "content_dir",
        nargs="?",
        help="Directory of article files (overrides SYNC_CONTENT_DIR and config files)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Classify and compare entries but change nothing",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the report as JSON",
    )
    parser.add_argument(
        "--max-parallel",
        type=int,
        help="Maximum concurrent reconciliations, 1-100 (default: unbounded)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-file",
        help="Also write logs to this file",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Log line format (default: text)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"troubleshoot-sync version {__version__}",
    )
    return parser


def _load_file_config() -> FileConfig:
    """Load the YAML config files, mapping parse failures to ConfigurationError."""
    try:
        return build_config(load_hierarchical_config())
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Config file is not valid YAML: {e}") from e
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config file: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file: {e}") from e


def main(argv: list[str] | None = None) -> int:
    """Run one sync and return the process exit code."""
    args = build_parser().parse_args(argv)

    # .env first so ${VAR} interpolation in YAML can see its values
    load_dotenv()

    try:
        file_config = _load_file_config()
    except ConfigurationError as e:
        setup_logging(debug=args.debug, log_format=args.log_format)
        logger.error("Configuration error: %s", e)
        return EXIT_CONFIG_ERROR

    setup_logging(
        debug=args.debug,
        log_file=args.log_file or file_config.logging.file,
        log_format=args.log_format,
        level=file_config.logging.level,
    )
    config_files = discover_config_files()
    if config_files:
        logger.info("Config file: %s", config_files[0])

    overrides: dict = {"debug": args.debug}
    if args.content_dir:
        overrides["content_dir"] = args.content_dir
    if args.max_parallel is not None:
        overrides["max_parallel"] = args.max_parallel

    try:
        config = load_config(overrides=overrides, file_config=file_config)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return EXIT_CONFIG_ERROR

    content_dir = Path(config.content_dir)
    if not content_dir.is_dir():
        logger.error(
            "Configuration error: content directory not found: %s", content_dir
        )
        return EXIT_CONFIG_ERROR

    database = DatabaseClient(config)
    discussions = DiscussionClient(config)
    try:
        database.validate_connection()
        discussions.validate_connection()
        logger.info(
            "Connected to %s and %s",
            config.database_url,
            config.github_repository,
        )

        runner = BatchRunner(
            database, discussions, config, dry_run=args.dry_run
        )
        report = asyncio.run(runner.run_directory(content_dir))
    except StoreError as e:
        logger.error("Sync aborted: %s", e)
        return EXIT_FAILURE

    if args.json:
        print(json.dumps(report_to_json(report), indent=2))
    else:
        print(format_sync_report(report))

    return EXIT_FAILURE if report.has_errors else EXIT_OK


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        _stderr_print("\nInterrupted.")
        sys.exit(130)


if __name__ == "__main__":
    run()
