"""Command-line entry point for scheduled jobs.

Usage:
    # Merge the latest surveys into the history file
    python -m kinneret_bot.cli update-surveys [surveys_file]

    # Publish the newest unpublished survey
    python -m kinneret_bot.cli daily-tweet [surveys_file] [last_tweet_file]

    # Preview the tweet without publishing or moving the watermark
    python -m kinneret_bot.cli --dry-run daily-tweet

Environment:
    CONFIG_PATH: YAML config file (otherwise read from environment variables)
    SURVEYS_FILE: History file when no argument is given
    LOG_LEVEL: Logging level (default: INFO)
"""

import argparse
import dataclasses
import logging
import os
import sys

from kinneret_bot.core.config import Config, DEFAULT_SURVEYS_PATH, validate_config
from kinneret_bot.core.publication import PublicationState
from kinneret_bot.orchestrator import Orchestrator, ingest_surveys
from kinneret_bot.shell.config_loader import load_config, load_config_from_env
from kinneret_bot.shell.data_gov_client import DEFAULT_LIMIT, DataGovClient
from kinneret_bot.shell.state_store import HistoryFileStore


logger = logging.getLogger(__name__)


def _setup_logging() -> None:
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="kinneret-bot",
        description="Track the Sea of Galilee water level and tweet about it",
    )
    parser.add_argument(
        "--config",
        help="Path to YAML config file (default: CONFIG_PATH or environment variables)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Generate the tweet without publishing or updating the watermark",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    update = subparsers.add_parser(
        "update-surveys",
        help="Fetch the latest surveys and merge them into the history file",
    )
    update.add_argument("surveys_file", nargs="?", help="History JSON file")

    tweet = subparsers.add_parser(
        "daily-tweet",
        help="Publish the newest survey not yet tweeted",
    )
    tweet.add_argument("surveys_file", nargs="?", help="History JSON file")
    tweet.add_argument("last_tweet_file", nargs="?", help="Watermark file")

    return parser


def _load_config(config_path: str | None) -> Config:
    """Load config from the given file, CONFIG_PATH, or the environment."""
    path = config_path or os.environ.get("CONFIG_PATH")
    if path:
        return load_config(path)
    return load_config_from_env()


def run_update_surveys(args: argparse.Namespace) -> int:
    """Run the ingest job.

    Thresholds and credentials are not needed here, so a config file is
    only read when one is given explicitly.
    """
    surveys_path = os.environ.get("SURVEYS_FILE") or DEFAULT_SURVEYS_PATH
    fetch_limit = DEFAULT_LIMIT

    if args.config:
        config = load_config(args.config)
        surveys_path = config.surveys_path
        fetch_limit = config.fetch_limit

    if args.surveys_file:
        surveys_path = args.surveys_file

    result = ingest_surveys(
        DataGovClient(),
        HistoryFileStore(surveys_path),
        fetch_limit=fetch_limit,
    )

    if not result.success:
        for error in result.errors:
            logger.error(error)
        return 1

    logger.info(result.summary)
    return 0


def run_daily_tweet(args: argparse.Namespace) -> int:
    """Run the publication job."""
    config = _load_config(args.config)

    overrides = {}
    if args.dry_run:
        overrides["dry_run"] = True
    if args.surveys_file:
        overrides["surveys_path"] = args.surveys_file
    if args.last_tweet_file:
        overrides["watermark_path"] = args.last_tweet_file
    if overrides:
        config = dataclasses.replace(config, **overrides)

    validation = validate_config(config)
    for warning in validation.warnings:
        logger.warning("Config %s: %s", warning.field, warning.message)
    if not validation.valid:
        for error in validation.critical_errors:
            logger.error("Config %s: %s", error.field, error.message)
        return 1

    outcome = Orchestrator(config).publish_latest()

    if outcome.state == PublicationState.DRY_RUN and outcome.text:
        print(outcome.text)

    if not outcome.success:
        logger.error(outcome.summary)
        return 1

    logger.info(outcome.summary)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Parse arguments and run the requested job.

    Returns:
        Process exit code (0 on success or nothing to publish, 1 on failure)
    """
    _setup_logging()
    args = build_parser().parse_args(argv)

    try:
        if args.command == "update-surveys":
            return run_update_surveys(args)
        return run_daily_tweet(args)
    except (OSError, ValueError, KeyError) as e:
        logger.error("Failed to load configuration: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
