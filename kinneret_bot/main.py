"""Cloud Function Entry Point.

This module provides the entry point for Google Cloud Functions.
It's a thin wrapper that loads configuration and invokes the orchestrator.
"""

import logging
import os
import json
from typing import Any

import functions_framework
from flask import Request

from kinneret_bot.core.config import Config, validate_config
from kinneret_bot.orchestrator import Orchestrator
from kinneret_bot.shell.config_loader import load_config, load_config_from_env


# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _get_config() -> Config:
    """Load configuration from file or environment."""
    config_path = os.environ.get("CONFIG_PATH")

    if config_path:
        return load_config(config_path)
    elif os.environ.get("UPPER_RED_LINE"):
        return load_config_from_env()
    else:
        return load_config()


def _run_cycle() -> tuple[dict[str, Any], int]:
    """Update the history, then publish the newest survey.

    Returns:
        Tuple of (response dict, HTTP status code)
    """
    config = _get_config()

    validation = validate_config(config)
    for warning in validation.warnings:
        logger.warning("Config %s: %s", warning.field, warning.message)
    if not validation.valid:
        messages = [f"{e.field}: {e.message}" for e in validation.critical_errors]
        logger.error("Invalid configuration: %s", "; ".join(messages))
        return {"status": "error", "message": "Invalid configuration", "errors": messages}, 400

    orchestrator = Orchestrator(config)

    ingest = orchestrator.update_surveys()
    logger.info("Ingest: %s", ingest.summary)

    # Publish from the stored history even if the fetch failed
    outcome = orchestrator.publish_latest()

    errors = ingest.errors + ([outcome.error] if outcome.error else [])

    response: dict[str, Any] = {
        "status": "success" if ingest.success and outcome.success else "partial_failure",
        "ingest": ingest.summary,
        "records_new": ingest.records_new,
        "publication": outcome.state.value,
        "summary": outcome.summary,
    }
    if outcome.record is not None:
        response["survey_date"] = outcome.record.date_str
        response["content_source"] = outcome.content_source
    if errors:
        response["errors"] = errors

    if not outcome.success:
        return response, 500
    status_code = 200 if ingest.success else 207  # 207 = Multi-Status
    return response, status_code


@functions_framework.http
def kinneret_monitor(request: Request) -> tuple[dict[str, Any], int]:
    """HTTP Cloud Function entry point.

    This function is triggered by Cloud Scheduler or direct HTTP requests.
    It runs a complete ingest and publication cycle.

    Args:
        request: Flask request object (not used, but required by framework)

    Returns:
        Tuple of (response dict, HTTP status code)
    """
    logger.info("Starting Kinneret level cycle")

    try:
        response, status_code = _run_cycle()
        logger.info("Completed with status %d", status_code)
        return response, status_code

    except Exception as e:
        logger.exception("Unexpected error in Kinneret monitor")
        return {
            "status": "error",
            "message": str(e),
        }, 500


@functions_framework.cloud_event
def kinneret_monitor_pubsub(cloud_event: Any) -> None:
    """Pub/Sub Cloud Function entry point.

    Alternative trigger for Cloud Scheduler via Pub/Sub. Raises on
    failure so the platform records the invocation as failed.

    Args:
        cloud_event: CloudEvent from Pub/Sub
    """
    logger.info("Starting Kinneret level cycle (Pub/Sub trigger)")

    try:
        response, status_code = _run_cycle()
    except Exception:
        logger.exception("Unexpected error in Kinneret monitor")
        raise

    if status_code >= 400:
        raise RuntimeError(f"Kinneret cycle failed: {json.dumps(response, ensure_ascii=False)}")

    logger.info("Completed: %s", response.get("summary"))
