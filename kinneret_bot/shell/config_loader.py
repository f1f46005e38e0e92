"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

Models (Config, Thresholds) are defined in the core package
to avoid information leakage between layers.
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml

from kinneret_bot.core.config import (
    Config,
    DEFAULT_FIRESTORE_COLLECTION,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_SURVEYS_PATH,
    DEFAULT_WATERMARK_PATH,
    TWITTER_CREDENTIAL_KEYS,
)
from kinneret_bot.core.trends import Thresholds
from kinneret_bot.shell.secret_manager_client import SecretManagerClient, SecretManagerConfig


logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = "config/config.yaml"

# Env var and Secret Manager secret name for each Twitter credential
TWITTER_ENV_VARS = {
    "api_key": ("TWITTER_APP_KEY", "twitter-app-key"),
    "api_secret": ("TWITTER_APP_SECRET", "twitter-app-secret"),
    "access_token": ("TWITTER_ACCESS_TOKEN", "twitter-access-token"),
    "access_token_secret": ("TWITTER_ACCESS_SECRET", "twitter-access-secret"),
}

TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off", "")


def _get_secret_manager_client() -> Optional[SecretManagerClient]:
    """Get a Secret Manager client if a GCP project is configured.

    Returns None if no project is set (e.g., local development).
    """
    project_id = os.environ.get("GCP_PROJECT") or os.environ.get("GOOGLE_CLOUD_PROJECT")

    if project_id:
        return SecretManagerClient(SecretManagerConfig(project_id=project_id))
    return None


def _resolve_value(value: Any, secret_client: Optional[SecretManagerClient] = None) -> Any:
    """Resolve a value that may contain secret or env var placeholders.

    Args:
        value: Value to resolve (may be a ${...} placeholder)
        secret_client: Client for resolving secrets

    Returns:
        Resolved value
    """
    if not isinstance(value, str):
        return value

    if secret_client:
        return secret_client.resolve(value)

    # No secret client - only handle env vars
    if value.startswith("${") and value.endswith("}"):
        var_spec = value[2:-1]
        if not var_spec.startswith("secret:"):
            env_value = os.environ.get(var_spec)
            if env_value:
                return env_value
            logger.warning("Environment variable %s not set", var_spec)

    return value


def _parse_bool(value: Any, default: bool = False) -> bool:
    """Parse a boolean from YAML or an environment string.

    Raises:
        ValueError: If a string is not a recognized boolean
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value

    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


def _parse_thresholds(data: dict[str, Any]) -> Thresholds:
    """Parse the regulatory lines from config data.

    Raises:
        KeyError: If a line is missing
        ValueError: If a line is not a number
    """
    return Thresholds(
        upper_red_line=float(data["upper_red_line"]),
        lower_red_line=float(data["lower_red_line"]),
        black_line=float(data["black_line"]),
    )


def _parse_credentials(
    data: dict[str, Any],
    secret_client: Optional[SecretManagerClient] = None,
) -> tuple[tuple[str, str], ...] | None:
    """Parse Twitter credentials into sorted (key, value) pairs."""
    if not data:
        return None

    resolved = {
        key: _resolve_value(data[key], secret_client)
        for key in TWITTER_CREDENTIAL_KEYS
        if data.get(key)
    }

    return tuple(sorted(resolved.items())) or None


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    This is a pure-ish function (only placeholder expansion has side effects).

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object

    Raises:
        KeyError: If the thresholds section is missing
        ValueError: If a value has the wrong type
    """
    secret_client = _get_secret_manager_client()

    llm = data.get("llm", {}) or {}
    state = data.get("state", {}) or {}

    return Config(
        thresholds=_parse_thresholds(data["thresholds"]),
        max_tweet_length=int(data.get("max_tweet_length", 280)),
        dry_run=_parse_bool(data.get("dry_run"), default=False),
        use_llm_generation=_parse_bool(llm.get("enabled"), default=True),
        gemini_api_key=_resolve_value(llm.get("api_key"), secret_client),
        gemini_model=llm.get("model", DEFAULT_GEMINI_MODEL),
        gemini_temperature=float(llm.get("temperature", 0.7)),
        twitter_credentials=_parse_credentials(data.get("twitter", {}), secret_client),
        surveys_path=state.get("surveys_path", DEFAULT_SURVEYS_PATH),
        watermark_path=state.get("watermark_path", DEFAULT_WATERMARK_PATH),
        watermark_backend=state.get("watermark_backend", "file"),
        firestore_database=state.get("firestore_database"),
        firestore_collection=state.get("firestore_collection", DEFAULT_FIRESTORE_COLLECTION),
        fetch_limit=int(data.get("fetch_limit", 15)),
    )


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
        ValueError: If config file is empty or has invalid values
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not data:
        raise ValueError(f"Config file is empty: {path}")

    config = load_config_from_dict(data)

    logger.info(
        "Loaded config: dry_run=%s, llm=%s, watermark_backend=%s",
        config.dry_run,
        config.llm_enabled,
        config.watermark_backend,
    )

    return config


def _require_float(name: str) -> float:
    """Read a required numeric environment variable.

    Raises:
        ValueError: If the variable is missing or not a number
    """
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        raise ValueError(f"Environment variable {name} is required")
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number, got {raw!r}")


def load_config_from_env() -> Config:
    """Load configuration from environment variables.

    Useful for scheduled jobs (e.g. CI workflows) without a YAML file.

    Environment variables:
        UPPER_RED_LINE, LOWER_RED_LINE, BLACK_LINE: Regulatory lines (required)
        TWITTER_APP_KEY, TWITTER_APP_SECRET,
        TWITTER_ACCESS_TOKEN, TWITTER_ACCESS_SECRET: Twitter credentials
            (falls back to Secret Manager when a GCP project is set)
        DRY_RUN: Skip publishing and watermark update (default: false)
        GEMINI_API_KEY: Generative Language API key (optional)
        GEMINI_MODEL: Model name (default: gemini-2.0-flash)
        USE_LLM_GENERATION: Try the model before the template (default: true)
        MAX_TWEET_LENGTH: Maximum tweet length (default: 280)
        SURVEYS_FILE: History file path (default: docs/surveys.json)
        LAST_TWEET_FILE: Watermark file path (default: last_tweet.txt)
        WATERMARK_BACKEND: 'file' or 'firestore' (default: file)
        FIRESTORE_DATABASE: Firestore database name (optional)

    Returns:
        Config object from environment

    Raises:
        ValueError: If a required variable is missing or a value is invalid
    """
    secret_client = _get_secret_manager_client()

    thresholds = Thresholds(
        upper_red_line=_require_float("UPPER_RED_LINE"),
        lower_red_line=_require_float("LOWER_RED_LINE"),
        black_line=_require_float("BLACK_LINE"),
    )

    credentials = {}
    for key, (env_var, secret_name) in TWITTER_ENV_VARS.items():
        if secret_client:
            value = secret_client.get_secret_or_env(secret_name, env_var)
        else:
            value = os.environ.get(env_var)
        if value:
            credentials[key] = value

    max_tweet_length = os.environ.get("MAX_TWEET_LENGTH", "280")
    try:
        max_length = int(max_tweet_length)
    except ValueError:
        raise ValueError(f"MAX_TWEET_LENGTH must be an integer, got {max_tweet_length!r}")

    return Config(
        thresholds=thresholds,
        max_tweet_length=max_length,
        dry_run=_parse_bool(os.environ.get("DRY_RUN"), default=False),
        use_llm_generation=_parse_bool(os.environ.get("USE_LLM_GENERATION"), default=True),
        gemini_api_key=os.environ.get("GEMINI_API_KEY") or None,
        gemini_model=os.environ.get("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
        twitter_credentials=tuple(sorted(credentials.items())) or None,
        surveys_path=os.environ.get("SURVEYS_FILE") or DEFAULT_SURVEYS_PATH,
        watermark_path=os.environ.get("LAST_TWEET_FILE") or DEFAULT_WATERMARK_PATH,
        watermark_backend=os.environ.get("WATERMARK_BACKEND") or "file",
        firestore_database=os.environ.get("FIRESTORE_DATABASE") or None,
    )
