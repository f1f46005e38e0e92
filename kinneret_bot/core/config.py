"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field

from kinneret_bot.core.trends import Thresholds


DEFAULT_SURVEYS_PATH = "docs/surveys.json"
DEFAULT_WATERMARK_PATH = "last_tweet.txt"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_FIRESTORE_COLLECTION = "kinneret_bot"

WATERMARK_BACKENDS = ("file", "firestore")

TWITTER_CREDENTIAL_KEYS = (
    "api_key",
    "api_secret",
    "access_token",
    "access_token_secret",
)


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        thresholds: Regulatory lines (upper red, lower red, black)
        max_tweet_length: Maximum length of published text
        dry_run: Generate content but skip publish and watermark commit
        use_llm_generation: Try the text-generation model before the template
        gemini_api_key: API key for the Generative Language API
        gemini_model: Model name
        gemini_temperature: Sampling temperature
        twitter_credentials: OAuth 1.0a credentials as (key, value) pairs
        surveys_path: Path of the history JSON file
        watermark_path: Path of the watermark file (file backend)
        watermark_backend: 'file' or 'firestore'
        firestore_database: Firestore database name (None for default)
        firestore_collection: Firestore collection for the watermark
        fetch_limit: Number of rows requested from the feed
    """
    thresholds: Thresholds
    max_tweet_length: int = 280
    dry_run: bool = False
    use_llm_generation: bool = True
    gemini_api_key: str | None = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    gemini_temperature: float = 0.7
    twitter_credentials: tuple[tuple[str, str], ...] | None = None
    surveys_path: str = DEFAULT_SURVEYS_PATH
    watermark_path: str = DEFAULT_WATERMARK_PATH
    watermark_backend: str = "file"
    firestore_database: str | None = None
    firestore_collection: str = DEFAULT_FIRESTORE_COLLECTION
    fetch_limit: int = 15

    @property
    def llm_enabled(self) -> bool:
        """True if the generative strategy can be used."""
        return self.use_llm_generation and bool(self.gemini_api_key)


@dataclass
class ValidationError:
    """A configuration validation error.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationError]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ValidationError]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def _is_placeholder(value: str | None) -> bool:
    return isinstance(value, str) and value.startswith("${")


def validate_thresholds(thresholds: Thresholds) -> list[ValidationError]:
    """Validate the ordering of the regulatory lines.

    Pure function.

    Args:
        thresholds: Thresholds to validate

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    if not thresholds.upper_red_line > thresholds.lower_red_line:
        errors.append(ValidationError(
            field="thresholds",
            message=(
                f"upper_red_line ({thresholds.upper_red_line}) must be above "
                f"lower_red_line ({thresholds.lower_red_line})"
            ),
        ))

    if not thresholds.lower_red_line > thresholds.black_line:
        errors.append(ValidationError(
            field="thresholds",
            message=(
                f"lower_red_line ({thresholds.lower_red_line}) must be above "
                f"black_line ({thresholds.black_line})"
            ),
        ))

    return errors


def validate_twitter_credentials(
    credentials: tuple[tuple[str, str], ...] | None,
    dry_run: bool,
) -> list[ValidationError]:
    """Validate that publishing credentials are present and resolved.

    Pure function. Missing credentials are only a warning in dry run,
    since nothing is published.

    Args:
        credentials: Credentials as (key, value) pairs
        dry_run: Whether the run will skip publishing

    Returns:
        List of validation errors/warnings
    """
    severity = "warning" if dry_run else "error"
    creds = dict(credentials or ())

    missing = [k for k in TWITTER_CREDENTIAL_KEYS if not creds.get(k)]
    if missing:
        return [ValidationError(
            field="twitter_credentials",
            message=f"Missing Twitter credentials: {', '.join(missing)}",
            severity=severity,
        )]

    return [
        ValidationError(
            field=f"twitter_credentials.{key}",
            message="Credential not resolved (still contains placeholder)",
            severity="warning",
        )
        for key in TWITTER_CREDENTIAL_KEYS
        if _is_placeholder(creds[key])
    ]


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []

    errors.extend(validate_thresholds(config.thresholds))

    if config.max_tweet_length <= 0:
        errors.append(ValidationError(
            field="max_tweet_length",
            message=f"Max tweet length must be positive, got {config.max_tweet_length}",
        ))

    if config.fetch_limit <= 0:
        errors.append(ValidationError(
            field="fetch_limit",
            message=f"Fetch limit must be positive, got {config.fetch_limit}",
        ))

    if config.watermark_backend not in WATERMARK_BACKENDS:
        errors.append(ValidationError(
            field="watermark_backend",
            message=(
                f"Unknown watermark backend '{config.watermark_backend}', "
                f"expected one of {', '.join(WATERMARK_BACKENDS)}"
            ),
        ))

    errors.extend(validate_twitter_credentials(
        config.twitter_credentials,
        config.dry_run,
    ))

    if config.use_llm_generation:
        if not config.gemini_api_key:
            errors.append(ValidationError(
                field="gemini_api_key",
                message="LLM generation enabled but no API key set, template will be used",
                severity="warning",
            ))
        elif _is_placeholder(config.gemini_api_key):
            errors.append(ValidationError(
                field="gemini_api_key",
                message="API key not resolved (still contains placeholder)",
                severity="warning",
            ))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )
