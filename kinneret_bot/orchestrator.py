"""Orchestrator - Wires Functional Core and Imperative Shell.

This module coordinates the flow of data between the pure functional
core and the I/O-performing shell components. It's the "glue" that
makes the application work.

Two jobs are exposed, run by separate schedules or back to back:
- update_surveys(): fetch the feed and merge it into the history file
- publish_latest(): publish the newest unpublished survey
"""

import logging
from dataclasses import dataclass, field

from kinneret_bot.content import GeminiContentStrategy, TemplateContentStrategy
from kinneret_bot.core.config import Config
from kinneret_bot.core.publication import PublicationOutcome, PublicationState
from kinneret_bot.core.survey import merge_records, parse_raw_records, validate_api_response
from kinneret_bot.publisher import PublicationStateMachine
from kinneret_bot.shell.data_gov_client import DEFAULT_LIMIT, DataGovClient
from kinneret_bot.shell.firestore_client import FirestoreConfig, FirestoreWatermarkStore
from kinneret_bot.shell.gemini_client import GeminiClient
from kinneret_bot.shell.state_store import FileWatermarkStore, HistoryFileStore, HistoryLoadError
from kinneret_bot.shell.twitter_client import TwitterClient, TwitterCredentials, TwitterResponse


logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Result of merging the feed into the history.

    Attributes:
        records_fetched: Rows returned by the feed
        records_new: Rows added to the history
        total_records: History size after the merge
        errors: Any errors that occurred
    """
    records_fetched: int
    records_new: int
    total_records: int
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Returns True if no critical errors occurred."""
        return len(self.errors) == 0

    @property
    def summary(self) -> str:
        """Human-readable summary of the ingest result."""
        return (
            f"Fetched {self.records_fetched} surveys, "
            f"{self.records_new} new, "
            f"{self.total_records} in history"
        )


def ingest_surveys(
    data_client: DataGovClient,
    history_store: HistoryFileStore,
    fetch_limit: int = DEFAULT_LIMIT,
) -> IngestResult:
    """Fetch the latest surveys and merge them into the history.

    Does not need the publishing configuration, so the ingest job can
    run on its own.

    Args:
        data_client: data.gov.il client
        history_store: History file store
        fetch_limit: Number of rows to request

    Returns:
        IngestResult with details of what happened
    """
    # Step 1: Fetch
    try:
        data = data_client.fetch_surveys(limit=fetch_limit)
    except Exception as e:
        error_msg = f"Failed to fetch surveys: {e}"
        logger.error(error_msg)
        return IngestResult(0, 0, 0, errors=[error_msg])

    # Step 2: Validate structure (pure core function)
    problems = validate_api_response(data)
    if problems:
        logger.error(
            "Invalid API response structure",
            extra={"problems": problems},
        )
        return IngestResult(
            0, 0, 0,
            errors=[f"Invalid API response: {'; '.join(problems)}"],
        )

    if not data["success"]:
        logger.error("API response indicated failure")
        return IngestResult(0, 0, 0, errors=["API response indicated failure"])

    raw_records = parse_raw_records(data)

    # Step 3: Load existing history (first run starts empty)
    try:
        history = history_store.load(missing_ok=True)
    except HistoryLoadError as e:
        logger.error(str(e))
        return IngestResult(len(raw_records), 0, 0, errors=[str(e)])

    # Step 4: Merge (pure core function)
    result = merge_records(raw_records, history)
    if result.dropped_count:
        logger.debug("Dropped %d invalid or future-dated rows", result.dropped_count)

    # Step 5: Persist
    try:
        history_store.save(result.merged_history)
    except OSError as e:
        error_msg = f"Failed to save history: {e}"
        logger.error(error_msg)
        return IngestResult(
            len(raw_records), 0, len(history), errors=[error_msg],
        )

    logger.info(
        "Updated %s. Found %d new records.",
        history_store.path,
        result.new_count,
    )

    return IngestResult(
        records_fetched=len(raw_records),
        records_new=result.new_count,
        total_records=len(result.merged_history),
    )


class Orchestrator:
    """Coordinates survey ingestion and tweet publication.

    This class wires together:
    - data.gov.il client (fetches survey rows)
    - Core functions (merging, trend analysis, formatting)
    - History and watermark stores (state)
    - Gemini client (writes the tweet)
    - Twitter client (publishes the tweet)
    """

    def __init__(
        self,
        config: Config,
        data_client: DataGovClient | None = None,
        twitter_client: TwitterClient | None = None,
        gemini_client: GeminiClient | None = None,
        history_store: HistoryFileStore | None = None,
        watermark_store: FileWatermarkStore | FirestoreWatermarkStore | None = None,
    ) -> None:
        """Initialize orchestrator with configuration.

        Args:
            config: Application configuration
            data_client: data.gov.il client (created if not provided)
            twitter_client: Twitter client (created if not provided)
            gemini_client: Gemini client (created if not provided)
            history_store: History store (created if not provided)
            watermark_store: Watermark store (created from config if not provided)
        """
        self.config = config
        self.data_client = data_client or DataGovClient()
        self.twitter_client = twitter_client or TwitterClient(
            max_length=config.max_tweet_length,
        )
        self.gemini_client = gemini_client or GeminiClient()
        self.history_store = history_store or HistoryFileStore(config.surveys_path)
        self.watermark_store = watermark_store or self._create_watermark_store()

    def _create_watermark_store(self) -> FileWatermarkStore | FirestoreWatermarkStore:
        """Pick the watermark backend from config."""
        if self.config.watermark_backend == "firestore":
            return FirestoreWatermarkStore(
                FirestoreConfig(
                    database=self.config.firestore_database,
                    collection=self.config.firestore_collection,
                )
            )
        return FileWatermarkStore(self.config.watermark_path)

    def update_surveys(self) -> IngestResult:
        """Fetch the latest surveys and merge them into the history."""
        return ingest_surveys(
            self.data_client,
            self.history_store,
            fetch_limit=self.config.fetch_limit,
        )

    def _publish_tweet(self, text: str) -> TwitterResponse:
        """Publish text with the configured Twitter credentials."""
        if not self.config.twitter_credentials:
            return TwitterResponse(
                success=False,
                status_code=0,
                error="Twitter credentials not configured",
            )

        try:
            credentials = TwitterCredentials.from_pairs(self.config.twitter_credentials)
        except KeyError as e:
            return TwitterResponse(
                success=False,
                status_code=0,
                error=f"Twitter credentials missing key: {e}",
            )

        return self.twitter_client.send_tweet(text, credentials)

    def _build_state_machine(self) -> PublicationStateMachine:
        """Wire content strategies, publisher and watermark commit."""
        primary = None
        if self.config.llm_enabled:
            primary = GeminiContentStrategy(
                api_key=self.config.gemini_api_key,
                model=self.config.gemini_model,
                temperature=self.config.gemini_temperature,
                client=self.gemini_client,
            )

        return PublicationStateMachine(
            thresholds=self.config.thresholds,
            fallback=TemplateContentStrategy(self.config.thresholds.upper_red_line),
            publish=self._publish_tweet,
            commit=self.watermark_store.write,
            primary=primary,
            max_length=self.config.max_tweet_length,
            dry_run=self.config.dry_run,
        )

    def publish_latest(self) -> PublicationOutcome:
        """Publish the newest unpublished survey, if any.

        Missing or corrupt history and an unreadable watermark are
        reported as a FAILED outcome; nothing is published.

        Returns:
            PublicationOutcome describing what happened
        """
        # Step 1: Load state
        try:
            history = self.history_store.load()
            watermark = self.watermark_store.read()
        except Exception as e:
            error_msg = f"Failed to load state: {e}"
            logger.error(error_msg)
            return PublicationOutcome(
                state=PublicationState.FAILED,
                error=error_msg,
                transitions=[PublicationState.IDLE, PublicationState.FAILED],
            )

        # Step 2: Run the state machine
        outcome = self._build_state_machine().run(history, watermark)

        logger.info("Publication finished: %s", outcome.summary)
        return outcome
