"""Publication State Machine - Sequences content, publish and commit.

Given the survey history and the watermark, a run selects the newest
unpublished survey, obtains text from the content strategies, publishes
it and only then advances the watermark:

    IDLE -> CANDIDATE_SELECTED -> CONTENT_READY -> PUBLISHED -> COMMITTED
    IDLE -> NO_NEW_DATA
    CONTENT_READY -> DRY_RUN
    any state -> FAILED (watermark untouched unless already published)

A crash between a successful publish and the commit republishes the
same survey on the next run (at-least-once).
"""

import logging
from datetime import date
from typing import Callable, Protocol

from kinneret_bot.content import ContentGenerationError, ContentStrategy
from kinneret_bot.core.publication import (
    PublicationOutcome,
    PublicationState,
    select_candidate,
)
from kinneret_bot.core.survey import SurveyRecord
from kinneret_bot.core.trends import Thresholds, TrendSnapshot, analyze_trends


logger = logging.getLogger(__name__)


class PublishResult(Protocol):
    """What a publish function reports back."""

    success: bool
    error: str | None


PublishFn = Callable[[str], PublishResult]

# Persists the watermark, returns True on success
CommitFn = Callable[[date], bool]


class PublicationStateMachine:
    """Publishes at most one survey per run and commits the watermark.

    The primary content strategy is optional; the fallback must not
    perform external calls.
    """

    def __init__(
        self,
        thresholds: Thresholds,
        fallback: ContentStrategy,
        publish: PublishFn,
        commit: CommitFn,
        primary: ContentStrategy | None = None,
        max_length: int = 280,
        dry_run: bool = False,
    ) -> None:
        """Initialize the state machine.

        Args:
            thresholds: Regulatory lines used for the trend snapshot
            fallback: Deterministic content strategy
            publish: Sends text externally
            commit: Persists the new watermark
            primary: Preferred content strategy (None to use the fallback only)
            max_length: Maximum length of the published text
            dry_run: Stop after content generation
        """
        self.thresholds = thresholds
        self.fallback = fallback
        self.publish = publish
        self.commit = commit
        self.primary = primary
        self.max_length = max_length
        self.dry_run = dry_run

    def _generate_with(
        self,
        strategy: ContentStrategy,
        record: SurveyRecord,
        snapshot: TrendSnapshot,
    ) -> str:
        """Run one strategy and check its output.

        Raises:
            ContentGenerationError: If the output is empty or too long
        """
        text = strategy.generate(record, snapshot, self.max_length)

        if not isinstance(text, str) or not text.strip():
            raise ContentGenerationError(f"{strategy.name} returned empty text")
        if len(text) > self.max_length:
            raise ContentGenerationError(
                f"{strategy.name} returned {len(text)} characters "
                f"(max {self.max_length})"
            )

        return text

    def _generate_content(
        self,
        record: SurveyRecord,
        snapshot: TrendSnapshot,
    ) -> tuple[str, str]:
        """Obtain text from the primary strategy, else the fallback.

        Returns:
            Tuple of (text, strategy name)
        """
        if self.primary is not None:
            try:
                logger.info("Generating text with %s", self.primary.name)
                text = self._generate_with(self.primary, record, snapshot)
                return text, self.primary.name
            except Exception as e:
                logger.warning(
                    "%s generation failed, falling back to %s: %s",
                    self.primary.name,
                    self.fallback.name,
                    str(e),
                )
        else:
            logger.info("Using %s-based generation", self.fallback.name)

        # The fallback's output is used as is
        text = self.fallback.generate(record, snapshot, self.max_length)
        return text, self.fallback.name

    def run(
        self,
        history: list[SurveyRecord],
        watermark: date | None,
    ) -> PublicationOutcome:
        """Run one publication cycle.

        Args:
            history: Canonical survey history
            watermark: Date of the last published survey, None if unset

        Returns:
            PublicationOutcome describing the terminal state
        """
        outcome = PublicationOutcome(state=PublicationState.IDLE)
        outcome.transitions.append(PublicationState.IDLE)

        def advance(state: PublicationState) -> None:
            outcome.state = state
            outcome.transitions.append(state)

        # Step 1: Selection
        record = select_candidate(history, watermark)
        if record is None:
            logger.info("No new records to publish (watermark: %s)", watermark)
            advance(PublicationState.NO_NEW_DATA)
            return outcome

        outcome.record = record
        advance(PublicationState.CANDIDATE_SELECTED)
        logger.info("Selected survey %s (level %.3f)", record.date_str, record.level)

        # Step 2: Content
        try:
            snapshot = analyze_trends(history, record, self.thresholds)
            outcome.snapshot = snapshot
            text, source = self._generate_content(record, snapshot)
        except Exception as e:
            logger.error("Content generation failed: %s", str(e))
            outcome.error = f"Content generation failed: {e}"
            advance(PublicationState.FAILED)
            return outcome

        outcome.text = text
        outcome.content_source = source
        advance(PublicationState.CONTENT_READY)
        logger.info(
            "Generated tweet text",
            extra={"tweet_text": text, "source": source},
        )

        if self.dry_run:
            logger.info("Dry run: skipping publish and watermark update")
            advance(PublicationState.DRY_RUN)
            return outcome

        # Step 3: Publish
        try:
            result = self.publish(text)
        except Exception as e:
            logger.error("Publish raised: %s", str(e))
            outcome.error = f"Publish failed: {e}"
            advance(PublicationState.FAILED)
            return outcome

        if not result.success:
            logger.error("Failed to publish survey %s: %s", record.date_str, result.error)
            outcome.error = f"Publish failed: {result.error}"
            advance(PublicationState.FAILED)
            return outcome

        outcome.published = True
        advance(PublicationState.PUBLISHED)
        logger.info("Published survey %s", record.date_str)

        # Step 4: Commit, only after a confirmed publish
        try:
            committed = self.commit(record.date)
        except Exception as e:
            logger.error("Watermark commit raised: %s", str(e))
            committed = False

        if not committed:
            logger.error(
                "Survey %s was published but the watermark was not advanced; "
                "it will be published again on the next run",
                record.date_str,
            )
            outcome.error = "Failed to update watermark"
            advance(PublicationState.FAILED)
            return outcome

        outcome.committed_watermark = record.date
        advance(PublicationState.COMMITTED)
        return outcome
