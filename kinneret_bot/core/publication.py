"""Publication selection and outcome models - Pure functions.

This module decides which record is due for publication given the
watermark (date of the last successfully published record) and defines
the states and outcome of a publication run.

Note: Sequencing the external calls is handled by the publisher; the
watermark itself is persisted by the imperative shell. This module only
contains the pure logic.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from kinneret_bot.core.survey import SurveyRecord, sort_descending
from kinneret_bot.core.trends import TrendSnapshot


class PublicationState(str, Enum):
    """States of a publication run.

    Happy path: IDLE -> CANDIDATE_SELECTED -> CONTENT_READY -> PUBLISHED
    -> COMMITTED. NO_NEW_DATA, DRY_RUN, COMMITTED and FAILED are terminal.
    """
    IDLE = "idle"
    CANDIDATE_SELECTED = "candidate_selected"
    CONTENT_READY = "content_ready"
    PUBLISHED = "published"
    COMMITTED = "committed"
    NO_NEW_DATA = "no_new_data"
    DRY_RUN = "dry_run"
    FAILED = "failed"


TERMINAL_STATES = frozenset({
    PublicationState.COMMITTED,
    PublicationState.NO_NEW_DATA,
    PublicationState.DRY_RUN,
    PublicationState.FAILED,
})


@dataclass
class PublicationOutcome:
    """Result of a publication run.

    Attributes:
        state: Terminal state the run ended in
        record: Record selected for publication (None if no new data)
        text: Publishable text that was produced
        content_source: Which content strategy produced the text
        snapshot: Trend snapshot computed for the record
        published: Whether the publish call reported success
        committed_watermark: Watermark written at commit (None if not committed)
        error: Error message if the run failed
        transitions: States visited, in order
    """
    state: PublicationState
    record: SurveyRecord | None = None
    text: str | None = None
    content_source: str | None = None
    snapshot: TrendSnapshot | None = None
    published: bool = False
    committed_watermark: date | None = None
    error: str | None = None
    transitions: list[PublicationState] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Returns True unless the run ended in FAILED."""
        return self.state != PublicationState.FAILED

    @property
    def summary(self) -> str:
        """Human-readable summary of the run."""
        if self.state == PublicationState.NO_NEW_DATA:
            return "No new records to publish"

        record_date = self.record.date_str if self.record else "?"

        if self.state == PublicationState.COMMITTED:
            return f"Published {record_date} ({self.content_source}), watermark advanced"
        if self.state == PublicationState.DRY_RUN:
            return f"Dry run for {record_date} ({self.content_source}), nothing published"

        if self.published:
            return f"Published {record_date} but watermark was not committed: {self.error}"
        return f"Failed to publish {record_date}: {self.error}"


def find_new_records(
    history: list[SurveyRecord],
    watermark: date | None,
) -> list[SurveyRecord]:
    """Find records newer than the watermark.

    Pure function.

    Args:
        history: Survey history (any order)
        watermark: Date of the last published record, None if unset

    Returns:
        Records strictly after the watermark, newest first
    """
    if watermark is None:
        return sort_descending(history)

    return sort_descending([r for r in history if r.date > watermark])


def select_candidate(
    history: list[SurveyRecord],
    watermark: date | None,
) -> SurveyRecord | None:
    """Select the newest unpublished record.

    Pure function.

    Args:
        history: Survey history (any order)
        watermark: Date of the last published record, None if unset

    Returns:
        Newest record after the watermark, or None if there is none
    """
    new_records = find_new_records(history, watermark)
    return new_records[0] if new_records else None


def parse_watermark(value: str | None) -> date | None:
    """Parse a persisted watermark string.

    Pure function. Empty or whitespace-only means unset.

    Args:
        value: Stored watermark (YYYY-MM-DD) or None

    Returns:
        Watermark date or None

    Raises:
        ValueError: If the value is set but is not a YYYY-MM-DD date
    """
    if value is None or not value.strip():
        return None
    return date.fromisoformat(value.strip())


def format_watermark(watermark: date) -> str:
    """Serialize a watermark for storage.

    Pure function.
    """
    return watermark.isoformat()
