"""Tests for publication selection and outcome models."""

import pytest
from datetime import date

from kinneret_bot.core.publication import (
    PublicationOutcome,
    PublicationState,
    TERMINAL_STATES,
    find_new_records,
    format_watermark,
    parse_watermark,
    select_candidate,
)
from kinneret_bot.core.survey import SurveyRecord


@pytest.fixture
def history():
    return [
        SurveyRecord(date(2024, 3, 8), -213.24),
        SurveyRecord(date(2024, 3, 15), -213.16),
        SurveyRecord(date(2024, 3, 11), -213.2),
    ]


class TestSelectCandidate:
    """Tests for select_candidate() and find_new_records()."""

    def test_unset_watermark_selects_newest(self, history):
        assert select_candidate(history, None).date == date(2024, 3, 15)

    def test_selects_newest_after_watermark(self, history):
        assert select_candidate(history, date(2024, 3, 9)).date == date(2024, 3, 15)

    def test_watermark_equal_to_newest_selects_nothing(self, history):
        assert select_candidate(history, date(2024, 3, 15)) is None

    def test_watermark_after_newest_selects_nothing(self, history):
        assert select_candidate(history, date(2024, 4, 1)) is None

    def test_empty_history(self):
        assert select_candidate([], None) is None

    def test_find_new_records_is_strictly_after(self, history):
        new = find_new_records(history, date(2024, 3, 11))

        assert [r.date for r in new] == [date(2024, 3, 15)]

    def test_only_newest_is_selected_when_several_are_pending(self, history):
        """Older unpublished records are skipped, never backfilled."""
        assert select_candidate(history, date(2024, 3, 1)).date == date(2024, 3, 15)


class TestWatermark:
    """Tests for parse_watermark() and format_watermark()."""

    def test_parse(self):
        assert parse_watermark("2024-03-15\n") == date(2024, 3, 15)

    @pytest.mark.parametrize("value", [None, "", "  \n"])
    def test_blank_is_unset(self, value):
        assert parse_watermark(value) is None

    def test_invalid_raises(self):
        with pytest.raises(ValueError):
            parse_watermark("15/3/2024")

    def test_format(self):
        assert format_watermark(date(2024, 3, 5)) == "2024-03-05"


class TestPublicationOutcome:
    """Tests for PublicationOutcome."""

    def test_terminal_states(self):
        assert PublicationState.COMMITTED in TERMINAL_STATES
        assert PublicationState.PUBLISHED not in TERMINAL_STATES

    def test_failed_is_not_success(self):
        outcome = PublicationOutcome(state=PublicationState.FAILED, error="boom")

        assert outcome.success is False

    def test_no_new_data_is_success(self):
        outcome = PublicationOutcome(state=PublicationState.NO_NEW_DATA)

        assert outcome.success is True
        assert outcome.summary == "No new records to publish"

    def test_committed_summary(self):
        outcome = PublicationOutcome(
            state=PublicationState.COMMITTED,
            record=SurveyRecord(date(2024, 3, 15), -213.16),
            content_source="template",
        )

        assert outcome.summary == "Published 2024-03-15 (template), watermark advanced"

    def test_published_but_not_committed_summary(self):
        outcome = PublicationOutcome(
            state=PublicationState.FAILED,
            record=SurveyRecord(date(2024, 3, 15), -213.16),
            published=True,
            error="Failed to update watermark",
        )

        assert "was not committed" in outcome.summary
