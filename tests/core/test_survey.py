"""Tests for survey parsing and the record store merge."""

import pytest
from datetime import date

from kinneret_bot.core.survey import (
    MergeResult,
    RawSurveyRecord,
    SurveyRecord,
    merge_records,
    parse_level,
    parse_raw_records,
    parse_survey_date,
    records_from_json,
    records_to_json,
    sort_descending,
    validate_api_response,
)


TODAY = date(2024, 3, 20)


def make_response(records, success=True):
    """Build a datastore_search response body."""
    return {
        "success": success,
        "result": {"records": records},
    }


class TestParseSurveyDate:
    """Tests for parse_survey_date()."""

    def test_parses_feed_format(self):
        assert parse_survey_date("15/3/2024") == date(2024, 3, 15)

    def test_parses_zero_padded_feed_format(self):
        assert parse_survey_date("05/03/2024") == date(2024, 3, 5)

    def test_parses_iso_format(self):
        assert parse_survey_date("2024-03-15") == date(2024, 3, 15)

    def test_parses_iso_with_time(self):
        assert parse_survey_date("2024-03-15T00:00:00") == date(2024, 3, 15)
        assert parse_survey_date("2024-03-15 08:30") == date(2024, 3, 15)

    def test_rejects_trailing_garbage_after_iso_date(self):
        assert parse_survey_date("2024-03-15garbage") is None

    @pytest.mark.parametrize("value", ["", "   ", "31/2/2024", "not a date", None, 20240315])
    def test_invalid_returns_none(self, value):
        assert parse_survey_date(value) is None


class TestParseLevel:
    """Tests for parse_level()."""

    def test_accepts_float(self):
        assert parse_level(-213.16) == -213.16

    def test_accepts_numeric_string(self):
        assert parse_level(" -213.16 ") == -213.16

    def test_accepts_int(self):
        assert parse_level(-213) == -213.0

    @pytest.mark.parametrize("value", [None, "", "abc", True, float("nan"), "inf", [1]])
    def test_invalid_returns_none(self, value):
        assert parse_level(value) is None


class TestMergeRecords:
    """Tests for merge_records()."""

    def test_merges_into_empty_history(self):
        raw = [
            RawSurveyRecord("15/3/2024", -213.16, 1),
            RawSurveyRecord("14/3/2024", "-213.17", 2),
        ]

        result = merge_records(raw, [], today=TODAY)

        assert isinstance(result, MergeResult)
        assert result.new_count == 2
        assert result.merged_history == [
            SurveyRecord(date(2024, 3, 15), -213.16),
            SurveyRecord(date(2024, 3, 14), -213.17),
        ]

    def test_existing_value_wins(self):
        """A date already in the history is never overwritten."""
        existing = [SurveyRecord(date(2024, 3, 15), -213.16)]
        raw = [RawSurveyRecord("15/3/2024", -200.0, 1)]

        result = merge_records(raw, existing, today=TODAY)

        assert result.new_count == 0
        assert result.merged_history == existing

    def test_duplicate_dates_in_feed_count_once(self):
        raw = [
            RawSurveyRecord("15/3/2024", -213.16, 1),
            RawSurveyRecord("2024-03-15", -213.50, 2),
        ]

        result = merge_records(raw, [], today=TODAY)

        assert result.new_count == 1
        assert result.merged_history[0].level == -213.16

    def test_drops_future_dated_records(self):
        raw = [RawSurveyRecord("21/3/2024", -213.0, 1)]

        result = merge_records(raw, [], today=TODAY)

        assert result.new_count == 0
        assert result.merged_history == []

    def test_keeps_record_dated_today(self):
        raw = [RawSurveyRecord("20/3/2024", -213.0, 1)]

        result = merge_records(raw, [], today=TODAY)

        assert result.new_count == 1

    def test_drops_invalid_records(self):
        raw = [
            RawSurveyRecord("garbage", -213.0, 1),
            RawSurveyRecord("15/3/2024", "n/a", 2),
            RawSurveyRecord("14/3/2024", -213.17, 3),
        ]

        result = merge_records(raw, [], today=TODAY)

        assert result.new_count == 1
        assert result.merged_history == [SurveyRecord(date(2024, 3, 14), -213.17)]
        assert result.dropped_count == 2

    def test_result_sorted_newest_first(self):
        existing = [
            SurveyRecord(date(2024, 3, 1), -213.3),
            SurveyRecord(date(2024, 3, 10), -213.2),
        ]
        raw = [RawSurveyRecord("5/3/2024", -213.25, 1)]

        result = merge_records(raw, existing, today=TODAY)

        dates = [r.date for r in result.merged_history]
        assert dates == sorted(dates, reverse=True)
        assert len(dates) == 3

    def test_does_not_mutate_inputs(self):
        existing = [SurveyRecord(date(2024, 3, 1), -213.3)]
        raw = [RawSurveyRecord("5/3/2024", -213.25, 1)]

        merge_records(raw, existing, today=TODAY)

        assert existing == [SurveyRecord(date(2024, 3, 1), -213.3)]

    def test_merge_is_idempotent(self):
        raw = [RawSurveyRecord("15/3/2024", -213.16, 1)]

        first = merge_records(raw, [], today=TODAY)
        second = merge_records(raw, first.merged_history, today=TODAY)

        assert second.new_count == 0
        assert second.merged_history == first.merged_history


class TestValidateApiResponse:
    """Tests for validate_api_response()."""

    def test_valid_response(self):
        data = make_response([
            {"_id": 1, "Survey_Date": "15/3/2024", "Kinneret_Level": -213.16},
            {"_id": 2, "Survey_Date": "14/3/2024", "Kinneret_Level": "-213.17"},
        ])

        assert validate_api_response(data) == []

    def test_not_an_object(self):
        assert validate_api_response([]) == ["response is not an object"]

    def test_missing_success(self):
        data = {"result": {"records": []}}

        assert "'success' must be a boolean" in validate_api_response(data)

    def test_missing_result(self):
        errors = validate_api_response({"success": True})

        assert errors == ["'result' must be an object"]

    def test_records_not_a_list(self):
        errors = validate_api_response({"success": True, "result": {"records": {}}})

        assert errors == ["'result.records' must be an array"]

    def test_bad_rows_do_not_invalidate_response(self):
        """Row contents are left to the merge, which drops bad rows."""
        data = make_response([
            {"_id": "x", "Survey_Date": 15, "Kinneret_Level": None},
            "not a row",
        ])

        assert validate_api_response(data) == []


class TestParseRawRecords:
    """Tests for parse_raw_records()."""

    def test_extracts_fields_in_feed_order(self):
        data = make_response([
            {"_id": 7, "Survey_Date": "15/3/2024", "Kinneret_Level": -213.16},
            {"_id": 6, "Survey_Date": "14/3/2024", "Kinneret_Level": "-213.17"},
        ])

        raw = parse_raw_records(data)

        assert raw == [
            RawSurveyRecord("15/3/2024", -213.16, 7),
            RawSurveyRecord("14/3/2024", "-213.17", 6),
        ]

    def test_malformed_rows_become_droppable_readings(self):
        data = make_response([
            "not a row",
            {"_id": "x", "Kinneret_Level": -213.16},
        ])

        raw = parse_raw_records(data)

        assert raw == [
            RawSurveyRecord("", None, None),
            RawSurveyRecord("", -213.16, None),
        ]
        result = merge_records(raw, [], today=TODAY)
        assert result.merged_history == []
        assert result.dropped_count == 2


class TestHistoryJson:
    """Tests for records_from_json() and records_to_json()."""

    def test_to_json_newest_first(self):
        records = [
            SurveyRecord(date(2024, 3, 14), -213.17),
            SurveyRecord(date(2024, 3, 15), -213.16),
        ]

        assert records_to_json(records) == [
            {"date": "2024-03-15", "level": -213.16},
            {"date": "2024-03-14", "level": -213.17},
        ]

    def test_from_json(self):
        items = [
            {"date": "2024-03-14", "level": -213.17},
            {"date": "2024-03-15", "level": -213.16},
        ]

        records = records_from_json(items)

        assert records == [
            SurveyRecord(date(2024, 3, 15), -213.16),
            SurveyRecord(date(2024, 3, 14), -213.17),
        ]

    def test_from_json_rejects_non_list(self):
        with pytest.raises(ValueError, match="JSON array"):
            records_from_json({"date": "2024-03-15"})

    def test_from_json_rejects_bad_date(self):
        with pytest.raises(ValueError, match="invalid date"):
            records_from_json([{"date": "15/3/2024", "level": -213.16}])

    def test_from_json_rejects_bad_level(self):
        with pytest.raises(ValueError, match="invalid level"):
            records_from_json([{"date": "2024-03-15", "level": "low"}])


class TestSortDescending:
    """Tests for sort_descending()."""

    def test_sorts_by_date(self):
        records = [
            SurveyRecord(date(2023, 1, 1), -210.0),
            SurveyRecord(date(2024, 1, 1), -211.0),
            SurveyRecord(date(2023, 6, 1), -212.0),
        ]

        result = sort_descending(records)

        assert [r.date.isoformat() for r in result] == [
            "2024-01-01", "2023-06-01", "2023-01-01",
        ]
