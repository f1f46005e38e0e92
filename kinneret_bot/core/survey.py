"""Survey records and the record store merge - Pure functions.

This module parses raw readings from the data.gov.il feed into typed
SurveyRecord objects and merges them into the canonical history.
All functions are pure with no side effects.

Note: Reading and writing the history file is handled by the imperative
shell (state store). This module only contains the pure logic.
"""

import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any


# Day/month/year as published by the feed, zero padding optional
FEED_DATE_FORMAT = "%d/%m/%Y"

# Canonical representation used as the dedup key and in the history file
CANONICAL_DATE_FORMAT = "%Y-%m-%d"

# An ISO timestamp carries its time after a "T" or a space
ISO_TIME_SEPARATOR = re.compile(r"[T ]")


@dataclass(frozen=True)
class SurveyRecord:
    """Immutable water level measurement.

    Attributes:
        date: Calendar day of the survey (unique key)
        level: Level in meters relative to sea level (negative = below)
    """
    date: date
    level: float

    @property
    def date_str(self) -> str:
        """Return the canonical YYYY-MM-DD form of the date."""
        return self.date.strftime(CANONICAL_DATE_FORMAT)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the history file representation."""
        return {"date": self.date_str, "level": self.level}


@dataclass(frozen=True)
class RawSurveyRecord:
    """A reading as received from the external feed, not yet validated.

    Attributes:
        date_string: Survey date, usually day/month/year
        level: Level as a number or numeric string
        source_id: Row ID in the feed (optional)
    """
    date_string: str
    level: Any
    source_id: int | None = None


@dataclass(frozen=True)
class MergeResult:
    """Result of merging raw readings into the history.

    Attributes:
        merged_history: Canonical history, sorted newest first
        new_count: Number of records that were not in the history before
        dropped_count: Number of readings rejected as invalid or future-dated
    """
    merged_history: list[SurveyRecord]
    new_count: int
    dropped_count: int = 0


def parse_survey_date(value: str) -> date | None:
    """Parse a survey date string into a calendar day.

    Pure function. Accepts day/month/year (the feed format) and ISO
    YYYY-MM-DD, with or without a trailing time part.

    Args:
        value: Raw date string

    Returns:
        Parsed date or None if the string is not a valid date
    """
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    try:
        return datetime.strptime(text, FEED_DATE_FORMAT).date()
    except ValueError:
        pass

    try:
        date_part = ISO_TIME_SEPARATOR.split(text, maxsplit=1)[0]
        return datetime.strptime(date_part, CANONICAL_DATE_FORMAT).date()
    except ValueError:
        return None


def parse_level(value: Any) -> float | None:
    """Coerce a raw level value to a finite float.

    Pure function.

    Args:
        value: Number or numeric string

    Returns:
        Level as float, or None if it is not a finite number
    """
    # bool is an int subclass but never a valid reading
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None

    try:
        level = float(value)
    except (TypeError, ValueError):
        return None

    if not math.isfinite(level):
        return None

    return level


def normalize_raw_record(
    raw: RawSurveyRecord,
    today: date,
) -> SurveyRecord | None:
    """Validate and canonicalize a single raw reading.

    Pure function.

    Args:
        raw: Raw reading from the feed
        today: Current date; readings dated after it are rejected

    Returns:
        SurveyRecord or None if the reading must be dropped
    """
    survey_date = parse_survey_date(raw.date_string)
    if survey_date is None:
        return None

    # Future-dated readings are feed errors
    if survey_date > today:
        return None

    level = parse_level(raw.level)
    if level is None:
        return None

    return SurveyRecord(date=survey_date, level=level)


def sort_descending(records: list[SurveyRecord]) -> list[SurveyRecord]:
    """Return records sorted by date, newest first.

    Pure function.
    """
    return sorted(records, key=lambda r: r.date, reverse=True)


def merge_records(
    raw_records: list[RawSurveyRecord],
    existing_history: list[SurveyRecord],
    today: date | None = None,
) -> MergeResult:
    """Merge raw readings into the existing history.

    Pure function. Existing values always win: a date that is already
    recorded is never overwritten and does not count as new.

    Args:
        raw_records: Readings from the feed
        existing_history: Current canonical history (any order)
        today: Current date (defaults to the local date)

    Returns:
        MergeResult with the merged history sorted newest first
    """
    if today is None:
        today = date.today()

    by_date: dict[date, SurveyRecord] = {r.date: r for r in existing_history}
    new_count = 0
    dropped_count = 0

    for raw in raw_records:
        record = normalize_raw_record(raw, today)
        if record is None:
            dropped_count += 1
            continue

        if record.date in by_date:
            continue

        by_date[record.date] = record
        new_count += 1

    return MergeResult(
        merged_history=sort_descending(list(by_date.values())),
        new_count=new_count,
        dropped_count=dropped_count,
    )


def validate_api_response(data: Any) -> list[str]:
    """Check the outer structure of a datastore_search response.

    Pure function. Individual rows are not checked here; malformed rows
    are dropped during the merge.

    Args:
        data: Decoded JSON response

    Returns:
        List of error messages (empty if the structure is valid)
    """
    if not isinstance(data, dict):
        return ["response is not an object"]

    errors = []

    if not isinstance(data.get("success"), bool):
        errors.append("'success' must be a boolean")

    result = data.get("result")
    if not isinstance(result, dict):
        errors.append("'result' must be an object")
        return errors

    if not isinstance(result.get("records"), list):
        errors.append("'result.records' must be an array")

    return errors


def parse_raw_records(data: dict[str, Any]) -> list[RawSurveyRecord]:
    """Extract raw readings from a datastore_search response.

    Pure function. Assumes the response passed validate_api_response().
    Rows that are not objects become empty readings, which the merge drops.

    Args:
        data: Decoded JSON response

    Returns:
        List of raw readings in feed order
    """
    raw_records = []

    for row in data.get("result", {}).get("records", []):
        if not isinstance(row, dict):
            row = {}
        source_id = row.get("_id")
        if isinstance(source_id, bool) or not isinstance(source_id, int):
            source_id = None
        raw_records.append(RawSurveyRecord(
            date_string=row.get("Survey_Date", ""),
            level=row.get("Kinneret_Level"),
            source_id=source_id,
        ))

    return raw_records


def records_from_json(items: Any) -> list[SurveyRecord]:
    """Build records from the history file representation.

    Pure function.

    Args:
        items: Decoded JSON array of {"date", "level"} objects

    Returns:
        List of records sorted newest first

    Raises:
        ValueError: If the data is not a valid history snapshot
    """
    if not isinstance(items, list):
        raise ValueError("history must be a JSON array")

    records = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValueError(f"history[{i}] is not an object")
        try:
            survey_date = datetime.strptime(
                item["date"], CANONICAL_DATE_FORMAT,
            ).date()
        except (KeyError, TypeError, ValueError):
            raise ValueError(f"history[{i}] has an invalid date")
        level = parse_level(item.get("level"))
        if level is None:
            raise ValueError(f"history[{i}] has an invalid level")
        records.append(SurveyRecord(date=survey_date, level=level))

    return sort_descending(records)


def records_to_json(records: list[SurveyRecord]) -> list[dict[str, Any]]:
    """Serialize records to the history file representation, newest first.

    Pure function.
    """
    return [r.to_dict() for r in sort_descending(records)]
