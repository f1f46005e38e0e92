"""Trend analysis - Pure functions.

This module derives descriptive metrics for one survey record from the
full history: distance to the regulatory lines, recent changes, rate of
change, projections and seasonal context.

All functions are deterministic and have no I/O.
"""

import math
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum

from kinneret_bot.core.survey import SurveyRecord


# Maximum distance (days) between a target date and an accepted anchor
ANCHOR_TOLERANCE_DAYS = 7

# A gap below this (cm) to the lower or black line triggers the warning flag
CRITICAL_DISTANCE_CM = 50

# How many previous years to compare against
PREVIOUS_YEARS = 5


class SeasonalContext(str, Enum):
    """Fixed partition of the hydrological year."""
    WINTER_FILLING = "winter_filling"
    SPRING_PEAK = "spring_peak"
    SUMMER_DECLINE = "summer_decline"
    AUTUMN_LOW = "autumn_low"


class ThresholdName(str, Enum):
    """The three regulatory lines, in tie-break priority order."""
    UPPER_RED = "upper_red"
    LOWER_RED = "lower_red"
    BLACK = "black"


@dataclass(frozen=True)
class Thresholds:
    """Regulatory lines on the same scale as the survey level.

    Expected ordering: upper_red_line > lower_red_line > black_line.
    The ordering is checked by config validation, not here.

    Attributes:
        upper_red_line: Regulatory ceiling
        lower_red_line: Regulatory floor
        black_line: Severe floor
    """
    upper_red_line: float
    lower_red_line: float
    black_line: float


@dataclass(frozen=True)
class HistoricalExtreme:
    """Highest or lowest level on record.

    Attributes:
        level: Level in meters
        date: Date it was measured
        years_ago: Whole years before the reference date
    """
    level: float
    date: date
    years_ago: int


@dataclass(frozen=True)
class YearComparison:
    """Level around the same calendar day in a previous year.

    Attributes:
        year: Calendar year of the anchor
        level: Level in meters
        difference: Reference level minus this level, in cm
    """
    year: int
    level: float
    difference: int


@dataclass(frozen=True)
class TrendSnapshot:
    """Derived metrics for one record. Recomputed every run, never stored.

    Gaps are signed centimeters: threshold minus current level. For the
    upper line a positive gap means the level is still below the ceiling.
    For the lower and black lines a negative gap means the level is
    still above that floor.
    """
    current_level: float
    current_date: date
    gap_to_upper_red_line: int
    gap_to_lower_red_line: int
    gap_to_black_line: int
    change_7_days: int | None
    change_30_days: int | None
    change_year_ago: int | None
    average_daily_change_7_days: float
    is_rising: bool
    days_to_upper_red_line: int | None
    days_to_lower_red_line: int | None
    days_to_black_line: int | None
    seasonal_context: SeasonalContext
    nearest_threshold: ThresholdName
    nearest_threshold_distance: int
    is_near_critical_threshold: bool
    historical_high: HistoricalExtreme | None = None
    historical_low: HistoricalExtreme | None = None
    rank_percentile: int = 0
    comparison_to_previous_years: tuple[YearComparison, ...] = ()


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero.

    Pure function.
    """
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def to_centimeters(minuend: float, subtrahend: float) -> int:
    """Difference of two levels in meters, as whole centimeters.

    Pure function. Uses decimal arithmetic on the shortest repr of each
    value, so -208.8 - (-213.16) is exactly 436 rather than 435.99...

    Args:
        minuend: Level in meters
        subtrahend: Level in meters

    Returns:
        round((minuend - subtrahend) * 100), halves away from zero
    """
    delta = (Decimal(repr(minuend)) - Decimal(repr(subtrahend))) * 100
    return int(delta.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def subtract_years(day: date, years: int) -> date:
    """Move a date back by whole years, clamping Feb 29 to Feb 28.

    Pure function.
    """
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return day.replace(year=day.year - years, day=28)


def find_closest_record(
    history: list[SurveyRecord],
    target: date,
    tolerance_days: int = ANCHOR_TOLERANCE_DAYS,
) -> SurveyRecord | None:
    """Find the record closest to a target date within a tolerance.

    Pure function. On equal distance the first record in history order
    wins.

    Args:
        history: Survey records (any order)
        target: Date to look around
        tolerance_days: Maximum accepted distance in days

    Returns:
        Closest record, or None if nothing lies within the tolerance
    """
    closest = None
    min_diff = math.inf

    for record in history:
        diff = abs((record.date - target).days)
        if diff < min_diff and diff <= tolerance_days:
            min_diff = diff
            closest = record

    return closest


def determine_seasonal_context(day: date) -> SeasonalContext:
    """Classify a date into its season.

    Pure function.
    """
    month = day.month

    # Rain season
    if month in (12, 1, 2):
        return SeasonalContext.WINTER_FILLING
    if month in (3, 4):
        return SeasonalContext.SPRING_PEAK
    # Pumping and evaporation
    if 5 <= month <= 8:
        return SeasonalContext.SUMMER_DECLINE
    return SeasonalContext.AUTUMN_LOW


def _whole_years_between(earlier: date, later: date) -> int:
    """Number of full years from earlier to later (negative if reversed)."""
    years = later.year - earlier.year
    if (later.month, later.day) < (earlier.month, earlier.day):
        years -= 1
    return years


def find_historical_extremes(
    history: list[SurveyRecord],
    reference_date: date,
) -> tuple[HistoricalExtreme | None, HistoricalExtreme | None]:
    """Find the highest and lowest levels on record.

    Pure function.

    Args:
        history: Survey records
        reference_date: Date the years_ago values are measured from

    Returns:
        (high, low) tuple; both None for an empty history
    """
    if not history:
        return None, None

    high = max(history, key=lambda r: r.level)
    low = min(history, key=lambda r: r.level)

    return (
        HistoricalExtreme(
            level=high.level,
            date=high.date,
            years_ago=_whole_years_between(high.date, reference_date),
        ),
        HistoricalExtreme(
            level=low.level,
            date=low.date,
            years_ago=_whole_years_between(low.date, reference_date),
        ),
    )


def compute_rank_percentile(history: list[SurveyRecord], level: float) -> int:
    """Percentage of records at or below a level.

    Pure function.

    Args:
        history: Survey records
        level: Level to rank

    Returns:
        Rounded percentage 0-100 (0 for an empty history)
    """
    if not history:
        return 0

    at_or_below = sum(1 for r in history if r.level <= level)
    return round_half_away(at_or_below * 100 / len(history))


def compare_to_previous_years(
    history: list[SurveyRecord],
    reference: SurveyRecord,
    years: int = PREVIOUS_YEARS,
) -> tuple[YearComparison, ...]:
    """Compare the reference level to the same day in previous years.

    Pure function. Years with no record within the anchor tolerance are
    omitted.

    Args:
        history: Survey records
        reference: Record to compare
        years: How many years back to look

    Returns:
        Comparisons, most recent year first
    """
    comparisons = []

    for offset in range(1, years + 1):
        anchor = find_closest_record(
            history, subtract_years(reference.date, offset),
        )
        if anchor is None:
            continue
        comparisons.append(YearComparison(
            year=anchor.date.year,
            level=anchor.level,
            difference=to_centimeters(reference.level, anchor.level),
        ))

    return tuple(comparisons)


def _project_days(
    is_rising: bool,
    rate: float,
    gap_upper: int,
    gap_lower: int,
    gap_black: int,
) -> tuple[int | None, int | None, int | None]:
    """Linear day-count projection toward the relevant line.

    At most one of the returned values is populated.
    """
    if rate == 0:
        return None, None, None

    if is_rising and gap_upper > 0:
        return round_half_away(gap_upper / rate), None, None
    if not is_rising and gap_lower < 0:
        return None, round_half_away(abs(gap_lower) / abs(rate)), None
    if not is_rising and gap_black < 0:
        return None, None, round_half_away(abs(gap_black) / abs(rate))

    return None, None, None


def _nearest_threshold(
    gap_upper: int,
    gap_lower: int,
    gap_black: int,
) -> tuple[ThresholdName, int]:
    """Threshold with the smallest absolute gap (first minimum wins)."""
    distances = [
        (ThresholdName.UPPER_RED, abs(gap_upper)),
        (ThresholdName.LOWER_RED, abs(gap_lower)),
        (ThresholdName.BLACK, abs(gap_black)),
    ]

    nearest = distances[0]
    for candidate in distances[1:]:
        if candidate[1] < nearest[1]:
            nearest = candidate

    return nearest


def analyze_trends(
    history: list[SurveyRecord],
    reference: SurveyRecord,
    thresholds: Thresholds,
) -> TrendSnapshot:
    """Derive the trend snapshot for a reference record.

    Pure function. Missing historical anchors produce None deltas; this
    never raises for insufficient data.

    Args:
        history: Full survey history (any order)
        reference: Record to analyze, usually the newest unpublished one
        thresholds: Regulatory lines

    Returns:
        TrendSnapshot for the reference record
    """
    level = reference.level

    gap_upper = to_centimeters(thresholds.upper_red_line, level)
    gap_lower = to_centimeters(thresholds.lower_red_line, level)
    gap_black = to_centimeters(thresholds.black_line, level)

    anchor_7 = find_closest_record(history, reference.date - timedelta(days=7))
    anchor_30 = find_closest_record(history, reference.date - timedelta(days=30))
    anchor_year = find_closest_record(history, subtract_years(reference.date, 1))

    change_7 = to_centimeters(level, anchor_7.level) if anchor_7 else None
    change_30 = to_centimeters(level, anchor_30.level) if anchor_30 else None
    change_year = to_centimeters(level, anchor_year.level) if anchor_year else None

    # 7-day trend is the primary rate indicator
    rate = 0.0
    if anchor_7 is not None and change_7 is not None:
        span = (reference.date - anchor_7.date).days
        if span != 0:
            rate = change_7 / span
    is_rising = rate > 0

    days_upper, days_lower, days_black = _project_days(
        is_rising, rate, gap_upper, gap_lower, gap_black,
    )

    nearest, nearest_distance = _nearest_threshold(gap_upper, gap_lower, gap_black)

    high, low = find_historical_extremes(history, reference.date)

    return TrendSnapshot(
        current_level=level,
        current_date=reference.date,
        gap_to_upper_red_line=gap_upper,
        gap_to_lower_red_line=gap_lower,
        gap_to_black_line=gap_black,
        change_7_days=change_7,
        change_30_days=change_30,
        change_year_ago=change_year,
        average_daily_change_7_days=rate,
        is_rising=is_rising,
        days_to_upper_red_line=days_upper,
        days_to_lower_red_line=days_lower,
        days_to_black_line=days_black,
        seasonal_context=determine_seasonal_context(reference.date),
        nearest_threshold=nearest,
        nearest_threshold_distance=nearest_distance,
        is_near_critical_threshold=(
            abs(gap_lower) < CRITICAL_DISTANCE_CM
            or abs(gap_black) < CRITICAL_DISTANCE_CM
        ),
        historical_high=high,
        historical_low=low,
        rank_percentile=compute_rank_percentile(history, level),
        comparison_to_previous_years=compare_to_previous_years(history, reference),
    )
