"""Message formatting - Pure functions.

This module builds the publishable text: the deterministic Hebrew
template used as fallback, the prompt sent to the text-generation
model, and the cleanup applied to model output.
All functions are pure with no side effects.
"""

import re

from kinneret_bot.core.survey import SurveyRecord
from kinneret_bot.core.trends import SeasonalContext, TrendSnapshot, to_centimeters


# Indexed by date.weekday() (Monday = 0)
HEBREW_DAYS = ("שני", "שלישי", "רביעי", "חמישי", "שישי", "שבת", "ראשון")

HEBREW_MONTHS = (
    "ינואר",
    "פברואר",
    "מרץ",
    "אפריל",
    "מאי",
    "יוני",
    "יולי",
    "אוגוסט",
    "ספטמבר",
    "אוקטובר",
    "נובמבר",
    "דצמבר",
)

SEASONAL_CONTEXT_HEBREW = {
    SeasonalContext.WINTER_FILLING: "עונת גשמים ומילוי",
    SeasonalContext.SPRING_PEAK: "שיא אביב",
    SeasonalContext.SUMMER_DECLINE: "ירידה קיצית טבעית",
    SeasonalContext.AUTUMN_LOW: "שפל סתווי",
}

NOT_AVAILABLE = "לא זמין"

ELLIPSIS = "..."


def format_tweet(record: SurveyRecord, upper_red_line: float) -> str:
    """Format the deterministic daily tweet.

    Pure function. Total: never raises for a valid record.

    Args:
        record: Survey record to report
        upper_red_line: Regulatory ceiling in meters

    Returns:
        Hebrew tweet text
    """
    day_name = HEBREW_DAYS[record.date.weekday()]
    month_name = HEBREW_MONTHS[record.date.month - 1]
    gap = to_centimeters(upper_red_line, record.level)

    level_abs = f"{abs(record.level):.3f}"
    upper_abs = f"{abs(upper_red_line):.2f}"

    return (
        f"מפלס הכנרת שנמדד ביום {day_name} ה-{record.date.day} "
        f"ל{month_name} {record.date.year} עומד על {level_abs}-, "
        f"וכעת וחסרים לה {gap} סנטימטר לקו האדום העליון ({upper_abs}-)"
    )


def translate_seasonal_context(context: SeasonalContext) -> str:
    """Hebrew label for a season.

    Pure function.
    """
    return SEASONAL_CONTEXT_HEBREW[context]


def format_change(change_cm: int | None) -> str:
    """Format a signed change in centimeters.

    Pure function.
    """
    if change_cm is None:
        return NOT_AVAILABLE
    return f"{change_cm:+d} ס״מ"


def get_rank_label(percentile: int) -> str:
    """Describe a rank percentile in words.

    Pure function.
    """
    if percentile > 80:
        return "גבוה מאוד"
    elif percentile > 60:
        return "גבוה"
    elif percentile > 40:
        return "ממוצע"
    elif percentile > 20:
        return "נמוך"
    else:
        return "נמוך מאוד"


def format_projection(snapshot: TrendSnapshot) -> str:
    """Describe the day-count projection, if any.

    Pure function.
    """
    if snapshot.days_to_upper_red_line and snapshot.days_to_upper_red_line > 0:
        return f"- יגיע לקו האדום העליון בעוד ~{snapshot.days_to_upper_red_line} ימים (אם המגמה תימשך)"
    if snapshot.days_to_lower_red_line and snapshot.days_to_lower_red_line > 0:
        return f"- יגיע לקו האדום התחתון בעוד ~{snapshot.days_to_lower_red_line} ימים (אם המגמה תימשך)"
    if snapshot.days_to_black_line and snapshot.days_to_black_line > 0:
        return f"- יגיע לקו השחור בעוד ~{snapshot.days_to_black_line} ימים (אם המגמה תימשך)"
    return ""


def _format_history_lines(snapshot: TrendSnapshot) -> list[str]:
    """Historical extremes and rank, one bullet per fact."""
    lines = []

    if snapshot.historical_high:
        high = snapshot.historical_high
        lines.append(
            f"- שיא היסטורי: {abs(high.level):.2f} מטר "
            f"(לפני {high.years_ago} שנים, בתאריך {high.date.isoformat()})"
        )
    if snapshot.historical_low:
        low = snapshot.historical_low
        lines.append(
            f"- שפל היסטורי: {abs(low.level):.2f} מטר "
            f"(לפני {low.years_ago} שנים, בתאריך {low.date.isoformat()})"
        )

    lines.append(
        f"- דירוג: {snapshot.rank_percentile}% "
        f"({get_rank_label(snapshot.rank_percentile)})"
    )

    return lines


def build_prompt(
    record: SurveyRecord,
    snapshot: TrendSnapshot,
    max_length: int,
) -> str:
    """Build the text-generation prompt for the daily tweet.

    Pure function.

    Args:
        record: Survey record to report
        snapshot: Trend snapshot for the record
        max_length: Maximum tweet length in characters

    Returns:
        Prompt text
    """
    trend_lines = [
        f"- {'עולה' if snapshot.is_rising else 'יורד'} בקצב של "
        f"{abs(snapshot.average_daily_change_7_days):.1f} ס״מ ליום (ממוצע 7 ימים)",
        f"- שינוי בשבוע האחרון: {format_change(snapshot.change_7_days)}",
        f"- שינוי בחודש האחרון: {format_change(snapshot.change_30_days)}",
    ]
    if snapshot.change_year_ago is not None:
        trend_lines.append(
            f"- לעומת שנה שעברה: {format_change(snapshot.change_year_ago)}"
        )
    trend_lines.append(
        f"- הקשר עונתי: {translate_seasonal_context(snapshot.seasonal_context)}"
    )
    projection = format_projection(snapshot)
    if projection:
        trend_lines.append(projection)

    years_lines = [
        f"  - {c.year}: {abs(c.level):.2f} מטר ({format_change(c.difference)} לעומת היום)"
        for c in snapshot.comparison_to_previous_years
    ] or [f"  - {NOT_AVAILABLE}"]

    critical_note = ""
    if snapshot.is_near_critical_threshold:
        critical_note = "\n- המפלס קרוב לקו קריטי (פחות מ-50 ס״מ), הדגש זאת בבהירות"

    sections = [
        "אתה בוט טוויטר ישראלי המדווח על מפלס הכנרת. "
        "תפקידך ליצור ציוץ יומי בעברית על מצב המים.",
        "נתונים עדכניים:\n"
        f"- תאריך: {record.date_str}\n"
        f"- מפלס נוכחי: {abs(record.level):.2f} מטר מתחת לפני הים התיכון\n"
        f"- מרחק מהקו האדום העליון: {snapshot.gap_to_upper_red_line} ס״מ\n"
        f"- מרחק מהקו האדום התחתון: {abs(snapshot.gap_to_lower_red_line)} ס״מ\n"
        f"- מרחק מהקו השחור: {abs(snapshot.gap_to_black_line)} ס״מ",
        "מגמות:\n" + "\n".join(trend_lines),
        "נתונים היסטוריים:\n" + "\n".join(_format_history_lines(snapshot)),
        "השוואה לשנים קודמות:\n" + "\n".join(years_lines),
        "הנחיות:\n"
        "- כתוב בעברית בלבד\n"
        f"- אורך מקסימלי: {max_length} תווים (כולל רווחים)\n"
        "- גוון בפורמט: מגמה שבועית, השוואה שנתית, הקשר היסטורי, "
        "שאלה רטורית או צפי עתידי\n"
        "- תמיד כלול את המפלס המדויק והוסף הקשר משמעותי אחד לפחות\n"
        "- אל תשתמש באימוג׳ים\n"
        "- החזר רק את הציוץ, ללא הסברים"
        + critical_note,
        "צור ציוץ עכשיו:",
    ]

    return "\n\n".join(sections)


def clean_generated_text(text: str, max_length: int) -> str:
    """Clean model output into tweet text.

    Pure function. Strips wrapping quotes and a leading label, collapses
    whitespace and truncates to max_length with an ellipsis.

    Args:
        text: Raw model output
        max_length: Maximum tweet length in characters

    Returns:
        Cleaned text, never longer than max_length
    """
    cleaned = text.strip()

    cleaned = re.sub(r"^[\"']|[\"']$", "", cleaned)
    cleaned = re.sub(r"^ציוץ:\s*", "", cleaned)

    cleaned = re.sub(r"\s+", " ", cleaned).strip()

    if len(cleaned) > max_length:
        if max_length <= len(ELLIPSIS):
            return cleaned[:max_length]
        cleaned = cleaned[:max_length - len(ELLIPSIS)] + ELLIPSIS

    return cleaned
