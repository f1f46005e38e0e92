"""Functional Core - Pure functions with no side effects.

This module contains all business logic as pure functions:
- Survey record parsing and history merging
- Trend analysis against the regulatory lines
- Publication candidate selection
- Message formatting

All functions here are deterministic and have no I/O.
"""

from kinneret_bot.core.survey import SurveyRecord, RawSurveyRecord, merge_records
from kinneret_bot.core.trends import Thresholds, TrendSnapshot, analyze_trends
from kinneret_bot.core.publication import (
    PublicationOutcome,
    PublicationState,
    find_new_records,
    select_candidate,
)
from kinneret_bot.core.formatter import format_tweet, build_prompt

__all__ = [
    # Survey
    "SurveyRecord",
    "RawSurveyRecord",
    "merge_records",
    # Trends
    "Thresholds",
    "TrendSnapshot",
    "analyze_trends",
    # Publication
    "PublicationOutcome",
    "PublicationState",
    "find_new_records",
    "select_candidate",
    # Formatter
    "format_tweet",
    "build_prompt",
]
