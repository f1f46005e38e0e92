"""Tests for the content strategies."""

import pytest
from datetime import date
from unittest.mock import Mock

from kinneret_bot.content import (
    ContentGenerationError,
    GeminiContentStrategy,
    TemplateContentStrategy,
)
from kinneret_bot.core.formatter import format_tweet
from kinneret_bot.core.survey import SurveyRecord
from kinneret_bot.core.trends import Thresholds, analyze_trends
from kinneret_bot.shell.gemini_client import GeminiResponse


@pytest.fixture
def record():
    return SurveyRecord(date(2024, 3, 15), -213.16)


@pytest.fixture
def snapshot(record):
    thresholds = Thresholds(-208.8, -213.0, -214.87)
    return analyze_trends([record], record, thresholds)


@pytest.fixture
def gemini_client():
    return Mock()


@pytest.fixture
def strategy(gemini_client):
    return GeminiContentStrategy(
        api_key="key",
        model="gemini-2.0-flash",
        temperature=0.5,
        client=gemini_client,
    )


class TestTemplateContentStrategy:
    """Tests for TemplateContentStrategy."""

    def test_uses_template(self, record, snapshot):
        strategy = TemplateContentStrategy(-208.8)

        assert strategy.name == "template"
        assert strategy.generate(record, snapshot, 280) == format_tweet(record, -208.8)


class TestGeminiContentStrategy:
    """Tests for GeminiContentStrategy."""

    def test_returns_cleaned_text(self, strategy, gemini_client, record, snapshot):
        gemini_client.generate_content.return_value = GeminiResponse(
            success=True, status_code=200, text='"ציוץ: המפלס   עלה"',
        )

        assert strategy.generate(record, snapshot, 280) == "המפלס עלה"

    def test_passes_prompt_and_settings(self, strategy, gemini_client, record, snapshot):
        gemini_client.generate_content.return_value = GeminiResponse(
            success=True, status_code=200, text="טקסט",
        )

        strategy.generate(record, snapshot, 280)

        args, kwargs = gemini_client.generate_content.call_args
        assert "2024-03-15" in args[0]
        assert kwargs == {
            "api_key": "key",
            "model": "gemini-2.0-flash",
            "temperature": 0.5,
        }

    def test_truncates_to_max_length(self, strategy, gemini_client, record, snapshot):
        gemini_client.generate_content.return_value = GeminiResponse(
            success=True, status_code=200, text="א" * 500,
        )

        assert len(strategy.generate(record, snapshot, 100)) == 100

    def test_api_failure_raises(self, strategy, gemini_client, record, snapshot):
        gemini_client.generate_content.return_value = GeminiResponse(
            success=False, status_code=500, error="boom",
        )

        with pytest.raises(ContentGenerationError, match="boom"):
            strategy.generate(record, snapshot, 280)

    def test_blank_text_raises(self, strategy, gemini_client, record, snapshot):
        gemini_client.generate_content.return_value = GeminiResponse(
            success=True, status_code=200, text='  ""  ',
        )

        with pytest.raises(ContentGenerationError):
            strategy.generate(record, snapshot, 280)
