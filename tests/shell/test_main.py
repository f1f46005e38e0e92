"""Tests for the Cloud Function entry points."""

import pytest
from datetime import date
from unittest.mock import Mock, patch

from kinneret_bot.core.config import Config
from kinneret_bot.core.publication import PublicationOutcome, PublicationState
from kinneret_bot.core.survey import SurveyRecord
from kinneret_bot.core.trends import Thresholds
from kinneret_bot.main import kinneret_monitor, kinneret_monitor_pubsub
from kinneret_bot.orchestrator import IngestResult


@pytest.fixture
def config():
    return Config(
        thresholds=Thresholds(-208.8, -213.0, -214.87),
        twitter_credentials=(
            ("access_token", "t"),
            ("access_token_secret", "ts"),
            ("api_key", "k"),
            ("api_secret", "s"),
        ),
    )


@pytest.fixture
def orchestrator(config):
    instance = Mock()
    instance.update_surveys.return_value = IngestResult(2, 1, 10)
    instance.publish_latest.return_value = PublicationOutcome(
        state=PublicationState.COMMITTED,
        record=SurveyRecord(date(2024, 3, 15), -213.16),
        content_source="gemini",
    )
    with patch("kinneret_bot.main._get_config", return_value=config), \
         patch("kinneret_bot.main.Orchestrator", return_value=instance):
        yield instance


class TestKinneretMonitor:
    """Tests for the HTTP entry point."""

    def test_success(self, orchestrator):
        response, status = kinneret_monitor(Mock())

        assert status == 200
        assert response["status"] == "success"
        assert response["publication"] == "committed"
        assert response["survey_date"] == "2024-03-15"
        assert response["content_source"] == "gemini"

    def test_ingest_failure_still_publishes(self, orchestrator):
        orchestrator.update_surveys.return_value = IngestResult(0, 0, 0, errors=["offline"])

        response, status = kinneret_monitor(Mock())

        assert status == 207
        assert response["errors"] == ["offline"]
        orchestrator.publish_latest.assert_called_once()

    def test_publish_failure_is_500(self, orchestrator):
        orchestrator.publish_latest.return_value = PublicationOutcome(
            state=PublicationState.FAILED,
            error="Publish failed: down",
        )

        response, status = kinneret_monitor(Mock())

        assert status == 500
        assert response["status"] == "partial_failure"

    def test_invalid_config_is_400(self, orchestrator, config):
        config.twitter_credentials = None

        response, status = kinneret_monitor(Mock())

        assert status == 400
        orchestrator.update_surveys.assert_not_called()

    def test_unexpected_error_is_500(self):
        with patch("kinneret_bot.main._get_config", side_effect=ValueError("bad config")):
            response, status = kinneret_monitor(Mock())

        assert status == 500
        assert response["message"] == "bad config"


class TestKinneretMonitorPubsub:
    """Tests for the Pub/Sub entry point."""

    def test_success_returns_none(self, orchestrator):
        assert kinneret_monitor_pubsub(Mock()) is None

    def test_failure_raises(self, orchestrator):
        orchestrator.publish_latest.return_value = PublicationOutcome(
            state=PublicationState.FAILED,
            error="boom",
        )

        with pytest.raises(RuntimeError):
            kinneret_monitor_pubsub(Mock())
