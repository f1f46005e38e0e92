"""Tests for the command-line entry point."""

import json
import os

import pytest
from datetime import date
from unittest.mock import Mock, patch

from kinneret_bot.cli import build_parser, main
from kinneret_bot.core.publication import PublicationOutcome, PublicationState
from kinneret_bot.core.survey import SurveyRecord


ENV = {
    "UPPER_RED_LINE": "-208.8",
    "LOWER_RED_LINE": "-213",
    "BLACK_LINE": "-214.87",
    "TWITTER_APP_KEY": "k",
    "TWITTER_APP_SECRET": "s",
    "TWITTER_ACCESS_TOKEN": "t",
    "TWITTER_ACCESS_SECRET": "ts",
}

API_RESPONSE = {
    "success": True,
    "result": {
        "records": [
            {"_id": 1, "Survey_Date": "15/3/2024", "Kinneret_Level": -213.16},
        ],
    },
}


@pytest.fixture
def data_client():
    client = Mock()
    client.fetch_surveys.return_value = API_RESPONSE
    with patch("kinneret_bot.cli.DataGovClient", return_value=client):
        yield client


@pytest.fixture
def orchestrator_cls():
    with patch("kinneret_bot.cli.Orchestrator") as cls:
        yield cls


def outcome(state, **kwargs):
    return PublicationOutcome(
        state=state,
        record=SurveyRecord(date(2024, 3, 15), -213.16),
        **kwargs,
    )


class TestParser:
    """Tests for build_parser()."""

    def test_daily_tweet_positionals(self):
        args = build_parser().parse_args(["--dry-run", "daily-tweet", "s.json", "w.txt"])

        assert args.command == "daily-tweet"
        assert args.dry_run is True
        assert args.surveys_file == "s.json"
        assert args.last_tweet_file == "w.txt"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestUpdateSurveysCommand:
    """Tests for the update-surveys command."""

    def test_writes_history(self, data_client, tmp_path):
        path = tmp_path / "surveys.json"

        with patch.dict(os.environ, {}, clear=True):
            code = main(["update-surveys", str(path)])

        assert code == 0
        assert json.loads(path.read_text(encoding="utf-8")) == [
            {"date": "2024-03-15", "level": -213.16},
        ]

    def test_does_not_need_thresholds(self, data_client, tmp_path):
        with patch.dict(os.environ, {}, clear=True):
            assert main(["update-surveys", str(tmp_path / "s.json")]) == 0

    def test_fetch_failure_exits_1(self, data_client, tmp_path):
        data_client.fetch_surveys.side_effect = RuntimeError("offline")

        with patch.dict(os.environ, {}, clear=True):
            assert main(["update-surveys", str(tmp_path / "s.json")]) == 1


class TestDailyTweetCommand:
    """Tests for the daily-tweet command."""

    def test_success_exits_0(self, orchestrator_cls):
        orchestrator_cls.return_value.publish_latest.return_value = outcome(
            PublicationState.COMMITTED, content_source="template",
        )

        with patch.dict(os.environ, ENV, clear=True):
            assert main(["daily-tweet"]) == 0

    def test_no_new_data_exits_0(self, orchestrator_cls):
        orchestrator_cls.return_value.publish_latest.return_value = PublicationOutcome(
            state=PublicationState.NO_NEW_DATA,
        )

        with patch.dict(os.environ, ENV, clear=True):
            assert main(["daily-tweet"]) == 0

    def test_failure_exits_1(self, orchestrator_cls):
        orchestrator_cls.return_value.publish_latest.return_value = outcome(
            PublicationState.FAILED, error="Publish failed: down",
        )

        with patch.dict(os.environ, ENV, clear=True):
            assert main(["daily-tweet"]) == 1

    def test_positional_paths_override_config(self, orchestrator_cls):
        orchestrator_cls.return_value.publish_latest.return_value = PublicationOutcome(
            state=PublicationState.NO_NEW_DATA,
        )

        with patch.dict(os.environ, ENV, clear=True):
            main(["daily-tweet", "a.json", "b.txt"])

        config = orchestrator_cls.call_args[0][0]
        assert config.surveys_path == "a.json"
        assert config.watermark_path == "b.txt"

    def test_dry_run_flag(self, orchestrator_cls, capsys):
        orchestrator_cls.return_value.publish_latest.return_value = outcome(
            PublicationState.DRY_RUN, text="מפלס הכנרת", content_source="template",
        )

        with patch.dict(os.environ, ENV, clear=True):
            code = main(["--dry-run", "daily-tweet"])

        assert code == 0
        assert orchestrator_cls.call_args[0][0].dry_run is True
        assert "מפלס הכנרת" in capsys.readouterr().out

    def test_missing_thresholds_exits_1(self, orchestrator_cls):
        with patch.dict(os.environ, {}, clear=True):
            assert main(["daily-tweet"]) == 1

        orchestrator_cls.assert_not_called()

    def test_invalid_config_exits_1(self, orchestrator_cls):
        env = {k: v for k, v in ENV.items() if not k.startswith("TWITTER")}

        with patch.dict(os.environ, env, clear=True):
            assert main(["daily-tweet"]) == 1

        orchestrator_cls.assert_not_called()

    def test_config_file(self, orchestrator_cls, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "thresholds:\n"
            "  upper_red_line: -208.8\n"
            "  lower_red_line: -213.0\n"
            "  black_line: -214.87\n"
            "dry_run: true\n",
            encoding="utf-8",
        )
        orchestrator_cls.return_value.publish_latest.return_value = PublicationOutcome(
            state=PublicationState.NO_NEW_DATA,
        )

        with patch.dict(os.environ, {}, clear=True):
            assert main(["--config", str(path), "daily-tweet"]) == 0
