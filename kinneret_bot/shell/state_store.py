"""File State Store - Imperative Shell.

This module persists the canonical survey history (a JSON snapshot) and
the publication watermark (a text file holding the date of the last
published survey).

All I/O is contained here; merge and selection logic is in the core module.
"""

import json
import logging
from datetime import date
from pathlib import Path

from kinneret_bot.core.publication import format_watermark, parse_watermark
from kinneret_bot.core.survey import SurveyRecord, records_from_json, records_to_json


logger = logging.getLogger(__name__)


class HistoryLoadError(Exception):
    """The history file is missing or cannot be parsed."""


class WatermarkLoadError(Exception):
    """The watermark file exists but does not hold a valid date."""


def _write_atomic(path: Path, text: str) -> None:
    """Write text through a sibling temp file, then rename it over path.

    Readers see either the old content or the new, never a partial file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_text(text, encoding="utf-8")
    tmp_path.replace(path)


class HistoryFileStore:
    """Reads and writes the survey history as a JSON array.

    File structure:
    [
        {"date": "2026-02-06", "level": -213.16},
        ...
    ]
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize history store.

        Args:
            path: Path of the history JSON file
        """
        self.path = Path(path)

    def load(self, missing_ok: bool = False) -> list[SurveyRecord]:
        """Load the full history, newest first.

        This method performs file I/O.

        Args:
            missing_ok: Return an empty history if the file does not exist

        Returns:
            List of survey records

        Raises:
            HistoryLoadError: If the file is missing (and not missing_ok)
                or cannot be parsed
        """
        if not self.path.exists():
            if missing_ok:
                logger.info("History file %s not found, starting empty", self.path)
                return []
            raise HistoryLoadError(f"History file not found: {self.path}")

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            records = records_from_json(data)
        except (OSError, ValueError) as e:
            raise HistoryLoadError(f"Error reading history file {self.path}: {e}") from e

        logger.info("Loaded %d survey records from %s", len(records), self.path)
        return records

    def save(self, records: list[SurveyRecord]) -> None:
        """Write the full history snapshot, newest first.

        This method performs file I/O.

        Args:
            records: Survey records to persist

        Raises:
            OSError: If the file cannot be written
        """
        _write_atomic(self.path, json.dumps(records_to_json(records)))

        logger.info("Saved %d survey records to %s", len(records), self.path)


class FileWatermarkStore:
    """Reads and writes the publication watermark as a plain text file.

    The file holds a single YYYY-MM-DD date. A missing or empty file
    means the watermark is unset.
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize watermark store.

        Args:
            path: Path of the watermark file
        """
        self.path = Path(path)

    def read(self) -> date | None:
        """Read the watermark.

        This method performs file I/O.

        Returns:
            Date of the last published survey, or None if unset

        Raises:
            WatermarkLoadError: If the file holds something other than a date
        """
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("No watermark file at %s, treating as unset", self.path)
            return None

        try:
            watermark = parse_watermark(content)
        except ValueError as e:
            raise WatermarkLoadError(
                f"Invalid watermark in {self.path}: {content.strip()!r}"
            ) from e

        logger.info("Read watermark %s from %s", watermark, self.path)
        return watermark

    def write(self, watermark: date) -> bool:
        """Advance the watermark.

        This method performs file I/O.

        Args:
            watermark: Date of the survey that was just published

        Returns:
            True if the write was successful
        """
        try:
            _write_atomic(self.path, format_watermark(watermark))
        except OSError as e:
            logger.error("Failed to write watermark to %s: %s", self.path, str(e))
            return False

        logger.info("Watermark advanced to %s", watermark)
        return True
