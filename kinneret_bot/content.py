"""Content Strategies - Wires formatting core and text-generation shell.

A content strategy turns the selected survey record and its trend
snapshot into publishable text:

- GeminiContentStrategy: prompts the text-generation model (primary)
- TemplateContentStrategy: deterministic Hebrew template (fallback)

The publisher tries the primary strategy first and falls back to the
template on any failure.
"""

import logging
from typing import Protocol

from kinneret_bot.core.formatter import build_prompt, clean_generated_text, format_tweet
from kinneret_bot.core.survey import SurveyRecord
from kinneret_bot.core.trends import TrendSnapshot
from kinneret_bot.shell.gemini_client import GeminiClient


logger = logging.getLogger(__name__)


class ContentGenerationError(Exception):
    """A content strategy could not produce usable text."""


class ContentStrategy(Protocol):
    """Source of publishable text."""

    name: str

    def generate(
        self,
        record: SurveyRecord,
        snapshot: TrendSnapshot,
        max_length: int,
    ) -> str:
        """Return text no longer than max_length.

        Raises:
            ContentGenerationError: If no usable text could be produced
        """
        ...


class TemplateContentStrategy:
    """Deterministic template built from the record and the upper red line.

    Performs no external call and cannot fail for a valid record.
    """

    name = "template"

    def __init__(self, upper_red_line: float) -> None:
        """Initialize template strategy.

        Args:
            upper_red_line: Regulatory ceiling in meters
        """
        self.upper_red_line = upper_red_line

    def generate(
        self,
        record: SurveyRecord,
        snapshot: TrendSnapshot,
        max_length: int,
    ) -> str:
        return format_tweet(record, self.upper_red_line)


class GeminiContentStrategy:
    """Text written by the Gemini model from the trend snapshot."""

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float = 0.7,
        client: GeminiClient | None = None,
    ) -> None:
        """Initialize generative strategy.

        Args:
            api_key: Generative Language API key
            model: Model name
            temperature: Sampling temperature
            client: Gemini client (created if not provided)
        """
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.client = client or GeminiClient()

    def generate(
        self,
        record: SurveyRecord,
        snapshot: TrendSnapshot,
        max_length: int,
    ) -> str:
        """Generate tweet text with Gemini.

        This method performs HTTP I/O through the client.

        Raises:
            ContentGenerationError: If the API fails or returns no usable text
        """
        prompt = build_prompt(record, snapshot, max_length)

        response = self.client.generate_content(
            prompt,
            api_key=self.api_key,
            model=self.model,
            temperature=self.temperature,
        )

        if not response.success or response.text is None:
            raise ContentGenerationError(f"Gemini request failed: {response.error}")

        text = clean_generated_text(response.text, max_length)
        if not text:
            raise ContentGenerationError("Gemini returned empty text")

        return text
