"""Gemini API Client - Imperative Shell.

This module handles HTTP communication with the Google Generative
Language API (Gemini) used to write the daily tweet.
All I/O is contained here; prompt construction is in the core module.
"""

import logging
from dataclasses import dataclass
from typing import Any

import requests


logger = logging.getLogger(__name__)


# Generative Language API, generateContent method
GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"

# Default timeout for API requests (seconds)
DEFAULT_TIMEOUT = 30

# Upper bound on generated tokens; the tweet itself is much shorter
MAX_OUTPUT_TOKENS = 1024


@dataclass
class GeminiResponse:
    """Response from the Gemini API.

    Attributes:
        success: Whether text was generated
        status_code: HTTP status code (0 if the request never completed)
        text: Generated text if successful
        error: Error message if failed
    """
    success: bool
    status_code: int
    text: str | None = None
    error: str | None = None


def _extract_text(data: dict[str, Any]) -> str | None:
    """Concatenate the text parts of the first candidate."""
    candidates = data.get("candidates") or []
    if not candidates:
        return None

    parts = candidates[0].get("content", {}).get("parts") or []
    texts = [p.get("text", "") for p in parts if isinstance(p, dict)]
    text = "".join(texts)

    return text or None


class GeminiClient:
    """Client for generating text with Gemini.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        base_url: str = GEMINI_API_BASE,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize Gemini client.

        Args:
            base_url: Models endpoint base URL
            timeout: Request timeout in seconds
        """
        self.base_url = base_url
        self.timeout = timeout

    def _build_url(self, model: str) -> str:
        return f"{self.base_url}/{model}:generateContent"

    def generate_content(
        self,
        prompt: str,
        api_key: str,
        model: str,
        temperature: float = 0.7,
    ) -> GeminiResponse:
        """Generate text for a single-turn prompt.

        This method performs HTTP I/O.

        Args:
            prompt: User prompt
            api_key: Generative Language API key
            model: Model name, e.g. 'gemini-2.0-flash'
            temperature: Sampling temperature

        Returns:
            GeminiResponse indicating success or failure
        """
        logger.info("Requesting text from Gemini model %s", model)

        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": MAX_OUTPUT_TOKENS,
            },
        }

        try:
            response = requests.post(
                self._build_url(model),
                json=payload,
                headers={"x-goog-api-key": api_key},
                timeout=self.timeout,
            )

            if response.status_code != 200:
                logger.warning(
                    "Gemini API returned non-200: %d - %s",
                    response.status_code,
                    response.text,
                )
                return GeminiResponse(
                    success=False,
                    status_code=response.status_code,
                    error=response.text or f"HTTP {response.status_code}",
                )

            try:
                text = _extract_text(response.json())
            except (ValueError, AttributeError) as e:
                logger.warning("Gemini API returned malformed JSON: %s", str(e))
                return GeminiResponse(
                    success=False,
                    status_code=response.status_code,
                    error=f"Malformed response: {e}",
                )

            if text is None:
                logger.warning("Gemini API returned no text")
                return GeminiResponse(
                    success=False,
                    status_code=response.status_code,
                    error="Response contained no text",
                )

            logger.info("Gemini generated %d characters", len(text))
            return GeminiResponse(
                success=True,
                status_code=response.status_code,
                text=text,
            )

        except requests.Timeout:
            logger.error("Gemini API request timed out")
            return GeminiResponse(
                success=False,
                status_code=0,
                error="Request timed out",
            )
        except requests.RequestException as e:
            logger.error("Gemini API request failed: %s", str(e))
            return GeminiResponse(
                success=False,
                status_code=0,
                error=str(e),
            )
