"""Twitter/X API Client - Imperative Shell.

This module handles HTTP communication with the Twitter/X API v2.
All I/O is contained here; message formatting is in the core module.
"""

import logging
from dataclasses import dataclass

import requests
from requests_oauthlib import OAuth1


logger = logging.getLogger(__name__)


# Default timeout for API requests (seconds)
DEFAULT_TIMEOUT = 10

# Twitter API v2 endpoint for posting tweets
TWITTER_API_URL = "https://api.twitter.com/2/tweets"

# Default limit for standard accounts
MAX_TWEET_LENGTH = 280


@dataclass
class TwitterResponse:
    """Response from Twitter API.

    Attributes:
        success: Whether the tweet was posted successfully
        status_code: HTTP status code
        tweet_id: ID of the created tweet if successful
        error: Error message if failed
    """
    success: bool
    status_code: int
    tweet_id: str | None = None
    error: str | None = None


@dataclass
class TwitterCredentials:
    """Twitter API credentials for OAuth 1.0a authentication.

    Attributes:
        api_key: Twitter API Key (Consumer Key)
        api_secret: Twitter API Secret (Consumer Secret)
        access_token: User's Access Token
        access_token_secret: User's Access Token Secret
    """
    api_key: str
    api_secret: str
    access_token: str
    access_token_secret: str

    @classmethod
    def from_pairs(cls, pairs: tuple[tuple[str, str], ...]) -> "TwitterCredentials":
        """Build credentials from config (key, value) pairs.

        Raises:
            KeyError: If a required key is missing
        """
        creds = dict(pairs)
        return cls(
            api_key=creds["api_key"],
            api_secret=creds["api_secret"],
            access_token=creds["access_token"],
            access_token_secret=creds["access_token_secret"],
        )


# Error text for statuses whose body carries nothing useful
STATUS_ERRORS = {
    401: "Authentication failed - check API credentials",
    429: "Rate limit exceeded",
}


def _error_detail(response: requests.Response) -> str:
    """Pull the problem description out of a v2 error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        return body.get("detail") or body.get("title") or response.text
    return response.text


class TwitterClient:
    """Posts tweets through API v2 with OAuth 1.0a User Context.

    Text longer than max_length is rejected before any request is made.
    """

    def __init__(
        self,
        timeout: int = DEFAULT_TIMEOUT,
        max_length: int = MAX_TWEET_LENGTH,
    ) -> None:
        self.timeout = timeout
        self.max_length = max_length

    def _get_oauth(self, credentials: TwitterCredentials) -> OAuth1:
        return OAuth1(
            credentials.api_key,
            client_secret=credentials.api_secret,
            resource_owner_key=credentials.access_token,
            resource_owner_secret=credentials.access_token_secret,
        )

    def _to_response(self, response: requests.Response) -> TwitterResponse:
        """Map an HTTP response to a TwitterResponse."""
        status = response.status_code

        if status in (200, 201):
            tweet_id = response.json().get("data", {}).get("id")
            logger.info("Tweet posted: %s", tweet_id)
            return TwitterResponse(success=True, status_code=status, tweet_id=tweet_id)

        error = STATUS_ERRORS.get(status)
        if error is None:
            error = _error_detail(response)
            if status == 403:
                error = f"Forbidden: {error}"

        logger.error("Tweet rejected with status %d: %s", status, error)
        return TwitterResponse(success=False, status_code=status, error=error)

    def send_tweet(
        self,
        text: str,
        credentials: TwitterCredentials,
    ) -> TwitterResponse:
        """Post a tweet to Twitter/X.

        Args:
            text: Tweet text, at most max_length characters
            credentials: Twitter API credentials

        Returns:
            TwitterResponse indicating success or failure. Transport
            failures have status_code 0.
        """
        if len(text) > self.max_length:
            error = f"Tweet is {len(text)} characters (max {self.max_length})"
            logger.error(error)
            return TwitterResponse(success=False, status_code=0, error=error)

        logger.info("Posting tweet (%d characters)", len(text))

        try:
            response = requests.post(
                TWITTER_API_URL,
                json={"text": text},
                auth=self._get_oauth(credentials),
                timeout=self.timeout,
            )
        except requests.Timeout:
            logger.error("Twitter API request timed out after %ss", self.timeout)
            return TwitterResponse(success=False, status_code=0, error="Request timed out")
        except requests.RequestException as e:
            logger.error("Twitter API request failed: %s", e)
            return TwitterResponse(success=False, status_code=0, error=str(e))

        return self._to_response(response)
