"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- data.gov.il datastore client (HTTP)
- Gemini text-generation client (HTTP)
- Twitter/X client (HTTP)
- History and watermark stores (files, Firestore)
- Configuration loading (environment/files/Secret Manager)

Keep this layer thin and simple. All business logic should be in core.
"""

from kinneret_bot.shell.data_gov_client import DataGovClient
from kinneret_bot.shell.gemini_client import GeminiClient
from kinneret_bot.shell.twitter_client import TwitterClient
from kinneret_bot.shell.state_store import FileWatermarkStore, HistoryFileStore
from kinneret_bot.shell.config_loader import load_config, load_config_from_env

__all__ = [
    "DataGovClient",
    "GeminiClient",
    "TwitterClient",
    "FileWatermarkStore",
    "HistoryFileStore",
    "load_config",
    "load_config_from_env",
]
