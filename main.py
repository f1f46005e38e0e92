"""Cloud Function Entry Point - Root Module.

This is the root-level entry point for Google Cloud Functions.
It imports from the kinneret_bot package.
"""

from kinneret_bot.main import (
    kinneret_monitor,
    kinneret_monitor_pubsub,
)

__all__ = [
    "kinneret_monitor",
    "kinneret_monitor_pubsub",
]
