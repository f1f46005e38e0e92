"""Firestore Watermark Store - Imperative Shell.

This module persists the publication watermark in Google Cloud
Firestore, for deployments without a durable local filesystem
(Cloud Functions).

All I/O is contained here; selection logic is in the core module.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any

from google.cloud import firestore

from kinneret_bot.core.publication import format_watermark, parse_watermark
from kinneret_bot.shell.state_store import WatermarkLoadError


logger = logging.getLogger(__name__)


# Default collection name for bot state
DEFAULT_COLLECTION = "kinneret_bot"

# Default document for storing the watermark
DEFAULT_DOCUMENT = "last_tweet"


@dataclass
class FirestoreConfig:
    """Configuration for Firestore client.

    Attributes:
        project_id: GCP project ID (None for default)
        database: Firestore database name (None for default database)
        collection: Firestore collection name
        document: Document ID for storing the watermark
    """
    project_id: str | None = None
    database: str | None = None
    collection: str = DEFAULT_COLLECTION
    document: str = DEFAULT_DOCUMENT


class FirestoreWatermarkStore:
    """Watermark store backed by a single Firestore document.

    This is part of the imperative shell - it handles database I/O.

    Document structure:
    {
        "date": "2026-02-06",
        "updated_at": <timestamp>
    }
    """

    def __init__(self, config: FirestoreConfig | None = None) -> None:
        """Initialize Firestore watermark store.

        Args:
            config: Firestore configuration
        """
        self.config = config or FirestoreConfig()
        self._client: firestore.Client | None = None

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs = {}
            if self.config.project_id:
                kwargs['project'] = self.config.project_id
            if self.config.database:
                kwargs['database'] = self.config.database
            self._client = firestore.Client(**kwargs)
        return self._client

    def _get_doc_ref(self) -> Any:
        """Get reference to the watermark document."""
        return (
            self.client
            .collection(self.config.collection)
            .document(self.config.document)
        )

    def read(self) -> date | None:
        """Read the watermark.

        This method performs database I/O. Read errors propagate to the
        caller.

        Returns:
            Date of the last published survey, or None if unset

        Raises:
            WatermarkLoadError: If the stored value is not a date
        """
        logger.info("Fetching watermark from Firestore")

        doc = self._get_doc_ref().get()

        if not doc.exists:
            logger.info("No watermark document found, treating as unset")
            return None

        value = (doc.to_dict() or {}).get("date")

        try:
            watermark = parse_watermark(value)
        except (AttributeError, TypeError, ValueError) as e:
            raise WatermarkLoadError(f"Invalid watermark in Firestore: {value!r}") from e

        logger.info("Fetched watermark %s from Firestore", watermark)
        return watermark

    def write(self, watermark: date) -> bool:
        """Advance the watermark.

        This method performs database I/O.

        Args:
            watermark: Date of the survey that was just published

        Returns:
            True if the write was successful
        """
        logger.info("Saving watermark %s to Firestore", watermark)

        try:
            self._get_doc_ref().set({
                "date": format_watermark(watermark),
                "updated_at": datetime.now(timezone.utc),
            })

            logger.info("Successfully saved watermark")
            return True

        except Exception as e:
            logger.error("Failed to save watermark: %s", str(e))
            return False
