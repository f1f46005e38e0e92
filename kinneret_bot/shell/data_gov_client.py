"""data.gov.il API Client - Imperative Shell.

This module handles HTTP communication with the data.gov.il CKAN
datastore that publishes the Kinneret level surveys.
All I/O is contained here; parsing and merging are in the core module.
"""

import logging
from typing import Any

import requests


logger = logging.getLogger(__name__)


# CKAN datastore search endpoint
DATA_GOV_API_URL = "https://data.gov.il/api/3/action/datastore_search"

# Kinneret level surveys dataset
KINNERET_RESOURCE_ID = "2de7b543-e13d-4e7e-b4c8-56071bc4d3c8"

# Default number of rows to fetch (newest first on the feed side)
DEFAULT_LIMIT = 15

# Default timeout for API requests (seconds)
DEFAULT_TIMEOUT = 30


class DataGovClient:
    """Client for fetching survey rows from data.gov.il.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        base_url: str = DATA_GOV_API_URL,
        resource_id: str = KINNERET_RESOURCE_ID,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize data.gov.il client.

        Args:
            base_url: datastore_search endpoint URL
            resource_id: Dataset resource ID
            timeout: Request timeout in seconds
        """
        self.base_url = base_url
        self.resource_id = resource_id
        self.timeout = timeout

    def fetch_surveys(self, limit: int = DEFAULT_LIMIT) -> dict[str, Any]:
        """Fetch the latest survey rows.

        This method performs HTTP I/O.

        Args:
            limit: Maximum number of rows

        Returns:
            Raw JSON response from the datastore

        Raises:
            requests.RequestException: If the request fails
        """
        params = {
            "resource_id": self.resource_id,
            "limit": str(limit),
        }

        logger.info(
            "Fetching surveys from data.gov.il",
            extra={"params": params},
        )

        response = requests.get(
            self.base_url,
            params=params,
            timeout=self.timeout,
        )
        response.raise_for_status()

        data = response.json()

        if isinstance(data, dict) and isinstance(data.get("result"), dict):
            logger.info(
                "Fetched %d survey rows from data.gov.il",
                len(data["result"].get("records") or []),
            )

        return data
