"""Secret Manager Client - Imperative Shell.

This module handles reading secrets from Google Cloud Secret Manager.
All I/O is contained here; configuration logic is in the core module.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from google.cloud import secretmanager


logger = logging.getLogger(__name__)


# ${secret:name} references a Secret Manager secret, ${NAME} an env var
SECRET_PREFIX = "secret:"


@dataclass
class SecretManagerConfig:
    """Configuration for Secret Manager client.

    Attributes:
        project_id: GCP project ID (None for default)
    """
    project_id: Optional[str] = None


class SecretManagerClient:
    """Client for reading secrets from Google Cloud Secret Manager.

    This is part of the imperative shell - it handles secret I/O.
    """

    def __init__(self, config: Optional[SecretManagerConfig] = None) -> None:
        """Initialize Secret Manager client.

        Args:
            config: Secret Manager configuration
        """
        self.config = config or SecretManagerConfig()
        self._client: Optional[secretmanager.SecretManagerServiceClient] = None

    @property
    def client(self) -> secretmanager.SecretManagerServiceClient:
        """Lazy initialization of Secret Manager client."""
        if self._client is None:
            self._client = secretmanager.SecretManagerServiceClient()
        return self._client

    def get_secret(
        self,
        secret_name: str,
        version: str = "latest",
        project_id: Optional[str] = None,
    ) -> Optional[str]:
        """Fetch a secret value from Secret Manager.

        This method performs I/O.

        Args:
            secret_name: Name of the secret (not the full resource path)
            version: Version of the secret (default: "latest")
            project_id: GCP project ID (uses config if not provided)

        Returns:
            Secret value as string, or None if not found
        """
        project = project_id or self.config.project_id

        if not project:
            logger.error("No project ID configured for Secret Manager")
            return None

        name = f"projects/{project}/secrets/{secret_name}/versions/{version}"

        try:
            logger.info("Fetching secret: %s", secret_name)
            response = self.client.access_secret_version(request={"name": name})
            secret_value = response.payload.data.decode("UTF-8")
            logger.info("Successfully fetched secret: %s", secret_name)
            return secret_value

        except Exception as e:
            logger.error("Failed to fetch secret %s: %s", secret_name, str(e))
            return None

    def get_secret_or_env(
        self,
        secret_name: str,
        env_var_name: str,
    ) -> Optional[str]:
        """Try the environment variable first, then Secret Manager.

        Args:
            secret_name: Name of the secret in Secret Manager
            env_var_name: Environment variable name

        Returns:
            Env var value, secret value, or None
        """
        env_value = os.environ.get(env_var_name)
        if env_value:
            return env_value

        secret_value = self.get_secret(secret_name)
        if secret_value:
            logger.info("Using secret %s for %s", secret_name, env_var_name)
        return secret_value

    def resolve(self, value: str) -> str:
        """Resolve a ${...} placeholder.

        ${secret:name} is read from Secret Manager, ${NAME} from the
        environment. Unresolvable placeholders are returned unchanged so
        that config validation can report them.

        Args:
            value: Value that may be a placeholder

        Returns:
            Resolved value
        """
        if not (isinstance(value, str) and value.startswith("${") and value.endswith("}")):
            return value

        spec = value[2:-1]

        if spec.startswith(SECRET_PREFIX):
            secret_value = self.get_secret(spec[len(SECRET_PREFIX):])
            return secret_value if secret_value else value

        env_value = os.environ.get(spec)
        if env_value:
            return env_value

        logger.warning("Environment variable %s not set", spec)
        return value
