"""
Secure keyring lookups for tokens that override what would otherwise be discovered.

Secrets are stored under the service name ``ModUpdater_<secret type>`` with the
user name ``default``, e.g.::

    keyring set ModUpdater_nexus_session default
"""

import os
from typing import Optional

import keyring
from keyring.errors import KeyringError
from loguru import logger


class KeyringManager:
    """
    Reads secrets from environment variables first, then from the system keyring.
    """

    SERVICE_NAME = "ModUpdater"
    DEFAULT_USERNAME = "default"

    # Secret types
    GITHUB_TOKEN = "github_token"
    NEXUS_SESSION = "nexus_session"

    ENVIRONMENT_VARIABLES = {
        GITHUB_TOKEN: "GITHUB_TOKEN",
        NEXUS_SESSION: "NEXUS_SESSION",
    }

    def get_secret(
        self, secret_type: str, username: str = DEFAULT_USERNAME
    ) -> Optional[str]:
        """
        Retrieve a secret.

        Args:
            secret_type: Type of secret (GITHUB_TOKEN or NEXUS_SESSION)
            username: Username or identifier associated with the secret

        Returns:
            The secret value if found, None otherwise
        """
        env_name = self.ENVIRONMENT_VARIABLES.get(secret_type)
        if env_name:
            value = os.environ.get(env_name, "").strip()
            if value:
                logger.debug(f"Using {secret_type} from ${env_name}")
                return value

        service_name = f"{self.SERVICE_NAME}_{secret_type}"
        try:
            secret = keyring.get_password(service_name, username)
        except KeyringError as e:
            logger.debug(f"Keyring lookup for {service_name} unavailable: {e}")
            return None
        if secret:
            logger.debug(f"Using {secret_type} from keyring")
        return secret or None


# Global instance
_keyring_manager: Optional[KeyringManager] = None


def get_keyring_manager() -> KeyringManager:
    """Get the global KeyringManager instance."""
    global _keyring_manager
    if _keyring_manager is None:
        _keyring_manager = KeyringManager()
    return _keyring_manager
