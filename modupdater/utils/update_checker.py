"""
Cheap "is there anything newer?" gate backed by the SMAPI compatibility API.

The API aggregates every update source SMAPI knows about, so one request tells us
whether any source believes a newer version exists before we spend a (possibly
rate-limited or authenticated) request on the source itself.
"""

from typing import Any

import requests
from loguru import logger

from modupdater.models.package import Package, UpdateSourceRef
from modupdater.models.settings import Settings
from modupdater.utils.exception import MalformedResponse
from modupdater.utils.http import send


class UpdateChecker:
    def __init__(self, session: requests.Session, settings: Settings) -> None:
        self.session = session
        self.settings = settings

    def build_request(self, package: Package, source: UpdateSourceRef) -> dict[str, Any]:
        """
        Build the JSON body for a single mod.

        Mods without a UniqueID get a placeholder of the form FAKE.<source>.<id>.
        """
        mod_id = package.unique_id or f"FAKE.{source.source}.{source.id}"
        return {
            "mods": [
                {
                    "id": mod_id,
                    "updateKeys": [source.update_key],
                    "installedVersion": package.version or "",
                }
            ],
            "apiVersion": self.settings.compatibility_api_version,
        }

    def has_update_available(self, package: Package, source: UpdateSourceRef) -> bool:
        """
        Ask the compatibility API whether an update is suggested for ``package``.

        Raises:
            TransportError: On network failures or a non-success status.
            MalformedResponse: If the response is not a non-empty array of objects.
        """
        response = send(
            self.session,
            "POST",
            self.settings.compatibility_api_url,
            timeout=self.settings.request_timeout,
            json=self.build_request(package, source),
        )
        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponse(
                f"Invalid response from compatibility API: {e}"
            ) from e

        if not isinstance(data, list) or not data:
            raise MalformedResponse(
                "Invalid response from compatibility API: Expected array"
            )
        entry = data[0]
        if not isinstance(entry, dict):
            raise MalformedResponse(
                "Invalid response from compatibility API: Expected object"
            )

        available = "suggestedUpdate" in entry
        logger.debug(
            f"Compatibility API for {source.update_key}: update available = {available}"
        )
        return available
