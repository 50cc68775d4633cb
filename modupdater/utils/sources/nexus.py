"""
Nexus Mods as an update source.

Nexus has no public version API usable without a premium key, so the mod's
"Files" tab is scraped for the id of the current main file, and the download
URL is generated the same way the website does it, authenticated with the
user's browser session cookie.

Limitation: the file listing carries no machine-readable version, so mods
updated from Nexus are reported with the version "latest".
"""

import threading
from typing import Any, Optional

import rookiepy
from bs4 import BeautifulSoup
from loguru import logger

from modupdater.models.outcome import FetchedRelease
from modupdater.models.package import Package, SourceKind, UpdateSourceRef
from modupdater.utils.exception import AuthenticationError, MalformedResponse
from modupdater.utils.http import send
from modupdater.utils.keyring_manager import KeyringManager, get_keyring_manager
from modupdater.utils.sources.base import CheckResult, UpdateClient

NEXUS_COOKIE_DOMAIN = "nexusmods.com"
NEXUS_SESSION_COOKIE = "sid_develop"
NEXUS_LATEST_VERSION = "latest"

MAIN_FILE_SELECTOR = "#file-container-main-files .file-expander-header"
UPDATE_FILE_SELECTOR = "#file-container-update-files .file-expander-header"
DOWNLOAD_URL_PATH = "/Core/Libs/Common/Managers/Downloads?GenerateDownloadUrl"

_session_token: Optional[str] = None
_session_token_lock = threading.Lock()


def _token_from_browsers() -> Optional[str]:
    try:
        cookies: list[dict[str, Any]] = rookiepy.load([NEXUS_COOKIE_DOMAIN])
    except (RuntimeError, OSError) as e:
        logger.warning(f"Could not read browser cookies: {e}")
        return None
    for cookie in cookies:
        if cookie.get("name") == NEXUS_SESSION_COOKIE and cookie.get("value"):
            return str(cookie["value"])
    return None


def get_session_token() -> str:
    """
    Return the Nexus session token, resolving it on first use.

    Resolution order: the NEXUS_SESSION environment variable, the system keyring,
    then the sid_develop cookie of any local browser. The token is resolved at most
    once per process and never refreshed; a failed lookup is not cached, so the
    next mod that needs it tries again.

    Raises:
        AuthenticationError: If no token could be found.
    """
    global _session_token
    if _session_token is None:
        with _session_token_lock:
            if _session_token is None:
                token = get_keyring_manager().get_secret(
                    KeyringManager.NEXUS_SESSION
                ) or _token_from_browsers()
                if not token:
                    raise AuthenticationError(
                        "Could not find Nexus cookie. Please sign in to Nexus in any "
                        "web browser and try again."
                    )
                logger.debug("Resolved Nexus session token")
                _session_token = token
    return _session_token


def reset_session_token() -> None:
    """Forget the cached token. Only meant for tests."""
    global _session_token
    with _session_token_lock:
        _session_token = None


def find_file_id(html: str) -> str:
    """
    Locate the id of the newest main file on a mod's "Files" tab.

    Falls back to the first update file when the mod has no main files.

    Raises:
        MalformedResponse: If the page layout is not what we expect.
    """
    document = BeautifulSoup(html, "lxml")
    element = document.select_one(MAIN_FILE_SELECTOR) or document.select_one(
        UPDATE_FILE_SELECTOR
    )
    if element is None:
        raise MalformedResponse(
            "HTML parsing failed: couldn't locate main file element"
        )
    file_id = element.get("data-id")
    if not file_id or not isinstance(file_id, str):
        raise MalformedResponse(
            "HTML parsing failed: couldn't find data-id attribute"
        )
    return file_id


class NexusClient(UpdateClient):
    kind = SourceKind.MOD_SITE

    @property
    def base_url(self) -> str:
        return self.settings.nexus_url.rstrip("/")

    def files_page_url(self, mod_id: str) -> str:
        return f"{self.base_url}/{self.settings.nexus_game_domain}/mods/{mod_id}?tab=files"

    def generate_download_url(self, file_id: str, token: str) -> str:
        response = send(
            self.session,
            "POST",
            f"{self.base_url}{DOWNLOAD_URL_PATH}",
            timeout=self.settings.request_timeout,
            data={"fid": file_id, "game_id": str(self.settings.nexus_game_id)},
            headers={"Cookie": f"{NEXUS_SESSION_COOKIE}={token}"},
        )
        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponse(f"Invalid response from Nexus: {e}") from e
        if not isinstance(payload, dict) or "url" not in payload:
            raise MalformedResponse("Invalid response from Nexus: Expected url")
        url = payload["url"]
        if not isinstance(url, str):
            raise MalformedResponse("Invalid response from Nexus: Expected string")
        return url

    def check_and_fetch(
        self, package: Package, source: UpdateSourceRef, force: bool
    ) -> CheckResult:
        page = send(
            self.session,
            "GET",
            self.files_page_url(source.id),
            timeout=self.settings.request_timeout,
        )
        file_id = find_file_id(page.text)
        logger.debug(f"Nexus mod {source.id} main file id is {file_id}")

        token = get_session_token()
        url = self.generate_download_url(file_id, token)
        logger.info(f"Downloading Nexus file {file_id} for mod {source.id}")
        archive = self.download(url)
        return FetchedRelease(
            version=NEXUS_LATEST_VERSION, archive=archive, asset_name=file_id
        )
