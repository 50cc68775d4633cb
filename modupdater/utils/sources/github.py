"""
GitHub releases as an update source.

Update keys look like ``GitHub:owner/repo``. The latest published release is
used; its tag (minus a leading ``v``) is the new version and its single ``.zip``
asset is the archive to install.
"""

from typing import Optional

import msgspec
from loguru import logger

from modupdater.models.outcome import FetchedRelease, UpToDate
from modupdater.models.package import Package, SourceKind, UpdateSourceRef
from modupdater.utils.exception import AmbiguousAsset, InvalidFormat, MalformedResponse
from modupdater.utils.http import send
from modupdater.utils.keyring_manager import KeyringManager, get_keyring_manager
from modupdater.utils.sources.base import ARCHIVE_EXTENSION, CheckResult, UpdateClient


class GitHubAsset(msgspec.Struct):
    name: str
    browser_download_url: str


class GitHubRelease(msgspec.Struct):
    tag_name: str
    assets: list[GitHubAsset] = msgspec.field(default_factory=list)


def normalize_tag(tag_name: str) -> str:
    """Strip the version prefix letter(s) from a release tag, e.g. v1.3.0 -> 1.3.0."""
    return tag_name.lstrip("vV")


def split_repository(identifier: str) -> tuple[str, str]:
    owner, sep, repo = identifier.partition("/")
    if not sep or not owner or not repo:
        raise InvalidFormat(f"Invalid GitHub repo: {identifier}")
    return owner, repo


class GitHubClient(UpdateClient):
    kind = SourceKind.HOSTED_RELEASE

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        token: Optional[str] = get_keyring_manager().get_secret(
            KeyringManager.GITHUB_TOKEN
        )
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def latest_release(self, owner: str, repo: str) -> GitHubRelease:
        """
        Fetch the latest published release of a repository.

        Raises:
            TransportError: On network failures or a non-success status.
            MalformedResponse: If the release JSON lacks the fields we need.
        """
        url = f"{self.settings.github_api_url.rstrip('/')}/repos/{owner}/{repo}/releases/latest"
        response = send(
            self.session,
            "GET",
            url,
            timeout=self.settings.request_timeout,
            headers=self._headers(),
        )
        try:
            return msgspec.json.decode(response.content, type=GitHubRelease)
        except msgspec.DecodeError as e:
            raise MalformedResponse(f"Invalid response from GitHub: {e}") from e

    def check_and_fetch(
        self, package: Package, source: UpdateSourceRef, force: bool
    ) -> CheckResult:
        owner, repo = split_repository(source.id)
        release = self.latest_release(owner, repo)
        version = normalize_tag(release.tag_name)
        logger.debug(f"Latest release of {owner}/{repo} is {release.tag_name}")

        if not force and package.version == version:
            return UpToDate()

        assets = [
            asset
            for asset in release.assets
            if asset.name.endswith(ARCHIVE_EXTENSION)
        ]
        if not assets:
            raise AmbiguousAsset("No valid release assets found")
        if len(assets) > 1:
            names = ", ".join(asset.name for asset in assets)
            raise AmbiguousAsset(f"Multiple valid assets found: {names}")

        asset = assets[0]
        logger.info(f"Downloading {asset.name} from {owner}/{repo} {release.tag_name}")
        archive = self.download(asset.browser_download_url)
        return FetchedRelease(version=version, archive=archive, asset_name=asset.name)
