from abc import ABC, abstractmethod
from typing import ClassVar, Union

import requests

from modupdater.models.outcome import FetchedRelease, UpToDate
from modupdater.models.package import Package, SourceKind, UpdateSourceRef
from modupdater.models.settings import Settings
from modupdater.utils.http import send

CheckResult = Union[FetchedRelease, UpToDate]

ARCHIVE_EXTENSION = ".zip"


class UpdateClient(ABC):
    """
    One remote update source.

    Implementations resolve the latest release for a mod and download its archive.
    Anything that prevents a download (ambiguous assets, transport or parsing
    problems) is raised as an ``UpdaterError``.
    """

    kind: ClassVar[SourceKind]

    def __init__(self, session: requests.Session, settings: Settings) -> None:
        self.session = session
        self.settings = settings

    @abstractmethod
    def check_and_fetch(
        self, package: Package, source: UpdateSourceRef, force: bool
    ) -> CheckResult:
        """
        Find the latest release of ``package`` and download it.

        Args:
            package: The installed mod.
            source: The mod's preferred update source, of this client's kind.
            force: Download even if the release looks identical to what is installed.
        """

    def download(self, url: str, **kwargs: object) -> bytes:
        response = send(
            self.session,
            "GET",
            url,
            timeout=self.settings.request_timeout,
            **kwargs,
        )
        return response.content
