from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Sequence
from zipfile import BadZipFile

import msgspec
import requests
from loguru import logger

from modupdater.models.outcome import (
    Failed,
    FetchedRelease,
    UpdateOutcome,
    Updated,
    UpToDate,
)
from modupdater.models.package import Package, SourceKind, UpdateSourceRef
from modupdater.models.settings import Settings
from modupdater.utils.exception import UnsupportedSource, UpdaterError
from modupdater.utils.installer import install
from modupdater.utils.sources.base import UpdateClient
from modupdater.utils.update_checker import UpdateChecker

OutcomeCallback = Callable[[Package, UpdateOutcome], None]

# Errors that describe a problem with one mod's remote data or files. Anything
# else raised inside a task is a bug and aborts the run.
TASK_ERRORS: tuple[type[BaseException], ...] = (
    UpdaterError,
    requests.RequestException,
    OSError,
    BadZipFile,
    msgspec.DecodeError,
)

UNSUPPORTED_SOURCE = "Unknown or unsupported source"
SUBKEYS_UNSUPPORTED = "Subkeys are not yet supported"


@dataclass
class UpdateSummary:
    """Aggregate of one update run."""

    force: bool = False
    updated: int = 0
    failed: int = 0
    up_to_date: int = 0
    outcomes: list[tuple[Package, UpdateOutcome]] = field(default_factory=list)

    def record(self, package: Package, outcome: UpdateOutcome) -> None:
        if isinstance(outcome, Updated):
            self.updated += 1
        elif isinstance(outcome, UpToDate):
            self.up_to_date += 1
        else:
            self.failed += 1
        self.outcomes.append((package, outcome))

    def __str__(self) -> str:
        # With force the up-to-date check was bypassed, so the count means nothing
        if self.force:
            return f"{self.updated} updated, {self.failed} failed"
        return (
            f"{self.updated} updated, {self.failed} failed, "
            f"{self.up_to_date} already up to date"
        )


class UpdateController:
    """
    Runs the update pipeline for every installed mod.

    Each mod with a usable preferred source becomes one task on a thread pool:
    compatibility gate, source check and download, then install. Tasks share
    nothing but the HTTP session, so a failure in one never affects the others.

    Args:
        settings: User settings; ``max_workers`` bounds the pool when non-zero.
        clients: Update client per source kind.
        checker: Compatibility gate used unless ``force`` is requested.
        installer: Callable installing archive bytes over a package.
    """

    def __init__(
        self,
        settings: Settings,
        clients: dict[SourceKind, UpdateClient],
        checker: UpdateChecker,
        installer: Callable[[Package, bytes], Path] = install,
    ) -> None:
        self.settings = settings
        self.clients = clients
        self.checker = checker
        self.installer = installer

    def resolve_source(self, package: Package) -> UpdateSourceRef:
        """
        Pick the source to update ``package`` from.

        Raises:
            UnsupportedSource: If no declared source has a client, or the
                preferred one carries a subkey.
        """
        source = package.preferred_source()
        if source is None or source.kind not in self.clients:
            raise UnsupportedSource(UNSUPPORTED_SOURCE)
        if source.subkey:
            raise UnsupportedSource(SUBKEYS_UNSUPPORTED)
        return source

    def update_package(
        self, package: Package, source: UpdateSourceRef, force: bool
    ) -> UpdateOutcome:
        """
        Run gate, fetch and install for one mod, converting expected errors to Failed.
        """
        try:
            if not force and not self.checker.has_update_available(package, source):
                return UpToDate()

            client = self.clients[source.kind]  # type: ignore[index]
            result = client.check_and_fetch(package, source, force)
            if not isinstance(result, FetchedRelease):
                return result

            new_dir = self.installer(package, result.archive)
            logger.info(f"Installed {result.version} of {package.path.name} to {new_dir}")
            return Updated(new_version=result.version)
        except TASK_ERRORS as e:
            logger.info(f"Update of {package.path} failed: {e.__class__.__name__}: {e}")
            return Failed(str(e) or e.__class__.__name__)

    def run(
        self,
        packages: Sequence[Package],
        force: bool = False,
        on_outcome: Optional[OutcomeCallback] = None,
    ) -> UpdateSummary:
        """
        Update every package and aggregate the outcomes.

        Outcomes are reported through ``on_outcome`` as they become available:
        unsupported packages first, then dispatched packages in completion order.

        Raises:
            Exception: Whatever unexpected error a task raised; remaining tasks
                still run to completion before it propagates.
        """
        summary = UpdateSummary(force=force)

        def report(package: Package, outcome: UpdateOutcome) -> None:
            summary.record(package, outcome)
            if on_outcome is not None:
                on_outcome(package, outcome)

        jobs: list[tuple[Package, UpdateSourceRef]] = []
        for package in packages:
            try:
                source = self.resolve_source(package)
            except UnsupportedSource as e:
                report(package, Failed(str(e)))
                continue
            jobs.append((package, source))

        if not jobs:
            return summary

        max_workers = self.settings.max_workers or len(jobs)
        logger.info(
            f"Checking {len(jobs)} mod(s) for updates with {max_workers} worker(s), force={force}"
        )
        with ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="update"
        ) as executor:
            futures: dict[Future[UpdateOutcome], Package] = {
                executor.submit(self.update_package, package, source, force): package
                for package, source in jobs
            }
            for future in as_completed(futures):
                report(futures[future], future.result())

        logger.info(f"Update finished: {summary}")
        return summary
