"""
Result types for a single mod's trip through the update pipeline.

Exactly one ``UpdateOutcome`` is produced per mod per run and it is never revised.
``FetchedRelease`` is the intermediate success value of a remote client, which the
installer turns into ``Updated``.
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Updated:
    new_version: str


@dataclass(frozen=True)
class UpToDate:
    pass


@dataclass(frozen=True)
class Failed:
    reason: str


UpdateOutcome = Union[Updated, UpToDate, Failed]


@dataclass(frozen=True)
class FetchedRelease:
    """Archive bytes downloaded from a remote source, ready to install."""

    version: str
    archive: bytes
    asset_name: str = ""

    def __repr__(self) -> str:
        return (
            f"FetchedRelease(version={self.version!r}, asset_name={self.asset_name!r}, "
            f"size={len(self.archive)})"
        )
