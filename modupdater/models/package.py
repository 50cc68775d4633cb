from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

import msgspec

from modupdater.utils.exception import InvalidFormat


class SourceKind(Enum):
    """Update source kinds we know how to talk to, in no particular order."""

    HOSTED_RELEASE = "github"
    MOD_SITE = "nexus"

    @classmethod
    def from_source(cls, source: str) -> Optional["SourceKind"]:
        """Case-insensitive lookup, returns None for sources without a client."""
        normalized = source.strip().lower()
        for kind in cls:
            if kind.value == normalized:
                return kind
        return None


# Sources less likely to require interactive authentication come first.
SOURCE_PRIORITY: tuple[SourceKind, ...] = (
    SourceKind.HOSTED_RELEASE,
    SourceKind.MOD_SITE,
)


@dataclass(frozen=True)
class UpdateSourceRef:
    """
    A parsed update key such as ``github:owner/repo`` or ``nexus:12345@subkey``.

    ``source`` keeps the text exactly as declared in the manifest so it can be
    echoed back to the compatibility API. ``subkey`` keeps its leading ``@``.
    """

    source: str
    id: str
    subkey: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "UpdateSourceRef":
        """
        Parse an update key string.

        Args:
            text: The update key as written in the manifest.

        Returns:
            UpdateSourceRef: The parsed reference.

        Raises:
            InvalidFormat: If the key has no ':' separator.
        """
        source, sep, key = text.partition(":")
        if not sep:
            raise InvalidFormat(f"UpdateKey must contain ':' (got {text!r})")
        identifier, at, subkey = key.partition("@")
        if at:
            return cls(source=source, id=identifier, subkey=f"@{subkey}")
        return cls(source=source, id=key)

    @property
    def kind(self) -> Optional[SourceKind]:
        return SourceKind.from_source(self.source)

    @property
    def update_key(self) -> str:
        return f"{self.source}:{self.id}"

    def __str__(self) -> str:
        return f"{self.update_key}{self.subkey or ''}"


def preferred(sources: Iterable[UpdateSourceRef]) -> Optional[UpdateSourceRef]:
    """
    Pick the single update source to use for a mod.

    The first source kind in SOURCE_PRIORITY that is declared wins, regardless of
    declaration order. Returns None when no declared source has a client.
    """
    sources = list(sources)
    for kind in SOURCE_PRIORITY:
        for source in sources:
            if source.kind is kind:
                return source
    return None


class Manifest(msgspec.Struct, frozen=True, rename="pascal"):
    """
    The subset of a SMAPI ``manifest.json`` we care about.
    Unknown fields (EntryDll, Dependencies, ...) are ignored on decode.
    """

    name: Optional[str] = None
    author: Optional[str] = None
    version: Optional[str] = None
    description: Optional[str] = None
    unique_id: Optional[str] = msgspec.field(default=None, name="UniqueID")
    update_keys: list[str] = msgspec.field(default_factory=list)


@dataclass(frozen=True)
class Package:
    """Immutable snapshot of one installed mod folder and its manifest."""

    path: Path
    manifest: Manifest
    update_sources: tuple[UpdateSourceRef, ...] = field(default=())

    @classmethod
    def from_manifest(cls, path: Path, manifest: Manifest) -> "Package":
        """
        Build a package, parsing the manifest's update keys.

        Raises:
            InvalidFormat: If any update key is malformed.
        """
        sources = tuple(UpdateSourceRef.parse(key) for key in manifest.update_keys)
        return cls(path=path, manifest=manifest, update_sources=sources)

    @property
    def name(self) -> Optional[str]:
        return self.manifest.name

    @property
    def version(self) -> Optional[str]:
        return self.manifest.version

    @property
    def unique_id(self) -> Optional[str]:
        return self.manifest.unique_id

    def preferred_source(self) -> Optional[UpdateSourceRef]:
        return preferred(self.update_sources)

    def relative_path(self, mods_dir: Path) -> Path:
        try:
            return self.path.relative_to(mods_dir)
        except ValueError:
            return self.path

    def display_name(self, mods_dir: Path) -> str:
        """The manifest name, or the folder path relative to the mods directory."""
        if self.manifest.name:
            return self.manifest.name
        return str(self.relative_path(mods_dir))
