"""
Discovery of installed mods.

A mod is any folder containing a ``manifest.json``. Folders without one are
searched recursively, so grouping folders such as ``Mods/[CP] Packs/...`` work.
Hidden folders (including the ``.old`` backup root) and symlinks are skipped.

SMAPI reads manifests leniently: comments, trailing commas, a UTF-8 BOM and
case-insensitive keys are all accepted, so we accept them too.
"""

from pathlib import Path
from typing import Any

import msgspec
from loguru import logger

from modupdater.models.package import Manifest, Package
from modupdater.utils.exception import InvalidFormat, ManifestError

MANIFEST_FILENAME = "manifest.json"

_CANONICAL_KEYS = {
    field.lower(): field
    for field in (
        "Name",
        "Author",
        "Version",
        "Description",
        "UniqueID",
        "UpdateKeys",
    )
}


def locate_mods(mods_dir: Path) -> list[Package]:
    """
    Recursively find every installed mod below ``mods_dir``.

    Args:
        mods_dir: Directory to search.

    Returns:
        Packages in a stable, name-sorted order.

    Raises:
        ManifestError: If any manifest cannot be parsed.
    """
    packages: list[Package] = []
    for subdir in sorted(mods_dir.iterdir(), key=lambda p: p.name):
        if subdir.is_symlink() or not subdir.is_dir() or subdir.name.startswith("."):
            continue
        manifest_path = subdir / MANIFEST_FILENAME
        if manifest_path.is_file():
            packages.append(load_package(subdir))
        else:
            packages.extend(locate_mods(subdir))
    return packages


def load_package(mod_dir: Path) -> Package:
    manifest_path = mod_dir / MANIFEST_FILENAME
    try:
        manifest = parse_manifest(manifest_path.read_bytes())
        package = Package.from_manifest(mod_dir, manifest)
    except (OSError, UnicodeDecodeError, msgspec.DecodeError, InvalidFormat) as e:
        raise ManifestError(f"Failed to read {manifest_path}: {e}") from e
    logger.debug(
        f"Found mod {package.name or mod_dir.name} ({package.version}) at {mod_dir}"
    )
    return package


def parse_manifest(data: bytes) -> Manifest:
    """
    Decode manifest bytes into a Manifest.

    Raises:
        msgspec.DecodeError: If the JSON is invalid or fields have unexpected types.
        UnicodeDecodeError: If the file is not UTF-8.
    """
    text = data.decode("utf-8").lstrip("\ufeff")
    text = strip_trailing_commas(strip_json_comments(text))
    raw = msgspec.json.decode(text)
    if not isinstance(raw, dict):
        raise msgspec.ValidationError("Expected a JSON object at the manifest root")
    return msgspec.convert(_normalize_keys(raw), type=Manifest)


def _normalize_keys(raw: dict[str, Any]) -> dict[str, Any]:
    normalized: dict[str, Any] = {}
    for key, value in raw.items():
        normalized[_CANONICAL_KEYS.get(key.lower(), key)] = value
    return normalized


def strip_json_comments(text: str) -> str:
    """Remove ``//`` line comments and ``/* */`` block comments outside of strings."""
    out: list[str] = []
    i = 0
    length = len(text)
    in_string = False
    while i < length:
        char = text[i]
        if in_string:
            out.append(char)
            if char == "\\" and i + 1 < length:
                out.append(text[i + 1])
                i += 2
                continue
            if char == '"':
                in_string = False
            i += 1
        elif char == '"':
            in_string = True
            out.append(char)
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = length if end == -1 else end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            # a/**/b must not become ab
            out.append(" ")
            i = length if end == -1 else end + 2
        else:
            out.append(char)
            i += 1
    return "".join(out)


def strip_trailing_commas(text: str) -> str:
    """Remove commas directly followed (modulo whitespace) by ``}`` or ``]``."""
    out: list[str] = []
    in_string = False
    escaped = False
    for i, char in enumerate(text):
        if in_string:
            out.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == ",":
            rest = text[i + 1 :].lstrip()
            if rest[:1] in ("}", "]"):
                continue
        out.append(char)
    return "".join(out)
