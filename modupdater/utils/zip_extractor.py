"""ZIP archive helpers used by the installer.

This module provides:
- open_archive: Open in-memory archive bytes, mapping corruption to MalformedResponse
- get_zip_root: Validate that an archive holds exactly one top-level folder
- extract_zip: Extract an archive below a target directory
"""

import io
import time
from pathlib import Path, PurePosixPath
from zipfile import BadZipFile, ZipFile

from loguru import logger

from modupdater.utils.exception import MalformedResponse

__all__ = [
    "open_archive",
    "get_zip_root",
    "extract_zip",
    "BadZipFile",
]


def open_archive(archive: bytes) -> ZipFile:
    """Open archive bytes as a ZipFile.

    Args:
        archive: Raw bytes of a downloaded .zip file

    Returns:
        An open ZipFile; the caller is responsible for closing it

    Raises:
        MalformedResponse: If the bytes are not a readable ZIP archive
    """
    try:
        return ZipFile(io.BytesIO(archive))
    except BadZipFile as e:
        raise MalformedResponse(f"Invalid zip archive: {e}") from e


def get_zip_root(zipobj: ZipFile) -> str:
    """Return the single top-level directory name shared by every archive entry.

    Entries without a folder component (loose files in the archive root) count as
    top-level items of their own, so they make the archive ambiguous as well. So do
    entries using backslash separators, which would not be extracted into folders.

    Raises:
        MalformedResponse: If the archive is empty, or does not contain exactly one
            directory in its root.
    """
    names = zipobj.namelist()
    if not names:
        raise MalformedResponse("Zip archive is empty")

    roots = set()
    has_directory = False
    for name in names:
        # extractall only splits on "/", a backslash would end up in a file name
        if "\\" in name:
            raise MalformedResponse(
                "Zip archive must contain exactly one item in the root"
            )
        parts = PurePosixPath(name).parts
        if not parts:
            continue
        roots.add(parts[0])
        if len(parts) > 1 or name.endswith("/"):
            has_directory = True

    if len(roots) != 1 or not has_directory:
        raise MalformedResponse(
            "Zip archive must contain exactly one item in the root"
        )
    root = roots.pop()
    if root in ("..", ".", "/") or PurePosixPath(root).is_absolute():
        raise MalformedResponse(
            "Zip archive must contain exactly one item in the root"
        )
    return root


def extract_zip(zipobj: ZipFile, target_path: Path) -> None:
    """Extract every entry of ``zipobj`` into ``target_path``.

    Args:
        zipobj: Open archive to extract
        target_path: Destination directory for extraction
    """
    start = time.perf_counter()
    zipobj.extractall(target_path)
    elapsed = time.perf_counter() - start
    logger.debug(
        f"Extracted {len(zipobj.namelist())} entries to {target_path} in {elapsed:.2f} seconds"
    )
