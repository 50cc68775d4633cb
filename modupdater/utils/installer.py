"""
Replace an installed mod with a downloaded archive.

The previous version is never deleted: it is moved to ``<mods dir>/.old/<folder> - <version>``
before the new version is extracted, and user configuration (``config.json`` files
and ``config`` folders) is copied from the backup into the new version afterwards.
When the new version ships its own default at the same place, that default is kept
next to the migrated one with a ``.new`` suffix.

Ordering matters for safety. Everything that can be checked without touching the
disk (archive readable, not empty, exactly one root folder, backup slot free) is
checked first. The rename of the old folder into the backup is the single step that
takes the old install out of place, and it always happens before extraction.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from zipfile import ZipFile

from loguru import logger

from modupdater.models.package import Package
from modupdater.utils.exception import AlreadyExists
from modupdater.utils.files import copy_path
from modupdater.utils.zip_extractor import extract_zip, get_zip_root, open_archive

BACKUP_FOLDER_NAME = ".old"
CONFIG_NAMES = ("config.json", "config")
NEW_SUFFIX = ".new"


@dataclass
class InstallTransaction:
    """State of one install; lives only for the duration of ``install``."""

    package_dir: Path
    backup_dir: Path
    backup_entry: Path
    extracted_root: str
    archive: ZipFile

    @property
    def new_dir(self) -> Path:
        return self.package_dir.parent / self.extracted_root


def backup_entry_name(package: Package) -> str:
    return f"{package.path.name} - {package.version or 'unknown'}"


def install(package: Package, archive: bytes) -> Path:
    """
    Install ``archive`` over ``package``.

    Args:
        package: The installed mod to replace.
        archive: Raw .zip bytes containing exactly one top-level folder.

    Returns:
        Path: The directory of the newly installed version.

    Raises:
        MalformedResponse: If the archive is unreadable, empty, or has no single root folder.
        AlreadyExists: If the backup entry already exists, or the extraction root is
            taken by another folder. In the latter case the old version has already
            been moved to the backup and the mod is left uninstalled.
        NotAFileOrDir: If a config entry cannot be copied.
        OSError: On any other filesystem failure.
    """
    package_dir = package.path.resolve()
    with open_archive(archive) as zipobj:
        extracted_root = get_zip_root(zipobj)

        backup_dir = package_dir.parent / BACKUP_FOLDER_NAME
        transaction = InstallTransaction(
            package_dir=package_dir,
            backup_dir=backup_dir,
            backup_entry=backup_dir / backup_entry_name(package),
            extracted_root=extracted_root,
            archive=zipobj,
        )
        if transaction.backup_entry.exists():
            raise AlreadyExists(f"File exists: {transaction.backup_entry}")

        _commit(transaction)
    return transaction.new_dir


def _commit(transaction: InstallTransaction) -> None:
    transaction.backup_dir.mkdir(exist_ok=True)

    transaction.package_dir.rename(transaction.backup_entry)
    logger.info(f"Moved {transaction.package_dir} to {transaction.backup_entry}")

    new_dir = transaction.new_dir
    if new_dir.exists():
        logger.error(
            f"Extraction target {new_dir} already exists; the previous version "
            f"remains only in {transaction.backup_entry}"
        )
        raise AlreadyExists(f"File exists: {transaction.extracted_root}")

    extract_zip(transaction.archive, transaction.package_dir.parent)
    logger.info(f"Extracted new version to {new_dir}")

    migrate_configs(transaction.backup_entry, new_dir)


def find_config_entries(root: Path) -> list[Path]:
    """
    Every ``config.json`` file or ``config`` entry below ``root``.

    A matching directory is returned as a whole and not searched further.
    """
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        for name in filenames:
            if name in CONFIG_NAMES:
                found.append(current / name)
        for name in list(dirnames):
            if name in CONFIG_NAMES:
                found.append(current / name)
                dirnames.remove(name)
    return sorted(found)


def _default_config_path(path: Path) -> Path:
    """
    Where to keep the shipped default for ``path``: ``<name>.new``, or with more
    ``.new`` suffixes while the archive itself already ships such an entry.
    """
    default_path = path.with_name(path.name + NEW_SUFFIX)
    while default_path.exists() or default_path.is_symlink():
        default_path = default_path.with_name(default_path.name + NEW_SUFFIX)
    return default_path


def migrate_configs(old_dir: Path, new_dir: Path) -> list[Path]:
    """
    Copy user configuration from the backed up version into the new one.

    Returns:
        The migrated paths inside ``new_dir``.
    """
    migrated: list[Path] = []
    for old_path in find_config_entries(old_dir):
        new_path = new_dir / old_path.relative_to(old_dir)
        if new_path.exists() or new_path.is_symlink():
            default_path = _default_config_path(new_path)
            new_path.rename(default_path)
            logger.debug(f"Kept new default config as {default_path}")
        else:
            new_path.parent.mkdir(parents=True, exist_ok=True)
        copy_path(old_path, new_path)
        migrated.append(new_path)
        logger.info(f"Migrated {old_path} -> {new_path}")
    return migrated
