import shutil
from pathlib import Path

from loguru import logger

from modupdater.utils.exception import NotAFileOrDir


def copy_path(source: Path, destination: Path) -> None:
    """
    Copy a file, or a directory tree, from ``source`` to ``destination``.

    Directories are walked with an explicit stack of (from, to) pairs rather than
    recursion, so deeply nested trees cannot exhaust the call stack. File contents
    are copied byte for byte along with their permission bits.

    :param source: File or directory to copy
    :param destination: Path to create; must not exist yet for directories
    :raises NotAFileOrDir: If an entry is neither a regular file nor a directory
    :raises OSError: On any filesystem failure
    """
    pending: list[tuple[Path, Path]] = [(source, destination)]
    while pending:
        src, dst = pending.pop()
        if src.is_file():
            shutil.copy2(src, dst)
        elif src.is_dir():
            dst.mkdir()
            for child in src.iterdir():
                pending.append((child, dst / child.name))
        else:
            raise NotAFileOrDir(f"{src} is neither a file nor a directory")
    logger.debug(f"Copied {source} -> {destination}")
