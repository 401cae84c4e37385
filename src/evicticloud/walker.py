"""Recursive discovery of regular files under a root directory."""

import asyncio
import logging
import os
from collections.abc import AsyncIterator
from pathlib import Path

import aiofiles.os

from .logging import log_with_context
from .models import TraversalError

logger = logging.getLogger("evicticloud.walker")


async def async_scandir(path: Path) -> list[os.DirEntry]:
    """Async wrapper for os.scandir."""
    loop = asyncio.get_running_loop()

    def _scandir():
        with os.scandir(path) as entries:
            return list(entries)

    return await loop.run_in_executor(None, _scandir)


async def validate_root(root: Path) -> None:
    """
    Make sure the root exists and is a directory.

    Raises:
        FileNotFoundError: If the root does not exist
        NotADirectoryError: If the root exists but is not a directory
    """
    if not await aiofiles.os.path.exists(root):
        raise FileNotFoundError(f"Root path does not exist: {root}")
    if not await aiofiles.os.path.isdir(root):
        raise NotADirectoryError(f"Root path is not a directory: {root}")


async def iter_files(root: Path, errors: list[TraversalError] | None = None) -> AsyncIterator[Path]:
    """
    Yield every regular file reachable from root.

    The walk is depth-first over an explicit stack, one directory listing at
    a time, so memory stays proportional to the widest directory rather than
    the whole tree. Symlinks are never followed (this also rules out cycles)
    and special files are ignored.

    Directories that cannot be listed are logged, appended to ``errors`` and
    skipped; the walk carries on with their siblings.

    Args:
        root: Directory to walk
        errors: Optional list collecting unreadable directories

    Yields:
        Paths of regular files, in no particular order

    Raises:
        FileNotFoundError: If root does not exist
        NotADirectoryError: If root is not a directory
    """
    root = Path(root)
    await validate_root(root)

    pending: list[Path] = [root]
    while pending:
        directory = pending.pop()

        try:
            entries = await async_scandir(directory)
        except OSError as e:
            log_with_context(
                logger,
                "warning",
                "Skipping unreadable directory",
                {"directory": str(directory), "error": str(e), "error_type": type(e).__name__},
            )
            if errors is not None:
                errors.append(TraversalError(path=directory, error=str(e)))
            continue

        for entry in entries:
            try:
                if entry.is_symlink():
                    logger.debug(f"Skipping symlink: {entry.path}")
                elif entry.is_file(follow_symlinks=False):
                    yield Path(entry.path)
                elif entry.is_dir(follow_symlinks=False):
                    pending.append(Path(entry.path))
                else:
                    logger.debug(f"Skipping special file: {entry.path}")
            except OSError as e:
                # Entry vanished between listing and type check
                log_with_context(
                    logger,
                    "warning",
                    "Error checking entry",
                    {"path": entry.path, "error": str(e)},
                )
