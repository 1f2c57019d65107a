# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Read-only filesystem helpers shared by the extractors.

read_source() raises SourceUnreadable; every other helper tolerates missing
or unreadable paths, logs at debug level and yields nothing instead.
"""

import logging
import os
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Set, Tuple

from laravel_symbols.errors import SourceUnreadable

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 12


def read_source(path: Path) -> str:
    """Read a source file as text, replacing undecodable bytes.

    Raises:
        SourceUnreadable: If the file is missing or cannot be read.
    """
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            return f.read()
    except OSError as e:
        raise SourceUnreadable(f"Unable to read {path}: {e}") from e


def read_lines(path: Path) -> List[str]:
    """Read a text file into lines without line terminators.

    Returns:
        The file's lines, or [] if it is missing or unreadable.
    """
    try:
        return read_source(path).splitlines()
    except SourceUnreadable as e:
        if path.exists():
            logger.debug(str(e))
        return []


def list_dir(directory: Path) -> List[os.DirEntry]:
    """Sorted directory entries, or [] if the directory cannot be listed."""
    try:
        with os.scandir(directory) as it:
            return sorted(it, key=lambda e: e.name)
    except FileNotFoundError:
        return []
    except OSError as e:
        logger.debug(f"Unable to list {directory}: {e}")
        return []


def walk_files(
    root: Path,
    accept: Callable[[str], bool],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Iterator[Tuple[Tuple[str, ...], Path]]:
    """Recursively yield accepted files under root in sorted order.

    Symlinked directories are followed, but each real directory is visited
    at most once and recursion stops at max_depth, so symlink cycles
    terminate.

    Args:
        root: Directory to walk.
        accept: Predicate on the file name.
        max_depth: Maximum directory nesting below root.

    Yields:
        (relative directory parts, absolute file path) pairs.
    """
    visited: Set[str] = set()

    def _walk(directory: Path, parts: Tuple[str, ...]) -> Iterator[Tuple[Tuple[str, ...], Path]]:
        try:
            real = os.path.realpath(directory)
        except OSError:
            return
        if real in visited:
            logger.debug(f"Skipping already visited directory {directory}")
            return
        visited.add(real)

        for entry in list_dir(directory):
            try:
                is_dir = entry.is_dir()
                is_file = not is_dir and entry.is_file()
            except OSError:
                continue
            if is_dir:
                if len(parts) >= max_depth:
                    logger.debug(f"Max scan depth reached at {entry.path}")
                    continue
                yield from _walk(Path(entry.path), parts + (entry.name,))
            elif is_file and accept(entry.name):
                yield parts, Path(entry.path)

    if root.is_dir():
        yield from _walk(root, ())


def strip_suffix(filename: str, suffixes: List[str]) -> Optional[str]:
    """Remove the first matching suffix (longest first), or None if none match."""
    for suffix in sorted(suffixes, key=len, reverse=True):
        if filename.endswith(suffix) and len(filename) > len(suffix):
            return filename[: -len(suffix)]
    return None
