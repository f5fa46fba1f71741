"""Tree traversal with digest computation."""

import logging
import os
import stat
from pathlib import Path
from typing import List, Optional, Tuple

from .core import ScanResult, TreeEntry, TreeState
from .errors import InvalidRootError
from .hashing import compute_stream_digest
from .ignore import ExclusionSet

logger = logging.getLogger(__name__)


def _open_flags() -> int:
    """Flags for opening a file to fingerprint.

    O_NONBLOCK keeps a path that was swapped for a FIFO after listing from
    blocking the open; it has no effect on regular files. O_NOFOLLOW refuses
    a path that was swapped for a symlink.
    """
    flags = os.O_RDONLY
    for name in ("O_NONBLOCK", "O_NOFOLLOW", "O_BINARY"):
        flags |= getattr(os, name, 0)
    return flags


def fingerprint_file(path: Path) -> Tuple[str, os.stat_result]:
    """Hash one regular file and return (digest, stat taken on the open handle).

    Raises:
        OSError: If the file cannot be opened or read, or is no longer a
            regular file
    """
    fd = os.open(path, _open_flags())
    try:
        st = os.fstat(fd)
        if not stat.S_ISREG(st.st_mode):
            raise OSError(f"not a regular file: {path}")
        f = os.fdopen(fd, "rb")
    except BaseException:
        os.close(fd)
        raise
    # fdopen owns the descriptor from here on
    with f:
        digest = compute_stream_digest(f)
    return digest, st


def _list_dir(path: Path) -> List[os.DirEntry]:
    with os.scandir(path) as it:
        return sorted(it, key=lambda e: e.name)


def scan_tree(root: Path, exclusions: Optional[ExclusionSet] = None) -> ScanResult:
    """Walk root and fingerprint every regular file.

    Symlinks and non-regular files are skipped. Files that cannot be read are
    logged as warnings and omitted from the resulting state. Entries are
    visited in lexicographic order.

    This is the expensive operation - every file is fully re-read.

    Raises:
        InvalidRootError: If root is missing, not a directory, or unreadable
    """
    exclusions = exclusions or ExclusionSet()
    root = Path(root)

    if not root.exists():
        raise InvalidRootError(root, "no such directory")
    if not root.is_dir():
        raise InvalidRootError(root, "not a directory")
    try:
        top = _list_dir(root)
    except OSError as e:
        raise InvalidRootError(root, e.strerror or str(e)) from e

    result = ScanResult(state=TreeState(root=str(root)))
    # Explicit stack instead of recursion
    pending: List[Tuple[str, List[os.DirEntry]]] = [("", top)]

    while pending:
        rel_dir, entries = pending.pop()
        subdirs: List[Tuple[str, Path]] = []

        for entry in entries:
            rel = f"{rel_dir}/{entry.name}" if rel_dir else entry.name
            try:
                if entry.is_symlink():
                    logger.debug("Skipping symlink: %s", rel)
                    continue
                if entry.is_dir(follow_symlinks=False):
                    if exclusions.should_traverse(rel):
                        subdirs.append((rel, Path(entry.path)))
                    else:
                        logger.debug("Pruning excluded directory: %s", rel)
                    continue
                if not entry.is_file(follow_symlinks=False):
                    logger.debug("Skipping non-regular file: %s", rel)
                    continue
            except OSError as e:
                logger.warning("Unable to stat %s: %s", rel, e)
                result.skipped.append(rel)
                continue

            if exclusions.is_excluded(rel):
                logger.debug("Skipping excluded file: %s", rel)
                continue

            try:
                digest, st = fingerprint_file(Path(entry.path))
            except OSError as e:
                logger.warning("Unable to read %s, leaving it out of this scan: %s", rel, e)
                result.skipped.append(rel)
                continue

            result.state.add(TreeEntry(path=rel, digest=digest, size=st.st_size, mtime=st.st_mtime))
            result.files_hashed += 1
            result.bytes_hashed += st.st_size
            logger.debug("%s %s", digest, rel)

        # Reversed so the stack pops siblings in sorted order
        for rel, path in reversed(subdirs):
            try:
                pending.append((rel, _list_dir(path)))
            except OSError as e:
                logger.warning("Unable to read directory %s, skipping it: %s", rel, e)
                result.skipped.append(rel + "/")

    return result
