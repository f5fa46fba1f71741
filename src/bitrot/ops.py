"""Core operations for bitrot."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from .config import BitrotConfig
from .core import DiffResult, ScanResult
from .dirtree import DirTree
from .errors import DecodeError, InvalidConfigError, InvalidRootError
from .ignore import ExclusionSet, normalize_prefix
from .store import StateStore

logger = logging.getLogger(__name__)


@dataclass
class CheckResult:
    """Outcome of one check run."""
    root: Path
    state_path: Path
    diff: DiffResult
    scan: ScanResult
    first_run: bool
    saved: bool
    state_reset: bool = False


def validate_root(root: Path) -> Path:
    """Check the scan root before any state is touched.

    Raises:
        InvalidRootError: If root is not an existing directory
    """
    root = Path(root)
    if not root.is_absolute():
        raise InvalidRootError(root, "root must be an absolute path")
    if not root.exists():
        raise InvalidRootError(root, "no such directory")
    if not root.is_dir():
        raise InvalidRootError(root, "not a directory")
    return root


def build_exclusions(
    root: Path,
    store: StateStore,
    config: BitrotConfig,
    exclude: Iterable[str] = (),
    ignore: Iterable[str] = (),
) -> ExclusionSet:
    """Combine configured and per-run exclusions for root.

    The state directory is always excluded when it lies inside root, so a
    scan never fingerprints its own state files. When the state directory
    is root itself, only the state and config files are left out.
    """
    try:
        exclusions = ExclusionSet.build(
            root,
            [*config.exclude, *exclude],
            [*config.ignore, *ignore],
        )
    except ValueError as e:
        raise InvalidConfigError("exclusions", str(e)) from e

    state_dir = Path(os.path.abspath(store.state_dir))
    if state_dir == Path(os.path.abspath(root)):
        return exclusions.with_patterns(store.own_file_patterns())
    try:
        state_prefix = normalize_prefix(state_dir, root)
    except ValueError:
        # Outside root
        return exclusions
    return exclusions.with_prefix(state_prefix)


def _load_previous(tree: DirTree, store: StateStore, location: Path, config: BitrotConfig) -> bool:
    """Feed the stored state for tree.root into tree. Returns True on first run."""
    stream = store.open_for_read(location)
    if stream is None:
        logger.info("No previous state for %s, all files will be reported as new", tree.root)
        return True

    with stream:
        try:
            tree.load(stream, source=str(location))
        except DecodeError:
            if config.decode_error != "reset":
                raise
            logger.warning(
                "Discarding undecodable state %s (decode_error: reset)", location
            )
            return True
    return False


def run_check(
    root: Path,
    store: StateStore,
    config: Optional[BitrotConfig] = None,
    exclude: Iterable[str] = (),
    ignore: Iterable[str] = (),
    dry_run: bool = False,
    reset: bool = False,
) -> CheckResult:
    """Execute one check of root: load previous state, scan, compare, save.

    Args:
        root: Absolute root directory
        store: State store bound to a resolved state directory
        config: Settings (defaults if None)
        exclude: Extra exclusion prefixes for this run
        ignore: Extra gitignore-style patterns for this run
        dry_run: Report only, do not write state
        reset: Discard the stored state first and start over

    Returns:
        CheckResult with the classified diff

    Raises:
        InvalidRootError: Root is not an existing directory
        StateDirError: State directory unusable
        DecodeError: Stored state is corrupt (unless decode_error is "reset")
        StateWriteError: New state could not be written
    """
    if config is None:
        config = BitrotConfig()

    root = validate_root(root)
    store.ensure_dir()
    exclusions = build_exclusions(root, store, config, exclude, ignore)
    location = store.locate(root)

    state_reset = False
    if reset and not dry_run:
        state_reset = store.forget(root)

    tree = DirTree(root, exclusions)
    if reset:
        first_run = True
    else:
        first_run = _load_previous(tree, store, location, config)

    diff = tree.compare()

    saved = False
    if not dry_run:
        with store.open_for_write(location) as out:
            tree.save(out)
        saved = True
        logger.debug("Saved %d entries to %s", len(tree.state), location)

    return CheckResult(
        root=root,
        state_path=location,
        diff=diff,
        scan=tree.last_scan,
        first_run=first_run,
        saved=saved,
        state_reset=state_reset,
    )

