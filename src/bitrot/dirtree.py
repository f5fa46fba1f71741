"""Directory tree model: load, scan, compare and save one root."""

import logging
from pathlib import Path
from typing import BinaryIO, Optional

from .codec import decode_state, encode_state
from .core import ChangeType, DiffResult, ScanResult, TreeState
from .diffing import compute_diff
from .errors import StateLifecycleError
from .ignore import ExclusionSet
from .snapshot import scan_tree

logger = logging.getLogger(__name__)


class DirTree:
    """
    Fingerprint state of one root directory across two runs.

    Holds the state loaded from the previous run and the state produced by
    this run's scan. A DirTree is used once:

        tree = DirTree(root, exclusions)
        tree.load(stream)      # optional; skipped on first run
        diff = tree.compare()  # scan + reconcile + report
        tree.save(stream)      # persists the current state

    After compare() the loaded state is replaced by the current one.
    """

    def __init__(self, root: Path, exclusions: Optional[ExclusionSet] = None):
        self.root = Path(root)
        self.exclusions = exclusions or ExclusionSet()
        self.loaded = TreeState(root=str(self.root))
        self.current: Optional[TreeState] = None
        self.last_scan: Optional[ScanResult] = None
        self._loaded_once = False

    @property
    def compared(self) -> bool:
        return self.current is not None

    @property
    def state(self) -> TreeState:
        """The state save() would write: current after compare, loaded before."""
        return self.current if self.current is not None else self.loaded

    def load(self, stream: BinaryIO, source: Optional[str] = None) -> TreeState:
        """Populate the loaded state from a stream produced by save().

        Raises:
            DecodeError: If the stream is empty, truncated, or invalid
            StateLifecycleError: If called twice or after compare()
        """
        if self.compared or self._loaded_once:
            raise StateLifecycleError("load() must be called once, before compare()")

        state = decode_state(stream.read(), source)
        if state.root and state.root != str(self.root):
            logger.warning(
                "State was recorded for %s, comparing against %s", state.root, self.root
            )
            state.root = str(self.root)

        self.loaded = state
        self._loaded_once = True
        logger.debug("Loaded %d entries from previous run", len(state))
        return state

    def scan(self) -> ScanResult:
        """Traverse the root once and build the current state.

        Raises:
            InvalidRootError: If the root cannot be scanned
            StateLifecycleError: If the root was already scanned
        """
        if self.compared:
            raise StateLifecycleError("root was already scanned")
        result = scan_tree(self.root, self.exclusions)
        self.current = result.state
        self.last_scan = result
        return result

    def compare(self) -> DiffResult:
        """Scan the root, reconcile against the loaded state and log the report.

        Every ADDED and REMOVED path is logged at INFO, every CHANGED path at
        WARNING. A REMOVED path that was unreadable this scan is logged at
        WARNING instead. The current state then becomes the state to persist.
        """
        self.scan()
        diff = compute_diff(self.loaded, self.current)
        self._report(diff)
        self.loaded = self.current
        return diff

    def _report(self, diff: DiffResult) -> None:
        for change in diff.changes:
            if change.change_type == ChangeType.ADDED:
                logger.info("New file: %s", change.path)
            elif change.change_type == ChangeType.REMOVED:
                if self.last_scan.was_skipped(change.path):
                    # Still on disk but unreadable; its old fingerprint is not carried over
                    logger.warning("Unreadable, baseline dropped: %s", change.path)
                else:
                    logger.info("Removed file: %s", change.path)
            elif change.change_type == ChangeType.CHANGED:
                hint = "" if change.mtime_changed else " (modification time unchanged)"
                logger.warning(
                    "Checksum changed: %s%s: %s -> %s",
                    change.path, hint, change.previous.digest, change.current.digest,
                )
            else:
                logger.debug("Unchanged: %s", change.path)

    def save(self, stream: BinaryIO) -> None:
        """Encode the current state (or the loaded one, before compare) to stream."""
        stream.write(encode_state(self.state))
