"""Core data models for bitrot.

A TreeState is the set of content fingerprints for one root at one point in
time. Each run produces a fresh TreeState by scanning the root and reconciles
it against the TreeState persisted by the previous run:

1. Loaded state: decoded from the state file (empty on the first run)
2. Current state: computed by a full scan, every file re-read
3. Diff: every path in either state is classified exactly once

After the diff the current state replaces the loaded one. Only a single
generation is kept.
"""

from enum import Enum
from pathlib import PurePosixPath
from typing import Dict, Iterator, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# ============= File Entries =============

class TreeEntry(BaseModel):
    """Fingerprint of a single file, relative to the scanned root.

    size and mtime are recorded as hints for the report only. They are never
    used to decide whether a file must be re-read.
    """

    path: str  # POSIX, root-relative
    digest: str  # sha256:...
    size: int = Field(ge=0)
    mtime: float = 0.0

    @field_validator("path")
    @classmethod
    def _check_relative(cls, value: str) -> str:
        p = PurePosixPath(value)
        if not value or value in (".", "/") or p.is_absolute():
            raise ValueError(f"path must be root-relative, got {value!r}")
        if ".." in p.parts:
            raise ValueError(f"path must not escape the root, got {value!r}")
        if p.as_posix() != value:
            raise ValueError(f"path is not normalized, got {value!r}")
        return value


# ============= Tree State =============

class TreeState(BaseModel):
    """All file fingerprints for one root.

    Entries are keyed by their root-relative path; at most one entry per path.
    """

    root: str = ""
    entries: Dict[str, TreeEntry] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_keys(self) -> "TreeState":
        for key, entry in self.entries.items():
            if key != entry.path:
                raise ValueError(f"entry key {key!r} does not match entry path {entry.path!r}")
        return self

    def add(self, entry: TreeEntry) -> None:
        """Add or replace the entry for entry.path."""
        self.entries[entry.path] = entry

    @property
    def paths(self) -> List[str]:
        """Sorted list of all paths in this state."""
        return sorted(self.entries)

    def digests(self) -> Dict[str, str]:
        """Map of path -> digest."""
        return {path: entry.digest for path, entry in self.entries.items()}

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, path: object) -> bool:
        return path in self.entries

    def iter_sorted(self) -> Iterator[TreeEntry]:
        for path in sorted(self.entries):
            yield self.entries[path]


class ScanResult(BaseModel):
    """Outcome of a single traversal of a root."""

    state: TreeState
    skipped: List[str] = Field(default_factory=list)  # unreadable, omitted from state
    files_hashed: int = 0
    bytes_hashed: int = 0

    def was_skipped(self, path: str) -> bool:
        """True if path, or a directory above it, could not be read this scan."""
        if path in self.skipped:
            return True
        return any(s.endswith("/") and path.startswith(s) for s in self.skipped)


# ============= Change Detection =============

class ChangeType(str, Enum):
    """Classification of a path after reconciliation."""

    UNCHANGED = "unchanged"
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"


class FileChange(BaseModel):
    """Single path classification."""

    path: str
    change_type: ChangeType
    previous: Optional[TreeEntry] = None
    current: Optional[TreeEntry] = None

    @property
    def mtime_changed(self) -> bool:
        """Hint only: True when both entries exist and their mtimes differ.

        A CHANGED file whose mtime did not move is the classic bitrot
        signature, but classification never depends on this.
        """
        if self.previous is None or self.current is None:
            return False
        return self.previous.mtime != self.current.mtime


class DiffResult(BaseModel):
    """Result of reconciling the loaded and current states."""

    changes: List[FileChange]

    @property
    def summary(self) -> Dict[ChangeType, int]:
        """Get summary counts by change type."""
        counts = {change_type: 0 for change_type in ChangeType}
        for change in self.changes:
            counts[change.change_type] += 1
        return counts

    def _paths(self, change_type: ChangeType) -> List[str]:
        return [c.path for c in self.changes if c.change_type == change_type]

    @property
    def added(self) -> List[str]:
        return self._paths(ChangeType.ADDED)

    @property
    def removed(self) -> List[str]:
        return self._paths(ChangeType.REMOVED)

    @property
    def changed(self) -> List[str]:
        return self._paths(ChangeType.CHANGED)

    @property
    def unchanged(self) -> List[str]:
        return self._paths(ChangeType.UNCHANGED)

    @property
    def has_changes(self) -> bool:
        """True when anything other than UNCHANGED was found."""
        return any(c.change_type != ChangeType.UNCHANGED for c in self.changes)

    @property
    def has_corruption_candidates(self) -> bool:
        return any(c.change_type == ChangeType.CHANGED for c in self.changes)
