"""Exclusion matching for tree scans.

Two kinds of exclusion are supported:

- Path prefixes: a root-relative path is excluded if it equals a prefix or is
  nested under one. This is the primary mechanism.
- Gitignore-style patterns, compiled with pathspec, for things like ``*.tmp``
  or ``.DS_Store`` that occur anywhere in the tree.

Excluded directories are pruned: the scanner never lists their contents.
"""

from pathlib import Path, PurePosixPath
from typing import FrozenSet, Iterable, Optional, Union

from pathspec import PathSpec
from pathspec.patterns import GitWildMatchPattern


def normalize_prefix(prefix: Union[str, Path], root: Optional[Path] = None) -> str:
    """Normalize an exclusion prefix to a root-relative POSIX path.

    Absolute prefixes are made relative to ``root``.

    Raises:
        ValueError: If the prefix is empty, escapes the root, or is absolute
            and not under ``root``
    """
    p = Path(prefix)
    if p.is_absolute():
        if root is None:
            raise ValueError(f"Absolute exclusion {prefix} requires a root")
        try:
            p = p.relative_to(root)
        except ValueError:
            raise ValueError(f"Exclusion {prefix} is outside root {root}")

    parts = [part for part in PurePosixPath(p.as_posix()).parts if part not in ("", ".")]
    if ".." in parts:
        raise ValueError(f"Exclusion {prefix} must not contain '..'")
    if not parts:
        raise ValueError(f"Exclusion {prefix!s} would exclude the whole root")
    return "/".join(parts)


class ExclusionSet:
    """Set of normalized path prefixes plus optional gitignore-style patterns."""

    def __init__(self, prefixes: Iterable[str] = (), patterns: Iterable[str] = ()):
        """Initialize exclusions.

        Args:
            prefixes: Root-relative POSIX prefixes (already normalized)
            patterns: Gitignore-style patterns
        """
        self.prefixes: FrozenSet[str] = frozenset(prefixes)
        self.patterns = tuple(patterns)
        # Compile patterns once for efficiency
        self._spec = PathSpec.from_lines(GitWildMatchPattern, self.patterns) if self.patterns else None

    @classmethod
    def build(
        cls,
        root: Path,
        prefixes: Iterable[Union[str, Path]] = (),
        patterns: Iterable[str] = (),
    ) -> "ExclusionSet":
        """Create an exclusion set from user-supplied prefixes.

        Prefixes may be absolute (inside ``root``) or root-relative.
        """
        return cls((normalize_prefix(p, root) for p in prefixes), patterns)

    def with_prefix(self, prefix: str) -> "ExclusionSet":
        """Return a copy with one more (normalized) prefix."""
        return ExclusionSet(self.prefixes | {prefix}, self.patterns)

    def with_patterns(self, patterns: Iterable[str]) -> "ExclusionSet":
        """Return a copy with extra gitignore-style patterns appended."""
        return ExclusionSet(self.prefixes, (*self.patterns, *patterns))

    def matches_prefix(self, relpath: str) -> bool:
        """Check whether relpath equals or is nested under an excluded prefix."""
        if not self.prefixes:
            return False
        p = PurePosixPath(relpath)
        candidates = [p, *p.parents]
        return any(c.as_posix() in self.prefixes for c in candidates)

    def is_excluded(self, relpath: str) -> bool:
        """Check if a root-relative POSIX file path should be left out.

        Args:
            relpath: Root-relative path in POSIX format (forward slashes)

        Returns:
            True if the path is under an excluded prefix or matches a pattern
        """
        if self.matches_prefix(relpath):
            return True
        return bool(self._spec and self._spec.match_file(relpath))

    def should_traverse(self, dirpath: str) -> bool:
        """Check if a directory should be descended into during scanning.

        Args:
            dirpath: Root-relative directory path in POSIX format

        Returns:
            True if the directory should be traversed
        """
        dirpath = dirpath.rstrip("/")
        if self.matches_prefix(dirpath):
            return False
        # Trailing slash so directory-only patterns ("build/") match
        return not (self._spec and self._spec.match_file(dirpath + "/"))

    def __bool__(self) -> bool:
        return bool(self.prefixes or self.patterns)

    def __repr__(self) -> str:
        return f"ExclusionSet(prefixes={sorted(self.prefixes)!r}, patterns={list(self.patterns)!r})"
