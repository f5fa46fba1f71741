"""Diff computation logic - reconciles two tree states."""

from typing import List

from .core import ChangeType, DiffResult, FileChange, TreeState


def compute_diff(loaded: TreeState, current: TreeState) -> DiffResult:
    """
    Classify every path of the previous and current states.

    Args:
        loaded: State persisted by the previous run (empty on first run).
        current: State computed by this run's scan.

    Returns:
        DiffResult with exactly one FileChange per path in the union of both
        states, ordered by path.

    Note:
        Any digest mismatch is CHANGED. Modification time is not consulted:
        a legitimate edit and bitrot look identical at the digest level, and
        deciding between them is left to the operator.
    """
    changes: List[FileChange] = []

    for path in sorted(set(loaded.entries) | set(current.entries)):
        previous = loaded.entries.get(path)
        now = current.entries.get(path)

        if previous is not None and now is not None:
            if previous.digest == now.digest:
                change_type = ChangeType.UNCHANGED
            else:
                change_type = ChangeType.CHANGED
        elif now is not None:
            change_type = ChangeType.ADDED
        else:
            change_type = ChangeType.REMOVED

        changes.append(FileChange(
            path=path,
            change_type=change_type,
            previous=previous,
            current=now,
        ))

    return DiffResult(changes=changes)
