"""Tests for diffing logic and edge cases."""

import itertools
import pytest

from bitrot.core import ChangeType, DiffResult, FileChange, TreeEntry, TreeState
from bitrot.diffing import compute_diff


PATHS = ["a", "b", "c"]
# Per path: absent, digest "x", or digest "y"
OPTIONS = [None, "x", "y"]


def make_state(digests, mtime=0.0):
    """Build a TreeState from a {path: digest} map."""
    state = TreeState(root="/r")
    for path, digest in digests.items():
        state.add(TreeEntry(path=path, digest=digest, size=len(digest), mtime=mtime))
    return state


class TestDiffingLogic:
    """Test the core reconciliation logic."""

    def test_all_four_classes(self):
        loaded = make_state({"same.txt": "d1", "edited.txt": "d2", "gone.txt": "d3"})
        current = make_state({"same.txt": "d1", "edited.txt": "d2x", "new.txt": "d4"})

        diff = compute_diff(loaded, current)

        by_path = {c.path: c.change_type for c in diff.changes}
        assert by_path == {
            "same.txt": ChangeType.UNCHANGED,
            "edited.txt": ChangeType.CHANGED,
            "gone.txt": ChangeType.REMOVED,
            "new.txt": ChangeType.ADDED,
        }

    def test_changes_ordered_by_path(self):
        loaded = make_state({"b": "1", "d": "2"})
        current = make_state({"a": "1", "c": "2", "d": "3"})

        diff = compute_diff(loaded, current)

        assert [c.path for c in diff.changes] == ["a", "b", "c", "d"]

    def test_change_carries_both_entries(self):
        loaded = make_state({"a.txt": "old"})
        current = make_state({"a.txt": "new"})

        change = compute_diff(loaded, current).changes[0]

        assert change.previous.digest == "old"
        assert change.current.digest == "new"

    def test_mtime_does_not_affect_classification(self):
        """Same mtime but different digest is still CHANGED; mtime alone is not."""
        loaded = make_state({"a.txt": "d1", "b.txt": "d2"}, mtime=100.0)
        current = make_state({"a.txt": "d1-corrupt", "b.txt": "d2"}, mtime=200.0)
        current.entries["a.txt"].mtime = 100.0

        diff = compute_diff(loaded, current)

        assert diff.changed == ["a.txt"]
        assert diff.unchanged == ["b.txt"]
        assert not diff.changes[0].mtime_changed

    def test_first_run_everything_added(self):
        current = make_state({"a": "1", "b": "2", "c/d": "3"})

        diff = compute_diff(TreeState(), current)

        assert diff.added == ["a", "b", "c/d"]
        assert diff.removed == diff.changed == diff.unchanged == []

    def test_empty_current_everything_removed(self):
        loaded = make_state({"a": "1", "b": "2"})

        diff = compute_diff(loaded, TreeState())

        assert diff.removed == ["a", "b"]
        assert diff.added == []

    def test_both_empty(self):
        diff = compute_diff(TreeState(), TreeState())
        assert diff.changes == []
        assert not diff.has_changes


class TestClassificationCompleteness:
    """Every path in the union lands in exactly one category."""

    @pytest.mark.parametrize(
        "loaded_digests,current_digests",
        [
            (dict(zip(PATHS, lo)), dict(zip(PATHS, cu)))
            for lo, cu in itertools.product(
                itertools.product(OPTIONS, repeat=3), [("x", None, "y"), (None, "x", "x")]
            )
        ],
    )
    def test_partition(self, loaded_digests, current_digests):
        loaded = make_state({p: d for p, d in loaded_digests.items() if d})
        current = make_state({p: d for p, d in current_digests.items() if d})

        diff = compute_diff(loaded, current)

        groups = [set(diff.added), set(diff.removed), set(diff.unchanged), set(diff.changed)]
        union = set(loaded.entries) | set(current.entries)
        assert set().union(*groups) == union
        assert sum(len(g) for g in groups) == len(union)
        assert len(diff.changes) == len(union)


class TestDiffResult:
    """Test DiffResult helpers."""

    def test_summary_counts_every_type(self):
        diff = DiffResult(changes=[
            FileChange(path="a", change_type=ChangeType.ADDED),
            FileChange(path="b", change_type=ChangeType.ADDED),
            FileChange(path="c", change_type=ChangeType.UNCHANGED),
        ])

        assert diff.summary == {
            ChangeType.UNCHANGED: 1,
            ChangeType.ADDED: 2,
            ChangeType.REMOVED: 0,
            ChangeType.CHANGED: 0,
        }
        assert diff.has_changes
        assert not diff.has_corruption_candidates

    def test_unchanged_only_has_no_changes(self):
        diff = DiffResult(changes=[FileChange(path="a", change_type=ChangeType.UNCHANGED)])
        assert not diff.has_changes

    def test_mtime_changed_needs_both_entries(self):
        entry = TreeEntry(path="a", digest="d", size=1, mtime=1.0)
        assert not FileChange(path="a", change_type=ChangeType.ADDED, current=entry).mtime_changed
