"""Tests for project scope resolution."""

import pytest

from orgpick.engine.errors import NoRootError
from orgpick.engine.models import Record, TodoState
from orgpick.engine.scope import PathScopeResolver, ScopeSession, local_path


def record(*path):
    return Record(full_path=tuple(path), todo_state=TodoState.OPEN, location_ref="/".join(path))


class TestPathScopeResolver:
    """Prefix matching and local path computation."""

    def test_top_level_root_is_dropped(self):
        resolver = PathScopeResolver([["proj"]])

        assert resolver.resolve(["proj", "taskA", "sub"]) == ("taskA", "sub")

    def test_nested_root_keeps_its_own_segment(self):
        resolver = PathScopeResolver([["work", "proj"]])

        assert resolver.resolve(["work", "proj", "taskA"]) == ("proj", "taskA")

    def test_non_matching_path_is_excluded(self):
        resolver = PathScopeResolver([["proj"]])

        assert resolver.resolve(["other", "x"]) is None

    def test_shorter_path_never_matches(self):
        resolver = PathScopeResolver([["work", "proj", "deep"]])

        assert resolver.resolve(["work", "proj"]) is None

    def test_segments_compare_whole(self):
        resolver = PathScopeResolver([["pro"]])

        assert resolver.resolve(["proj", "task"]) is None

    def test_root_heading_itself(self):
        resolver = PathScopeResolver([["proj"]])

        assert resolver.resolve(["proj"]) == ()

    def test_longest_root_wins(self):
        resolver = PathScopeResolver([["work"], ["work", "proj"]])

        assert resolver.root_for(["work", "proj", "t"]) == ("work", "proj")
        assert resolver.resolve(["work", "proj", "t"]) == ("proj", "t")
        assert resolver.resolve(["work", "misc"]) == ("misc",)

    def test_filter_drops_and_relabels(self):
        resolver = PathScopeResolver([["proj"]])
        records = [record("proj", "a"), record("other", "b"), record("proj", "c", "d")]

        kept = list(resolver.filter(records))

        assert [r.local_path for r in kept] == [("a",), ("c", "d")]
        assert [r.full_path for r in kept] == [("proj", "a"), ("proj", "c", "d")]
        # inputs are untouched
        assert records[0].local_path is None

    def test_empty_root_set_excludes_everything(self):
        resolver = PathScopeResolver([])

        assert list(resolver.filter([record("proj", "a")])) == []


class TestScopeSession:
    """Session construction and anchoring."""

    def test_create_deduplicates_and_orders(self):
        session = ScopeSession.create([["a"], ["a", "b"], ["a"]], width=40)

        assert session.roots == (("a", "b"), ("a",))
        assert session.width == 40

    def test_anchored_picks_containing_root(self):
        session = ScopeSession.anchored(
            ["work", "site", "fix header"],
            [["home"], ["work", "site"]],
        )

        assert session.roots == (("work", "site"),)

    def test_anchored_without_root_fails(self):
        with pytest.raises(NoRootError, match="cannot find a root"):
            ScopeSession.anchored(["misc", "note"], [["work"]])

    def test_anchored_with_no_roots_fails(self):
        with pytest.raises(NoRootError):
            ScopeSession.anchored(["work"], [])


@pytest.mark.parametrize("full_path,root,expected", [
    (("p", "a", "b"), ("p",), ("a", "b")),
    (("w", "p", "a"), ("w", "p"), ("p", "a")),
    (("x", "y", "z", "a"), ("x", "y", "z"), ("z", "a")),
])
def test_local_path_rule(full_path, root, expected):
    """drop(max(1, n - 1)) leading segments."""
    assert local_path(full_path, root) == expected
