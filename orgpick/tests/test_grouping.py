"""Tests for grouping records by derived keys."""

import itertools
import pytest
from datetime import datetime, timedelta

from orgpick.engine.grouping import GroupAggregator
from orgpick.engine.models import UNGROUPED, Record, TemporalInfo, TodoState

NOW = datetime(2026, 3, 10, 9, 30)


def record(ref, frecency=None, last=None, visits=1):
    info = None
    if frecency is not None or last is not None:
        info = TemporalInfo(last_instant=last, frecency=frecency, visits=visits)
    return Record(
        full_path=("notes", ref),
        todo_state=TodoState.OPEN,
        location_ref=ref,
        temporal=info,
    )


def key_of(rec):
    # refs look like "dir:name"
    head, sep, _ = rec.location_ref.partition(":")
    return head if sep else None


@pytest.fixture
def records():
    return [
        record("work:a", frecency=100.0, last=NOW),
        record("home:b", frecency=30.0, last=NOW - timedelta(days=40)),
        record("work:c", frecency=70.0, last=NOW - timedelta(days=6)),
        record("loose", frecency=10.0, last=NOW - timedelta(days=200)),
        record("home:d"),
    ]


class TestGroup:
    """Partitioning and aggregation."""

    def test_first_seen_order(self, records):
        groups = GroupAggregator.group(records, key_of)

        assert [g.key for g in groups] == ["work", "home", UNGROUPED]

    def test_members_keep_input_order(self, records):
        groups = GroupAggregator.group(records, key_of)
        work = groups[0]

        assert [m.location_ref for m in work.members] == ["work:a", "work:c"]
        assert all(m.group_key == "work" for m in work.members)

    def test_aggregate_merges_members(self, records):
        work = GroupAggregator.group(records, key_of)[0]

        assert work.aggregate.frecency == 170.0
        assert work.aggregate.last_instant == NOW
        assert work.aggregate.visits == 2
        assert len(work) == 2

    def test_missing_key_goes_to_ungrouped(self, records):
        groups = GroupAggregator.group(records, key_of)
        ungrouped = groups[-1]

        assert ungrouped.key == UNGROUPED
        assert [m.location_ref for m in ungrouped.members] == ["loose"]

    def test_members_without_temporal_info(self):
        groups = GroupAggregator.group([record("x:1"), record("x:2")], key_of)

        assert groups[0].frecency is None

    def test_empty_input(self):
        assert GroupAggregator.group([], key_of) == []

    def test_grouping_is_order_independent(self, records):
        def summary(groups):
            return {
                g.key: (frozenset(m.location_ref for m in g.members), g.aggregate)
                for g in groups
            }

        expected = summary(GroupAggregator.group(records, key_of))
        for permutation in itertools.permutations(records):
            assert summary(GroupAggregator.group(permutation, key_of)) == expected


class TestSortGroups:
    """Ordering of groups by aggregate frecency."""

    def test_sort_by_frecency_descending(self, records):
        groups = GroupAggregator.group(records, key_of)

        ordered = GroupAggregator.sort_groups(groups, "frecency")

        assert [g.key for g in ordered] == ["work", "home", UNGROUPED]

    def test_absent_frecency_sorts_last(self):
        groups = GroupAggregator.group(
            [record("a:1"), record("b:1", frecency=0.0, last=NOW)], key_of
        )

        ordered = GroupAggregator.sort_groups(groups, "frecency")

        assert [g.key for g in ordered] == ["b", "a"]

    def test_none_keeps_grouping_order(self):
        groups = GroupAggregator.group(
            [record("a:1", frecency=10.0, last=NOW), record("b:1", frecency=90.0, last=NOW)],
            key_of,
        )

        assert [g.key for g in GroupAggregator.sort_groups(groups, "none")] == ["a", "b"]
        assert [g.key for g in GroupAggregator.sort_groups(groups, None)] == ["a", "b"]

    def test_unknown_sort_key(self):
        with pytest.raises(ValueError):
            GroupAggregator.sort_groups([], "alphabetical")
