"""Clustering of records by a derived key with merged temporal summaries."""

import math
from typing import Callable, Dict, Iterable, List, Optional

from loguru import logger

from .models import UNGROUPED, Group, Record
from .temporal import merge_all

KeyFn = Callable[[Record], Optional[str]]

SORT_KEYS = ("frecency", "none")


class GroupAggregator:
    """Partitions records into groups and orders the groups."""

    @staticmethod
    def group(records: Iterable[Record], key_of: KeyFn) -> List[Group]:
        """
        Partition ``records`` by ``key_of``.

        Groups come out in the order their first member was seen; records
        without a key share the UNGROUPED bucket.
        """
        buckets: Dict[str, List[Record]] = {}
        for record in records:
            key = key_of(record)
            if key is None:
                key = UNGROUPED
            buckets.setdefault(key, []).append(record.with_group_key(key))

        groups = [
            Group(
                key=key,
                members=tuple(members),
                aggregate=merge_all(m.temporal for m in members),
            )
            for key, members in buckets.items()
        ]
        logger.debug(f"Grouped records into {len(groups)} groups")
        return groups

    @staticmethod
    def sort_groups(groups: Iterable[Group], key: Optional[str] = "frecency") -> List[Group]:
        """Order groups by aggregate frecency (descending) or keep them as is."""
        groups = list(groups)
        if key is None or key == "none":
            return groups
        if key != "frecency":
            raise ValueError(f"Unknown group sort key: {key}")

        def score(group: Group) -> float:
            value = group.frecency
            return -math.inf if value is None else value

        return sorted(groups, key=score, reverse=True)
