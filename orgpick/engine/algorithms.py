"""Ranking of matched records for the chooser.

Two relevance signals are combined:

1. Urgency: the scheduled (or else deadline) instant of a record that is not
   done and not snoozed past the horizon cutoff. Whenever either side of a
   comparison has urgency, this tier alone decides.
2. Frecency: consulted only when neither side is urgent. Only a clear win
   reorders: crossing the threshold while the other side does not, or both
   above it with a strictly higher score.

The result is a partial order. Pairs the comparator cannot separate keep the
order the query engine produced them in, so sorting must be stable.
"""

import math
from datetime import datetime
from enum import Enum
from functools import cmp_to_key
from typing import Callable, Dict, Iterable, List, Optional

from loguru import logger

from .errors import UnknownComparatorError
from .models import Record, TodoState


class Order(Enum):
    """Outcome of comparing two records."""
    BEFORE = -1
    UNORDERED = 0
    AFTER = 1


Comparator = Callable[[Record, Record], Order]

DEFAULT_THRESHOLD = 50.0


class EntryRanker:
    """Two-tier comparator: urgency first, then frecency."""

    def __init__(
        self,
        threshold: float = DEFAULT_THRESHOLD,
        cutoff: Optional[datetime] = None
    ):
        """
        Args:
            threshold: Frecency a record must reach to win on frecency
            cutoff: Urgent instants at or after this are snoozed; None disables
        """
        self.threshold = threshold
        self.cutoff = cutoff

    def urgency(self, record: Record) -> Optional[datetime]:
        """Instant that makes ``record`` urgent, if any."""
        if record.todo_state == TodoState.DONE:
            return None
        instant = record.scheduled or record.deadline
        if instant is None:
            return None
        if self.cutoff is not None and not instant < self.cutoff:
            return None
        return instant

    def compare_urgency(self, a: Record, b: Record) -> Optional[Order]:
        """Urgency verdict, or None when neither side is urgent."""
        ua = self.urgency(a)
        ub = self.urgency(b)
        if ua is not None and ub is not None:
            return Order.BEFORE if ua < ub else Order.AFTER
        if ua is not None:
            return Order.BEFORE
        if ub is not None:
            return Order.AFTER
        return None

    def _wins_on_frecency(self, fa: float, fb: float) -> bool:
        if fa < self.threshold:
            return False
        return fb < self.threshold or fa > fb

    def compare_frecency(self, a: Record, b: Record) -> Order:
        fa = _score(a)
        fb = _score(b)
        if self._wins_on_frecency(fa, fb):
            return Order.BEFORE
        if self._wins_on_frecency(fb, fa):
            return Order.AFTER
        return Order.UNORDERED

    def compare(self, a: Record, b: Record) -> Order:
        verdict = self.compare_urgency(a, b)
        if verdict is not None:
            return verdict
        return self.compare_frecency(a, b)

    __call__ = compare

    def is_before(self, a: Record, b: Record) -> bool:
        return self.compare(a, b) is Order.BEFORE


def _score(record: Record) -> float:
    # Absent scores sort below everything, including zero.
    score = record.frecency
    return -math.inf if score is None else score


def urgency_only(ranker: EntryRanker) -> Comparator:
    def compare(a: Record, b: Record) -> Order:
        verdict = ranker.compare_urgency(a, b)
        return Order.UNORDERED if verdict is None else verdict
    return compare


def frecency_only(ranker: EntryRanker) -> Comparator:
    return ranker.compare_frecency


def arrival(ranker: EntryRanker) -> Comparator:
    return lambda a, b: Order.UNORDERED


COMPARATORS: Dict[str, Callable[[EntryRanker], Comparator]] = {
    "two-tier": lambda ranker: ranker.compare,
    "urgency": urgency_only,
    "frecency": frecency_only,
    "arrival": arrival,
}


def build_comparator(name: str, ranker: EntryRanker) -> Comparator:
    """Look up a registered comparator and bind it to ``ranker``."""
    try:
        factory = COMPARATORS[name]
    except KeyError:
        raise UnknownComparatorError(name, COMPARATORS) from None
    return factory(ranker)


def sort_records(records: Iterable[Record], comparator: Comparator) -> List[Record]:
    """Stable sort; only a BEFORE verdict moves a record ahead of another."""
    items = list(records)
    items.sort(key=cmp_to_key(lambda a, b: comparator(a, b).value))
    logger.debug(f"Ranked {len(items)} records")
    return items
