"""Frecency scoring over timestamp histories.

A record's history is the list of moments it was touched (clocked, noted,
closed). Each visit is weighted by its age bucket and the weights are summed,
so the score grows with both frequency and recency:

    frecency = sum(weight(now - visit) for visit in history)

Weights are integers, which keeps ``merge`` exactly associative and
commutative over floats.
"""

from datetime import datetime, timedelta
from functools import reduce
from typing import Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from .models import TemporalInfo

# (max_age_days, weight), checked in order
DEFAULT_BUCKETS: Tuple[Tuple[float, int], ...] = (
    (4, 100),
    (14, 70),
    (31, 50),
    (90, 30),
)
DEFAULT_WEIGHT = 10

EMPTY = TemporalInfo()


def now() -> datetime:
    """Current local time, naive like outline timestamps."""
    return datetime.now()


def midnight_in_n_days(n: int, current: Optional[datetime] = None) -> datetime:
    """Start of the day ``n`` days after ``current``."""
    if current is None:
        current = now()
    day = current.replace(hour=0, minute=0, second=0, microsecond=0)
    return day + timedelta(days=n)


def merge(a: TemporalInfo, b: TemporalInfo) -> TemporalInfo:
    return a.merge(b)


def merge_all(infos: Iterable[Optional[TemporalInfo]]) -> TemporalInfo:
    """Fold summaries with ``merge``; missing ones are skipped."""
    return reduce(merge, (info for info in infos if info is not None), EMPTY)


def frecency(info: Optional[TemporalInfo]) -> Optional[float]:
    if info is None:
        return None
    return info.frecency


def last_instant(info: Optional[TemporalInfo]) -> Optional[datetime]:
    if info is None:
        return None
    return info.last_instant


class FrecencyScorer:
    """Turns visit histories into TemporalInfo relative to a fixed instant."""

    def __init__(
        self,
        current: Optional[datetime] = None,
        buckets: Sequence[Tuple[float, int]] = DEFAULT_BUCKETS,
        default_weight: int = DEFAULT_WEIGHT
    ):
        self.now = current if current is not None else now()
        self.buckets = sorted(buckets, key=lambda b: b[0])
        self.default_weight = default_weight

    def weight(self, visit: datetime) -> int:
        """Weight of one visit; visits in the future count as fresh."""
        age_days = max(0.0, (self.now - visit).total_seconds() / 86400)
        for max_age, weight in self.buckets:
            if age_days <= max_age:
                return weight
        return self.default_weight

    def scan(self, history: Iterable[Optional[datetime]]) -> TemporalInfo:
        """Summarize a history; unparsed (None) entries are ignored."""
        visits: List[datetime] = [v for v in history if v is not None]
        if not visits:
            return EMPTY

        return TemporalInfo(
            last_instant=max(visits),
            frecency=float(sum(self.weight(v) for v in visits)),
            visits=len(visits),
        )

    def midnight_in_n_days(self, n: int) -> datetime:
        return midnight_in_n_days(n, self.now)

    @classmethod
    def from_config(cls, config, current: Optional[datetime] = None) -> "FrecencyScorer":
        buckets = [(b.max_age_days, b.weight) for b in config.buckets]
        logger.debug(f"Frecency buckets: {buckets}, default {config.default_weight}")
        return cls(current, buckets=buckets, default_weight=config.default_weight)
