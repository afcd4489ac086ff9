"""Candidate pipeline: query results in, ordered chooser candidates out.

Each call is a fresh pass over the source. Nothing is cached between calls
and the only ambient input is the clock, read once per pass, so a result
that has been superseded by newer input can simply be discarded.

Modes:
- flat: every match, ranked with the entry comparator
- scoped: matches under a session's project roots, relabelled relative
  to their root, ranked with the entry comparator
- grouped: matches clustered by a derived key, one candidate per group
"""

from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence, Union

from loguru import logger

from . import temporal
from .algorithms import Comparator, EntryRanker, build_comparator, sort_records
from .config import Config
from .grouping import GroupAggregator, KeyFn
from .models import Candidate, Group, Record
from .outline import everything
from .scope import PathScopeResolver, ScopeSession

ELLIPSIS = "…"


def truncate_left(text: str, width: Optional[int]) -> str:
    """Shorten ``text`` to ``width`` characters, keeping its tail."""
    if width is None or len(text) <= width:
        return text
    if width <= 1:
        return ELLIPSIS[:width]
    return ELLIPSIS + text[-(width - 1):]


def record_label(record: Record, width: Optional[int] = None) -> str:
    path = record.local_path if record.local_path is not None else record.full_path
    if not path:
        path = (record.title,)
    prefix = f"{record.todo_keyword} " if record.todo_keyword else ""
    body_width = None if width is None else max(1, width - len(prefix))
    return prefix + truncate_left("/".join(path), body_width)


def group_label(group: Group, width: Optional[int] = None) -> str:
    suffix = f" ({len(group)})"
    key_width = None if width is None else max(1, width - len(suffix))
    return truncate_left(group.key, key_width) + suffix


class CandidatePipeline:
    """Runs query results through scoring, scoping and ranking."""

    def __init__(
        self,
        source,
        config: Optional[Config] = None,
        clock: Callable[[], datetime] = temporal.now,
        comparator: Union[str, Comparator, None] = None
    ):
        """
        Args:
            source: Record source providing ``select(predicate, under=None)``,
                ``history(ref)`` and ``project_roots()``
            config: Ranking, grouping and display settings
            clock: Returns the instant a pass is evaluated at
            comparator: Registered comparator name or a callable overriding
                the configured one
        """
        self.source = source
        self.config = config or Config()
        self.clock = clock
        self.comparator = comparator

    def ranker(self, current: datetime) -> EntryRanker:
        ranking = self.config.ranking
        cutoff = None
        if ranking.snooze_horizon_days is not None:
            cutoff = temporal.midnight_in_n_days(ranking.snooze_horizon_days, current)
        return EntryRanker(threshold=ranking.threshold_frecency, cutoff=cutoff)

    def _comparator(self, ranker: EntryRanker) -> Comparator:
        choice = self.comparator if self.comparator is not None else self.config.ranking.comparator
        if callable(choice):
            return choice
        return build_comparator(choice, ranker)

    def score(self, records: Iterable[Record], current: datetime) -> List[Record]:
        """Attach a TemporalInfo to every record."""
        scorer = temporal.FrecencyScorer.from_config(self.config.frecency, current)
        return [r.with_temporal(scorer.scan(self.source.history(r.location_ref))) for r in records]

    def rank(
        self,
        records: Iterable[Record],
        current: Optional[datetime] = None,
        ranker: Optional[EntryRanker] = None
    ) -> List[Record]:
        """Score and stable-sort records."""
        current = current if current is not None else self.clock()
        if ranker is None:
            ranker = self.ranker(current)
        return sort_records(self.score(records, current), self._comparator(ranker))

    def _emit(self, records: List[Record], ranker: EntryRanker, width: Optional[int]) -> List[Candidate]:
        dim_blocked = self.config.display.dim_blocked
        return [
            Candidate(
                label=record_label(record, width),
                ref=record.location_ref,
                metadata={
                    'todo': record.todo_keyword,
                    'urgency': ranker.urgency(record),
                    'frecency': record.frecency,
                    'dim': dim_blocked and record.blocked,
                },
            )
            for record in records
        ]

    def flat(self, predicate=everything) -> List[Candidate]:
        """Every matching record, ranked."""
        current = self.clock()
        ranker = self.ranker(current)
        records = list(self.source.select(predicate))
        logger.debug(f"Flat query matched {len(records)} records")
        ranked = self.rank(records, current, ranker)
        return self._emit(ranked, ranker, self.config.display.width)

    def session_for(self, anchor: Sequence[str], width: Optional[int] = None) -> ScopeSession:
        """Session scoped to the project root containing ``anchor``.

        Raises:
            NoRootError: if the anchor lies under no project root.
        """
        return ScopeSession.anchored(anchor, self.source.project_roots(), width)

    def all_projects_session(self, width: Optional[int] = None) -> ScopeSession:
        return ScopeSession.create(self.source.project_roots(), width)

    def scoped(self, predicate, session: ScopeSession) -> List[Candidate]:
        """Matching records under the session's roots, relabelled and ranked."""
        current = self.clock()
        ranker = self.ranker(current)
        resolver = PathScopeResolver.for_session(session)
        records = list(resolver.filter(self.source.select(predicate, under=session.roots)))
        logger.debug(f"Scoped query matched {len(records)} records under {len(session.roots)} roots")
        ranked = self.rank(records, current, ranker)
        width = session.width if session.width is not None else self.config.display.width
        return self._emit(ranked, ranker, width)

    def groups(self, predicate, key_of: KeyFn, sort: Optional[str] = None) -> List[Group]:
        current = self.clock()
        records = self.score(self.source.select(predicate), current)
        groups = GroupAggregator.group(records, key_of)
        return GroupAggregator.sort_groups(groups, sort or self.config.grouping.sort)

    def grouped(self, predicate, key_of: KeyFn, sort: Optional[str] = None) -> List[Candidate]:
        """One candidate per group of matching records."""
        width = self.config.display.width
        return [
            Candidate(
                label=group_label(group, width),
                ref=group,
                metadata={
                    'count': len(group),
                    'frecency': group.frecency,
                    'last_instant': group.aggregate.last_instant,
                },
            )
            for group in self.groups(predicate, key_of, sort)
        ]
