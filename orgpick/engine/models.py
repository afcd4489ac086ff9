"""Data models for the orgpick ranking engine."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

# Handle owned by the document side; the engine only carries it through.
LocationRef = Any

# Bucket for records whose group key cannot be derived.
UNGROUPED = "<ungrouped>"


class TodoState(Enum):
    """Actionability of a record."""
    OPEN = "open"
    DONE = "done"
    OTHER = "other"


@dataclass(frozen=True)
class TemporalInfo:
    """Summary of a record's timestamp history."""
    last_instant: Optional[datetime] = None
    frecency: Optional[float] = None  # None when no score could be computed
    visits: int = 0

    def merge(self, other: "TemporalInfo") -> "TemporalInfo":
        """Combine two summaries into one describing their union."""
        if self.last_instant is None:
            last = other.last_instant
        elif other.last_instant is None:
            last = self.last_instant
        else:
            last = max(self.last_instant, other.last_instant)

        if self.frecency is None:
            score = other.frecency
        elif other.frecency is None:
            score = self.frecency
        else:
            score = self.frecency + other.frecency

        return TemporalInfo(
            last_instant=last,
            frecency=score,
            visits=self.visits + other.visits,
        )


@dataclass(frozen=True)
class Record:
    """One item matched by the query engine."""
    full_path: Tuple[str, ...]
    todo_state: TodoState
    location_ref: LocationRef
    scheduled: Optional[datetime] = None
    deadline: Optional[datetime] = None
    todo_keyword: Optional[str] = None
    blocked: bool = False
    temporal: Optional[TemporalInfo] = None
    group_key: Optional[str] = None
    local_path: Optional[Tuple[str, ...]] = None

    @property
    def title(self) -> str:
        return self.full_path[-1] if self.full_path else ""

    @property
    def frecency(self) -> Optional[float]:
        if self.temporal is None:
            return None
        return self.temporal.frecency

    def with_temporal(self, info: TemporalInfo) -> "Record":
        return replace(self, temporal=info)

    def with_local_path(self, local_path: Tuple[str, ...]) -> "Record":
        return replace(self, local_path=tuple(local_path))

    def with_group_key(self, key: Optional[str]) -> "Record":
        return replace(self, group_key=key)


@dataclass(frozen=True)
class Group:
    """Records sharing a derived key, with their merged temporal summary."""
    key: str
    members: Tuple[Record, ...]
    aggregate: TemporalInfo

    @property
    def frecency(self) -> Optional[float]:
        return self.aggregate.frecency

    def __len__(self) -> int:
        return len(self.members)


@dataclass
class Candidate:
    """A labelled entry handed to the chooser."""
    label: str
    ref: Any  # LocationRef for records, Group for groups
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = {'label': self.label}
        for key, value in self.metadata.items():
            data[key] = value.isoformat() if isinstance(value, datetime) else value
        return data
