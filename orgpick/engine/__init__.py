"""Ranking engine: scoring, scoping, ranking and grouping of outline records."""

from .algorithms import EntryRanker, Order
from .grouping import GroupAggregator
from .models import Candidate, Group, Record, TemporalInfo, TodoState
from .pipeline import CandidatePipeline
from .scope import PathScopeResolver, ScopeSession

__all__ = [
    "Candidate", "CandidatePipeline", "EntryRanker", "Group", "GroupAggregator",
    "Order", "PathScopeResolver", "Record", "ScopeSession", "TemporalInfo", "TodoState",
]
