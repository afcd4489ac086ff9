"""Project scoping: rewrite outline paths relative to project roots."""

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Sequence, Tuple

from loguru import logger

from .errors import NoRootError
from .models import Record

RootPath = Tuple[str, ...]


def _normalize_roots(roots: Iterable[Sequence[str]]) -> Tuple[RootPath, ...]:
    # Longest roots first; ties keep the order they were given in.
    unique = []
    for root in roots:
        root = tuple(root)
        if root and root not in unique:
            unique.append(root)
    return tuple(sorted(unique, key=len, reverse=True))


def matches(full_path: Sequence[str], root: Sequence[str]) -> bool:
    """True when ``root`` is a segment-wise prefix of ``full_path``."""
    n = len(root)
    return len(full_path) >= n and tuple(full_path[:n]) == tuple(root)


def local_path(full_path: Sequence[str], root: Sequence[str]) -> Tuple[str, ...]:
    """Path of a record below ``root``, keeping the root's own segment
    as context once the root is nested deeper than the top level."""
    return tuple(full_path[max(1, len(root) - 1):])


@dataclass(frozen=True)
class ScopeSession:
    """Per-session context for scoped queries.

    Holds the immutable set of project roots and the label width used
    when rendering candidates.
    """
    roots: Tuple[RootPath, ...]
    width: Optional[int] = None

    @classmethod
    def create(cls, roots: Iterable[Sequence[str]], width: Optional[int] = None) -> "ScopeSession":
        return cls(roots=_normalize_roots(roots), width=width)

    @classmethod
    def anchored(
        cls,
        anchor: Sequence[str],
        roots: Iterable[Sequence[str]],
        width: Optional[int] = None
    ) -> "ScopeSession":
        """Session narrowed to the root that contains ``anchor``.

        Raises:
            NoRootError: if no root is a prefix of the anchor.
        """
        resolver = PathScopeResolver(_normalize_roots(roots))
        root = resolver.root_for(anchor)
        if root is None:
            logger.warning(f"No project root contains {'/'.join(anchor) or '<top>'}")
            raise NoRootError(anchor)
        return cls(roots=(root,), width=width)


class PathScopeResolver:
    """Finds the project root of a record and its root-relative path."""

    def __init__(self, roots: Iterable[Sequence[str]]):
        self.roots = _normalize_roots(roots)

    @classmethod
    def for_session(cls, session: ScopeSession) -> "PathScopeResolver":
        return cls(session.roots)

    def root_for(self, full_path: Sequence[str]) -> Optional[RootPath]:
        for root in self.roots:
            if matches(full_path, root):
                return root
        return None

    def resolve(self, full_path: Sequence[str]) -> Optional[Tuple[str, ...]]:
        """Local path of ``full_path``, or None when no root matches."""
        root = self.root_for(full_path)
        if root is None:
            return None
        return local_path(full_path, root)

    def filter(self, records: Iterable[Record]) -> Iterator[Record]:
        """Records under some root, with their local path attached.

        Records outside every root are dropped.
        """
        kept = dropped = 0
        for record in records:
            resolved = self.resolve(record.full_path)
            if resolved is None:
                dropped += 1
                continue
            kept += 1
            yield record.with_local_path(resolved)
        logger.debug(f"Scope filter kept {kept}, dropped {dropped}")
