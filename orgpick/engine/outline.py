"""Outline documents as a record source.

Reads Org-style outline files and answers queries with one Record per
matching heading. Visit history for frecency comes from the inactive
timestamps (``[2024-05-01 Wed 09:12]``) found in a heading's body: clock
entries, state-change notes and CLOSED stamps.
"""

import re
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from loguru import logger

from .models import Record, TodoState
from .scope import matches

HEADING_RE = re.compile(r'^(\*+)\s+(.*?)\s*$')
PRIORITY_RE = re.compile(r'^\[#[A-Za-z0-9]\]\s*')
TAGS_RE = re.compile(r'\s+(:(?:[\w@#%]+:)+)$')
SCHEDULED_RE = re.compile(r'SCHEDULED:\s*<([^>]+)>')
DEADLINE_RE = re.compile(r'DEADLINE:\s*<([^>]+)>')
INACTIVE_RE = re.compile(r'\[(\d{4}-\d{1,2}-\d{1,2}[^\]]*)\]')
TIMESTAMP_RE = re.compile(
    r'^\s*(\d{4})-(\d{1,2})-(\d{1,2})'
    r'(?:\s+[^\d\s]+\.?)?'  # weekday name
    r'(?:\s+(\d{1,2}):(\d{2}))?'
)

DEFAULT_TODO_KEYWORDS = ("TODO", "NEXT", "WAIT")
DEFAULT_DONE_KEYWORDS = ("DONE", "CANCELLED")


def parse_timestamp(text: str) -> Optional[datetime]:
    """Parse the date (and optional time) of an Org timestamp body.

    Returns None for anything that is not a valid calendar instant.
    """
    match = TIMESTAMP_RE.match(text)
    if not match:
        logger.debug(f"Unparsable timestamp: {text!r}")
        return None
    year, month, day, hour, minute = match.groups()
    try:
        return datetime(
            int(year), int(month), int(day),
            int(hour or 0), int(minute or 0)
        )
    except ValueError:
        logger.debug(f"Invalid timestamp: {text!r}")
        return None


@dataclass(frozen=True)
class OutlineMarker:
    """Location of a heading: file and 1-based line number."""
    path: Path
    line: int

    def __str__(self) -> str:
        return f"{self.path}:{self.line}"


@dataclass
class Heading:
    """A parsed outline heading."""
    level: int
    title: str
    path: Tuple[str, ...]
    marker: OutlineMarker
    keyword: Optional[str] = None
    state: TodoState = TodoState.OTHER
    tags: Tuple[str, ...] = ()
    scheduled: Optional[datetime] = None
    deadline: Optional[datetime] = None
    visits: List[Optional[datetime]] = field(default_factory=list)
    end: int = 0  # index one past the last descendant
    blocked: bool = False


def _split_heading(
    text: str,
    todo_keywords: Sequence[str],
    done_keywords: Sequence[str]
) -> Tuple[Optional[str], TodoState, str, Tuple[str, ...]]:
    keyword = None
    state = TodoState.OTHER
    first, _, rest = text.partition(" ")
    if first in todo_keywords:
        keyword, state, text = first, TodoState.OPEN, rest
    elif first in done_keywords:
        keyword, state, text = first, TodoState.DONE, rest

    text = PRIORITY_RE.sub('', text.strip())

    tags: Tuple[str, ...] = ()
    tag_match = TAGS_RE.search(' ' + text)
    if tag_match:
        tags = tuple(t for t in tag_match.group(1).split(':') if t)
        text = (' ' + text)[:tag_match.start()].strip()
    return keyword, state, text.strip(), tags


def _body_visits(line: str) -> List[Optional[datetime]]:
    stamps = INACTIVE_RE.findall(line)
    if line.lstrip().startswith("CLOCK:"):
        # A clock range is one visit: its start.
        stamps = stamps[:1]
    return [parse_timestamp(s) for s in stamps]


def parse_outline(
    text: str,
    path: Path,
    todo_keywords: Sequence[str] = DEFAULT_TODO_KEYWORDS,
    done_keywords: Sequence[str] = DEFAULT_DONE_KEYWORDS
) -> List[Heading]:
    """Parse one outline document into headings in document order."""
    headings: List[Heading] = []
    stack: List[Heading] = []
    planning_pending = False

    for lineno, line in enumerate(text.splitlines(), start=1):
        match = HEADING_RE.match(line)
        if match:
            level = len(match.group(1))
            keyword, state, title, tags = _split_heading(
                match.group(2), todo_keywords, done_keywords
            )
            while stack and stack[-1].level >= level:
                stack.pop()
            heading = Heading(
                level=level,
                title=title,
                path=tuple(h.title for h in stack) + (title,),
                marker=OutlineMarker(path, lineno),
                keyword=keyword,
                state=state,
                tags=tags,
            )
            headings.append(heading)
            stack.append(heading)
            planning_pending = True
            continue

        if not stack:
            continue
        current = stack[-1]
        if planning_pending:
            scheduled = SCHEDULED_RE.search(line)
            deadline = DEADLINE_RE.search(line)
            if scheduled:
                current.scheduled = parse_timestamp(scheduled.group(1))
            if deadline:
                current.deadline = parse_timestamp(deadline.group(1))
            planning_pending = False
        current.visits.extend(_body_visits(line))

    # Subtree extents and blocking, from the last heading backwards so that
    # every child's extent is known when its parent is visited.
    open_below = [False] * len(headings)
    for index in range(len(headings) - 1, -1, -1):
        heading = headings[index]
        end = index + 1
        while end < len(headings) and headings[end].level > heading.level:
            child = headings[end]
            if child.state == TodoState.OPEN or open_below[end]:
                open_below[index] = True
            end = child.end
        heading.end = end
        heading.blocked = heading.state == TodoState.OPEN and open_below[index]

    return headings


Predicate = Callable[[Heading], bool]


def everything(heading: Heading) -> bool:
    return True


def todo() -> Predicate:
    """Open headings only."""
    return lambda heading: heading.state == TodoState.OPEN


def text(query: str) -> Predicate:
    """All whitespace-separated terms occur in the outline path."""
    terms = [t.lower() for t in query.split()]

    def predicate(heading: Heading) -> bool:
        haystack = " / ".join(heading.path).lower()
        return all(term in haystack for term in terms)
    return predicate


def all_of(*predicates: Predicate) -> Predicate:
    return lambda heading: all(p(heading) for p in predicates)


class OutlineCollection:
    """The set of outline documents records are drawn from."""

    def __init__(
        self,
        todo_keywords: Sequence[str] = DEFAULT_TODO_KEYWORDS,
        done_keywords: Sequence[str] = DEFAULT_DONE_KEYWORDS,
        project_tag: str = "project"
    ):
        self.todo_keywords = tuple(todo_keywords)
        self.done_keywords = tuple(done_keywords)
        self.project_tag = project_tag
        self._documents: Dict[Path, List[Heading]] = {}
        self._index: Dict[OutlineMarker, Tuple[Path, int]] = {}

    @classmethod
    def from_config(cls, config) -> "OutlineCollection":
        return cls(
            todo_keywords=config.todo_keywords,
            done_keywords=config.done_keywords,
            project_tag=config.project_tag,
        )

    def add_text(self, content: str, path: Path) -> None:
        path = Path(path)
        headings = parse_outline(content, path, self.todo_keywords, self.done_keywords)
        self._documents[path] = headings
        for i, heading in enumerate(headings):
            self._index[heading.marker] = (path, i)
        logger.debug(f"Loaded {len(headings)} headings from {path}")

    def add_file(self, path: Path) -> None:
        path = Path(path)
        self.add_text(path.read_text(encoding="utf-8"), path)

    def load(self, paths: Iterable[Path]) -> "OutlineCollection":
        for path in paths:
            self.add_file(path)
        return self

    @property
    def files(self) -> List[Path]:
        return list(self._documents)

    def headings(self) -> Iterator[Heading]:
        for headings in self._documents.values():
            yield from headings

    def project_roots(self) -> List[Tuple[str, ...]]:
        return [h.path for h in self.headings() if self.project_tag in h.tags]

    def select(
        self,
        predicate: Predicate = everything,
        under: Optional[Iterable[Sequence[str]]] = None
    ) -> Iterator[Record]:
        """Records for headings matching ``predicate``, optionally only
        those inside one of the ``under`` sub-trees."""
        if under is not None:
            roots = [tuple(r) for r in under]
            inner = predicate
            predicate = lambda h: any(matches(h.path, r) for r in roots) and inner(h)

        for heading in self.headings():
            if predicate(heading):
                yield Record(
                    full_path=heading.path,
                    todo_state=heading.state,
                    location_ref=heading.marker,
                    scheduled=heading.scheduled,
                    deadline=heading.deadline,
                    todo_keyword=heading.keyword,
                    blocked=heading.blocked,
                )

    def history(self, ref: OutlineMarker) -> List[Optional[datetime]]:
        """Visits of the heading at ``ref`` and all of its descendants."""
        path, index = self._index[ref]
        headings = self._documents[path]
        visits: List[Optional[datetime]] = []
        for heading in headings[index:headings[index].end]:
            visits.extend(heading.visits)
        return visits


def directory_key(record: Record) -> Optional[str]:
    ref = record.location_ref
    if not isinstance(ref, OutlineMarker):
        return None
    return str(ref.path.resolve().parent)


def _run_git(directory: Path, *args: str) -> Optional[str]:
    """Stdout of ``git -C directory args``, or None when git fails."""
    try:
        proc = subprocess.run(
            ["git", "-C", str(directory), *args],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        logger.debug(f"git unavailable: {e}")
        return None
    if proc.returncode != 0:
        return None
    return proc.stdout.strip()


def git_remote(directory: Path) -> Optional[str]:
    """URL of the origin remote (else the first remote) of the git work
    tree containing ``directory``.

    Lookup goes through git itself, so submodules and linked worktrees
    (where ``.git`` is a file) resolve to their own repository.
    """
    url = _run_git(directory, "config", "--get", "remote.origin.url")
    if url:
        return url
    names = (_run_git(directory, "remote") or "").split()
    if not names:
        return None
    return _run_git(directory, "config", "--get", f"remote.{names[0]}.url") or None


def make_key_fn(dimension: str) -> Callable[[Record], Optional[str]]:
    """Group key function for ``dimension`` (directory, remote or none)."""
    if dimension == "directory":
        return directory_key
    if dimension == "none":
        return lambda record: None
    if dimension != "remote":
        raise ValueError(f"Unknown grouping dimension: {dimension}")

    remotes: Dict[Path, Optional[str]] = {}

    def remote_key(record: Record) -> Optional[str]:
        ref = record.location_ref
        if not isinstance(ref, OutlineMarker):
            return None
        directory = ref.path.resolve().parent
        if directory not in remotes:
            remotes[directory] = git_remote(directory)
        return remotes[directory]

    return remote_key
