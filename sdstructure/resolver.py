from __future__ import annotations

"""
Name Resolver: bare or namespaced name to canonical variable.

Rule
- An exact full-name match is the unique result; namespaced names are never
  ambiguous, even when the short name collides across sectors.
- Otherwise every record whose short name equals the query is collected:
  none → not found, one → resolved, several → ambiguous.

Resolution is returned as a tagged `Resolution` value so callers can branch on
`status` explicitly; `unwrap()` converts the failure cases into
`NotFoundError` / `AmbiguousNameError` for callers that prefer exceptions.
Records are duck-typed: anything with `full_name` and `short_name` attributes.
"""

from dataclasses import dataclass
import difflib
from enum import Enum
from typing import Dict, Generic, Iterable, List, Optional, Sequence, Tuple, TypeVar

from .errors import AmbiguousNameError, NotFoundError

MAX_SUGGESTIONS = 5

T = TypeVar("T")


@dataclass(frozen=True)
class NameRecord:
    full_name: str
    short_name: str


class ResolutionStatus(Enum):
    RESOLVED = "resolved"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class Resolution(Generic[T]):
    query: str
    status: ResolutionStatus
    match: Optional[T] = None
    # Colliding full names when ambiguous
    candidates: Tuple[str, ...] = ()
    # Close matches when not found
    suggestions: Tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.status is ResolutionStatus.RESOLVED

    def unwrap(self, *, kind: str = "Variable", hint: Optional[str] = None) -> T:
        """Return the match or raise the error matching `status`."""
        if self.status is ResolutionStatus.RESOLVED:
            return self.match
        if self.status is ResolutionStatus.AMBIGUOUS:
            raise AmbiguousNameError(
                f"Ambiguous {kind.lower()} name '{self.query}'. Matches: {', '.join(self.candidates)}. "
                "Use the full namespaced name.",
                candidates=self.candidates,
            )
        message = f"{kind} '{self.query}' not found."
        if self.suggestions:
            message += f" Did you mean one of: {', '.join(self.suggestions)}?"
        if hint:
            message += f" {hint}"
        raise NotFoundError(message, suggestions=self.suggestions)


def _suggest(query: str, records: Sequence[object]) -> Tuple[str, ...]:
    by_short: Dict[str, List[str]] = {}
    for r in records:
        by_short.setdefault(r.short_name, []).append(r.full_name)
    names = [r.full_name for r in records] + list(by_short)
    close = difflib.get_close_matches(query, names, n=MAX_SUGGESTIONS * 2)
    out: List[str] = []
    for name in close:
        # A short-name hit stands for every full name sharing it
        for full in by_short.get(name, [name]):
            if full not in out:
                out.append(full)
    return tuple(out[:MAX_SUGGESTIONS])


def resolve(query: str, records: Iterable[T]) -> Resolution[T]:
    records = list(records)
    matches = []
    for r in records:
        if r.full_name == query:
            return Resolution(query=query, status=ResolutionStatus.RESOLVED, match=r)
        if r.short_name == query:
            matches.append(r)

    if len(matches) == 1:
        return Resolution(query=query, status=ResolutionStatus.RESOLVED, match=matches[0])
    if len(matches) > 1:
        return Resolution(
            query=query,
            status=ResolutionStatus.AMBIGUOUS,
            candidates=tuple(m.full_name for m in matches),
        )
    return Resolution(query=query, status=ResolutionStatus.NOT_FOUND, suggestions=_suggest(query, records))


__all__ = ["MAX_SUGGESTIONS", "NameRecord", "Resolution", "ResolutionStatus", "resolve"]
