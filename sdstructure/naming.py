from __future__ import annotations

"""
Variable naming utilities.

This module owns every string convention the structure layer relies on:

- Sector-qualified full names (`pop₊POP`) and their short-name component
- Stripping of the explicit time-dependence notation `(t)` used by the
  upstream equation text
- Recognition of derivative left-hand sides (`D(X)`, `Differential(t)(X)`)
- Identifier scanning of equation text for dependency edges
- Internal-buffer detection from configurable name markers
- SD-DSL safe element names with optional collision tracking

Notes:
- Full names keep the separator verbatim; they are display names and lookup
  keys, never used as element names inside the SD model.
- Element names are normalized to `[0-9A-Za-z_]` and may collide after
  normalization (`a_b` + `c` vs `a` + `b_c`); pass a `NameRegistry` to detect it.
"""

from dataclasses import dataclass
import hashlib
import re
from typing import Dict, Iterable, List, Optional, Tuple


DEFAULT_SEPARATOR = "₊"
DEFAULT_BUFFER_MARKERS: Tuple[str, ...] = ("LV_", "RT_")
DEFAULT_BUFFER_DESCRIPTION_PREFIXES: Tuple[str, ...] = ("LV functions", "RT functions")
TIME_NOTATION = "(t)"
DEFAULT_MAX_NAME_LENGTH = 100

_IDENTIFIER_RE = re.compile(r"(?<![0-9.])[A-Za-z_][A-Za-z0-9_]*")
_DERIVATIVE_RE = re.compile(r"^(?:Differential\(t\)|D)\((?P<inner>.+)\)$")


def full_name(prefix: str, short_name: str, separator: str = DEFAULT_SEPARATOR) -> str:
    return f"{prefix}{separator}{short_name}"


def strip_time_notation(text: str) -> str:
    """Remove every `(t)` occurrence and trim surrounding whitespace."""
    return text.replace(TIME_NOTATION, "").strip()


def derivative_target(lhs: str) -> Optional[str]:
    """Return the differentiated variable of a rate-equation LHS, else None.

    Accepts `D(X)`, `D(X(t))`, `Differential(t)(X)` and
    `Differential(t)(X(t))`.
    """
    m = _DERIVATIVE_RE.match(lhs.strip())
    if m is None:
        return None
    inner = strip_time_notation(m.group("inner"))
    if not _IDENTIFIER_RE.fullmatch(inner):
        return None
    return inner


def referenced_identifiers(text: str) -> List[str]:
    """Identifiers referenced by an equation, first occurrence order, no duplicates."""
    seen: Dict[str, None] = {}
    for token in _IDENTIFIER_RE.findall(strip_time_notation(text)):
        seen.setdefault(token, None)
    return list(seen)


def is_buffer_name(name: str, markers: Iterable[str] = DEFAULT_BUFFER_MARKERS) -> bool:
    return any(marker in name for marker in markers)


def is_buffer_description(
    description: str, prefixes: Iterable[str] = DEFAULT_BUFFER_DESCRIPTION_PREFIXES
) -> bool:
    return any(description.startswith(p) for p in prefixes)


def _normalize_component(raw: str) -> str:
    """Collapse any run of non-alphanumeric characters to a single underscore.

    Case is preserved; leading and trailing underscores are dropped.
    """
    if raw is None:
        return ""
    s = str(raw).strip()
    if not s:
        return ""
    s = re.sub(r"[^0-9A-Za-z]+", "_", s)
    s = re.sub(r"_+", "_", s)
    return s.strip("_")


def _stable_suffix_hash(parts: Tuple[str, ...], length: int = 8) -> str:
    h = hashlib.sha1()
    for p in parts:
        h.update(p.encode("utf-8"))
        h.update(b"\x00")
    return h.hexdigest()[:length]


@dataclass
class NameRegistry:
    """Tracks element names against their (prefix, short_name) source.

    Registering the same element name for a different source raises.
    """

    final_to_source: Dict[str, Tuple[str, str]] = None

    def __post_init__(self) -> None:
        if self.final_to_source is None:
            self.final_to_source = {}

    def register(self, final_name: str, source: Tuple[str, str]) -> None:
        existing = self.final_to_source.get(final_name)
        if existing is None:
            self.final_to_source[final_name] = source
            return
        if existing != source:
            raise ValueError(
                "Name collision detected: element name '{final}' already registered for "
                "source={src1}, attempted source={src2}".format(
                    final=final_name, src1=existing, src2=source
                )
            )


def element_name(
    prefix: str,
    short_name: str,
    *,
    max_length: int = DEFAULT_MAX_NAME_LENGTH,
    registry: Optional[NameRegistry] = None,
) -> str:
    """Return the SD-DSL element name for a sector variable or parameter.

    Example: element_name("pop", "A0020") -> "pop_A0020"
    """
    norm_prefix = _normalize_component(prefix)
    norm_short = _normalize_component(short_name)
    preliminary = "_".join(x for x in (norm_prefix, norm_short) if x)

    if len(preliminary) <= max_length:
        final = preliminary
    else:
        suffix = _stable_suffix_hash((norm_prefix, norm_short))
        allowed = max(1, max_length - (len(suffix) + 1))
        final = f"{preliminary[:allowed].rstrip('_')}_{suffix}"

    if registry is not None:
        registry.register(final, (prefix, short_name))
    return final


__all__ = [
    "DEFAULT_SEPARATOR",
    "DEFAULT_BUFFER_MARKERS",
    "DEFAULT_BUFFER_DESCRIPTION_PREFIXES",
    "TIME_NOTATION",
    "NameRegistry",
    "full_name",
    "strip_time_notation",
    "derivative_target",
    "referenced_identifiers",
    "is_buffer_name",
    "is_buffer_description",
    "element_name",
]
