from __future__ import annotations

"""Lookup errors raised by the query layer.

Both errors are local and recoverable: they carry enough payload for the
caller to retry with a corrected name.
"""

from typing import Iterable, List, Optional


class ModelQueryError(ValueError):
    """Base class for failed structure or trajectory lookups."""


class NotFoundError(ModelQueryError):
    def __init__(self, message: str, *, suggestions: Optional[Iterable[str]] = None) -> None:
        super().__init__(message)
        self.suggestions: List[str] = list(suggestions or [])


class AmbiguousNameError(ModelQueryError):
    def __init__(self, message: str, *, candidates: Iterable[str]) -> None:
        super().__init__(message)
        self.candidates: List[str] = list(candidates)


__all__ = ["ModelQueryError", "NotFoundError", "AmbiguousNameError"]
