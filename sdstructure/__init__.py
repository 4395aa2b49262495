"""Sector model structure & query layer.

Exports the naming helpers and the public query surface for convenient
imports. Structure queries never import the solver; `Solution` and `simulate`
are resolved on first access so BPTK_Py and SymPy load only when a model is
actually run.
"""

from .naming import *  # re-export naming helpers
from .naming import __all__ as _naming_all

__all__ = list(_naming_all)

from .errors import AmbiguousNameError, ModelQueryError, NotFoundError  # noqa: F401
from .sectors import SectorRegistry, load_registry  # noqa: F401
from .queries import *  # noqa: F401,F403
from .queries import __all__ as _queries_all

_SOLVER_EXPORTS = ("Solution", "simulate")


def __getattr__(name):
    if name in _SOLVER_EXPORTS:
        from . import solver

        return getattr(solver, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ += [
    "AmbiguousNameError",
    "ModelQueryError",
    "NotFoundError",
    "SectorRegistry",
    "load_registry",
    "Solution",
    "simulate",
]
__all__ += list(_queries_all)
