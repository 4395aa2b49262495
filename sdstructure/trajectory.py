from __future__ import annotations

"""Trajectory Extractor: user-supplied names to solved time series.

Names resolve against the variables the solved model knows (stocks,
auxiliaries and coupling copies, buffers never). Series are read as recorded:
no interpolation or resampling, and a short run is returned as it is.
"""

from typing import TYPE_CHECKING, List, Tuple

from .classifier import Variable
from .resolver import resolve

if TYPE_CHECKING:  # the solver pulls in BPTK_Py and SymPy
    from .solver import Solution

VARIABLE_HINT = "Use variable_list(solution) to see available variables."


def find_solution_variable(solution: Solution, name: str) -> Variable:
    return resolve(name, solution.variables).unwrap(kind="Variable", hint=VARIABLE_HINT)


def timeseries(solution: Solution, name: str) -> Tuple[List[float], List[float]]:
    variable = find_solution_variable(solution, name)
    return solution.t, solution.values(variable.full_name)


def variable_list(solution: Solution) -> List[Tuple[str, str]]:
    """`(full_name, description)` for every solution variable, sorted by name."""
    return sorted(((v.full_name, v.description) for v in solution.variables), key=lambda x: x[0])


__all__ = ["VARIABLE_HINT", "find_solution_variable", "timeseries", "variable_list"]
