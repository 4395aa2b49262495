from __future__ import annotations

"""
Composition & Solving: sector registry → BPTK_Py SD model → trajectories.

This module is the boundary to the numerical solver. It builds one coupled
SD-DSL model from all sectors and records every public variable on the fixed
time grid of the run specs.

Composition
- Parameters become constants named `<prefix>_<short>` (see `naming.element_name`)
- Variables defined by a rate equation (stocks and delay buffers) become
  stocks with their declared initial value
- Variables defined algebraically become converters
- Coupling placeholders are not duplicated: references to them resolve to the
  home-sector element through the structure's alias edges

Equation text is parsed with SymPy against an explicit per-sector namespace and
translated into SD-DSL operators. Supported: numbers, `+ - * /`, integer
powers, `min`/`max` and `t` (model time). Anything else raises `ValueError`
at composition time rather than during the run.

Solving
- Elements are evaluated in ascending time order so each stock only reaches
  back one memoized step
- The result is a `Solution` wrapping a pandas DataFrame indexed by time with
  one column per solution variable (buffers excluded)
"""

from dataclasses import dataclass
import logging
from typing import Dict, List, Mapping, Optional, Tuple

import pandas as pd
import sympy
from BPTK_Py import Model
from BPTK_Py.sddsl import functions as F
from sympy.parsing.sympy_parser import parse_expr, standard_transformations

from .classifier import ModelStructure, Variable, VariableKind, classify
from .naming import NameRegistry, element_name
from .scenario_loader import RunSpecs, Scenario
from .sectors import Sector, SectorRegistry

log = logging.getLogger(__name__)

TIME_SYMBOL = "t"


@dataclass
class ComposedSystem:
    model: Model
    structure: ModelStructure
    runspecs: RunSpecs
    # Variable or parameter full name -> SD element name (aliases share their home's)
    element_names: Dict[str, str]


@dataclass(frozen=True)
class Solution:
    """Solved trajectories of one run.

    `variables` lists every variable the solved model knows by name: stocks,
    auxiliaries and coupling copies. Internal buffers are never included.
    """

    frame: pd.DataFrame
    variables: Tuple[Variable, ...]
    runspecs: RunSpecs

    @property
    def t(self) -> List[float]:
        return [float(x) for x in self.frame.index]

    def values(self, full_name: str) -> List[float]:
        return [float(x) for x in self.frame[full_name]]


def _as_float(value) -> float:
    return float(value)


def _power(base, n: int):
    result = base
    for _ in range(n - 1):
        result = result * base
    return result


def _elements_first(parts: List[object]) -> List[object]:
    # Keep an SD element on the left of mixed arithmetic
    return sorted(parts, key=lambda p: isinstance(p, float))


def _to_dsl(expr, namespace: Mapping[str, object], where: str):
    """Translate a SymPy expression into SD-DSL elements and operators."""
    if expr.is_number:
        return _as_float(expr)
    if expr.is_Symbol:
        name = expr.name
        if name in namespace:
            return namespace[name]
        if name == TIME_SYMBOL:
            return F.time()
        raise ValueError(f"{where}: unknown identifier '{name}'")
    if isinstance(expr, sympy.Add):
        parts = _elements_first([_to_dsl(a, namespace, where) for a in expr.args])
        result = parts[0]
        for p in parts[1:]:
            result = result + p
        return result
    if isinstance(expr, sympy.Mul):
        num: List[object] = []
        den: List[object] = []
        for a in expr.args:
            if a.is_Pow and a.exp.is_Integer and int(a.exp) < 0:
                den.append(_power(_to_dsl(a.base, namespace, where), -int(a.exp)))
            else:
                num.append(_to_dsl(a, namespace, where))
        numerator = 1.0
        if num:
            num = _elements_first(num)
            numerator = num[0]
            for p in num[1:]:
                numerator = numerator * p
        if not den:
            return numerator
        denominator = den[0]
        for p in den[1:]:
            denominator = denominator * p
        return numerator / denominator
    if isinstance(expr, sympy.Pow):
        if not expr.exp.is_Integer:
            raise ValueError(f"{where}: only integer powers are supported, got '{expr}'")
        n = int(expr.exp)
        if n == 0:
            return 1.0
        base = _to_dsl(expr.base, namespace, where)
        return _power(base, n) if n > 0 else 1.0 / _power(base, -n)
    if isinstance(expr, (sympy.Min, sympy.Max)):
        fn = F.min if isinstance(expr, sympy.Min) else F.max
        parts = _elements_first([_to_dsl(a, namespace, where) for a in expr.args])
        result = parts[0]
        for p in parts[1:]:
            result = fn(result, p)
        return result
    raise ValueError(f"{where}: unsupported construct '{expr.func.__name__}' in '{expr}'")


def parse_equation(text: str, names: List[str], where: str):
    """Parse equation text (time notation already stripped) with SymPy.

    The global namespace is kept minimal so model names such as `E`, `I`, `N`
    or `Q` are never captured by SymPy's own objects; undeclared names come
    back as plain symbols and unknown calls as undefined functions.
    """
    local_dict: Dict[str, object] = {"min": sympy.Min, "max": sympy.Max}
    local_dict.update({n: sympy.Symbol(n) for n in names})
    global_dict: Dict[str, object] = {
        "Integer": sympy.Integer,
        "Float": sympy.Float,
        "Rational": sympy.Rational,
        "Symbol": sympy.Symbol,
        "Function": sympy.Function,
    }
    try:
        return parse_expr(
            text, local_dict=local_dict, global_dict=global_dict, transformations=standard_transformations
        )
    except (SyntaxError, TypeError, sympy.SympifyError) as exc:
        raise ValueError(f"{where}: cannot parse equation '{text}'") from exc


def _is_rate_defined(sector: Sector, short_name: str) -> bool:
    eq = sector.definition(short_name)
    return eq is not None and eq.derivative_of is not None


def compose(registry: SectorRegistry, runspecs: Optional[RunSpecs] = None) -> ComposedSystem:
    """Build the coupled SD model for every sector in the registry."""
    runspecs = runspecs or registry.runspecs
    structure = classify(registry)

    model = Model()
    model.starttime = float(runspecs.starttime)
    model.stoptime = float(runspecs.stoptime)
    model.dt = float(runspecs.dt)

    names = NameRegistry()
    elements: Dict[str, object] = {}
    element_names: Dict[str, str] = {}

    for p in structure.parameters:
        name = element_name(p.prefix, p.short_name, registry=names)
        c = model.constant(name)
        c.equation = _as_float(p.value)
        elements[p.full_name] = c
        element_names[p.full_name] = name

    owned: List[Variable] = []
    for v in structure.variables:
        if v.full_name in structure.aliases:
            continue
        if v.equation_text is None:
            raise ValueError(
                f"Variable '{v.full_name}' has no defining equation and no unique home sector to couple to"
            )
        sector = registry.sector(v.prefix)
        name = element_name(v.prefix, v.short_name, registry=names)
        if _is_rate_defined(sector, v.short_name):
            element = model.stock(name)
            element.initial_value = _as_float(sector.variable(v.short_name).init)
        else:
            element = model.converter(name)
        elements[v.full_name] = element
        element_names[v.full_name] = name
        owned.append(v)

    for alias, home in structure.aliases.items():
        elements[alias] = elements[home]
        element_names[alias] = element_names[home]

    for v in owned:
        sector = registry.sector(v.prefix)
        namespace = {
            short: elements[registry.full_name(sector, short)]
            for short in [d.short_name for d in sector.variables] + [p.name for p in sector.parameters]
        }
        expr = parse_equation(v.equation_text, list(namespace), where=v.full_name)
        elements[v.full_name].equation = _to_dsl(expr, namespace, where=v.full_name)

    log.info(
        "Composed model '%s': %d constants, %d elements, %d coupling aliases",
        registry.name,
        len(structure.parameters),
        len(owned),
        len(structure.aliases),
    )
    return ComposedSystem(model=model, structure=structure, runspecs=runspecs, element_names=element_names)


def simulate(
    registry: SectorRegistry,
    runspecs: Optional[RunSpecs] = None,
    *,
    parameters: Optional[Mapping[str, float]] = None,
) -> Solution:
    """Compose and run the model, recording every solution variable per step."""
    if parameters:
        registry = registry.with_parameter_overrides(parameters)
    system = compose(registry, runspecs)
    rs = system.runspecs
    model = system.model

    recorded = tuple(v for v in system.structure.variables if v.kind is not VariableKind.INTERNAL_BUFFER)
    times = [rs.starttime + i * rs.dt for i in range(rs.num_steps)]
    log.info("Simulating %d steps: t=%.2f..%.2f dt=%.4g", len(times), times[0], times[-1], rs.dt)

    rows: List[Dict[str, float]] = []
    for t in times:
        rows.append({v.full_name: float(model.evaluate_equation(system.element_names[v.full_name], t)) for v in recorded})

    frame = pd.DataFrame(rows, index=pd.Index(times, name="t"), columns=[v.full_name for v in recorded])
    return Solution(frame=frame, variables=recorded, runspecs=rs)


def run_scenario(registry: SectorRegistry, scenario: Scenario) -> Solution:
    return simulate(registry, scenario.runspecs, parameters=scenario.parameters)


__all__ = ["ComposedSystem", "Solution", "compose", "simulate", "run_scenario", "parse_equation"]
