from __future__ import annotations

"""
Public query surface over a sector registry and its solutions.

Every structural query classifies the registry afresh, so results always
reflect the definitions passed in (a registry with scenario overrides, for
example) and repeated calls return identical sorted output. Records are plain
dicts so they serialize directly to JSON/YAML or a DataFrame.

Lookups accept full names (`pop₊A0020`) or short names (`A0020`) when the
short name is unique; failures raise `NotFoundError` / `AmbiguousNameError`.
"""

from typing import TYPE_CHECKING, Dict, List, Tuple

from .classifier import Variable, classify
from .decompose import decompose
from .dependencies import effects_of, find_auxiliary, inputs_of
from .flows import FlowTerm, build_flow_graph, flow_of
from .resolver import resolve
from .sectors import SectorRegistry
from .trajectory import timeseries, variable_list as _variable_list

if TYPE_CHECKING:  # the solver pulls in BPTK_Py and SymPy
    from .solver import Solution

STOCK_HINT = "Use list_stocks() to see available stocks."


def _ref(v: Variable) -> Dict[str, str]:
    return {"name": v.full_name, "description": v.description, "sector": v.sector}


def _flow_record(f: FlowTerm) -> Dict[str, object]:
    return {"name": f.term_text, "as_inflow_of": list(f.inflow_of), "as_outflow_of": list(f.outflow_of)}


def list_stocks(registry: SectorRegistry) -> List[Dict[str, str]]:
    return [{**_ref(s), "equation": s.equation_text} for s in classify(registry).stocks]


def stock_flows(registry: SectorRegistry, name: str) -> Dict[str, object]:
    stock = resolve(name, classify(registry).stocks).unwrap(kind="Stock", hint=STOCK_HINT)
    inflows, outflows = decompose(stock.equation_text or "")
    return {**_ref(stock), "equation": stock.equation_text, "inflows": inflows, "outflows": outflows}


def list_flows(registry: SectorRegistry) -> List[Dict[str, object]]:
    return [_flow_record(f) for f in build_flow_graph(classify(registry).stocks)]


def flow_stocks(registry: SectorRegistry, name: str) -> Dict[str, object]:
    return _flow_record(flow_of(build_flow_graph(classify(registry).stocks), name))


def list_auxiliaries(registry: SectorRegistry) -> List[Dict[str, str]]:
    return [_ref(a) for a in classify(registry).auxiliaries]


def auxiliary_inputs(registry: SectorRegistry, name: str) -> Dict[str, object]:
    structure = classify(registry)
    aux = find_auxiliary(structure, name)
    equation, inputs = inputs_of(structure, aux)
    return {**_ref(aux), "equation": equation, "inputs": [_ref(v) for v in inputs]}


def auxiliary_effects(registry: SectorRegistry, name: str) -> Dict[str, object]:
    structure = classify(registry)
    aux = find_auxiliary(structure, name)
    return {**_ref(aux), "effects": [_ref(v) for v in effects_of(structure, aux)]}


def list_parameters(registry: SectorRegistry) -> List[Dict[str, object]]:
    return [{**_ref(p), "value": p.value} for p in classify(registry).parameters]


def variable_list(solution: Solution) -> List[Tuple[str, str]]:
    return _variable_list(solution)


def get_timeseries(solution: Solution, name: str) -> Dict[str, List[float]]:
    t, values = timeseries(solution, name)
    return {"t": t, "values": values}


__all__ = [
    "list_stocks",
    "stock_flows",
    "list_flows",
    "flow_stocks",
    "list_auxiliaries",
    "auxiliary_inputs",
    "auxiliary_effects",
    "list_parameters",
    "variable_list",
    "get_timeseries",
]
