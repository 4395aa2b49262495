from __future__ import annotations

"""
Flow Graph Builder: global flow term → stock incidence.

Every stock's rate equation is decomposed; each resulting term registers the
stock under `inflow_of` or `outflow_of`. Terms are keyed by their literal text,
so a term reused by several stocks (a transfer between cohorts, for example)
becomes one `FlowTerm` with both sides filled in.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from .classifier import Variable
from .decompose import decompose
from .errors import NotFoundError
from .resolver import MAX_SUGGESTIONS


@dataclass(frozen=True)
class FlowTerm:
    term_text: str
    inflow_of: Tuple[str, ...] = ()
    outflow_of: Tuple[str, ...] = ()


def _register(incidence: Dict[str, List[str]], term: str, stock_name: str) -> None:
    # A term repeated within one rate equation still lists its stock once
    stocks = incidence.setdefault(term, [])
    if stock_name not in stocks:
        stocks.append(stock_name)


def build_flow_graph(stocks: Iterable[Variable]) -> List[FlowTerm]:
    inflow_map: Dict[str, List[str]] = {}
    outflow_map: Dict[str, List[str]] = {}
    for stock in stocks:
        inflows, outflows = decompose(stock.equation_text or "")
        for term in inflows:
            _register(inflow_map, term, stock.full_name)
        for term in outflows:
            _register(outflow_map, term, stock.full_name)

    terms = sorted(set(inflow_map) | set(outflow_map))
    return [
        FlowTerm(
            term_text=term,
            inflow_of=tuple(inflow_map.get(term, ())),
            outflow_of=tuple(outflow_map.get(term, ())),
        )
        for term in terms
    ]


def flow_of(flows: Iterable[FlowTerm], term_text: str) -> FlowTerm:
    """Exact-match lookup of a flow term; misses suggest substring matches."""
    flows = list(flows)
    for f in flows:
        if f.term_text == term_text:
            return f

    partials = [f.term_text for f in flows if term_text in f.term_text][:MAX_SUGGESTIONS]
    if partials:
        raise NotFoundError(
            f"Flow '{term_text}' not found. Did you mean one of: {', '.join(partials)}? "
            "Use list_flows() to see all flows.",
            suggestions=partials,
        )
    raise NotFoundError(f"Flow '{term_text}' not found. Use list_flows() to see available flows.")


__all__ = ["FlowTerm", "build_flow_graph", "flow_of"]
