from __future__ import annotations

"""
Structural Classifier: typed variable catalog over all sectors.

Every declared variable is classified as:
- Stock: some equation's LHS is a first-order time derivative of it
- InternalBuffer: its name carries a buffer marker (or its description a
  buffer prefix); these implement delay lines and are never surfaced
- Auxiliary: everything else with an equation or a description

Variables with an empty description are exogenous coupling placeholders. They
stay in `ModelStructure.variables` (so composition and trajectories can wire
them) but are excluded from the public `stocks` / `auxiliaries` catalogs.

Cross-sector couplings are alias edges: a placeholder points at the variable's
home sector, the one sector that describes it. `ModelStructure.canonical`
resolves any (sector, short name) reference through those edges so dependency
queries always land on a single definition.
"""

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Dict, List, Optional, Tuple

from .naming import strip_time_notation
from .sectors import Sector, SectorRegistry

log = logging.getLogger(__name__)


class VariableKind(Enum):
    STOCK = "Stock"
    AUXILIARY = "Auxiliary"
    INTERNAL_BUFFER = "InternalBuffer"
    PARAMETER = "Parameter"


@dataclass(frozen=True)
class Variable:
    full_name: str
    short_name: str
    sector: str
    prefix: str
    description: str
    kind: VariableKind
    equation_text: Optional[str] = None
    value: Optional[float] = None

    @property
    def is_placeholder(self) -> bool:
        return not self.description

    @property
    def is_public(self) -> bool:
        return bool(self.description) and self.kind in (VariableKind.STOCK, VariableKind.AUXILIARY)


@dataclass(frozen=True)
class ModelStructure:
    registry: SectorRegistry
    stocks: Tuple[Variable, ...]
    auxiliaries: Tuple[Variable, ...]
    # Every declared variable in registry order, placeholders and buffers included
    variables: Tuple[Variable, ...]
    parameters: Tuple[Variable, ...]
    # Placeholder full name -> home full name (resolved couplings only)
    aliases: Dict[str, str] = field(default_factory=dict)
    _by_full_name: Dict[str, Variable] = field(default_factory=dict, repr=False, compare=False)
    # short name -> prefixes of sectors that describe it (buffers excluded)
    _homes: Dict[str, Tuple[str, ...]] = field(default_factory=dict, repr=False, compare=False)

    @property
    def catalog(self) -> List[Variable]:
        """Stocks and auxiliaries merged and sorted by full name."""
        return sorted(self.stocks + self.auxiliaries, key=lambda v: v.full_name)

    def get(self, full_name: str) -> Optional[Variable]:
        return self._by_full_name.get(full_name)

    def home_of(self, prefix: str, short_name: str) -> Optional[str]:
        """Full name of the home-sector variable for a reference made in `prefix`.

        Returns None for buffers, parameters, undeclared identifiers and
        couplings without a unique home.
        """
        registry = self.registry
        sector = registry.sector(prefix)
        decl = sector.variable(short_name)
        if decl is None:
            return None
        if registry.conventions.is_buffer(short_name, decl.description):
            return None
        if decl.description:
            return registry.full_name(sector, short_name)

        if decl.source is not None:
            candidates: Tuple[str, ...] = (decl.source,) if decl.source in self._homes.get(short_name, ()) else ()
        else:
            candidates = tuple(p for p in self._homes.get(short_name, ()) if p != prefix)
        if len(candidates) != 1:
            return None
        return registry.full_name(registry.sector(candidates[0]), short_name)

    def canonical(self, prefix: str, short_name: str) -> Optional[Variable]:
        home = self.home_of(prefix, short_name)
        return self._by_full_name.get(home) if home else None


def _equation_texts(sector: Sector) -> Tuple[Dict[str, str], Dict[str, str]]:
    """Return (stock rate RHS, algebraic RHS) maps keyed by short name."""
    rates: Dict[str, str] = {}
    algebraic: Dict[str, str] = {}
    for eq in sector.equations:
        target = eq.derivative_of
        if target is not None:
            rates[target] = strip_time_notation(eq.rhs)
        else:
            algebraic[eq.defines] = strip_time_notation(eq.rhs)
    return rates, algebraic


def classify(registry: SectorRegistry) -> ModelStructure:
    """Partition every declared variable and build the sorted public catalogs."""
    conventions = registry.conventions
    variables: List[Variable] = []
    parameters: List[Variable] = []

    for sector in registry:
        descs = sector.descriptions()
        rates, algebraic = _equation_texts(sector)
        for decl in sector.variables:
            short = decl.short_name
            desc = descs.get(short, "")
            if conventions.is_buffer(short, desc):
                kind = VariableKind.INTERNAL_BUFFER
                text = rates.get(short, algebraic.get(short))
            elif short in rates:
                kind = VariableKind.STOCK
                text = rates[short]
            else:
                kind = VariableKind.AUXILIARY
                text = algebraic.get(short)
            variables.append(
                Variable(
                    full_name=registry.full_name(sector, short),
                    short_name=short,
                    sector=sector.name,
                    prefix=sector.prefix,
                    description=desc,
                    kind=kind,
                    equation_text=text,
                )
            )
        for p in sector.parameters:
            parameters.append(
                Variable(
                    full_name=registry.full_name(sector, p.name),
                    short_name=p.name,
                    sector=sector.name,
                    prefix=sector.prefix,
                    description=p.description,
                    kind=VariableKind.PARAMETER,
                    value=float(p.value),
                )
            )

    stocks = sorted((v for v in variables if v.kind is VariableKind.STOCK and v.description), key=lambda v: v.full_name)
    auxiliaries = sorted(
        (v for v in variables if v.kind is VariableKind.AUXILIARY and v.description), key=lambda v: v.full_name
    )

    homes: Dict[str, List[str]] = {}
    for v in variables:
        if v.description and v.kind is not VariableKind.INTERNAL_BUFFER:
            homes.setdefault(v.short_name, []).append(v.prefix)

    structure = ModelStructure(
        registry=registry,
        stocks=tuple(stocks),
        auxiliaries=tuple(auxiliaries),
        variables=tuple(variables),
        parameters=tuple(sorted(parameters, key=lambda v: v.full_name)),
        _by_full_name={v.full_name: v for v in variables},
        _homes={k: tuple(v) for k, v in homes.items()},
    )

    for v in variables:
        if v.is_placeholder and v.kind is not VariableKind.INTERNAL_BUFFER:
            home = structure.home_of(v.prefix, v.short_name)
            if home is None:
                log.debug("Coupling placeholder %s has no unique home sector", v.full_name)
            else:
                structure.aliases[v.full_name] = home

    log.debug(
        "Classified %d variables: %d stocks, %d auxiliaries, %d aliases",
        len(variables),
        len(stocks),
        len(auxiliaries),
        len(structure.aliases),
    )
    return structure


__all__ = ["VariableKind", "Variable", "ModelStructure", "classify"]
