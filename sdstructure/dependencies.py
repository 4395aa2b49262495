from __future__ import annotations

"""
Dependency Resolver: direct inputs and direct effects of auxiliaries.

References are found by scanning equation text for identifiers and resolving
each one in the referencing sector's namespace through the coupling aliases,
so an edge always points at the home-sector definition rather than a local
placeholder copy. Parameters, buffers, function names and couplings without a
unique home produce no edge.

Both directions are ordered by a scan of the sorted stock + auxiliary catalog,
not by textual order, and are deduplicated by full name.
"""

from typing import List, Set, Tuple

from .classifier import ModelStructure, Variable
from .naming import referenced_identifiers
from .resolver import resolve

AUXILIARY_HINT = "Use list_auxiliaries() to see available auxiliaries."


def references(structure: ModelStructure, variable: Variable) -> Set[str]:
    """Canonical full names referenced by a variable's equation, self excluded."""
    refs: Set[str] = set()
    for token in referenced_identifiers(variable.equation_text or ""):
        home = structure.home_of(variable.prefix, token)
        if home is not None and home != variable.full_name:
            refs.add(home)
    return refs


def find_auxiliary(structure: ModelStructure, name: str) -> Variable:
    return resolve(name, structure.auxiliaries).unwrap(kind="Auxiliary", hint=AUXILIARY_HINT)


def inputs_of(structure: ModelStructure, auxiliary: Variable) -> Tuple[str, List[Variable]]:
    refs = references(structure, auxiliary)
    inputs = [v for v in structure.catalog if v.full_name in refs]
    return auxiliary.equation_text or "", inputs


def effects_of(structure: ModelStructure, auxiliary: Variable) -> List[Variable]:
    return [
        v
        for v in structure.catalog
        if v.full_name != auxiliary.full_name and auxiliary.full_name in references(structure, v)
    ]


__all__ = ["AUXILIARY_HINT", "references", "find_auxiliary", "inputs_of", "effects_of"]
