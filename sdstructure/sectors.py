from __future__ import annotations

"""
Sector Registry: loading and holding sector definitions.

Responsibilities:
- Load a model manifest (`model.yaml`) and the sector files it lists
- Parse each sector into immutable declarations: variables (short name,
  description, initial value, optional home-sector source), equations
  (`LHS ~ RHS` text) and the parameter dictionary
- Validate structure early: duplicate prefixes, undeclared equation targets,
  duplicate definitions and non-numeric values raise actionable errors

Design choices:
- The registry exclusively owns sector definitions. Every other component
  derives read-only views from it on each call.
- Parsing from plain dicts (`registry_from_dict`) is separated from file IO so
  tests can build small registries in memory.
"""

from dataclasses import dataclass, field, replace
import logging
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

import yaml

from .io_paths import DEFAULT_MODEL_DIR
from .naming import (
    DEFAULT_BUFFER_DESCRIPTION_PREFIXES,
    DEFAULT_BUFFER_MARKERS,
    DEFAULT_SEPARATOR,
    derivative_target,
    full_name,
    is_buffer_description,
    is_buffer_name,
    strip_time_notation,
)
from .scenario_loader import RunSpecs, coerce_numeric, runspecs_from_mapping

log = logging.getLogger(__name__)

MANIFEST_NAME = "model.yaml"


@dataclass(frozen=True)
class VariableDecl:
    short_name: str
    description: str = ""
    # Initial value, only meaningful for stocks
    init: float = 0.0
    # Explicit home-sector prefix for coupling placeholders
    source: Optional[str] = None

    @property
    def is_placeholder(self) -> bool:
        return not self.description


@dataclass(frozen=True)
class Equation:
    lhs: str
    rhs: str

    @property
    def derivative_of(self) -> Optional[str]:
        return derivative_target(self.lhs)

    @property
    def defines(self) -> str:
        """Short name of the variable this equation defines."""
        target = self.derivative_of
        if target is not None:
            return target
        return strip_time_notation(self.lhs)


@dataclass(frozen=True)
class ParameterDecl:
    name: str
    value: float
    description: str = ""


@dataclass(frozen=True)
class Conventions:
    """Structural conventions of the upstream model."""

    separator: str = DEFAULT_SEPARATOR
    buffer_markers: Tuple[str, ...] = DEFAULT_BUFFER_MARKERS
    buffer_description_prefixes: Tuple[str, ...] = DEFAULT_BUFFER_DESCRIPTION_PREFIXES

    def is_buffer(self, short_name: str, description: str = "") -> bool:
        return is_buffer_name(short_name, self.buffer_markers) or is_buffer_description(
            description, self.buffer_description_prefixes
        )


@dataclass(frozen=True)
class Sector:
    prefix: str
    name: str
    variables: Tuple[VariableDecl, ...] = ()
    equations: Tuple[Equation, ...] = ()
    parameters: Tuple[ParameterDecl, ...] = ()

    def descriptions(self) -> Dict[str, str]:
        return {v.short_name: v.description for v in self.variables}

    def variable(self, short_name: str) -> Optional[VariableDecl]:
        for v in self.variables:
            if v.short_name == short_name:
                return v
        return None

    def definition(self, short_name: str) -> Optional[Equation]:
        for eq in self.equations:
            if eq.defines == short_name:
                return eq
        return None


@dataclass(frozen=True)
class SectorRegistry:
    name: str
    sectors: Tuple[Sector, ...]
    conventions: Conventions = field(default_factory=Conventions)
    runspecs: RunSpecs = field(default_factory=RunSpecs)

    def __iter__(self) -> Iterator[Sector]:
        return iter(self.sectors)

    def __len__(self) -> int:
        return len(self.sectors)

    @property
    def prefixes(self) -> List[str]:
        return [s.prefix for s in self.sectors]

    def sector(self, prefix: str) -> Sector:
        for s in self.sectors:
            if s.prefix == prefix:
                return s
        raise KeyError(f"Unknown sector prefix '{prefix}'")

    def full_name(self, sector: Sector, short_name: str) -> str:
        return full_name(sector.prefix, short_name, self.conventions.separator)

    def with_parameter_overrides(self, overrides: Mapping[str, float]) -> "SectorRegistry":
        """Return a copy whose parameters carry the given full-name overrides.

        Keys must be parameter full names; unknown keys raise.
        """
        remaining = dict(overrides)
        new_sectors: List[Sector] = []
        for sector in self.sectors:
            params: List[ParameterDecl] = []
            for p in sector.parameters:
                key = self.full_name(sector, p.name)
                if key in remaining:
                    params.append(replace(p, value=float(remaining.pop(key))))
                else:
                    params.append(p)
            new_sectors.append(replace(sector, parameters=tuple(params)))
        if remaining:
            raise ValueError(f"Unknown parameter override(s): {sorted(remaining)}")
        return replace(self, sectors=tuple(new_sectors))


def _parse_equation(raw: object, where: str) -> Equation:
    if isinstance(raw, Mapping):
        lhs = str(raw.get("lhs", "")).strip()
        rhs = str(raw.get("rhs", "")).strip()
    elif isinstance(raw, str):
        if "~" not in raw:
            raise ValueError(f"{where}: equation must have the form 'LHS ~ RHS', got {raw!r}")
        lhs, rhs = (part.strip() for part in raw.split("~", 1))
    else:
        raise ValueError(f"{where}: equation must be a string or a mapping with lhs/rhs, got {raw!r}")
    if not lhs or not rhs:
        raise ValueError(f"{where}: equation has an empty side: {raw!r}")
    return Equation(lhs=lhs, rhs=rhs)


def _parse_variable(short_name: str, raw: object, where: str) -> VariableDecl:
    if raw is None or isinstance(raw, str):
        return VariableDecl(short_name=short_name, description=(raw or "").strip())
    if isinstance(raw, Mapping):
        return VariableDecl(
            short_name=short_name,
            description=str(raw.get("description") or "").strip(),
            init=coerce_numeric(raw.get("init", 0.0), f"{where}.{short_name}.init"),
            source=(str(raw["source"]).strip() if raw.get("source") else None),
        )
    raise ValueError(f"{where}: variable '{short_name}' must map to a description or a mapping")


def _parse_parameter(name: str, raw: object, where: str) -> ParameterDecl:
    if isinstance(raw, Mapping):
        return ParameterDecl(
            name=name,
            value=coerce_numeric(raw.get("value"), f"{where}.{name}.value"),
            description=str(raw.get("description") or "").strip(),
        )
    return ParameterDecl(name=name, value=coerce_numeric(raw, f"{where}.{name}"))


def sector_from_dict(data: Mapping[str, object], *, where: str = "sector") -> Sector:
    """Construct a validated `Sector` from its deserialized YAML mapping."""
    if not isinstance(data, Mapping):
        raise ValueError(f"{where}: sector definition must be a mapping")
    prefix = str(data.get("prefix") or "").strip()
    name = str(data.get("name") or prefix).strip()
    if not prefix:
        raise ValueError(f"{where}: missing 'prefix'")
    where = f"{where}[{prefix}]"

    raw_vars = data.get("variables") or {}
    raw_eqs = data.get("equations") or []
    raw_params = data.get("parameters") or {}
    if not isinstance(raw_vars, Mapping):
        raise ValueError(f"{where}: 'variables' must be a mapping of name -> description")
    if not isinstance(raw_eqs, list):
        raise ValueError(f"{where}: 'equations' must be a list")
    if not isinstance(raw_params, Mapping):
        raise ValueError(f"{where}: 'parameters' must be a mapping of name -> value")

    variables = tuple(_parse_variable(str(k), v, where) for k, v in raw_vars.items())
    equations = tuple(_parse_equation(e, f"{where}.equations[{i}]") for i, e in enumerate(raw_eqs))
    parameters = tuple(_parse_parameter(str(k), v, where) for k, v in raw_params.items())

    declared = {v.short_name for v in variables}
    clash = declared & {p.name for p in parameters}
    if clash:
        raise ValueError(f"{where}: names declared both as variable and parameter: {sorted(clash)}")

    defined: Dict[str, str] = {}
    for eq in equations:
        target = eq.defines
        if target not in declared:
            raise ValueError(f"{where}: equation '{eq.lhs} ~ {eq.rhs}' defines undeclared variable '{target}'")
        if target in defined:
            raise ValueError(f"{where}: variable '{target}' is defined by more than one equation")
        defined[target] = eq.rhs

    return Sector(prefix=prefix, name=name, variables=variables, equations=equations, parameters=parameters)


def registry_from_dict(
    data: Mapping[str, object],
    sectors: List[Sector],
) -> SectorRegistry:
    """Combine manifest settings and parsed sectors into a registry."""
    separator = str(data.get("separator") or DEFAULT_SEPARATOR)
    conventions = Conventions(
        separator=separator,
        buffer_markers=tuple(data.get("buffer_markers") or DEFAULT_BUFFER_MARKERS),
        buffer_description_prefixes=tuple(
            data.get("buffer_description_prefixes") or DEFAULT_BUFFER_DESCRIPTION_PREFIXES
        ),
    )

    seen: Dict[str, str] = {}
    for s in sectors:
        if s.prefix in seen:
            raise ValueError(f"Duplicate sector prefix '{s.prefix}' ({seen[s.prefix]} and {s.name})")
        if separator in s.prefix:
            raise ValueError(f"Sector prefix '{s.prefix}' must not contain the separator '{separator}'")
        seen[s.prefix] = s.name

    for s in sectors:
        for v in s.variables:
            if v.source is not None and v.source not in seen:
                raise ValueError(
                    f"Variable '{v.short_name}' in sector '{s.prefix}' names unknown source sector '{v.source}'"
                )

    return SectorRegistry(
        name=str(data.get("name") or "model"),
        sectors=tuple(sectors),
        conventions=conventions,
        runspecs=runspecs_from_mapping(data.get("runspecs")),
    )


def _read_yaml(path: Path) -> object:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValueError(f"Model file not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"Malformed YAML in {path}") from exc


def load_sector(path: Path) -> Sector:
    return sector_from_dict(_read_yaml(path), where=path.name)


def load_registry(model_dir: Path = DEFAULT_MODEL_DIR) -> SectorRegistry:
    """Load the manifest in `model_dir` and every sector file it lists."""
    model_dir = Path(model_dir)
    manifest_path = model_dir / MANIFEST_NAME
    log.info("Loading sector model from %s", manifest_path)
    manifest = _read_yaml(manifest_path)
    if not isinstance(manifest, Mapping):
        raise ValueError(f"{manifest_path} must deserialize to a mapping")
    files = manifest.get("sectors") or []
    if not isinstance(files, list) or not files:
        raise ValueError(f"{manifest_path}: 'sectors' must list at least one sector file")

    sectors: List[Sector] = []
    for rel in files:
        sector = load_sector(model_dir / str(rel))
        log.debug(
            "Sector %s (%s): %d variables, %d equations, %d parameters",
            sector.prefix,
            sector.name,
            len(sector.variables),
            len(sector.equations),
            len(sector.parameters),
        )
        sectors.append(sector)

    registry = registry_from_dict(manifest, sectors)
    log.info("Loaded model '%s' with %d sectors", registry.name, len(registry))
    return registry

