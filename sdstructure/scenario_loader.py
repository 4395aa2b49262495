from __future__ import annotations

"""
Scenario Loader (YAML/JSON) & Strict Parameter Overrides

Responsibilities
- Load a single scenario file (YAML or JSON) containing optional `runspecs` and
  optional `overrides.parameters` blocks.
- Validate `runspecs` with defaults taken from the model manifest (falling
  back to 1980→2100, dt=0.5) and basic consistency checks.
- Validate override keys against the parameter names of the loaded sector
  registry. Keys may be full names (`pop₊GEFR`) or short names that are
  unique across sectors. Unknown keys are validation errors (strict policy)
  and carry close-match suggestions.

Design notes
- This module is pure and stateless; it accepts a registry and a file path and
  returns a validated, normalized `Scenario` object.
"""

from dataclasses import dataclass, field
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional

import yaml

from .errors import ModelQueryError
from .resolver import NameRecord, resolve

if TYPE_CHECKING:  # avoid circular import at runtime
    from .sectors import SectorRegistry  # noqa: F401

DEFAULT_START = 1980.0
DEFAULT_STOP = 2100.0
DEFAULT_DT = 0.5


@dataclass(frozen=True)
class RunSpecs:
    starttime: float = DEFAULT_START
    stoptime: float = DEFAULT_STOP
    dt: float = DEFAULT_DT

    @property
    def num_steps(self) -> int:
        """Number of recorded time points including both ends."""
        return int(round((self.stoptime - self.starttime) / self.dt)) + 1


@dataclass(frozen=True)
class Scenario:
    name: str
    runspecs: RunSpecs
    # Parameter full name -> value
    parameters: Dict[str, float] = field(default_factory=dict)


def coerce_numeric(value: object, field_name: str) -> float:
    """Coerce an object to a primitive float, stripping simple formatting symbols.

    No semantic transformation is applied (percent signs are removed, not
    divided by 100).
    """
    if isinstance(value, bool):
        raise ValueError(f"Non-numeric value for '{field_name}': {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        s = value.strip()
        for ch in ["%", "$", "€", "£", ","]:
            s = s.replace(ch, "")
        try:
            return float(s)
        except ValueError as exc:
            raise ValueError(f"Non-numeric value for '{field_name}': {value!r}") from exc
    raise ValueError(f"Non-numeric value for '{field_name}': {value!r}")


def runspecs_from_mapping(
    raw_runspecs: Optional[Mapping[str, object]], default: Optional[RunSpecs] = None
) -> RunSpecs:
    base = default or RunSpecs()
    rs = raw_runspecs or {}
    if not isinstance(rs, Mapping):
        raise ValueError("runspecs must be a mapping with starttime/stoptime/dt")
    start = coerce_numeric(rs.get("starttime", base.starttime), "runspecs.starttime")
    stop = coerce_numeric(rs.get("stoptime", base.stoptime), "runspecs.stoptime")
    dt = coerce_numeric(rs.get("dt", base.dt), "runspecs.dt")

    if dt <= 0:
        raise ValueError("runspecs.dt must be positive")
    if start >= stop:
        raise ValueError("runspecs.starttime must be less than runspecs.stoptime")
    return RunSpecs(start, stop, dt)


def _parameter_records(registry: "SectorRegistry") -> List[NameRecord]:
    return [
        NameRecord(full_name=registry.full_name(sector, p.name), short_name=p.name)
        for sector in registry
        for p in sector.parameters
    ]


def validate_parameter_overrides(
    overrides: Mapping[str, object], *, registry: "SectorRegistry"
) -> Dict[str, float]:
    """Normalize override keys to parameter full names and values to floats."""
    if not isinstance(overrides, Mapping):
        raise ValueError("overrides.parameters must be a mapping of name -> value")
    records = _parameter_records(registry)

    out: Dict[str, float] = {}
    problems: List[str] = []
    for key, raw_value in overrides.items():
        try:
            match = resolve(str(key), records).unwrap(kind="Parameter")
        except ModelQueryError as exc:
            problems.append(str(exc))
            continue
        out[match.full_name] = coerce_numeric(raw_value, f"parameters['{key}']")

    if problems:
        raise ValueError("Invalid parameter overrides:\n- " + "\n- ".join(problems))
    return out


def _load_raw_scenario(path: Path) -> Dict[str, object]:
    """Load YAML/JSON as a plain dict; ensure the root is a mapping."""
    if not path.exists():
        raise FileNotFoundError(f"Scenario file not found: {path}")
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ValueError("Scenario file must deserialize to a mapping/dictionary at top level")
    return data


def load_and_validate_scenario(path: Path, *, registry: "SectorRegistry") -> Scenario:
    """Load a scenario file and validate it against the sector registry.

    Parameters
    ----------
    path : Path
        Path to YAML or JSON scenario file
    registry : SectorRegistry
        Loaded sector definitions providing parameter names and default runspecs

    Returns
    -------
    Scenario
        Validated, normalized scenario data structure
    """
    path = Path(path)
    raw = _load_raw_scenario(path)
    name = str(raw.get("name") or path.stem)
    runspecs = runspecs_from_mapping(raw.get("runspecs"), default=registry.runspecs)
    overrides_block = raw.get("overrides") or {}
    if not isinstance(overrides_block, Mapping):
        raise ValueError("overrides must be a mapping")
    parameters = validate_parameter_overrides(overrides_block.get("parameters") or {}, registry=registry)
    return Scenario(name=name, runspecs=runspecs, parameters=parameters)


def echo_scenario(scenario: Scenario, log: logging.Logger) -> None:
    """Log the applied run settings and a sample of parameter overrides."""
    rs = scenario.runspecs
    log.info(
        "Scenario '%s': t=%.2f..%.2f dt=%.4g, %d parameter overrides",
        scenario.name,
        rs.starttime,
        rs.stoptime,
        rs.dt,
        len(scenario.parameters),
    )
    if scenario.parameters:
        sample = list(sorted(scenario.parameters.items()))[:5]
        log.debug("Parameter overrides (sample): %s", sample)
