#!/usr/bin/env python3
from __future__ import annotations

"""
Command-line inspector for a sector model.

Responsibilities:
- Configure logging to both console and `logs/run.log`
- Load the sector registry (bundled demo model unless `--model-dir` is given)
- Answer structure queries: stocks, flows, auxiliaries, dependencies, parameters
- Optionally run a scenario (`--scenario` or `--preset`) and list solution
  variables or print one variable's time series

Query failures (unknown or ambiguous names) print the error, including any
suggestions, and exit with status 1.
"""

import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional

import pandas as pd

from sdstructure.decompose import is_undecomposed
from sdstructure.errors import ModelQueryError
from sdstructure.io_paths import DEFAULT_MODEL_DIR, LOGS_DIR, OUTPUT_DIR, SCENARIOS_DIR
from sdstructure.queries import (
    auxiliary_effects,
    auxiliary_inputs,
    flow_stocks,
    get_timeseries,
    list_auxiliaries,
    list_flows,
    list_parameters,
    list_stocks,
    stock_flows,
    variable_list,
)
from sdstructure.scenario_loader import Scenario, echo_scenario, load_and_validate_scenario
from sdstructure.sectors import SectorRegistry, load_registry
from sdstructure.solver import run_scenario
from sdstructure.utils_logging import configure_logging


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Sector model structure inspector")
    p.add_argument("--model-dir", type=str, default=str(DEFAULT_MODEL_DIR), help="Directory holding model.yaml")
    group = p.add_mutually_exclusive_group()
    group.add_argument("--scenario", type=str, help="Path to a scenario YAML/JSON file")
    group.add_argument("--preset", type=str, help="Scenario preset name under 'scenarios/' (e.g. 'baseline')")
    p.add_argument("--debug", action="store_true")

    sub = p.add_subparsers(dest="command", required=True)
    sub.add_parser("stocks", help="List every stock with its rate equation")
    sub.add_parser("flows", help="List every flow term and the stocks it feeds or drains")
    sub.add_parser("auxiliaries", help="List every auxiliary variable")
    sub.add_parser("parameters", help="List every parameter with its value")
    sub.add_parser("variables", help="Run the scenario and list solution variables")
    for name, help_text in (
        ("stock", "Show the inflows and outflows of a stock"),
        ("flow", "Show which stocks a flow term feeds or drains"),
        ("inputs", "Show the direct inputs of an auxiliary"),
        ("effects", "Show the direct effects of an auxiliary"),
    ):
        sp = sub.add_parser(name, help=help_text)
        sp.add_argument("name")
    ts = sub.add_parser("timeseries", help="Run the scenario and print one variable's time series")
    ts.add_argument("name")
    ts.add_argument("--csv", action="store_true", help="Also write the series to output/<name>.csv")
    return p.parse_args(argv)


def _resolve_scenario_path(scenario: str | None, preset: str | None) -> Optional[Path]:
    """Explicit path wins; a preset resolves to `<preset>.yaml|.json` under SCENARIOS_DIR."""
    if scenario:
        return Path(scenario)
    if preset:
        for suffix in (".yaml", ".json"):
            candidate = SCENARIOS_DIR / f"{preset}{suffix}"
            if candidate.exists():
                return candidate
        available = sorted(p.stem for p in SCENARIOS_DIR.glob("*.y*ml")) + sorted(p.stem for p in SCENARIOS_DIR.glob("*.json"))
        raise FileNotFoundError(
            f"Preset '{preset}' not found under {SCENARIOS_DIR}. Available presets: {', '.join(available) or '(none)'}"
        )
    return None


def _load_scenario(args: argparse.Namespace, registry: SectorRegistry, log: logging.Logger) -> Scenario:
    path = _resolve_scenario_path(args.scenario, args.preset)
    if path is None:
        scenario = Scenario(name="defaults", runspecs=registry.runspecs)
    else:
        scenario = load_and_validate_scenario(path, registry=registry)
        log.info("Loaded scenario '%s' from %s", scenario.name, path)
    echo_scenario(scenario, log)
    return scenario


def _print_json(obj: object) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def run_command(args: argparse.Namespace, registry: SectorRegistry, log: logging.Logger) -> None:
    cmd = args.command
    if cmd == "stocks":
        for s in list_stocks(registry):
            print(f"{s['sector']:<14} {s['name']:<20} {s['description']}")
            print(f"{'':<14} rate = {s['equation']}")
    elif cmd == "stock":
        record = stock_flows(registry, args.name)
        if is_undecomposed(record["inflows"], record["outflows"]):
            log.info("Rate of %s is not a sum of named terms; reported whole as one inflow", record["name"])
        _print_json(record)
    elif cmd == "flows":
        for f in list_flows(registry):
            print(f["name"])
            if f["as_inflow_of"]:
                print(f"   inflow of:  {', '.join(f['as_inflow_of'])}")
            if f["as_outflow_of"]:
                print(f"   outflow of: {', '.join(f['as_outflow_of'])}")
    elif cmd == "flow":
        _print_json(flow_stocks(registry, args.name))
    elif cmd == "auxiliaries":
        for a in list_auxiliaries(registry):
            print(f"{a['sector']:<14} {a['name']:<20} {a['description']}")
    elif cmd == "inputs":
        _print_json(auxiliary_inputs(registry, args.name))
    elif cmd == "effects":
        _print_json(auxiliary_effects(registry, args.name))
    elif cmd == "parameters":
        for prm in list_parameters(registry):
            print(f"{prm['sector']:<14} {prm['name']:<20} {prm['value']:<12g} {prm['description']}")
    elif cmd in ("variables", "timeseries"):
        solution = run_scenario(registry, _load_scenario(args, registry, log))
        if cmd == "variables":
            for name, desc in variable_list(solution):
                print(f"{name:<20} {desc}")
            return
        ts = get_timeseries(solution, args.name)
        frame = pd.DataFrame({"t": ts["t"], "values": ts["values"]})
        print(frame.to_string(index=False))
        if args.csv:
            OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
            out_path = OUTPUT_DIR / f"{args.name}.csv"
            frame.to_csv(out_path, index=False)
            log.info("Wrote %s", out_path)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(LOGS_DIR, debug=args.debug)
    log = logging.getLogger("inspector")

    registry = load_registry(Path(args.model_dir))
    try:
        run_command(args, registry, log)
    except ModelQueryError as exc:
        log.error("%s", exc)
        print(f"Error: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
