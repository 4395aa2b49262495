from pathlib import Path
import textwrap
import unittest

import pytest

from sdstructure.io_paths import DEFAULT_MODEL_DIR
from sdstructure.sectors import (
    load_registry,
    registry_from_dict,
    sector_from_dict,
)


def _sector(prefix, variables, equations=(), parameters=None):
    return sector_from_dict(
        {
            "prefix": prefix,
            "name": prefix.title(),
            "variables": variables,
            "equations": list(equations),
            "parameters": parameters or {},
        }
    )


class TestDemoRegistry(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.registry = load_registry(DEFAULT_MODEL_DIR)

    def test_sectors_loaded_in_manifest_order(self):
        self.assertEqual(self.registry.prefixes, ["cli", "dem", "out", "pop", "wel"])
        self.assertEqual(len(self.registry), 5)
        self.assertEqual(self.registry.name, "demo")

    def test_runspecs_from_manifest(self):
        rs = self.registry.runspecs
        self.assertEqual((rs.starttime, rs.stoptime, rs.dt), (1980.0, 2100.0, 0.5))
        self.assertEqual(rs.num_steps, 241)

    def test_equation_targets(self):
        pop = self.registry.sector("pop")
        self.assertEqual(pop.definition("A0020").derivative_of, "A0020")
        self.assertEqual(pop.definition("A0020").rhs, "BIRTHS - PASS20")
        self.assertIsNone(pop.definition("GDP"))
        cli = self.registry.sector("cli")
        self.assertEqual(cli.definition("PWA").rhs, "(OW(t) - PWA(t)) / PD")

    def test_placeholder_with_source(self):
        gdp = self.registry.sector("pop").variable("GDP")
        self.assertTrue(gdp.is_placeholder)
        self.assertEqual(gdp.source, "out")

    def test_unknown_sector_prefix(self):
        with self.assertRaises(KeyError):
            self.registry.sector("xyz")

    def test_parameter_overrides_copy(self):
        updated = self.registry.with_parameter_overrides({"pop₊GEFR": 0.5})
        value = {p.name: p.value for p in updated.sector("pop").parameters}["GEFR"]
        original = {p.name: p.value for p in self.registry.sector("pop").parameters}["GEFR"]
        self.assertEqual(value, 0.5)
        self.assertEqual(original, 0.2)
        with self.assertRaises(ValueError):
            self.registry.with_parameter_overrides({"GEFR": 0.5})


class TestSectorValidation(unittest.TestCase):
    def test_equation_string_and_mapping_forms(self):
        s = _sector(
            "a",
            {"X": {"description": "Stock X", "init": 3}, "Y": "Aux Y"},
            ["D(X) ~ Y", {"lhs": "Y", "rhs": "2 * K"}],
            {"K": 1.5},
        )
        self.assertEqual(s.variable("X").init, 3.0)
        self.assertEqual(s.definition("Y").rhs, "2 * K")
        self.assertEqual(s.parameters[0].value, 1.5)

    def test_undeclared_equation_target_raises(self):
        with self.assertRaises(ValueError):
            _sector("a", {"X": "Aux X"}, ["Z ~ 1"])

    def test_duplicate_definition_raises(self):
        with self.assertRaises(ValueError):
            _sector("a", {"X": "Aux X"}, ["X ~ 1", "X ~ 2"])

    def test_missing_tilde_raises(self):
        with self.assertRaises(ValueError):
            _sector("a", {"X": "Aux X"}, ["X = 1"])

    def test_variable_parameter_clash_raises(self):
        with self.assertRaises(ValueError):
            _sector("a", {"K": "Aux K"}, ["K ~ 1"], {"K": 2})

    def test_non_numeric_parameter_raises(self):
        with self.assertRaises(ValueError):
            _sector("a", {"X": "Aux X"}, ["X ~ K"], {"K": "lots"})

    def test_duplicate_prefix_raises(self):
        s1 = _sector("a", {"X": "Aux X"}, ["X ~ 1"])
        s2 = _sector("a", {"Y": "Aux Y"}, ["Y ~ 1"])
        with self.assertRaises(ValueError):
            registry_from_dict({}, [s1, s2])

    def test_unknown_source_raises(self):
        s = _sector("a", {"X": {"source": "zzz"}})
        with self.assertRaises(ValueError):
            registry_from_dict({}, [s])

    def test_prefix_with_separator_raises(self):
        s = _sector("a₊b", {"X": "Aux X"}, ["X ~ 1"])
        with self.assertRaises(ValueError):
            registry_from_dict({}, [s])


def test_load_registry_from_files(tmp_path: Path):
    (tmp_path / "model.yaml").write_text(
        textwrap.dedent(
            """
            name: tiny
            runspecs: {starttime: 0, stoptime: 10, dt: 1}
            sectors: [one.yaml]
            """
        ),
        encoding="utf-8",
    )
    (tmp_path / "one.yaml").write_text(
        textwrap.dedent(
            """
            prefix: one
            variables:
              S: {description: "Stock", init: 1}
              F: "Flow"
            equations:
              - "D(S) ~ F"
              - "F ~ K * S"
            parameters:
              K: 0.1
            """
        ),
        encoding="utf-8",
    )
    registry = load_registry(tmp_path)
    assert registry.name == "tiny"
    assert registry.prefixes == ["one"]
    assert registry.runspecs.stoptime == 10.0
    assert registry.full_name(registry.sector("one"), "S") == "one₊S"


def test_load_registry_missing_manifest(tmp_path: Path):
    with pytest.raises(ValueError):
        load_registry(tmp_path)


def test_load_registry_malformed_yaml(tmp_path: Path):
    (tmp_path / "model.yaml").write_text("sectors: [one.yaml\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_registry(tmp_path)
