import unittest

from sdstructure.classifier import VariableKind, classify
from sdstructure.io_paths import DEFAULT_MODEL_DIR
from sdstructure.sectors import load_registry, registry_from_dict, sector_from_dict


class TestClassifierOnDemoModel(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.registry = load_registry(DEFAULT_MODEL_DIR)
        cls.structure = classify(cls.registry)

    def test_stock_catalog(self):
        names = [s.full_name for s in self.structure.stocks]
        self.assertEqual(
            names,
            [
                "cli₊CO2A",
                "cli₊PWA",
                "dem₊WEAL",
                "out₊CAP",
                "pop₊A0020",
                "pop₊A2040",
                "pop₊A4060",
                "pop₊A60PL",
                "pop₊EGDPP",
                "wel₊PAWBI",
            ],
        )

    def test_catalogs_sorted_and_disjoint(self):
        stocks = [s.full_name for s in self.structure.stocks]
        auxes = [a.full_name for a in self.structure.auxiliaries]
        self.assertEqual(stocks, sorted(stocks))
        self.assertEqual(auxes, sorted(auxes))
        self.assertFalse(set(stocks) & set(auxes))
        self.assertEqual(len(auxes), 25)

    def test_buffers_never_surface(self):
        public = [v.short_name for v in self.structure.catalog]
        self.assertNotIn("LV_PGDP_1", public)
        self.assertNotIn("RT_PGDP_2", public)
        kinds = {v.short_name: v.kind for v in self.structure.variables if v.prefix == "out"}
        self.assertIs(kinds["LV_PGDP_1"], VariableKind.INTERNAL_BUFFER)
        self.assertIs(kinds["RT_PGDP_1"], VariableKind.INTERNAL_BUFFER)
        self.assertIs(kinds["PGDP"], VariableKind.AUXILIARY)

    def test_placeholders_excluded_from_catalogs(self):
        public = {v.full_name for v in self.structure.catalog}
        for name in ("pop₊GDP", "dem₊POP", "wel₊CPP", "cli₊GDP"):
            self.assertNotIn(name, public)
        self.assertIn("out₊GDP", public)
        self.assertIn("pop₊POP", public)

    def test_full_name_formula_and_uniqueness(self):
        for v in self.structure.catalog:
            sector = self.registry.sector(v.prefix)
            self.assertEqual(v.full_name, v.prefix + "₊" + v.short_name)
            self.assertEqual(v.sector, sector.name)
            self.assertTrue(v.description)
        names = [v.full_name for v in self.structure.variables]
        self.assertEqual(len(names), len(set(names)))

    def test_time_notation_stripped(self):
        pwa = self.structure.get("cli₊PWA")
        self.assertEqual(pwa.equation_text, "(OW - PWA) / PD")
        self.assertEqual(pwa.description, "Perceived warming in atmosphere (deg C)")

    def test_alias_edges(self):
        aliases = self.structure.aliases
        self.assertEqual(aliases["pop₊GDP"], "out₊GDP")
        self.assertEqual(aliases["dem₊POP"], "pop₊POP")
        self.assertEqual(aliases["wel₊CPP"], "dem₊CPP")
        self.assertEqual(aliases["wel₊OW"], "cli₊OW")
        self.assertEqual(aliases["wel₊EGDPP"], "pop₊EGDPP")
        # Described variables are never aliases
        self.assertNotIn("out₊GDP", aliases)

    def test_home_of(self):
        self.assertEqual(self.structure.home_of("wel", "INEQ"), "dem₊INEQ")
        self.assertEqual(self.structure.home_of("out", "GDP"), "out₊GDP")
        self.assertIsNone(self.structure.home_of("out", "RT_PGDP_2"))
        self.assertIsNone(self.structure.home_of("out", "SHINV"))
        self.assertIsNone(self.structure.home_of("wel", "max"))

    def test_parameters_sorted_with_values(self):
        params = self.structure.parameters
        names = [p.full_name for p in params]
        self.assertEqual(names, sorted(names))
        gefr = next(p for p in params if p.full_name == "pop₊GEFR")
        self.assertEqual(gefr.value, 0.2)
        self.assertIs(gefr.kind, VariableKind.PARAMETER)


class TestClassifierEdgeCases(unittest.TestCase):
    def _registry(self, *sectors, **manifest):
        return registry_from_dict(manifest, [sector_from_dict(s) for s in sectors])

    def test_buffer_by_description_prefix(self):
        registry = self._registry(
            {
                "prefix": "a",
                "variables": {"S": "Stock", "DLY": "LV functions helper", "F": "Flow"},
                "equations": ["D(S) ~ F", "D(DLY) ~ F - DLY", "F ~ 1"],
            }
        )
        structure = classify(registry)
        self.assertEqual([s.full_name for s in structure.stocks], ["a₊S"])
        self.assertIs(structure.get("a₊DLY").kind, VariableKind.INTERNAL_BUFFER)

    def test_custom_buffer_markers(self):
        registry = self._registry(
            {
                "prefix": "a",
                "variables": {"S": "Stock", "DLY_1": "delay stage", "F": "Flow"},
                "equations": ["D(S) ~ F", "D(DLY_1) ~ F - DLY_1", "F ~ 1"],
            },
            buffer_markers=["DLY_"],
        )
        structure = classify(registry)
        self.assertNotIn("a₊DLY_1", [v.full_name for v in structure.catalog])

    def test_placeholder_without_unique_home(self):
        registry = self._registry(
            {"prefix": "a", "variables": {"X": "X in a"}, "equations": ["X ~ 1"]},
            {"prefix": "b", "variables": {"X": "X in b"}, "equations": ["X ~ 2"]},
            {"prefix": "c", "variables": {"X": "", "Y": "Uses X"}, "equations": ["Y ~ X"]},
        )
        structure = classify(registry)
        self.assertNotIn("c₊X", structure.aliases)
        self.assertIsNone(structure.home_of("c", "X"))

    def test_explicit_source_breaks_tie(self):
        registry = self._registry(
            {"prefix": "a", "variables": {"X": "X in a"}, "equations": ["X ~ 1"]},
            {"prefix": "b", "variables": {"X": "X in b"}, "equations": ["X ~ 2"]},
            {"prefix": "c", "variables": {"X": {"source": "b"}, "Y": "Uses X"}, "equations": ["Y ~ X"]},
        )
        structure = classify(registry)
        self.assertEqual(structure.aliases["c₊X"], "b₊X")

    def test_custom_separator(self):
        registry = self._registry(
            {"prefix": "a", "variables": {"X": "X in a"}, "equations": ["X ~ 1"]},
            separator=".",
        )
        self.assertEqual([v.full_name for v in classify(registry).auxiliaries], ["a.X"])


if __name__ == "__main__":
    unittest.main()
