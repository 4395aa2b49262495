import unittest

from sdstructure.errors import AmbiguousNameError, ModelQueryError, NotFoundError
from sdstructure.resolver import MAX_SUGGESTIONS, NameRecord, ResolutionStatus, resolve

RECORDS = [
    NameRecord("pop₊POP", "POP"),
    NameRecord("dem₊POP", "POP"),
    NameRecord("pop₊A0020", "A0020"),
    NameRecord("wel₊AWBI", "AWBI"),
]


class TestResolver(unittest.TestCase):
    def test_unique_short_name(self):
        r = resolve("AWBI", RECORDS)
        self.assertTrue(r.ok)
        self.assertEqual(r.match.full_name, "wel₊AWBI")

    def test_full_name_wins_over_collision(self):
        r = resolve("dem₊POP", RECORDS)
        self.assertIs(r.status, ResolutionStatus.RESOLVED)
        self.assertEqual(r.unwrap().full_name, "dem₊POP")

    def test_ambiguous_short_name(self):
        r = resolve("POP", RECORDS)
        self.assertIs(r.status, ResolutionStatus.AMBIGUOUS)
        self.assertEqual(r.candidates, ("pop₊POP", "dem₊POP"))
        with self.assertRaises(AmbiguousNameError) as ctx:
            r.unwrap()
        self.assertIn("pop₊POP", str(ctx.exception))
        self.assertIn("Use the full namespaced name.", str(ctx.exception))

    def test_not_found_with_suggestions(self):
        r = resolve("A002", RECORDS)
        self.assertIs(r.status, ResolutionStatus.NOT_FOUND)
        self.assertIn("pop₊A0020", r.suggestions)
        with self.assertRaises(NotFoundError) as ctx:
            r.unwrap(kind="Stock", hint="Use list_stocks() to see available stocks.")
        msg = str(ctx.exception)
        self.assertTrue(msg.startswith("Stock 'A002' not found."))
        self.assertTrue(msg.endswith("Use list_stocks() to see available stocks."))

    def test_suggestions_cover_shared_short_name(self):
        r = resolve("POQ", RECORDS)
        self.assertIs(r.status, ResolutionStatus.NOT_FOUND)
        self.assertIn("pop₊POP", r.suggestions)
        self.assertIn("dem₊POP", r.suggestions)

    def test_suggestions_capped(self):
        many = [NameRecord(f"s₊V{i}", f"V{i}") for i in range(20)]
        r = resolve("V", many)
        self.assertLessEqual(len(r.suggestions), MAX_SUGGESTIONS)

    def test_errors_are_value_errors(self):
        with self.assertRaises(ValueError):
            resolve("nothing", []).unwrap()
        self.assertTrue(issubclass(AmbiguousNameError, ModelQueryError))


if __name__ == "__main__":
    unittest.main()
