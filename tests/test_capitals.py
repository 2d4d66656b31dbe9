"""
Tests for the capital builder (builders/capitals.py)
"""

from builders.capitals import Capital, build_capitals
from conftest import page, table, wiki


def capital_row(territory, capital, *endonyms):
    spans = " ".join(f'<span lang="xx">{e}</span>' for e in endonyms)
    return [wiki(territory), wiki(capital) if capital else "Unknown", "", spans, ""]


def capitals_page(*rows):
    return page(table(5, list(rows)))


class TestBuildCapitals:
    """Tests for build_capitals()."""

    def test_endonyms_are_collected(self, regions):
        document = capitals_page(capital_row("Belgium", "Brussels", "Bruxelles", "Brussel"))
        assert build_capitals(document, regions)["be"] == Capital(name="Brussels", endonyms=["Bruxelles", "Brussel"])

    def test_endonym_equal_to_exonym_is_dropped(self, regions):
        document = capitals_page(capital_row("France", "Paris", " PARIS "))
        capital = build_capitals(document, regions)["fr"]

        assert capital.endonyms is None
        assert capital.model_dump(mode="json", exclude_none=True) == {"name": "Paris"}

    def test_later_row_replaces_earlier(self, regions):
        document = capitals_page(
            capital_row("Ivory Coast", "Abidjan"),
            capital_row("Ivory Coast", "Yamoussoukro"),
        )
        assert build_capitals(document, regions)["ci"].name == "Yamoussoukro"

    def test_missing_capital_link_is_skipped(self, regions):
        document = capitals_page(capital_row("Germany", None))
        assert build_capitals(document, regions) == {}

    def test_unknown_territory_is_skipped(self, regions):
        document = capitals_page(capital_row("Atlantis", "Poseidonis"))
        assert build_capitals(document, regions) == {}

    def test_spans_without_lang_are_ignored(self, regions):
        document = capitals_page([wiki("Germany"), wiki("Berlin"), "", "<span>Bärlin</span>", ""])
        assert build_capitals(document, regions)["de"].endonyms is None


class TestCapitalModel:
    """Tests for Capital."""

    def test_empty_endonym_list_becomes_none(self):
        assert Capital(name="Berlin", endonyms=[]).endonyms is None

    def test_str(self):
        assert str(Capital(name="Brussels", endonyms=["Bruxelles", "Brussel"])) == "Brussels (Bruxelles, Brussel)"
