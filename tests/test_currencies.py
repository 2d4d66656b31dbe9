"""
Tests for the currency builder (builders/currencies.py)
"""

from builders.currencies import Currency, Fraction, build_currencies
from conftest import page, table, wiki


def currency_row(territory, name="Euro", symbol="€", code="EUR", fraction="Cent", basic="100"):
    return [
        wiki(territory),
        wiki(name) if name else "",
        symbol,
        code,
        wiki(fraction, f"{fraction} (currency)") if fraction else "",
        basic,
    ]


def currencies_page(*rows):
    return page(table(6, list(rows)))


class TestBuildCurrencies:
    """Tests for build_currencies()."""

    def test_basic_row(self, regions):
        currencies = build_currencies(currencies_page(currency_row("France")), regions)

        assert currencies == {
            "EUR": Currency(
                name="Euro",
                symbol="€",
                fraction=Fraction(name="Cent", basic=100),
                regions=["fr"]
            )
        }

    def test_same_code_merges_regions(self, regions):
        document = currencies_page(currency_row("France"), currency_row("Belgium"))
        currencies = build_currencies(document, regions)

        assert list(currencies) == ["EUR"]
        assert currencies["EUR"].regions == ["fr", "be"]

    def test_merge_adds_region_once(self, regions):
        document = currencies_page(currency_row("France"), currency_row("France"))
        assert build_currencies(document, regions)["EUR"].regions == ["fr"]

    def test_code_is_first_three_letter_token(self, regions):
        document = currencies_page(currency_row("Germany", code="(none) <b>eur</b>"))
        assert list(build_currencies(document, regions)) == ["EUR"]

    def test_symbol_keeps_first_word(self, regions):
        document = currencies_page(currency_row("Ivory Coast", name="West African CFA franc", symbol="CFA F", code="XOF"))
        assert build_currencies(document, regions)["XOF"].symbol == "CFA"

    def test_territory_resolves_through_aliases(self, regions, aliases):
        document = currencies_page(currency_row("Deutschland"))
        assert build_currencies(document, regions, aliases)["EUR"].regions == ["de"]

    def test_row_without_code_is_skipped(self, regions):
        document = currencies_page(currency_row("France", code="—"))
        assert build_currencies(document, regions) == {}

    def test_unknown_territory_is_skipped(self, regions):
        document = currencies_page(currency_row("Atlantis"), currency_row("France"))
        assert build_currencies(document, regions)["EUR"].regions == ["fr"]

    def test_missing_pieces_skip_the_row(self, regions):
        document = currencies_page(
            currency_row("France", name=None),
            currency_row("Belgium", symbol=" "),
            currency_row("Germany", fraction=None),
            currency_row("Ivory Coast", basic="(none)"),
        )
        assert build_currencies(document, regions) == {}

    def test_first_complete_row_defines_the_currency(self, regions):
        document = currencies_page(
            currency_row("France", fraction=None),
            currency_row("Belgium"),
        )
        assert build_currencies(document, regions)["EUR"].regions == ["be"]
