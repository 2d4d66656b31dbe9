"""
Tests for the calling code builder (builders/calling_codes.py)
"""

from builders.calling_codes import build_calling_codes
from conftest import page, table, wiki


def codes_page(*rows):
    return page(table(5, list(rows)))


class TestBuildCallingCodes:
    """Tests for build_calling_codes()."""

    def test_basic_rows(self, regions):
        document = codes_page(
            [wiki("France"), wiki("+33"), "", ""],
            [wiki("Germany"), wiki("+49"), "", ""],
        )
        assert build_calling_codes(document, regions) == {"fr": "+33", "de": "+49"}

    def test_duplicate_region_keeps_first_code(self, regions):
        document = codes_page(
            [wiki("France"), wiki("+33"), "", ""],
            [wiki("France"), wiki("+262"), "", ""],
        )
        assert build_calling_codes(document, regions) == {"fr": "+33"}

    def test_second_string_of_the_cell_is_tried(self, regions):
        document = codes_page(["<i>Deutschland</i> <b>Germany</b>", wiki("+49"), "", ""])
        assert build_calling_codes(document, regions) == {"de": "+49"}

    def test_aliases_are_used(self, regions, aliases):
        document = codes_page(["Côte d'Ivoire", wiki("+225"), "", ""])
        assert build_calling_codes(document, regions, aliases) == {"ci": "+225"}

    def test_row_without_code_link_is_skipped(self, regions):
        document = codes_page(
            [wiki("France"), "33", "", ""],
            [wiki("Germany"), wiki("+49"), "", ""],
        )
        assert build_calling_codes(document, regions) == {"de": "+49"}

    def test_unknown_region_is_skipped(self, regions):
        document = codes_page(["Atlantis", wiki("+999"), "", ""])
        assert build_calling_codes(document, regions) == {}
