"""
Tests for the schema-driven table scanner (scrapers/table_scanner.py)

Tests cover:
- Exact and sparse schema row acceptance
- Column rules and Found shapes
- Table filtering by header count and index
- Fatal scan errors
"""

import pytest

from conftest import page, parse, table
from scrapers.table_scanner import (
    Cell,
    Children,
    ExactSchema,
    InnerAsText,
    InnerText,
    Matching,
    SparseSchema,
    TdElement,
    expect_cell,
    expect_children,
    expect_text,
    scan,
)
from utils.exceptions import ScanError, SchemaError


SIX = ExactSchema(
    header_count=6,
    columns={i: InnerAsText() for i in range(6)}
)


class TestExactSchema:
    """Tests for ExactSchema scanning."""

    def test_six_cell_row_yields_one_record(self):
        document = page(
            table(6, [["a", "b", "c", "d", "e", "f"]]),
            table(5, [["1", "2", "3", "4", "5"]]),
        )
        rows = scan(document, SIX)

        assert len(rows) == 1
        assert len(rows[0]) == 6
        assert rows[0][5] == InnerText(["f"])

    def test_rows_with_other_cell_counts_are_dropped(self):
        document = page(table(6, [["a"] * 6, ["a"] * 5, ["a"] * 7]))
        assert len(scan(document, SIX)) == 1

    def test_columns_must_be_contiguous(self):
        with pytest.raises(ValueError):
            ExactSchema(header_count=3, columns={0: InnerAsText(), 2: InnerAsText()})


class TestSparseSchema:
    """Tests for SparseSchema scanning."""

    def test_accepts_row_with_enough_ruled_cells(self):
        schema = SparseSchema(
            header_count=4,
            columns={0: InnerAsText(), 1: None, 2: TdElement(), 3: None}
        )
        document = page(table(4, [["x", "y", "z"]]))
        rows = scan(document, schema)

        assert len(rows) == 1
        assert set(rows[0]) == {0, 2}
        assert isinstance(rows[0][2], Cell)

    def test_required_cells_counts_only_rules(self):
        schema = SparseSchema(header_count=4, columns={0: InnerAsText(), 1: None, 3: Matching("a")})
        assert schema.required_cells == 2
        assert not schema.accepts(1)
        assert schema.accepts(2)


class TestRules:
    """Tests for column rules and Found shapes."""

    def test_matching_collects_descendants(self):
        schema = ExactSchema(header_count=1, columns={0: Matching("a > span")})
        document = page(table(1, [['<a href="#"><span>FR</span></a><span>no</span>']]))
        found = scan(document, schema)[0][0]

        assert isinstance(found, Children)
        assert [e.get_text() for e in found.elements] == ["FR"]

    def test_unmatched_selector_gives_empty_children(self):
        schema = ExactSchema(header_count=1, columns={0: Matching("code")})
        document = page(table(1, [["plain"]]))
        assert scan(document, schema)[0][0] == Children([])

    def test_inner_text_keeps_tokens_untrimmed_in_order(self):
        schema = ExactSchema(header_count=1, columns={0: InnerAsText()})
        document = page(table(1, [[" € <sup>1</sup>"]]))
        assert scan(document, schema)[0][0].tokens == [" € ", "1"]

    def test_malformed_selector_is_a_scan_error(self):
        with pytest.raises(ScanError):
            SparseSchema(header_count=1, columns={0: Matching("a[")})


class TestTableSelection:
    """Tests for table filtering."""

    def test_no_tables_is_a_scan_error(self):
        with pytest.raises(ScanError):
            scan(parse("<p>nothing here</p>"), SIX)

    def test_no_qualifying_table_is_a_scan_error(self):
        with pytest.raises(ScanError):
            scan(page(table(5, [["a"] * 5])), SIX)

    def test_index_filter_skips_other_tables(self):
        document = page(
            table(6, [["first"] * 6]),
            table(6, [["second"] * 6]),
        )
        rows = scan(document, SIX, table_index_filter=[1])

        assert len(rows) == 1
        assert rows[0][0].tokens == ["second"]

    def test_rows_from_all_qualifying_tables_in_order(self):
        document = page(
            table(6, [["one"] * 6]),
            table(6, [["two"] * 6, ["three"] * 6]),
        )
        assert [r[0].tokens[0] for r in scan(document, SIX)] == ["one", "two", "three"]


class TestExpect:
    """Tests for Found unwrapping."""

    def test_shape_mismatch_is_a_schema_error(self):
        row = {0: InnerText(["x"])}
        with pytest.raises(SchemaError):
            expect_children(row, 0, "names")
        with pytest.raises(SchemaError):
            expect_cell(row, 0, "cell")

    def test_missing_column_is_a_schema_error(self):
        with pytest.raises(SchemaError):
            expect_text({}, 3, "code")

    def test_matching_shape_is_returned(self):
        assert expect_text({0: InnerText(["x"])}, 0, "x") == ["x"]
