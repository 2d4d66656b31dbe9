"""
Schema-driven table scanner.

A schema names the header-cell count that identifies the wanted tables and,
per data-cell index, the rule used to extract a value from that cell. Every
qualifying row becomes a record mapping column index to a Found value.

Found is a closed union of three shapes:

- Children: descendants of the cell matching a CSS selector
- InnerText: the cell's text nodes, untrimmed and in document order
- Cell: the cell element itself
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

import soupsieve
from bs4 import BeautifulSoup, Tag

from utils.exceptions import ScanError, SchemaError
from utils.logger import get_logger

logger = get_logger(__name__)


# Column rules

@dataclass(frozen=True)
class Matching:
    """Collect the descendants of the cell that match ``selector``."""
    selector: str


@dataclass(frozen=True)
class InnerAsText:
    """Collect the text nodes of the cell."""


@dataclass(frozen=True)
class TdElement:
    """Pass the cell through unchanged."""


Rule = Union[Matching, InnerAsText, TdElement]


# Found values

@dataclass
class Children:
    elements: List[Tag]


@dataclass
class InnerText:
    tokens: List[str]


@dataclass
class Cell:
    element: Tag


Found = Union[Children, InnerText, Cell]
Row = Dict[int, Found]


def _compile_selectors(columns: Dict[int, Optional[Rule]]) -> Dict[str, soupsieve.SoupSieve]:
    compiled = {}
    for index, rule in columns.items():
        if isinstance(rule, Matching) and rule.selector not in compiled:
            try:
                compiled[rule.selector] = soupsieve.compile(rule.selector)
            except soupsieve.SelectorSyntaxError as e:
                raise ScanError(
                    f"Failed to parse selector '{rule.selector}'",
                    {"column": index, "error": str(e).splitlines()[0]}
                )
    return compiled


@dataclass
class ExactSchema:
    """
    Every data cell has a rule and rows must have exactly that many cells.

    Column indices must run from 0 to len(columns) - 1.
    """
    header_count: int
    columns: Dict[int, Rule]
    _selectors: Dict[str, soupsieve.SoupSieve] = field(init=False, repr=False)

    def __post_init__(self):
        if sorted(self.columns) != list(range(len(self.columns))):
            raise ValueError(f"Exact schema columns must be 0..{len(self.columns) - 1}, got {sorted(self.columns)}")
        self._selectors = _compile_selectors(self.columns)

    def accepts(self, cell_count: int) -> bool:
        return cell_count == len(self.columns)

    def rule_for(self, index: int) -> Optional[Rule]:
        return self.columns[index]


@dataclass
class SparseSchema:
    """
    Only some data cells carry a rule; a None rule or an unmapped index
    means the column is ignored. Rows need at least as many cells as there
    are rule-bearing columns.
    """
    header_count: int
    columns: Dict[int, Optional[Rule]]
    _selectors: Dict[str, soupsieve.SoupSieve] = field(init=False, repr=False)

    def __post_init__(self):
        self._selectors = _compile_selectors(self.columns)

    @property
    def required_cells(self) -> int:
        return sum(1 for rule in self.columns.values() if rule is not None)

    def accepts(self, cell_count: int) -> bool:
        return cell_count >= self.required_cells

    def rule_for(self, index: int) -> Optional[Rule]:
        return self.columns.get(index)


Schema = Union[ExactSchema, SparseSchema]


def _apply(rule: Rule, cell: Tag, schema: Schema) -> Found:
    if isinstance(rule, Matching):
        return Children(list(schema._selectors[rule.selector].select(cell)))
    if isinstance(rule, InnerAsText):
        return InnerText([str(s) for s in cell.strings])
    if isinstance(rule, TdElement):
        return Cell(cell)
    raise TypeError(f"Unknown column rule {rule!r}")


def scan(
    document: BeautifulSoup,
    schema: Schema,
    table_index_filter: Optional[Sequence[int]] = None
) -> List[Row]:
    """
    Extract row records from every table of ``document`` matching ``schema``.

    Args:
        document: Parsed HTML document
        schema: ExactSchema or SparseSchema
        table_index_filter: Positions of the tables to consider (optional)

    Returns:
        Row records in document order

    Raises:
        ScanError: the document has no tables, or none matches the schema
    """
    tables = document.find_all("table")

    if not tables:
        raise ScanError("Provided html document does not contain any tables")

    rows: List[Row] = []
    qualifying_tables = 0

    for table_index, table in enumerate(tables):
        if table_index_filter is not None and table_index not in table_index_filter:
            logger.info(f"Skipping table number {table_index} as it's not within the search range")
            continue

        header_count = len(table.find_all("th"))
        if header_count != schema.header_count:
            logger.warning(
                f"Skipping table number {table_index} as it has {header_count} columns, "
                f"but {schema.header_count} are required"
            )
            continue

        qualifying_tables += 1

        for table_row in table.find_all("tr"):
            cells = table_row.find_all("td")
            if not schema.accepts(len(cells)):
                continue

            record: Row = {}
            for cell_index, cell in enumerate(cells):
                rule = schema.rule_for(cell_index)
                if rule is None:
                    continue
                record[cell_index] = _apply(rule, cell, schema)

            rows.append(record)

    if qualifying_tables == 0:
        raise ScanError(
            f"No table with {schema.header_count} header cells found",
            {"tables": len(tables)}
        )

    logger.debug(f"Scanned {qualifying_tables} tables into {len(rows)} rows")
    return rows


# Found unwrapping; a shape mismatch means the schema and builder disagree

def _column(row: Row, index: int, what: str) -> Found:
    try:
        return row[index]
    except KeyError:
        raise SchemaError(f"Expected column {index} for {what}")


def expect_children(row: Row, index: int, what: str) -> List[Tag]:
    found = _column(row, index, what)
    if not isinstance(found, Children):
        raise SchemaError(f"Expected elements for {what}, got {type(found).__name__}")
    return found.elements


def expect_text(row: Row, index: int, what: str) -> List[str]:
    found = _column(row, index, what)
    if not isinstance(found, InnerText):
        raise SchemaError(f"Expected inner text for {what}, got {type(found).__name__}")
    return found.tokens


def expect_cell(row: Row, index: int, what: str) -> Tag:
    found = _column(row, index, what)
    if not isinstance(found, Cell):
        raise SchemaError(f"Expected the cell element for {what}, got {type(found).__name__}")
    return found.element
