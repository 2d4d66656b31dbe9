"""
International calling code builder.
"""

from typing import Dict, List, Mapping, Optional

from bs4 import BeautifulSoup

from builders.regions import Region
from resolution.identifier import Identifier
from resolution.resolver import NotFound, resolve
from scrapers.cells import WIKI_PREFIX, first_link_text
from scrapers.table_scanner import Matching, SparseSchema, TdElement, expect_cell, expect_children, scan
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA = SparseSchema(
    header_count=5,
    columns={
        0: TdElement(),     # territory
        1: Matching("a"),   # calling code
        2: None,
        3: None,
    }
)

CallingCode = str


def build_calling_codes(
    document: BeautifulSoup,
    regions: Mapping[Identifier, Region],
    aliases: Optional[Mapping[Identifier, List[str]]] = None,
) -> Dict[Identifier, CallingCode]:
    """
    Build the calling code registry. The first code seen for a territory wins.
    """
    items: Dict[Identifier, CallingCode] = {}

    for row in scan(document, SCHEMA):
        code = first_link_text(WIKI_PREFIX, expect_children(row, 1, "calling code"))
        if code is None:
            # Another table on the page with the same column count
            logger.debug("Expected calling code link text, skipping row")
            continue

        cell = expect_cell(row, 0, f"territory of calling code {code}")
        names = [s.strip() for s in cell.strings if s.strip()][:2]

        if not names:
            logger.warning(f"Skipping calling code {code}: no territory name")
            continue

        first = names[0]
        second = names[1] if len(names) > 1 else None
        logger.debug(f"Processing calling code {code} of {first} ({second})")

        try:
            region_id, _ = resolve(first, second, regions, aliases)
        except NotFound as e:
            logger.warning(f"Skipping calling code {code}: {e}")
            continue

        if region_id in items:
            logger.warning(f"Skipping calling code {code} for {region_id}: Duplicate entry")
            continue

        items[region_id] = code

    logger.info(f"Built {len(items)} calling codes")
    return items
