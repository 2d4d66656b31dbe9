"""
Currency builder.

A currency circulating in several territories appears once per territory
in the source table; rows sharing a settlement code are merged into one
Currency whose regions list grows.
"""

from typing import Dict, List, Mapping, Optional

from bs4 import BeautifulSoup
from pydantic import BaseModel, ValidationError

from builders.regions import Region
from resolution.identifier import Identifier
from resolution.resolver import NotFound, resolve
from scrapers.cells import WIKI_PREFIX, first_link_text, inner_text_first_if, link_title_and_text
from scrapers.table_scanner import ExactSchema, InnerAsText, Matching, expect_children, expect_text, scan
from utils.exceptions import SchemaError
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA = ExactSchema(
    header_count=6,
    columns={
        0: Matching("a"),   # territory where used
        1: Matching("a"),   # currency name
        2: InnerAsText(),   # symbol
        3: InnerAsText(),   # ISO 4217 code
        4: Matching("a"),   # fractional unit
        5: InnerAsText(),   # fractional units per basic unit
    }
)


class Fraction(BaseModel):
    name: str
    basic: int

    def __str__(self) -> str:
        return f"{self.name} ({self.basic} to 1)"


class Currency(BaseModel):
    name: str
    symbol: str
    fraction: Fraction
    regions: List[Identifier] = []

    def __str__(self) -> str:
        return f"{self.name} ({self.symbol})"


def _settlement_code(tokens: List[str]) -> Optional[str]:
    for token in tokens:
        if len(token.strip()) == 3:
            return token.strip().upper()
    return None


def _first_int(tokens: List[str]) -> Optional[int]:
    for token in tokens:
        try:
            return int(token.strip())
        except ValueError:
            continue
    return None


def build_currencies(
    document: BeautifulSoup,
    regions: Mapping[Identifier, Region],
    aliases: Optional[Mapping[Identifier, List[str]]] = None,
) -> Dict[str, Currency]:
    """
    Build the currency registry from the list of circulating currencies.

    Args:
        document: List of circulating currencies page
        regions: Reference registry for the territories
        aliases: Seed alias table (optional)

    Returns:
        Settlement code to Currency
    """
    items: Dict[str, Currency] = {}

    for row in scan(document, SCHEMA):
        code = _settlement_code(expect_text(row, 3, "currency ISO code"))
        if code is None:
            logger.warning(f"Skipping currency {expect_text(row, 3, 'currency ISO code')} with invalid ISO code")
            continue

        title, text = link_title_and_text(WIKI_PREFIX, expect_children(row, 0, "currency territory"))
        logger.debug(f"Processing currency of {title} ({text})")

        if title is None and text is None:
            logger.warning(f"Skipping currency {code}: no territory link")
            continue

        try:
            region_id, region = resolve(title, text, regions, aliases)
        except NotFound as e:
            logger.warning(f"Skipping currency {code}: {e}")
            continue

        existing = items.get(code)
        if existing is not None:
            if region_id in existing.regions:
                logger.debug(f"{region.name} already listed for currency {existing.name}")
            else:
                logger.info(f"Adding {region.name} to the list of regions where currency {existing.name} circulates")
                existing.regions.append(region_id)
            continue

        name = first_link_text(WIKI_PREFIX, expect_children(row, 1, f"currency name of {region.name}"))
        if name is None:
            logger.warning(f"Skipping currency of {region.name} with invalid name")
            continue

        symbol = inner_text_first_if(1, None, expect_text(row, 2, f"symbol of {name}"))
        if symbol is None:
            logger.warning(f"Skipping currency '{name}' of {region.name} with invalid symbol")
            continue

        fraction_name = first_link_text(WIKI_PREFIX, expect_children(row, 4, f"fraction of {name}"))
        if fraction_name is None:
            logger.warning(f"Skipping currency '{name}' of {region.name} with invalid fraction name")
            continue

        basic = _first_int(expect_text(row, 5, f"fraction basic of {name}"))
        if basic is None:
            logger.warning(f"Skipping currency '{name}' of {region.name} with invalid fraction basic")
            continue

        try:
            items[code] = Currency(
                name=name,
                symbol=symbol.split(" ")[0],
                fraction=Fraction(name=fraction_name, basic=basic),
                regions=[region_id]
            )
        except ValidationError as e:
            raise SchemaError(f"Invalid currency entry {code}", {"errors": e.error_count()}) from e

    logger.info(f"Built {len(items)} currencies")
    return items
