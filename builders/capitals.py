"""
Capital city builder.

The exonym comes from the capital column link, endonyms from the
language-tagged spans of the native name column.
"""

from typing import Dict, List, Mapping, Optional

from bs4 import BeautifulSoup
from pydantic import BaseModel, field_validator

from builders.regions import Region
from resolution.identifier import Identifier
from resolution.resolver import NotFound, resolve
from scrapers.cells import WIKI_PREFIX, first_link_text, first_text, link_title_and_text
from scrapers.table_scanner import Matching, SparseSchema, expect_children, scan
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA = SparseSchema(
    header_count=5,
    columns={
        0: Matching("a"),           # territory
        1: Matching("a"),           # capital
        2: None,
        3: Matching("span[lang]"),  # native names
        4: None,
    }
)


class Capital(BaseModel):
    name: str
    endonyms: Optional[List[str]] = None

    @field_validator('endonyms')
    @classmethod
    def empty_as_none(cls, v):
        return v or None

    def __str__(self) -> str:
        if self.endonyms:
            return f"{self.name} ({', '.join(self.endonyms)})"
        return self.name


def build_capitals(
    document: BeautifulSoup,
    regions: Mapping[Identifier, Region],
    aliases: Optional[Mapping[Identifier, List[str]]] = None,
) -> Dict[Identifier, Capital]:
    """
    Build the capital registry. A later row for the same territory replaces
    an earlier one.
    """
    items: Dict[Identifier, Capital] = {}

    for row in scan(document, SCHEMA):
        title, text = link_title_and_text(WIKI_PREFIX, expect_children(row, 0, "capital territory"))
        logger.debug(f"Processing capital of {title} ({text})")

        if title is None and text is None:
            logger.warning("Skipping capital row without territory link")
            continue

        try:
            region_id, region = resolve(title, text, regions, aliases)
        except NotFound as e:
            logger.warning(f"Skipping capital for {text} / {title}: {e}")
            continue

        links = expect_children(row, 1, f"capital of {region_id}")
        name = first_link_text(WIKI_PREFIX, links)
        if name is None:
            logger.debug(f"Expected link text for capital name of {region_id}, none among {len(links)} elements")
            continue

        exonym = name.strip().lower()
        endonyms = []
        for span in expect_children(row, 3, f"capital endonyms of {region_id}"):
            endonym = first_text(span)
            if endonym is None or endonym.lower() == exonym:
                continue
            endonyms.append(endonym)

        items[region_id] = Capital(name=name, endonyms=endonyms)

    logger.info(f"Built {len(items)} capitals")
    return items
