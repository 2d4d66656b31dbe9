"""
Language builder.

Two passes over two documents. The ISO 639 code table establishes the
languages; the zone table then attaches to each language the territories
where it is official or regionally recognised. Zone cells are free-form
(lists, inline links, prose), so candidate names are gathered broadly and
only exact matches against known language names count.
"""

from typing import Dict, List, Mapping, Optional, Tuple

from bs4 import BeautifulSoup, Tag
from pydantic import BaseModel

from builders.regions import Region
from resolution.identifier import Identifier, canonicalize
from resolution.resolver import NotFound, resolve
from scrapers.cells import WIKI_PREFIX, link_text_if, link_title_and_text, link_title_if
from scrapers.table_scanner import Matching, SparseSchema, TdElement, expect_cell, expect_children, scan
from utils.exceptions import SchemaError
from utils.logger import get_logger

logger = get_logger(__name__)

LOC_PREFIX = "https://www.loc.gov/standards/iso639-2/"

CODES_SCHEMA = SparseSchema(
    header_count=6,
    columns={
        0: Matching("a"),       # language name
        1: Matching("a"),       # 639-1
        2: Matching("code"),    # 639-2/T
        3: Matching("code"),    # 639-2/B
        4: Matching("code"),    # 639-3
        5: None,
    }
)

ZONES_SCHEMA = SparseSchema(
    header_count=6,
    columns={
        0: Matching("a"),   # territory
        1: TdElement(),     # official languages
        2: TdElement(),     # regional languages
        3: None,
        4: None,
        5: None,
    }
)

STOP_WORDS = frozenset([
    "has", "of", "de", "are", "in", "their", "they", "none", "and", "all", "have",
    "languages", "ethnic", "groups", "official", "territories", "facto",
    "status", "spoken", "another", "native", "wherever", "predominate", "autonomous",
    "republic"
])

MIN_WORD_LENGTH = 3


class Iso639(BaseModel):
    set1: str
    set2_t: str
    set2_b: str
    set3: str

    def __str__(self) -> str:
        return self.set1


class Language(BaseModel):
    name_short: str
    name_long: str
    iso639: Iso639
    regions: List[Identifier] = []

    @property
    def display_names(self) -> Tuple[str, str]:
        return self.name_short, self.name_long

    def __str__(self) -> str:
        return self.name_short


def _code(row, index: int, what: str) -> str:
    elements = expect_children(row, index, what)
    if not elements:
        raise SchemaError(f"Expected a code element for {what}")

    element = elements[0]
    bold = element.find("b")
    source = bold if bold is not None else element
    return source.get_text().strip()


def build_languages(document: BeautifulSoup) -> Dict[Identifier, Language]:
    """
    Build the language registry from the ISO 639 code table.

    Raises:
        SchemaError: a row misses its name or any of its codes
    """
    items: Dict[Identifier, Language] = {}

    for row in scan(document, CODES_SCHEMA):
        names = None
        for element in expect_children(row, 0, "language name"):
            title = link_title_if(WIKI_PREFIX, element)
            text = link_text_if(WIKI_PREFIX, element)
            if title is not None and text is not None:
                names = (text, title)
                break

        if names is None:
            raise SchemaError("Expected to find a link with language name")

        name_short, name_long = names

        set1 = next(
            (t for t in (link_text_if(LOC_PREFIX, e) for e in expect_children(row, 1, f"639-1 of {name_long}"))
             if t is not None),
            None
        )
        if set1 is None:
            raise SchemaError(f"Expected to find a link with 2 letter language code for {name_long}")

        iso639 = Iso639(
            set1=set1,
            set2_t=_code(row, 2, f"639-2/T of {name_long}"),
            set2_b=_code(row, 3, f"639-2/B of {name_long}"),
            set3=_code(row, 4, f"639-3 of {name_long}")
        )

        items[canonicalize(iso639.set3)] = Language(
            name_short=name_short,
            name_long=name_long,
            iso639=iso639
        )

    logger.info(f"Built {len(items)} languages")
    return items


def _split_words(element: Tag, items: List[str]) -> None:
    for s in element.strings:
        for token in s.split():
            word = "".join(c for c in token if c.isalpha())

            if len(word) < MIN_WORD_LENGTH:
                continue
            if word.lower() in STOP_WORDS:
                continue

            items.append(word)


def candidate_names(cell: Tag) -> List[str]:
    """
    Possible language names mentioned in a zone table cell, deduplicated.
    """
    items: List[str] = []

    for li in cell.find_all("li"):
        link = li.find("a")
        text = link_text_if(WIKI_PREFIX, link) if link is not None else None
        if text is not None:
            items.append(text)
            title = link_title_if(WIKI_PREFIX, link)
            if title is not None:
                items.append(title)
            continue

        _split_words(li, items)

    for a in cell.find_all("a"):
        text = link_text_if(WIKI_PREFIX, a)
        if text is not None:
            items.append(text)
            title = link_title_if(WIKI_PREFIX, a)
            if title is not None:
                items.append(title)

    _split_words(cell, items)

    return sorted(set(items))


def _attach(cell: Tag, languages: Mapping[Identifier, Language], region_id: Identifier) -> None:
    for candidate in candidate_names(cell):
        wanted = candidate.lower()

        language = next(
            (lang for lang in languages.values()
             if lang.name_short.lower() == wanted or lang.name_long.lower() == wanted),
            None
        )
        if language is None:
            continue

        if region_id in language.regions:
            logger.debug(f"Language {candidate} already has region {region_id}")
            continue

        logger.info(f"Added {region_id} to language {language.name_short}")
        language.regions.append(region_id)


def attach_language_zones(
    document: BeautifulSoup,
    regions: Mapping[Identifier, Region],
    languages: Mapping[Identifier, Language],
    aliases: Optional[Mapping[Identifier, List[str]]] = None,
) -> None:
    """
    Attach territories to languages in place from the languages by country
    table. Languages never gain the same territory twice.
    """
    for row in scan(document, ZONES_SCHEMA):
        title, text = link_title_and_text(WIKI_PREFIX, expect_children(row, 0, "language territory"))
        logger.debug(f"Processing languages of {title} ({text})")

        if title is None and text is None:
            logger.warning("Skipping language row without territory link")
            continue

        try:
            region_id, region = resolve(title, text, regions, aliases)
        except NotFound as e:
            logger.warning(f"Skipping language region {title} / {text}: {e}")
            continue

        logger.debug(f"Found region {region.name} from language zones")

        _attach(expect_cell(row, 1, f"official languages of {region_id}"), languages, region_id)
        _attach(expect_cell(row, 2, f"regional languages of {region_id}"), languages, region_id)

    attached = sum(1 for lang in languages.values() if lang.regions)
    logger.info(f"{attached} of {len(languages)} languages have at least one region")
