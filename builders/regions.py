"""
Territorial code (ISO 3166) builder.

Each row of the ISO 3166 country code table becomes a Region keyed by its
two-letter code. The sovereignty column decides which sovereign state the
territory belongs to, and a structurally broken code column aborts the
whole build.
"""

from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag
from pydantic import BaseModel, ValidationError, field_validator

from builders.sovereign_states import SovereignState
from resolution.identifier import Identifier, canonicalize
from scrapers.cells import WIKI_PREFIX, first_link_title, first_text
from scrapers.table_scanner import ExactSchema, Matching, TdElement, expect_cell, expect_children, scan
from utils.exceptions import SchemaError
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA = ExactSchema(
    header_count=9,
    columns={
        0: Matching("a"),           # territory name
        1: Matching("a"),           # official state name
        2: TdElement(),             # sovereignty
        3: Matching("a > span"),    # alpha-2
        4: Matching("a > span"),    # alpha-3
        5: Matching("a > span"),    # numeric
        6: Matching("a"),           # ISO 3166-2 subdivision link
        7: Matching("a"),           # top level domains
    }
)

UN_MEMBER_MARKER = "un member"
# Sovereignty links point to an in-page anchor or to an article; the first
# one naming a known state wins
STATE_LINK_PREFIXES = ("#", WIKI_PREFIX)
ISO_3166_2_PREFIX = "ISO 3166-2:"


class Iso3166_1(BaseModel):
    a2: str
    a3: str
    num: int

    @field_validator('a2')
    @classmethod
    def validate_a2(cls, v):
        if len(v) != 2:
            raise ValueError(f'Expected 2 characters for a2, got {len(v)}')
        return v

    @field_validator('a3')
    @classmethod
    def validate_a3(cls, v):
        if len(v) != 3:
            raise ValueError(f'Expected 3 characters for a3, got {len(v)}')
        return v

    @field_validator('num')
    @classmethod
    def validate_num(cls, v):
        if not 0 <= v <= 999:
            raise ValueError(f'Expected at most 3 digits for num, got {v}')
        return v

    def __str__(self) -> str:
        return self.a2


class Region(BaseModel):
    name: str
    state_name: str
    un_member: bool
    sovereignty: Identifier
    iso_3166_1: Iso3166_1
    iso_3166_2: str
    tld: List[str]

    @field_validator('iso_3166_2')
    @classmethod
    def validate_iso_3166_2(cls, v):
        clean = v.strip().upper()
        suffix = clean[len(ISO_3166_2_PREFIX):]
        if not clean.startswith(ISO_3166_2_PREFIX) or len(suffix) != 2 or not suffix.isalpha():
            raise ValueError(f'Expected {ISO_3166_2_PREFIX}XX, got {clean}')
        return clean

    @field_validator('tld')
    @classmethod
    def validate_tld(cls, v):
        if not v:
            raise ValueError('Expected at least one top level domain')
        valid = []
        for domain in v:
            clean = domain.strip().lower()
            if not clean.startswith('.') or len(clean) != 3:
                raise ValueError(f'Expected .xx domain tld, got {clean}')
            valid.append(clean)
        return valid

    @property
    def display_names(self) -> Tuple[str, str]:
        return self.name, self.state_name

    def __str__(self) -> str:
        return self.name


def find_state(name: str, states: Dict[Identifier, SovereignState]) -> Optional[Tuple[Identifier, SovereignState]]:
    """
    Look a sovereign state up by short name first, then by long name.
    """
    wanted = name.strip().lower()

    for key, state in states.items():
        if state.name_short.lower() == wanted:
            return key, state
    for key, state in states.items():
        if state.name_long.lower() == wanted:
            return key, state

    return None


def _sovereignty(
    name: str,
    cell: Tag,
    states: Dict[Identifier, SovereignState],
) -> Optional[Tuple[Identifier, SovereignState, bool]]:
    """
    Decide who a territory belongs to. Returns (state id, state, un_member)
    or None when the row has to be skipped.
    """
    links = cell.find_all("a")

    member_link = any(UN_MEMBER_MARKER in a.get_text().lower() for a in links)
    member_str = any(UN_MEMBER_MARKER in s.lower() for s in cell.strings)

    if member_link or member_str:
        hit = find_state(name, states)
        if hit is None:
            logger.warning(f"Failed to find ISO 3166 '{name}' from provided list of sovereign states")
            return None
        return hit[0], hit[1], True

    state_refs = [
        first_text(a) for a in links
        if a.get("href", "").startswith(STATE_LINK_PREFIXES) and first_text(a)
    ]

    for state_ref in state_refs:
        hit = find_state(state_ref, states)
        if hit is not None:
            return hit[0], hit[1], False

    if state_refs:
        logger.warning(f"Failed to find ISO 3166 '{name}' reference to {', '.join(state_refs)} from provided list of sovereign states")
        return None

    logger.warning(f"Failed to determine sovereignty for {name}, skipping...")
    return None


def _code_text(row, index: int, what: str, name: str) -> str:
    elements = expect_children(row, index, f"{what} of {name}")
    if not elements:
        raise SchemaError(f"Invalid {what} code for {name}")
    text = first_text(elements[0])
    if text is None:
        raise SchemaError(f"Expected text for {what} of {name}")
    return text


def build_regions(
    document: BeautifulSoup,
    sovereign_states: Dict[Identifier, SovereignState],
) -> Dict[Identifier, Region]:
    """
    Build the region registry from the ISO 3166 country code table.

    Args:
        document: List of ISO 3166 country codes page
        sovereign_states: Reference registry for sovereignty

    Returns:
        Identifier (from the alpha-2 code) to Region

    Raises:
        SchemaError: on a structurally broken row or a duplicate code
    """
    items: Dict[Identifier, Region] = {}

    for row in scan(document, SCHEMA):
        name = first_link_title(WIKI_PREFIX, expect_children(row, 0, "ISO 3166 name"))
        if name is None:
            raise SchemaError("Failed to read ISO 3166 name")

        decided = _sovereignty(name, expect_cell(row, 2, f"sovereignty of {name}"), sovereign_states)
        if decided is None:
            continue

        state_id, state, un_member = decided
        logger.debug(f"ISO 3166 region {name} sovereignty set to {state.name_long}")

        official = expect_children(row, 1, f"official state name of {name}")
        state_name = first_text(official[0]) if official else None
        if state_name is None:
            raise SchemaError(f"Failed to read official state name for {name}")

        a2 = _code_text(row, 3, "ISO 3166-1 alpha-2", name).upper()
        a3 = _code_text(row, 4, "ISO 3166-1 alpha-3", name).upper()
        num_text = _code_text(row, 5, "ISO 3166-1 numeric", name)

        try:
            num = int(num_text)
        except ValueError:
            raise SchemaError(f"Expected a number for ISO 3166-1 numeric of {name}, got '{num_text}'")

        iso_3166_2 = first_link_title(WIKI_PREFIX, expect_children(row, 6, f"ISO 3166-2 of {name}"))
        if iso_3166_2 is None:
            raise SchemaError(f"Failed to read ISO 3166-2 column for {name}")

        tld = [
            title for title in (
                e.get("title") for e in expect_children(row, 7, f"tld of {name}")
                if e.get("href", "").startswith(WIKI_PREFIX)
            )
            if title is not None
        ]

        iso_id = canonicalize(a2)
        if iso_id in items:
            raise SchemaError(f"Duplicate entry for {a2} / {name}")

        try:
            items[iso_id] = Region(
                name=name,
                state_name=state_name,
                un_member=un_member,
                sovereignty=state_id,
                iso_3166_1=Iso3166_1(a2=a2, a3=a3, num=num),
                iso_3166_2=iso_3166_2,
                tld=tld
            )
        except ValidationError as e:
            raise SchemaError(f"Invalid ISO 3166 entry for {name}", {"errors": e.error_count()}) from e

    logger.info(f"Built {len(items)} ISO 3166 regions")
    return items
