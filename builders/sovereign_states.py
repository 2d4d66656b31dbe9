"""
Sovereign states builder.

The first registry built. Identifiers are taken from the UN member list when
it knows the state's ISO code, then from the seed alias table, and only as a
last resort derived from the display name.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup
from pydantic import BaseModel

from builders.un_members import UNMember
from resolution.identifier import Identifier, canonicalize
from scrapers.cells import WIKI_PREFIX, link_text_if, link_title_if
from scrapers.table_scanner import InnerAsText, Matching, SparseSchema, expect_children, expect_text, scan
from utils.exceptions import SchemaError
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA = SparseSchema(
    header_count=4,
    columns={
        0: Matching("a"),
        1: InnerAsText(),
        2: InnerAsText(),
        3: None,
    }
)

UN_MEMBER_MARKER = "un member state"
# Longer tokens mentioning membership are prose, not the status marker
UN_MEMBER_MAX_LEN = 25


class SovereignState(BaseModel):
    name_short: str
    name_long: str
    un_member: bool
    disputed: bool

    @property
    def display_names(self) -> Tuple[str, str]:
        return self.name_short, self.name_long

    def __str__(self) -> str:
        return self.name_long


def _state_names(row) -> Tuple[str, str]:
    for element in expect_children(row, 0, "sovereign state name"):
        title = link_title_if(WIKI_PREFIX, element)
        text = link_text_if(WIKI_PREFIX, element)
        if title is not None and text is not None:
            return text, title
    raise SchemaError("Expected to find a link with country name")


def _identify(
    name: str,
    name_long: str,
    un_members: Sequence[UNMember],
    aliases: Dict[Identifier, List[str]],
) -> Identifier:
    wanted = {name.lower(), name_long.lower()}

    for member in un_members:
        if member.iso_3166 and member.name.lower() in wanted:
            return member.iso_3166

    for key, names in aliases.items():
        if any(n.lower() in wanted for n in names):
            return key

    return canonicalize(name)


def build_sovereign_states(
    document: BeautifulSoup,
    un_members: Sequence[UNMember],
    aliases: Dict[Identifier, List[str]],
) -> Dict[Identifier, SovereignState]:
    """
    Build the sovereign state registry.

    Args:
        document: List of sovereign states page
        un_members: UN members, possibly empty when un.org was unavailable
        aliases: Seed alias table

    Returns:
        Identifier to SovereignState
    """
    items: Dict[Identifier, SovereignState] = {}
    un_names = {m.name.lower() for m in un_members}

    for row in scan(document, SCHEMA):
        name, name_long = _state_names(row)
        iso_id = _identify(name, name_long, un_members, aliases)
        name_short = name.split(",")[0]

        member = any(
            UN_MEMBER_MARKER in s.lower() and len(s) < UN_MEMBER_MAX_LEN
            for s in expect_text(row, 1, f"membership of {name_long}")
        )

        if un_names:
            listed = name.lower() in un_names
            if member and not listed:
                logger.debug(f"Data inconsistency: according to the UN list {name_long} is not a UN member state")
            elif listed and not member:
                logger.debug(f"Data inconsistency: {name_long} is on the UN list but not marked as a member")

        disputed = not any(
            "none" in s.lower()
            for s in expect_text(row, 2, f"sovereignty dispute of {name_long}")
        )

        if member and disputed:
            logger.warning(f"{name_long} is a UN member state but has a dispute")

        if iso_id in items:
            logger.warning(f"{name_long} already exists, skipping")
            continue

        items[iso_id] = SovereignState(
            name_short=name_short,
            name_long=name_long,
            un_member=member,
            disputed=disputed
        )

    logger.info(f"Built {len(items)} sovereign states")
    return items


def un_member_states(states: Dict[Identifier, SovereignState]) -> Dict[Identifier, SovereignState]:
    return {key: state for key, state in states.items() if state.un_member}


def check_un_member_count(
    states: Dict[Identifier, SovereignState],
    un_members: Optional[Sequence[UNMember]],
    expected: int,
) -> bool:
    """
    Compare the number of UN member states found with the UN list (or the
    configured expectation when the list is unavailable). Mismatches are
    logged, never fatal.
    """
    wanted = len(un_members) if un_members else expected
    members = un_member_states(states)

    if len(members) == wanted:
        return True

    non_members = ", ".join(str(s) for s in states.values() if not s.un_member)
    logger.error(f"Expected {wanted} UN member states, got {len(members)}")
    logger.warning(f"Current non members are: {non_members}")
    return False
