"""
UN member states from the un.org member-states page.

Only the names are of interest; identifiers come from the seed alias table.
"""

from typing import Dict, List, Optional

from bs4 import BeautifulSoup
from pydantic import BaseModel

from resolution.identifier import Identifier
from utils.exceptions import ScanError
from utils.logger import get_logger

logger = get_logger(__name__)

MEMBER_SELECTOR = ".country div > h2"


class UNMember(BaseModel):
    name: str
    iso_3166: Optional[Identifier] = None

    def __str__(self) -> str:
        if self.iso_3166:
            return f"{self.name} ({self.iso_3166})"
        return self.name


def _identify(name: str, aliases: Dict[Identifier, List[str]]) -> Optional[Identifier]:
    wanted = name.lower()
    for key, names in aliases.items():
        if any(n.strip().lower() == wanted for n in names):
            return key
    return None


def build_un_members(document: BeautifulSoup, aliases: Dict[Identifier, List[str]]) -> List[UNMember]:
    """
    Read UN member names and attach seed identifiers where possible.

    Raises:
        ScanError: if the page lists no members at all
    """
    members = []

    for heading in document.select(MEMBER_SELECTOR):
        name = heading.get_text().strip()
        if not name:
            continue

        iso_id = _identify(name, aliases)
        if iso_id is None:
            logger.warning(f"Unable to match UN member {name} with input country")

        members.append(UNMember(name=name, iso_3166=iso_id))

    if not members:
        raise ScanError("Failed to find UN member states", {"selector": MEMBER_SELECTOR})

    logger.info(f"Found {len(members)} UN member states")
    return members
