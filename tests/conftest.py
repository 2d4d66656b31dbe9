"""
pytest configuration for the harvester tests.
Sets up Python path to resolve module imports and provides HTML helpers.
"""

import sys
from pathlib import Path

import pytest
from bs4 import BeautifulSoup

# Add the repository root to Python path
# This allows imports like 'from scrapers.table_scanner import ...' to work
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir))

from builders.regions import Iso3166_1, Region
from builders.sovereign_states import SovereignState


def parse(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def table(header_count: int, rows) -> str:
    """
    HTML table with ``header_count`` header cells and one <tr> per row;
    each row is a list of raw <td> inner HTML strings.
    """
    headers = "".join(f"<th>h{i}</th>" for i in range(header_count))
    body = "".join(
        "<tr>" + "".join(f"<td>{cell}</td>" for cell in row) + "</tr>"
        for row in rows
    )
    return f"<table><tr>{headers}</tr>{body}</table>"


def page(*tables: str) -> BeautifulSoup:
    return parse(f"<html><body>{''.join(tables)}</body></html>")


def wiki(text: str, title: str = None) -> str:
    title = title or text
    return f'<a href="/wiki/{text.replace(" ", "_")}" title="{title}">{text}</a>'


def make_state(short: str, long: str = None, un_member: bool = True, disputed: bool = False) -> SovereignState:
    return SovereignState(
        name_short=short,
        name_long=long or short,
        un_member=un_member,
        disputed=disputed
    )


def make_region(name: str, a2: str, a3: str, num: int, sovereignty: str, state_name: str = None) -> Region:
    return Region(
        name=name,
        state_name=state_name or name,
        un_member=True,
        sovereignty=sovereignty,
        iso_3166_1=Iso3166_1(a2=a2, a3=a3, num=num),
        iso_3166_2=f"ISO 3166-2:{a2}",
        tld=[f".{a2.lower()}"]
    )


@pytest.fixture
def states():
    return {
        "fr": make_state("France", "French Republic"),
        "ci": make_state("Ivory Coast", "Republic of Côte d'Ivoire"),
        "de": make_state("Germany", "Federal Republic of Germany"),
    }


@pytest.fixture
def regions():
    return {
        "fr": make_region("France", "FR", "FRA", 250, "fr", "French Republic"),
        "de": make_region("Germany", "DE", "DEU", 276, "de", "Federal Republic of Germany"),
        "ci": make_region("Ivory Coast", "CI", "CIV", 384, "ci", "Republic of Côte d'Ivoire"),
        "be": make_region("Belgium", "BE", "BEL", 56, "be", "Kingdom of Belgium"),
    }


@pytest.fixture
def aliases():
    return {
        "ci": ["Ivory Coast", "Côte d'Ivoire"],
        "de": ["Deutschland"],
    }
