"""
Tests for the UN member and sovereign state builders
(builders/un_members.py, builders/sovereign_states.py)
"""

import pytest

from builders.sovereign_states import build_sovereign_states, check_un_member_count, un_member_states
from builders.un_members import UNMember, build_un_members
from conftest import make_state, page, parse, table, wiki
from utils.exceptions import ScanError, SchemaError


def state_row(name, title=None, membership="UN member state", dispute="None"):
    return [f"<b>{wiki(name, title)}</b>", membership, dispute, "notes"]


class TestBuildUnMembers:
    """Tests for build_un_members()."""

    def test_reads_names_and_matches_aliases(self, aliases):
        document = parse("""
            <div class="country"><div><h2>Côte d'Ivoire</h2></div></div>
            <div class="country"><div><h2> Atlantis </h2></div></div>
        """)
        members = build_un_members(document, aliases)

        assert members == [
            UNMember(name="Côte d'Ivoire", iso_3166="ci"),
            UNMember(name="Atlantis", iso_3166=None),
        ]

    def test_alias_match_ignores_case(self):
        document = parse('<div class="country"><div><h2>FRANCE</h2></div></div>')
        assert build_un_members(document, {"fr": ["France"]})[0].iso_3166 == "fr"

    def test_empty_page_is_a_scan_error(self):
        with pytest.raises(ScanError):
            build_un_members(parse("<p>maintenance</p>"), {})


class TestBuildSovereignStates:
    """Tests for build_sovereign_states()."""

    def test_basic_row(self):
        document = page(table(4, [state_row("France", "France")]))
        states = build_sovereign_states(document, [], {})

        assert set(states) == {"france"}
        assert states["france"].un_member is True
        assert states["france"].disputed is False

    def test_identifier_from_un_member_iso(self):
        document = page(table(4, [state_row("France", "French Republic")]))
        states = build_sovereign_states(document, [UNMember(name="France", iso_3166="fr")], {})
        assert list(states) == ["fr"]

    def test_identifier_from_aliases(self, aliases):
        document = page(table(4, [state_row("Ivory Coast", "Côte d'Ivoire")]))
        states = build_sovereign_states(document, [], aliases)

        assert list(states) == ["ci"]
        assert states["ci"].name_short == "Ivory Coast"
        assert states["ci"].name_long == "Côte d'Ivoire"

    def test_short_name_stops_at_comma(self):
        document = page(table(4, [state_row("Bahamas, The", "The Bahamas")]))
        states = build_sovereign_states(document, [], {})
        assert states["bahamas"].name_short == "Bahamas"

    def test_long_membership_prose_is_not_a_member(self):
        prose = "Observer, seeking UN member state status"
        document = page(table(4, [state_row("Palestine", membership=prose, dispute="Claimed by Israel")]))
        state = build_sovereign_states(document, [], {})["palestine"]

        assert state.un_member is False
        assert state.disputed is True

    def test_duplicate_identifier_keeps_first(self):
        document = page(table(4, [
            state_row("Congo", "Republic of the Congo"),
            state_row("Congo", "Congo Free State", membership="No"),
        ]))
        states = build_sovereign_states(document, [], {})

        assert len(states) == 1
        assert states["congo"].name_long == "Republic of the Congo"

    def test_row_without_named_link_is_a_schema_error(self):
        document = page(table(4, [['<a href="/wiki/X">no title</a>', "UN member state", "None", ""]]))
        with pytest.raises(SchemaError):
            build_sovereign_states(document, [], {})


class TestUnMemberCount:
    """Tests for the UN membership helpers."""

    def test_filters_members(self):
        states = {"fr": make_state("France"), "xk": make_state("Kosovo", un_member=False)}
        assert list(un_member_states(states)) == ["fr"]

    def test_count_against_un_list(self):
        states = {"fr": make_state("France")}
        assert check_un_member_count(states, [UNMember(name="France")], 193) is True

    def test_count_against_expected_when_list_missing(self):
        states = {"fr": make_state("France")}
        assert check_un_member_count(states, [], 193) is False
        assert check_un_member_count(states, [], 1) is True
