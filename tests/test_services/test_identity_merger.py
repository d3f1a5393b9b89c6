"""Unit tests for studio/channel identity merging."""
import pytest

from mediasearch.models.api_schemas import ChannelRecord
from mediasearch.services.identity_merger import (
    is_member,
    join_ids,
    merge_channels,
    merge_network_company,
    split_composite_id,
)


class TestCompositeIds:
    """Tests for join_ids / split_composite_id / is_member."""

    def test_single_member_stays_numeric(self):
        assert join_ids([7]) == 7

    def test_members_join_in_first_seen_order(self):
        assert join_ids([2, 1, 2]) == "2|1"

    def test_split_round_trips(self):
        assert split_composite_id("1|2") == [1, 2]
        assert split_composite_id(7) == [7]

    def test_membership_checks_every_component(self):
        assert is_member("5|213", {213, 49}) is True
        assert is_member("5|6", {213, 49}) is False
        assert is_member(49, [49]) is True


class TestMergeChannels:
    """Tests for merge_channels."""

    def test_same_studio_under_two_ids(self, make_channel):
        merged = merge_channels([make_channel(1, "A24"), make_channel(2, "a24")])

        assert len(merged) == 1
        assert merged[0].id == "1|2"
        assert merged[0].name == "A24"
        assert merged[0].kind == "company"
        assert merged[0].company_id == "1|2"
        assert merged[0].network_id is None

    def test_first_displayable_logo_wins(self, make_channel):
        merged = merge_channels([
            make_channel(1, "Toho", logo_path=None),
            make_channel(2, "TOHO", logo_path="null"),
            make_channel(3, "toho", logo_path="/toho.png"),
        ])
        assert merged[0].logo_path == "/toho.png"

    def test_name_is_trimmed_first_seen(self, make_channel):
        merged = merge_channels([make_channel(1, "  Studio Ghibli "), make_channel(2, "Studio Ghibli")])
        assert merged[0].name == "Studio Ghibli"

    def test_output_sorted_by_name(self, make_channel):
        merged = merge_channels([make_channel(1, "Netflix"), make_channel(2, "amc"), make_channel(3, "BBC")])
        assert [e.name for e in merged] == ["amc", "BBC", "Netflix"]

    def test_accented_names_sort_with_their_base_letter(self, make_channel):
        merged = merge_channels(
            [make_channel(1, "Zeta"), make_channel(2, "Éclair"), make_channel(3, "Fox"), make_channel(4, "école")]
        )
        assert [e.name for e in merged] == ["Éclair", "école", "Fox", "Zeta"]

    def test_merge_is_idempotent(self, make_channel):
        once = merge_channels([make_channel(1, "A24"), make_channel(2, "a24"), make_channel(3, "Neon")])
        twice = merge_channels(once)
        assert [(e.id, e.name) for e in twice] == [(e.id, e.name) for e in once]

    def test_network_kind_sets_network_id(self, make_channel):
        merged = merge_channels([make_channel(213, "Netflix")], kind="network")
        assert merged[0].network_id == 213
        assert merged[0].company_id is None

    def test_non_latin_names_do_not_collapse_together(self, make_channel):
        merged = merge_channels([make_channel(1, "日本テレビ"), make_channel(2, "フジテレビ")])
        assert len(merged) == 2


class TestMergeNetworkCompany:
    """Tests for merge_network_company (search path)."""

    def test_shared_name_becomes_merged(self, make_channel):
        networks = [make_channel(213, "Netflix", logo_path="/net.png")]
        companies = [make_channel(178464, "netflix", logo_path="/comp.png")]

        (entity,) = merge_network_company(networks, companies)

        assert entity.kind == "merged"
        assert entity.id == 213
        assert entity.network_id == 213
        assert entity.company_id == 178464
        assert entity.logo_path == "/net.png"

    def test_company_logo_fills_missing_network_logo(self, make_channel):
        (entity,) = merge_network_company(
            [make_channel(49, "HBO", logo_path=None)],
            [make_channel(3268, "HBO", logo_path="/hbo.png")],
        )
        assert entity.logo_path == "/hbo.png"

    def test_standalone_entities_keep_their_kind(self, make_channel):
        entities = merge_network_company(
            [make_channel(1, "AMC")], [make_channel(2, "Pixar")]
        )
        assert [(e.kind, e.name) for e in entities] == [("network", "AMC"), ("company", "Pixar")]

    @pytest.mark.parametrize("logo", [None, "", "null"])
    def test_logo_less_entities_are_dropped(self, make_channel, logo):
        entities = merge_network_company(
            [make_channel(1, "Nowhere TV", logo_path=logo)],
            [make_channel(2, "Ghost Pictures", logo_path=logo)],
        )
        assert entities == []
