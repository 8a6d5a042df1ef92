"""Tests for the catalog models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from generate_assets.domain.models import (
    ORDER_SENTINEL,
    Asset,
    AssetMetadata,
    Section,
    node_name,
    node_order,
    sort_nodes,
)


def make_asset(name: str, order: int | None = None) -> Asset:
    return Asset(name=name, link=f"https://example.com/{name}", description="desc", order=order)


class TestAssetSchema:
    """Tests for strict descriptor validation."""

    def test_accepts_required_fields(self) -> None:
        """Should load with only name, link and description."""
        asset = Asset(name="A", link="https://example.com/a", description="d")
        assert asset.order is None
        assert asset.licenses is None
        assert asset.bevy_versions is None
        assert asset.original_path is None

    def test_rejects_unknown_field(self) -> None:
        """Should fail when the descriptor has a field the schema does not know."""
        with pytest.raises(ValidationError):
            Asset(name="A", link="https://example.com/a", description="d", homepage="x")

    def test_rejects_original_path_key(self) -> None:
        """Should treat original_path as unknown since it is never read from files."""
        with pytest.raises(ValidationError):
            Asset(name="A", link="https://example.com/a", description="d", original_path="/tmp/a.toml")

    @pytest.mark.parametrize("missing", ["name", "link", "description"])
    def test_rejects_missing_required_field(self, missing: str) -> None:
        """Should fail when a required field is missing."""
        fields = {"name": "A", "link": "https://example.com/a", "description": "d"}
        del fields[missing]
        with pytest.raises(ValidationError):
            Asset(**fields)

    def test_rejects_relative_link(self) -> None:
        """Should fail when the link is not an absolute URL."""
        with pytest.raises(ValidationError):
            Asset(name="A", link="github.com/owner/repo", description="d")

    def test_rejects_negative_order(self) -> None:
        """Should fail for negative manual order."""
        with pytest.raises(ValidationError):
            Asset(name="A", link="https://example.com/a", description="d", order=-1)

    @pytest.mark.parametrize("order", [True, 2.0, "2"])
    def test_rejects_non_integer_order(self, order: object) -> None:
        """Should not coerce booleans, floats or strings into an order."""
        with pytest.raises(ValidationError):
            Asset(name="A", link="https://example.com/a", description="d", order=order)

    def test_original_path_not_serialized(self) -> None:
        """Should leave original_path out of the serialized form."""
        asset = make_asset("a")
        assert "original_path" not in asset.model_dump()
        assert "_original_path" not in asset.model_dump()


class TestApplyMetadata:
    """Tests for Asset.apply_metadata."""

    def test_sets_resolved_fields(self) -> None:
        asset = make_asset("a")
        asset.apply_metadata(AssetMetadata(licenses=["MIT"], bevy_versions=["0.12"]))
        assert asset.licenses == ["MIT"]
        assert asset.bevy_versions == ["0.12"]

    def test_keeps_unresolved_fields(self) -> None:
        """Should not clear values the resolver did not find."""
        asset = Asset(
            name="a",
            link="https://example.com/a",
            description="d",
            licenses=["Zlib"],
            bevy_versions=["0.9"],
        )
        asset.apply_metadata(AssetMetadata(licenses=["MIT"]))
        assert asset.licenses == ["MIT"]
        assert asset.bevy_versions == ["0.9"]


class TestNodeAccessors:
    """Tests for node_name / node_order across both node kinds."""

    def test_declared_order(self) -> None:
        assert node_order(make_asset("a", order=4)) == 4
        assert node_order(Section(name="s", order=7)) == 7

    def test_missing_order_is_sentinel(self) -> None:
        """Should return the sentinel for both sections and assets."""
        assert node_order(make_asset("a")) == ORDER_SENTINEL
        assert node_order(Section(name="s")) == ORDER_SENTINEL

    def test_zero_order_is_not_missing(self) -> None:
        assert node_order(make_asset("a", order=0)) == 0

    def test_names(self) -> None:
        assert node_name(make_asset("a")) == "a"
        assert node_name(Section(name="Tools")) == "Tools"


class TestSorting:
    """Tests for sibling ordering."""

    def test_ascending_by_order_then_name(self) -> None:
        nodes = [
            make_asset("zeta"),
            Section(name="beta", order=2),
            make_asset("alpha"),
            make_asset("gamma", order=1),
        ]
        assert [node_name(n) for n in sort_nodes(nodes)] == ["gamma", "beta", "alpha", "zeta"]

    def test_reversed(self) -> None:
        """Should sort descending, so unordered nodes come first."""
        nodes = [make_asset("a", order=1), make_asset("b", order=5), make_asset("c")]
        assert [node_name(n) for n in sort_nodes(nodes, reverse=True)] == ["c", "b", "a"]

    def test_section_sorted_content_uses_its_direction(self) -> None:
        section = Section(
            name="s",
            content=[make_asset("a", order=1), make_asset("b", order=2)],
            sort_order_reversed=True,
        )
        assert [node_name(n) for n in section.sorted_content()] == ["b", "a"]
        # Insertion order is left untouched.
        assert [node_name(n) for n in section.content] == ["a", "b"]

    def test_mixed_content_serializes(self) -> None:
        section = Section(name="root", content=[Section(name="child"), make_asset("a")])
        dumped = section.model_dump()
        assert dumped["content"][0]["name"] == "child"
        assert dumped["content"][1]["link"] == "https://example.com/a"
