"""
Pydantic models for the asset catalog.

This module defines the data models used throughout the generator:
- Asset descriptors loaded from the catalog directory
- Sections built from the directory structure
- Per-directory category configuration
- Metadata resolved from GitHub, GitLab or the crates.io dump

Descriptors are validated strictly so authoring mistakes surface at build time.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Union
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator


# Order given to nodes without a manual order so they sort after everything else.
ORDER_SENTINEL = 99999


# ---------------------------------------------------------------------------
# Catalog Models
# ---------------------------------------------------------------------------


class Asset(BaseModel):
    """
    One catalog entry, loaded from a single descriptor file.

    Unknown keys are rejected. ``licenses`` and ``bevy_versions`` are usually
    left out of the descriptor and filled in by metadata enrichment.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(
        description="Display name of the asset.",
    )
    link: str = Field(
        description="URL of the asset (repository, crate page or website).",
    )
    description: str = Field(
        description="Short description shown on the assets page.",
    )
    order: Optional[int] = Field(
        default=None,
        ge=0,
        strict=True,
        description="Manual position among siblings. Missing means 'sort last'.",
    )
    image: Optional[str] = Field(
        default=None,
        description="Optional image shown next to the asset.",
    )
    licenses: Optional[List[str]] = Field(
        default=None,
        description="License identifiers, e.g. ['MIT', 'Apache-2.0'].",
    )
    bevy_versions: Optional[List[str]] = Field(
        default=None,
        description="Compatible framework versions. At most one entry is populated in practice.",
    )

    # Descriptor file this asset was loaded from. Never read from the file itself.
    _original_path: Optional[Path] = PrivateAttr(default=None)

    @field_validator("link")
    @classmethod
    def link_must_be_absolute_url(cls, value: str) -> str:
        parts = urlsplit(value)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"link must be an absolute URL, got {value!r}")
        return value

    @property
    def original_path(self) -> Optional[Path]:
        return self._original_path

    def apply_metadata(self, metadata: AssetMetadata) -> None:
        """Copy the fields a resolver actually resolved onto this asset."""
        if metadata.licenses is not None:
            self.licenses = metadata.licenses
        if metadata.bevy_versions is not None:
            self.bevy_versions = metadata.bevy_versions


class Section(BaseModel):
    """
    A grouping node built from a directory.

    ``content`` mixes child sections and assets in the order the walker found
    them. Only the root section sets ``template`` and ``header``.
    """

    name: str
    content: List["AssetNode"] = Field(default_factory=list)
    template: Optional[str] = None
    header: Optional[str] = None
    order: Optional[int] = None
    sort_order_reversed: bool = False

    def sorted_content(self) -> List["AssetNode"]:
        """Return the children in display order for this section."""
        return sort_nodes(self.content, reverse=self.sort_order_reversed)


AssetNode = Union[Section, Asset]

Section.model_rebuild()


class CategoryConfig(BaseModel):
    """
    Optional per-directory settings read from ``_category.toml``.

    Absent file means no manual order and ascending sort.
    """

    order: Optional[int] = Field(
        default=None,
        description="Manual position of the directory's section among its siblings.",
    )
    sort_order_reversed: bool = Field(
        default=False,
        description="If True, children of this section sort in descending order.",
    )


class AssetMetadata(BaseModel):
    """Metadata resolved for one asset. ``None`` means 'not resolved'."""

    licenses: Optional[List[str]] = None
    bevy_versions: Optional[List[str]] = None


class ReverseDependency(BaseModel):
    """
    One published version of a crate that depends on the target framework.

    ``requirements`` holds the version requirements on the framework, e.g. ``["^0.12"]``.
    """

    crate_name: str
    version: str
    license: Optional[str] = None
    requirements: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Node accessors
# ---------------------------------------------------------------------------


def node_name(node: AssetNode) -> str:
    return node.name


def node_order(node: AssetNode) -> int:
    """Declared order of a section or asset, or ORDER_SENTINEL when absent."""
    order = node.order
    return ORDER_SENTINEL if order is None else order


def sort_nodes(nodes: Iterable[AssetNode], reverse: bool = False) -> List[AssetNode]:
    """
    Sort sibling nodes by order, then by name.

    With ``reverse`` the whole key is descending, so unordered nodes come first.
    """
    return sorted(nodes, key=lambda n: (node_order(n), node_name(n)), reverse=reverse)
