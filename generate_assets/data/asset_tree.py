from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from generate_assets.data.crates_index import CratesIndexReader
from generate_assets.data.metadata import DEFAULT_FRAMEWORK, get_extra_metadata
from generate_assets.domain.models import Asset, CategoryConfig, Section
from generate_assets.services.github_client import GithubClient
from generate_assets.services.gitlab_client import GitlabClient

logger = logging.getLogger(__name__)

CATEGORY_CONFIG_FILE = "_category.toml"
DESCRIPTOR_SUFFIX = ".toml"

# Version control / CI folders that may live inside the assets checkout.
SKIPPED_ENTRIES = {".git", ".github"}

ROOT_SECTION_NAME = "Assets"
ROOT_SECTION_TEMPLATE = "assets.html"


class AssetLoadError(ValueError):
    """A descriptor file could not be read or does not match the Asset schema."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Failed to load asset {path}: {reason}")
        self.path = path


def load_asset(path: Path) -> Asset:
    """
    Load one descriptor file into an Asset.

    Raises:
        AssetLoadError: unreadable file, invalid TOML, unknown or missing fields
    """
    try:
        raw = tomllib.loads(path.read_text(encoding="utf-8"))
        asset = Asset(**raw)
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError, ValidationError) as e:
        raise AssetLoadError(path, str(e)) from e

    asset._original_path = path
    return asset


def load_category_config(directory: Path) -> CategoryConfig:
    """
    Read ``_category.toml`` from ``directory``.

    Values of the wrong type are ignored. A missing file gives the defaults.
    """
    config_path = directory / CATEGORY_CONFIG_FILE
    if not config_path.exists():
        return CategoryConfig()

    raw = tomllib.loads(config_path.read_text(encoding="utf-8"))

    order = raw.get("order")
    # bool is a subclass of int, "order = true" is not an order.
    if not isinstance(order, int) or isinstance(order, bool) or order < 0:
        order = None
    sort_order_reversed = raw.get("sort_order_reversed")
    if not isinstance(sort_order_reversed, bool):
        sort_order_reversed = False

    return CategoryConfig(order=order, sort_order_reversed=sort_order_reversed)


def _visit_dirs(
    directory: Path,
    section: Section,
    crates_index: Optional[CratesIndexReader],
    github_client: Optional[GithubClient],
    gitlab_client: Optional[GitlabClient],
    framework: str,
) -> None:
    # Sorted so repeated runs produce the same tree; display order is applied by consumers.
    for path in sorted(directory.iterdir()):
        if path.name in SKIPPED_ENTRIES:
            continue

        if path.is_dir():
            category = load_category_config(path)
            child = Section(
                name=path.name,
                order=category.order,
                sort_order_reversed=category.sort_order_reversed,
            )
            _visit_dirs(path, child, crates_index, github_client, gitlab_client, framework)
            section.content.append(child)
            continue

        if path.name == CATEGORY_CONFIG_FILE or path.suffix != DESCRIPTOR_SUFFIX:
            continue

        asset = load_asset(path)
        get_extra_metadata(
            asset,
            crates_index=crates_index,
            github_client=github_client,
            gitlab_client=gitlab_client,
            framework=framework,
        )
        section.content.append(asset)


def parse_assets(
    asset_dir: Path,
    crates_index: Optional[CratesIndexReader] = None,
    github_client: Optional[GithubClient] = None,
    gitlab_client: Optional[GitlabClient] = None,
    framework: str = DEFAULT_FRAMEWORK,
) -> Section:
    """
    Crawl ``asset_dir`` and build the catalog tree.

    Every sub-directory becomes a Section and every descriptor an Asset,
    enriched with metadata from whichever collaborators were supplied.
    Descriptor and filesystem errors abort the whole walk.
    """
    asset_dir = Path(asset_dir)
    if not asset_dir.exists():
        raise FileNotFoundError(f"Asset directory not found: {asset_dir}")
    if not asset_dir.is_dir():
        raise NotADirectoryError(f"Asset path is not a directory: {asset_dir}")

    root = Section(
        name=ROOT_SECTION_NAME,
        template=ROOT_SECTION_TEMPLATE,
        header=ROOT_SECTION_NAME,
    )
    logger.info(f"Parsing assets from {asset_dir}")
    _visit_dirs(asset_dir, root, crates_index, github_client, gitlab_client, framework)
    return root
