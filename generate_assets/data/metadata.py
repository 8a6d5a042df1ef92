"""
Resolve license and framework-version metadata for assets.

The link host decides where metadata comes from:
* github.com  -> Cargo.toml of the repository, with the license endpoint as fallback
* gitlab.com  -> Cargo.toml of the project's default branch
* crates.io   -> reverse dependencies in the crates.io database dump

Enrichment is best effort: failures are logged and the asset keeps whatever its
descriptor declared.
"""
from __future__ import annotations

import logging
import tomllib
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

from generate_assets.data.crates_index import CratesIndexReader
from generate_assets.domain.cargo_utils import (
    find_framework_dependency,
    get_manifest_license,
    parse_license,
    resolve_dependency_version,
    strip_requirement_prefix,
)
from generate_assets.domain.models import Asset, AssetMetadata
from generate_assets.services.github_client import GithubClient
from generate_assets.services.gitlab_client import GitlabClient

logger = logging.getLogger(__name__)

GITHUB_HOST = "github.com"
GITLAB_HOST = "gitlab.com"
CRATES_IO_HOST = "crates.io"

SOURCE_NAMES = {
    GITHUB_HOST: "GitHub",
    GITLAB_HOST: "GitLab",
    CRATES_IO_HOST: "crates.io",
}

CARGO_MANIFEST = "Cargo.toml"
DEFAULT_FRAMEWORK = "bevy"


def _path_segments(link: str) -> List[str]:
    return [segment for segment in urlsplit(link).path.split("/") if segment]


def _segment(segments: List[str], index: int, link: str) -> str:
    if len(segments) <= index:
        raise ValueError(f"Link {link} has no path segment {index}")
    return segments[index]


def _resolve(
    asset: Asset,
    host: Optional[str],
    crates_index: Optional[CratesIndexReader],
    github_client: Optional[GithubClient],
    gitlab_client: Optional[GitlabClient],
    framework: str,
) -> Optional[AssetMetadata]:
    segments = _path_segments(asset.link)

    if host == GITHUB_HOST and github_client is not None:
        username = _segment(segments, 0, asset.link)
        repository_name = _segment(segments, 1, asset.link)
        return get_metadata_from_github(github_client, username, repository_name, framework)

    if host == GITLAB_HOST and gitlab_client is not None:
        username = _segment(segments, 0, asset.link)
        repository_name = _segment(segments, 1, asset.link)
        return get_metadata_from_gitlab(gitlab_client, username, repository_name, framework)

    if host == CRATES_IO_HOST and crates_index is not None:
        crate_name = _segment(segments, 1, asset.link)
        return get_metadata_from_crates_io_db(crates_index, crate_name, framework)

    return None


def get_extra_metadata(
    asset: Asset,
    crates_index: Optional[CratesIndexReader] = None,
    github_client: Optional[GithubClient] = None,
    gitlab_client: Optional[GitlabClient] = None,
    framework: str = DEFAULT_FRAMEWORK,
) -> None:
    """
    Try to fill in ``licenses`` and ``bevy_versions`` for ``asset``.

    Only the collaborator matching the link host is called, and only if it
    was supplied. The asset is updated in one step after the resolver succeeds.
    """
    logger.info(f"Getting extra metadata for {asset.name}")

    host = urlsplit(asset.link).hostname
    try:
        metadata = _resolve(asset, host, crates_index, github_client, gitlab_client, framework)
    except Exception as e:
        logger.error(f"Failed to get metadata from {SOURCE_NAMES.get(host, host)} for {asset.name}: {e}")
        return

    if metadata is None:
        logger.debug(f"No metadata source for {asset.name} ({host})")
        return
    asset.apply_metadata(metadata)


def _metadata_from_manifest(
    manifest: Dict[str, Any],
    framework: str,
    license: Optional[str],
) -> AssetMetadata:
    metadata = AssetMetadata()
    if license:
        metadata.licenses = parse_license(license)

    # Any dependency starting with the framework name counts, so bevy_* sub-crates match too.
    dependency = find_framework_dependency(manifest, framework)
    if dependency is not None:
        _, spec = dependency
        version = resolve_dependency_version(spec)
        if version is not None:
            metadata.bevy_versions = [version]
    return metadata


def get_metadata_from_github(
    client: GithubClient,
    username: str,
    repository_name: str,
    framework: str = DEFAULT_FRAMEWORK,
) -> AssetMetadata:
    content = client.get_content(username, repository_name, CARGO_MANIFEST)
    manifest = tomllib.loads(content)

    license = get_manifest_license(manifest)
    if license is None:
        # No license in the Cargo.toml, ask GitHub for the repository license.
        try:
            license = client.get_license(username, repository_name)
        except Exception as e:
            logger.warning(f"Failed to get license from GitHub for {username}/{repository_name}: {e}")

    return _metadata_from_manifest(manifest, framework, license)


def get_metadata_from_gitlab(
    client: GitlabClient,
    username: str,
    repository_name: str,
    framework: str = DEFAULT_FRAMEWORK,
) -> AssetMetadata:
    projects = client.search_project_by_name(repository_name)
    if not projects:
        raise ValueError(f"No GitLab project found for {username}/{repository_name}")

    wanted = f"{username}/{repository_name}".lower()
    project = next(
        (p for p in projects if (p.path_with_namespace or "").lower() == wanted),
        projects[0],
    )
    if not project.default_branch:
        raise ValueError(f"GitLab project {project.id} has no default branch")

    content = client.get_content(project.id, project.default_branch, CARGO_MANIFEST)
    manifest = tomllib.loads(content)
    return _metadata_from_manifest(manifest, framework, get_manifest_license(manifest))


def get_metadata_from_crates_io_db(
    crates_index: CratesIndexReader,
    crate_name: str,
    framework: str = DEFAULT_FRAMEWORK,
) -> AssetMetadata:
    """
    Use the crates.io dump to find the license and framework requirement.

    Every matching version overwrites the previous one, so the newest
    published version wins. Versions without a license are skipped entirely;
    a version without a requirement still updates the license.
    """
    metadata = AssetMetadata()
    for record in crates_index.get_reverse_dependencies(crate_name, framework):
        if not record.license:
            continue
        metadata.licenses = parse_license(record.license)
        if record.requirements:
            metadata.bevy_versions = [strip_requirement_prefix(record.requirements[0])]
    return metadata
