from typing import Any, Dict, List, Optional, Tuple

_REQUIREMENT_PREFIX_CHARS = "^~="


def parse_license(license: str) -> List[str]:
    """
    Split a license expression on ``OR`` into individual identifiers.

    "MIT OR Apache-2.0" -> ["MIT", "Apache-2.0"]. No validation and no de-duplication.
    """
    return [part.strip() for part in license.split("OR")]


def resolve_dependency_version(spec: Any) -> Optional[str]:
    """
    Turn a Cargo dependency specification into a single version label.

    A plain string is returned as-is, a detailed table returns its ``version``.
    Git dependencies become "main" when they track the main branch and "git" otherwise.
    """
    if isinstance(spec, str):
        return spec
    if not isinstance(spec, dict):
        return None

    version = spec.get("version")
    if version is not None:
        return str(version)
    if spec.get("git") is not None:
        if spec.get("branch") == "main":
            return "main"
        return "git"
    return None


def strip_requirement_prefix(requirement: str) -> str:
    """'^0.12' -> '0.12'"""
    return requirement.strip().lstrip(_REQUIREMENT_PREFIX_CHARS).strip()


def find_framework_dependency(
    manifest: Dict[str, Any],
    framework: str,
) -> Optional[Tuple[str, Any]]:
    """
    Find the first dependency whose name starts with ``framework``.

    Covers the framework crate itself and its sub-crates (bevy, bevy_ecs, ...).
    Dependencies inherited with ``workspace = true`` are looked up in
    ``[workspace.dependencies]`` of the same manifest.
    """
    dependencies = manifest.get("dependencies") or {}
    for key, spec in dependencies.items():
        if not key.startswith(framework):
            continue
        if isinstance(spec, dict) and spec.get("workspace") is True:
            workspace_deps = (manifest.get("workspace") or {}).get("dependencies") or {}
            spec = workspace_deps.get(key, spec)
        return key, spec
    return None


def get_manifest_license(manifest: Dict[str, Any]) -> Optional[str]:
    """
    Return ``package.license`` when it is a plain string.

    Workspace-inherited licenses (``license.workspace = true``) count as missing.
    """
    package = manifest.get("package")
    if not isinstance(package, dict):
        return None
    license = package.get("license")
    if isinstance(license, str) and license.strip():
        return license
    return None
