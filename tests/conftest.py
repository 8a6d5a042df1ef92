"""Pytest configuration and shared fixtures for generate-assets tests."""

from __future__ import annotations

import csv
import io
import json
import tarfile
from pathlib import Path
from typing import Any, Dict, List

import pytest


def toml_line(key: str, value: Any) -> str:
    """Render a simple TOML ``key = value`` line (strings, ints, bools, string lists)."""
    if isinstance(value, bool):
        rendered = "true" if value else "false"
    elif isinstance(value, int):
        rendered = str(value)
    elif isinstance(value, list):
        rendered = "[" + ", ".join(json.dumps(v) for v in value) + "]"
    else:
        rendered = json.dumps(value)
    return f"{key} = {rendered}"


def write_toml(path: Path, **fields: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(toml_line(k, v) for k, v in fields.items()) + "\n", encoding="utf-8")
    return path


def write_asset(directory: Path, filename: str, **fields: Any) -> Path:
    """Write a descriptor with sensible defaults for the required fields."""
    values: Dict[str, Any] = {
        "name": filename.rsplit(".", 1)[0],
        "link": "https://example.com/" + filename,
        "description": f"Description of {filename}",
    }
    values.update(fields)
    return write_toml(directory / filename, **values)


@pytest.fixture
def assets_dir(tmp_path: Path) -> Path:
    """
    A small catalog:

        assets/
          .git/ignored.toml
          .github/workflow.toml
          README.md
          Empty/_category.toml          (order = 3)
          Plugins/_category.toml        (order = 1)
          Plugins/physics.toml          (github link)
          Plugins/widgets.toml          (crates.io link)
          Tools/_category.toml          (order = 2, reversed)
          Tools/editor.toml             (example.com link)
    """
    root = tmp_path / "assets"
    write_asset(root / ".git", "ignored.toml")
    write_asset(root / ".github", "workflow.toml")
    (root / "README.md").write_text("# Assets\n", encoding="utf-8")

    write_toml(root / "Empty" / "_category.toml", order=3)

    write_toml(root / "Plugins" / "_category.toml", order=1)
    write_asset(
        root / "Plugins",
        "physics.toml",
        name="Physics",
        link="https://github.com/owner/physics",
        order=2,
    )
    write_asset(
        root / "Plugins",
        "widgets.toml",
        name="Widgets",
        link="https://crates.io/crates/bevy_widgets",
    )

    write_toml(root / "Tools" / "_category.toml", order=2, sort_order_reversed=True)
    write_asset(root / "Tools", "editor.toml", name="Editor", link="https://example.com/editor")
    return root


CARGO_TOML = """
[package]
name = "physics"
version = "0.3.0"
license = "MIT OR Apache-2.0"

[dependencies]
serde = "1"
bevy = "0.12"
"""


def build_dump_archive(path: Path, tables: Dict[str, List[List[str]]]) -> Path:
    """Build a tar.gz shaped like the crates.io dump from CSV rows (first row is the header)."""
    with tarfile.open(path, "w:gz") as archive:
        for table, rows in tables.items():
            text = io.StringIO()
            csv.writer(text).writerows(rows)
            data = text.getvalue().encode("utf-8")
            info = tarfile.TarInfo(f"2024-01-01-020017/data/{table}.csv")
            info.size = len(data)
            archive.addfile(info, io.BytesIO(data))
    return path


DUMP_TABLES_CSV: Dict[str, List[List[str]]] = {
    "crates": [
        ["id", "name", "description"],
        # Quoted multi-line field with non-ASCII text, as in real dump descriptions.
        ["1", "bevy", "A refreshingly simple\ndata-driven game engine \u2013 built in Rust"],
        ["2", "bevy_widgets", "Widgets"],
        ["3", "serde", "Serialization"],
    ],
    "versions": [
        ["id", "crate_id", "num", "license", "yanked"],
        ["10", "2", "0.1.0", "MIT", "f"],
        ["11", "2", "0.2.0", "MIT OR Apache-2.0", "f"],
        ["12", "3", "1.0.0", "MIT", "f"],
        ["13", "2", "0.3.0", "", "f"],
    ],
    "dependencies": [
        ["id", "version_id", "crate_id", "req", "kind", "optional"],
        ["100", "10", "1", "^0.11", "0", "f"],
        ["101", "11", "1", "^0.12", "0", "f"],
        ["102", "11", "3", "^1", "0", "f"],
        ["103", "13", "1", "^0.13", "0", "f"],
    ],
}


@pytest.fixture
def dump_archive(tmp_path: Path) -> Path:
    return build_dump_archive(tmp_path / "db-dump.tar.gz", DUMP_TABLES_CSV)
