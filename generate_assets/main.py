import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from generate_assets.core.config import GeneratorSettings
from generate_assets.core.dependencies import (
    get_crates_index,
    get_github_client,
    get_gitlab_client,
)
from generate_assets.data.asset_tree import parse_assets
from generate_assets.domain.models import Asset, Section

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="generate-assets",
        description="Build the assets catalog tree and enrich it with license and version metadata.",
    )
    parser.add_argument("assets_dir", type=Path, help="Root directory of the asset descriptors")
    parser.add_argument("-o", "--output", type=Path, help="Write the JSON tree here instead of stdout")
    parser.add_argument("--cache-dir", type=Path, help="Cache directory for the crates.io dump")
    parser.add_argument("--framework", help="Framework crate name used to detect compatible versions")
    parser.add_argument("--no-crates-io", action="store_true", help="Do not download the crates.io dump")
    parser.add_argument("--no-github", action="store_true", help="Do not query GitHub")
    parser.add_argument("--gitlab", action="store_true", help="Query GitLab for gitlab.com links")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    return parser


def settings_from_args(args: argparse.Namespace) -> GeneratorSettings:
    """Environment settings, overridden by command line flags."""
    settings = GeneratorSettings.from_env()
    if args.cache_dir is not None:
        settings.cache_dir = args.cache_dir
    if args.framework:
        settings.framework = args.framework
    if args.no_crates_io:
        settings.use_crates_io_dump = False
    if args.no_github:
        settings.use_github = False
    if args.gitlab:
        settings.use_gitlab = True
    return settings


def _count_assets(section: Section) -> int:
    return sum(
        1 if isinstance(node, Asset) else _count_assets(node)
        for node in section.content
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    settings = settings_from_args(args)
    github_client = get_github_client(settings)
    gitlab_client = get_gitlab_client(settings)
    crates_index = get_crates_index(settings)

    try:
        root = parse_assets(
            args.assets_dir,
            crates_index=crates_index,
            github_client=github_client,
            gitlab_client=gitlab_client,
            framework=settings.framework,
        )
    except Exception as e:
        logger.error(f"Failed to build the assets tree: {e}")
        return 1
    finally:
        for collaborator in (github_client, gitlab_client, crates_index):
            if collaborator is not None:
                collaborator.close()

    payload = root.model_dump_json(indent=2)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(payload, encoding="utf-8")
        logger.info(f"Wrote {_count_assets(root)} assets to {args.output}")
    else:
        sys.stdout.write(payload + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
