import logging
from typing import Optional

from generate_assets.core.config import GeneratorSettings
from generate_assets.data.crates_index import CratesIndexReader
from generate_assets.services.github_client import GithubClient
from generate_assets.services.gitlab_client import GitlabClient
from generate_assets.services.importer.dump_downloader import prepare_crates_db

logger = logging.getLogger(__name__)


def get_github_client(settings: GeneratorSettings) -> Optional[GithubClient]:
    if not settings.use_github:
        logger.info("GitHub metadata disabled, skipping GitHub")
        return None
    if not settings.github_token:
        logger.warning("GITHUB_TOKEN not set, skipping GitHub metadata")
        return None
    return GithubClient(settings.github_token)


def get_gitlab_client(settings: GeneratorSettings) -> Optional[GitlabClient]:
    if not settings.use_gitlab:
        return None
    return GitlabClient(settings.gitlab_token)


def get_crates_index(settings: GeneratorSettings) -> Optional[CratesIndexReader]:
    """
    Prepare the crates.io database. A failed download only disables crates.io metadata.
    """
    if not settings.use_crates_io_dump:
        return None
    try:
        db_path = prepare_crates_db(settings.cache_dir, settings.crates_dump_max_age_hours)
    except Exception as e:
        logger.error(f"Failed to prepare crates.io database, skipping crates.io metadata: {e}")
        return None
    return CratesIndexReader(db_path)
