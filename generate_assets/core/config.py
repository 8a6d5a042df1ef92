"""
Generator settings, read from environment variables.

Tokens are never parsed from the asset tree; they are supplied out-of-band:
* GITHUB_TOKEN                        GitHub bearer token (no GitHub enrichment without it)
* GITLAB_TOKEN                        optional GitLab token
* GENERATE_ASSETS_GITLAB              enable anonymous GitLab enrichment ("1", "true", "yes")
* GENERATE_ASSETS_CACHE_DIR           where the crates.io dump is cached
* GENERATE_ASSETS_FRAMEWORK           framework crate whose versions are reported
* GENERATE_ASSETS_DUMP_MAX_AGE_HOURS  how long a downloaded dump is reused
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, Field

GITHUB_TOKEN_ENV_VAR = "GITHUB_TOKEN"
GITLAB_TOKEN_ENV_VAR = "GITLAB_TOKEN"
GITLAB_ENABLED_ENV_VAR = "GENERATE_ASSETS_GITLAB"
CACHE_DIR_ENV_VAR = "GENERATE_ASSETS_CACHE_DIR"
FRAMEWORK_ENV_VAR = "GENERATE_ASSETS_FRAMEWORK"
DUMP_MAX_AGE_ENV_VAR = "GENERATE_ASSETS_DUMP_MAX_AGE_HOURS"

_TRUTHY = {"1", "true", "yes", "on"}


class GeneratorSettings(BaseModel):
    """Settings controlling which metadata sources are used."""

    github_token: Optional[str] = Field(
        default=None,
        description="GitHub bearer token. GitHub enrichment is skipped when missing.",
    )
    use_github: bool = Field(
        default=True,
        description="If False, GitHub is not queried even when a token is set.",
    )
    gitlab_token: Optional[str] = Field(
        default=None,
        description="GitLab private token. Optional, the GitLab API is usable anonymously.",
    )
    use_gitlab: bool = Field(
        default=False,
        description="If True, query GitLab for assets hosted on gitlab.com.",
    )
    use_crates_io_dump: bool = Field(
        default=True,
        description="If True, download the crates.io dump and use it for crates.io links.",
    )
    cache_dir: Path = Field(
        default_factory=lambda: Path.cwd() / ".cache",
        description="Directory where the crates.io dump and its SQLite database are kept.",
    )
    framework: str = Field(
        default="bevy",
        description="Name (prefix) of the framework crate whose versions are reported.",
    )
    crates_dump_max_age_hours: float = Field(
        default=24,
        ge=0,
        description="A cached crates.io database younger than this is reused.",
    )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GeneratorSettings":
        env = os.environ if environ is None else environ
        values = {}

        if env.get(GITHUB_TOKEN_ENV_VAR):
            values["github_token"] = env[GITHUB_TOKEN_ENV_VAR]
        if env.get(GITLAB_TOKEN_ENV_VAR):
            values["gitlab_token"] = env[GITLAB_TOKEN_ENV_VAR]
        values["use_gitlab"] = (
            env.get(GITLAB_ENABLED_ENV_VAR, "").strip().lower() in _TRUTHY
            or bool(values.get("gitlab_token"))
        )
        if env.get(CACHE_DIR_ENV_VAR):
            values["cache_dir"] = Path(env[CACHE_DIR_ENV_VAR]).expanduser()
        if env.get(FRAMEWORK_ENV_VAR):
            values["framework"] = env[FRAMEWORK_ENV_VAR]
        if env.get(DUMP_MAX_AGE_ENV_VAR):
            values["crates_dump_max_age_hours"] = env[DUMP_MAX_AGE_ENV_VAR]

        return cls(**values)
