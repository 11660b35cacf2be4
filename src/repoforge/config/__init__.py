"""Configuration parsing for repoforge."""

from .repo_config import (
    RepoConfig,
    RepoConfigError,
    RepoSettings,
    default_config_path,
    load_config,
    resolve_config_path,
)

__all__ = [
    "RepoConfig",
    "RepoConfigError",
    "RepoSettings",
    "default_config_path",
    "load_config",
    "resolve_config_path",
]
