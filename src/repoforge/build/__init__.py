"""
Build pipeline components for repoforge.

This module provides:
- Variant overlays (customization.cfg)
- makepkg execution
- Repository database updates (repo-add)
- Run orchestration and reporting
"""

from .executor import MAKEPKG_FLAGS, BuildError, BuildExecutor
from .indexer import RepositoryIndexer, RepositoryIndexError
from .orchestrator import BuildOutcome, Orchestrator, OutcomeStatus, RunReport
from .variant_configurator import ConfigMissingError, VariantConfigurator

__all__ = [
    "MAKEPKG_FLAGS",
    "BuildError",
    "BuildExecutor",
    "RepositoryIndexer",
    "RepositoryIndexError",
    "BuildOutcome",
    "Orchestrator",
    "OutcomeStatus",
    "RunReport",
    "ConfigMissingError",
    "VariantConfigurator",
]
