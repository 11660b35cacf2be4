"""Variant configuration overlays.

TKG recipes read their build options from ``customization.cfg`` next to the
PKGBUILD. A variant is produced by replacing that file with a prepared
overlay before the recipe is evaluated.
"""

import logging
import shutil
from pathlib import Path
from typing import Optional

from ..packages.package import PipelineError
from ..packages.package_kinds import OVERLAY_FILENAME
from ..packages.recipe_source import Workspace


class ConfigMissingError(PipelineError):
    """Raised when a variant's overlay file does not exist."""

    pass


class VariantConfigurator:
    """Applies configuration overlays to fetched workspaces."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configurator.

        Args:
            config_dir: Directory relative overlay paths are resolved against
        """
        self.config_dir = Path(config_dir) if config_dir is not None else None

    def resolve_overlay(self, overlay: Path) -> Path:
        overlay = Path(overlay).expanduser()
        if not overlay.is_absolute() and self.config_dir is not None:
            overlay = self.config_dir / overlay
        return overlay

    def apply(self, workspace: Workspace, overlay: Path) -> Path:
        """Copy an overlay into the workspace's build root.

        Args:
            workspace: Freshly fetched workspace
            overlay: Overlay file (absolute, or relative to config_dir)

        Returns:
            Path of the written customization.cfg

        Raises:
            ConfigMissingError: If the overlay file does not exist
        """
        source = self.resolve_overlay(overlay)
        if not source.is_file():
            raise ConfigMissingError(f"Config file {source} not found")

        target = workspace.build_root / OVERLAY_FILENAME
        try:
            shutil.copyfile(source, target)
        except OSError as e:
            raise ConfigMissingError(f"Cannot copy {source} to {target}: {e}") from e
        logging.info(f"Applied {source.name} to {target}")
        return target
