"""Build Executor.

This module runs makepkg inside a recipe's build root.

Design:
    - Always a clean, non-interactive build that installs missing
      dependencies and skips PGP checks
    - Output is streamed into the log as it is produced
    - No time limit; an interrupt stops the whole process tree
"""

import logging
from pathlib import Path
from typing import Sequence

from ..packages.package import PipelineError
from ..process_utils import stream_command

MAKEPKG_FLAGS = (
    "--needed",
    "--noconfirm",
    "--syncdeps",
    "--cleanbuild",
    "--clean",
    "--skippgpcheck",
    "--force",
)


class BuildError(PipelineError):
    """Raised when makepkg fails or cannot be started."""

    pass


class BuildExecutor:
    """Runs makepkg for a fetched recipe."""

    def __init__(self, makepkg: str = "makepkg", flags: Sequence[str] = MAKEPKG_FLAGS):
        """Initialize build executor.

        Args:
            makepkg: makepkg executable
            flags: Command line flags passed to makepkg
        """
        self.makepkg = makepkg
        self.flags = tuple(flags)

    def command(self) -> list:
        return [self.makepkg, *self.flags]

    def run(self, build_root: Path) -> None:
        """Run makepkg in a build root.

        Raises:
            BuildError: If makepkg cannot be started or exits non-zero
        """
        try:
            returncode = stream_command(self.command(), cwd=build_root, prefix="[makepkg] ")
        except OSError as e:
            raise BuildError(f"Failed to start {self.makepkg}: {e}") from e
        if returncode != 0:
            raise BuildError(f"{self.makepkg} exited with code {returncode}")

    def build(self, build_root: Path) -> bool:
        """Build the package in a build root.

        Args:
            build_root: Directory containing the PKGBUILD

        Returns:
            True if makepkg succeeded, False otherwise
        """
        logging.info(f"Building in {build_root}")
        try:
            self.run(build_root)
        except BuildError as e:
            logging.error(f"Build failed in {build_root}: {e}")
            return False
        return True
