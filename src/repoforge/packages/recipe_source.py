"""
Recipe fetching.

Every build attempt starts from a freshly fetched copy of the upstream
recipe. The recipe locator decides how it is obtained:

- ``https://.../foo.tar.gz`` (or .tar.xz, .zip): downloaded and extracted
- an existing local directory: copied
- anything else: treated as a git URL and shallow-cloned
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..process_utils import stream_command
from .downloader import DownloadError, ExtractionError, PackageDownloader, is_archive_url
from .package import PackageSpec, PipelineError, validate_package_name
from .package_kinds import effective_build_root


class FetchError(PipelineError):
    """Raised when a recipe cannot be obtained."""

    pass


@dataclass(frozen=True)
class Workspace:
    """A fetched recipe on disk.

    Attributes:
        package: Package name
        root: Scratch directory holding the fetched recipe
        build_root: Directory containing the PKGBUILD
    """

    package: str
    root: Path
    build_root: Path


class RecipeSource:
    """Materializes upstream recipes into per-package workspaces.

    Example usage:
        source = RecipeSource(Path("/tmp/repoforge-build"))
        workspace = source.fetch(spec)
        print(workspace.build_root)
    """

    def __init__(self, build_dir: Path, downloader: Optional[PackageDownloader] = None):
        """Initialize recipe source.

        Args:
            build_dir: Parent directory of all workspaces
            downloader: Archive downloader (created on demand if omitted)
        """
        self.build_dir = Path(build_dir)
        self._downloader = downloader

    @property
    def downloader(self) -> PackageDownloader:
        if self._downloader is None:
            self._downloader = PackageDownloader()
        return self._downloader

    def workspace_dir(self, name: str) -> Path:
        return self.build_dir / name

    def fetch(self, spec: PackageSpec) -> Workspace:
        """Fetch a package's recipe into a clean workspace.

        Any previous workspace of the package is discarded first.

        Args:
            spec: Package to fetch

        Returns:
            Workspace describing the fetched recipe

        Raises:
            ValidationError: If the package name is invalid (nothing is run)
            FetchError: If the recipe cannot be obtained
        """
        validate_package_name(spec.name)

        root = self.workspace_dir(spec.name)
        if root.resolve().parent != self.build_dir.resolve():
            raise FetchError(f"Workspace {root} escapes build directory {self.build_dir}")
        try:
            if root.exists():
                shutil.rmtree(root)
            self.build_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FetchError(f"Cannot prepare workspace {root}: {e}") from e

        locator = spec.source
        logging.info(f"Fetching {spec.name} from {locator}")

        if is_archive_url(locator):
            self._fetch_archive(locator, root)
        elif _looks_like_path(locator):
            self._copy_directory(Path(locator).expanduser(), root)
        else:
            self._clone(locator, root)

        build_root = effective_build_root(root, spec)
        if not build_root.is_dir():
            raise FetchError(f"Build root {build_root} missing after fetching {spec.name}")

        return Workspace(package=spec.name, root=root, build_root=build_root)

    def _clone(self, url: str, root: Path) -> None:
        try:
            returncode = stream_command(
                ["git", "clone", "--depth", "1", url, str(root)], prefix="[git] "
            )
        except OSError as e:
            raise FetchError(f"Failed to run git: {e}") from e
        if returncode != 0:
            raise FetchError(f"git clone of {url} failed with code {returncode}")

    def _copy_directory(self, source: Path, root: Path) -> None:
        if not source.is_dir():
            raise FetchError(f"Recipe directory not found: {source}")
        try:
            shutil.copytree(source, root, symlinks=True)
        except (OSError, shutil.Error) as e:
            raise FetchError(f"Failed to copy {source}: {e}") from e

    def _fetch_archive(self, url: str, root: Path) -> None:
        cache_dir = self.build_dir / ".downloads"
        try:
            self.downloader.download_and_extract(url, cache_dir, root)
        except (DownloadError, ExtractionError) as e:
            raise FetchError(str(e)) from e
        _flatten_single_directory(root)


def _looks_like_path(locator: str) -> bool:
    if "://" in locator or locator.startswith("git@"):
        return False
    return locator.startswith(("/", ".", "~")) or Path(locator).is_dir()


def _flatten_single_directory(root: Path) -> None:
    """Hoist the contents of a lone top-level directory into root."""
    entries = list(root.iterdir())
    if len(entries) != 1 or not entries[0].is_dir():
        return
    # Renamed first so a child sharing the directory's name cannot collide
    inner = entries[0].rename(root / ".repoforge-flatten")
    for child in inner.iterdir():
        shutil.move(str(child), str(root / child.name))
    inner.rmdir()
