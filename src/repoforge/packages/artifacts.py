"""Artifact discovery and collection.

Built packages follow the pacman naming convention::

    <pkgname>-<[epoch:]pkgver>-<pkgrel>-<arch>.pkg.tar.zst

This module parses those filenames into ArtifactRecord values and moves
freshly built artifacts from a build root into the output repository.
Nothing is cached: every scan reads the directory again, so callers always
see the repository as it is on disk.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

DEFAULT_ARTIFACT_EXTENSION = ".pkg.tar.zst"


@dataclass(frozen=True)
class ArtifactRecord:
    """A built package file found in a repository directory."""

    package: str  # pkgname
    version: str  # [epoch:]pkgver-pkgrel
    arch: str
    path: Path

    def has_variant_token(self, variant: str) -> bool:
        """Check whether the package name carries a variant token.

        Tokens are matched against hyphen-separated name segments, so the
        variant 'aster' matches 'linux61-tkg-aster' and
        'linux61-tkg-aster-headers' but not 'linux61-tkg-asteroid'.
        """
        if not variant:
            return False
        return variant in self.package.split("-")


def parse_artifact_filename(
    path: Path, extension: str = DEFAULT_ARTIFACT_EXTENSION
) -> Optional[ArtifactRecord]:
    """Parse an artifact filename into its components.

    Args:
        path: Path to the artifact file
        extension: Artifact file extension

    Returns:
        ArtifactRecord, or None if the name does not follow the convention
    """
    filename = path.name
    if not filename.endswith(extension):
        return None

    base = filename[: -len(extension)]
    parts = base.rsplit("-", 3)
    if len(parts) != 4 or not all(parts):
        return None

    package, pkgver, pkgrel, arch = parts
    return ArtifactRecord(
        package=package,
        version=f"{pkgver}-{pkgrel}",
        arch=arch,
        path=path,
    )


def scan_artifacts(
    directory: Path, extension: str = DEFAULT_ARTIFACT_EXTENSION
) -> List[ArtifactRecord]:
    """List artifacts directly inside a directory, sorted by filename.

    Args:
        directory: Directory to scan (missing directories yield no records)
        extension: Artifact file extension

    Returns:
        Parsed artifact records
    """
    if not directory.is_dir():
        return []

    records = []
    for path in sorted(directory.iterdir()):
        if not path.is_file():
            continue
        record = parse_artifact_filename(path, extension)
        if record is not None:
            records.append(record)
    return records


class ArtifactCollector:
    """Moves built artifacts from a build root into the output repository."""

    def __init__(self, extension: str = DEFAULT_ARTIFACT_EXTENSION):
        """Initialize collector.

        Args:
            extension: File extension identifying artifacts
        """
        self.extension = extension

    def collect(self, build_root: Path, output_dir: Path) -> int:
        """Move every artifact file directly inside build_root to output_dir.

        Subdirectories and non-matching files are left in place. Existing
        files with the same name in output_dir are replaced.

        Args:
            build_root: Directory makepkg wrote its packages to
            output_dir: Repository directory

        Returns:
            Number of files moved (zero is not an error)
        """
        if not build_root.is_dir():
            return 0

        output_dir.mkdir(parents=True, exist_ok=True)

        moved = 0
        for path in sorted(build_root.iterdir()):
            if not path.is_file() or not path.name.endswith(self.extension):
                continue
            dest = output_dir / path.name
            if dest.exists():
                dest.unlink()
            shutil.move(str(path), str(dest))
            logging.info(f"Collected {path.name} -> {output_dir}")
            moved += 1

        return moved
