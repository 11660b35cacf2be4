"""Version discovery and comparison.

This module answers the one question the pipeline is built around: is the
upstream recipe newer than what the repository already contains?

- Local versions come from artifact filenames in the repository directories.
- Upstream versions come from evaluating the recipe with
  ``makepkg --printsrcinfo`` (bounded by a timeout), with the AUR RPC API as
  a fallback for AUR packages.
- Versions are ordered with pacman semantics, either through the ``vercmp``
  tool shipped with pacman or through a Python port of libalpm's algorithm.

Version lookups fail soft: anything that goes wrong yields None ("unknown")
rather than an exception.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from ..process_utils import CommandTimeoutError, run_with_timeout
from .artifacts import DEFAULT_ARTIFACT_EXTENSION, ArtifactRecord, scan_artifacts
from .aur_rpc import AURClient
from .package import PackageSpec, PipelineError
from .package_kinds import kind_for, matches_artifact, resolve_isolate_variants

VERSION_BACKENDS = ("vercmp", "builtin")

DEFAULT_SRCINFO_TIMEOUT = 120


class VersionUnknownError(PipelineError):
    """Raised internally when a version cannot be determined."""

    pass


def _isdigit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _isalpha(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def _isalnum(ch: str) -> bool:
    return _isdigit(ch) or _isalpha(ch)


def rpmvercmp(a: str, b: str) -> int:
    """Compare two version segments (no epoch or release) like libalpm.

    Alternating runs of digits and letters are compared one by one: digit
    runs numerically, letter runs as strings, and a digit run always beats a
    letter run. A trailing letter run makes a version older (1.0rc < 1.0),
    any other trailing content makes it newer (1.0.1 > 1.0).

    Returns:
        -1, 0 or 1
    """
    if a == b:
        return 0

    n1, n2 = len(a), len(b)
    one = two = 0
    ptr1 = ptr2 = 0

    while one < n1 and two < n2:
        while one < n1 and not _isalnum(a[one]):
            one += 1
        while two < n2 and not _isalnum(b[two]):
            two += 1

        if one >= n1 or two >= n2:
            break

        # Different separator lengths decide the comparison
        if (one - ptr1) != (two - ptr2):
            return -1 if (one - ptr1) < (two - ptr2) else 1

        ptr1, ptr2 = one, two
        if _isdigit(a[ptr1]):
            while ptr1 < n1 and _isdigit(a[ptr1]):
                ptr1 += 1
            while ptr2 < n2 and _isdigit(b[ptr2]):
                ptr2 += 1
            isnum = True
        else:
            while ptr1 < n1 and _isalpha(a[ptr1]):
                ptr1 += 1
            while ptr2 < n2 and _isalpha(b[ptr2]):
                ptr2 += 1
            isnum = False

        seg1 = a[one:ptr1]
        seg2 = b[two:ptr2]

        # Segments of different types: numeric is newer than alpha
        if not seg2:
            return 1 if isnum else -1

        if isnum:
            seg1 = seg1.lstrip("0")
            seg2 = seg2.lstrip("0")
            if len(seg1) != len(seg2):
                return 1 if len(seg1) > len(seg2) else -1

        if seg1 != seg2:
            return 1 if seg1 > seg2 else -1

        one, two = ptr1, ptr2

    if one >= n1 and two >= n2:
        return 0

    # A remaining alpha run never beats an empty string
    if (one >= n1 and not _isalpha(b[two])) or (one < n1 and _isalpha(a[one])):
        return -1
    return 1


def _parse_evr(evr: str) -> Tuple[str, str, Optional[str]]:
    """Split ``[epoch:]version[-release]`` into its three parts."""
    i = 0
    while i < len(evr) and _isdigit(evr[i]):
        i += 1

    release_sep = evr.rfind("-", i)

    if i < len(evr) and evr[i] == ":":
        epoch = evr[:i] or "0"
        start = i + 1
    else:
        epoch = "0"
        start = 0

    if release_sep != -1:
        return epoch, evr[start:release_sep], evr[release_sep + 1 :]
    return epoch, evr[start:], None


def vercmp(a: Optional[str], b: Optional[str]) -> int:
    """Compare two full package versions with pacman's ordering.

    Epochs are compared first, then versions, then releases (only when both
    sides have one). An absent version is older than any present version.

    Example:
        vercmp("10", "9")        # 1
        vercmp("1.0rc1", "1.0")  # -1
        vercmp("1:1.0-1", "2.0") # 1

    Returns:
        -1 if a is older, 0 if equal, 1 if a is newer
    """
    if a == b:
        return 0
    if a is None:
        return -1
    if b is None:
        return 1

    epoch1, ver1, rel1 = _parse_evr(a)
    epoch2, ver2, rel2 = _parse_evr(b)

    ret = rpmvercmp(epoch1, epoch2)
    if ret == 0:
        ret = rpmvercmp(ver1, ver2)
        if ret == 0 and rel1 is not None and rel2 is not None:
            ret = rpmvercmp(rel1, rel2)
    return ret


class VersionComparator:
    """Three-way version comparison through a configurable backend.

    The ``vercmp`` backend delegates to pacman's tool; ``builtin`` uses the
    Python port above. Unparseable tool output falls back to the builtin
    comparison.
    """

    def __init__(self, backend: str = "vercmp", tool: str = "vercmp"):
        """Initialize comparator.

        Args:
            backend: 'vercmp' or 'builtin'
            tool: Executable used by the vercmp backend

        Raises:
            ValueError: If the backend is unknown
        """
        if backend not in VERSION_BACKENDS:
            raise ValueError(
                f"Unknown version backend '{backend}'. "
                + f"Available: {', '.join(VERSION_BACKENDS)}"
            )
        self.backend = backend
        self.tool = tool

    def is_available(self) -> bool:
        """Check whether the comparison capability is usable."""
        if self.backend == "builtin":
            return True
        return shutil.which(self.tool) is not None

    def compare(self, a: str, b: str) -> int:
        """Compare two versions.

        Returns:
            -1, 0 or 1
        """
        if self.backend == "builtin":
            return vercmp(a, b)

        try:
            result = subprocess.run(
                [self.tool, a, b],
                capture_output=True,
                text=True,
                timeout=10,
            )
            value = int(result.stdout.strip())
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            logging.warning(f"{self.tool} failed for '{a}' vs '{b}' ({e}), using builtin comparison")
            return vercmp(a, b)

        return (value > 0) - (value < 0)


def parse_srcinfo(text: str) -> Optional[str]:
    """Extract ``[epoch:]pkgver[-pkgrel]`` from .SRCINFO content.

    Only the first occurrence of each key is used, which is the pkgbase
    section for split packages.

    Args:
        text: Output of ``makepkg --printsrcinfo``

    Returns:
        Version string, or None when no pkgver is declared
    """
    fields = {}
    for line in text.splitlines():
        key, sep, value = line.strip().partition("=")
        if not sep:
            continue
        key = key.strip()
        if key in ("pkgver", "pkgrel", "epoch") and key not in fields:
            fields[key] = value.strip()

    pkgver = fields.get("pkgver")
    if not pkgver:
        return None

    version = pkgver
    epoch = fields.get("epoch")
    if epoch and epoch != "0":
        version = f"{epoch}:{version}"
    pkgrel = fields.get("pkgrel")
    if pkgrel:
        version = f"{version}-{pkgrel}"
    return version


class VersionOracle:
    """Determines local and upstream versions and decides whether to build.

    Example usage:
        oracle = VersionOracle(
            search_dirs=[Path("/srv/repo/tekne")],
            comparator=VersionComparator("builtin"),
        )
        local = oracle.local_version(spec, "aster")
        upstream = oracle.upstream_version(spec, build_root)
        if oracle.is_newer(upstream, local, policy="build"):
            ...
    """

    def __init__(
        self,
        search_dirs: Iterable[Path],
        comparator: VersionComparator,
        extension: str = DEFAULT_ARTIFACT_EXTENSION,
        srcinfo_timeout: Optional[int] = None,
        aur_client: Optional[AURClient] = None,
    ):
        """Initialize oracle.

        Args:
            search_dirs: Repository directories to look for existing artifacts
            comparator: Version comparison backend
            extension: Artifact file extension
            srcinfo_timeout: Seconds allowed for recipe evaluation; None uses the
                package kind's limit
            aur_client: Optional AUR RPC client for AUR version fallback
        """
        self.search_dirs = list(search_dirs)
        self.comparator = comparator
        self.extension = extension
        self.srcinfo_timeout = srcinfo_timeout
        self.aur_client = aur_client

    def matching_artifacts(self, spec: PackageSpec) -> List[ArtifactRecord]:
        """All artifacts in the search directories belonging to a package."""
        records = []
        for directory in self.search_dirs:
            records.extend(
                r
                for r in scan_artifacts(directory, self.extension)
                if matches_artifact(spec, r.package)
            )
        return records

    def local_version(self, spec: PackageSpec, variant: str = "") -> Optional[str]:
        """Version of the package already present in the repository.

        With a variant name, an artifact carrying that variant token is
        preferred. Otherwise the first match in search order is used. When
        the package isolates its variants, artifacts tagged with one of its
        other variants are ignored in that fallback.

        Args:
            spec: Tracked package
            variant: Variant name ('' for the default variant)

        Returns:
            Version string, or None if nothing matches
        """
        records = self.matching_artifacts(spec)
        if not records:
            return None

        if variant:
            for record in records:
                if record.has_variant_token(variant):
                    return record.version

            if resolve_isolate_variants(spec):
                others = [v.name for v in spec.variants if v.name and v.name != variant]
                records = [
                    r for r in records if not any(r.has_variant_token(o) for o in others)
                ]
                if not records:
                    return None

        return records[0].version

    def upstream_version(self, spec: PackageSpec, build_root: Path) -> Optional[str]:
        """Version declared by a fetched (and configured) recipe.

        Args:
            spec: Tracked package
            build_root: Effective build root of the fetched workspace

        Returns:
            Version string, or None if it cannot be determined
        """
        kind = kind_for(spec)
        timeout = self.srcinfo_timeout or kind.srcinfo_timeout or DEFAULT_SRCINFO_TIMEOUT
        try:
            return self._evaluate_recipe(build_root, timeout)
        except VersionUnknownError as e:
            logging.warning(f"Cannot evaluate recipe for {spec.name}: {e}")

        if kind.aur_rpc and self.aur_client is not None:
            version = self.aur_client.fetch_version(spec.name)
            if version:
                logging.info(f"Upstream version of {spec.name} from AUR RPC: {version}")
            return version

        return None

    def _evaluate_recipe(self, build_root: Path, timeout: int) -> str:
        """Run ``makepkg --printsrcinfo`` and parse the declared version.

        Raises:
            VersionUnknownError: If the recipe is missing, evaluation fails or
                times out, or no pkgver is declared
        """
        if not (build_root / "PKGBUILD").is_file():
            raise VersionUnknownError(f"No PKGBUILD in {build_root}")

        try:
            returncode, output = run_with_timeout(
                ["makepkg", "--printsrcinfo"], cwd=build_root, timeout=timeout
            )
        except CommandTimeoutError as e:
            raise VersionUnknownError(str(e)) from e
        except OSError as e:
            raise VersionUnknownError(f"Failed to run makepkg: {e}") from e

        if returncode != 0:
            raise VersionUnknownError(f"makepkg --printsrcinfo exited with code {returncode}")

        version = parse_srcinfo(output)
        if version is None:
            raise VersionUnknownError("No pkgver in .SRCINFO output")
        return version

    def is_newer(
        self, upstream: Optional[str], local: Optional[str], policy: str = "build"
    ) -> bool:
        """Decide whether the upstream version should be built.

        Args:
            upstream: Upstream version (None if unknown)
            local: Local version (None if no artifact exists)
            policy: 'build' or 'skip', applied when upstream is unknown

        Returns:
            True if a build is required
        """
        if local is None:
            return True
        if upstream is None:
            return policy == "build"
        return self.comparator.compare(upstream, local) > 0
