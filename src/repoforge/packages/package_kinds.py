"""
Package kind definitions.

Upstream sources differ in where the PKGBUILD lives inside the fetched
recipe and in how the produced artifacts are named. This module centralizes
those differences in a lookup table, so supporting a new upstream layout is
a data change instead of a new code path.
"""

from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Optional, Tuple

from .package import PackageSpec

# File the upstream build tool reads for customization
OVERLAY_FILENAME = "customization.cfg"


@dataclass(frozen=True)
class PackageKind:
    """Layout and naming rules shared by packages of one upstream family.

    Patterns may contain a ``{name}`` placeholder which is replaced with the
    package name before matching.
    """

    kind_id: str
    artifact_patterns: Tuple[str, ...] = ("{name}",)  # fnmatch on pkgname
    exclude_patterns: Tuple[str, ...] = ()
    build_subdir: Optional[str] = None  # PKGBUILD nested below the workspace
    on_unknown_upstream: str = "build"
    aur_rpc: bool = False  # Fall back to the AUR RPC API for versions
    isolate_variants: bool = False  # Ignore artifacts tagged with a sibling variant
    srcinfo_timeout: Optional[int] = None  # Overrides the global timeout

    def patterns_for(self, spec: PackageSpec) -> Tuple[str, ...]:
        """Artifact name patterns for a package, honoring per-package overrides."""
        patterns = spec.artifacts or self.artifact_patterns
        return tuple(p.format(name=spec.name) for p in patterns)

    def excludes_for(self, spec: PackageSpec) -> Tuple[str, ...]:
        return tuple(p.format(name=spec.name) for p in self.exclude_patterns)


PACKAGE_KINDS = {
    # Plain AUR packages: one PKGBUILD at the clone root, pkgname == name
    "aur": PackageKind(
        kind_id="aur",
        on_unknown_upstream="skip",
        aur_rpc=True,
        srcinfo_timeout=120,
    ),
    # linux-tkg produces linux<ver>-tkg-<sched> kernels and headers. The
    # "alk" sub-variant is a different kernel whose name also matches.
    "tkg-kernel": PackageKind(
        kind_id="tkg-kernel",
        artifact_patterns=("linux*-tkg-*",),
        exclude_patterns=("*-tkg-alk*",),
        srcinfo_timeout=180,
    ),
    "tkg-nvidia": PackageKind(
        kind_id="tkg-nvidia",
        artifact_patterns=("nvidia*-utils-tkg",),
        srcinfo_timeout=180,
    ),
    # wine-tkg-git keeps its PKGBUILD in a same-named subdirectory
    "tkg-wine": PackageKind(
        kind_id="tkg-wine",
        artifact_patterns=("wine-tkg*",),
        build_subdir="{name}",
        srcinfo_timeout=180,
    ),
    "generic": PackageKind(kind_id="generic"),
}


def get_package_kind(kind_id: str) -> Optional[PackageKind]:
    """
    Get a package kind by ID.

    Args:
        kind_id: Kind identifier (e.g., 'aur', 'tkg-wine')

    Returns:
        PackageKind if found, None otherwise
    """
    return PACKAGE_KINDS.get(kind_id.lower())


def kind_for(spec: PackageSpec) -> PackageKind:
    """Resolve the kind of a package, falling back to 'generic'."""
    return get_package_kind(spec.kind) or PACKAGE_KINDS["generic"]


def effective_build_root(workspace_root: Path, spec: PackageSpec) -> Path:
    """
    Directory holding the PKGBUILD inside a fetched workspace.

    Every component that touches the recipe (overlay, version evaluation,
    build, artifact collection) resolves the build root through this rule.

    Args:
        workspace_root: Root of the fetched recipe
        spec: Package the workspace belongs to

    Returns:
        Path to the effective build root
    """
    subdir = spec.build_subdir or kind_for(spec).build_subdir
    if not subdir:
        return workspace_root
    return workspace_root / subdir.format(name=spec.name)


def resolve_unknown_upstream_policy(spec: PackageSpec) -> str:
    """Policy applied when the upstream version cannot be determined."""
    return spec.on_unknown_upstream or kind_for(spec).on_unknown_upstream


def resolve_isolate_variants(spec: PackageSpec) -> bool:
    """Whether a variant lookup skips artifacts of the package's other variants."""
    if spec.isolate_variants is not None:
        return spec.isolate_variants
    return kind_for(spec).isolate_variants


def matches_artifact(spec: PackageSpec, artifact_name: str) -> bool:
    """
    Check whether an artifact's package name belongs to a tracked package.

    Args:
        spec: Tracked package
        artifact_name: pkgname parsed from an artifact filename

    Returns:
        True if the name matches one of the package's artifact patterns and
        none of its exclusions
    """
    kind = kind_for(spec)
    if any(fnmatchcase(artifact_name, p) for p in kind.excludes_for(spec)):
        return False
    return any(fnmatchcase(artifact_name, p) for p in kind.patterns_for(spec))
