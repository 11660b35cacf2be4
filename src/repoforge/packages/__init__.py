"""Package management: recipes, versions and artifacts."""

from .package import (
    PackageSpec,
    PipelineError,
    ValidationError,
    VariantSpec,
    validate_package_name,
)
from .package_kinds import (
    OVERLAY_FILENAME,
    PACKAGE_KINDS,
    PackageKind,
    effective_build_root,
    get_package_kind,
    kind_for,
    matches_artifact,
    resolve_isolate_variants,
    resolve_unknown_upstream_policy,
)
from .artifacts import ArtifactCollector, ArtifactRecord, parse_artifact_filename, scan_artifacts
from .aur_rpc import AURClient
from .downloader import DownloadError, ExtractionError, PackageDownloader
from .recipe_source import FetchError, RecipeSource, Workspace
from .version import (
    VersionComparator,
    VersionOracle,
    VersionUnknownError,
    parse_srcinfo,
    vercmp,
)

__all__ = [
    "PackageSpec",
    "VariantSpec",
    "PipelineError",
    "ValidationError",
    "validate_package_name",
    "OVERLAY_FILENAME",
    "PACKAGE_KINDS",
    "PackageKind",
    "effective_build_root",
    "get_package_kind",
    "kind_for",
    "matches_artifact",
    "resolve_isolate_variants",
    "resolve_unknown_upstream_policy",
    "ArtifactCollector",
    "ArtifactRecord",
    "parse_artifact_filename",
    "scan_artifacts",
    "AURClient",
    "DownloadError",
    "ExtractionError",
    "PackageDownloader",
    "FetchError",
    "RecipeSource",
    "Workspace",
    "VersionComparator",
    "VersionOracle",
    "VersionUnknownError",
    "parse_srcinfo",
    "vercmp",
]
