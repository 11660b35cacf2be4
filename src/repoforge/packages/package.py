"""Package and variant definitions.

This module defines the immutable description of a tracked upstream package
(PackageSpec) and of the configuration variants built from it (VariantSpec),
together with the base exception shared by every pipeline stage.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

# Package names are passed to git, makepkg and the filesystem. A leading dot
# or hyphen is rejected, which also rules out "." and "..".
PACKAGE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9._-]*$")

UNKNOWN_UPSTREAM_POLICIES = ("build", "skip")


class PipelineError(Exception):
    """Base exception for errors scoped to one package or variant."""

    pass


class ValidationError(PipelineError):
    """Raised when a package or variant name fails validation."""

    pass


def validate_package_name(name: str) -> str:
    """Validate a package name before it is used anywhere near a subprocess.

    Args:
        name: Package name to validate

    Returns:
        The unchanged name

    Raises:
        ValidationError: If the name is empty or contains forbidden characters
    """
    if not isinstance(name, str) or not PACKAGE_NAME_PATTERN.fullmatch(name):
        raise ValidationError(f"Invalid package name: {name!r}")
    return name


@dataclass(frozen=True)
class VariantSpec:
    """A named configuration overlay producing one build of a package.

    An empty name denotes the package's single default variant.
    """

    name: str = ""
    overlay: Optional[Path] = None

    @property
    def is_default(self) -> bool:
        return not self.name


@dataclass(frozen=True)
class PackageSpec:
    """An upstream package tracked by the repository.

    Attributes:
        name: Package name (validated)
        source: Upstream recipe locator (git URL, archive URL or local path)
        kind: Key into the package kind table (aur, tkg-kernel, ...)
        variants: Ordered variants; empty means one default variant
        on_unknown_upstream: "build" or "skip" when upstream version is unknown
        artifacts: Optional override of the kind's artifact name patterns
        build_subdir: Optional override of the kind's nested build root
        isolate_variants: Optional override of the kind's sibling-variant rule
    """

    name: str
    source: str
    kind: str = "aur"
    variants: Tuple[VariantSpec, ...] = field(default_factory=tuple)
    on_unknown_upstream: Optional[str] = None
    artifacts: Tuple[str, ...] = field(default_factory=tuple)
    build_subdir: Optional[str] = None
    isolate_variants: Optional[bool] = None

    def __post_init__(self) -> None:
        # Names are validated by the config loader and by RecipeSource.fetch.
        if (
            self.on_unknown_upstream is not None
            and self.on_unknown_upstream not in UNKNOWN_UPSTREAM_POLICIES
        ):
            raise ValueError(
                f"on_unknown_upstream must be one of {UNKNOWN_UPSTREAM_POLICIES}, "
                + f"got {self.on_unknown_upstream!r}"
            )

    def build_variants(self) -> Tuple[VariantSpec, ...]:
        """Variants to build, with the implicit default variant when none are set."""
        return self.variants or (VariantSpec(),)

    def unit_name(self, variant: VariantSpec) -> str:
        """Identifier used in the success and failure lists."""
        if variant.is_default:
            return self.name
        return f"{self.name}-{variant.name}"
