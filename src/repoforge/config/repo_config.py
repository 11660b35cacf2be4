"""
Repository configuration parser.

This module reads the INI file describing the output repository and the
packages tracked for it.

Example repoforge.ini:
    [repoforge]
    repo_name = tekne
    output_dir = /srv/repo/tekne
    config_dir = /etc/repoforge

    [package:linux-tkg]
    kind = tkg-kernel
    source = https://github.com/Frogging-Family/linux-tkg.git
    variants =
        aster = repo-linux-tkg-aster.cfg
        themis = repo-linux-tkg-themis.cfg

    [package:google-chrome]

Directory settings can be overridden with REPOFORGE_* environment variables.
"""

import configparser
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from ..packages.aur_rpc import DEFAULT_AUR_BASE
from ..packages.artifacts import DEFAULT_ARTIFACT_EXTENSION
from ..packages.package import (
    UNKNOWN_UPSTREAM_POLICIES,
    PackageSpec,
    ValidationError,
    VariantSpec,
    validate_package_name,
)
from ..packages.package_kinds import PACKAGE_KINDS
from ..packages.version import VERSION_BACKENDS

SETTINGS_SECTION = "repoforge"
PACKAGE_PREFIX = "package:"

CONFIG_ENV_VAR = "REPOFORGE_CONFIG"

# setting name -> environment variable overriding it
ENV_OVERRIDES = {
    "output_dir": "REPOFORGE_OUTPUT_DIR",
    "local_repo_dir": "REPOFORGE_LOCAL_REPO_DIR",
    "build_dir": "REPOFORGE_BUILD_DIR",
    "config_dir": "REPOFORGE_CONFIG_DIR",
    "repo_user": "REPOFORGE_REPO_USER",
    "log_dir": "REPOFORGE_LOG_DIR",
}


class RepoConfigError(Exception):
    """Exception raised for repository configuration errors."""

    pass


@dataclass(frozen=True)
class RepoSettings:
    """Global settings from the [repoforge] section."""

    repo_name: str = "tekne"
    output_dir: Path = Path("/srv/repo/tekne")
    local_repo_dir: Path = Path("/srv/repotekne")
    build_dir: Path = Path("/tmp/repoforge-build")
    config_dir: Optional[Path] = None
    repo_user: Optional[str] = None
    log_dir: Optional[Path] = None
    srcinfo_timeout: Optional[int] = None
    version_backend: str = "vercmp"
    artifact_extension: str = DEFAULT_ARTIFACT_EXTENSION
    aur_base: str = DEFAULT_AUR_BASE

    @property
    def effective_log_dir(self) -> Path:
        return self.log_dir or self.output_dir / "logs"

    @property
    def search_dirs(self) -> List[Path]:
        """Directories holding existing artifacts, in lookup order."""
        candidates = [
            self.local_repo_dir,
            self.local_repo_dir / "repo",
            self.output_dir,
            self.output_dir / "repo",
        ]
        dirs: List[Path] = []
        for candidate in candidates:
            if candidate not in dirs:
                dirs.append(candidate)
        return dirs


def default_config_path() -> Path:
    """Path of the bundled default configuration."""
    return Path(__file__).resolve().parent.parent / "assets" / "tekne.ini"


def resolve_config_path(
    cli_path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None
) -> Path:
    """Pick the configuration file: CLI argument, $REPOFORGE_CONFIG, bundled default."""
    environ = os.environ if environ is None else environ
    if cli_path is not None:
        return Path(cli_path)
    if environ.get(CONFIG_ENV_VAR):
        return Path(environ[CONFIG_ENV_VAR])
    return default_config_path()


def _split_list(value: str) -> List[str]:
    items = []
    for line in value.split("\n"):
        for item in line.split(","):
            item = item.strip()
            if item:
                items.append(item)
    return items


class RepoConfig:
    """
    Parser for repoforge INI configuration files.

    Usage:
        config = RepoConfig(Path("tekne.ini"))
        settings = config.get_settings()
        for spec in config.get_packages():
            print(spec.name, spec.kind)
    """

    def __init__(self, ini_path: Path, environ: Optional[Mapping[str, str]] = None):
        """
        Initialize the parser with a configuration file.

        Args:
            ini_path: Path to the INI file
            environ: Environment used for overrides (defaults to os.environ)

        Raises:
            RepoConfigError: If the file doesn't exist or cannot be parsed
        """
        self.ini_path = Path(ini_path)
        self.environ = os.environ if environ is None else environ

        if not self.ini_path.exists():
            raise RepoConfigError(f"Configuration file not found: {self.ini_path}")

        self.config = configparser.ConfigParser(
            interpolation=configparser.ExtendedInterpolation()
        )

        try:
            self.config.read(self.ini_path, encoding="utf-8")
        except configparser.Error as e:
            raise RepoConfigError(f"Failed to parse {self.ini_path}: {e}") from e

    def _get(self, section: str, key: str) -> Optional[str]:
        try:
            value = self.config.get(section, key, fallback=None)
        except configparser.Error as e:
            raise RepoConfigError(f"Invalid value for '{key}' in [{section}]: {e}") from e
        if value is None:
            return None
        value = value.strip()
        return value or None

    def _setting(self, key: str) -> Optional[str]:
        env_var = ENV_OVERRIDES.get(key)
        if env_var and self.environ.get(env_var):
            return self.environ[env_var]
        if not self.config.has_section(SETTINGS_SECTION):
            return None
        return self._get(SETTINGS_SECTION, key)

    def get_settings(self) -> RepoSettings:
        """
        Global settings with environment overrides applied.

        Relative config_dir values resolve against the INI file's directory.

        Raises:
            RepoConfigError: If a setting has an invalid value
        """
        defaults = RepoSettings()
        values: Dict[str, object] = {}

        for key in ("output_dir", "local_repo_dir", "build_dir", "log_dir"):
            raw = self._setting(key)
            if raw is not None:
                values[key] = Path(raw).expanduser()

        config_dir = self._setting("config_dir")
        if config_dir is not None:
            path = Path(config_dir).expanduser()
            if not path.is_absolute():
                path = self.ini_path.parent / path
            values["config_dir"] = path

        for key in ("repo_name", "repo_user", "artifact_extension", "aur_base"):
            raw = self._setting(key)
            if raw is not None:
                values[key] = raw

        timeout = self._setting("srcinfo_timeout")
        if timeout is not None:
            try:
                values["srcinfo_timeout"] = int(timeout)
            except ValueError:
                raise RepoConfigError(f"srcinfo_timeout must be an integer, got '{timeout}'")
            if values["srcinfo_timeout"] <= 0:
                raise RepoConfigError("srcinfo_timeout must be positive")

        backend = self._setting("version_backend")
        if backend is not None:
            if backend not in VERSION_BACKENDS:
                raise RepoConfigError(
                    f"Unknown version_backend '{backend}'. "
                    + f"Available: {', '.join(VERSION_BACKENDS)}"
                )
            values["version_backend"] = backend

        repo_name = values.get("repo_name", defaults.repo_name)
        try:
            validate_package_name(str(repo_name))
        except ValidationError:
            raise RepoConfigError(f"Invalid repo_name: {repo_name!r}")

        return RepoSettings(**values)  # type: ignore[arg-type]

    def get_package_names(self) -> List[str]:
        """
        Names of all configured packages in file order.

        Example:
            For [package:linux-tkg], [package:zoom], returns ['linux-tkg', 'zoom']
        """
        return [
            section[len(PACKAGE_PREFIX):]
            for section in self.config.sections()
            if section.startswith(PACKAGE_PREFIX)
        ]

    def has_package(self, name: str) -> bool:
        return f"{PACKAGE_PREFIX}{name}" in self.config

    def get_package(self, name: str) -> PackageSpec:
        """
        Build the PackageSpec of one configured package.

        Args:
            name: Package name

        Returns:
            PackageSpec for the package

        Raises:
            RepoConfigError: If the package is unknown or its section is invalid
        """
        section = f"{PACKAGE_PREFIX}{name}"
        if section not in self.config:
            available = ", ".join(self.get_package_names())
            raise RepoConfigError(
                f"Package '{name}' not found. "
                + f"Available packages: {available or 'none'}"
            )

        try:
            validate_package_name(name)
        except ValidationError as e:
            raise RepoConfigError(str(e)) from e

        kind = (self._get(section, "kind") or "aur").lower()
        if kind not in PACKAGE_KINDS:
            raise RepoConfigError(
                f"Package '{name}' has unknown kind '{kind}'. "
                + f"Available: {', '.join(PACKAGE_KINDS)}"
            )

        source = self._get(section, "source")
        if source is None:
            if kind != "aur":
                raise RepoConfigError(f"Package '{name}' of kind '{kind}' needs a source")
            aur_base = self._setting("aur_base") or DEFAULT_AUR_BASE
            source = f"{aur_base.rstrip('/')}/{name}.git"

        policy = self._get(section, "on_unknown_upstream")
        if policy is not None and policy not in UNKNOWN_UPSTREAM_POLICIES:
            raise RepoConfigError(
                f"Package '{name}': on_unknown_upstream must be one of "
                + f"{', '.join(UNKNOWN_UPSTREAM_POLICIES)}, got '{policy}'"
            )

        artifacts = tuple(_split_list(self._get(section, "artifacts") or ""))
        build_subdir = self._get(section, "build_subdir")
        for pattern in artifacts + ((build_subdir,) if build_subdir else ()):
            try:
                pattern.format(name=name)
            except (KeyError, IndexError, ValueError) as e:
                raise RepoConfigError(
                    f"Package '{name}': invalid pattern '{pattern}' "
                    + "(only {name} may appear in braces)"
                ) from e

        isolate_variants = None
        if self._get(section, "isolate_variants") is not None:
            try:
                isolate_variants = self.config.getboolean(section, "isolate_variants")
            except ValueError as e:
                raise RepoConfigError(
                    f"Package '{name}': isolate_variants must be a boolean"
                ) from e

        return PackageSpec(
            name=name,
            source=source,
            kind=kind,
            variants=self._get_variants(section, name),
            on_unknown_upstream=policy,
            artifacts=artifacts,
            build_subdir=build_subdir,
            isolate_variants=isolate_variants,
        )

    def _get_variants(self, section: str, name: str) -> tuple:
        variants_str = self._get(section, "variants")
        overlay = self._get(section, "overlay")

        if variants_str and overlay:
            raise RepoConfigError(f"Package '{name}' sets both 'variants' and 'overlay'")

        if overlay:
            return (VariantSpec(name="", overlay=Path(overlay)),)

        if not variants_str:
            return ()

        variants = []
        seen = set()
        for line in variants_str.split("\n"):
            line = line.strip()
            if not line:
                continue
            variant_name, sep, overlay_path = line.partition("=")
            variant_name = variant_name.strip()
            overlay_path = overlay_path.strip()
            if not sep or not variant_name or not overlay_path:
                raise RepoConfigError(
                    f"Package '{name}': variant lines must look like 'name = file.cfg', got '{line}'"
                )
            try:
                validate_package_name(variant_name)
            except ValidationError:
                raise RepoConfigError(f"Package '{name}': invalid variant name '{variant_name}'")
            if variant_name in seen:
                raise RepoConfigError(f"Package '{name}': duplicate variant '{variant_name}'")
            seen.add(variant_name)
            variants.append(VariantSpec(name=variant_name, overlay=Path(overlay_path)))
        return tuple(variants)

    def get_packages(self, only: Optional[Sequence[str]] = None) -> List[PackageSpec]:
        """
        PackageSpecs of all configured packages, or of a selection.

        Args:
            only: Package names to keep, in configuration order

        Raises:
            RepoConfigError: If a selected package is not configured
        """
        names = self.get_package_names()
        if only:
            unknown = [n for n in only if n not in names]
            if unknown:
                raise RepoConfigError(f"Unknown package(s): {', '.join(unknown)}")
            names = [n for n in names if n in only]
        return [self.get_package(n) for n in names]


def load_config(
    cli_path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None
) -> RepoConfig:
    """Locate and parse the configuration file."""
    return RepoConfig(resolve_config_path(cli_path, environ), environ)
