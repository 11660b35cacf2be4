"""
Command-line interface for repoforge.

This module provides the `repoforge` CLI tool for keeping a pacman
repository in sync with its upstream recipes.
"""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from repoforge import __version__
from repoforge.build import (
    BuildExecutor,
    Orchestrator,
    RepositoryIndexer,
    RepositoryIndexError,
    VariantConfigurator,
)
from repoforge.cli_utils import ErrorFormatter, PathValidator, ToolChecker
from repoforge.config import RepoConfigError, RepoSettings, load_config
from repoforge.log_utils import setup_logging
from repoforge.packages import (
    AURClient,
    ArtifactCollector,
    RecipeSource,
    VersionComparator,
    VersionOracle,
)

BUILD_TOOLS = ["git", "makepkg", "repo-add"]


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    config: Optional[Path] = None
    force: bool = False
    dry_run: bool = False
    only: List[str] = field(default_factory=list)
    verbose: bool = False


@dataclass
class ListArgs:
    """Arguments for the list command."""

    config: Optional[Path] = None


@dataclass
class ReindexArgs:
    """Arguments for the reindex command."""

    config: Optional[Path] = None
    verbose: bool = False


def create_indexer(settings: RepoSettings) -> RepositoryIndexer:
    return RepositoryIndexer(
        repo_name=settings.repo_name,
        repo_user=settings.repo_user,
        extension=settings.artifact_extension,
    )


def create_orchestrator(
    settings: RepoSettings,
    comparator: VersionComparator,
    force: bool = False,
    dry_run: bool = False,
    log_file: Optional[Path] = None,
) -> Orchestrator:
    """Wire the pipeline components from configuration settings."""
    oracle = VersionOracle(
        search_dirs=settings.search_dirs,
        comparator=comparator,
        extension=settings.artifact_extension,
        srcinfo_timeout=settings.srcinfo_timeout,
        aur_client=AURClient(settings.aur_base),
    )
    return Orchestrator(
        source=RecipeSource(settings.build_dir),
        configurator=VariantConfigurator(settings.config_dir),
        oracle=oracle,
        executor=BuildExecutor(),
        collector=ArtifactCollector(settings.artifact_extension),
        indexer=create_indexer(settings),
        output_dir=settings.output_dir,
        force=force,
        dry_run=dry_run,
        log_file=log_file,
    )


def build_command(args: BuildArgs) -> None:
    """Update the repository from upstream recipes.

    Examples:
        repoforge build                        # Build what changed upstream
        repoforge build --force                # Rebuild everything
        repoforge build --only linux-tkg zoom  # Restrict to some packages
        repoforge build --dry-run              # Only report what would be built
        repoforge build -c ~/tekne.ini         # Use another configuration
    """
    print(f"repoforge v{__version__}")
    print()

    try:
        try:
            config = load_config(args.config)
            settings = config.get_settings()
            packages = config.get_packages(args.only)
        except RepoConfigError as e:
            ErrorFormatter.handle_config_error(e)
            return

        comparator = VersionComparator(settings.version_backend)
        if not comparator.is_available():
            ErrorFormatter.print_error(
                "Pre-flight check failed",
                "vercmp is required (pacman). Install: pacman -S pacman\n"
                + "or set 'version_backend = builtin' in the [repoforge] section.",
            )
            sys.exit(1)

        log_file = setup_logging(settings.effective_log_dir, args.verbose)

        logging.info(f"Configuration: {config.ini_path}")
        logging.info(f"Local repo (version source): {settings.local_repo_dir}")
        logging.info(f"Output repo: {settings.output_dir}")
        logging.info(f"Config directory: {settings.config_dir}")
        logging.info(f"Log file: {log_file}")
        if args.force:
            logging.info("Force build: skipping version checks")

        for tool in ToolChecker.missing_tools(BUILD_TOOLS):
            logging.warning(f"{tool} not found on PATH")

        orchestrator = create_orchestrator(
            settings,
            comparator,
            force=args.force,
            dry_run=args.dry_run,
            log_file=log_file,
        )
        report = orchestrator.run(packages)

        if report.failures:
            ErrorFormatter.print_warning(
                f"{len(report.failures)} build(s) failed: "
                + " ".join(o.unit for o in report.failures)
            )
        else:
            ErrorFormatter.print_success("Repository update complete")
        sys.exit(0)

    except PermissionError as e:
        ErrorFormatter.handle_permission_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def list_command(args: ListArgs) -> None:
    """Show configured packages and their variants.

    Examples:
        repoforge list
        repoforge list -c ~/tekne.ini
    """
    try:
        config = load_config(args.config)
        settings = config.get_settings()
        packages = config.get_packages()
    except RepoConfigError as e:
        ErrorFormatter.handle_config_error(e)
        return

    print(f"Repository: {settings.repo_name} ({settings.output_dir})")
    print(f"Packages: {len(packages)}")
    print()
    for spec in packages:
        print(f"{spec.name} [{spec.kind}] {spec.source}")
        for variant in spec.variants:
            label = variant.name or "default"
            print(f"    {label}: {variant.overlay}")
    sys.exit(0)


def reindex_command(args: ReindexArgs) -> None:
    """Regenerate the repository database without building anything.

    Examples:
        repoforge reindex
    """
    try:
        try:
            settings = load_config(args.config).get_settings()
        except RepoConfigError as e:
            ErrorFormatter.handle_config_error(e)
            return

        setup_logging(None, args.verbose)
        indexer = create_indexer(settings)
        try:
            artifacts = indexer.reindex(settings.output_dir)
        except RepositoryIndexError as e:
            ErrorFormatter.print_error("Re-index failed", str(e))
            sys.exit(1)

        ErrorFormatter.print_success(f"Indexed {len(artifacts)} package(s)")
        sys.exit(0)

    except PermissionError as e:
        ErrorFormatter.handle_permission_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def main(argv: Optional[List[str]] = None) -> None:
    """repoforge - keep a pacman repository in sync with upstream recipes."""
    parser = argparse.ArgumentParser(
        prog="repoforge",
        description="repoforge - build AUR and TKG packages into a local pacman repository",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"repoforge {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    config_help = "Configuration file (default: $REPOFORGE_CONFIG or the bundled tekne.ini)"

    # Build command
    build_parser = subparsers.add_parser(
        "build",
        help="Build packages whose upstream version is newer",
    )
    build_parser.add_argument("-c", "--config", type=Path, default=None, help=config_help)
    build_parser.add_argument(
        "--force",
        action="store_true",
        help="Build every package, skipping version checks",
    )
    build_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Decide what would be built without building",
    )
    build_parser.add_argument(
        "--only",
        nargs="+",
        default=[],
        metavar="PKG",
        help="Only process the given packages",
    )
    build_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug output",
    )

    # List command
    list_parser = subparsers.add_parser(
        "list",
        help="Show configured packages",
    )
    list_parser.add_argument("-c", "--config", type=Path, default=None, help=config_help)

    # Reindex command
    reindex_parser = subparsers.add_parser(
        "reindex",
        help="Regenerate the repository database",
    )
    reindex_parser.add_argument("-c", "--config", type=Path, default=None, help=config_help)
    reindex_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug output",
    )

    # Parse arguments
    parsed_args = parser.parse_args(argv)

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    PathValidator.validate_config_file(parsed_args.config)

    # Execute command
    if parsed_args.command == "build":
        build_args = BuildArgs(
            config=parsed_args.config,
            force=parsed_args.force,
            dry_run=parsed_args.dry_run,
            only=parsed_args.only,
            verbose=parsed_args.verbose,
        )
        build_command(build_args)
    elif parsed_args.command == "list":
        list_command(ListArgs(config=parsed_args.config))
    elif parsed_args.command == "reindex":
        reindex_command(ReindexArgs(config=parsed_args.config, verbose=parsed_args.verbose))


if __name__ == "__main__":
    main()
