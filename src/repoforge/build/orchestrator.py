"""
Build orchestration for repository updates.

This module drives the whole update run. For every configured package and
each of its variants it:
1. Fetches the recipe into a fresh workspace
2. Applies the variant's configuration overlay
3. Compares the upstream version with the one in the repository
4. Builds with makepkg when the upstream version is newer (or when forced)
5. Moves the produced packages into the output repository

Failures are recorded per variant and never stop the run. The repository
database is regenerated once at the end, even when the run is interrupted.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional

from ..packages.artifacts import ArtifactCollector
from ..packages.package import PackageSpec, PipelineError, VariantSpec
from ..packages.package_kinds import resolve_unknown_upstream_policy
from ..packages.recipe_source import RecipeSource
from ..packages.version import VersionOracle
from .executor import BuildExecutor
from .indexer import RepositoryIndexer
from .variant_configurator import VariantConfigurator

SUMMARY_HEADER = "========== BUILD SUMMARY =========="


class OutcomeStatus(Enum):
    """Result of one variant attempt."""

    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class BuildOutcome:
    """Outcome of building one variant of one package."""

    package: str
    variant: str
    status: OutcomeStatus
    reason: str = ""

    @property
    def unit(self) -> str:
        """Identifier used in summaries: package, or package-variant."""
        if not self.variant:
            return self.package
        return f"{self.package}-{self.variant}"


@dataclass
class RunReport:
    """Ordered record of every variant attempt in a run."""

    outcomes: List[BuildOutcome] = field(default_factory=list)
    log_file: Optional[Path] = None
    index_error: Optional[str] = None

    def record(self, outcome: BuildOutcome) -> None:
        self.outcomes.append(outcome)

    def _with_status(self, status: OutcomeStatus) -> List[BuildOutcome]:
        return [o for o in self.outcomes if o.status == status]

    @property
    def successes(self) -> List[BuildOutcome]:
        return self._with_status(OutcomeStatus.SUCCEEDED)

    @property
    def failures(self) -> List[BuildOutcome]:
        return self._with_status(OutcomeStatus.FAILED)

    @property
    def skips(self) -> List[BuildOutcome]:
        return self._with_status(OutcomeStatus.SKIPPED)

    def summary_lines(self) -> List[str]:
        """Human-readable end-of-run summary."""
        lines = [
            SUMMARY_HEADER,
            f"Successful: {len(self.successes)}",
            f"Skipped: {len(self.skips)}",
            f"Failed: {len(self.failures)}",
        ]
        if self.failures:
            lines.append(f"Failed packages: {' '.join(o.unit for o in self.failures)}")
        if self.index_error:
            lines.append(f"Repository index: {self.index_error}")
        if self.log_file is not None:
            lines.append(f"Log file: {self.log_file}")
        return lines


class Orchestrator:
    """
    Runs the fetch, configure, decide, build, collect pipeline.

    Example usage:
        orchestrator = Orchestrator(
            source=RecipeSource(build_dir),
            configurator=VariantConfigurator(config_dir),
            oracle=oracle,
            executor=BuildExecutor(),
            collector=ArtifactCollector(),
            indexer=RepositoryIndexer("tekne"),
            output_dir=Path("/srv/repo/tekne"),
        )
        report = orchestrator.run(packages)
        print(len(report.failures))
    """

    def __init__(
        self,
        source: RecipeSource,
        configurator: VariantConfigurator,
        oracle: VersionOracle,
        executor: BuildExecutor,
        collector: ArtifactCollector,
        indexer: RepositoryIndexer,
        output_dir: Path,
        force: bool = False,
        dry_run: bool = False,
        log_file: Optional[Path] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            source: Recipe fetcher
            configurator: Overlay applier
            oracle: Version lookup and build decision
            executor: makepkg runner
            collector: Artifact mover
            indexer: repo-add runner
            output_dir: Output repository directory
            force: Build every variant regardless of versions
            dry_run: Stop after the build decision and skip re-indexing
            log_file: Log file path reported in the summary
        """
        self.source = source
        self.configurator = configurator
        self.oracle = oracle
        self.executor = executor
        self.collector = collector
        self.indexer = indexer
        self.output_dir = Path(output_dir)
        self.force = force
        self.dry_run = dry_run
        self.log_file = log_file

    def run(self, packages: Iterable[PackageSpec]) -> RunReport:
        """
        Process every package and variant, then regenerate the index.

        Args:
            packages: Packages in processing order

        Returns:
            RunReport with one outcome per attempted variant
        """
        report = RunReport(log_file=self.log_file)
        try:
            for spec in packages:
                for variant in spec.build_variants():
                    outcome = self.process_variant(spec, variant)
                    report.record(outcome)
        finally:
            try:
                if not self.dry_run:
                    self._reindex(report)
            finally:
                for line in report.summary_lines():
                    logging.info(line)
        return report

    def process_variant(self, spec: PackageSpec, variant: VariantSpec) -> BuildOutcome:
        """Run the pipeline for one variant and describe what happened."""
        unit = spec.unit_name(variant)
        logging.info(f"==> Processing {unit}")

        def outcome(status: OutcomeStatus, reason: str) -> BuildOutcome:
            log = logging.error if status == OutcomeStatus.FAILED else logging.info
            log(f"{unit}: {status.value} ({reason})")
            return BuildOutcome(spec.name, variant.name, status, reason)

        try:
            workspace = self.source.fetch(spec)

            if variant.overlay is not None:
                self.configurator.apply(workspace, variant.overlay)

            if self.force:
                decision = "forced"
            else:
                upstream = self.oracle.upstream_version(spec, workspace.build_root)
                local = self.oracle.local_version(spec, variant.name)
                policy = resolve_unknown_upstream_policy(spec)
                logging.info(f"{unit}: local={local or 'none'} upstream={upstream or 'unknown'}")

                if not self.oracle.is_newer(upstream, local, policy):
                    if upstream is None:
                        return outcome(OutcomeStatus.SKIPPED, "upstream version unknown")
                    return outcome(OutcomeStatus.SKIPPED, f"up to date ({local})")

                if local is None:
                    decision = "not in repository"
                elif upstream is None:
                    decision = "upstream version unknown"
                else:
                    decision = f"{local} -> {upstream}"

            if self.dry_run:
                return outcome(OutcomeStatus.SKIPPED, f"dry run: would build ({decision})")

            if not self.executor.build(workspace.build_root):
                return outcome(OutcomeStatus.FAILED, "build failed")

            count = self.collector.collect(workspace.build_root, self.output_dir)
            return outcome(OutcomeStatus.SUCCEEDED, f"{decision}, {count} package(s) collected")

        except PipelineError as e:
            return outcome(OutcomeStatus.FAILED, str(e))
        except OSError as e:
            return outcome(OutcomeStatus.FAILED, f"I/O error: {e}")

    def _reindex(self, report: RunReport) -> None:
        try:
            self.indexer.reindex(self.output_dir)
        except (PipelineError, OSError) as e:
            logging.error(f"Repository index update failed: {e}")
            report.index_error = str(e)
