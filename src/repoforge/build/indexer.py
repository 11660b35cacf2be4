"""Repository index maintenance with repo-add."""

import logging
from pathlib import Path
from typing import List, Optional

from ..packages.artifacts import DEFAULT_ARTIFACT_EXTENSION
from ..packages.package import PipelineError
from ..process_utils import current_username, stream_command


class RepositoryIndexError(PipelineError):
    """Raised when repo-add fails or cannot be started."""

    pass


class RepositoryIndexer:
    """Regenerates the pacman repository database of an output directory.

    An existing database is updated in place (``repo-add -n``, only new
    packages are added and nothing is pruned); a missing one is built from
    every artifact in the directory.
    """

    def __init__(
        self,
        repo_name: str,
        repo_user: Optional[str] = None,
        extension: str = DEFAULT_ARTIFACT_EXTENSION,
        repo_add: str = "repo-add",
    ):
        """Initialize indexer.

        Args:
            repo_name: Repository name (database is <repo_name>.db.tar.gz)
            repo_user: User owning the repository; repo-add runs through
                sudo when it differs from the current user
            extension: Artifact file extension
            repo_add: repo-add executable
        """
        self.repo_name = repo_name
        self.repo_user = repo_user
        self.extension = extension
        self.repo_add = repo_add

    def database_path(self, output_dir: Path) -> Path:
        return Path(output_dir) / f"{self.repo_name}.db.tar.gz"

    def list_artifacts(self, output_dir: Path) -> List[Path]:
        """Artifacts currently in the output directory, sorted by name."""
        output_dir = Path(output_dir)
        if not output_dir.is_dir():
            return []
        return sorted(
            p for p in output_dir.iterdir() if p.is_file() and p.name.endswith(self.extension)
        )

    def build_command(self, output_dir: Path, artifacts: List[Path]) -> List[str]:
        """Command line for indexing the given artifacts."""
        database = self.database_path(output_dir)
        cmd = [self.repo_add]
        if database.exists():
            cmd.append("-n")
        cmd.append("-v")
        cmd.append(str(database))
        cmd.extend(str(p) for p in artifacts)

        if self.repo_user and self.repo_user != current_username():
            cmd = ["sudo", "-u", self.repo_user] + cmd
        return cmd

    def reindex(self, output_dir: Path) -> List[Path]:
        """Add the artifacts of an output directory to its database.

        Args:
            output_dir: Repository directory

        Returns:
            The artifacts passed to repo-add (empty if there were none)

        Raises:
            RepositoryIndexError: If repo-add fails
        """
        artifacts = self.list_artifacts(output_dir)
        if not artifacts:
            logging.info(f"No packages in {output_dir}, nothing to index")
            return []

        cmd = self.build_command(output_dir, artifacts)
        logging.info(f"Updating repository database {self.database_path(output_dir)}")
        try:
            returncode = stream_command(cmd, cwd=Path(output_dir), prefix="[repo-add] ")
        except OSError as e:
            raise RepositoryIndexError(f"Failed to start {cmd[0]}: {e}") from e
        if returncode != 0:
            raise RepositoryIndexError(f"repo-add exited with code {returncode}")

        logging.info(f"Indexed {len(artifacts)} package(s) into {self.repo_name}")
        return artifacts
