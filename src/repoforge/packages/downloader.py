"""Recipe archive downloader with progress tracking.

This module handles downloading recipe tarballs from URLs and extracting
them into a workspace.
"""

import tarfile
import zipfile
from pathlib import Path
from urllib.parse import urlparse

import requests
from tqdm import tqdm

ARCHIVE_SUFFIXES = (".tar.gz", ".tar.xz", ".tar.bz2", ".tgz", ".zip")


class DownloadError(Exception):
    """Raised when download fails."""

    pass


class ExtractionError(Exception):
    """Raised when archive extraction fails."""

    pass


def is_archive_url(locator: str) -> bool:
    """Check whether a locator is an http(s) URL to a supported archive."""
    parsed = urlparse(locator)
    return parsed.scheme in ("http", "https") and parsed.path.endswith(ARCHIVE_SUFFIXES)


class PackageDownloader:
    """Downloads and extracts recipe archives with progress tracking."""

    def __init__(self, chunk_size: int = 8192, timeout: int = 30):
        """Initialize downloader.

        Args:
            chunk_size: Size of chunks for downloading
            timeout: Request timeout in seconds
        """
        self.chunk_size = chunk_size
        self.timeout = timeout

    def download(self, url: str, dest_path: Path, show_progress: bool = True) -> Path:
        """Download a file from a URL.

        Args:
            url: URL to download from
            dest_path: Destination file path
            show_progress: Whether to show progress bar

        Returns:
            Path to the downloaded file

        Raises:
            DownloadError: If download fails
        """
        dest_path = Path(dest_path)
        dest_path.parent.mkdir(parents=True, exist_ok=True)

        # Use temporary file during download
        temp_file = dest_path.with_suffix(dest_path.suffix + ".tmp")

        try:
            response = requests.get(url, stream=True, timeout=self.timeout)
            response.raise_for_status()

            total_size = int(response.headers.get("content-length", 0))

            progress_bar = None
            if show_progress and total_size > 0:
                filename = Path(urlparse(url).path).name
                progress_bar = tqdm(
                    total=total_size,
                    unit="B",
                    unit_scale=True,
                    unit_divisor=1024,
                    desc=f"Downloading {filename}",
                )

            with open(temp_file, "wb") as f:
                for chunk in response.iter_content(chunk_size=self.chunk_size):
                    if chunk:
                        f.write(chunk)
                        if progress_bar:
                            progress_bar.update(len(chunk))

            if progress_bar:
                progress_bar.close()

            if dest_path.exists():
                dest_path.unlink()
            temp_file.rename(dest_path)

            return dest_path

        except requests.RequestException as e:
            if temp_file.exists():
                temp_file.unlink()
            raise DownloadError(f"Failed to download {url}: {e}")

        except Exception:
            if temp_file.exists():
                temp_file.unlink()
            raise

    def extract_archive(self, archive_path: Path, dest_dir: Path) -> Path:
        """Extract an archive file.

        Supports .tar.gz, .tar.bz2, .tar.xz, .tgz and .zip formats.

        Args:
            archive_path: Path to the archive file
            dest_dir: Destination directory for extraction

        Returns:
            Path to the extracted directory

        Raises:
            ExtractionError: If extraction fails
        """
        archive_path = Path(archive_path)
        dest_dir = Path(dest_dir)

        if not archive_path.exists():
            raise ExtractionError(f"Archive not found: {archive_path}")

        dest_dir.mkdir(parents=True, exist_ok=True)

        try:
            if archive_path.suffix == ".zip":
                with zipfile.ZipFile(archive_path, "r") as zip_file:
                    zip_file.extractall(dest_dir)
            elif archive_path.name.endswith(ARCHIVE_SUFFIXES):
                with tarfile.open(archive_path, "r:*") as tar:
                    if hasattr(tarfile, "data_filter"):
                        tar.extractall(dest_dir, filter="data")
                    else:
                        tar.extractall(dest_dir)
            else:
                raise ExtractionError(
                    f"Unsupported archive format: {archive_path.suffix}"
                )
        except (OSError, tarfile.TarError, zipfile.BadZipFile) as e:
            raise ExtractionError(f"Failed to extract {archive_path}: {e}")

        return dest_dir

    def download_and_extract(
        self, url: str, cache_dir: Path, extract_dir: Path, show_progress: bool = True
    ) -> Path:
        """Download and extract an archive in one operation.

        Args:
            url: URL to download from
            cache_dir: Directory to store the downloaded archive
            extract_dir: Directory to extract to
            show_progress: Whether to show progress

        Returns:
            Path to the extracted directory
        """
        filename = Path(urlparse(url).path).name
        archive_path = self.download(url, cache_dir / filename, show_progress)
        return self.extract_archive(archive_path, extract_dir)
