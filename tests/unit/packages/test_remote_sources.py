"""
Unit tests for the AUR RPC client and the archive downloader.
"""

import io
import zipfile
from unittest.mock import MagicMock, patch

import pytest
import requests

from repoforge.packages.aur_rpc import AURClient
from repoforge.packages.downloader import (
    DownloadError,
    ExtractionError,
    PackageDownloader,
    is_archive_url,
)


def json_response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


class TestAURClient:
    """Tests for AURClient.fetch_version."""

    def test_reads_first_result(self):
        """Test that results[0].Version is returned."""
        payload = {"resultcount": 1, "results": [{"Name": "zoom", "Version": "6.1.0-1"}]}
        with patch(
            "repoforge.packages.aur_rpc.requests.get", return_value=json_response(payload)
        ) as get:
            assert AURClient().fetch_version("zoom") == "6.1.0-1"
        args, kwargs = get.call_args
        assert args[0] == "https://aur.archlinux.org/rpc/v5/info"
        assert kwargs["params"] == {"arg[]": "zoom"}
        assert kwargs["timeout"] == 30

    def test_unknown_package(self):
        """Test that an empty result list yields None."""
        payload = {"resultcount": 0, "results": []}
        with patch("repoforge.packages.aur_rpc.requests.get", return_value=json_response(payload)):
            assert AURClient().fetch_version("nope") is None

    def test_network_error(self):
        """Test that request failures yield None."""
        with patch(
            "repoforge.packages.aur_rpc.requests.get",
            side_effect=requests.ConnectionError("offline"),
        ):
            assert AURClient().fetch_version("zoom") is None

    def test_invalid_json(self):
        """Test that a malformed body yields None."""
        response = json_response(None)
        response.json.side_effect = ValueError("no json")
        with patch("repoforge.packages.aur_rpc.requests.get", return_value=response):
            assert AURClient().fetch_version("zoom") is None

    def test_custom_base(self):
        """Test a custom AUR base URL."""
        assert AURClient("https://aur.example.org/").info_url == "https://aur.example.org/rpc/v5/info"


class TestPackageDownloader:
    """Tests for PackageDownloader."""

    @pytest.mark.parametrize(
        "locator, expected",
        [
            ("https://example.com/foo.tar.gz", True),
            ("http://example.com/foo.zip", True),
            ("https://example.com/foo.tar.xz", True),
            ("https://aur.archlinux.org/foo.git", False),
            ("/srv/recipes/foo.tar.gz", False),
        ],
    )
    def test_is_archive_url(self, locator, expected):
        """Test archive locator detection."""
        assert is_archive_url(locator) is expected

    def test_download_writes_file(self, tmp_path):
        """Test a streamed download."""
        response = MagicMock()
        response.headers = {"content-length": "5"}
        response.iter_content.return_value = [b"hel", b"lo"]
        with patch("repoforge.packages.downloader.requests.get", return_value=response):
            path = PackageDownloader().download(
                "https://example.com/foo.tar.gz", tmp_path / "foo.tar.gz", show_progress=False
            )
        assert path.read_bytes() == b"hello"
        assert not (tmp_path / "foo.tar.gz.tmp").exists()

    def test_download_error(self, tmp_path):
        """Test that HTTP errors raise DownloadError and leave no partial file."""
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("404")
        with patch("repoforge.packages.downloader.requests.get", return_value=response):
            with pytest.raises(DownloadError):
                PackageDownloader().download("https://example.com/x.zip", tmp_path / "x.zip")
        assert list(tmp_path.iterdir()) == []

    def test_extract_zip(self, tmp_path):
        """Test zip extraction."""
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            zf.writestr("foo/PKGBUILD", "pkgname=foo\n")
        archive = tmp_path / "foo.zip"
        archive.write_bytes(buffer.getvalue())

        dest = PackageDownloader().extract_archive(archive, tmp_path / "out")
        assert (dest / "foo" / "PKGBUILD").exists()

    def test_extract_corrupt_archive(self, tmp_path):
        """Test that corrupt archives raise ExtractionError."""
        archive = tmp_path / "foo.tar.gz"
        archive.write_bytes(b"not a tarball")
        with pytest.raises(ExtractionError):
            PackageDownloader().extract_archive(archive, tmp_path / "out")
