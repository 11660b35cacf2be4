"""
Unit tests for artifact parsing and collection.
"""

from pathlib import Path

from repoforge.packages.artifacts import (
    ArtifactCollector,
    parse_artifact_filename,
    scan_artifacts,
)


class TestParseArtifactFilename:
    """Tests for parse_artifact_filename."""

    def test_simple(self):
        """Test a plain package filename."""
        record = parse_artifact_filename(Path("/repo/zoom-6.1.0-1-x86_64.pkg.tar.zst"))
        assert record is not None
        assert record.package == "zoom"
        assert record.version == "6.1.0-1"
        assert record.arch == "x86_64"

    def test_hyphenated_name_and_epoch(self):
        """Test names containing hyphens and versions with an epoch."""
        record = parse_artifact_filename(
            Path("libwireplumber-4.0-compat-2:0.4.17-3-any.pkg.tar.zst")
        )
        assert record is not None
        assert record.package == "libwireplumber-4.0-compat"
        assert record.version == "2:0.4.17-3"
        assert record.arch == "any"

    def test_rejects_other_files(self):
        """Test that signatures and malformed names are ignored."""
        assert parse_artifact_filename(Path("zoom-6.1.0-1-x86_64.pkg.tar.zst.sig")) is None
        assert parse_artifact_filename(Path("tekne.db.tar.gz")) is None
        assert parse_artifact_filename(Path("broken-1.pkg.tar.zst")) is None

    def test_custom_extension(self):
        """Test a non-default artifact extension."""
        record = parse_artifact_filename(Path("foo-1.0-1-any.pkg.tar.xz"), ".pkg.tar.xz")
        assert record is not None
        assert record.package == "foo"

    def test_variant_token(self):
        """Test variant tokens on parsed names."""
        record = parse_artifact_filename(
            Path("linux612-tkg-aster-headers-6.12.1-1-x86_64.pkg.tar.zst")
        )
        assert record.has_variant_token("aster")
        assert not record.has_variant_token("ast")
        assert not record.has_variant_token("")


class TestScanArtifacts:
    """Tests for scan_artifacts."""

    def test_sorted_and_filtered(self, tmp_path):
        """Test that scans are sorted and skip non-artifacts."""
        for name in ["b-1-1-any.pkg.tar.zst", "a-1-1-any.pkg.tar.zst", "notes.txt"]:
            (tmp_path / name).write_text("")
        (tmp_path / "c-1-1-any.pkg.tar.zst").mkdir()
        records = scan_artifacts(tmp_path)
        assert [r.package for r in records] == ["a", "b"]

    def test_missing_directory(self, tmp_path):
        """Test that a missing directory yields no records."""
        assert scan_artifacts(tmp_path / "nope") == []

    def test_rescans_every_time(self, tmp_path):
        """Test that results reflect the directory at call time."""
        assert scan_artifacts(tmp_path) == []
        (tmp_path / "a-1-1-any.pkg.tar.zst").write_text("")
        assert len(scan_artifacts(tmp_path)) == 1


class TestArtifactCollector:
    """Tests for ArtifactCollector.collect."""

    def test_moves_only_artifacts(self, tmp_path):
        """Test that only top-level artifact files are moved."""
        build_root = tmp_path / "build"
        build_root.mkdir()
        (build_root / "foo-1.2-1-x86_64.pkg.tar.zst").write_text("pkg")
        (build_root / "foo-debug-1.2-1-x86_64.pkg.tar.zst").write_text("dbg")
        (build_root / "PKGBUILD").write_text("")
        (build_root / "src").mkdir()
        (build_root / "src" / "nested-1-1-any.pkg.tar.zst").write_text("")

        output = tmp_path / "out"
        count = ArtifactCollector().collect(build_root, output)

        assert count == 2
        assert sorted(p.name for p in output.iterdir()) == [
            "foo-1.2-1-x86_64.pkg.tar.zst",
            "foo-debug-1.2-1-x86_64.pkg.tar.zst",
        ]
        assert not (build_root / "foo-1.2-1-x86_64.pkg.tar.zst").exists()
        assert (build_root / "PKGBUILD").exists()
        assert (build_root / "src" / "nested-1-1-any.pkg.tar.zst").exists()

    def test_overwrites_existing(self, tmp_path):
        """Test that an artifact with the same name is replaced."""
        build_root = tmp_path / "build"
        build_root.mkdir()
        output = tmp_path / "out"
        output.mkdir()
        (output / "foo-1-1-any.pkg.tar.zst").write_text("old")
        (build_root / "foo-1-1-any.pkg.tar.zst").write_text("new")

        assert ArtifactCollector().collect(build_root, output) == 1
        assert (output / "foo-1-1-any.pkg.tar.zst").read_text() == "new"

    def test_nothing_to_collect(self, tmp_path):
        """Test that zero artifacts is not an error."""
        build_root = tmp_path / "build"
        build_root.mkdir()
        assert ArtifactCollector().collect(build_root, tmp_path / "out") == 0
        assert ArtifactCollector().collect(tmp_path / "missing", tmp_path / "out") == 0
