"""
Unit tests for the repository configuration parser.
"""

from pathlib import Path

import pytest

from repoforge.config.repo_config import (
    RepoConfig,
    RepoConfigError,
    default_config_path,
    load_config,
    resolve_config_path,
)


class TestRepoConfig:
    """Test suite for RepoConfig."""

    @pytest.fixture
    def tmp_ini_path(self, tmp_path):
        """Fixture to provide a temporary INI file path."""
        return tmp_path / "repoforge.ini"

    @pytest.fixture
    def full_config(self, tmp_ini_path):
        """Create a config with settings, TKG and AUR packages."""
        content = """
[repoforge]
repo_name = tekne
output_dir = /srv/repo/tekne
local_repo_dir = /srv/repotekne
build_dir = /tmp/rf-build
config_dir = cfg
repo_user = repo
srcinfo_timeout = 90
version_backend = builtin

[package:linux-tkg]
kind = tkg-kernel
source = https://github.com/Frogging-Family/linux-tkg.git
variants =
    aster = repo-linux-tkg-aster.cfg
    themis = repo-linux-tkg-themis.cfg

[package:wine-tkg-git]
kind = tkg-wine
source = https://github.com/Frogging-Family/wine-tkg-git.git
overlay = repo-wine-tkg-git.cfg

[package:google-chrome]

[package:zoom]
on_unknown_upstream = build
artifacts = zoom, zoom-extras
"""
        tmp_ini_path.write_text(content)
        return tmp_ini_path

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises RepoConfigError."""
        with pytest.raises(RepoConfigError, match="not found"):
            RepoConfig(tmp_path / "nope.ini", environ={})

    def test_malformed_file(self, tmp_ini_path):
        """Test that unparseable INI raises RepoConfigError."""
        tmp_ini_path.write_text("[repoforge\nrepo_name = x\n")
        with pytest.raises(RepoConfigError, match="Failed to parse"):
            RepoConfig(tmp_ini_path, environ={})

    def test_settings(self, full_config):
        """Test global settings parsing."""
        settings = RepoConfig(full_config, environ={}).get_settings()
        assert settings.repo_name == "tekne"
        assert settings.output_dir == Path("/srv/repo/tekne")
        assert settings.build_dir == Path("/tmp/rf-build")
        assert settings.config_dir == full_config.parent / "cfg"
        assert settings.repo_user == "repo"
        assert settings.srcinfo_timeout == 90
        assert settings.version_backend == "builtin"
        assert settings.effective_log_dir == Path("/srv/repo/tekne/logs")

    def test_search_dirs(self, full_config):
        """Test artifact search directories in lookup order."""
        settings = RepoConfig(full_config, environ={}).get_settings()
        assert settings.search_dirs == [
            Path("/srv/repotekne"),
            Path("/srv/repotekne/repo"),
            Path("/srv/repo/tekne"),
            Path("/srv/repo/tekne/repo"),
        ]

    def test_search_dirs_deduplicated(self, tmp_ini_path):
        """Test that identical local and output dirs are listed once."""
        tmp_ini_path.write_text("[repoforge]\noutput_dir = /srv/r\nlocal_repo_dir = /srv/r\n")
        settings = RepoConfig(tmp_ini_path, environ={}).get_settings()
        assert settings.search_dirs == [Path("/srv/r"), Path("/srv/r/repo")]

    def test_environment_overrides(self, full_config):
        """Test REPOFORGE_* overrides."""
        environ = {
            "REPOFORGE_OUTPUT_DIR": "/data/out",
            "REPOFORGE_BUILD_DIR": "/data/build",
            "REPOFORGE_REPO_USER": "alice",
            "REPOFORGE_LOG_DIR": "/data/logs",
        }
        settings = RepoConfig(full_config, environ=environ).get_settings()
        assert settings.output_dir == Path("/data/out")
        assert settings.build_dir == Path("/data/build")
        assert settings.repo_user == "alice"
        assert settings.effective_log_dir == Path("/data/logs")
        assert settings.local_repo_dir == Path("/srv/repotekne")

    def test_defaults_without_settings_section(self, tmp_ini_path):
        """Test defaults when [repoforge] is absent."""
        tmp_ini_path.write_text("[package:zoom]\n")
        settings = RepoConfig(tmp_ini_path, environ={}).get_settings()
        assert settings.repo_name == "tekne"
        assert settings.version_backend == "vercmp"
        assert settings.artifact_extension == ".pkg.tar.zst"
        assert settings.repo_user is None
        assert settings.srcinfo_timeout is None

    @pytest.mark.parametrize(
        "line, message",
        [
            ("srcinfo_timeout = soon", "integer"),
            ("srcinfo_timeout = 0", "positive"),
            ("version_backend = rpm", "version_backend"),
            ("repo_name = te kne", "repo_name"),
        ],
    )
    def test_invalid_settings(self, tmp_ini_path, line, message):
        """Test rejected setting values."""
        tmp_ini_path.write_text(f"[repoforge]\n{line}\n")
        with pytest.raises(RepoConfigError, match=message):
            RepoConfig(tmp_ini_path, environ={}).get_settings()

    def test_package_names_in_order(self, full_config):
        """Test that packages keep file order."""
        config = RepoConfig(full_config, environ={})
        assert config.get_package_names() == ["linux-tkg", "wine-tkg-git", "google-chrome", "zoom"]

    def test_variants(self, full_config):
        """Test multi-line variant definitions."""
        spec = RepoConfig(full_config, environ={}).get_package("linux-tkg")
        assert spec.kind == "tkg-kernel"
        assert [(v.name, v.overlay) for v in spec.variants] == [
            ("aster", Path("repo-linux-tkg-aster.cfg")),
            ("themis", Path("repo-linux-tkg-themis.cfg")),
        ]

    def test_single_overlay(self, full_config):
        """Test that 'overlay' defines one default variant with an overlay."""
        spec = RepoConfig(full_config, environ={}).get_package("wine-tkg-git")
        assert len(spec.variants) == 1
        assert spec.variants[0].is_default
        assert spec.variants[0].overlay == Path("repo-wine-tkg-git.cfg")

    def test_aur_defaults(self, full_config):
        """Test that an empty section is an AUR package with the default source."""
        spec = RepoConfig(full_config, environ={}).get_package("google-chrome")
        assert spec.kind == "aur"
        assert spec.source == "https://aur.archlinux.org/google-chrome.git"
        assert spec.variants == ()
        assert spec.on_unknown_upstream is None

    def test_package_overrides(self, full_config):
        """Test per-package policy and artifact overrides."""
        spec = RepoConfig(full_config, environ={}).get_package("zoom")
        assert spec.on_unknown_upstream == "build"
        assert spec.artifacts == ("zoom", "zoom-extras")
        assert spec.isolate_variants is None

    def test_isolate_variants(self, tmp_ini_path):
        """Test the per-package sibling-variant switch and brace patterns."""
        tmp_ini_path.write_text(
            "[package:foo]\nisolate_variants = yes\nartifacts = {name}, {name}-*\n"
        )
        spec = RepoConfig(tmp_ini_path, environ={}).get_package("foo")
        assert spec.isolate_variants is True
        assert spec.artifacts == ("{name}", "{name}-*")

    def test_unknown_package(self, full_config):
        """Test that unknown packages list what is available."""
        with pytest.raises(RepoConfigError, match="Available packages"):
            RepoConfig(full_config, environ={}).get_package("nope")

    @pytest.mark.parametrize(
        "section, message",
        [
            ("[package:bad name]\n", "Invalid package name"),
            ("[package:..]\n", "Invalid package name"),
            ("[package:.downloads]\n", "Invalid package name"),
            ("[package:foo]\nartifacts = foo-{\n", "invalid pattern"),
            ("[package:foo]\nartifacts = {pkg}-bin\n", "invalid pattern"),
            ("[package:foo]\nbuild_subdir = {0}\n", "invalid pattern"),
            ("[package:foo]\nisolate_variants = maybe\n", "boolean"),
            ("[package:foo]\nkind = rpm\n", "unknown kind"),
            ("[package:foo]\nkind = tkg-kernel\n", "needs a source"),
            ("[package:foo]\non_unknown_upstream = maybe\n", "on_unknown_upstream"),
            ("[package:foo]\nvariants =\n    aster\n", "variant lines"),
            ("[package:foo]\nvariants =\n    a = x.cfg\n    a = y.cfg\n", "duplicate variant"),
            ("[package:foo]\nvariants =\n    a;b = x.cfg\n", "invalid variant name"),
            ("[package:foo]\noverlay = x.cfg\nvariants =\n    a = y.cfg\n", "both"),
        ],
    )
    def test_invalid_packages(self, tmp_ini_path, section, message):
        """Test rejected package sections."""
        tmp_ini_path.write_text(section)
        config = RepoConfig(tmp_ini_path, environ={})
        name = config.get_package_names()[0]
        with pytest.raises(RepoConfigError, match=message):
            config.get_package(name)

    def test_only_filter(self, full_config):
        """Test package selection keeps configuration order."""
        config = RepoConfig(full_config, environ={})
        specs = config.get_packages(only=["zoom", "linux-tkg"])
        assert [s.name for s in specs] == ["linux-tkg", "zoom"]

    def test_only_filter_unknown(self, full_config):
        """Test that selecting an unknown package fails."""
        with pytest.raises(RepoConfigError, match="Unknown package"):
            RepoConfig(full_config, environ={}).get_packages(only=["nope"])


class TestConfigLookup:
    """Tests for configuration file lookup."""

    def test_cli_path_wins(self, tmp_path):
        """Test that -c beats the environment."""
        path = resolve_config_path(tmp_path / "a.ini", {"REPOFORGE_CONFIG": "/b.ini"})
        assert path == tmp_path / "a.ini"

    def test_environment(self):
        """Test $REPOFORGE_CONFIG."""
        assert resolve_config_path(None, {"REPOFORGE_CONFIG": "/b.ini"}) == Path("/b.ini")

    def test_bundled_default(self):
        """Test the bundled default configuration."""
        assert resolve_config_path(None, {}) == default_config_path()

    def test_bundled_default_loads(self):
        """Test that the bundled configuration lists the tekne packages."""
        config = load_config(None, environ={})
        names = config.get_package_names()
        assert names[:3] == ["linux-tkg", "nvidia-all", "wine-tkg-git"]
        assert "google-chrome" in names
        assert "omnissa-horizon-client" in names
        assert len(names) == 36

        kernel = config.get_package("linux-tkg")
        assert [v.name for v in kernel.variants] == ["aster", "themis", "yugen"]
        assert config.get_settings().repo_name == "tekne"
        for spec in config.get_packages():
            assert spec.source
