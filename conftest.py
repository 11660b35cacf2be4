"""
Pytest configuration for the repoforge test suite.

This configuration enables the --full flag to run integration tests.
"""

import pytest


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--full",
        action="store_true",
        default=False,
        help="Run full test suite including integration tests (slow)",
    )


def pytest_configure(config):
    """Configure pytest based on command-line options."""
    config.addinivalue_line(
        "markers", "integration: end-to-end runs with fake build tools on PATH"
    )
    if config.getoption("--full"):
        # Remove the default marker expression that excludes integration tests
        markexpr = config.getoption("-m", "")
        if markexpr == "not integration":
            # Clear the marker expression to run all tests
            config.option.markexpr = ""


@pytest.fixture(autouse=True)
def _isolated_repoforge_env(monkeypatch):
    """Keep REPOFORGE_* variables from the developer's shell out of tests."""
    for var in (
        "REPOFORGE_CONFIG",
        "REPOFORGE_OUTPUT_DIR",
        "REPOFORGE_LOCAL_REPO_DIR",
        "REPOFORGE_BUILD_DIR",
        "REPOFORGE_CONFIG_DIR",
        "REPOFORGE_REPO_USER",
        "REPOFORGE_LOG_DIR",
    ):
        monkeypatch.delenv(var, raising=False)
