"""
pytest configuration and shared fixtures for bundleforge tests.

This module provides fixtures and configuration used across all test modules.
Fixtures defined here are automatically available to all tests.

Fixtures
--------
temp_project_dir : Path
    A temporary directory that is cleaned up after each test.

webpack_catalog, parcel_catalog : FeatureCatalog
    The built-in catalogs.

react_selection : FeatureSelection
    The selection produced by clicking React on an empty webpack selection.

sample_catalog_toml : str
    A small custom catalog in TOML form.
"""

import pytest
from pathlib import Path

from bundleforge.catalog import catalog_for
from bundleforge.models import BuildTarget, FeatureCatalog, FeatureSelection


@pytest.fixture
def temp_project_dir(tmp_path: Path) -> Path:
    """
    Create a temporary directory for project creation tests.

    Returns
    -------
    Path
        Path to the temporary directory.
    """
    project_dir = tmp_path / "test_projects"
    project_dir.mkdir()
    return project_dir


@pytest.fixture
def webpack_catalog() -> FeatureCatalog:
    """The built-in webpack catalog."""
    return catalog_for(BuildTarget.WEBPACK)


@pytest.fixture
def parcel_catalog() -> FeatureCatalog:
    """The built-in parcel catalog."""
    return catalog_for(BuildTarget.PARCEL)


@pytest.fixture
def react_selection() -> FeatureSelection:
    """React with the Babel the rules add alongside it."""
    return FeatureSelection.from_ids(["React", "Babel"])


@pytest.fixture
def sample_catalog_toml() -> str:
    """
    Provide a custom parcel catalog for testing.

    Returns
    -------
    str
        A minimal but valid catalog document.
    """
    return '''
target = "parcel"
base_dev_dependencies = ["parcel-bundler"]
download_url_base = "https://example.com/zips/"

[package_versions]
parcel-bundler = "^1.12.5"
"@babel/core" = "^7.12.10"

[[features]]
id = "Babel"
category = "transpiler"
dev_dependencies = ["@babel/core"]

[[features]]
id = "Elm"
display_name = "Elm language"
category = "framework"
dependencies = ["elm"]
'''


# =============================================================================
# pytest Configuration
# =============================================================================

def pytest_configure(config: pytest.Config) -> None:
    """
    Configure pytest with custom markers.

    This function is called by pytest during startup to register
    custom markers used in our test suite.
    """
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests that write projects to disk"
    )
