"""
Tests for bundleforge.config
============================

Test Organization
-----------------
- TestSettings: Tests for the Settings model
- TestLoadSettings: Tests for reading bundleforge.toml
- TestSaveSettings: Tests for writing bundleforge.toml
"""

import pytest
from pathlib import Path
from pydantic import ValidationError

from bundleforge.config import (
    SETTINGS_FILENAME,
    Settings,
    find_settings,
    load_settings,
    save_settings,
)
from bundleforge.models import BuildTarget


# =============================================================================
# Settings Model Tests
# =============================================================================

class TestSettings:
    """Tests for Settings model."""

    def test_defaults(self) -> None:
        """Test default settings."""
        settings = Settings()

        assert settings.target == BuildTarget.WEBPACK
        assert settings.base_name == "empty-project"
        assert settings.features == []
        assert settings.output_dir is None

    def test_base_name_stripped(self) -> None:
        """Test surrounding whitespace is removed."""
        assert Settings(base_name="  demo ").base_name == "demo"

    def test_invalid_target(self) -> None:
        """Test unknown bundlers are rejected."""
        with pytest.raises(ValidationError):
            Settings(target="rollup")


# =============================================================================
# Load Tests
# =============================================================================

class TestLoadSettings:
    """Tests for load_settings and find_settings."""

    def test_load(self, tmp_path: Path) -> None:
        """Test reading every key."""
        path = tmp_path / SETTINGS_FILENAME
        path.write_text(
            '# team defaults\n'
            'target = "parcel"\n'
            'base_name = "starter"\n'
            'features = ["React", "Sass"]\n'
        )

        settings = load_settings(path)

        assert settings.target == BuildTarget.PARCEL
        assert settings.base_name == "starter"
        assert settings.features == ["React", "Sass"]

    def test_relative_output_dir(self, tmp_path: Path) -> None:
        """Test output_dir is resolved against the file's directory."""
        path = tmp_path / SETTINGS_FILENAME
        path.write_text('output_dir = "projects"\n')

        assert load_settings(path).output_dir == tmp_path / "projects"

    def test_absolute_output_dir(self, tmp_path: Path) -> None:
        """Test absolute output_dir is kept."""
        path = tmp_path / SETTINGS_FILENAME
        path.write_text(f'output_dir = "{tmp_path.as_posix()}"\n')

        assert load_settings(path).output_dir == tmp_path

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / SETTINGS_FILENAME)

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Test that broken TOML raises ValueError."""
        path = tmp_path / SETTINGS_FILENAME
        path.write_text("features = [")

        with pytest.raises(ValueError, match="Invalid settings file"):
            load_settings(path)

    def test_find_settings(self, tmp_path: Path) -> None:
        """Test discovery in a directory."""
        assert find_settings(tmp_path) is None

        (tmp_path / SETTINGS_FILENAME).write_text('target = "webpack"\n')

        assert find_settings(tmp_path) == tmp_path / SETTINGS_FILENAME


# =============================================================================
# Save Tests
# =============================================================================

class TestSaveSettings:
    """Tests for save_settings."""

    def test_save_and_load(self, tmp_path: Path) -> None:
        """Test that saved settings read back unchanged."""
        settings = Settings(target=BuildTarget.PARCEL, features=["Typescript", "React"])
        path = tmp_path / SETTINGS_FILENAME

        written = save_settings(settings, path)

        assert written == path
        assert load_settings(path) == settings

    def test_file_contents(self, tmp_path: Path) -> None:
        """Test the written document."""
        path = save_settings(Settings(features=["React"]), tmp_path / SETTINGS_FILENAME)

        content = path.read_text()
        assert content.startswith("# bundleforge settings")
        assert 'target = "webpack"' in content
        assert "features = [" in content
        assert '"React"' in content
        assert "output_dir" not in content

    def test_output_dir_written(self, tmp_path: Path) -> None:
        """Test output_dir is stored when set."""
        path = save_settings(
            Settings(output_dir=tmp_path / "out"), tmp_path / SETTINGS_FILENAME
        )

        assert load_settings(path).output_dir == tmp_path / "out"
