"""
bundleforge.config - bundleforge.toml Settings
==============================================

Optional defaults for the CLI, stored in a ``bundleforge.toml`` file:

```toml
target = "webpack"
base_name = "empty-project"
features = ["React", "Sass"]
output_dir = "."
```

``features`` is replayed as a series of toggles, so the stored list goes
through the same rules as interactive clicks. Command line flags take
precedence over every value in the file.

Files are read and written with tomlkit, which keeps comments and layout
of hand-edited files intact on rewrite.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from pydantic import BaseModel, Field, field_validator
from tomlkit.exceptions import TOMLKitError

from bundleforge.models import BuildTarget
from bundleforge.synthesizer import DEFAULT_BASE_NAME


SETTINGS_FILENAME = "bundleforge.toml"


class Settings(BaseModel):
    """
    Contents of a ``bundleforge.toml`` file.

    Attributes
    ----------
    target : BuildTarget
        Default bundler.

    base_name : str
        Prefix of derived project names.

    features : list[str]
        Features toggled on, in order.

    output_dir : Path | None
        Where ``bundleforge new`` creates projects. None means the
        current directory.
    """

    target: BuildTarget = BuildTarget.WEBPACK
    base_name: str = Field(default=DEFAULT_BASE_NAME, min_length=1)
    features: list[str] = Field(default_factory=list)
    output_dir: Path | None = None

    @field_validator("base_name")
    @classmethod
    def strip_base_name(cls, v: str) -> str:
        return v.strip()


def find_settings(start: Path) -> Path | None:
    """Path of ``bundleforge.toml`` in ``start``, or None if there is none."""
    candidate = start / SETTINGS_FILENAME
    return candidate if candidate.is_file() else None


def load_settings(path: Path) -> Settings:
    """
    Read settings from a TOML file.

    Relative ``output_dir`` values are resolved against the file's
    directory.

    Raises
    ------
    FileNotFoundError
        If the file doesn't exist.
    ValueError
        If the file is not valid TOML or holds invalid values.
    """
    if not path.exists():
        raise FileNotFoundError(f"No settings file found at {path}")

    try:
        data: dict[str, Any] = tomlkit.parse(path.read_text(encoding="utf-8")).unwrap()
    except TOMLKitError as e:
        raise ValueError(f"Invalid settings file {path}: {e}") from e

    settings = Settings(**data)
    if settings.output_dir is not None and not settings.output_dir.is_absolute():
        settings = settings.model_copy(update={"output_dir": path.parent / settings.output_dir})
    return settings


def save_settings(settings: Settings, path: Path) -> Path:
    """
    Write settings to a TOML file, replacing an existing one.

    Returns
    -------
    Path
        The written path.
    """
    doc = tomlkit.document()
    doc.add(tomlkit.comment("bundleforge settings"))
    doc.add(tomlkit.nl())
    doc["target"] = settings.target.value
    doc["base_name"] = settings.base_name

    features = tomlkit.array()
    features.extend(settings.features)
    doc["features"] = features

    if settings.output_dir is not None:
        doc["output_dir"] = str(settings.output_dir)

    path.write_text(tomlkit.dumps(doc), encoding="utf-8")
    return path
