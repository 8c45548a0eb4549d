"""
bundleforge.models - Pydantic Models for Catalogs and Selections
================================================================

This module defines the data models shared by the catalog, the selection
engine, the synthesizer and the project generator. Pydantic gives us:

1. **Validation**: catalogs loaded from TOML are checked on construction
2. **Immutability**: selections are frozen, every transition builds a new one
3. **Serialization**: plans dump straight to JSON for ``bundleforge plan --json``

Architecture Notes
------------------
The models are organized in a hierarchy:

    FeatureCatalog (one per BuildTarget)
    ├── target: BuildTarget
    └── features: id -> Feature
        └── category: FeatureCategory

    ConfiguratorState (reducer state)
    ├── target: BuildTarget
    └── selection: FeatureSelection

    ProjectPlan (synthesizer output)
    ├── npm: NpmConfig
    └── transpiler: TranspilerConfig

Usage Example
-------------
>>> from bundleforge.models import FeatureSelection
>>> selection = FeatureSelection.from_ids(["React", "Babel"])
>>> selection.is_selected("React")
True
>>> selection.with_feature("React", False).selected_ids
['Babel']
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# =============================================================================
# Enumerations
# =============================================================================

class BuildTarget(str, Enum):
    """
    Bundlers a project can be configured for.

    Each target owns exactly one feature catalog and one rule set.
    Switching targets is a total switch, never a merge.

    Examples
    --------
    >>> BuildTarget("parcel")
    <BuildTarget.PARCEL: 'parcel'>
    >>> BuildTarget.WEBPACK.display_name
    'Webpack'
    """

    WEBPACK = "webpack"
    PARCEL = "parcel"

    @property
    def display_name(self) -> str:
        """Capitalized name used in tables and panels."""
        return self.value.capitalize()

    @property
    def description(self) -> str:
        """
        Human-readable description for CLI prompts.

        Returns
        -------
        str
            A short description of the bundler.
        """
        descriptions = {
            BuildTarget.WEBPACK: "Configurable bundler with loaders and plugins",
            BuildTarget.PARCEL: "Zero-configuration bundler",
        }
        return descriptions[self]


class FeatureCategory(str, Enum):
    """Grouping used when listing catalog features."""

    FRAMEWORK = "framework"
    TRANSPILER = "transpiler"
    STYLING = "styling"
    ASSETS = "assets"
    OPTIMIZATION = "optimization"
    UTILITY = "utility"


class TranspilerConfig(str, Enum):
    """
    Which transpiler configuration file a selection needs.

    Babel and Typescript configuration are mutually exclusive: a project
    gets a ``.babelrc``, a ``tsconfig.json``, or neither, never both.
    """

    BABEL = "babel"
    TYPESCRIPT = "typescript"
    NONE = "none"

    @property
    def filename(self) -> str | None:
        """Name of the generated config file, if any."""
        filenames = {
            TranspilerConfig.BABEL: ".babelrc",
            TranspilerConfig.TYPESCRIPT: "tsconfig.json",
            TranspilerConfig.NONE: None,
        }
        return filenames[self]


class ActionType(str, Enum):
    """Action types understood by :func:`bundleforge.engine.reduce`."""

    SET_TARGET = "set_target"
    TOGGLE_FEATURE = "toggle_feature"


# =============================================================================
# Catalog Models
# =============================================================================

class Feature(BaseModel):
    """
    A named, optional capability of a generated project.

    Features are defined by a catalog and never change at runtime.

    Attributes
    ----------
    id : str
        Identifier, unique within one catalog (e.g. ``"React"``).

    display_name : str
        Label shown to users. Defaults to the id.

    category : FeatureCategory
        Grouping for listings.

    dependencies, dev_dependencies : list[str]
        npm packages this feature adds when selected.

    requires : list[str]
        Features that must all be selected for this one to be shown.

    hidden_with : list[str]
        Features whose selection hides this one.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Feature identifier")
    display_name: str = Field(default="", description="Label shown to users")
    category: FeatureCategory = Field(default=FeatureCategory.UTILITY)
    description: str = Field(default="")
    dependencies: list[str] = Field(default_factory=list)
    dev_dependencies: list[str] = Field(default_factory=list)
    requires: list[str] = Field(default_factory=list)
    hidden_with: list[str] = Field(default_factory=list)

    @field_validator("id")
    @classmethod
    def strip_id(cls, v: str) -> str:
        """Feature ids are compared verbatim, so surrounding blanks are dropped."""
        v = v.strip()
        if not v:
            msg = "Feature id cannot be blank"
            raise ValueError(msg)
        return v

    @model_validator(mode="before")
    @classmethod
    def default_display_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("display_name"):
            data = {**data, "display_name": str(data.get("id", "")).strip()}
        return data


class FeatureCatalog(BaseModel):
    """
    The features available for one build target.

    Feature order is significant: it drives listing order and the order in
    which npm packages are accumulated.

    Attributes
    ----------
    target : BuildTarget
        The bundler this catalog belongs to.

    features : dict[str, Feature]
        Ordered mapping of feature id to feature.

    base_dependencies, base_dev_dependencies : list[str]
        Packages every project of this target installs.

    package_versions : dict[str, str]
        Static version ranges written to ``package.json``.

    default_file : str
        File shown first when previewing a generated project.

    download_url_base : str
        Prefix of prebuilt project archives.

    Examples
    --------
    >>> from bundleforge.catalog import catalog_for
    >>> catalog = catalog_for(BuildTarget.PARCEL)
    >>> "Vue" in catalog
    False
    """

    model_config = ConfigDict(frozen=True)

    target: BuildTarget
    features: dict[str, Feature] = Field(default_factory=dict)
    base_dependencies: list[str] = Field(default_factory=list)
    base_dev_dependencies: list[str] = Field(default_factory=list)
    package_versions: dict[str, str] = Field(default_factory=dict)
    default_file: str = Field(default="package.json")
    download_url_base: str = Field(default="")

    @model_validator(mode="after")
    def validate_feature_keys(self) -> FeatureCatalog:
        """Every mapping key must be the id of the feature it maps to."""
        for key, feature in self.features.items():
            if key != feature.id:
                msg = f"Catalog key '{key}' does not match feature id '{feature.id}'"
                raise ValueError(msg)
        return self

    def __contains__(self, feature_id: object) -> bool:
        return feature_id in self.features

    @property
    def feature_ids(self) -> list[str]:
        """Feature ids in catalog order."""
        return list(self.features)

    def get(self, feature_id: str) -> Feature | None:
        return self.features.get(feature_id)

    def version_of(self, package: str) -> str:
        """Version range for ``package``, ``"*"`` when the catalog has none."""
        return self.package_versions.get(package, "*")

    @classmethod
    def from_toml(cls, path: Path) -> FeatureCatalog:
        """
        Load a catalog from a TOML document.

        The document has top-level catalog keys and one ``[[features]]``
        table per feature, in catalog order.

        Parameters
        ----------
        path : Path
            Path to the catalog file.

        Returns
        -------
        FeatureCatalog
            Validated catalog.

        Raises
        ------
        FileNotFoundError
            If the file doesn't exist.
        ValueError
            If the document is not valid TOML or fails validation.
        """
        import tomlkit
        from tomlkit.exceptions import TOMLKitError

        if not path.exists():
            raise FileNotFoundError(f"No catalog file found at {path}")

        try:
            data: dict[str, Any] = tomlkit.parse(path.read_text(encoding="utf-8")).unwrap()
        except TOMLKitError as e:
            raise ValueError(f"Invalid catalog file {path}: {e}") from e

        features = [Feature(**entry) for entry in data.pop("features", [])]
        data["features"] = {feature.id: feature for feature in features}
        return cls(**data)


# =============================================================================
# Selection Models
# =============================================================================

class FeatureSelection(BaseModel):
    """
    Which features are selected, as a mapping of feature id to bool.

    Missing keys count as unselected. Selections are frozen: every helper
    returns a new selection and leaves the receiver untouched, so a
    selection can be shared freely between observers.

    Examples
    --------
    >>> s = FeatureSelection()
    >>> s.is_selected("React")
    False
    >>> s.with_feature("React", True).features
    {'React': True}
    """

    model_config = ConfigDict(frozen=True)

    features: dict[str, bool] = Field(default_factory=dict)

    @classmethod
    def from_ids(cls, feature_ids: Iterable[str]) -> FeatureSelection:
        """Build a selection with every given id selected."""
        return cls(features={feature_id: True for feature_id in feature_ids})

    def is_selected(self, feature_id: str) -> bool:
        return self.features.get(feature_id, False)

    @property
    def selected_ids(self) -> list[str]:
        """Selected ids, in the order they were first recorded."""
        return [feature_id for feature_id, value in self.features.items() if value]

    def with_feature(self, feature_id: str, value: bool) -> FeatureSelection:
        """Copy of this selection with one feature set to ``value``."""
        return self.with_changes({feature_id: value})

    def with_changes(self, changes: Mapping[str, bool]) -> FeatureSelection:
        """Copy of this selection with several features set at once."""
        return FeatureSelection(features={**self.features, **changes})


class ConfiguratorState(BaseModel):
    """
    Everything the interactive configurator tracks: a target and a selection.

    Attributes
    ----------
    target : BuildTarget
        Active bundler.

    selection : FeatureSelection
        Current, consistent selection for ``target``.
    """

    model_config = ConfigDict(frozen=True)

    target: BuildTarget = BuildTarget.WEBPACK
    selection: FeatureSelection = Field(default_factory=FeatureSelection)


def initial_state(target: BuildTarget = BuildTarget.WEBPACK) -> ConfiguratorState:
    """State of a fresh session: the given target, nothing selected."""
    return ConfiguratorState(target=target, selection=FeatureSelection())


class Action(BaseModel):
    """
    A user intent dispatched to :func:`bundleforge.engine.reduce`.

    Examples
    --------
    >>> Action(type=ActionType.TOGGLE_FEATURE, feature="React").feature
    'React'
    """

    model_config = ConfigDict(frozen=True)

    type: ActionType
    target: BuildTarget | None = None
    feature: str | None = None

    @model_validator(mode="after")
    def validate_payload(self) -> Action:
        if self.type == ActionType.SET_TARGET and self.target is None:
            msg = "set_target actions need a target"
            raise ValueError(msg)
        if self.type == ActionType.TOGGLE_FEATURE and not self.feature:
            msg = "toggle_feature actions need a feature"
            raise ValueError(msg)
        return self


# =============================================================================
# Synthesis Models
# =============================================================================

class NpmConfig(BaseModel):
    """
    Packages to install, in a stable order with no duplicates.

    Attributes
    ----------
    dependencies : list[str]
        Runtime packages (``npm install``).

    dev_dependencies : list[str]
        Build-time packages (``npm install --save-dev``).
    """

    dependencies: list[str] = Field(default_factory=list)
    dev_dependencies: list[str] = Field(default_factory=list)


class ProjectPlan(BaseModel):
    """
    Everything derived from one consistent selection.

    This is what ``bundleforge plan`` prints and what the project
    generator consumes.
    """

    target: BuildTarget
    selected_features: list[str] = Field(default_factory=list)
    visible_features: list[str] = Field(default_factory=list)
    npm: NpmConfig = Field(default_factory=NpmConfig)
    transpiler: TranspilerConfig = TranspilerConfig.NONE
    babel_config: dict[str, Any] | None = None
    tsconfig: dict[str, Any] | None = None
    project_name: str
    download_url: str
    setup_steps: list[str] = Field(default_factory=list)


# =============================================================================
# Project Configuration
# =============================================================================

class ProjectConfig(BaseModel):
    """
    Settings for writing a generated project to disk.

    Attributes
    ----------
    name : str
        Directory name and ``package.json`` name. Must be a valid npm
        package name (lowercase, url-safe).

    target : BuildTarget
        Bundler to configure.

    selection : FeatureSelection
        A consistent selection for ``target``.

    output_dir : Path
        Directory the project directory is created in.

    Examples
    --------
    >>> config = ProjectConfig(name="Empty-Project", output_dir=Path("/tmp"))
    >>> config.project_dir
    PosixPath('/tmp/empty-project')
    """

    name: str = Field(min_length=1, max_length=214)
    target: BuildTarget = BuildTarget.WEBPACK
    selection: FeatureSelection = Field(default_factory=FeatureSelection)
    output_dir: Path = Field(default_factory=Path.cwd)

    @field_validator("name")
    @classmethod
    def validate_project_name(cls, v: str) -> str:
        """
        Validate and normalize the project name.

        npm package names are lowercase, must not start with a dot or an
        underscore and may only contain url-safe characters.

        Raises
        ------
        ValueError
            If the name doesn't meet the requirements.
        """
        v = v.lower().strip()

        if not re.match(r"^[a-z0-9][a-z0-9._-]*$", v):
            msg = (
                f"Invalid project name '{v}'. Names must start with a letter or "
                "digit and contain only letters, digits, dots, hyphens and underscores."
            )
            raise ValueError(msg)

        if v in {"node_modules", "favicon.ico"}:
            msg = f"'{v}' is a reserved npm name and cannot be used as a project name."
            raise ValueError(msg)

        return v

    @property
    def project_dir(self) -> Path:
        return self.output_dir / self.name
