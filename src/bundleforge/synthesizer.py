"""
bundleforge.synthesizer - Derive Build Configuration from a Selection
=====================================================================

Stateless functions that turn a consistent :class:`FeatureSelection` into
concrete build facts:

- the npm packages to install (:func:`npm_dependencies`)
- whether a ``.babelrc`` or a ``tsconfig.json`` is needed, and its contents
- the default project name, which also names the downloadable archive
- which features should be offered to the user at all
- the manual setup instructions

:func:`synthesize` bundles all of them into a :class:`ProjectPlan`.

Babel and Typescript
--------------------
A project never gets both transpiler configs. Typescript wins: when it is
selected no ``.babelrc`` is produced even if Babel is selected too, and a
``tsconfig.json`` step is shown instead.
"""

from __future__ import annotations

import re
from typing import Any

from bundleforge.catalog import BABEL, REACT, REACT_HOT_LOADER, TYPESCRIPT, catalog_for
from bundleforge.models import (
    BuildTarget,
    Feature,
    FeatureCatalog,
    FeatureSelection,
    NpmConfig,
    ProjectPlan,
    TranspilerConfig,
)


DEFAULT_BASE_NAME = "empty-project"

# Selecting any of these means source files go through Babel
TRANSPILED_FEATURES: frozenset[str] = frozenset({BABEL, REACT, REACT_HOT_LOADER})


# =============================================================================
# Dependencies
# =============================================================================

def _append_unique(target: list[str], packages: list[str]) -> None:
    for package in packages:
        if package not in target:
            target.append(package)


def npm_dependencies(catalog: FeatureCatalog, selection: FeatureSelection) -> NpmConfig:
    """
    Collect the npm packages for a selection.

    The catalog's baseline packages come first, followed by each selected
    feature's packages in catalog order. A package declared twice is
    listed once, at its first position.

    Parameters
    ----------
    catalog : FeatureCatalog
        Catalog of the active target.

    selection : FeatureSelection
        Consistent selection.

    Returns
    -------
    NpmConfig
        Ordered, de-duplicated runtime and dev packages.

    Examples
    --------
    >>> from bundleforge.catalog import catalog_for
    >>> from bundleforge.models import BuildTarget
    >>> npm_dependencies(catalog_for(BuildTarget.WEBPACK), FeatureSelection())
    NpmConfig(dependencies=[], dev_dependencies=['webpack', 'webpack-cli'])
    """
    dependencies: list[str] = []
    dev_dependencies: list[str] = []

    _append_unique(dependencies, catalog.base_dependencies)
    _append_unique(dev_dependencies, catalog.base_dev_dependencies)

    for feature_id, feature in catalog.features.items():
        if not selection.is_selected(feature_id):
            continue
        _append_unique(dependencies, feature.dependencies)
        _append_unique(dev_dependencies, feature.dev_dependencies)

    return NpmConfig(dependencies=dependencies, dev_dependencies=dev_dependencies)


def npm_install_command(npm: NpmConfig, directory: str = "myapp") -> str:
    """
    Shell commands that create the npm project and install its packages.

    The runtime ``npm install`` line is omitted when there are no
    runtime dependencies.
    """
    lines = [
        f"mkdir {directory}",
        f"cd {directory}",
        "npm init -y",
        "npm install --save-dev " + " ".join(npm.dev_dependencies),
    ]
    if npm.dependencies:
        lines.append("npm install " + " ".join(npm.dependencies))
    return "\n".join(lines)


# =============================================================================
# Transpiler Configuration
# =============================================================================

def transpiler_config(selection: FeatureSelection) -> TranspilerConfig:
    """Which transpiler config file the selection needs, if any."""
    if selection.is_selected(TYPESCRIPT):
        return TranspilerConfig.TYPESCRIPT
    if any(selection.is_selected(feature_id) for feature_id in TRANSPILED_FEATURES):
        return TranspilerConfig.BABEL
    return TranspilerConfig.NONE


def babel_config_required(selection: FeatureSelection) -> bool:
    """True when a ``.babelrc`` is generated. Always False with Typescript."""
    return transpiler_config(selection) == TranspilerConfig.BABEL


def tsconfig_required(selection: FeatureSelection) -> bool:
    """True when a ``tsconfig.json`` is generated instead of a ``.babelrc``."""
    return transpiler_config(selection) == TranspilerConfig.TYPESCRIPT


def create_babel_config(selection: FeatureSelection) -> dict[str, Any] | None:
    """
    Contents of ``.babelrc`` for the selection.

    Returns
    -------
    dict | None
        The Babel config, or None when no ``.babelrc`` is generated.
    """
    if not babel_config_required(selection):
        return None

    presets: list[Any] = [["@babel/preset-env", {"modules": False}]]
    if selection.is_selected(REACT):
        presets.append("@babel/preset-react")

    config: dict[str, Any] = {"presets": presets}
    if selection.is_selected(REACT_HOT_LOADER):
        config["plugins"] = ["react-hot-loader/babel"]
    return config


def create_tsconfig(selection: FeatureSelection) -> dict[str, Any] | None:
    """Contents of ``tsconfig.json``, or None without Typescript."""
    if not tsconfig_required(selection):
        return None

    compiler_options: dict[str, Any] = {
        "outDir": "./dist/",
        "noImplicitAny": True,
        "module": "es6",
        "target": "es5",
        "allowJs": True,
        "moduleResolution": "node",
        "esModuleInterop": True,
        "sourceMap": True,
    }
    if selection.is_selected(REACT):
        compiler_options["jsx"] = "react"

    return {"compilerOptions": compiler_options}


# =============================================================================
# Naming and Presentation
# =============================================================================

def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def default_project_name(base_name: str, selection: FeatureSelection) -> str:
    """
    Name a project after its selected features.

    Selected ids are slugged and sorted, so the name depends only on
    *which* features are selected, never on the order they were clicked.
    The name doubles as the download archive name.

    Examples
    --------
    >>> default_project_name("empty-project", FeatureSelection.from_ids(["React", "Babel"]))
    'empty-project-babel-react'
    >>> default_project_name("empty-project", FeatureSelection())
    'empty-project'
    """
    slugs = sorted(filter(None, (_slug(fid) for fid in selection.selected_ids)))
    return "-".join([base_name, *slugs])


def visible_features(
    catalog: FeatureCatalog,
    selection: FeatureSelection,
) -> dict[str, Feature]:
    """
    Catalog features worth offering for the current selection.

    A feature is hidden while one of its ``requires`` is unselected or one
    of its ``hidden_with`` is selected. The selection itself is not
    touched. Rules already guarantee that a hidden feature is never
    selected.
    """
    visible: dict[str, Feature] = {}
    for feature_id, feature in catalog.features.items():
        if not all(selection.is_selected(fid) for fid in feature.requires):
            continue
        if any(selection.is_selected(fid) for fid in feature.hidden_with):
            continue
        visible[feature_id] = feature
    return visible


def download_url(catalog: FeatureCatalog, project_name: str) -> str:
    """URL of the prebuilt archive for ``project_name``."""
    return f"{catalog.download_url_base}{project_name}.zip"


def setup_steps(
    target: BuildTarget,
    selection: FeatureSelection,
    npm: NpmConfig,
) -> list[str]:
    """
    Manual instructions for building the project by hand.

    Returns
    -------
    list[str]
        Ordered steps. The first step embeds the npm commands.
    """
    steps = [
        "Create an NPM project and install dependencies:\n" + npm_install_command(npm),
    ]

    if target == BuildTarget.WEBPACK:
        steps.append(
            "Create webpack.config.js in the root and copy the contents of the generated file"
        )

    transpiler = transpiler_config(selection)
    if transpiler != TranspilerConfig.NONE:
        steps.append(
            f"Create {transpiler.filename} in the root and copy the contents of the generated file"
        )

    steps.append("Create folders src and dist and create source code files")
    return steps


# =============================================================================
# Combined Plan
# =============================================================================

def synthesize(
    target: BuildTarget,
    selection: FeatureSelection,
    *,
    base_name: str = DEFAULT_BASE_NAME,
    catalog: FeatureCatalog | None = None,
) -> ProjectPlan:
    """
    Derive everything the CLI and generator need from one selection.

    Parameters
    ----------
    target : BuildTarget
        Active bundler.

    selection : FeatureSelection
        Consistent selection for ``target``.

    base_name : str
        Prefix of the derived project name.

    catalog : FeatureCatalog | None
        Overrides the built-in catalog for ``target``.

    Returns
    -------
    ProjectPlan
        The derived plan.
    """
    catalog = catalog or catalog_for(target)
    npm = npm_dependencies(catalog, selection)
    project_name = default_project_name(base_name, selection)

    return ProjectPlan(
        target=target,
        selected_features=[fid for fid in catalog.feature_ids if selection.is_selected(fid)],
        visible_features=list(visible_features(catalog, selection)),
        npm=npm,
        transpiler=transpiler_config(selection),
        babel_config=create_babel_config(selection),
        tsconfig=create_tsconfig(selection),
        project_name=project_name,
        download_url=download_url(catalog, project_name),
        setup_steps=setup_steps(target, selection, npm),
    )
