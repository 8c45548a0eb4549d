"""
bundleforge - Rule-driven Webpack and Parcel Project Configurator
=================================================================

Pick features such as React, Typescript or Sass for a Webpack or Parcel
project. bundleforge keeps the selection consistent and derives the npm
packages, the Babel or Typescript config, the webpack config and a ready
to install project tree from it.

Features
--------
- **Consistent selections**: stop rules veto invalid toggles, mutation
  rules add or remove companion features
- **Two bundlers**: switching target keeps every feature both support
- **Deterministic output**: the same selection always yields the same
  packages, project name and files

Quick Start
-----------
```bash
# Show what a React + Sass webpack project needs
bundleforge plan -f React -f Sass

# Pick features interactively and write the project
bundleforge new
```

Example
-------
>>> from bundleforge import BuildTarget, FeatureSelection, synthesize, toggle
>>> selection = toggle(FeatureSelection(), BuildTarget.WEBPACK, "React")
>>> synthesize(BuildTarget.WEBPACK, selection).project_name
'empty-project-babel-react'

Architecture
------------
- ``models``: Pydantic models for catalogs, selections and plans
- ``catalog``: built-in feature catalogs per bundler
- ``rules``: ordered stop and mutation rules per bundler
- ``engine``: toggle / retarget transitions and the reducer
- ``synthesizer``: npm packages, transpiler config, names, setup steps
- ``generator``: Jinja2-rendered project files and writing them to disk
- ``config``: ``bundleforge.toml`` settings
- ``cli``: Typer command line interface
"""

# =============================================================================
# Package Metadata
# =============================================================================
__version__ = "0.1.0"
__author__ = "Technical-1"
__license__ = "MIT"

# =============================================================================
# Public API Exports
# =============================================================================

from bundleforge.catalog import catalog_for, features_for
from bundleforge.engine import apply_toggles, reduce, retarget, toggle
from bundleforge.generator import create_project, generate_project
from bundleforge.models import (
    BuildTarget,
    FeatureCatalog,
    FeatureSelection,
    ProjectConfig,
    ProjectPlan,
)
from bundleforge.rules import rule_set_for
from bundleforge.synthesizer import npm_dependencies, synthesize


__all__ = [
    "BuildTarget",
    "FeatureCatalog",
    "FeatureSelection",
    "ProjectConfig",
    "ProjectPlan",
    "__version__",
    "apply_toggles",
    "catalog_for",
    "create_project",
    "features_for",
    "generate_project",
    "npm_dependencies",
    "reduce",
    "retarget",
    "rule_set_for",
    "synthesize",
    "toggle",
]
