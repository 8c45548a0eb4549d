"""
bundleforge.catalog - Built-in Feature Catalogs
===============================================

The features each bundler target offers, with the npm packages every
feature pulls in. Catalogs are plain data: the selection engine and the
synthesizer read them and never change them.

The two catalogs share feature ids where a feature means the same thing
for both bundlers (``"React"``, ``"Typescript"``), but they are
independent sets. Parcel has no ``"Vue"`` and no ``"React hot loader"``.

Usage
-----
>>> from bundleforge.catalog import features_for
>>> from bundleforge.models import BuildTarget
>>> list(features_for(BuildTarget.PARCEL))[:3]
['React', 'Babel', 'Typescript']
"""

from __future__ import annotations

from bundleforge.models import BuildTarget, Feature, FeatureCatalog, FeatureCategory


# Names of the features rules and the synthesizer refer to directly
REACT = "React"
VUE = "Vue"
BABEL = "Babel"
TYPESCRIPT = "Typescript"
REACT_HOT_LOADER = "React hot loader"


# Static version ranges written to package.json
PACKAGE_VERSIONS: dict[str, str] = {
    "webpack": "^4.46.0",
    "webpack-cli": "^3.3.12",
    "parcel-bundler": "^1.12.5",
    "react": "^16.14.0",
    "react-dom": "^16.14.0",
    "react-hot-loader": "^4.13.0",
    "@hot-loader/react-dom": "^16.14.0",
    "vue": "^2.6.14",
    "vue-loader": "^15.9.8",
    "vue-template-compiler": "^2.6.14",
    "@babel/core": "^7.12.10",
    "@babel/preset-env": "^7.12.11",
    "@babel/preset-react": "^7.12.10",
    "babel-loader": "^8.2.2",
    "typescript": "^4.1.3",
    "ts-loader": "^8.0.14",
    "style-loader": "^2.0.0",
    "css-loader": "^5.0.1",
    "sass-loader": "^10.1.1",
    "node-sass": "^5.0.0",
    "sass": "^1.32.4",
    "less-loader": "^7.2.1",
    "less": "^4.1.0",
    "stylus-loader": "^4.3.3",
    "stylus": "^0.54.8",
    "file-loader": "^6.2.0",
    "url-loader": "^4.1.1",
    "moment": "^2.29.1",
    "lodash": "^4.17.20",
    "html-webpack-plugin": "^4.5.1",
    "webpack-bundle-analyzer": "^4.3.0",
}


# =============================================================================
# Webpack
# =============================================================================

_WEBPACK_FEATURES: list[Feature] = [
    Feature(
        id=REACT,
        category=FeatureCategory.FRAMEWORK,
        description="Component UI library",
        dependencies=["react", "react-dom"],
        dev_dependencies=["@babel/preset-react"],
    ),
    Feature(
        id=VUE,
        category=FeatureCategory.FRAMEWORK,
        description="Progressive UI framework with single file components",
        dependencies=["vue"],
        dev_dependencies=["vue-loader", "vue-template-compiler"],
    ),
    Feature(
        id=BABEL,
        category=FeatureCategory.TRANSPILER,
        description="Compile modern JavaScript for older browsers",
        dev_dependencies=["babel-loader", "@babel/core", "@babel/preset-env"],
    ),
    Feature(
        id=TYPESCRIPT,
        category=FeatureCategory.TRANSPILER,
        description="Typed superset of JavaScript",
        dev_dependencies=["typescript", "ts-loader"],
    ),
    Feature(
        id=REACT_HOT_LOADER,
        category=FeatureCategory.OPTIMIZATION,
        description="Swap React components without losing state",
        dependencies=["react-hot-loader"],
        dev_dependencies=["@hot-loader/react-dom"],
        requires=[REACT],
        hidden_with=[TYPESCRIPT],
    ),
    Feature(
        id="CSS",
        category=FeatureCategory.STYLING,
        description="Import .css files",
        dev_dependencies=["style-loader", "css-loader"],
    ),
    Feature(
        id="CSS Modules",
        category=FeatureCategory.STYLING,
        description="Locally scoped class names",
        dev_dependencies=["style-loader", "css-loader"],
    ),
    Feature(
        id="Sass",
        category=FeatureCategory.STYLING,
        dev_dependencies=["style-loader", "css-loader", "sass-loader", "node-sass"],
    ),
    Feature(
        id="Less",
        category=FeatureCategory.STYLING,
        dev_dependencies=["style-loader", "css-loader", "less-loader", "less"],
    ),
    Feature(
        id="stylus",
        category=FeatureCategory.STYLING,
        dev_dependencies=["style-loader", "css-loader", "stylus-loader", "stylus"],
    ),
    Feature(
        id="SVG",
        category=FeatureCategory.ASSETS,
        dev_dependencies=["file-loader"],
    ),
    Feature(
        id="PNG",
        category=FeatureCategory.ASSETS,
        dev_dependencies=["url-loader"],
    ),
    Feature(
        id="moment",
        category=FeatureCategory.UTILITY,
        description="Date library, locales stripped from the bundle",
        dependencies=["moment"],
    ),
    Feature(
        id="lodash",
        category=FeatureCategory.UTILITY,
        dependencies=["lodash"],
    ),
    Feature(
        id="Code split vendors",
        category=FeatureCategory.OPTIMIZATION,
        description="Put node_modules code in a separate chunk",
    ),
    Feature(
        id="HTML webpack plugin",
        category=FeatureCategory.OPTIMIZATION,
        description="Generate index.html with bundles injected",
        dev_dependencies=["html-webpack-plugin"],
    ),
    Feature(
        id="Webpack Bundle Analyzer",
        category=FeatureCategory.OPTIMIZATION,
        description="Visualize bundle contents",
        dev_dependencies=["webpack-bundle-analyzer"],
    ),
]

WEBPACK_CATALOG = FeatureCatalog(
    target=BuildTarget.WEBPACK,
    features={feature.id: feature for feature in _WEBPACK_FEATURES},
    base_dev_dependencies=["webpack", "webpack-cli"],
    package_versions=PACKAGE_VERSIONS,
    default_file="webpack.config.js",
    download_url_base="https://s3-eu-west-1.amazonaws.com/jakoblind/zips-webpack/",
)


# =============================================================================
# Parcel
# =============================================================================

_PARCEL_FEATURES: list[Feature] = [
    Feature(
        id=REACT,
        category=FeatureCategory.FRAMEWORK,
        description="Component UI library",
        dependencies=["react", "react-dom"],
        dev_dependencies=["@babel/preset-react"],
    ),
    Feature(
        id=BABEL,
        category=FeatureCategory.TRANSPILER,
        description="Compile modern JavaScript for older browsers",
        dev_dependencies=["@babel/core", "@babel/preset-env"],
    ),
    Feature(
        id=TYPESCRIPT,
        category=FeatureCategory.TRANSPILER,
        description="Typed superset of JavaScript",
        dev_dependencies=["typescript"],
    ),
    Feature(id="CSS", category=FeatureCategory.STYLING, description="Import .css files"),
    Feature(id="Sass", category=FeatureCategory.STYLING, dev_dependencies=["sass"]),
    Feature(id="Less", category=FeatureCategory.STYLING, dev_dependencies=["less"]),
    Feature(id="stylus", category=FeatureCategory.STYLING, dev_dependencies=["stylus"]),
    Feature(id="moment", category=FeatureCategory.UTILITY, dependencies=["moment"]),
    Feature(id="lodash", category=FeatureCategory.UTILITY, dependencies=["lodash"]),
]

PARCEL_CATALOG = FeatureCatalog(
    target=BuildTarget.PARCEL,
    features={feature.id: feature for feature in _PARCEL_FEATURES},
    base_dev_dependencies=["parcel-bundler"],
    package_versions=PACKAGE_VERSIONS,
    default_file="package.json",
    download_url_base="https://s3-eu-west-1.amazonaws.com/jakoblind/zips-parcel/",
)


CATALOGS: dict[BuildTarget, FeatureCatalog] = {
    BuildTarget.WEBPACK: WEBPACK_CATALOG,
    BuildTarget.PARCEL: PARCEL_CATALOG,
}


def catalog_for(target: BuildTarget) -> FeatureCatalog:
    """The built-in catalog for ``target``."""
    return CATALOGS[target]


def features_for(target: BuildTarget) -> dict[str, Feature]:
    """
    Ordered mapping of feature id to feature for ``target``.

    A fresh dict is returned each call, so callers may filter it
    without touching the catalog.
    """
    return dict(catalog_for(target).features)
