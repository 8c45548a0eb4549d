"""
bundleforge.generator - Project File Generation
===============================================

Turns a consistent selection into the files of a ready-to-install
JavaScript project, and optionally writes them to disk.

Architecture
------------
Generation is split in two layers:

    1. generate_project(): pure. Renders every file to a
       ``{relative path: content}`` mapping. Used by ``bundleforge new
       --dry-run`` and by tests.
    2. create_project(): writes that mapping under ``output_dir/name``,
       validates the result and cleans up if anything fails.

Template System
---------------
Text files are Jinja2 templates in ``bundleforge/templates``. Which
templates apply is decided by ``TEMPLATE_MAPPINGS``: each entry pairs a
template with its output path and an optional condition on the
:class:`GenerationContext`. JSON files are serialized from the
synthesizer's output so they are always valid JSON.

Usage Example
-------------
>>> from bundleforge.catalog import catalog_for
>>> from bundleforge.generator import generate_project
>>> from bundleforge.models import BuildTarget, FeatureSelection
>>> files = generate_project(
...     BuildTarget.PARCEL,
...     catalog_for(BuildTarget.PARCEL),
...     FeatureSelection.from_ids(["React", "Babel"]),
... )
>>> sorted(files)[:3]
['.babelrc', '.gitignore', 'README.md']
"""

from __future__ import annotations

import json
import logging
import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from typing import Any

from jinja2 import Environment, PackageLoader, select_autoescape
from rich.console import Console
from rich.panel import Panel

from bundleforge import __version__
from bundleforge.catalog import BABEL, REACT, REACT_HOT_LOADER, TYPESCRIPT, VUE, catalog_for
from bundleforge.models import (
    BuildTarget,
    FeatureCatalog,
    FeatureSelection,
    ProjectConfig,
    ProjectPlan,
    TranspilerConfig,
)
from bundleforge.synthesizer import DEFAULT_BASE_NAME, npm_install_command, synthesize


logger = logging.getLogger(__name__)

console = Console()


# =============================================================================
# Generation Context
# =============================================================================

@dataclass(frozen=True)
class LoaderRule:
    """One entry of ``module.rules`` in webpack.config.js."""

    test: str
    use: list[str]
    exclude: str | None = None


@dataclass(frozen=True)
class GenerationContext:
    """
    Everything templates need to render one project.

    Attributes
    ----------
    target : BuildTarget
        Bundler the project is configured for.

    selection : FeatureSelection
        Consistent selection.

    plan : ProjectPlan
        Synthesized dependencies, transpiler config and setup steps.

    name : str
        Project name, used in ``package.json`` and the page title.
    """

    target: BuildTarget
    selection: FeatureSelection
    plan: ProjectPlan
    name: str

    def has(self, feature_id: str) -> bool:
        return self.selection.is_selected(feature_id)

    @property
    def is_webpack(self) -> bool:
        return self.target == BuildTarget.WEBPACK

    @property
    def typescript(self) -> bool:
        return self.plan.transpiler == TranspilerConfig.TYPESCRIPT

    @property
    def react(self) -> bool:
        return self.has(REACT)

    @property
    def vue(self) -> bool:
        return self.has(VUE)

    @property
    def hot_loader(self) -> bool:
        return self.has(REACT_HOT_LOADER)

    @property
    def entry_extension(self) -> str:
        if self.typescript:
            return "tsx" if self.react else "ts"
        return "js"

    @property
    def npm_commands(self) -> str:
        return npm_install_command(self.plan.npm, directory=self.name)

    @property
    def code_split(self) -> bool:
        return self.has("Code split vendors")

    @property
    def html_plugin(self) -> bool:
        return self.has("HTML webpack plugin")

    @cached_property
    def style_files(self) -> list[str]:
        """Stylesheet names, one per selected styling feature."""
        candidates = [
            ("CSS", "styles.css"),
            ("CSS Modules", "styles.module.css"),
            ("Sass", "styles.scss"),
            ("Less", "styles.less"),
            ("stylus", "styles.styl"),
        ]
        return [filename for feature_id, filename in candidates if self.has(feature_id)]

    @cached_property
    def loader_rules(self) -> list[LoaderRule]:
        return webpack_loader_rules(self)

    @cached_property
    def webpack_plugins(self) -> list[str]:
        return webpack_plugins(self)

    @property
    def resolve_extensions(self) -> list[str]:
        extensions = [".js"]
        if self.typescript:
            extensions = [".tsx", ".ts", ".js"]
        elif self.react:
            extensions.append(".jsx")
        if self.vue:
            extensions.append(".vue")
        return extensions

    @property
    def aliases(self) -> dict[str, str]:
        aliases: dict[str, str] = {}
        if self.hot_loader:
            aliases["react-dom"] = "@hot-loader/react-dom"
        if self.vue:
            aliases["vue$"] = "vue/dist/vue.esm.js"
        return aliases


def webpack_loader_rules(ctx: GenerationContext) -> list[LoaderRule]:
    """
    Loader rules for the selected features, in a fixed order.

    Returns
    -------
    list[LoaderRule]
        Rules with their ``test``/``exclude`` regexes and ``use`` entries
        already formatted as JavaScript source.
    """
    rules: list[LoaderRule] = []

    if ctx.plan.transpiler == TranspilerConfig.BABEL and ctx.has(BABEL):
        rules.append(LoaderRule(r"/\.(js|jsx)$/", ["'babel-loader'"], "/node_modules/"))
    if ctx.typescript and ctx.vue:
        ts_loader = "{ loader: 'ts-loader', options: { appendTsSuffixTo: [/\\.vue$/] } }"
        rules.append(LoaderRule(r"/\.ts(x)?$/", [ts_loader], "/node_modules/"))
    elif ctx.typescript:
        rules.append(LoaderRule(r"/\.ts(x)?$/", ["'ts-loader'"], "/node_modules/"))
    if ctx.vue:
        rules.append(LoaderRule(r"/\.vue$/", ["'vue-loader'"]))

    css_modules_loader = "{ loader: 'css-loader', options: { importLoaders: 1, modules: true } }"
    if ctx.has("CSS") and ctx.has("CSS Modules"):
        rules.append(LoaderRule(r"/\.css$/", ["'style-loader'", "'css-loader'"], r"/\.module\.css$/"))
        rules.append(LoaderRule(r"/\.module\.css$/", ["'style-loader'", css_modules_loader]))
    elif ctx.has("CSS Modules"):
        rules.append(LoaderRule(r"/\.css$/", ["'style-loader'", css_modules_loader]))
    elif ctx.has("CSS"):
        rules.append(LoaderRule(r"/\.css$/", ["'style-loader'", "'css-loader'"]))

    preprocessors = [
        ("Sass", r"/\.scss$/", "'sass-loader'"),
        ("Less", r"/\.less$/", "'less-loader'"),
        ("stylus", r"/\.styl$/", "'stylus-loader'"),
    ]
    for feature_id, test, loader in preprocessors:
        if ctx.has(feature_id):
            rules.append(LoaderRule(test, ["'style-loader'", "'css-loader'", loader]))

    if ctx.has("SVG"):
        rules.append(LoaderRule(r"/\.svg$/", ["'file-loader'"]))
    if ctx.has("PNG"):
        rules.append(
            LoaderRule(r"/\.png$/", ["{ loader: 'url-loader', options: { mimetype: 'image/png' } }"])
        )

    return rules


def webpack_plugins(ctx: GenerationContext) -> list[str]:
    """``new Plugin(...)`` expressions for webpack.config.js."""
    plugins: list[str] = []
    if ctx.vue:
        plugins.append("new VueLoaderPlugin()")
    if ctx.has("moment"):
        plugins.append(r"new webpack.ContextReplacementPlugin(/moment[/\\]locale/, /en/)")
    if ctx.html_plugin:
        plugins.append(
            "new HtmlWebpackPlugin({\n"
            f"      title: '{ctx.name}',\n"
            "      templateContent: '<div id=\"app\"></div>'\n"
            "    })"
        )
    if ctx.has("Webpack Bundle Analyzer"):
        plugins.append("new BundleAnalyzerPlugin({ analyzerMode: 'static', openAnalyzer: false })")
    return plugins


# =============================================================================
# Template Mappings
# =============================================================================

# (template_name, output_path, condition_func)
# Output paths may use {entry_extension}; a None condition always applies.
TEMPLATE_MAPPINGS: list[tuple[str, str, Callable[[GenerationContext], bool] | None]] = [
    ("webpack.config.js.j2", "webpack.config.js", lambda ctx: ctx.is_webpack),
    ("index.js.j2", "src/index.{entry_extension}", None),
    ("App.vue.j2", "src/App.vue", lambda ctx: ctx.vue),
    ("vue-shim.d.ts.j2", "src/vue-shim.d.ts", lambda ctx: ctx.vue and ctx.typescript),
    (
        "index.html.j2",
        "dist/index.html",
        lambda ctx: ctx.is_webpack and not ctx.html_plugin,
    ),
    ("index.html.j2", "src/index.html", lambda ctx: not ctx.is_webpack),
    ("gitignore.j2", ".gitignore", None),
    ("README.md.j2", "README.md", None),
]


# =============================================================================
# Template Engine Setup
# =============================================================================

def create_jinja_env() -> Environment:
    """
    Create the Jinja2 environment for project templates.

    Autoescaping is off: the output is JavaScript and config files, not
    HTML pages built from untrusted input.
    """
    return Environment(
        loader=PackageLoader("bundleforge", "templates"),
        autoescape=select_autoescape([]),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def render_template(
    env: Environment,
    template_name: str,
    ctx: GenerationContext,
    **extra: Any,
) -> str:
    """Render one template with the generation context."""
    template = env.get_template(template_name)
    logger.debug("Rendering %s", template_name)
    return template.render(ctx=ctx, bundleforge_version=__version__, **extra)


# =============================================================================
# JSON Files
# =============================================================================

def _dump_json(data: dict[str, Any]) -> str:
    return json.dumps(data, indent=2) + "\n"


def create_package_json(ctx: GenerationContext, catalog: FeatureCatalog) -> dict[str, Any]:
    """
    ``package.json`` contents with pinned version ranges from the catalog.

    Dependency order follows the synthesized npm lists.
    """
    if ctx.is_webpack:
        scripts = {
            "build": "webpack --mode production",
            "start": "webpack --mode development --watch",
        }
    else:
        scripts = {
            "start": "parcel src/index.html",
            "build": "parcel build src/index.html",
        }

    package: dict[str, Any] = {
        "name": ctx.name,
        "version": "1.0.0",
        "description": "",
        "main": "index.js",
        "scripts": scripts,
        "keywords": [],
        "author": "",
        "license": "ISC",
    }
    if ctx.plan.npm.dependencies:
        package["dependencies"] = {
            pkg: catalog.version_of(pkg) for pkg in ctx.plan.npm.dependencies
        }
    package["devDependencies"] = {
        pkg: catalog.version_of(pkg) for pkg in ctx.plan.npm.dev_dependencies
    }
    return package


# =============================================================================
# Pure Generation
# =============================================================================

def _render_project(
    target: BuildTarget,
    catalog: FeatureCatalog,
    selection: FeatureSelection,
    name: str | None,
) -> dict[str, str]:
    if catalog.target != target:
        msg = (
            f"Catalog for {catalog.target.display_name} cannot generate "
            f"a {target.display_name} project"
        )
        raise ValueError(msg)

    plan = synthesize(target, selection, catalog=catalog, base_name=DEFAULT_BASE_NAME)
    ctx = GenerationContext(
        target=target,
        selection=selection,
        plan=plan,
        name=name or plan.project_name,
    )
    env = create_jinja_env()
    files: dict[str, str] = {}

    files["package.json"] = _dump_json(create_package_json(ctx, catalog))
    if plan.babel_config is not None:
        files[".babelrc"] = _dump_json(plan.babel_config)
    if plan.tsconfig is not None:
        files["tsconfig.json"] = _dump_json(plan.tsconfig)

    for template_name, output_pattern, condition in TEMPLATE_MAPPINGS:
        if condition is not None and not condition(ctx):
            continue
        output_path = output_pattern.format(entry_extension=ctx.entry_extension)
        files[output_path] = render_template(env, template_name, ctx)

    # one stylesheet per styling feature, syntax picked from the filename
    for filename in ctx.style_files:
        files[f"src/{filename}"] = render_template(env, "styles.j2", ctx, filename=filename)

    return dict(sorted(files.items()))


def generate_webpack_project(
    catalog: FeatureCatalog,
    selection: FeatureSelection,
    *,
    name: str | None = None,
) -> dict[str, str]:
    """Files of a Webpack project. See :func:`generate_project`."""
    return _render_project(BuildTarget.WEBPACK, catalog, selection, name)


def generate_parcel_project(
    catalog: FeatureCatalog,
    selection: FeatureSelection,
    *,
    name: str | None = None,
) -> dict[str, str]:
    """Files of a Parcel project. See :func:`generate_project`."""
    return _render_project(BuildTarget.PARCEL, catalog, selection, name)


PROJECT_GENERATORS: dict[BuildTarget, Callable[..., dict[str, str]]] = {
    BuildTarget.WEBPACK: generate_webpack_project,
    BuildTarget.PARCEL: generate_parcel_project,
}


def generate_project(
    target: BuildTarget,
    catalog: FeatureCatalog | None,
    selection: FeatureSelection,
    *,
    name: str | None = None,
) -> dict[str, str]:
    """
    Render every file of a project for a consistent selection.

    Parameters
    ----------
    target : BuildTarget
        Bundler to generate for.

    catalog : FeatureCatalog | None
        Catalog of ``target``. None means the built-in one.

    selection : FeatureSelection
        Consistent selection for ``target``.

    name : str | None
        Project name. Defaults to the derived project name.

    Returns
    -------
    dict[str, str]
        Relative file path to file content, sorted by path. The same
        inputs always produce the same mapping.

    Raises
    ------
    ValueError
        If ``catalog`` belongs to another target.
    """
    generator = PROJECT_GENERATORS[target]
    return generator(catalog or catalog_for(target), selection, name=name)


# =============================================================================
# Writing to Disk
# =============================================================================

@dataclass
class GenerationResult:
    """
    Outcome of :func:`create_project`.

    Attributes
    ----------
    success : bool
        Whether the project was written.

    project_path : Path
        Directory of the project.

    files_created : list[Path]
        Absolute paths of written files.

    warnings : list[str]
        Non-fatal problems, including validation issues.

    errors : list[str]
        Errors that aborted generation.

    validation_passed : bool
        Whether the post-write checks succeeded.
    """

    success: bool
    project_path: Path
    files_created: list[Path] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    validation_passed: bool = False


def write_files(project_dir: Path, files: dict[str, str]) -> list[Path]:
    """Write rendered files below ``project_dir``, creating parents."""
    created: list[Path] = []
    for relative_path, content in files.items():
        full_path = project_dir / relative_path
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_text(content, encoding="utf-8")
        created.append(full_path)
    return created


def validate_project(project_dir: Path) -> tuple[bool, list[str]]:
    """
    Check a written project for obvious breakage.

    Checks Performed
    ----------------
    1. package.json exists and is valid JSON
    2. .babelrc and tsconfig.json are not both present
    3. Every JSON config file parses

    Returns
    -------
    tuple[bool, list[str]]
        Success flag and the problems found.
    """
    issues: list[str] = []

    if not (project_dir / "package.json").exists():
        issues.append("Missing essential file: package.json")

    if (project_dir / ".babelrc").exists() and (project_dir / "tsconfig.json").exists():
        issues.append("Both .babelrc and tsconfig.json were generated")

    for filename in ("package.json", ".babelrc", "tsconfig.json"):
        path = project_dir / filename
        if not path.exists():
            continue
        try:
            json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            issues.append(f"Invalid {filename}: {e}")

    return len(issues) == 0, issues


def create_project(
    config: ProjectConfig,
    *,
    catalog: FeatureCatalog | None = None,
    verbose: bool = True,
) -> GenerationResult:
    """
    Generate a project and write it to ``config.project_dir``.

    Parameters
    ----------
    config : ProjectConfig
        Name, target, selection and output directory.

    catalog : FeatureCatalog | None
        Overrides the built-in catalog of ``config.target``.

    verbose : bool, default=True
        Print progress to the console.

    Returns
    -------
    GenerationResult
        What was written and whether validation passed.

    Raises
    ------
    FileExistsError
        If the project directory already exists.

    Notes
    -----
    If anything fails after the directory was created, the partial
    project is removed before the error propagates.
    """
    result = GenerationResult(success=False, project_path=config.project_dir)

    if config.project_dir.exists():
        message = (
            f"Directory '{config.project_dir}' already exists. "
            "Use a different name or remove the existing directory."
        )
        result.errors.append(message)
        if verbose:
            console.print(f"\n[bold red]Error:[/] {message}")
        raise FileExistsError(message)

    # the cleanup below must only remove a directory this call created
    config.project_dir.mkdir(parents=True)

    try:
        if verbose:
            console.print()
            console.print(
                Panel(
                    f"[bold blue]Creating project:[/] [green]{config.name}[/]\n"
                    f"[dim]Bundler: {config.target.display_name} | "
                    f"Features: {', '.join(config.selection.selected_ids) or 'none'}[/]",
                    title="[bold]bundleforge[/]",
                    border_style="blue",
                )
            )
            console.print()
            console.print("[bold]📝 Rendering templates...[/]")

        files = generate_project(config.target, catalog, config.selection, name=config.name)

        if verbose:
            console.print("[bold]💾 Writing files...[/]")

        result.files_created.extend(write_files(config.project_dir, files))

        if verbose:
            for relative_path in files:
                console.print(f"  Created {relative_path}")
            console.print()
            console.print("[bold]✅ Validating project...[/]")

        validation_success, issues = validate_project(config.project_dir)
        result.validation_passed = validation_success
        if validation_success:
            if verbose:
                console.print("  [green]✓[/] All validations passed")
        else:
            result.warnings.extend(issues)
            if verbose:
                for issue in issues:
                    console.print(f"  [yellow]⚠[/] {issue}")

        result.success = True

        if verbose:
            console.print()
            console.print(
                Panel(
                    f"[bold green]✨ Project created successfully![/]\n\n"
                    f"[dim]Location:[/] {config.project_dir}\n\n"
                    f"[bold]Next steps:[/]\n"
                    f"  cd {config.name}\n"
                    f"  npm install\n"
                    "  npm start",
                    title="[bold green]Success[/]",
                    border_style="green",
                )
            )

    except Exception as e:
        result.errors.append(str(e))

        if config.project_dir.exists():
            shutil.rmtree(config.project_dir)
            result.warnings.append("Partial project directory was cleaned up")

        if verbose:
            console.print(f"\n[bold red]Error:[/] {e}")
            console.print("[dim]Partial project directory was removed.[/]")

        raise

    return result
