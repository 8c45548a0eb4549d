"""
bundleforge.cli - Command Line Interface
========================================

Typer application exposing the configurator.

Architecture
------------
    app (main entry point)
    ├── features   - List a bundler's features and whether they are shown
    ├── rules      - Show the ordered stop and mutation rules
    ├── plan       - Derive packages, config files and name for a selection
    ├── configure  - Toggle features interactively, then show the plan
    ├── new        - Write a generated project to disk
    └── export     - Save a selection to bundleforge.toml

Selections given with ``--feature/-f`` are replayed as clicks: each flag
toggles one feature through the rule engine, so a vetoed toggle is
reported and ignored exactly as in the interactive loop.

Usage Examples
--------------
    $ bundleforge plan -f React -f Sass
    $ bundleforge plan --target parcel -f Typescript --json
    $ bundleforge new my-app -f Vue -f CSS --yes
    $ bundleforge configure --target parcel
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import questionary
import typer
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from bundleforge import __version__
from bundleforge.catalog import catalog_for
from bundleforge.config import Settings, find_settings, load_settings, save_settings
from bundleforge.engine import is_vetoed, reduce, toggle
from bundleforge.generator import create_project, generate_project
from bundleforge.models import (
    Action,
    ActionType,
    BuildTarget,
    ConfiguratorState,
    FeatureCatalog,
    FeatureSelection,
    ProjectConfig,
    ProjectPlan,
    initial_state,
)
from bundleforge.rules import rule_set_for
from bundleforge.synthesizer import synthesize, visible_features


# =============================================================================
# CLI Application Setup
# =============================================================================

app = typer.Typer(
    name="bundleforge",
    help="Rule-driven Webpack and Parcel project configurator.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=True,
)

console = Console()

DONE = "__done__"


# =============================================================================
# Shared Options
# =============================================================================

TargetOption = Annotated[
    str | None,
    typer.Option("--target", "-t", help="Bundler: webpack, parcel"),
]
FeatureOption = Annotated[
    list[str] | None,
    typer.Option("--feature", "-f", help="Feature to toggle (repeatable, applied in order)"),
]
ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Settings file (default: ./bundleforge.toml)"),
]
CatalogOption = Annotated[
    Path | None,
    typer.Option("--catalog", help="Custom feature catalog (TOML)"),
]


# =============================================================================
# Helpers
# =============================================================================

def version_callback(value: bool) -> None:
    """Display version information and exit."""
    if value:
        console.print(Panel(
            f"[bold green]bundleforge[/] version [cyan]{__version__}[/]\n\n"
            f"[dim]Rule-driven Webpack and Parcel project configurator[/]",
            border_style="green",
        ))
        raise typer.Exit()


def fail(message: str) -> typer.Exit:
    """Print an error the way every command does and build the exit."""
    rprint(f"[red]Error:[/] {escape(message)}")
    return typer.Exit(1)


def resolve_settings(config_path: Path | None) -> Settings:
    """Settings from ``--config``, ./bundleforge.toml, or defaults."""
    path = config_path or find_settings(Path.cwd())
    if path is None:
        return Settings()
    try:
        return load_settings(path)
    except (FileNotFoundError, ValueError) as e:
        raise fail(str(e)) from e


def resolve_target(value: str | None, settings: Settings) -> BuildTarget:
    if value is None:
        return settings.target
    try:
        return BuildTarget(value.lower())
    except ValueError:
        valid = ", ".join(t.value for t in BuildTarget)
        raise fail(f"Invalid target '{value}'. Valid: {valid}") from None


def resolve_catalog(catalog_path: Path | None, target: BuildTarget) -> FeatureCatalog:
    if catalog_path is None:
        return catalog_for(target)
    try:
        catalog = FeatureCatalog.from_toml(catalog_path)
    except (FileNotFoundError, ValueError) as e:
        raise fail(str(e)) from e
    if catalog.target != target:
        raise fail(
            f"Catalog {catalog_path} is for {catalog.target.display_name}, "
            f"not {target.display_name}"
        )
    return catalog


def replay_features(
    target: BuildTarget,
    catalog: FeatureCatalog,
    feature_ids: list[str],
) -> FeatureSelection:
    """
    Toggle each feature in order, warning about vetoed toggles.

    Raises
    ------
    typer.Exit
        If a feature is not in the catalog.
    """
    selection = FeatureSelection()
    for feature_id in feature_ids:
        if feature_id not in catalog:
            valid = ", ".join(catalog.feature_ids)
            raise fail(
                f"Unknown feature '{feature_id}' for {target.display_name}. Valid: {valid}"
            )
        if is_vetoed(selection, target, feature_id):
            rprint(f"[yellow]Warning:[/] toggling '{feature_id}' was refused by the rules")
            continue
        selection = toggle(selection, target, feature_id, catalog=catalog)
    return selection


def print_plan(plan: ProjectPlan) -> None:
    """Render a plan as panels and tables."""
    console.print()
    console.print(Panel(
        f"[bold]Bundler:[/] {plan.target.display_name}\n"
        f"[bold]Project name:[/] [green]{plan.project_name}[/]\n"
        f"[bold]Download:[/] {plan.download_url}",
        title="[bold]bundleforge plan[/]",
        border_style="blue",
    ))

    table = Table(title="Packages", show_header=True)
    table.add_column("Kind", style="cyan")
    table.add_column("Packages", style="green")
    table.add_row("dependencies", " ".join(plan.npm.dependencies) or "-")
    table.add_row("devDependencies", " ".join(plan.npm.dev_dependencies) or "-")
    console.print(table)

    console.print(
        f"[bold]Features:[/] {', '.join(plan.selected_features) or 'none'}"
    )
    console.print(f"[bold]Transpiler config:[/] {plan.transpiler.filename or 'none'}")

    transpiler_content = plan.babel_config or plan.tsconfig
    if transpiler_content is not None:
        console.print(Syntax(json.dumps(transpiler_content, indent=2), "json"))

    console.print()
    console.print("[bold]How to create your project yourself[/]")
    for index, step in enumerate(plan.setup_steps, 1):
        title, _, commands = step.partition("\n")
        console.print(f"  {index}. {title}")
        if commands:
            console.print(Syntax(commands, "bash"))


def prompt_selection(state: ConfiguratorState) -> ConfiguratorState:
    """
    Interactively toggle features until the user picks "Done".

    Each answer is dispatched to the reducer, so rules apply exactly as
    they do for ``--feature`` flags. Hidden features are not offered.
    """
    while True:
        catalog = catalog_for(state.target)
        shown = visible_features(catalog, state.selection)
        other = next(t for t in BuildTarget if t != state.target)

        choices = [
            questionary.Choice(
                title=f"[{'x' if state.selection.is_selected(fid) else ' '}] {feature.display_name}",
                value=fid,
            )
            for fid, feature in shown.items()
        ]
        choices.append(questionary.Choice(title=f"Switch to {other.display_name}", value=other))
        choices.append(questionary.Choice(title="Done", value=DONE))

        answer = questionary.select(
            f"{state.target.display_name} features (select to toggle):",
            choices=choices,
        ).ask()

        if answer is None:
            raise typer.Abort()
        if answer == DONE:
            return state

        if isinstance(answer, BuildTarget):
            action = Action(type=ActionType.SET_TARGET, target=answer)
        else:
            if is_vetoed(state.selection, state.target, answer):
                rprint(f"[yellow]Toggling '{answer}' was refused by the rules[/]")
            action = Action(type=ActionType.TOGGLE_FEATURE, feature=answer)
        state = reduce(state, action)


# =============================================================================
# Main Application Callback
# =============================================================================

@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log rule decisions and rendering."),
    ] = False,
) -> None:
    """
    [bold]bundleforge[/] - Webpack and Parcel project configurator.

    Pick features, let the rules keep them consistent, and get the
    packages, config files and project tree that go with them.

    [bold]Quick Start:[/]

        bundleforge plan -f React -f Sass
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


# =============================================================================
# Features Command
# =============================================================================

@app.command()
def features(
    target: TargetOption = None,
    feature: FeatureOption = None,
    config: ConfigOption = None,
    catalog_path: CatalogOption = None,
    show_all: Annotated[
        bool,
        typer.Option("--all", "-a", help="Include features hidden by the selection"),
    ] = False,
) -> None:
    """
    List the features of a bundler.

    With [cyan]--feature[/] the list reflects that selection: selected
    features are marked and hidden ones are left out, or dimmed with
    [cyan]--all[/].

    [bold]Examples:[/]

        bundleforge features
        bundleforge features --all -f React -f Typescript
    """
    settings = resolve_settings(config)
    resolved_target = resolve_target(target, settings)
    catalog = resolve_catalog(catalog_path, resolved_target)
    selection = replay_features(resolved_target, catalog, feature or settings.features)
    shown = visible_features(catalog, selection)

    table = Table(title=f"{resolved_target.display_name} Features", show_header=True)
    table.add_column("", width=3)
    table.add_column("Feature", style="cyan")
    table.add_column("Category")
    table.add_column("Packages", style="dim")

    for fid, item in catalog.features.items():
        if fid not in shown and not show_all:
            continue
        packages = " ".join([*item.dependencies, *item.dev_dependencies])
        mark = "[green]✓[/]" if selection.is_selected(fid) else ""
        name = item.display_name if fid in shown else f"[dim]{item.display_name} (hidden)[/]"
        table.add_row(mark, name, item.category.value, packages)

    console.print(table)


# =============================================================================
# Rules Command
# =============================================================================

@app.command()
def rules(
    target: TargetOption = None,
    config: ConfigOption = None,
) -> None:
    """
    Show the rules applied when a feature is toggled.

    Stop rules run first and may refuse the toggle. Mutation rules then
    run in the listed order.
    """
    settings = resolve_settings(config)
    resolved_target = resolve_target(target, settings)
    rule_set = rule_set_for(resolved_target)

    table = Table(title=f"{resolved_target.display_name} Rules", show_header=True)
    table.add_column("#", style="dim", width=3)
    table.add_column("Kind", style="cyan")
    table.add_column("Rule", style="green")
    table.add_column("Effect")

    ordered = [*rule_set.stop_rules, *rule_set.mutation_rules]
    for index, rule in enumerate(ordered, 1):
        table.add_row(str(index), rule.kind.value, rule.name, rule.description)

    console.print(table)


# =============================================================================
# Plan Command
# =============================================================================

@app.command()
def plan(
    target: TargetOption = None,
    feature: FeatureOption = None,
    base_name: Annotated[
        str | None,
        typer.Option("--base-name", "-b", help="Prefix of the derived project name"),
    ] = None,
    config: ConfigOption = None,
    catalog_path: CatalogOption = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the plan as JSON"),
    ] = False,
) -> None:
    """
    Show what a selection needs: packages, config files and setup steps.

    [bold]Examples:[/]

        bundleforge plan -f React -f "React hot loader"
        bundleforge plan --target parcel -f Typescript --json
    """
    settings = resolve_settings(config)
    resolved_target = resolve_target(target, settings)
    catalog = resolve_catalog(catalog_path, resolved_target)
    selection = replay_features(resolved_target, catalog, feature or settings.features)

    result = synthesize(
        resolved_target,
        selection,
        base_name=base_name or settings.base_name,
        catalog=catalog,
    )

    if as_json:
        typer.echo(result.model_dump_json(indent=2))
        return

    print_plan(result)


# =============================================================================
# Configure Command
# =============================================================================

@app.command()
def configure(
    target: TargetOption = None,
    config: ConfigOption = None,
) -> None:
    """
    Toggle features interactively, then show the resulting plan.

    Features that can't be combined with the current selection are hidden,
    and toggles refused by the rules are reported.
    """
    settings = resolve_settings(config)
    state = prompt_selection(initial_state(resolve_target(target, settings)))
    print_plan(synthesize(state.target, state.selection, base_name=settings.base_name))


# =============================================================================
# New Command
# =============================================================================

@app.command()
def new(
    name: Annotated[
        str | None,
        typer.Argument(help="Project name (default: derived from the features)"),
    ] = None,
    target: TargetOption = None,
    feature: FeatureOption = None,
    output_dir: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Directory to create the project in"),
    ] = None,
    config: ConfigOption = None,
    catalog_path: CatalogOption = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="List the files without writing them"),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip all prompts"),
    ] = False,
) -> None:
    """
    Create a new Webpack or Parcel project.

    Without [cyan]--feature[/] and without [cyan]--yes[/] the features
    are picked interactively.

    [bold]Examples:[/]

        bundleforge new
        bundleforge new my-app -f React -f Sass --yes
        bundleforge new --target parcel -f Typescript --dry-run
    """
    settings = resolve_settings(config)
    resolved_target = resolve_target(target, settings)
    requested = feature or settings.features
    should_prompt = not yes and not requested

    if should_prompt:
        if catalog_path is not None:
            raise fail("--catalog cannot be combined with interactive selection")
        state = prompt_selection(initial_state(resolved_target))
        resolved_target, selection = state.target, state.selection
        catalog = catalog_for(resolved_target)
    else:
        catalog = resolve_catalog(catalog_path, resolved_target)
        selection = replay_features(resolved_target, catalog, requested)

    derived = synthesize(resolved_target, selection, base_name=settings.base_name, catalog=catalog)

    try:
        project = ProjectConfig(
            name=name or derived.project_name,
            target=resolved_target,
            selection=selection,
            output_dir=output_dir or settings.output_dir or Path.cwd(),
        )
    except ValueError as e:
        raise fail(str(e)) from e

    if dry_run:
        files = generate_project(project.target, catalog, project.selection, name=project.name)
        table = Table(title=f"Files for {project.name}", show_header=True)
        table.add_column("File", style="cyan")
        table.add_column("Lines", style="dim", justify="right")
        # the bundler's main file leads, the rest stay sorted
        for path in sorted(files, key=lambda path: path != catalog.default_file):
            content = files[path]
            table.add_row(path, str(len(content.splitlines())))
        console.print(table)
        return

    if should_prompt:
        console.print()
        table = Table(title="Project Configuration", show_header=False)
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Name", project.name)
        table.add_row("Bundler", project.target.display_name)
        table.add_row("Features", ", ".join(derived.selected_features) or "none")
        table.add_row("Location", str(project.project_dir))
        console.print(table)
        console.print()

        if not questionary.confirm("Create project with these settings?", default=True).ask():
            raise typer.Abort()

    try:
        result = create_project(project, catalog=catalog, verbose=True)
    except FileExistsError:
        raise typer.Exit(1) from None
    except Exception as e:
        raise fail(str(e)) from e

    if not result.success:
        raise typer.Exit(1)


# =============================================================================
# Export Command
# =============================================================================

@app.command()
def export(
    path: Annotated[
        Path,
        typer.Argument(help="Settings file to write"),
    ] = Path("bundleforge.toml"),
    target: TargetOption = None,
    feature: FeatureOption = None,
    base_name: Annotated[
        str | None,
        typer.Option("--base-name", "-b", help="Prefix of derived project names"),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing file"),
    ] = False,
) -> None:
    """
    Save a target and feature list as bundleforge.toml.

    The features are stored in the given order and replayed as toggles
    when the file is read back.
    """
    if path.exists() and not force:
        raise fail(f"{path} already exists. Use --force to overwrite.")

    resolved_target = resolve_target(target, Settings())
    catalog = catalog_for(resolved_target)
    requested = feature or []
    # validates every id and reports vetoes before anything is written
    replay_features(resolved_target, catalog, requested)

    try:
        settings = Settings(
            target=resolved_target,
            base_name=base_name or Settings().base_name,
            features=requested,
        )
    except ValueError as e:
        raise fail(str(e)) from e

    written = save_settings(settings, path)
    rprint(f"[green]✓[/] Saved settings to {written}")


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    app()
