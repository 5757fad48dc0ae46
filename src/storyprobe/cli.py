"""storyprobe CLI - typer application entry point."""

from __future__ import annotations

import atexit
import json
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from ruamel.yaml import YAML

from storyprobe.autofix import AutoFixer
from storyprobe.config import DEFAULT_CONFIG_FILENAME, AnalysisConfig, load_config
from storyprobe.errors import ConfigError, StoryLoadError
from storyprobe.inspection import inspect_story
from storyprobe.models.story import Story
from storyprobe.observability import close_file_logging, configure_logging, get_logger
from storyprobe.simulation import STRATEGIES, SimulationOptions, StorySimulator
from storyprobe.validation import CATEGORIES, ValidationOptions, create_default_registry

if TYPE_CHECKING:
    from storyprobe.simulation import PlaythroughData
    from storyprobe.validation import Issue, ValidationResult

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="storyprobe",
    help="storyprobe: validation, repair and playthrough simulation for branching stories.",
    no_args_is_help=True,
)
console = Console()
log = get_logger(__name__)

SEVERITY_STYLES = {
    "critical": "[bold red]critical[/bold red]",
    "error": "[red]error[/red]",
    "warning": "[yellow]warning[/yellow]",
    "info": "[dim]info[/dim]",
}

YAML_SUFFIXES = {".yaml", ".yml"}

StoryArgument = Annotated[
    Path,
    typer.Argument(help="Story document (JSON or YAML).", show_default=False),
]
ConfigOption = Annotated[
    Path,
    typer.Option(
        "--config",
        "-c",
        help="Analysis config file (missing file means defaults).",
        envvar="STORYPROBE_CONFIG",
    ),
]


@app.callback()
def main(
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity: -v for INFO, -vv for DEBUG.",
        ),
    ] = 0,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log",
            help="Also write every log event to this file as JSON lines.",
        ),
    ] = None,
) -> None:
    """storyprobe: validation, repair and playthrough simulation for branching stories."""
    configure_logging(verbosity=verbose, log_file=log_file)
    if log_file is not None:
        atexit.register(close_file_logging)


def load_story(path: Path) -> Story:
    """Read a story document from JSON or YAML.

    Args:
        path: Document path. ``.yaml``/``.yml`` files are parsed as YAML,
            anything else as JSON.

    Returns:
        The validated Story.

    Raises:
        StoryLoadError: If the file cannot be read, parsed, or does not
            match the story model.
    """
    if not path.exists():
        raise StoryLoadError(path, "File not found")

    try:
        with path.open("r", encoding="utf-8") as f:
            if path.suffix.lower() in YAML_SUFFIXES:
                data: Any = YAML(typ="safe").load(f)
            else:
                data = json.load(f)
    except Exception as e:
        raise StoryLoadError(path, str(e)) from e

    if not isinstance(data, dict):
        raise StoryLoadError(path, "Top level must be a mapping")

    try:
        story = Story.model_validate(data)
    except ValidationError as e:
        raise StoryLoadError(path, f"{e.error_count()} validation error(s)\n{e}") from e

    log.debug("story_loaded", path=str(path), passages=len(story.passages))
    return story


def _load_inputs(story_path: Path, config_path: Path) -> tuple[Story, AnalysisConfig]:
    """Load story and config, exiting with a red message on failure."""
    try:
        config = load_config(config_path)
        story = load_story(story_path)
    except (StoryLoadError, ConfigError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None
    return story, config


def _location(issue: Issue) -> str:
    parts = []
    if issue.passage_id:
        parts.append(f"passage {issue.passage_id}")
    if issue.choice_id:
        parts.append(f"choice {issue.choice_id}")
    if issue.variable_name:
        parts.append(f"variable {issue.variable_name}")
    if issue.asset_id:
        parts.append(f"asset {issue.asset_id}")
    return escape(", ".join(parts)) or "-"


def _print_issues(result: ValidationResult, title: str) -> None:
    if not result.issues:
        console.print(f"[green]✓[/green] {title}: no issues")
        return

    table = Table(title=title)
    table.add_column("Severity", style="bold")
    table.add_column("Category", style="cyan")
    table.add_column("Issue")
    table.add_column("Location", style="dim")
    table.add_column("Fix", justify="center")

    for issue in result.issues:
        table.add_row(
            SEVERITY_STYLES.get(issue.severity, issue.severity),
            issue.category,
            escape(issue.message),
            _location(issue),
            "✓" if issue.fixable else "",
        )

    console.print()
    console.print(table)
    console.print(f"Summary: {result.summary}")
    if result.failed_validators:
        console.print(
            f"[yellow]Skipped (validator raised):[/yellow] {', '.join(result.failed_validators)}"
        )


def _print_playthrough(data: PlaythroughData) -> None:
    console.print(
        f"Walks: {data.total_simulations}  "
        f"Avg length: {data.average_path_length:.1f}  "
        f"Coverage: {data.coverage:.0%}  "
        f"Branching: {data.branching_factor:.2f}  "
        f"Agency: {data.player_agency:.2f}"
    )

    if data.most_visited_passages:
        table = Table(title="Most Visited Passages")
        table.add_column("Passage", style="cyan")
        table.add_column("Visits", justify="right")
        table.add_column("Walks", justify="right")
        for entry in data.most_visited_passages:
            table.add_row(
                escape(entry.passage_name), str(entry.visit_count), f"{entry.percentage:.0f}%"
            )
        console.print()
        console.print(table)

    if data.critical_path:
        console.print(f"Critical path: {escape(' → '.join(data.critical_path))}")


@app.command()
def version() -> None:
    """Show version information."""
    from storyprobe import __version__

    console.print(f"storyprobe v{__version__}")


@app.command()
def validate(
    story_path: StoryArgument,
    category: Annotated[
        list[str] | None,
        typer.Option(
            "--category",
            help=f"Only report these categories ({', '.join(CATEGORIES)}). Repeatable.",
        ),
    ] = None,
    no_warnings: Annotated[bool, typer.Option("--no-warnings", help="Hide warnings.")] = False,
    no_info: Annotated[bool, typer.Option("--no-info", help="Hide info issues.")] = False,
    config_path: ConfigOption = Path(DEFAULT_CONFIG_FILENAME),
) -> None:
    """Validate a story. Exits 1 if it has critical or error issues."""
    story, config = _load_inputs(story_path, config_path)

    if category:
        unknown = [c for c in category if c not in CATEGORIES]
        if unknown:
            console.print(f"[red]Error:[/red] Unknown category: {escape(', '.join(unknown))}")
            raise typer.Exit(1)

    registry = create_default_registry(config.validation)
    result = registry.run(
        story,
        ValidationOptions(
            categories=category or None,
            include_warnings=not no_warnings,
            include_info=not no_info,
        ),
    )
    _print_issues(result, f"Validation: {story.title or story_path.name}")

    if not result.valid:
        raise typer.Exit(1)


@app.command()
def fix(
    story_path: StoryArgument,
    config_path: ConfigOption = Path(DEFAULT_CONFIG_FILENAME),
) -> None:
    """Preview automatic repairs. The story file is not modified."""
    story, config = _load_inputs(story_path, config_path)

    registry = create_default_registry(config.validation)
    fixer = AutoFixer()
    fixable = [issue for issue in registry.validate(story) if fixer.can_fix(issue)]

    description = fixer.get_fix_description(fixable)
    if not fixable:
        console.print(f"[green]✓[/green] {description}")
        return

    console.print(f"Would fix: {description}")
    result = fixer.fix(story, fixable)

    table = Table(title="Fix Preview")
    table.add_column("Change", style="cyan")
    table.add_column("Targets")
    rows = [
        ("Delete passages", result.passages_deleted),
        ("Remove choices", result.choices_deleted),
        ("Declare variables", result.variables_added),
        ("Delete variables", result.variables_deleted),
        ("Delete assets", result.assets_deleted),
    ]
    for label, targets in rows:
        if targets:
            table.add_row(label, escape(", ".join(targets)))
    console.print()
    console.print(table)

    for error in result.errors:
        console.print(f"[red]✗[/red] {escape(str(error))}")

    remaining = registry.run(story, ValidationOptions())
    console.print(f"After fixes: {remaining.summary}")


@app.command()
def simulate(
    story_path: StoryArgument,
    runs: Annotated[
        int | None, typer.Option("--runs", "-n", help="Number of walks (max).", min=0)
    ] = None,
    depth: Annotated[
        int | None, typer.Option("--depth", help="Maximum passages per walk.", min=1)
    ] = None,
    strategy: Annotated[
        str | None,
        typer.Option("--strategy", help=f"Choice strategy ({', '.join(STRATEGIES)})."),
    ] = None,
    seed: Annotated[int | None, typer.Option("--seed", help="Seed for reproducible runs.")] = None,
    config_path: ConfigOption = Path(DEFAULT_CONFIG_FILENAME),
) -> None:
    """Simulate playthroughs and report coverage and path statistics."""
    story, config = _load_inputs(story_path, config_path)
    sim = config.simulation

    try:
        options = SimulationOptions(
            max_simulations=runs if runs is not None else sim.max_simulations,
            max_depth=depth if depth is not None else sim.max_depth,
            strategy=strategy or sim.strategy,
            seed=seed if seed is not None else sim.seed,
        )
    except ValidationError as e:
        console.print(f"[red]Error:[/red] Invalid simulation options\n{escape(str(e))}")
        raise typer.Exit(1) from None

    result = StorySimulator(story).simulate(options)
    data = StorySimulator.to_playthrough_data(result, story)

    console.print(f"[bold]Simulation: {escape(story.title or story_path.name)}[/bold]")
    console.print(f"[dim]strategy={result.strategy} seed={result.seed}[/dim]")
    _print_playthrough(data)

    if result.dead_ends:
        console.print(f"Dead ends: {escape(', '.join(result.dead_ends))}")
    if result.unvisited_passages:
        console.print(f"[yellow]Unvisited:[/yellow] {escape(', '.join(result.unvisited_passages))}")


@app.command()
def inspect(
    story_path: StoryArgument,
    config_path: ConfigOption = Path(DEFAULT_CONFIG_FILENAME),
) -> None:
    """Inspect a story: validation, structure, prose and simulation."""
    story, config = _load_inputs(story_path, config_path)
    report = inspect_story(story, config)

    console.print(f"[bold]Inspection: {escape(report.title or story_path.name)}[/bold]")

    structure = report.structure
    table = Table(title="Structure")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Start passage", escape(structure.start_passage or "-"))
    table.add_row("Passages", str(report.validation.stats.total_passages))
    table.add_row("Reachable", str(structure.reachable_passages))
    table.add_row("Endings", str(structure.ending_passages))
    table.add_row("Choices", str(structure.total_choices))
    table.add_row("Max depth", str(structure.max_depth))
    table.add_row("Cycles", "yes" if structure.has_cycles else "no")
    if report.prose is not None:
        table.add_row("Words", str(report.prose.total_words))
        table.add_row("Avg words/passage", f"{report.prose.avg_words:.1f}")
    console.print()
    console.print(table)

    _print_issues(report.validation, "Validation")

    if report.playthrough is not None:
        console.print()
        _print_playthrough(report.playthrough)
