"""
`xcbazel config`: write, check and print settings files.
"""

import json
from pathlib import Path
from typing import Annotated, Callable, Iterator, Optional

import typer
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from xcbazel.cli.options import global_options
from xcbazel.config.defaults import get_default_config_yaml
from xcbazel.config.manager import ConfigManager
from xcbazel.engine.exceptions import ConfigurationError
from xcbazel.logging import get_logger

app = typer.Typer(
    name="config",
    help="Manage xcbazel configuration.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
logger = get_logger(__name__)


def _load(config_file: Optional[Path]) -> ConfigManager:
    """Load settings, turning unreadable or unparsable files into exit 1."""
    manager = ConfigManager()
    try:
        manager.load(config_file)
    except (OSError, ConfigurationError) as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        logger.error("config_load_failed", config_file=str(config_file), error=str(e))
        raise typer.Exit(code=1) from e
    return manager


@app.command("init")
def init_config(
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Where to write the file.", resolve_path=True),
    ] = Path("settings.yaml"),
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Replace an existing file."),
    ] = False,
) -> None:
    """
    Write a commented settings file with the default toolchain matrix.

    [bold]Examples:[/bold]

        $ xcbazel config init
        $ xcbazel config init -o ci/xcbazel.yaml --force
    """
    if output.exists() and not force:
        console.print(
            f"[red]Error:[/red] Configuration file already exists at {output}\n"
            "Use --force to overwrite."
        )
        raise typer.Exit(code=1)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(get_default_config_yaml())

    console.print(f"[green]✓[/green] Wrote default settings to [bold]{output}[/bold]")
    logger.info("config_initialized", output=str(output), overwritten=force)


@app.command("validate")
def validate_config(
    config_file: Annotated[
        Path,
        typer.Argument(
            help="Settings file to check.",
            exists=True,
            dir_okay=False,
            readable=True,
            resolve_path=True,
        ),
    ],
    strict: Annotated[
        bool,
        typer.Option(
            "--strict",
            "-s",
            help="Fail on matrix warnings (unsorted or repeated Xcode versions, empty matrix).",
        ),
    ] = False,
) -> None:
    """
    Check a settings file against the xcbazel schema.

    [bold]Examples:[/bold]

        $ xcbazel config validate settings.yaml --strict
    """
    result = _load(config_file).validate(strict=strict)

    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")

    logger.info(
        "config_validated",
        config_file=str(config_file),
        valid=result.is_valid,
        errors=len(result.errors),
        warnings=len(result.warnings),
    )

    if result.is_valid:
        console.print(
            Panel(
                f"[green]✓ {config_file.name} is valid[/green]\n\n"
                f"Matrix checks: {'errors' if strict else 'warnings'}",
                title="Validation Passed",
                border_style="green",
            )
        )
        return

    console.print(
        Panel(
            f"[red]✗ {config_file.name} has errors[/red]",
            title="Validation Failed",
            border_style="red",
        )
    )
    for error in result.errors:
        console.print(f"  [red]•[/red] {error}")
    raise typer.Exit(code=1)


def _flatten(values: dict, prefix: str = "") -> Iterator[tuple[str, str]]:
    for key, value in values.items():
        dotted = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            yield from _flatten(value, dotted)
        elif isinstance(value, list) and value and isinstance(value[0], dict):
            for i, item in enumerate(value):
                yield from _flatten(item, f"{dotted}.{i}")
        else:
            yield dotted, str(value)


def _show_yaml(settings: dict) -> None:
    text = yaml.safe_dump(settings, default_flow_style=False, sort_keys=False)
    console.print(Syntax(text, "yaml", theme="monokai", line_numbers=True))


def _show_json(settings: dict) -> None:
    console.print(Syntax(json.dumps(settings, indent=2), "json", theme="monokai", line_numbers=True))


def _show_table(settings: dict) -> None:
    table = Table(title="Current Configuration", show_header=True, header_style="bold cyan")
    table.add_column("Key", style="dim")
    table.add_column("Value")
    for key, value in _flatten(settings):
        table.add_row(key, value)
    console.print(table)


_RENDERERS: dict[str, Callable[[dict], None]] = {
    "yaml": _show_yaml,
    "json": _show_json,
    "table": _show_table,
}


@app.command("show")
def show_config(
    ctx: typer.Context,
    output_format: Annotated[
        str,
        typer.Option("--format", "-f", help="yaml, json or table."),
    ] = "yaml",
) -> None:
    """
    Print the effective settings: defaults, then the settings file, then
    XCBAZEL_* environment variables.

    [bold]Examples:[/bold]

        $ XCBAZEL_BAZEL__BINARY=bazelisk xcbazel config show --format table
    """
    render = _RENDERERS.get(output_format)
    if render is None:
        console.print(
            f"[red]Error:[/red] Unknown format: {output_format} "
            f"(expected one of {', '.join(_RENDERERS)})"
        )
        raise typer.Exit(code=1)

    config_file = global_options(ctx).config_file
    render(_load(config_file).to_dict())
    logger.info("config_shown", config_file=str(config_file) if config_file else None, format=output_format)
