"""
Build and test commands for xcbazel CLI.

This module provides the `build` and `test` commands, which run Bazel for a
target across the toolchain matrix (CI) or the selected Xcode (local).
"""

from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from xcbazel.cli.options import global_options
from xcbazel.config.manager import get_config
from xcbazel.config.models import Action, RunnerConfig, RunOptions
from xcbazel.engine.exceptions import (
    BuildInvocationError,
    BuildRunnerError,
    ConfigurationError,
    ProcessTerminationError,
    ToolchainNotFoundError,
    ToolchainSwitchError,
    ToolchainVersionError,
)
from xcbazel.engine.runner import MatrixRunner, RunSummary
from xcbazel.logging import get_logger
from xcbazel.logging.setup import log_error, log_execution_context
from xcbazel.version import __version__

console = Console()
logger = get_logger(__name__)

_ACTION_ICONS = {
    Action.BUILD: "🏗️ ",
    Action.TEST: "🛠️ ",
}


# Most specific first; the first isinstance match wins
_ERROR_STYLES: list[tuple[type[BuildRunnerError], str, str]] = [
    (BuildInvocationError, "Build Failed", "💥"),
    (ToolchainVersionError, "Xcode Too Old", "⏮️"),
    (ToolchainNotFoundError, "Toolchain Error", "🧰"),
    (ToolchainSwitchError, "Toolchain Error", "🧰"),
    (ProcessTerminationError, "Process Error", "⏱️"),
    (ConfigurationError, "Configuration Error", "⚙️"),
]


def display_error_panel(
    error: BuildRunnerError,
    console: Console,
    include_context: bool = True,
) -> None:
    """
    Print `error` as a red panel: code and message, up to five tips and,
    unless `include_context` is False, up to five context entries.
    """
    title, icon = next(
        ((title, icon) for kind, title, icon in _ERROR_STYLES if isinstance(error, kind)),
        ("Error", "❗"),
    )

    body = [f"[bold red]{icon} {error.error_code}[/bold red]: {error.message}"]
    if error.troubleshooting_tips:
        body += ["", "[bold cyan]Troubleshooting:[/bold cyan]"]
        body += [f"  {n}. {tip}" for n, tip in enumerate(error.troubleshooting_tips[:5], 1)]
    if include_context and error.context:
        body += ["", "[dim]Context:[/dim]"]
        body += [f"  [dim]{key}:[/dim] {value}" for key, value in list(error.context.items())[:5]]

    console.print()
    console.print(Panel("\n".join(body), title=title, border_style="red"))


def _exit_status(returncode: int) -> int:
    """Shell-style status for a Bazel return code; -N (killed by signal N) is 128 + N."""
    if returncode < 0:
        return 128 - returncode
    return returncode or 1


def load_runner_config(ctx: typer.Context) -> RunnerConfig:
    """
    Load and validate configuration using the global --config option.

    Exits with status 1 when the file is missing or invalid.
    """
    options = global_options(ctx)

    config_manager = get_config()
    try:
        config_manager.load(options.config_file)
        runner_config = config_manager.runner_config()
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] Configuration file not found: {e}")
        raise typer.Exit(code=1)
    except ConfigurationError as e:
        display_error_panel(e, console, include_context=False)
        raise typer.Exit(code=1)

    options.configure_logging(runner_config.logging)
    return runner_config


def _display_plan(runner: MatrixRunner, options: RunOptions) -> None:
    """Show what a run would do without invoking anything."""
    ci = runner.is_ci(options)

    table = Table(title="Execution Plan", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="dim")
    table.add_column("Value")

    table.add_row("Mode", "CI (matrix)" if ci else "local (selected Xcode)")
    table.add_row("Action", options.action.value)
    table.add_row("Target", options.target)
    table.add_row("Min Xcode", options.min_xcode_version or "[dim]none[/dim]")
    table.add_row("Bazel Args", " ".join(options.extra_args) or "[dim]none[/dim]")

    if ci:
        selected, skipped = runner.select_toolchains(options.minimum)
        table.add_row(
            "Toolchains",
            ", ".join(f"{p.xcode_version} (iOS {p.sdk_version})" for p in selected) or "[dim]none[/dim]",
        )
        table.add_row("Skipped", ", ".join(skipped) or "[dim]none[/dim]")

    console.print()
    console.print(table)
    console.print()
    console.print(
        Panel(
            "[yellow]Dry run mode:[/yellow] Bazel will not be invoked.\n"
            "Remove --dry-run to run the build.",
            title="Dry Run",
            border_style="yellow",
        )
    )


def _display_summary(summary: RunSummary) -> None:
    """Show every invocation of a completed run."""
    table = Table(title="Run Summary", show_header=True, header_style="bold cyan")
    table.add_column("Xcode", style="bold")
    table.add_column("iOS SDK")
    table.add_column("Exit", justify="right")
    table.add_column("Duration", justify="right")

    for inv in summary.invocations:
        table.add_row(
            inv.xcode_version,
            inv.sdk_version or "[dim]default[/dim]",
            str(inv.exit_code),
            f"{inv.duration_ms / 1000:.1f}s",
        )
    for version in summary.skipped:
        table.add_row(version, "[dim]-[/dim]", "[dim]skipped[/dim]", "[dim]-[/dim]")

    console.print()
    console.print(table)


def run_action(
    ctx: typer.Context,
    action: Action,
    target: str,
    min_xcode_version: Optional[str],
    verbose: bool,
    ci: Optional[bool],
    dry_run: bool,
) -> None:
    """Shared body of the build and test commands."""
    global_verbose = global_options(ctx).verbose
    extra_args = list(ctx.args)

    try:
        options = RunOptions(
            action=action,
            target=target,
            min_xcode_version=min_xcode_version,
            verbose=verbose or global_verbose,
            extra_args=extra_args,
            ci=ci,
        )
    except ValidationError as e:
        for err in e.errors():
            location = ".".join(str(part) for part in err["loc"])
            console.print(f"[red]Error:[/red] Invalid {location}: {err['input']!r}")
        raise typer.Exit(code=1)

    runner_config = load_runner_config(ctx)
    runner = MatrixRunner(runner_config)

    console.print(f"[bold blue]xcbazel[/bold blue] version [green]{__version__}[/green]")

    if dry_run:
        _display_plan(runner, options)
        logger.info("dry_run_completed", action=action.value, target=target)
        return

    def progress_callback(xcode_version: str, action: Action, target: str) -> None:
        console.print(f"{_ACTION_ICONS[action]} {target} with Xcode {xcode_version}...")

    command = f"xcbazel {action.value}"
    try:
        with log_execution_context(command, options.model_dump(mode="json")) as outcome:
            summary = runner.run(options, progress_callback=progress_callback)
            outcome.update(summary.to_dict())
    except BuildInvocationError as e:
        display_error_panel(e, console)
        raise typer.Exit(code=_exit_status(e.exit_code))
    except ToolchainVersionError as e:
        display_error_panel(e, console)
        console.print("Stopping execution...")
        raise typer.Exit(code=1)
    except ConfigurationError as e:
        display_error_panel(e, console)
        raise typer.Exit(code=1)
    except BuildRunnerError as e:
        display_error_panel(e, console)
        raise typer.Exit(code=2)
    except Exception as e:
        console.print(f"[red]Unexpected error:[/red] {e}")
        log_error(e, context={"phase": "run"}, command=command)
        raise typer.Exit(code=2)

    _display_summary(summary)

    if not summary.invocations:
        console.print(
            Panel(
                "[yellow]No Xcode toolchain in the matrix meets the minimum version.[/yellow]",
                title="Nothing To Do",
                border_style="yellow",
            )
        )
        return

    console.print()
    console.print(
        Panel(
            f"[green]{target} {action.value} succeeded on "
            f"{len(summary.invocations)} toolchain(s).[/green]",
            title="Success",
            border_style="green",
        )
    )


def build(
    ctx: typer.Context,
    target: Annotated[
        str,
        typer.Argument(help="Bazel target label, e.g. //:CatalogByConvention."),
    ],
    min_xcode_version: Annotated[
        Optional[str],
        typer.Option(
            "--min-xcode-version",
            "-m",
            help="Only use Xcode versions equal to or greater than this, e.g. 8.2.1.",
            envvar="XCBAZEL_MIN_XCODE_VERSION",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Echo Bazel subcommands (always on for CI runs).",
        ),
    ] = False,
    ci: Annotated[
        Optional[bool],
        typer.Option(
            "--ci/--local",
            help="Force the matrix run or the selected-Xcode run instead of detecting CI.",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Show what would be executed without running Bazel.",
        ),
    ] = False,
) -> None:
    """
    Build a Bazel target with each Xcode toolchain.

    Unrecognized options are passed along to the Bazel invocation.

    [bold]Examples:[/bold]

        [dim]# Build with the selected Xcode[/dim]
        $ xcbazel build //:CatalogByConvention

        [dim]# Build on CI with Xcode 8.2 and newer[/dim]
        $ xcbazel build //:CatalogByConvention --min-xcode-version 8.2
    """
    run_action(ctx, Action.BUILD, target, min_xcode_version, verbose, ci, dry_run)


def test(
    ctx: typer.Context,
    target: Annotated[
        str,
        typer.Argument(help="Bazel test target label, e.g. //:CatalogByConventionTests."),
    ],
    min_xcode_version: Annotated[
        Optional[str],
        typer.Option(
            "--min-xcode-version",
            "-m",
            help="Only use Xcode versions equal to or greater than this, e.g. 8.2.1.",
            envvar="XCBAZEL_MIN_XCODE_VERSION",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show all test output and echo Bazel subcommands.",
        ),
    ] = False,
    ci: Annotated[
        Optional[bool],
        typer.Option(
            "--ci/--local",
            help="Force the matrix run or the selected-Xcode run instead of detecting CI.",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Show what would be executed without running Bazel.",
        ),
    ] = False,
) -> None:
    """
    Test a Bazel target with each Xcode toolchain.

    Unrecognized options are passed along to the Bazel invocation.

    [bold]Examples:[/bold]

        [dim]# Test with the selected Xcode, showing all output[/dim]
        $ xcbazel test //:CatalogByConventionTests -v
    """
    run_action(ctx, Action.TEST, target, min_xcode_version, verbose, ci, dry_run)
