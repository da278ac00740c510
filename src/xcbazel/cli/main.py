"""
The `xcbazel` command.

Global options are parsed here into a GlobalOptions object on the root
context; `build`, `test`, `matrix`, `version-number` and the `config`
group are registered at the bottom of the module.
"""

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console

from xcbazel.cli.options import GlobalOptions
from xcbazel.config.models import LogFormat, LogLevel
from xcbazel.version import __version__

app = typer.Typer(
    name="xcbazel",
    help="xcbazel - run Bazel builds and tests across Xcode toolchains",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

console = Console()
error_console = Console(stderr=True)

# build and test hand anything they do not recognise to Bazel
PASSTHROUGH_SETTINGS = {"allow_extra_args": True, "ignore_unknown_options": True}


def _print_version(value: bool) -> None:
    if value:
        console.print(f"[bold blue]xcbazel[/bold blue] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log at DEBUG level."),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Log errors only."),
    ] = False,
    log_level: Annotated[
        Optional[LogLevel],
        typer.Option(
            "--log-level",
            "-l",
            help="Log level; overrides -v/-q and the settings file.",
            envvar="XCBAZEL_LOG_LEVEL",
            case_sensitive=False,
        ),
    ] = None,
    log_format: Annotated[
        Optional[LogFormat],
        typer.Option(
            "--log-format",
            help="Render logs for a terminal or as JSON lines.",
            envvar="XCBAZEL_LOG_FORMAT",
            case_sensitive=False,
        ),
    ] = None,
    config_file: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Settings file (YAML, JSON or TOML) instead of ./settings.*.",
            envvar="XCBAZEL_CONFIG_FILE",
            exists=True,
            dir_okay=False,
            readable=True,
            resolve_path=True,
        ),
    ] = None,
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            help="Print the xcbazel version and exit.",
            callback=_print_version,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    [bold blue]xcbazel[/bold blue] - Xcode matrix build wrapper

    On CI, cleans and builds or tests a Bazel target once per Xcode
    toolchain in the configured matrix, stopping at the first failure.
    Elsewhere, runs it once with the selected Xcode.

    [dim]Use --help on any command for more information.[/dim]
    """
    if verbose and quiet:
        error_console.print("[red]Error:[/red] Cannot use --verbose and --quiet together.")
        raise typer.Exit(code=1)

    options = GlobalOptions(
        verbose=verbose,
        quiet=quiet,
        log_level=log_level.value if log_level else None,
        log_format=log_format.value if log_format else None,
        config_file=config_file,
    )
    ctx.obj = options
    options.configure_logging()


from xcbazel.cli import config as config_cmd  # noqa: E402
from xcbazel.cli import matrix as matrix_cmd  # noqa: E402
from xcbazel.cli import run as run_cmd  # noqa: E402

app.command("build", context_settings=PASSTHROUGH_SETTINGS)(run_cmd.build)
app.command("test", context_settings=PASSTHROUGH_SETTINGS)(run_cmd.test)
app.command("matrix")(matrix_cmd.show_matrix)
app.command("version-number")(matrix_cmd.version_number)
app.add_typer(config_cmd.app, name="config", help="Manage xcbazel configuration.")


if __name__ == "__main__":
    app()
