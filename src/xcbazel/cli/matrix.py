"""
Matrix inspection commands for xcbazel CLI.
"""

from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from xcbazel.cli.run import display_error_panel, load_runner_config
from xcbazel.engine.exceptions import InvalidVersionFormat
from xcbazel.engine.runner import MatrixRunner
from xcbazel.engine.versions import Version, normalize
from xcbazel.logging import get_logger

console = Console()
logger = get_logger(__name__)


def show_matrix(
    ctx: typer.Context,
    min_xcode_version: Annotated[
        Optional[str],
        typer.Option(
            "--min-xcode-version",
            "-m",
            help="Mark toolchains older than this as skipped.",
            envvar="XCBAZEL_MIN_XCODE_VERSION",
        ),
    ] = None,
) -> None:
    """
    Show the Xcode / iOS SDK toolchain matrix.

    Lists every configured pair in the order CI runs them, with the
    normalized version number and whether the pair would run.

    [bold]Examples:[/bold]

        [dim]# Which toolchains run with a 9.0 minimum?[/dim]
        $ xcbazel matrix --min-xcode-version 9.0
    """
    try:
        minimum = Version.parse(min_xcode_version) if min_xcode_version else None
    except InvalidVersionFormat as e:
        display_error_panel(e, console, include_context=False)
        raise typer.Exit(code=1)

    runner = MatrixRunner(load_runner_config(ctx))
    selected, _ = runner.select_toolchains(minimum)

    if not runner.config.xcode.matrix:
        console.print("[yellow]No toolchains defined in xcode.matrix.[/yellow]")
        return

    table = Table(title="Toolchain Matrix", show_header=True, header_style="bold cyan")
    table.add_column("Xcode", style="bold")
    table.add_column("iOS SDK")
    table.add_column("Number", justify="right")
    table.add_column("Runs")

    for pair in runner.config.xcode.matrix:
        runs = "[green]yes[/green]" if pair in selected else "[dim]skipped[/dim]"
        table.add_row(pair.xcode_version, pair.sdk_version, normalize(pair.xcode_version), runs)

    console.print()
    console.print(table)
    console.print()

    logger.info(
        "matrix_displayed",
        minimum=min_xcode_version,
        selected=[pair.xcode_version for pair in selected],
    )


def version_number(
    version: Annotated[
        str,
        typer.Argument(help="Dotted version, e.g. 9.1 or 8.3.3."),
    ],
    strict: Annotated[
        bool,
        typer.Option(
            "--strict",
            help="Reject malformed versions and print the zero-padded sort token.",
        ),
    ] = False,
) -> None:
    """
    Print the normalized version number used for comparisons.

    [bold]Examples:[/bold]

        $ xcbazel version-number 9.1
        910
    """
    if not strict:
        console.print(normalize(version))
        return

    try:
        parsed = Version.parse(version)
    except InvalidVersionFormat as e:
        display_error_panel(e, console, include_context=False)
        raise typer.Exit(code=1)

    console.print(f"{parsed.as_number()} {parsed.sort_token()}")
