"""
CLI entry point for depcheck.

This module provides the Typer-based command-line interface for depcheck.

Commands:
    check       Check Python sources against the dependency policy
    validate    Load and compile the policy, then show the rule set
    explain     Show how every rule treats a single import

Exit codes:
    0   No violations (or the policy is valid)
    1   One or more violations
    2   The policy could not be found, read, parsed or compiled

Architecture Note:
    The CLI only parses arguments, builds the
    InitializationGate and hands it to the analyzer. The engine and
    analyzer can be used programmatically without the CLI.
"""

import json
import logging
import traceback
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from depcheck import __version__
from depcheck.analysis import DEFAULT_WORKERS, Analyzer
from depcheck.errors import DepcheckError
from depcheck.policy.gate import engine_gate
from depcheck.report import generate_json_report, print_report, print_rules, print_trace
from depcheck.schema import DEFAULT_CONFIG_NAME, Edge

EXIT_OK = 0
EXIT_VIOLATIONS = 1
EXIT_CONFIG_ERROR = 2

app = typer.Typer(
    name="depcheck",
    help="Check package dependency rules defined in YAML.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

ConfigOption = Annotated[
    Optional[str],
    typer.Option(
        "--config",
        "-c",
        help=f"Path to the policy file. Defaults to $DEPCHECK_CONFIG, then the "
        f"nearest {DEFAULT_CONFIG_NAME} in this or a parent directory.",
    ),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", help="Enable verbose output and debug logging."),
]
DebugOption = Annotated[
    bool,
    typer.Option("--debug", help="Enable debug mode with full error tracebacks."),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]depcheck[/bold] version {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    depcheck - Architectural dependency rules for Python packages.

    Reads rules from depcheck.yml and reports imports that cross a
    forbidden boundary.
    """
    pass


@app.command()
def check(
    paths: Annotated[
        Optional[list[Path]],
        typer.Argument(
            help="Files or directories to check. Defaults to the source root.",
            exists=True,
            resolve_path=True,
        ),
    ] = None,
    root: Annotated[
        Path,
        typer.Option(
            "--root",
            "-r",
            help="Source root that module paths are computed from.",
            exists=True,
            file_okay=False,
            resolve_path=True,
        ),
    ] = Path("."),
    config: ConfigOption = None,
    workers: Annotated[
        int,
        typer.Option("--workers", "-j", help="Number of files checked in parallel.", min=1),
    ] = DEFAULT_WORKERS,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output results in JSON format."),
    ] = False,
    verbose: VerboseOption = False,
    debug: DebugOption = False,
) -> None:
    """
    Check Python sources against the dependency policy.

    Example:
        $ depcheck check src --root src
    """
    _configure_logging(verbose)

    analyzer = Analyzer(engine_gate(override=config), root=root)
    try:
        result = analyzer.run(paths or [root], workers=workers)
    except DepcheckError as e:
        _fail(e, json_output, debug)

    if json_output:
        print(generate_json_report(result))
    else:
        print_report(result, console=console, verbose=verbose)

    raise typer.Exit(code=EXIT_OK if result.success else EXIT_VIOLATIONS)


@app.command()
def validate(
    config: ConfigOption = None,
    verbose: VerboseOption = False,
    debug: DebugOption = False,
) -> None:
    """
    Load and compile the policy, then show the rule set.

    Example:
        $ depcheck validate --config depcheck.yml
    """
    _configure_logging(verbose)

    try:
        engine = engine_gate(override=config).get()
    except DepcheckError as e:
        _fail(e, False, debug)

    print_rules(engine, console=console)
    console.print(f"[green]✓[/green] Policy valid: {engine.rule_count} rule(s)")


@app.command()
def explain(
    importer: Annotated[str, typer.Argument(help="Importing module path.")],
    imported: Annotated[str, typer.Argument(help="Imported module path.")],
    filename: Annotated[
        str,
        typer.Option("--file", "-f", help="Base name of the file containing the import."),
    ] = "",
    exempt: Annotated[
        bool,
        typer.Option("--exempt", help="Treat the import as carrying # depcheck:allow."),
    ] = False,
    config: ConfigOption = None,
    debug: DebugOption = False,
) -> None:
    """
    Show how every rule treats a single import.

    Example:
        $ depcheck explain app.domain.user app.infra.db --file user.py
    """
    _configure_logging(False)

    try:
        engine = engine_gate(override=config).get()
    except DepcheckError as e:
        _fail(e, False, debug)

    edge = Edge(importer=importer, imported=imported, filename=filename, exempt=exempt)
    verdict = engine.evaluate(edge)
    print_trace(engine.explain(edge), verdict, console=console)
    raise typer.Exit(code=EXIT_OK if verdict.allowed else EXIT_VIOLATIONS)


def _fail(error: DepcheckError, json_output: bool, debug: bool) -> NoReturn:
    """Report a fatal policy error once and exit."""
    if json_output:
        output = {"error": True, **error.to_dict()}
        if debug:
            output["traceback"] = traceback.format_exc()
        print(json.dumps(output, indent=2))
    else:
        console.print(str(error), style="red", markup=False, highlight=False)
        if debug:
            console.print(traceback.format_exc(), style="dim", markup=False)
    raise typer.Exit(code=EXIT_CONFIG_ERROR)
