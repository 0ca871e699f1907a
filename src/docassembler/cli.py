"""CLI interface for docassembler."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from docassembler import __version__
from docassembler.ingest.json_io import load_configuration, save_configuration
from docassembler.model.config import (
    DEFAULT_CONFIG_FILENAME,
    ConfigurationError,
    default_configuration,
)
from docassembler.model.manifest import FileRecord, ReturnCode
from docassembler.pipeline import AssemblyResult, assemble_documentation
from docassembler.ui.progress import ProgressReporter

app = typer.Typer(
    name="docassembler",
    help="Assemble documentation in an output folder and fix the links following configuration.",
    no_args_is_help=True,
)

logger = logging.getLogger("docassembler")


def _setup_logging(verbose: bool) -> None:
    """Route log records through rich; warnings and errors only unless verbose."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False, show_time=False)],
    )


def _print_summary(console: Console, outcome: AssemblyResult) -> None:
    table = Table(title="Assembly stages")
    table.add_column("Stage")
    table.add_column("Result")
    styles = {ReturnCode.NORMAL: "green", ReturnCode.WARNING: "yellow", ReturnCode.ERROR: "red"}
    for stage, result in outcome.stages.items():
        table.add_row(stage, f"[{styles[result]}]{result.name}[/{styles[result]}]")
    console.print(table)


def _print_manifest(console: Console, files: list[FileRecord]) -> None:
    table = Table(title=f"Manifest ({len(files)} files)")
    table.add_column("Source")
    table.add_column("Destination")
    table.add_column("Links", justify="right")
    for record in files:
        table.add_row(record.source_path, record.destination_path, str(len(record.links)))
    console.print(table)


@app.command()
def assemble(
    config: Annotated[
        Path,
        typer.Option(
            "--config",
            help="The configuration file for the assembled documentation.",
        ),
    ] = Path(DEFAULT_CONFIG_FILENAME),
    working_folder: Annotated[
        Path | None,
        typer.Option(
            "--workingfolder",
            help="The working folder. Default is the current folder.",
            file_okay=False,
        ),
    ] = None,
    out_folder: Annotated[
        Path | None,
        typer.Option(
            "--outfolder",
            help="Override the output folder for the assembled documentation in the config file.",
            file_okay=False,
        ),
    ] = None,
    cleanup: Annotated[
        bool,
        typer.Option(
            "--cleanup-output",
            help="Cleanup the output folder before generating. NOTE: This will delete all folders and files!",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show the manifest and resolve links without writing files."),
    ] = False,
    progress: Annotated[
        bool,
        typer.Option("--progress/--no-progress", help="Show progress bars (default: yes)"),
    ] = True,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show verbose messages of the process."),
    ] = False,
) -> None:
    """
    Assemble documentation in the output folder and fix links.

    Return values:

        0 - successful.

        1 - some warnings, but the process could be completed.

        2 - a fatal error occurred.
    """
    _setup_logging(verbose)
    console = Console()

    current_folder = (working_folder or Path.cwd()).resolve()
    # relative paths are taken from the working folder, not the shell's cwd
    config_path = (current_folder / config).resolve()
    try:
        configuration = load_configuration(config_path)
    except ConfigurationError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(int(ReturnCode.ERROR)) from exc

    if out_folder is not None:
        out_folder = (current_folder / out_folder).resolve()
        configuration = configuration.with_destination(str(out_folder))

    logger.info("Configuration : %s", config_path)
    logger.info("Working folder: %s", current_folder)
    if out_folder is not None:
        logger.info("Output folder : %s", out_folder)
    logger.info("Cleanup       : %s", cleanup)

    if progress:
        with ProgressReporter() as pr:
            outcome = assemble_documentation(
                configuration,
                str(current_folder),
                cleanup=cleanup,
                dry_run=dry_run,
                on_progress=pr.emit,
            )
    else:
        outcome = assemble_documentation(
            configuration, str(current_folder), cleanup=cleanup, dry_run=dry_run
        )

    if dry_run:
        _print_manifest(console, outcome.files)
    _print_summary(console, outcome)
    logger.info("Command completed. Return value: %s.", outcome.result.name)
    raise typer.Exit(int(outcome.result))


@app.command()
def init(
    out_folder: Annotated[
        Path,
        typer.Option(
            "--outfolder",
            help="Folder to write the configuration file to (default: current folder)",
            file_okay=False,
        ),
    ] = Path("."),
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show verbose messages of the process."),
    ] = False,
) -> None:
    """Initialize a configuration file if it doesn't exist yet."""
    _setup_logging(verbose)
    path = out_folder / DEFAULT_CONFIG_FILENAME
    if path.exists():
        typer.echo(f"Error: configuration file '{path}' already exists.", err=True)
        raise typer.Exit(int(ReturnCode.ERROR))

    save_configuration(path, default_configuration())
    typer.echo(f"✅ Configuration written to {path}")


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"docassembler version {__version__}")


def version_callback(value: bool) -> None:
    """Version callback for --version flag."""
    if value:
        typer.echo(f"docassembler version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """
    docassembler - assemble documentation from multiple folders into one tree.

    Content groups in the configuration select files from source folders and
    place them in the output folder. Links between the files are rewritten to
    match their new locations; links to files left behind point to an external
    file prefix such as a repository browser.

    For detailed usage, run: docassembler assemble --help
    """
    pass


if __name__ == "__main__":  # pragma: no cover - executed only via `python -m`
    app()
