"""
KForge CLI

Takes in a compressed kernel image and prints a step-by-step blueprint for
patching it without the kernel source.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from kforge import KFORGE_VERSION
from kforge.core import (
    AnalysisResult,
    Blueprint,
    EmptyScanError,
    KForgeError,
    PathError,
    UnknownFormatError,
    UsageError,
    WarningCode,
    WarningItem,
    analyze_file,
)
from kforge.log import LogConfig, build_logger
from kforge.scanner import SignatureScanner


console = Console()

app = typer.Typer(
    add_completion=False,
    help=(
        f"KForge {KFORGE_VERSION} takes in a compressed kernel and returns a "
        "step-by-step process of kernel patching without the source code. "
        "It is especially useful when customizing firmware for embedded devices."
    ),
)

FATAL_CODES = {
    UsageError: WarningCode.E_MISSING_ARGUMENT,
    PathError: WarningCode.E_BAD_PATH,
    EmptyScanError: WarningCode.E_NO_REGIONS,
    UnknownFormatError: WarningCode.E_UNKNOWN_FORMAT,
}


def fatal_item(exc: KForgeError) -> WarningItem:
    """Map a fatal exception to a structured error message."""
    code = FATAL_CODES.get(type(exc), WarningCode.E_UNKNOWN)
    return WarningItem.error(code, str(exc))


def blueprint_table(blueprint: Blueprint) -> Table:
    """Build the step/description/commands table for one blueprint."""
    table = Table(box=box.SQUARE, show_lines=True)
    table.add_column("step", style="cyan", justify="right")
    table.add_column("description", style="green")
    table.add_column("commands", overflow="fold")

    for step in blueprint.steps:
        # Commands contain "$[...]", keep rich from reading it as markup
        table.add_row(str(step.step_number), step.description, Text(step.command_text))
    return table


def render_result(result: AnalysisResult, logger: logging.Logger) -> None:
    for blueprint in result.blueprints:
        logger.info(blueprint.title)
        console.print(blueprint_table(blueprint))

    for item in result.warnings + result.errors:
        logger.debug("Hint [%s]: %s", item.code.value, item.remediation)
    logger.debug(result.to_summary())


@app.command()
def run(
    file: Optional[Path] = typer.Option(
        None, "--file", "-f", help="The filepath of the compressed kernel (Eg. vmlinuz)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
    version: bool = typer.Option(False, "--version", "-V", help="Prints the version of KForge"),
) -> None:
    """Print a kernel modification blueprint for every compressed section."""
    logger = build_logger(LogConfig.from_verbosity(verbose), console=console)

    if version:
        logger.info("KForge %s", KFORGE_VERSION)
        raise typer.Exit(0)

    try:
        if file is None:
            raise UsageError("Missing required [-f | --file] argument!")
        scanner = SignatureScanner(logger.getChild("scanner"))
        result = analyze_file(file, scanner, logger)
    except KForgeError as e:
        item = fatal_item(e)
        logger.error(item.title)
        logger.debug("Hint [%s]: %s", item.code.value, item.remediation)
        raise typer.Exit(1)

    render_result(result, logger)
    if not result.ok:
        raise typer.Exit(1)


def main() -> None:
    """Main entry point."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(1)


if __name__ == "__main__":
    main()
