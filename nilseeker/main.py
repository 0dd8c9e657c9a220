from __future__ import annotations

"""
Typer CLI entry point and orchestration of the analysis pipeline.

- Accepts a .go file or a directory
- Finds .go files (traversal.find_go_files for directories)
- Runs all enabled rules from config.py through driver.analyze_paths
- Prints findings as rich tables, go vet style lines, or JSON

Exit status follows the Go checker convention: 0 when clean, 3 when
anything was reported, 1 when no rules are enabled.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import List

import typer
from rich.console import Console
from rich.logging import RichHandler

from nilseeker.config import Config, get_default_config, get_enabled_rules
from nilseeker.driver import analyze_paths
from nilseeker.reporting.console import format_json, print_findings
from nilseeker.traversal import find_go_files, is_go_file

logger = logging.getLogger(__name__)

EXIT_FINDINGS = 3

app = typer.Typer(help="nilseeker - detect potential nil pointer dereferences in Go source files.")


class OutputFormat(str, Enum):
    rich = "rich"
    plain = "plain"
    json = "json"


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _collect_go_files(target: Path, config: Config) -> List[Path]:
    """
    Resolve a target path into a list of .go files to analyze.

    - If target is a .go file, return [target]
    - If target is a directory, use traversal.find_go_files()
    - Otherwise, raise typer.BadParameter.
    """
    if target.is_file():
        if not is_go_file(target):
            raise typer.BadParameter(f"Target file must have .go extension, got: {target}")
        return [target]

    if target.is_dir():
        files = find_go_files(
            target,
            include_tests=config.include_tests,
            ignore_dirs=config.ignore_dirs,
        )
        if not files:
            logger.warning("No .go files found under %s", target)
        return files

    raise typer.BadParameter(f"Target path is neither a file nor a directory: {target}")


@app.command()
def analyze(
    target: Path = typer.Argument(
        ...,
        exists=True,
        readable=True,
        resolve_path=True,
        help="Go file or directory to analyze.",
    ),
    tests: bool = typer.Option(
        True,
        "--tests/--no-tests",
        help="Also analyze *_test.go files when scanning a directory.",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.rich,
        "--format",
        "-f",
        case_sensitive=False,
        help="Output format.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show remediation hints."),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging on stderr."),
) -> None:
    """Analyze a single Go file or all .go files under a directory."""
    _configure_logging(debug)

    config: Config = get_default_config()
    config.include_tests = tests

    if not get_enabled_rules(config):
        typer.echo("No rules are enabled in the current configuration.")
        raise typer.Exit(code=1)

    files = _collect_go_files(target, config)

    if output_format is OutputFormat.plain:
        # stream each finding as soon as its file is done
        result = analyze_paths(files, config, on_finding=lambda f: typer.echo(f.format_plain()))
    else:
        result = analyze_paths(files, config)
        if output_format is OutputFormat.json:
            typer.echo(format_json(result.findings))
        else:
            print_findings(result.findings, analyzed_files=result.files, verbose=verbose)

    if result.findings:
        raise typer.Exit(code=EXIT_FINDINGS)


def main() -> None:
    """Entry point for `python -m nilseeker.main` and the nilseeker script."""
    app()


if __name__ == "__main__":
    main()
