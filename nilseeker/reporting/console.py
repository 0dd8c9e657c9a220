# Console output: rich tables for humans and JSON for tools.

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from nilseeker.findings.models import Finding

# Remediation hints per rule (shown with --verbose)
RULE_REMEDIATIONS: dict[str, str] = {
    "nilseeker": (
        "Guard the value first: if p != nil { ... }. "
        "Results of calls and nested selectors cannot be tracked; assign them to a variable and check it."
    ),
}


def _get_remediation(finding: Finding) -> str | None:
    """Return remediation hint for a finding, or None if unknown."""
    return RULE_REMEDIATIONS.get(finding.rule_id)


def format_json(findings: Sequence[Finding]) -> str:
    """Findings as a JSON array."""
    return json.dumps([f.model_dump(mode="json") for f in findings], indent=2)


def print_findings(
    findings: Sequence[Finding],
    analyzed_files: Sequence[Path] | None = None,
    verbose: bool = False,
    console: Optional[Console] = None,
) -> None:
    """
    Print findings grouped by file, with snippets.

    If verbose, shows remediation hints. If analyzed_files is provided, shows
    a file-by-file summary table.
    """
    if console is None:
        console = Console()

    if not findings and not analyzed_files:
        console.print(
            Panel(
                "[green]No issues found.[/green]",
                title="nilseeker",
                border_style="green",
                box=box.ROUNDED,
            )
        )
        return

    if not findings and analyzed_files:
        _print_file_summary_table([], analyzed_files, console)
        return

    by_file: dict[str, list[Finding]] = {}
    for f in findings:
        by_file.setdefault(str(f.location.path), []).append(f)

    for path in sorted(by_file.keys()):
        # stable sort keeps report order for findings on the same position
        file_findings = sorted(by_file[path], key=lambda x: (x.location.line, x.location.column))

        console.print()
        console.print(Panel(
            f"[bold cyan]{escape(_shorten_path(path))}[/bold cyan]",
            box=box.SIMPLE_HEAD,
            border_style="blue",
            padding=(0, 1),
        ))

        table = Table(
            show_header=True,
            header_style="bold magenta",
            box=box.SIMPLE,
            padding=(0, 1),
            expand=False,
        )
        table.add_column("Line", justify="right", style="dim", width=5)
        table.add_column("Col", justify="right", style="dim", width=4)
        table.add_column("Rule", width=12)
        table.add_column("Message", style="white")

        for f in file_findings:
            loc = f.location
            table.add_row(
                str(loc.line),
                str(loc.column),
                Text(f"[{f.rule_id}]", style="dim"),
                Text(f.message),
            )

        console.print(table)

        snippets = [f for f in file_findings if f.location.snippet]
        if snippets:
            for f in snippets:
                console.print(Text.assemble(("  |-- ", "dim"), f.location.snippet.strip()))
            console.print()

        if verbose:
            seen_rules: set[str] = set()
            for f in file_findings:
                if f.rule_id not in seen_rules:
                    seen_rules.add(f.rule_id)
                    rem = _get_remediation(f)
                    if rem:
                        console.print(Text.assemble(("  [Fix] ", "dim"), f"[{f.rule_id}] {rem}"))
            if seen_rules:
                console.print()

    if analyzed_files:
        _print_file_summary_table(findings, analyzed_files, console)

    _print_summary(findings, console)


def _shorten_path(path: str | Path) -> str:
    """Return the path relative to the working directory when possible."""
    p = Path(path)
    try:
        return str(p.relative_to(Path.cwd()))
    except ValueError:
        return str(p)


def _print_file_summary_table(
    findings: Sequence[Finding],
    analyzed_files: Sequence[Path],
    console: Console,
) -> None:
    """Print a table of clean vs flagged files."""
    by_path: dict[str, int] = {}
    for f in findings:
        key = str(f.location.path)
        by_path[key] = by_path.get(key, 0) + 1

    clean_files = [p for p in analyzed_files if str(p) not in by_path]
    flagged_files = [p for p in analyzed_files if str(p) in by_path]

    table = Table(
        title="Files Summary",
        show_header=True,
        header_style="bold cyan",
        box=box.ROUNDED,
        padding=(0, 1),
    )
    table.add_column("File", style="white")
    table.add_column("Status", width=10)
    table.add_column("Findings", justify="right", width=8)

    for p in sorted(flagged_files, key=str):
        table.add_row(
            escape(_shorten_path(p)),
            Text("NIL RISK", style="bold yellow"),
            str(by_path[str(p)]),
        )
    for p in sorted(clean_files, key=str):
        table.add_row(
            escape(_shorten_path(p)),
            Text("OK", style="bold green"),
            "0",
        )

    console.print()
    console.print(Panel(table, border_style="cyan", box=box.ROUNDED))


def _print_summary(findings: Sequence[Finding], console: Console) -> None:
    """Print a compact summary: total and per-rule counts."""
    by_rule: dict[str, int] = {}
    for f in findings:
        by_rule[f.rule_id] = by_rule.get(f.rule_id, 0) + 1

    total = len(findings)
    summary_parts = [f"[bold]{total} finding{'s' if total != 1 else ''}[/bold]"]
    for rule_id in sorted(by_rule):
        summary_parts.append(f"[yellow]{by_rule[rule_id]} {escape(rule_id)}[/]")

    console.print()
    console.print(
        Panel(
            " | ".join(summary_parts),
            title="Summary",
            border_style="yellow" if total > 0 else "green",
            box=box.ROUNDED,
        )
    )
