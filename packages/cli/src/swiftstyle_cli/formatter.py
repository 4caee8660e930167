"""Output formatting for CLI."""

from __future__ import annotations

import difflib
from typing import Iterable, Sequence

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from swiftstyle_core.analysis import LintResults
from swiftstyle_core.reporter import format_violation
from swiftstyle_core.rules import StyleRule, Violation
from swiftstyle_core.severity import get_severity_style


def format_violations(console: Console, violations: Sequence[Violation]) -> None:
    """Print one `path:line:column: severity [rule_id] message` line per violation."""
    if not violations:
        console.print("[green]✓ No violations found[/green]")
        return

    for violation in violations:
        line = Text(format_violation(violation), style=get_severity_style(violation.severity))
        if violation.fix_available:
            line.append(" (fixable)", style="dim")
        console.print(line, soft_wrap=True)


def format_summary(console: Console, results: LintResults, shown: int | None = None) -> None:
    """Format and display the run summary."""
    summary = results.summary()
    by_severity = summary["by_severity"]

    table = Table(title="Lint Summary", show_header=True, header_style="bold")
    table.add_column("Metric", style="dim")
    table.add_column("Value", justify="right")

    table.add_row("Files Analyzed", str(results.files_analyzed))
    if results.files_skipped:
        table.add_row("Files Skipped", str(results.files_skipped))
    table.add_row("Duration", f"{results.duration_ms:.0f}ms")
    table.add_row("", "")
    table.add_row("[bold red]Errors[/bold red]", str(by_severity["error"]))
    table.add_row("[yellow]Warnings[/yellow]", str(by_severity["warning"]))
    table.add_row("[blue]Info[/blue]", str(by_severity["info"]))
    table.add_row("Fixable", str(summary["fixable"]))
    table.add_row("[bold]Total[/bold]", f"[bold]{summary['total']}[/bold]")
    if shown is not None and shown != summary["total"]:
        table.add_row("Shown", str(shown))

    console.print(table)

    for error in results.errors:
        console.print(f"[red]✗ {error}[/red]")
    if results.cancelled:
        console.print("[yellow]Run cancelled; results are partial[/yellow]")

    code = results.exit_code()
    if code == 2:
        console.print("\n[red]❌ Some files could not be analyzed[/red]")
    elif code == 1:
        console.print("\n[red]❌ Lint failed - error-severity violations found[/red]")
    else:
        console.print("\n[green]✓ Lint passed[/green]")


def format_rules(console: Console, rules: Iterable[StyleRule]) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Category")
    table.add_column("Severity")
    table.add_column("Enabled")
    table.add_column("Fix")
    table.add_column("Description")

    count = 0
    for rule in rules:
        style = get_severity_style(rule.severity)
        has_fix = type(rule).fix is not StyleRule.fix
        table.add_row(
            rule.id,
            rule.category.value,
            f"[{style}]{rule.severity.value}[/{style}]",
            "yes" if rule.enabled else "no",
            "yes" if has_fix else "",
            rule.description,
        )
        count += 1

    console.print(table)
    console.print(f"\n[dim]Total: {count} rules[/dim]")


def format_diff(console: Console, original: str, fixed: str, file_path: str) -> None:
    """Format a diff between original and fixed code."""
    diff = difflib.unified_diff(
        original.splitlines(keepends=True),
        fixed.splitlines(keepends=True),
        fromfile=f"a/{file_path}",
        tofile=f"b/{file_path}",
    )
    diff_text = "".join(diff)

    if diff_text:
        console.print(Syntax(diff_text, "diff", theme="monokai"))
    else:
        console.print("[dim]No changes[/dim]")
