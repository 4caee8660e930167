"""swiftstyle CLI - Main entry point."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click
from rich.console import Console

from swiftstyle_core import __version__
from swiftstyle_core.analysis import LintResults, StyleAnalyzer
from swiftstyle_core.config import (
    CONFIG_NAMES,
    EXAMPLE_CONFIG,
    SwiftStyleConfig,
    find_config,
    load_config,
    validate_config,
)
from swiftstyle_core.errors import ConfigurationError
from swiftstyle_core.fixer import FixApplier
from swiftstyle_core.reporter import to_json, to_sarif
from swiftstyle_core.rules import RuleCategory, RuleEngine, RuleRegistry, Violation
from swiftstyle_core.severity import is_above_threshold

from swiftstyle_cli.formatter import format_diff, format_rules, format_summary, format_violations
from swiftstyle_cli.log import configure_logging

console = Console()
err_console = Console(stderr=True)

EXIT_CONFIG_ERROR = 2


@click.group()
@click.version_option(version=__version__, prog_name="swiftstyle")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging on stderr")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """swiftstyle - mechanical style checks and fixes for Swift.

    Lint Swift sources against a registry of independent style rules and
    apply the safe fixes they suggest.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(verbose)


def _load(config: str | None, paths: tuple[str, ...]) -> tuple[SwiftStyleConfig, RuleRegistry]:
    """Load configuration and build the rule registry, exiting 2 on bad config."""
    try:
        if config:
            cfg = load_config(Path(config))
        else:
            root = Path(paths[0]) if paths else Path(".")
            cfg = load_config(root if root.is_dir() else root.parent)
        registry = RuleRegistry.from_config(cfg.rules)
    except ConfigurationError as e:
        err_console.print(f"[red]Configuration error: {e}[/red]")
        sys.exit(EXIT_CONFIG_ERROR)
    return cfg, registry


def _analyze(
    cfg: SwiftStyleConfig,
    registry: RuleRegistry,
    paths: tuple[str, ...],
    jobs: int | None,
    timeout: float | None,
) -> tuple[RuleEngine, LintResults]:
    engine = RuleEngine(registry)
    analyzer = StyleAnalyzer(engine, cfg, jobs=jobs, timeout=timeout)
    results = asyncio.run(analyzer.analyze_paths(paths or (".",)))
    return engine, results


def _report(
    results: LintResults,
    registry: RuleRegistry,
    output_format: str,
    severity: str,
    summary: bool,
) -> None:
    shown: list[Violation] = [
        v for v in results.violations if v.is_diagnostic or is_above_threshold(v.severity, severity)
    ]
    if output_format == "json":
        payload = json.loads(to_json(shown, files=results.files_analyzed))
        payload["errors"] = results.errors
        payload["cancelled"] = results.cancelled
        click.echo(json.dumps(payload, indent=2))
    elif output_format == "sarif":
        click.echo(json.dumps(to_sarif(shown, rules=registry.rules), indent=2))
    else:
        format_violations(console, shown)
        if summary:
            console.print()
            format_summary(console, results, shown=len(shown))


def _common_options(func):
    func = click.option("--config", "-c", type=click.Path(), help="Path to .swiftstyle.yml")(func)
    func = click.option(
        "--severity", "-s",
        type=click.Choice(["error", "warning", "info"]),
        default="info", help="Minimum severity to report",
    )(func)
    func = click.option("--jobs", "-j", type=click.IntRange(min=1), help="Files analyzed in parallel")(func)
    func = click.option(
        "--timeout", type=click.FloatRange(min=0, min_open=True),
        help="Stop dispatching files after this many seconds",
    )(func)
    return func


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True))
@_common_options
@click.option("--format", "-f", "output_format",
              type=click.Choice(["text", "json", "sarif"]),
              default="text", help="Output format")
@click.option("--summary/--no-summary", default=True, help="Print a summary table (text format)")
def lint(
    paths: tuple[str, ...],
    config: str | None,
    severity: str,
    jobs: int | None,
    timeout: float | None,
    output_format: str,
    summary: bool,
) -> None:
    """Check Swift files for style violations.

    Exit status is 0 when no error-severity violation is found, 1 when at
    least one is, and 2 when a file could not be analyzed or the
    configuration is invalid.

    Examples:

        swiftstyle lint                        # Lint the current directory
        swiftstyle lint Sources/ Tests/
        swiftstyle lint -f sarif > report.sarif
    """
    cfg, registry = _load(config, paths)
    _, results = _analyze(cfg, registry, paths, jobs, timeout)
    _report(results, registry, output_format, severity, summary)
    sys.exit(results.exit_code())


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True))
@_common_options
@click.option("--dry-run", is_flag=True, help="Show the diff of each fix without writing files")
@click.option("--rule", "-r", "rule_ids", multiple=True, help="Only apply fixes of these rules")
def fix(
    paths: tuple[str, ...],
    config: str | None,
    severity: str,
    jobs: int | None,
    timeout: float | None,
    dry_run: bool,
    rule_ids: tuple[str, ...],
) -> None:
    """Apply the safe fixes suggested by the rules.

    Every file is fixed all or nothing: when fixes conflict or a fix does not
    remove its violation, the file is left unchanged and a diagnostic is
    reported. Violations remaining after fixing are listed.

    Examples:

        swiftstyle fix Sources/
        swiftstyle fix --dry-run Sources/
        swiftstyle fix -r trailing-whitespace .
    """
    cfg, registry = _load(config, paths)
    unknown = sorted(set(rule_ids) - {rule.id for rule in registry})
    if unknown:
        err_console.print(f"[red]Unknown rule ids: {', '.join(unknown)}[/red]")
        sys.exit(EXIT_CONFIG_ERROR)

    engine, results = _analyze(cfg, registry, paths, jobs, timeout)
    applier = FixApplier(engine)

    fixed = LintResults(
        errors=list(results.errors),
        cancelled=results.cancelled,
        files_skipped=results.files_skipped,
        started_at=results.started_at,
    )
    changed = 0
    for analysis in results.analyses:
        outcome = applier.fix(analysis, rule_ids or None)
        fixed.analyses.append(outcome.analysis)
        if not outcome.changed:
            continue
        changed += 1
        if dry_run:
            format_diff(console, outcome.original, outcome.source, outcome.path)
        else:
            Path(outcome.path).write_text(outcome.source, encoding="utf-8")
            console.print(f"[green]✓ Fixed {outcome.path}[/green] ({len(outcome.applied)} fixes)")

    fixed.completed_at = results.completed_at
    fixed.duration_ms = results.duration_ms
    verb = "Would fix" if dry_run else "Fixed"
    console.print(f"\n[bold]{verb} {changed} file(s)[/bold]")
    _report(fixed, registry, "text", severity, summary=False)
    sys.exit(fixed.exit_code())


@cli.command()
@click.option("--config", "-c", type=click.Path(), help="Path to .swiftstyle.yml")
@click.option("--category", type=click.Choice([c.value for c in RuleCategory if c != RuleCategory.DIAGNOSTIC]),
              help="Only list rules of this category")
def rules(config: str | None, category: str | None) -> None:
    """List the configured rules."""
    _, registry = _load(config, ())
    selected = [rule for rule in registry if category is None or rule.category.value == category]
    format_rules(console, selected)


@cli.command()
@click.option("--config", "-c", type=click.Path(), help="Path to .swiftstyle.yml")
def validate(config: str | None) -> None:
    """Validate configuration file.

    Checks .swiftstyle.yml for errors and warnings.
    """
    config_path = Path(config) if config else find_config(Path("."))

    if config_path is None or not config_path.exists():
        console.print(f"[red]Config file not found: {config_path or CONFIG_NAMES[0]}[/red]")
        console.print("Run [bold]swiftstyle init[/bold] to create one")
        sys.exit(EXIT_CONFIG_ERROR)

    errors, warnings = validate_config(config_path)

    if errors:
        console.print("[red]Configuration errors:[/red]")
        for error in errors:
            console.print(f"  ✗ {error}")
        sys.exit(EXIT_CONFIG_ERROR)

    if warnings:
        console.print("[yellow]Configuration warnings:[/yellow]")
        for warning in warnings:
            console.print(f"  ⚠ {warning}")

    console.print("[green]✓ Configuration is valid[/green]")


@cli.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False), default=".")
@click.option("--force", "-f", is_flag=True, help="Overwrite existing config")
def init(directory: str, force: bool) -> None:
    """Initialize swiftstyle configuration.

    Creates a .swiftstyle.yml file with the default settings.
    """
    config_path = Path(directory) / CONFIG_NAMES[0]

    if config_path.exists() and not force:
        console.print(f"[yellow]Config already exists: {config_path}[/yellow]")
        console.print("Use --force to overwrite")
        return

    config_path.write_text(EXAMPLE_CONFIG, encoding="utf-8")
    console.print(f"[green]✓ Created {config_path}[/green]")
    console.print("\nNext steps:")
    console.print(f"  1. Edit {CONFIG_NAMES[0]} to customize settings")
    console.print("  2. Run [bold]swiftstyle lint[/bold] to check your code")


if __name__ == "__main__":
    cli()
