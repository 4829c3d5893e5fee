"""
Console report generator for depcheck.

Renders analysis results, the compiled rule set and per-rule traces
with Rich.
"""

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from depcheck.analysis import AnalysisResult
from depcheck.policy.engine import RuleEngine
from depcheck.schema import RuleOutcome, RuleTrace, Verdict


ICON_OK = "[green]✓[/green]"
ICON_VIOLATION = "[red]✗[/red]"
ICON_SKIPPED = "[dim]○[/dim]"

OUTCOME_STYLES = {
    RuleOutcome.VIOLATION: "red",
    RuleOutcome.EXCEPTED: "green",
    RuleOutcome.EXCLUDED: "yellow",
    RuleOutcome.GLOBAL_EXCLUDED: "yellow",
    RuleOutcome.EXEMPT: "yellow",
    RuleOutcome.NO_MATCH: "dim",
    RuleOutcome.SOURCE_MISMATCH: "dim",
}


def print_report(
    result: AnalysisResult,
    console: Console | None = None,
    verbose: bool = False,
) -> None:
    """
    Print violations and a summary for an analysis run.

    Args:
        result: The analysis result
        console: Rich Console instance (creates one if not provided)
        verbose: Also list files that were skipped
    """
    if console is None:
        console = Console()

    if result.diagnostics:
        table = Table(show_header=True, header_style="bold", expand=True)
        table.add_column("Location", style="cyan", overflow="fold")
        table.add_column("Rule", justify="right", width=4)
        table.add_column("Message", overflow="fold")
        table.add_column("Pattern", style="dim", overflow="fold")

        for diag in result.diagnostics:
            table.add_row(
                escape(f"{diag.path}:{diag.line}:{diag.column + 1}"),
                str(diag.rule_index),
                escape(diag.message),
                escape(diag.pattern),
            )
        console.print(table)
        console.print()

    if result.skipped and verbose:
        console.print("[bold]Skipped[/bold]")
        for skipped in result.skipped:
            console.print(f"  {ICON_SKIPPED} {escape(skipped.path)}: [dim]{escape(skipped.reason)}[/dim]")
        console.print()

    icon = ICON_OK if result.success else ICON_VIOLATION
    console.print(
        f"{icon} {result.files_checked} file(s), {result.edges_checked} import(s), "
        f"{len(result.diagnostics)} violation(s), {len(result.skipped)} skipped "
        f"[dim]({result.duration_ms:.1f}ms)[/dim]"
    )


def print_rules(engine: RuleEngine, console: Console | None = None) -> None:
    """Print the compiled rule set."""
    if console is None:
        console = Console()

    policy = engine.policy
    if policy.ignore_patterns:
        patterns = escape(", ".join(p.pattern for p in policy.ignore_patterns))
        console.print(f"[dim]Global ignorePatterns:[/dim] {patterns}")

    table = Table(show_header=True, header_style="bold", show_lines=True)
    table.add_column("#", style="dim", justify="right", width=3)
    table.add_column("from", style="cyan")
    table.add_column("to", style="red")
    table.add_column("allowedDependencies", style="green")
    table.add_column("ignorePatterns", style="yellow")

    for rule in policy.rules:
        table.add_row(
            str(rule.index),
            escape(rule.source.pattern),
            escape("\n".join(p.pattern for p in rule.forbidden)) or "[dim]-[/dim]",
            escape("\n".join(p.pattern for p in rule.exceptions)) or "[dim]-[/dim]",
            escape("\n".join(p.pattern for p in rule.ignore_patterns)) or "[dim]-[/dim]",
        )
    console.print(table)


def print_trace(
    traces: list[RuleTrace],
    verdict: Verdict,
    console: Console | None = None,
) -> None:
    """Print how each rule treated one edge, then the verdict."""
    if console is None:
        console = Console()

    for trace in traces:
        style = OUTCOME_STYLES.get(trace.outcome, "")
        line = f"  Rule {trace.rule_index:<3} [{style}]{trace.outcome.value}[/{style}]"
        if trace.pattern is not None:
            line += f"  [dim]{escape(trace.pattern)}[/dim]"
        console.print(line)

    if not traces:
        console.print("  [dim]No rules defined[/dim]")

    console.print()
    if verdict.allowed:
        console.print(f"{ICON_OK} [green]ALLOWED[/green]: {escape(verdict.reason)}")
    else:
        console.print(f"{ICON_VIOLATION} [red]VIOLATION[/red]: {escape(verdict.reason)}")
        for violation in verdict.violations:
            console.print(f"    {escape(violation.message)} [dim]({escape(violation.pattern)})[/dim]")
