"""
Rubric Checker CLI Application.

Provides a command-line interface for auditing key/value rubrics and
grammar-checking their justifications.
"""

import logging
from pathlib import Path
from typing import Annotated, Optional, Sequence

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from rubric_checker.config import VerdictScope, get_settings
from rubric_checker.extractors import ExtractionError, extract_document
from rubric_checker.grammar import GrammarCheckError, GrammarChecker
from rubric_checker.models import GrammarResult, RubricReport
from rubric_checker.output import ReportFormat, ReportGenerator
from rubric_checker.rubric import parse_rubric

# Create Typer app
app = typer.Typer(
    name="rubric-checker",
    help="Parse key/value grading rubrics and flag scoring and wording mistakes",
    add_completion=False,
)

console = Console()

EXIT_ISSUES_FOUND = 2


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_report(rubric_file: Path, verdict_scope: VerdictScope | None) -> RubricReport:
    settings = get_settings()
    document = extract_document(rubric_file, settings.max_file_size_mb)
    return parse_rubric(
        document.content,
        verdict_scope=verdict_scope or settings.verdict_scope,
        snippet_length=settings.snippet_length,
    )


@app.command()
def check(
    rubric_file: Annotated[Path, typer.Argument(help="Rubric file, or '-' for stdin")],
    format: Annotated[
        Optional[ReportFormat],
        typer.Option("--format", "-f", help="Print the report as JSON or Markdown instead of tables"),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output file path for the report"),
    ] = None,
    grammar: Annotated[
        bool,
        typer.Option("--grammar", "-g", help="Also grammar-check justifications with LanguageTool"),
    ] = False,
    verdict_scope: Annotated[
        Optional[VerdictScope],
        typer.Option("--verdict-scope", help="Compare total verdicts against the whole document or their group"),
    ] = None,
    fail_on_issues: Annotated[
        bool,
        typer.Option("--fail-on-issues", help=f"Exit with code {EXIT_ISSUES_FOUND} when findings exist"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show detailed output"),
    ] = False,
) -> None:
    """
    Parse a rubric and report every consistency finding.

    Checks totals against sub-item scores, verdict spelling and agreement,
    missing fields, duplicate keys, numbering gaps and casing conventions.
    """
    _configure_logging(verbose)

    try:
        report = _load_report(rubric_file, verdict_scope)

        grammar_results: list[GrammarResult] | None = None
        if grammar:
            if report.justification_items():
                with GrammarChecker() as checker, console.status("Checking grammar..."):
                    grammar_results = checker.check_report(report)
            else:
                console.print("[yellow]No justifications were found to check.[/yellow]")

        generator = ReportGenerator()
        if format is not None:
            typer.echo(generator.generate(report, format, grammar_results))
        else:
            _display_report(report, verbose)
            if grammar_results is not None:
                _display_grammar(grammar_results)

        if output:
            saved_path = generator.save(report, output, format, grammar_results)
            console.print(f"\n[green]Report saved to:[/green] {saved_path}")

    except ExtractionError as e:
        console.print(f"[red]Extraction Error:[/red] {e}")
        raise typer.Exit(1)
    except GrammarCheckError as e:
        console.print(f"[red]Grammar Check Error:[/red] {e}")
        raise typer.Exit(1)

    if fail_on_issues and report.has_issues:
        raise typer.Exit(EXIT_ISSUES_FOUND)


@app.command("grammar")
def grammar_check(
    rubric_file: Annotated[Path, typer.Argument(help="Rubric file, or '-' for stdin")],
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show detailed output"),
    ] = False,
) -> None:
    """
    Grammar-check the justifications of a rubric without auditing it.
    """
    _configure_logging(verbose)

    try:
        report = _load_report(rubric_file, None)
        items = report.justification_items()
        if not items:
            console.print("[yellow]No justifications were found to check.[/yellow]")
            raise typer.Exit(1)

        with GrammarChecker() as checker, console.status(f"Checking {len(items)} justifications..."):
            results = checker.check_items(items)

        _display_grammar(results)

    except ExtractionError as e:
        console.print(f"[red]Extraction Error:[/red] {e}")
        raise typer.Exit(1)
    except GrammarCheckError as e:
        console.print(f"[red]Grammar Check Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def health() -> None:
    """
    Show configuration and check that LanguageTool is reachable.
    """
    try:
        settings = get_settings()
        console.print("[bold]Rubric Checker Health Check[/bold]\n")

        console.print("[dim]Checking configuration...[/dim]")
        console.print(f"  LanguageTool URL: {settings.languagetool_url}")
        console.print(f"  Language: {settings.languagetool_language} ({settings.languagetool_level})")
        console.print(f"  Workers: {settings.max_workers}")
        console.print(f"  Verdict Scope: {settings.verdict_scope.value}")

        console.print("\n[dim]Checking LanguageTool connectivity...[/dim]")
        with GrammarChecker(settings) as checker:
            reachable = checker.health_check()
        if reachable:
            console.print("[green]✓ LanguageTool is reachable[/green]")
        else:
            console.print("[red]✗ LanguageTool is not reachable[/red]")
            raise typer.Exit(1)

        console.print("\n[green]All systems operational[/green]")

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def _display_report(report: RubricReport, verbose: bool = False) -> None:
    """Display the audit summary, entries and findings."""
    totals_match = not report.total_mismatches
    color = "green" if not report.has_issues else "yellow" if totals_match else "red"
    console.print(
        Panel(
            f"[{color}][bold]{report.expected_total}[/bold] expected from sub-items[/{color}]\n"
            f"Total score (reported totals included): {report.total_score}\n"
            f"Items: {report.entry_count} · Wrong verdicts: {report.wrong_verdicts} · "
            f"Findings: {report.issue_count}",
            title="At a glance",
        )
    )

    if verbose:
        table = Table(title="Entries")
        table.add_column("Id", style="cyan")
        table.add_column("Score", justify="right")
        table.add_column("Verdict")
        table.add_column("Justification")

        for entry in report.entries:
            table.add_row(
                escape(entry.id),
                "" if entry.score is None else str(entry.score),
                escape(entry.verdict or ""),
                escape((entry.justification or "")[:60]),
            )

        console.print(table)

    findings = ReportGenerator.findings(report)
    if not findings:
        console.print("\n[green]✓ No issues found[/green]")
        return

    table = Table(title="Findings")
    table.add_column("Check", style="yellow")
    table.add_column("Item", style="cyan")
    table.add_column("Detail")
    for check_name, item_id, detail in findings:
        table.add_row(escape(check_name), escape(item_id), escape(detail))
    console.print(table)


def _display_grammar(results: Sequence[GrammarResult]) -> None:
    """Display grammar issues per entry."""
    total = sum(result.issue_count for result in results)
    if total == 0:
        console.print(f"\n[green]✓ No grammar issues in {len(results)} justifications[/green]")
        return

    table = Table(title=f"Grammar ({total} issues)")
    table.add_column("Item", style="cyan")
    table.add_column("Issue")
    table.add_column("Suggestions")
    table.add_column("Context", style="dim")
    for result in results:
        for issue in result.issues:
            table.add_row(
                escape(result.id),
                escape(issue.message),
                escape(", ".join(issue.replacements[:3])),
                escape(issue.context),
            )
    console.print(table)


if __name__ == "__main__":
    app()
