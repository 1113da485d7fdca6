"""
CLI for matomeru.

Aggregates directories or git diffs into one Markdown or YAML document.
Documents go to stdout (or a file); summaries and errors go to stderr.
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from matomeru import __version__
from matomeru.core.config import MatomeruConfig, configure_logging, load_config
from matomeru.core.file_scanner.models import SkippedFilePolicy
from matomeru.errors import describe_failure
from matomeru.generators import format_file_size, format_token_count
from matomeru.services import (
    AggregationResult,
    Failure,
    ServicesContainer,
    create_services,
)

# Summaries go to stderr so stdout carries only the document
console = Console(stderr=True)

app = typer.Typer(
    name="matomeru",
    help="Aggregate source trees and git diffs into one Markdown or YAML document",
    add_completion=False,
)

ConfigOption = typer.Option(None, "--config", "-c", help="Path to a YAML or JSON config file")
FormatOption = typer.Option(None, "--format", "-f", help="Output format: markdown or yaml")
OutputOption = typer.Option(None, "--output", "-o", help="Write the document to this file")
PrefixOption = typer.Option(None, "--prefix", help="Text placed at the top of the document")
ExcludeOption = typer.Option(
    None, "--exclude", "-e", help="Extra exclude glob. Can be specified multiple times."
)
GitignoreOption = typer.Option(
    None, "--gitignore/--no-gitignore", help="Honour .gitignore files at and above the root"
)
VscodeignoreOption = typer.Option(
    None, "--vscodeignore/--no-vscodeignore", help="Honour .vscodeignore files"
)
MaxFileSizeOption = typer.Option(
    None, "--max-file-size", help="Skip files larger than this many bytes"
)
DependenciesOption = typer.Option(
    None, "--dependencies/--no-dependencies", help="Include the import dependency graph"
)
SkippedOption = typer.Option(
    None, "--skipped", help="Skipped files: 'list' keeps them without content, 'omit' drops them"
)
CompressOption = typer.Option(
    None, "--compress/--no-compress", help="Strip comments and Python docstrings from file content"
)
VerboseOption = typer.Option(False, "--verbose", "-v", help="Enable debug logging")


def _load(
    config_path: Optional[Path],
    verbose: bool,
    exclude: Optional[list[str]] = None,
    gitignore: Optional[bool] = None,
    vscodeignore: Optional[bool] = None,
    max_file_size: Optional[int] = None,
    dependencies: Optional[bool] = None,
    skipped: Optional[str] = None,
) -> MatomeruConfig:
    """Load .env and configuration, then apply command-line overrides."""
    load_dotenv()
    try:
        cfg = load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)
    if verbose:
        cfg.logging.level = "DEBUG"
    configure_logging(cfg.logging)

    if exclude:
        cfg.scan.exclude_patterns = [*cfg.scan.exclude_patterns, *exclude]
    if gitignore is not None:
        cfg.scan.use_gitignore = gitignore
    if vscodeignore is not None:
        cfg.scan.use_vscodeignore = vscodeignore
    if max_file_size is not None:
        cfg.scan.max_file_size = max_file_size
    if dependencies is not None:
        cfg.scan.include_dependencies = dependencies
    if skipped is not None:
        try:
            SkippedFilePolicy(skipped)
        except ValueError:
            raise typer.BadParameter(f"must be 'list' or 'omit', got {skipped!r}") from None
        cfg.scan.skipped_file_policy = skipped
    return cfg


def _print_failure(failure: Failure, prefix: str = "[bold red]Error:[/bold red]") -> None:
    where = f"{failure.label}: " if failure.label else ""
    console.print(f"{prefix} {escape(where + failure.message)}", highlight=False)
    console.print(f"  [dim]{describe_failure(failure.kind)}[/dim]")


def _emit(result: AggregationResult, output: Optional[Path]) -> None:
    """Write or print the document, then summarize it."""
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(result.document, encoding="utf-8")
    else:
        typer.echo(result.document, nl=False)

    summary = Table.grid(padding=1)
    summary.add_column(style="bold")
    summary.add_column()
    ok_roots = [r for r in result.roots if r.ok]
    summary.add_row("Roots:", f"{len(ok_roots)}/{len(result.roots)}")
    summary.add_row("Size:", result.metrics.formatted_size)
    summary.add_row("Lines:", str(result.metrics.lines))
    summary.add_row("Tokens:", result.metrics.formatted_tokens)
    if output is not None:
        summary.add_row("Written to:", str(output))

    console.print(
        Panel(
            summary,
            title=f"[bold green]{result.format.capitalize()} document generated[/bold green]",
            border_style="green",
            expand=False,
        )
    )


def _finish(result: AggregationResult, output: Optional[Path]) -> None:
    if result.no_changes and result.ok:
        console.print("[yellow]No changes found.[/yellow]")
        return

    if not result.ok:
        for failure in result.failures:
            _print_failure(failure)
        raise typer.Exit(1)

    for failure in result.failures:
        _print_failure(failure, prefix="[yellow]Warning:[/yellow]")
    _emit(result, output)


def _open(cfg: MatomeruConfig) -> ServicesContainer:
    try:
        return create_services(config=cfg).open()
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def bundle(
    paths: list[Path] = typer.Argument(..., help="Directories or files to aggregate"),
    output_format: Optional[str] = FormatOption,
    output: Optional[Path] = OutputOption,
    prefix: Optional[str] = PrefixOption,
    exclude: Optional[list[str]] = ExcludeOption,
    gitignore: Optional[bool] = GitignoreOption,
    vscodeignore: Optional[bool] = VscodeignoreOption,
    max_file_size: Optional[int] = MaxFileSizeOption,
    dependencies: Optional[bool] = DependenciesOption,
    compress: Optional[bool] = CompressOption,
    skipped: Optional[str] = SkippedOption,
    config: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
):
    """Aggregate one or more directories into a single document."""
    cfg = _load(
        config, verbose, exclude, gitignore, vscodeignore, max_file_size, dependencies, skipped
    )
    with _open(cfg) as services:
        result = asyncio.run(
            services.aggregation_service.aggregate(
                paths, output=output_format, prefix_text=prefix, compress=compress
            )
        )
    _finish(result, output)


@app.command()
def diff(
    range_: Optional[str] = typer.Argument(
        None, metavar="RANGE", help="Revision range, e.g. HEAD~1..HEAD (default: work tree)"
    ),
    path: Path = typer.Option(Path("."), "--path", "-p", help="Top of the git working tree"),
    function_scoped: Optional[bool] = typer.Option(
        None,
        "--function-scoped/--whole-files",
        help="Emit only the functions and classes around changed lines",
    ),
    output_format: Optional[str] = FormatOption,
    output: Optional[Path] = OutputOption,
    prefix: Optional[str] = PrefixOption,
    exclude: Optional[list[str]] = ExcludeOption,
    max_file_size: Optional[int] = MaxFileSizeOption,
    dependencies: Optional[bool] = DependenciesOption,
    compress: Optional[bool] = CompressOption,
    config: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
):
    """Aggregate the files changed in a git diff."""
    cfg = _load(config, verbose, exclude, None, None, max_file_size, dependencies)
    with _open(cfg) as services:
        result = asyncio.run(
            services.aggregation_service.aggregate_diff(
                path,
                range_,
                output=output_format,
                function_scoped=function_scoped,
                prefix_text=prefix,
                compress=compress,
            )
        )
    _finish(result, output)


@app.command()
def estimate(
    paths: list[Path] = typer.Argument(..., help="Directories or files to estimate"),
    exclude: Optional[list[str]] = ExcludeOption,
    gitignore: Optional[bool] = GitignoreOption,
    vscodeignore: Optional[bool] = VscodeignoreOption,
    max_file_size: Optional[int] = MaxFileSizeOption,
    skipped: Optional[str] = SkippedOption,
    config: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
):
    """Estimate file count, size and tokens without generating a document."""
    cfg = _load(config, verbose, exclude, gitignore, vscodeignore, max_file_size, None, skipped)
    with _open(cfg) as services:
        result = asyncio.run(services.aggregation_service.estimate(paths))

    table = Table(title="Size Estimate")
    table.add_column("Root", style="cyan")
    table.add_column("Files", justify="right")
    table.add_column("Skipped", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Tokens", justify="right", style="green")

    for root in result.roots:
        if root.estimate is None:
            table.add_row(root.label, "-", "-", "-", f"[red]{root.failure.kind}[/red]")
            continue
        est = root.estimate
        table.add_row(
            root.label,
            str(est.file_count),
            str(est.skipped_count),
            format_file_size(est.total_bytes),
            format_token_count(est.estimated_tokens),
        )

    if len(result.roots) > 1:
        table.add_row(
            "[bold]Total[/bold]",
            str(result.file_count),
            str(result.skipped_count),
            result.formatted_size,
            result.formatted_tokens,
        )
    console.print(table)
    console.print(f"Estimated document size: {format_file_size(result.document_bytes)}")

    prefix = "[yellow]Warning:[/yellow]" if result.ok else "[bold red]Error:[/bold red]"
    for failure in result.failures:
        _print_failure(failure, prefix=prefix)
    if not result.ok:
        raise typer.Exit(1)


@app.command("config")
def show_config(
    config: Optional[Path] = ConfigOption,
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of YAML"),
):
    """Show the effective configuration."""
    load_dotenv()
    try:
        cfg = load_config(config)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)
    typer.echo(cfg.to_json() if as_json else cfg.to_yaml().rstrip("\n"))


@app.command()
def version():
    """Show the matomeru version."""
    typer.echo(f"matomeru {__version__}")


if __name__ == "__main__":
    app()
