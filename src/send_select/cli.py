"""
Command-line interface for send_select.

Commands:
- init-db: Create the SEND domain tables
- load: Load a domain from CSV
- download-ct: Fetch the CDISC SEND terminology file
- route: Add/filter route of administration for a list of animals
- design: Add/filter study design for studies
"""

from pathlib import Path
from typing import Annotated

import polars as pl
import typer
from rich.console import Console
from rich.table import Table

from send_select.config import settings
from send_select.log import configure_logging

app = typer.Typer(
    name="send-select",
    help="Route of administration and study design selection for pooled SEND data",
    no_args_is_help=True,
)
console = Console()


@app.callback()
def main(
    log_level: str | None = typer.Option(
        None, "--log-level", "-l", help="Logging level (default from settings)"
    ),
):
    """Configure logging for all commands."""
    configure_logging(log_level or settings.log_level)


def _read_csv(path: Path) -> pl.DataFrame:
    return pl.read_csv(path, infer_schema=False)


def _emit(result: pl.DataFrame, output: Path | None, title: str) -> None:
    """Write the result to CSV or print it as a table."""
    if output:
        result.write_csv(output)
        console.print(f"[green]✓[/] {result.height:,} rows written to {output}")
        return

    table = Table(title=title, show_header=True)
    for col in result.columns:
        table.add_column(col, style="cyan" if col.endswith("_MSG") else None)
    for row in result.iter_rows():
        table.add_row(*("" if value is None else str(value) for value in row))
    console.print(table)
    console.print(f"[dim]{result.height:,} rows[/]")


@app.command()
def init_db():
    """Initialize the database schema (create the SEND domain tables)."""
    from send_select.db import init_schema

    console.print("[bold blue]Initializing database schema...[/]")
    init_schema()
    console.print("[bold green]Done. Schema created successfully[/]")


@app.command()
def load(
    domain: str = typer.Argument(..., help="Domain to load (TS, DM, EX, POOLDEF)"),
    csv_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV file with domain rows"),
):
    """Append the rows of a CSV file to a domain table."""
    from send_select.db import load_domain

    count = load_domain(domain, _read_csv(csv_file))
    console.print(f"[green]✓[/] {domain.upper()}: {count:,} rows loaded")


@app.command()
def download_ct(
    dest: Path | None = typer.Option(None, "--dest", help="Target file"),
    force: bool = typer.Option(False, "--force", "-f", help="Re-download even if exists"),
):
    """Download the CDISC SEND controlled terminology file."""
    from send_select.vocabulary import download_ct_file

    path = download_ct_file(dest, force=force)
    console.print(f"[bold green]CT file ready:[/] {path}")


@app.command()
def route(
    animals: Annotated[Path, typer.Argument(exists=True, dir_okay=False, help="CSV with STUDYID, USUBJID")],
    route_filter: Annotated[
        list[str] | None, typer.Option("--filter", "-r", help="Route value(s) to select")
    ] = None,
    include_uncertain: bool = typer.Option(
        False, "--include-uncertain", help="Include animals with uncertain route"
    ),
    exclusively: bool = typer.Option(
        False, "--exclusively", help="Only studies without other routes"
    ),
    match_all: bool = typer.Option(
        False, "--match-all", help="Only studies with all requested routes"
    ),
    report: bool = typer.Option(
        True, "--report/--no-report", help="Without a filter, report why a route is not valid"
    ),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write result to CSV"),
):
    """Add the route of administration per animal, or select animals by route."""
    from send_select.api import get_subj_route

    result = get_subj_route(
        _read_csv(animals),
        route_filter=route_filter,
        include_uncertain=include_uncertain,
        exclusively=exclusively,
        match_all=match_all,
        no_filter_report_uncertain=report,
    )
    _emit(result, output, "Route of administration")


@app.command()
def design(
    studies: Annotated[
        Path | None, typer.Option("--studies", "-s", exists=True, dir_okay=False, help="CSV with STUDYID")
    ] = None,
    design_filter: Annotated[
        list[str] | None, typer.Option("--filter", "-d", help="Study design value(s) to select")
    ] = None,
    exclusively: bool = typer.Option(
        True, "--exclusively/--any-design", help="Only studies with a single design"
    ),
    include_uncertain: bool = typer.Option(
        False, "--include-uncertain", help="Include studies with uncertain design"
    ),
    report: bool = typer.Option(
        True, "--report/--no-report", help="Without a filter, report why a design is not valid"
    ),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write result to CSV"),
):
    """Add the study design per study, or select studies by design."""
    from send_select.api import get_studies_sdesign

    result = get_studies_sdesign(
        _read_csv(studies) if studies else None,
        study_design_filter=design_filter,
        exclusively=exclusively,
        include_uncertain=include_uncertain,
        no_filter_report_uncertain=report,
    )
    _emit(result, output, "Study design")


if __name__ == "__main__":
    app()
