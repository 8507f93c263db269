#!/usr/bin/env python3
"""CLI for the school portal.

Commands:
    init-db     Create or reset the database
    seed        Insert the demo data into an empty database
    serve       Run the HTTP API
    status      Show table row counts
    report      Show a student's report card
    absences    List students by absence count
"""

import os
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .. import __version__, analytics
from ..database import Database, Repository, seed_database
from ..database.models import SECTION_LABELS
from ..logutils import configure_root_logger

load_dotenv()

console = Console()

SEVERITY_STYLE = {"critical": "red bold", "normal": "green"}


def _open_db(ctx: click.Context) -> Database:
    return Database(ctx.obj["db_path"])


def _open_repository(ctx: click.Context) -> Optional[Repository]:
    """Open the repository, or report and return None when the schema is missing."""
    db = _open_db(ctx)
    info = db.verify()
    if "users" not in info["tables"]:
        console.print(f"[red]No database schema at {info['path']}[/red]")
        console.print("Run init-db first.")
        return None
    return Repository(db)


@click.group()
@click.version_option(version=__version__, prog_name="schoolportal")
@click.option(
    "--db",
    "db_path",
    type=click.Path(path_type=Path),
    envvar="DATABASE_PATH",
    default="school.db",
    show_default=True,
    help="SQLite database file",
)
@click.pass_context
def cli(ctx: click.Context, db_path: Path):
    """School portal - manage and query grades, attendance and users."""
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db_path


@cli.command("init-db")
@click.option("--force", is_flag=True, help="Delete the existing database first")
@click.pass_context
def init_db(ctx: click.Context, force: bool):
    """Initialize or reset the database."""
    db = _open_db(ctx)

    if db.path.exists() and not force:
        if not click.confirm("Database exists. Reset it?", default=False):
            console.print("[yellow]Aborted.[/yellow]")
            return
        force = True

    if force:
        db.reset()

    console.print("[blue]Initializing database...[/blue]")
    db.init_schema()
    info = db.verify()
    console.print("[green]✓ Database initialized[/green]")
    console.print(f"  Tables: {', '.join(info.get('tables', []))}")


@cli.command()
@click.pass_context
def seed(ctx: click.Context):
    """Insert the demo data if no user exists yet."""
    db = _open_db(ctx)
    db.init_schema()
    if seed_database(db):
        console.print("[green]✓ Demo data inserted[/green]")
    else:
        console.print("[yellow]Database already has users; seed skipped.[/yellow]")


@cli.command()
@click.option("--host", default=lambda: os.getenv("PORTAL_HOST", "127.0.0.1"), show_default="127.0.0.1")
@click.option("--port", type=int, default=lambda: int(os.getenv("PORTAL_PORT", "3000")), show_default="3000")
@click.option("--no-seed", is_flag=True, help="Do not insert demo data on startup")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int, no_seed: bool):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    from ..api import create_app

    configure_root_logger()
    app = create_app(_open_db(ctx), seed=not no_seed)
    console.print(f"[blue]Serving on http://{host}:{port}[/blue]")
    uvicorn.run(app, host=host, port=port)


@cli.command()
@click.pass_context
def status(ctx: click.Context):
    """Show database status."""
    info = _open_db(ctx).verify()
    if not info["exists"]:
        console.print(f"[red]No database at {info['path']}[/red]")
        console.print("Run init-db first.")
        return

    console.print(Panel(f"[bold]Database Status[/bold]\n{info['path']}"))
    table = Table(show_header=False)
    table.add_column("Table", style="cyan")
    table.add_column("Rows", justify="right")
    for name, count in info["row_counts"].items():
        table.add_row(name, str(count))
    console.print(table)


@cli.command()
@click.option("--email", "-e", required=True, help="Student email")
@click.pass_context
def report(ctx: click.Context, email: str):
    """Show a student's report card."""
    repo = _open_repository(ctx)
    if repo is None:
        return

    student = repo.get_user_by_email(email)
    if not student or student["role"] != "student":
        console.print(f"[red]Student not found: {email}[/red]")
        return

    card = analytics.build_report_card(repo.get_grades_for_student(student["id"]))
    if not card["subjects"]:
        console.print(f"[yellow]No grades found for {student['name']} {student['surname']}[/yellow]")
        return

    table = Table(title=f"Report Card - {student['name']} {student['surname']}")
    table.add_column("Subject")
    for section in analytics.SECTIONS:
        table.add_column(SECTION_LABELS[section], justify="center")
    table.add_column("Average", justify="right")

    for subject in card["subjects"]:
        cells = [
            " ".join(str(v) for v in subject["sections"][section]) or "-"
            for section in analytics.SECTIONS
        ]
        table.add_row(subject["subject_name"], *cells, analytics.format_average(subject["average"]))

    console.print(table)
    console.print(f"\n[bold]Overall average: {analytics.format_average(card['overall_average'])}[/bold]")


@cli.command()
@click.option("--class-name", "-c", default=None, help="Only this class, e.g. 3-1")
@click.pass_context
def absences(ctx: click.Context, class_name: str):
    """List students with their absence count and severity."""
    repo = _open_repository(ctx)
    if repo is None:
        return
    students = analytics.filter_students(repo.get_students_detailed(), class_name=class_name)
    if not students:
        console.print("[yellow]No students found.[/yellow]")
        return

    rows = sorted(
        ((s, analytics.summarize_student(s)) for s in students),
        key=lambda pair: pair[1]["absences"],
        reverse=True,
    )

    table = Table(title="Absences")
    table.add_column("Student")
    table.add_column("Class")
    table.add_column("Absences", justify="right")
    table.add_column("Status")
    for student, summary in rows:
        count_style = "red" if summary["absences_elevated"] else "white"
        severity = summary["attendance_severity"]
        table.add_row(
            f"{student['name']} {student['surname']}",
            student.get("class_name") or "-",
            f"[{count_style}]{summary['absences']}[/{count_style}]",
            f"[{SEVERITY_STYLE[severity]}]{severity}[/{SEVERITY_STYLE[severity]}]",
        )
    console.print(table)


def main():
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
