"""CLI commands for the coverage planner.

Commands:
- init-db: create the database and schema
- show: print coverage of a phone/class
- toggle-topic / toggle-chapter: mark progress
- comment: set a chapter or topic comment
- admin-list: grouped overview of every record
- delete: remove a record by id
- serve: run the Web API
"""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.table import Table

from planner.config.app_config import load_app_config
from planner.core.admin import filter_groups, group_by_phone
from planner.core.coverage_service import CoverageService
from planner.core.errors import CoverageError
from planner.core.phone import format_phone
from planner.core.syllabus import default_syllabus, load_syllabus
from planner.db.coverage_repository import CoverageRepository
from planner.db.database import Database

app = typer.Typer(
    name="planner",
    help="Track syllabus coverage per student phone number and class.",
    no_args_is_help=True,
)

console = Console()

ClassOption = typer.Option("11", "--class", "-c", help="Class: 11 or 12")


def _open_database(db_path: Path | None) -> Database:
    config = load_app_config()
    return Database(db_path or config.database.path)


def _build_service(database: Database) -> CoverageService:
    config = load_app_config()
    directory = config.syllabus.get_directory()
    syllabus = load_syllabus(directory) if directory else default_syllabus()
    return CoverageService(CoverageRepository(database), syllabus)


def _fail(error: Exception) -> NoReturn:
    console.print(f"[red]✗ {error}[/red]")
    raise typer.Exit(code=1)


def _mark(completed: bool) -> str:
    return "[green]✓[/green]" if completed else "[dim]·[/dim]"


@app.command(name="init-db")
def init_db(
    db_path: Path | None = typer.Option(None, "--db", help="Database file"),
) -> None:
    """Create the database file and coverage table."""
    database = _open_database(db_path)
    try:
        database.connect()
        console.print(f"[green]✓ Database ready:[/green] {database.path}")
    finally:
        database.close()


@app.command()
def show(
    phone: str = typer.Argument(..., help="Student phone number"),
    student_class: str = ClassOption,
    subject: str | None = typer.Option(None, "--subject", "-s", help="Only this subject"),
    db_path: Path | None = typer.Option(None, "--db", help="Database file"),
) -> None:
    """Show coverage of a phone/class, creating it on first access."""
    database = _open_database(db_path)
    try:
        service = _build_service(database)
        result = service.ensure_record(phone, student_class)
        record = service.reconciled(result.record)
        grade = service.syllabus.get_grade(record.student_class)
    except CoverageError as e:
        _fail(e)
    finally:
        database.close()

    if result.is_new:
        console.print("[blue]New coverage created.[/blue]")
    console.print(
        f"[bold]{format_phone(record.phone)}[/bold]  class {record.student_class}"
        f"  [dim]id={record.id} updated={record.updated_at}[/dim]"
    )

    for subject_def in grade.subjects:
        if subject and subject_def.subject != subject:
            continue
        console.print(f"\n[bold underline]{subject_def.title}[/bold underline]")
        chapters = record.data.get(subject_def.subject, {})
        for chapter in subject_def.chapters:
            chapter_state = chapters.get(chapter.title, {})
            line = f"  {_mark(chapter_state.get('completed', False))} {chapter.title}"
            if chapter_state.get("comment"):
                line += f"  [italic]{chapter_state['comment']}[/italic]"
            console.print(line)
            topics = chapter_state.get("topics", {})
            for topic in chapter.topics:
                topic_state = topics.get(topic.title, {})
                line = f"      {_mark(topic_state.get('completed', False))} {topic.title}"
                if topic_state.get("comment"):
                    line += f"  [italic]{topic_state['comment']}[/italic]"
                console.print(line)


@app.command(name="toggle-topic")
def toggle_topic(
    phone: str = typer.Argument(..., help="Student phone number"),
    subject: str = typer.Argument(..., help="Subject key, e.g. physics"),
    chapter: str = typer.Argument(..., help="Chapter title"),
    topic: str = typer.Argument(..., help="Topic title"),
    student_class: str = ClassOption,
    undo: bool = typer.Option(False, "--undo", help="Mark as not completed"),
    db_path: Path | None = typer.Option(None, "--db", help="Database file"),
) -> None:
    """Mark a topic completed (or not, with --undo)."""
    database = _open_database(db_path)
    try:
        service = _build_service(database)
        record = service.toggle_topic(phone, student_class, subject, chapter, topic, not undo)
    except CoverageError as e:
        _fail(e)
    finally:
        database.close()

    chapter_done = record.data[subject][chapter]["completed"]
    console.print(f"[green]✓ {topic}[/green] {'reset' if undo else 'completed'}")
    console.print(f"  [dim]chapter completed:[/dim] {chapter_done}")


@app.command(name="toggle-chapter")
def toggle_chapter(
    phone: str = typer.Argument(..., help="Student phone number"),
    subject: str = typer.Argument(..., help="Subject key, e.g. physics"),
    chapter: str = typer.Argument(..., help="Chapter title"),
    student_class: str = ClassOption,
    undo: bool = typer.Option(False, "--undo", help="Mark as not completed"),
    db_path: Path | None = typer.Option(None, "--db", help="Database file"),
) -> None:
    """Mark a chapter and all of its topics completed (or not)."""
    database = _open_database(db_path)
    try:
        service = _build_service(database)
        record = service.toggle_chapter(phone, student_class, subject, chapter, not undo)
    except CoverageError as e:
        _fail(e)
    finally:
        database.close()

    topics = record.data[subject][chapter]["topics"]
    console.print(f"[green]✓ {chapter}[/green] {'reset' if undo else 'completed'}")
    console.print(f"  [dim]topics updated:[/dim] {len(topics)}")


@app.command()
def comment(
    phone: str = typer.Argument(..., help="Student phone number"),
    subject: str = typer.Argument(..., help="Subject key, e.g. physics"),
    chapter: str = typer.Argument(..., help="Chapter title"),
    text: str = typer.Argument(..., help="Comment text"),
    topic: str | None = typer.Option(None, "--topic", "-t", help="Comment on a topic"),
    student_class: str = ClassOption,
    db_path: Path | None = typer.Option(None, "--db", help="Database file"),
) -> None:
    """Set the comment of a chapter, or of a topic with --topic."""
    database = _open_database(db_path)
    try:
        service = _build_service(database)
        if topic:
            service.set_topic_comment(phone, student_class, subject, chapter, topic, text)
        else:
            service.set_chapter_comment(phone, student_class, subject, chapter, text)
    except CoverageError as e:
        _fail(e)
    finally:
        database.close()

    console.print(f"[green]✓ Comment saved[/green] on {topic or chapter}")


@app.command(name="admin-list")
def admin_list(
    student_class: str | None = typer.Option(None, "--class", "-c", help="Only this class"),
    search: str | None = typer.Option(None, "--search", "-q", help="Phone, id or text"),
    db_path: Path | None = typer.Option(None, "--db", help="Database file"),
) -> None:
    """List coverage records grouped by phone."""
    database = _open_database(db_path)
    try:
        service = _build_service(database)
        grade = service.resolve_class(student_class) if student_class else None
        groups = filter_groups(group_by_phone(service.list_records()), grade, search)
    except CoverageError as e:
        _fail(e)
    finally:
        database.close()

    if not groups:
        console.print("[yellow]No coverage records match the current filters.[/yellow]")
        return

    table = Table(title=f"Coverage ({len(groups)} students)")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Phone")
    table.add_column("Records")
    table.add_column("Last updated")

    for index, group in enumerate(groups, start=1):
        records = ", ".join(f"{r.student_class} (id {r.id})" for r in group.records)
        table.add_row(str(index), group.formatted_phone, records, group.last_updated)

    console.print(table)


@app.command()
def delete(
    record_id: int = typer.Argument(..., help="Coverage record id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    db_path: Path | None = typer.Option(None, "--db", help="Database file"),
) -> None:
    """Delete a coverage record by id."""
    database = _open_database(db_path)
    try:
        service = _build_service(database)
        record = service.require_by_id(record_id)

        label = f"{format_phone(record.phone)} class {record.student_class}"
        if not yes and not typer.confirm(f"Delete coverage {record_id} ({label})?"):
            console.print("[yellow]⚠ Cancelled[/yellow]")
            return

        service.remove_by_id(record_id)
    except CoverageError as e:
        _fail(e)
    finally:
        database.close()

    console.print(f"[green]✓ Deleted coverage {record_id}[/green] ({label})")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
) -> None:
    """Run the Web API with uvicorn."""
    import uvicorn

    uvicorn.run("planner.web.api:create_app", host=host, port=port, reload=reload, factory=True)


if __name__ == "__main__":
    app()
