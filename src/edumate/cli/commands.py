"""CLI commands for EduMate.

Commands:
- register / login / logout / whoami / delete-account: account and session
- results: past mock exam scores
- exam: sit a timed mock exam and upload the answer sheet
- notes generate|list|show|delete|export: study notes
- schedule generate|show|edit: weekly timetable
- ask: doubt solver
- resources: study resource search
- admin list|export|purge: device administration

The logged-in student is remembered between invocations.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from edumate.core.app import AppContext
from edumate.core.catalog import BOARDS, STANDARDS, available_subjects
from edumate.core.errors import (
    CollaboratorError,
    DuplicateIdentityError,
    EduMateError,
    StorageFullError,
)
from edumate.core.exam_engine import CountdownTicker, ExamStage
from edumate.core.progress import grade_band, percentage, recent_scores, weekday_name
from edumate.core.schedule import today_slots
from edumate.utils.text_utils import format_countdown

app = typer.Typer(
    name="edumate",
    help="AI study companion: mock exams, notes, timetables and doubt solving.",
    no_args_is_help=True,
)
notes_app = typer.Typer(help="Generate and manage study notes.", no_args_is_help=True)
schedule_app = typer.Typer(help="Weekly study timetable.", no_args_is_help=True)
admin_app = typer.Typer(help="Device administration (admin password required).", no_args_is_help=True)
app.add_typer(notes_app, name="notes")
app.add_typer(schedule_app, name="schedule")
app.add_typer(admin_app, name="admin")

console = Console()


def _open_context() -> AppContext:
    """Open the application context (replaced in tests)."""
    return AppContext.open()


def _error_exit(e: EduMateError) -> typer.Exit:
    console.print(f"[red]✗ {e.message}[/red]")
    return typer.Exit(code=1)


def _logged_in_context() -> AppContext:
    ctx = _open_context()
    if not ctx.session.is_active:
        console.print("[red]✗ Please log in first.[/red]")
        console.print("  [dim]edumate login EMAIL[/dim]")
        raise typer.Exit(code=1)
    return ctx


# =============================================================================
# ACCOUNT & SESSION
# =============================================================================


@app.command()
def register(
    name: str = typer.Option(..., "--name", "-n", prompt="Full name", help="Student's full name"),
    email: str = typer.Option(..., "--email", "-e", prompt="Email", help="Login email"),
    password: str = typer.Option(
        ..., "--password", prompt=True, hide_input=True, confirmation_prompt=True, help="Password"
    ),
    guardian: str = typer.Option(
        ..., "--guardian", "-g", prompt="Parent's mobile", help="Guardian contact for score alerts"
    ),
    board: str = typer.Option("CBSE", "--board", "-b", help=f"Board: {', '.join(BOARDS)}"),
    standard: str = typer.Option("10", "--standard", "-s", help=f"Class: {STANDARDS[0]}-{STANDARDS[-1]}"),
    stream: str | None = typer.Option(None, "--stream", help="Stream for class 11/12"),
    subjects: list[str] = typer.Option(
        [], "--subject", help="Subject to study (repeatable; defaults to the class syllabus)"
    ),
) -> None:
    """Create a student account and log in."""
    ctx = _open_context()
    form = {
        "name": name,
        "email": email,
        "secret": password,
        "guardian_contact": guardian,
        "board": board,
        "standard": standard,
        "stream": stream,
        "subjects": subjects or list(available_subjects(standard, stream)),
    }

    try:
        session = ctx.register(form)
    except DuplicateIdentityError as e:
        console.print(f"[yellow]⚠ {e.message}[/yellow]")
        console.print("  [dim]Use 'edumate login' instead.[/dim]")
        raise typer.Exit(code=1)
    except EduMateError as e:
        raise _error_exit(e)

    profile = session.profile
    console.print(f"[green]✓ Welcome, {profile.name}![/green]")
    console.print(f"  [dim]board:[/dim]    {profile.board}")
    console.print(f"  [dim]class:[/dim]    {profile.standard}" + (f" ({profile.stream})" if profile.stream else ""))
    console.print(f"  [dim]subjects:[/dim] {', '.join(profile.subjects)}")


@app.command()
def login(
    email: str = typer.Argument(..., help="Registered email"),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True, help="Password"),
) -> None:
    """Log in as a registered student."""
    ctx = _open_context()
    try:
        session = ctx.login(email, password)
    except EduMateError as e:
        raise _error_exit(e)

    console.print(f"[green]✓ Logged in as {session.profile.name}[/green]")
    console.print(
        f"  [dim]{len(session.results)} tests, {len(session.notes)} saved notes, "
        f"{len(session.schedule)} timetable days[/dim]"
    )


@app.command()
def logout() -> None:
    """Log out. Your data stays on this device."""
    ctx = _open_context()
    if not ctx.session.is_active:
        console.print("[dim]Nobody is logged in.[/dim]")
        return
    name = ctx.session.require().profile.name
    ctx.logout()
    console.print(f"[green]✓ Goodbye, {name}[/green]")


@app.command()
def whoami() -> None:
    """Show the logged-in student and today's plan."""
    ctx = _logged_in_context()
    session = ctx.session.require()
    profile = session.profile

    header = (
        f"[bold]{profile.name}[/bold] <{profile.email}>\n"
        f"{profile.board} · Class {profile.standard}"
        + (f" · {profile.stream}" if profile.stream else "")
        + f"\nGuardian: {profile.guardian_contact}\n"
        f"Tests taken: {len(session.results)}"
    )
    console.print(Panel(header, title="[bold]Student[/bold]", expand=False))

    day = weekday_name()
    slots = today_slots(session.schedule, day)
    if not slots:
        console.print(f"[dim]No timetable for {day}. Try 'edumate schedule generate'.[/dim]")
        return

    table = Table(title=f"Today ({day})", show_header=True, header_style="bold")
    table.add_column("Time")
    table.add_column("Activity")
    table.add_column("Type")
    for slot in slots:
        table.add_row(slot.time, slot.activity, slot.category.value)
    console.print(table)


@app.command(name="delete-account")
def delete_account(
    email: str = typer.Option(..., "--email", prompt="Confirm your email", help="Account email"),
    password: str = typer.Option(
        ..., "--password", prompt="Confirm your password", hide_input=True, help="Account password"
    ),
) -> None:
    """Permanently delete your account, results, notes and timetable."""
    ctx = _logged_in_context()
    try:
        ctx.delete_account(email, password)
    except EduMateError as e:
        raise _error_exit(e)
    console.print("[green]✓ Account and all data deleted.[/green]")


@app.command()
def results() -> None:
    """List past mock exam results."""
    ctx = _logged_in_context()
    history = ctx.session.require().results
    if not history:
        console.print("[dim]No tests taken yet. Try 'edumate exam'.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Date")
    table.add_column("Subject")
    table.add_column("Chapter")
    table.add_column("Score", justify="right")
    for result in reversed(history):
        pct = percentage(result)
        table.add_row(
            result.created_at[:10],
            result.subject,
            result.chapter,
            f"[{grade_band(pct)}]{result.score:g}/{result.total:g} ({pct}%)[/{grade_band(pct)}]",
        )
    console.print(table)

    points = recent_scores(history)
    console.print("\n[bold]Recent performance[/bold]")
    for point in points:
        bar = "█" * (point.percentage // 5)
        console.print(f"  {point.label:<12} [{grade_band(point.percentage)}]{bar}[/] {point.percentage}%")


# =============================================================================
# MOCK EXAM
# =============================================================================


def _print_questions(questions: tuple[str, ...]) -> None:
    for i, question in enumerate(questions, 1):
        console.print(f"[bold]Q{i}.[/bold] {question}")


@app.command()
def exam(
    subject: str = typer.Argument(..., help="Subject to be tested on"),
    chapter: str | None = typer.Option(None, "--chapter", "-c", help="Chapter (chapter test)"),
    full_syllabus: bool = typer.Option(
        False, "--full-syllabus", "-F", help="Full syllabus mock (3 hours)"
    ),
    answers: Path | None = typer.Option(
        None, "--answers", "-a", help="Answer sheet image to upload when done"
    ),
) -> None:
    """Sit a timed mock exam, then upload a photo of your answers."""
    ctx = _logged_in_context()
    engine = ctx.exam

    try:
        with console.status("[blue]Generating question paper...[/blue]"):
            engine.start(subject, chapter=chapter, full_syllabus=full_syllabus)
    except EduMateError as e:
        raise _error_exit(e)

    exam_state = engine.exam
    label = exam_state.request.chapter_label if exam_state else subject
    console.print(
        Panel(
            f"{subject} · {label}\nTime allowed: {format_countdown(engine.remaining)}",
            title="[bold]Mock exam[/bold]",
            expand=False,
        )
    )
    _print_questions(engine.questions)

    def on_tick(remaining: int) -> None:
        if remaining == 0:
            console.print("\n[yellow]⏰ Time is up! Upload your answer sheet.[/yellow]")

    ticker = CountdownTicker(
        engine,
        interval=ctx.config.exam.tick_interval_seconds,
        on_tick=on_tick,
    )
    ticker.start()

    try:
        while engine.stage == ExamStage.ACTIVE:
            command = typer.prompt(
                "\n[t]ime left, [n]ote N TEXT, [f]inish, [q]uit", default="t"
            ).strip()
            if engine.stage != ExamStage.ACTIVE:
                break

            if command in ("t", "time"):
                console.print(f"⏳ {format_countdown(engine.tick())}")
            elif command.startswith("n"):
                parts = command.split(maxsplit=2)
                try:
                    engine.annotate_question(int(parts[1]) - 1, parts[2] if len(parts) > 2 else "")
                    console.print("[green]✓ Note saved[/green]")
                except (IndexError, ValueError):
                    console.print("[yellow]Usage: n QUESTION_NUMBER TEXT[/yellow]")
                except EduMateError as e:
                    console.print(f"[red]✗ {e.message}[/red]")
            elif command in ("f", "finish"):
                try:
                    engine.finish_early()
                except EduMateError as e:
                    console.print(f"[yellow]{e.message}[/yellow]")
            elif command in ("q", "quit"):
                engine.abandon()
                console.print("[yellow]Exam abandoned. Nothing was saved.[/yellow]")
                return
    finally:
        ticker.stop()

    image_path = answers
    while engine.stage == ExamStage.UPLOAD:
        if image_path is None:
            raw = typer.prompt("Path to a photo of your answer sheet (empty to quit)", default="").strip()
            if not raw:
                engine.abandon()
                console.print("[yellow]Exam abandoned. Nothing was saved.[/yellow]")
                raise typer.Exit(code=1)
            image_path = Path(raw).expanduser()

        if not image_path.is_file():
            console.print(f"[red]✗ File not found: {image_path}[/red]")
            image_path = None
            continue

        try:
            with console.status("[blue]Grading your answers...[/blue]"):
                engine.submit(image_path.read_bytes())
        except (CollaboratorError, StorageFullError) as e:
            console.print(f"[red]✗ {e.message}[/red]")
            if not typer.confirm("Try again?", default=True):
                engine.abandon()
                raise typer.Exit(code=1)
        except EduMateError as e:
            console.print(f"[red]✗ {e.message}[/red]")
            image_path = None

    result = engine.result
    if result is None:
        raise typer.Exit(code=1)

    pct = percentage(result)
    console.print(
        Panel(
            f"[{grade_band(pct)}]{result.score:g}/{result.total:g} ({pct}%)[/{grade_band(pct)}]",
            title=f"[bold]{result.subject} · {result.chapter}[/bold]",
            expand=False,
        )
    )
    console.print("\n[bold]Feedback[/bold]")
    console.print(Markdown(result.feedback or "-"))
    console.print("\n[bold]Correct answers[/bold]")
    console.print(Markdown(result.correct_answers or "-"))
    engine.acknowledge()


# =============================================================================
# NOTES
# =============================================================================


@notes_app.command("generate")
def notes_generate(
    subject: str = typer.Argument(..., help="Subject"),
    chapter: str = typer.Argument(..., help="Chapter or topic"),
    save: bool = typer.Option(False, "--save", "-s", help="Save without asking"),
) -> None:
    """Generate study notes for a chapter."""
    ctx = _logged_in_context()
    try:
        with console.status("[blue]Writing notes...[/blue]"):
            draft = ctx.notes.generate(subject, chapter)
    except EduMateError as e:
        raise _error_exit(e)

    console.print(Panel(Markdown(draft.content), title=f"[bold]{draft.chapter}[/bold]"))

    if save or typer.confirm("Save these notes?", default=True):
        try:
            ctx.notes.save(draft)
        except EduMateError as e:
            raise _error_exit(e)
        console.print(f"[green]✓ Saved[/green] [dim]id:[/dim] {draft.id}")


@notes_app.command("list")
def notes_list() -> None:
    """List saved notes."""
    ctx = _logged_in_context()
    saved = ctx.notes.list_notes()
    if not saved:
        console.print("[dim]No saved notes.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID")
    table.add_column("Subject")
    table.add_column("Chapter")
    table.add_column("Saved")
    for note in saved:
        table.add_row(note.id, note.subject, note.chapter, note.created_at[:10])
    console.print(table)


@notes_app.command("show")
def notes_show(note_id: str = typer.Argument(..., help="Note ID")) -> None:
    """Show a saved note."""
    ctx = _logged_in_context()
    try:
        note = ctx.notes.get(note_id)
    except EduMateError as e:
        raise _error_exit(e)
    console.print(Panel(Markdown(note.content), title=f"[bold]{note.subject} · {note.chapter}[/bold]"))


@notes_app.command("delete")
def notes_delete(note_id: str = typer.Argument(..., help="Note ID")) -> None:
    """Delete a saved note."""
    ctx = _logged_in_context()
    if ctx.notes.delete(note_id):
        console.print(f"[green]✓ Deleted {note_id}[/green]")
    else:
        console.print(f"[dim]No saved note {note_id}; nothing to delete.[/dim]")


@notes_app.command("export")
def notes_export(
    note_id: str = typer.Argument(..., help="Note ID"),
    out: Path = typer.Option(Path("."), "--out", "-o", help="Output directory"),
) -> None:
    """Export a saved note as a Markdown file."""
    ctx = _logged_in_context()
    try:
        path = ctx.notes.export(note_id, out)
    except EduMateError as e:
        raise _error_exit(e)
    console.print(f"[green]✓ Exported[/green] {path}")


# =============================================================================
# SCHEDULE
# =============================================================================


def _print_schedule(ctx: AppContext, day: str | None = None) -> None:
    entries = ctx.schedule.entries
    if day:
        entries = [e for e in entries if e.day.lower() == day.lower()]
    if not entries:
        console.print("[dim]No timetable yet. Try 'edumate schedule generate'.[/dim]")
        return

    for entry in entries:
        table = Table(title=entry.day, show_header=True, header_style="bold")
        table.add_column("#", justify="right")
        table.add_column("Time")
        table.add_column("Activity")
        table.add_column("Type")
        for i, slot in enumerate(entry.slots, 1):
            table.add_row(str(i), slot.time, slot.activity, slot.category.value)
        console.print(table)


@schedule_app.command("generate")
def schedule_generate(
    school_end: str = typer.Option("15:30", "--school-end", "-e", help="When school ends (HH:MM)"),
) -> None:
    """Generate and save a new weekly timetable."""
    ctx = _logged_in_context()
    try:
        with console.status("[blue]Planning your week...[/blue]"):
            ctx.schedule.regenerate(school_end)
    except EduMateError as e:
        raise _error_exit(e)
    console.print("[green]✓ Timetable saved[/green]")
    _print_schedule(ctx)


@schedule_app.command("show")
def schedule_show(
    day: str | None = typer.Option(None, "--day", "-d", help="Only this weekday"),
) -> None:
    """Show the weekly timetable."""
    ctx = _logged_in_context()
    _print_schedule(ctx, day)


@schedule_app.command("edit")
def schedule_edit(
    day: str = typer.Argument(..., help="Weekday, e.g. Monday"),
    slot: int = typer.Argument(..., help="Slot number as shown by 'schedule show'"),
    field: str = typer.Argument(..., help="time, activity or type"),
    value: str = typer.Argument(..., help="New value"),
) -> None:
    """Change one timetable slot and save."""
    ctx = _logged_in_context()
    try:
        ctx.schedule.edit_slot(day.capitalize(), slot - 1, field, value)
        ctx.schedule.save()
    except EduMateError as e:
        raise _error_exit(e)
    console.print(f"[green]✓ Updated {day.capitalize()} slot {slot}[/green]")


# =============================================================================
# DOUBTS & RESOURCES
# =============================================================================


@app.command()
def ask(
    question: str | None = typer.Argument(None, help="Your doubt (omit for a conversation)"),
) -> None:
    """Ask the AI tutor a doubt."""
    ctx = _logged_in_context()
    solver = ctx.doubt_solver()

    if question is None:
        console.print(f"[cyan]{solver.messages[0].text}[/cyan]")
        console.print("[dim]Empty line to stop.[/dim]")

    while True:
        if question is None:
            text = typer.prompt("\nYou", default="", show_default=False).strip()
            if not text:
                return
        else:
            text = question

        try:
            with console.status("[blue]Thinking...[/blue]"):
                answer = solver.ask(text)
        except EduMateError as e:
            raise _error_exit(e)
        console.print(Markdown(answer))

        if question is not None:
            return


@app.command()
def resources(query: str = typer.Argument(..., help="Topic to find material for")) -> None:
    """Find study resources and past papers."""
    ctx = _logged_in_context()
    try:
        with console.status("[blue]Searching...[/blue]"):
            found = ctx.search_resources(query)
    except EduMateError as e:
        raise _error_exit(e)

    if not found:
        console.print("[dim]No resources found.[/dim]")
        return
    for item in found:
        console.print(f"• [bold]{item.title}[/bold]\n  [blue]{item.url}[/blue]")


# =============================================================================
# ADMIN
# =============================================================================


def _admin_context(password: str) -> AppContext:
    ctx = _open_context()
    try:
        ctx.admin.unlock(password)
    except EduMateError as e:
        raise _error_exit(e)
    return ctx


_ADMIN_PASSWORD = typer.Option(
    ..., "--password", prompt="Admin password", hide_input=True, help="Admin password"
)


@admin_app.command("list")
def admin_list(password: str = _ADMIN_PASSWORD) -> None:
    """List every student registered on this device."""
    ctx = _admin_context(password)
    summaries = ctx.admin.list_accounts()
    if not summaries:
        console.print("[dim]No students registered.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("Email")
    table.add_column("Class")
    table.add_column("Tests", justify="right")
    table.add_column("Last active")
    for s in summaries:
        table.add_row(
            s.name,
            s.email,
            f"{s.board} {s.standard}" + (f" {s.stream}" if s.stream else ""),
            str(s.test_count),
            s.last_active or "-",
        )
    console.print(table)


@admin_app.command("export")
def admin_export(
    path: Path = typer.Argument(Path("edumate_students.json"), help="Output JSON file"),
    password: str = _ADMIN_PASSWORD,
) -> None:
    """Export student summaries (no passwords) as JSON."""
    ctx = _admin_context(password)
    written = ctx.admin.export_accounts(path)
    console.print(f"[green]✓ Exported[/green] {written}")


@admin_app.command("purge")
def admin_purge(
    email: str = typer.Argument(..., help="Student email"),
    password: str = _ADMIN_PASSWORD,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a student and all of their data."""
    ctx = _admin_context(password)
    if not yes and not typer.confirm(f"Delete {email} and all their data?"):
        raise typer.Exit(code=1)
    try:
        ctx.admin.purge_account(email)
    except EduMateError as e:
        raise _error_exit(e)
    console.print(f"[green]✓ Deleted {email}[/green]")


if __name__ == "__main__":
    app()
