"""
Typer CLI for certpath.

Learner commands:
    certpath exams                   - List exams
    certpath modules EXAM_ID         - Modules of an exam with lock state
    certpath topics MODULE_ID        - Sub-topics, content points and question counts
    certpath quiz MODULE_ID SUB      - Take a quiz (study or exam mode, optional daily plan)
    certpath unlock CODE             - Bulk unlock by code, exam title or module title
    certpath progress                - Quiz statistics and per-module performance
    certpath sync                    - Fetch the remote snapshot now

Admin commands (see ``certpath.cli.admin``):
    certpath content ...             - Edit exams, modules, sub-topics, content points
    certpath visibility ...          - Show or hide content
    certpath bank ...                - Import, export and generate questions
    certpath resources ...           - Study resources

Usage:
    certpath --help
    certpath quiz 1 "Footprinting Concepts" --mode exam
    certpath quiz 1 "Footprinting Concepts" --day 2
    certpath bank import question-bank.json --password ...
"""

from __future__ import annotations

import sys
import time
from typing import Optional

import typer
from loguru import logger
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from certpath.cli.admin import bank_app, content_app, resources_app, visibility_app
from certpath.cli.common import CliState, console, fail, get_engine, get_state, handle_errors
from certpath.config import get_settings
from certpath.content.models import topic_identifier
from certpath.progress.advancer import UnlockOutcome
from certpath.quiz.history import score_answers
from certpath.quiz.selector import QuizConfig, QuizMode, daily_config, total_days
from certpath.sync.remote import SyncState

app = typer.Typer(
    help="certpath: certification training content, quizzes and progression",
    no_args_is_help=True,
)

app.add_typer(content_app, name="content")
app.add_typer(visibility_app, name="visibility")
app.add_typer(bank_app, name="bank")
app.add_typer(resources_app, name="resources")


@app.callback()
def main_callback(
    ctx: typer.Context,
    store: Optional[str] = typer.Option(
        None,
        "--store",
        help="Store URL (file://DIR, sqlite:///FILE, memory://); overrides CERTPATH_STORE_URL",
    ),
):
    settings = get_settings()
    if store:
        settings = settings.model_copy(update={"store_url": store})
    ctx.obj = CliState(settings=settings)


# ============================================================================
# BROWSING
# ============================================================================


@app.command("exams")
def list_exams(ctx: typer.Context):
    """List exams."""
    exams = get_engine(ctx).exams()
    if not exams:
        console.print("[dim]No exams yet.[/dim]")
        return
    table = Table(title="Exams")
    table.add_column("ID", style="dim", width=4)
    table.add_column("Title", style="cyan")
    table.add_column("Modules", justify="right")
    table.add_column("Description")
    for exam in exams:
        table.add_row(str(exam.id), exam.title, str(len(exam.modules)), exam.description)
    console.print(table)


@app.command("modules")
def list_modules(
    ctx: typer.Context,
    exam_id: int = typer.Argument(..., help="Exam ID"),
    show_hidden: bool = typer.Option(False, "--all", help="Include hidden modules"),
):
    """List the modules of an exam with their lock state."""
    engine = get_engine(ctx)
    with handle_errors():
        exam = engine.get_exam(exam_id)
    modules = exam.modules if show_hidden else engine.visible_modules(exam_id)

    table = Table(title=exam.title)
    table.add_column("ID", style="dim", width=4)
    table.add_column("Module", style="cyan")
    table.add_column("Sub-topics", justify="right")
    table.add_column("Status")
    for module in modules:
        status = "[green]unlocked[/green]" if engine.is_module_unlocked(module.id) else "[dim]locked[/dim]"
        if not engine.is_module_visible(module.id):
            status += " [yellow](hidden)[/yellow]"
        table.add_row(str(module.id), module.title, str(len(module.sub_topics)), status)
    console.print(table)


@app.command("topics")
def list_topics(
    ctx: typer.Context,
    module_id: int = typer.Argument(..., help="Module ID"),
):
    """Show a module's sub-topics, content points and question counts."""
    engine = get_engine(ctx)
    with handle_errors():
        module = engine.get_module(module_id)
        counts = engine.topic_counts(module_id)

    table = Table(title=module.title)
    table.add_column("Topic", style="cyan")
    table.add_column("Questions", justify="right")
    table.add_column("Status")
    for sub_topic in module.sub_topics:
        unlocked = engine.is_sub_topic_unlocked(module_id, sub_topic.title)
        status = "[green]unlocked[/green]" if unlocked else "[dim]locked[/dim]"
        if not engine.is_sub_topic_visible(module_id, sub_topic.title):
            status += " [yellow](hidden)[/yellow]"
        table.add_row(sub_topic.title, str(counts.get(sub_topic.title, 0)), status)
        for point in sub_topic.content:
            key = topic_identifier(sub_topic.title, point)
            hidden = "" if engine.is_content_point_visible(module_id, sub_topic.title, point) else "[yellow](hidden)[/yellow]"
            table.add_row(f"  - {point}", str(counts.get(key, 0)), hidden)
    console.print(table)


# ============================================================================
# QUIZ
# ============================================================================


@app.command("quiz")
def quiz(
    ctx: typer.Context,
    module_id: int = typer.Argument(..., help="Module ID"),
    sub_topic: str = typer.Argument(..., help="Sub-topic title"),
    point: Optional[str] = typer.Option(None, "--point", help="Content point within the sub-topic"),
    mode: QuizMode = typer.Option(QuizMode.STUDY, "--mode", "-m", help="study (practice) or exam (counts for progress)"),
    count: Optional[int] = typer.Option(None, "--count", "-c", min=1, help="Questions in a random study quiz"),
    day: Optional[int] = typer.Option(None, "--day", "-d", min=1, help="Day of the sequential daily plan"),
):
    """
    Take a quiz on a sub-topic or content point.

    Exam mode asks every question of the topic; a score of 80% or more on a
    sub-topic unlocks the next one (or the next module).
    """
    engine = get_engine(ctx)
    settings = get_state(ctx).settings

    if not engine.is_sub_topic_unlocked(module_id, sub_topic):
        fail(f"{sub_topic!r} is locked - pass the previous sub-topic in exam mode first")

    with handle_errors():
        available = engine.question_count(module_id, topic_identifier(sub_topic, point))
        if day is not None and mode is QuizMode.STUDY and available:
            try:
                config = daily_config(day, available, settings.questions_per_day, mode)
            except ValueError as e:
                fail(str(e))
            console.print(f"[dim]Day {day} of {total_days(available, settings.questions_per_day)}[/dim]")
        else:
            config = QuizConfig(count=count or settings.questions_per_day, mode=mode)
        session = engine.start_quiz(module_id, sub_topic, point, config)

    console.print(Panel(f"[bold]{session.module_title}[/bold]\n{session.title} - {mode.value} mode", border_style="cyan"))

    answers: dict[str, str] = {}
    started = time.monotonic()
    for index, question in enumerate(session.questions, 1):
        console.print(f"\n[bold cyan]Q{index}.[/bold cyan] {question.question}")
        for number, option in enumerate(question.options, 1):
            console.print(f"  {number}) {option}")
        choice = Prompt.ask("[cyan]>_[/cyan]", choices=[str(n) for n in range(1, len(question.options) + 1)])
        answers[question.id] = question.options[int(choice) - 1]
        if mode is QuizMode.STUDY:
            if answers[question.id] == question.correct_answer:
                console.print("[green]Correct![/green]")
            else:
                console.print(f"[red]Incorrect.[/red] Answer: {question.correct_answer}")
            if question.explanation:
                console.print(f"[dim]{question.explanation}[/dim]")

    result = score_answers(session.questions, answers, elapsed_seconds=time.monotonic() - started)
    with handle_errors():
        completion = engine.complete_quiz(session, result)

    color = "green" if result.score >= settings.pass_threshold else "yellow"
    console.print(
        f"\n[bold {color}]Score: {result.score}%[/bold {color}] "
        f"({result.correct_count}/{result.total_questions} correct)"
    )
    if completion.event is not None:
        console.print(f"[bold green]{completion.event.message}[/bold green]")


@app.command("unlock")
def unlock(
    ctx: typer.Context,
    code: str = typer.Argument(..., help="Unlock code, exam title or module title"),
):
    """Unlock content by code."""
    result = get_engine(ctx).apply_unlock_code(code)
    messages = {
        UnlockOutcome.ALL_UNLOCKED: "[green]All content unlocked.[/green]",
        UnlockOutcome.RESET: "[yellow]Progress reset to the first module of each exam.[/yellow]",
        UnlockOutcome.EXAM_UNLOCKED: f"[green]Unlocked every module of {result.matched_title}.[/green]",
        UnlockOutcome.MODULE_UNLOCKED: f"[green]Unlocked {result.matched_title}.[/green]",
        UnlockOutcome.NO_MATCH: "[dim]Nothing matched that code.[/dim]",
    }
    console.print(messages[result.outcome])


# ============================================================================
# PROGRESS
# ============================================================================


@app.command("progress")
def progress(
    ctx: typer.Context,
    clear: bool = typer.Option(False, "--clear", help="Delete the quiz history"),
):
    """Show quiz statistics and per-module performance."""
    engine = get_engine(ctx)

    if clear:
        if not Confirm.ask("[yellow]Delete the whole quiz history?[/yellow]", default=False):
            raise typer.Exit(0)
        with handle_errors():
            removed = engine.clear_history(confirm=True)
        console.print(f"[green]Removed {removed} attempts[/green]")
        return

    stats = engine.history_stats()
    console.print(
        Panel(
            f"Attempts: [bold]{stats.total_attempts}[/bold]   "
            f"Average: [bold]{stats.average_score}%[/bold]   "
            f"Best: [bold]{stats.best_score}%[/bold]   "
            f"Study time: [bold]{stats.study_time // 60}m {stats.study_time % 60}s[/bold]",
            title="Progress",
            border_style="cyan",
        )
    )

    table = Table(title="Module Performance")
    table.add_column("Module", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Correct", justify="right")
    table.add_column("Status")
    for row in engine.module_performance():
        table.add_row(row.title, f"{row.score}%", f"{row.correct}/{row.total}", row.status)
    console.print(table)


# ============================================================================
# SYNC
# ============================================================================


@app.command("sync")
def sync(ctx: typer.Context):
    """Fetch the remote content snapshot and merge it."""
    state = get_state(ctx)
    state.engine  # opens the store and kicks off the start-up sync
    remote = state.remote
    if remote is None:
        fail("No sync URL configured (set CERTPATH_SYNC_URL)")

    with console.status("[cyan]Syncing...[/cyan]"):
        remote.wait()
        status = remote.sync_now()

    if status.state is SyncState.SYNCED:
        console.print(f"[green]{status.last_report.summary()}[/green]")
    elif status.state is SyncState.NOT_FOUND:
        console.print("[dim]No remote snapshot published yet.[/dim]")
    else:
        fail(status.error_message or "Sync failed")


def main() -> None:
    """Console script entry point."""
    settings = get_settings()
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        format="<level>{message}</level>",
    )
    app()


if __name__ == "__main__":
    main()
