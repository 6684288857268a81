"""
Admin commands: content editing, visibility, question bank and resources.

Every command here is gated by the shared admin secret (``--password``).

Commands:
    certpath content add-exam TITLE DESCRIPTION
    certpath content add-module EXAM_ID TITLE
    certpath content rename-module MODULE_ID TITLE
    certpath content delete-module MODULE_ID --yes
    certpath content add-sub-topic MODULE_ID TITLE
    certpath content rename-sub-topic MODULE_ID OLD NEW
    certpath content add-point MODULE_ID SUB_TOPIC POINT
    certpath visibility toggle-module MODULE_ID
    certpath visibility toggle-sub-topic MODULE_ID SUB_TOPIC
    certpath visibility toggle-point MODULE_ID SUB_TOPIC POINT
    certpath bank import FILE [--exam ID]
    certpath bank export [--output FILE]
    certpath bank import-topic MODULE_ID SUB_TOPIC FILE [--point P]
    certpath bank export-topic MODULE_ID SUB_TOPIC [--point P] [--output FILE]
    certpath bank generate MODULE_ID [--sub-topic S] [--point P] [--count N] [--save]
    certpath bank bulk-generate MODULE_ID [--per-topic N]
    certpath bank delete-question MODULE_ID TOPIC QUESTION_ID --yes
    certpath resources add TITLE URL [--type video] [--category C]
    certpath resources delete RESOURCE_ID --yes
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from certpath.cli.common import (
    ADMIN_PASSWORD,
    ADMIN_USER,
    console,
    fail,
    get_engine,
    handle_errors,
    require_admin,
)
from certpath.content.models import Difficulty, ResourceType, topic_identifier
from certpath.sync.transfer import dump_json_text, load_json_text, safe_filename

content_app = typer.Typer(name="content", help="Edit the exam hierarchy", no_args_is_help=True)
visibility_app = typer.Typer(name="visibility", help="Show or hide content for learners", no_args_is_help=True)
bank_app = typer.Typer(name="bank", help="Question bank import, export and generation", no_args_is_help=True)
resources_app = typer.Typer(name="resources", help="Study resources in the learning hub", no_args_is_help=True)

YES = typer.Option(False, "--yes", "-y", help="Confirm the destructive operation")


def _read_file(path: Path) -> str:
    if not path.exists():
        fail(f"File not found: {path}")
    return path.read_text(encoding="utf-8")


# ============================================================================
# CONTENT
# ============================================================================


@content_app.command("add-exam")
def add_exam(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Exam title"),
    description: str = typer.Argument(..., help="Short description"),
    user: str = ADMIN_USER,
    password: str = ADMIN_PASSWORD,
):
    """Create a new exam folder."""
    require_admin(ctx, user, password)
    with handle_errors():
        exam = get_engine(ctx).add_exam(title, description)
    console.print(f"[green]Created exam {exam.id}: {exam.title}[/green]")


@content_app.command("add-module")
def add_module(
    ctx: typer.Context,
    exam_id: int = typer.Argument(..., help="Exam receiving the module"),
    title: str = typer.Argument(..., help="Module title"),
    user: str = ADMIN_USER,
    password: str = ADMIN_PASSWORD,
):
    """Append a module to an exam."""
    require_admin(ctx, user, password)
    with handle_errors():
        module = get_engine(ctx).add_module(exam_id, title)
    console.print(f"[green]Created module {module.id}: {module.title}[/green]")


@content_app.command("rename-module")
def rename_module(
    ctx: typer.Context,
    module_id: int = typer.Argument(...),
    title: str = typer.Argument(..., help="New title"),
    user: str = ADMIN_USER,
    password: str = ADMIN_PASSWORD,
):
    """Rename a module."""
    require_admin(ctx, user, password)
    with handle_errors():
        module = get_engine(ctx).rename_module(module_id, title)
    console.print(f"[green]Module {module.id} is now {module.title!r}[/green]")


@content_app.command("delete-module")
def delete_module(
    ctx: typer.Context,
    module_id: int = typer.Argument(...),
    yes: bool = YES,
    user: str = ADMIN_USER,
    password: str = ADMIN_PASSWORD,
):
    """Delete a module with its questions, visibility flags and unlocks."""
    require_admin(ctx, user, password)
    with handle_errors():
        module = get_engine(ctx).delete_module(module_id, confirm=yes)
    console.print(f"[green]Deleted module {module.id}: {module.title}[/green]")


@content_app.command("add-sub-topic")
def add_sub_topic(
    ctx: typer.Context,
    module_id: int = typer.Argument(...),
    title: str = typer.Argument(..., help="Sub-topic title"),
    user: str = ADMIN_USER,
    password: str = ADMIN_PASSWORD,
):
    """Append a sub-topic to a module."""
    require_admin(ctx, user, password)
    with handle_errors():
        sub_topic = get_engine(ctx).add_sub_topic(module_id, title)
    console.print(f"[green]Added sub-topic {sub_topic.title!r}[/green]")


@content_app.command("rename-sub-topic")
def rename_sub_topic(
    ctx: typer.Context,
    module_id: int = typer.Argument(...),
    old: str = typer.Argument(..., help="Current title"),
    new: str = typer.Argument(..., help="New title"),
    user: str = ADMIN_USER,
    password: str = ADMIN_PASSWORD,
):
    """Rename a sub-topic; questions, visibility and progress follow it."""
    require_admin(ctx, user, password)
    with handle_errors():
        changed = get_engine(ctx).rename_sub_topic(module_id, old, new)
    if changed:
        console.print(f"[green]Renamed {old!r} -> {new!r}[/green]")
    else:
        console.print("[dim]Title unchanged[/dim]")


@content_app.command("add-point")
def add_point(
    ctx: typer.Context,
    module_id: int = typer.Argument(...),
    sub_topic: str = typer.Argument(...),
    point: str = typer.Argument(..., help="Content point title"),
    user: str = ADMIN_USER,
    password: str = ADMIN_PASSWORD,
):
    """Add a content point to a sub-topic."""
    require_admin(ctx, user, password)
    with handle_errors():
        get_engine(ctx).add_content_point(module_id, sub_topic, point)
    console.print(f"[green]Added content point {point.strip()!r} to {sub_topic!r}[/green]")


# ============================================================================
# VISIBILITY
# ============================================================================


def _visibility_label(visible: bool) -> str:
    return "[green]visible[/green]" if visible else "[yellow]hidden[/yellow]"


@visibility_app.command("toggle-module")
def toggle_module(
    ctx: typer.Context,
    module_id: int = typer.Argument(...),
    user: str = ADMIN_USER,
    password: str = ADMIN_PASSWORD,
):
    """Show or hide a module."""
    require_admin(ctx, user, password)
    with handle_errors():
        visible = get_engine(ctx).toggle_module_visibility(module_id)
    console.print(f"Module {module_id} is now {_visibility_label(visible)}")


@visibility_app.command("toggle-sub-topic")
def toggle_sub_topic(
    ctx: typer.Context,
    module_id: int = typer.Argument(...),
    sub_topic: str = typer.Argument(...),
    user: str = ADMIN_USER,
    password: str = ADMIN_PASSWORD,
):
    """Show or hide a sub-topic."""
    require_admin(ctx, user, password)
    with handle_errors():
        visible = get_engine(ctx).toggle_sub_topic_visibility(module_id, sub_topic)
    console.print(f"{sub_topic!r} is now {_visibility_label(visible)}")


@visibility_app.command("toggle-point")
def toggle_point(
    ctx: typer.Context,
    module_id: int = typer.Argument(...),
    sub_topic: str = typer.Argument(...),
    point: str = typer.Argument(...),
    user: str = ADMIN_USER,
    password: str = ADMIN_PASSWORD,
):
    """Show or hide a content point."""
    require_admin(ctx, user, password)
    with handle_errors():
        visible = get_engine(ctx).toggle_content_point_visibility(module_id, sub_topic, point)
    console.print(f"{point!r} is now {_visibility_label(visible)}")


# ============================================================================
# QUESTION BANK
# ============================================================================


@bank_app.command("import")
def import_bank(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Title-keyed question bank JSON"),
    exam_id: Optional[int] = typer.Option(None, "--exam", help="Exam receiving new modules (default: first)"),
    user: str = ADMIN_USER,
    password: str = ADMIN_PASSWORD,
):
    """
    Merge a question bank file into the platform.

    Unknown modules, sub-topics and content points are created; topics in
    the file replace same-named topics. Nothing is ever deleted.
    """
    require_admin(ctx, user, password)
    text = _read_file(file)
    with handle_errors():
        report = get_engine(ctx).import_snapshot_text(text, target_exam_id=exam_id)

    console.print("[bold green]Import successful![/bold green]")
    console.print(f"  Modules added:        {report.modules_added}")
    console.print(f"  Sub-topics added:     {report.sub_topics_added}")
    console.print(f"  Content points added: {report.content_points_added}")
    console.print(f"  Topics merged:        {report.topics_merged}")


@bank_app.command("export")
def export_bank(
    ctx: typer.Context,
    output: Path = typer.Option(Path("certpath-question-bank.json"), "--output", "-o"),
    user: str = ADMIN_USER,
    password: str = ADMIN_PASSWORD,
):
    """Export the whole bank keyed by module title."""
    require_admin(ctx, user, password)
    with handle_errors():
        document = get_engine(ctx).export_all()
    output.write_text(dump_json_text(document), encoding="utf-8")
    console.print(f"[green]Exported {len(document)} modules to {output}[/green]")


@bank_app.command("import-topic")
def import_topic(
    ctx: typer.Context,
    module_id: int = typer.Argument(...),
    sub_topic: str = typer.Argument(...),
    file: Path = typer.Argument(..., help="JSON array of questions"),
    point: Optional[str] = typer.Option(None, "--point", help="Content point within the sub-topic"),
    user: str = ADMIN_USER,
    password: str = ADMIN_PASSWORD,
):
    """Replace one topic's questions with the contents of a file."""
    require_admin(ctx, user, password)
    text = _read_file(file)
    with handle_errors():
        count = get_engine(ctx).import_topic(module_id, sub_topic, point, load_json_text(text))
    console.print(f"[green]Imported {count} questions into {topic_identifier(sub_topic, point)!r}[/green]")


@bank_app.command("export-topic")
def export_topic(
    ctx: typer.Context,
    module_id: int = typer.Argument(...),
    sub_topic: str = typer.Argument(...),
    point: Optional[str] = typer.Option(None, "--point"),
    output: Optional[Path] = typer.Option(None, "--output", "-o"),
    user: str = ADMIN_USER,
    password: str = ADMIN_PASSWORD,
):
    """Export one topic's questions as a bare JSON array."""
    require_admin(ctx, user, password)
    with handle_errors():
        questions = get_engine(ctx).export_topic(module_id, sub_topic, point)
    output = output or Path(f"{safe_filename(point or sub_topic)}_questions.json")
    output.write_text(dump_json_text(questions), encoding="utf-8")
    console.print(f"[green]Exported {len(questions)} questions to {output}[/green]")


@bank_app.command("generate")
def generate(
    ctx: typer.Context,
    module_id: int = typer.Argument(...),
    sub_topic: Optional[str] = typer.Option(None, "--sub-topic"),
    point: Optional[str] = typer.Option(None, "--point"),
    count: int = typer.Option(5, "--count", "-c", min=1),
    difficulty: Optional[Difficulty] = typer.Option(None, "--difficulty"),
    save: bool = typer.Option(False, "--save", help="Append the generated questions to the topic"),
    user: str = ADMIN_USER,
    password: str = ADMIN_PASSWORD,
):
    """Generate questions with AI (sample questions when no API key is set)."""
    require_admin(ctx, user, password)
    if point and not sub_topic:
        fail("--point requires --sub-topic")
    engine = get_engine(ctx)
    with handle_errors():
        questions = engine.generate_questions(module_id, sub_topic, point, count=count, difficulty=difficulty)

    table = Table(title=f"Generated {len(questions)} questions")
    table.add_column("#", style="dim", width=3)
    table.add_column("Question")
    table.add_column("Answer", style="green")
    for i, question in enumerate(questions, 1):
        table.add_row(str(i), question.question, question.correct_answer)
    console.print(table)

    if save:
        if not sub_topic:
            fail("--save requires --sub-topic")
        with handle_errors():
            for question in questions:
                engine.add_question(module_id, sub_topic, point, question)
        console.print(f"[green]Saved {len(questions)} questions[/green]")


@bank_app.command("bulk-generate")
def bulk_generate(
    ctx: typer.Context,
    module_id: int = typer.Argument(...),
    per_topic: Optional[int] = typer.Option(None, "--per-topic", min=1),
    user: str = ADMIN_USER,
    password: str = ADMIN_PASSWORD,
):
    """Generate and append questions for every sub-topic of a module."""
    require_admin(ctx, user, password)
    with handle_errors():
        report = get_engine(ctx).bulk_generate_module(module_id, per_topic=per_topic)

    console.print(f"[green]Added {report.total_added} questions[/green]")
    for title, error in report.failures.items():
        console.print(f"[yellow]  {title}: {error}[/yellow]")


@bank_app.command("delete-question")
def delete_question(
    ctx: typer.Context,
    module_id: int = typer.Argument(...),
    topic: str = typer.Argument(..., help='Topic identifier ("Sub-topic" or "Sub-topic::Point")'),
    question_id: str = typer.Argument(...),
    yes: bool = YES,
    user: str = ADMIN_USER,
    password: str = ADMIN_PASSWORD,
):
    """Delete one question from a topic."""
    require_admin(ctx, user, password)
    with handle_errors():
        get_engine(ctx).delete_question(module_id, topic, question_id, confirm=yes)
    console.print(f"[green]Deleted question {question_id}[/green]")


# ============================================================================
# STUDY RESOURCES
# ============================================================================


@resources_app.command("list")
def list_resources(ctx: typer.Context):
    """List study resources."""
    resources = get_engine(ctx).resources()
    if not resources:
        console.print("[dim]No study resources yet.[/dim]")
        return
    table = Table(title="Study Resources")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Type")
    table.add_column("Category")
    table.add_column("URL")
    for resource in resources:
        table.add_row(resource.id, resource.title, resource.type.value, resource.category, resource.url)
    console.print(table)


@resources_app.command("add")
def add_resource(
    ctx: typer.Context,
    title: str = typer.Argument(...),
    url: str = typer.Argument(...),
    description: str = typer.Option("", "--description", "-d"),
    resource_type: ResourceType = typer.Option(ResourceType.ARTICLE, "--type"),
    category: str = typer.Option("General", "--category"),
    user: str = ADMIN_USER,
    password: str = ADMIN_PASSWORD,
):
    """Add a study resource."""
    require_admin(ctx, user, password)
    with handle_errors():
        resource = get_engine(ctx).add_resource(title, url, description, resource_type, category)
    console.print(f"[green]Added resource {resource.id}[/green]")


@resources_app.command("delete")
def delete_resource(
    ctx: typer.Context,
    resource_id: str = typer.Argument(...),
    yes: bool = YES,
    user: str = ADMIN_USER,
    password: str = ADMIN_PASSWORD,
):
    """Delete a study resource."""
    require_admin(ctx, user, password)
    with handle_errors():
        get_engine(ctx).delete_resource(resource_id, confirm=yes)
    console.print(f"[green]Deleted resource {resource_id}[/green]")
