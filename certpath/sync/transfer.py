"""
Export and per-topic import documents.

The full export is keyed by module title (portable across installs, where
module ids differ) and is structure complete: every sub-topic and content
point gets an entry, even when it has no questions yet. Bank entries of
modules that no longer exist are kept under ``ID:<module id>`` so nothing is
lost; the reconciler understands that form on the way back in.
"""
from __future__ import annotations

import json
import re
from typing import Any

from pydantic import ValidationError

from certpath.content.bank import QuestionBank
from certpath.content.hierarchy import ContentHierarchy
from certpath.content.models import Question, topic_identifier
from certpath.core.errors import ImportFormatError, NothingToExportError

_QUESTION_SHAPE = ("id", "question", "options", "correctAnswer")


def load_json_text(text: str) -> Any:
    """Parse JSON text, raising ImportFormatError with the parser's message."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ImportFormatError(f"Invalid JSON: {e.msg} (line {e.lineno}, column {e.colno})") from e


def dump_json_text(document: Any) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


def safe_filename(title: str) -> str:
    """``"Hashing::SHA-2"`` → ``"hashing__sha_2"``."""
    return re.sub(r"[^a-z0-9]", "_", title, flags=re.IGNORECASE).lower()


# =============================================================================
# Export
# =============================================================================


def export_all(hierarchy: ContentHierarchy, bank: QuestionBank) -> dict[str, dict[str, list[dict]]]:
    """
    Build the title-keyed export document.

    Modules sharing a title across exams are merged into one entry.

    Raises:
        NothingToExportError: no modules and no bank data
    """
    document: dict[str, dict[str, list[dict]]] = {}
    for module in hierarchy.iter_modules():
        topics = {
            topic: [q.to_document() for q in questions]
            for topic, questions in bank.topics(module.id).items()
        }
        for sub_topic in module.sub_topics:
            topics.setdefault(topic_identifier(sub_topic.title), [])
            for point in sub_topic.content:
                topics.setdefault(topic_identifier(sub_topic.title, point), [])
        document.setdefault(module.title, {}).update(topics)

    live_ids = set(hierarchy.module_ids())
    for module_id in bank.module_ids():
        if module_id not in live_ids:
            document[f"ID:{module_id}"] = {
                topic: [q.to_document() for q in questions]
                for topic, questions in bank.topics(module_id).items()
            }

    if not document:
        raise NothingToExportError("No data to export")
    return document


def export_topic(bank: QuestionBank, module_id: int, topic: str) -> list[dict]:
    """Bare question array of one topic."""
    questions = bank.questions(module_id, topic)
    if not questions:
        raise NothingToExportError(f"No questions to export for {topic!r}")
    return [q.to_document() for q in questions]


# =============================================================================
# Per-topic import
# =============================================================================


def parse_topic_import(document: object) -> list[Question]:
    """
    Validate a bare question array for a single topic.

    The array must be empty or start with a question-shaped object; every
    element is then parsed as a Question.
    """
    if not isinstance(document, list):
        raise ImportFormatError("Topic import must be a JSON array of questions")
    if document:
        first = document[0]
        if not isinstance(first, dict) or any(name not in first for name in _QUESTION_SHAPE):
            raise ImportFormatError("Invalid question format: expected id, question, options and correctAnswer")
        if not isinstance(first["options"], list):
            raise ImportFormatError("Invalid question format: options must be an array")

    questions = []
    for index, item in enumerate(document):
        try:
            questions.append(Question.model_validate(item))
        except ValidationError as e:
            first_error = e.errors()[0]
            raise ImportFormatError(f"Question {index + 1}: {first_error['msg']}") from e
    return questions
