"""
Snapshot reconciler - folds an external content document into live state.

A snapshot maps module titles (or legacy numeric ids) to topic maps:

    {
        "Cryptography": {
            "Hashing": [ {question}, ... ],
            "Hashing::SHA-2": [ ... ]
        },
        "ID:7": { ... }
    }

The merge only ever adds structure or overwrites whole topics; it never
removes modules, sub-topics, content points, questions or visibility flags.
The whole document is validated before anything is touched, and the engine
runs the merge on working copies that are swapped in only on success.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field

from loguru import logger
from pydantic import ValidationError

from certpath.content.bank import QuestionBank
from certpath.content.hierarchy import ContentHierarchy
from certpath.content.models import (
    DEFAULT_MODULE_COLOR,
    IMPORTED_MODULE_ICON,
    Exam,
    Module,
    Question,
    clean_title,
    split_topic_identifier,
    topic_identifier,
)
from certpath.content.visibility import VisibilityOverlay
from certpath.core.errors import ImportFormatError

LEGACY_ID_PATTERN = re.compile(r"^ID:([0-9]+)$")
NUMERIC_KEY_PATTERN = re.compile(r"^[0-9]+$")

Snapshot = dict[str, dict[str, list[Question]]]


@dataclass
class ReconcileReport:
    """Result of a merge."""

    modules_added: int = 0
    sub_topics_added: int = 0
    content_points_added: int = 0
    topics_merged: int = 0
    added_module_ids: list[int] = field(default_factory=list)

    @property
    def changed_structure(self) -> bool:
        return bool(self.modules_added or self.sub_topics_added or self.content_points_added)

    def summary(self) -> str:
        return (
            f"{self.topics_merged} topics merged, {self.modules_added} modules, "
            f"{self.sub_topics_added} sub-topics and {self.content_points_added} content points added"
        )


# =============================================================================
# Validation
# =============================================================================


def _normalize_topic(identifier: str) -> str:
    sub_topic, content_point = split_topic_identifier(identifier)
    sub_topic = clean_title(sub_topic)
    if not sub_topic:
        raise ImportFormatError(f"Topic {identifier!r} has an empty sub-topic title")
    return topic_identifier(sub_topic, clean_title(content_point) or None)


def validate_snapshot(document: object) -> Snapshot:
    """
    Check the shape of a snapshot and parse every question.

    Module keys and topic identifiers are trimmed. Keys that collide after
    trimming are merged topic by topic (later entries win).

    Raises:
        ImportFormatError: naming the first problem found
    """
    if document is None:
        raise ImportFormatError("Import document is empty (null)")
    if isinstance(document, list):
        raise ImportFormatError("Import document must be an object keyed by module title, not an array")
    if not isinstance(document, dict):
        raise ImportFormatError(f"Import document must be an object, got {type(document).__name__}")

    snapshot: Snapshot = {}
    for raw_key, topic_map in document.items():
        module_key = clean_title(str(raw_key))
        if not module_key:
            raise ImportFormatError("Import document contains an empty module title")
        if not isinstance(topic_map, dict):
            raise ImportFormatError(f"Module {module_key!r}: expected an object of topics")

        topics = snapshot.setdefault(module_key, {})
        for raw_topic, questions in topic_map.items():
            topic = _normalize_topic(str(raw_topic))
            if not isinstance(questions, list):
                raise ImportFormatError(f"Module {module_key!r}, topic {topic!r}: expected a list of questions")
            parsed = []
            for index, question in enumerate(questions):
                try:
                    parsed.append(Question.model_validate(question))
                except ValidationError as e:
                    first = e.errors()[0]
                    location = ".".join(str(part) for part in first["loc"]) or "question"
                    raise ImportFormatError(
                        f"Module {module_key!r}, topic {topic!r}, question {index + 1}: {location}: {first['msg']}"
                    ) from e
            topics[topic] = parsed
    return snapshot


# =============================================================================
# Merge
# =============================================================================


class Reconciler:
    """
    Merge validated snapshots into a hierarchy, bank and visibility overlay.

    The objects passed in are mutated in place; pass copies when the caller
    needs to keep the originals on failure.
    """

    def __init__(self, hierarchy: ContentHierarchy, bank: QuestionBank, visibility: VisibilityOverlay):
        self.hierarchy = hierarchy
        self.bank = bank
        self.visibility = visibility

    def merge(self, document: object, target_exam_id: int | None = None) -> ReconcileReport:
        """
        Validate and merge a raw snapshot document.

        Args:
            document: Parsed JSON (object keyed by module title or legacy id)
            target_exam_id: Exam receiving newly created modules (first exam when None)
        """
        snapshot = validate_snapshot(document)
        if target_exam_id is not None:
            self.hierarchy.get_exam(target_exam_id)

        report = ReconcileReport()
        for module_key, topics in snapshot.items():
            module = self._resolve_module(module_key, target_exam_id, report)
            self.bank.merge_topics(module.id, topics)
            report.topics_merged += len(topics)
            for topic in topics:
                self._sync_structure(module, topic, report)

        logger.info("Reconciled snapshot: {}", report.summary())
        return report

    def _target_exam(self, target_exam_id: int | None) -> Exam:
        if target_exam_id is not None:
            return self.hierarchy.get_exam(target_exam_id)
        return self.hierarchy.ensure_default_exam()

    def _resolve_module(self, key: str, target_exam_id: int | None, report: ReconcileReport) -> Module:
        module = self.hierarchy.find_module_by_title(key)
        if module is not None:
            return module

        title = key
        legacy = LEGACY_ID_PATTERN.match(key)
        if legacy or NUMERIC_KEY_PATTERN.match(key):
            legacy_id = int(legacy.group(1) if legacy else key)
            module = self.hierarchy.find_module(legacy_id)
            if module is not None:
                return module
            if legacy:
                title = f"Imported Module {legacy_id}"
                existing = self.hierarchy.find_module_by_title(title)
                if existing is not None:
                    return existing

        exam = self._target_exam(target_exam_id)
        module = self.hierarchy.add_module(exam.id, title, icon=IMPORTED_MODULE_ICON, color=DEFAULT_MODULE_COLOR)
        self.visibility.mark_module_visible(module.id)
        report.modules_added += 1
        report.added_module_ids.append(module.id)
        logger.debug("Import created module {} ({}) in exam {}", module.id, module.title, exam.id)
        return module

    def _sync_structure(self, module: Module, topic: str, report: ReconcileReport) -> None:
        sub_title, point = split_topic_identifier(topic)
        sub_topic = module.find_sub_topic(sub_title)
        if sub_topic is None:
            sub_topic = self.hierarchy.add_sub_topic(module.id, sub_title)
            self.visibility.mark_sub_topic_visible(module.id, sub_title)
            report.sub_topics_added += 1

        if point and point not in sub_topic.content:
            self.hierarchy.add_content_point(module.id, sub_title, point)
            self.visibility.mark_content_point_visible(module.id, sub_title, point)
            report.content_points_added += 1
