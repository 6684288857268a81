"""
Content & progression engine.

``ContentEngine`` is the single owner of the exam hierarchy, question bank,
visibility overlay, progression state, quiz history and study resources.
Everything outside (CLI, remote sync, AI generation) goes through its named
operations and receives copies, never references to internal state.

Rules:
- one writer at a time: every operation holds a re-entrant lock
- business rules are checked before anything changes
- each mutation is persisted right after the in-memory update, one whole
  document per store key
- start-up never fails on a missing or corrupt document: the default
  dataset (or an empty collection) is used and a warning is logged

Usage:
    engine = ContentEngine.from_settings()
    session = engine.start_quiz(module_id, "Footprinting Concepts", config=QuizConfig(count=10))
    result = score_answers(session.questions, answers, elapsed_seconds=95)
    completion = engine.complete_quiz(session, result)
"""

from __future__ import annotations

import random
import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from certpath.config import Settings, get_settings
from certpath.content.bank import QuestionBank
from certpath.content.hierarchy import ContentHierarchy, load_default_exams
from certpath.content.models import (
    Difficulty,
    Exam,
    Module,
    Question,
    ResourceType,
    StudyResource,
    SubTopic,
    clean_title,
    topic_identifier,
)
from certpath.content.visibility import VisibilityOverlay
from certpath.core.errors import (
    BusinessRuleError,
    ConfirmationRequiredError,
    EmptyFieldError,
    EmptyTopicError,
    GenerationError,
    UnknownContentError,
)
from certpath.core.ids import next_question_id, next_resource_id
from certpath.generation.generator import GenerationRequest, QuestionGenerator, get_question_generator
from certpath.progress.advancer import (
    ProgressionAdvancer,
    ProgressionEvent,
    UnlockResult,
    apply_unlock_code,
    seed_default_unlocks,
)
from certpath.progress.state import ProgressionState
from certpath.quiz.history import (
    HistoryStats,
    ModulePerformance,
    QuizAttempt,
    QuizResult,
    compute_history_stats,
    compute_module_performance,
)
from certpath.quiz.selector import QuizConfig, QuizMode, select_questions
from certpath.store.blob_store import BlobStore, open_store
from certpath.store.keys import StoreKey
from certpath.sync import transfer
from certpath.sync.reconciler import ReconcileReport, Reconciler

T = TypeVar("T")

_HISTORY_ADAPTER = TypeAdapter(list[QuizAttempt])
_RESOURCES_ADAPTER = TypeAdapter(list[StudyResource])


@dataclass
class QuizSession:
    """An opened quiz: the selected questions plus where they came from."""

    module_id: int
    module_title: str
    sub_topic: str
    content_point: str | None
    mode: QuizMode
    questions: list[Question]

    @property
    def topic(self) -> str:
        return topic_identifier(self.sub_topic, self.content_point)

    @property
    def title(self) -> str:
        return self.content_point or self.sub_topic


@dataclass
class QuizCompletion:
    attempt: QuizAttempt
    event: ProgressionEvent | None = None


@dataclass
class BulkGenerationReport:
    """Per sub-topic outcome of a bulk generation run."""

    module_id: int
    added: dict[str, int] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def total_added(self) -> int:
        return sum(self.added.values())


class ContentEngine:
    """Owner of all content and progression state."""

    def __init__(
        self,
        store: BlobStore,
        settings: Settings | None = None,
        generator: QuestionGenerator | None = None,
        default_exams: Callable[[], list[Exam]] = load_default_exams,
    ):
        self.store = store
        self.settings = settings or get_settings()
        self._generator = generator
        self._default_exams = default_exams
        self._advancer = ProgressionAdvancer(self.settings.pass_threshold)
        self._lock = threading.RLock()

        self._hierarchy = ContentHierarchy()
        self._bank = QuestionBank()
        self._visibility = VisibilityOverlay()
        self._progression = ProgressionState()
        self._history: list[QuizAttempt] = []
        self._resources: list[StudyResource] = []

        self.load()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "ContentEngine":
        """Open the configured store and load state from it."""
        settings = settings or get_settings()
        return cls(open_store(settings.store_url), settings=settings)

    # =========================================================================
    # Loading & persistence
    # =========================================================================

    def _read(self, key: StoreKey, parse: Callable[[Any], T]) -> T | None:
        """Parse one stored document; None when missing or unusable."""
        try:
            document = self.store.get_json(key.value)
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError
            logger.warning("Stored {} could not be decoded ({}) - using defaults", key.value, e)
            return None
        if document is None:
            return None
        try:
            return parse(document)
        except (ValueError, TypeError) as e:
            logger.warning("Stored {} has an invalid shape ({}) - using defaults", key.value, e)
            return None

    def load(self) -> None:
        """(Re)load every document from the store, substituting defaults where needed."""
        with self._lock:
            hierarchy = self._read(StoreKey.EXAMS, ContentHierarchy.from_document)
            if hierarchy is None:
                hierarchy = ContentHierarchy(self._default_exams())
            self._hierarchy = hierarchy

            self._bank = self._read(StoreKey.QUESTION_BANK, QuestionBank.from_document) or QuestionBank()

            visibility = VisibilityOverlay.all_visible(hierarchy)
            self._read(StoreKey.MODULE_VISIBILITY, visibility.apply_saved_modules)
            self._read(StoreKey.SUB_TOPIC_VISIBILITY, visibility.apply_saved_sub_topics)
            self._read(StoreKey.CONTENT_POINT_VISIBILITY, visibility.apply_saved_content_points)
            self._visibility = visibility

            modules_doc = self._read(StoreKey.UNLOCKED_MODULES, lambda d: d)
            sub_topics_doc = self._read(StoreKey.UNLOCKED_SUB_TOPICS, lambda d: d)
            self._progression = (
                self._read_progression(modules_doc, sub_topics_doc) or ProgressionState()
            )
            if seed_default_unlocks(self._hierarchy, self._progression):
                logger.info("Seeded default unlocks (first module of each exam)")
                self._save_progression()

            self._history = self._read(StoreKey.QUIZ_HISTORY, _HISTORY_ADAPTER.validate_python) or []
            self._resources = self._read(StoreKey.STUDY_RESOURCES, _RESOURCES_ADAPTER.validate_python) or []

            logger.debug(
                "Loaded {} exams, {} modules, {} questions",
                len(self._hierarchy.exams),
                len(self._hierarchy.module_ids()),
                self._bank.total(),
            )

    def _read_progression(self, modules_doc: object, sub_topics_doc: object) -> ProgressionState | None:
        try:
            return ProgressionState.from_documents(
                modules_doc if modules_doc is not None else [],
                sub_topics_doc if sub_topics_doc is not None else [],
            )
        except (ValueError, TypeError) as e:
            logger.warning("Stored progression is invalid ({}) - starting fresh", e)
            return None

    def _save(self, key: StoreKey, document: Any) -> None:
        self.store.set_json(key.value, document)

    def _save_hierarchy(self) -> None:
        self._save(StoreKey.EXAMS, self._hierarchy.to_document())

    def _save_bank(self) -> None:
        self._save(StoreKey.QUESTION_BANK, self._bank.to_document())

    def _save_visibility(self, modules: bool = True, sub_topics: bool = True, content_points: bool = True) -> None:
        module_doc, sub_topic_doc, content_point_doc = self._visibility.to_documents()
        if modules:
            self._save(StoreKey.MODULE_VISIBILITY, module_doc)
        if sub_topics:
            self._save(StoreKey.SUB_TOPIC_VISIBILITY, sub_topic_doc)
        if content_points:
            self._save(StoreKey.CONTENT_POINT_VISIBILITY, content_point_doc)

    def _save_progression(self) -> None:
        module_ids, keys = self._progression.to_documents()
        self._save(StoreKey.UNLOCKED_MODULES, module_ids)
        self._save(StoreKey.UNLOCKED_SUB_TOPICS, keys)

    def _save_history(self) -> None:
        self._save(StoreKey.QUIZ_HISTORY, [attempt.to_document() for attempt in self._history])

    def _save_resources(self) -> None:
        self._save(StoreKey.STUDY_RESOURCES, [resource.to_document() for resource in self._resources])

    # =========================================================================
    # Reads
    # =========================================================================

    def exams(self) -> list[Exam]:
        with self._lock:
            return [exam.model_copy(deep=True) for exam in self._hierarchy.exams]

    def get_exam(self, exam_id: int) -> Exam:
        with self._lock:
            return self._hierarchy.get_exam(exam_id).model_copy(deep=True)

    def get_module(self, module_id: int) -> Module:
        with self._lock:
            return self._hierarchy.get_module(module_id).model_copy(deep=True)

    def exam_for_module(self, module_id: int) -> Exam | None:
        with self._lock:
            exam = self._hierarchy.exam_for_module(module_id)
            return exam.model_copy(deep=True) if exam else None

    def visible_modules(self, exam_id: int) -> list[Module]:
        """Modules of an exam that learners can see."""
        with self._lock:
            exam = self._hierarchy.get_exam(exam_id)
            return [m.model_copy(deep=True) for m in exam.modules if self._visibility.is_module_visible(m.id)]

    def visible_sub_topics(self, module_id: int) -> list[SubTopic]:
        """Visible sub-topics with hidden content points filtered out."""
        with self._lock:
            module = self._hierarchy.get_module(module_id)
            result = []
            for sub_topic in module.sub_topics:
                if not self._visibility.is_sub_topic_visible(module_id, sub_topic.title):
                    continue
                points = [
                    p
                    for p in sub_topic.content
                    if self._visibility.is_content_point_visible(module_id, sub_topic.title, p)
                ]
                result.append(SubTopic(title=sub_topic.title, content=points))
            return result

    def questions(self, module_id: int, topic: str) -> list[Question]:
        with self._lock:
            return [q.model_copy() for q in self._bank.questions(module_id, topic)]

    def question_count(self, module_id: int, topic: str) -> int:
        with self._lock:
            return self._bank.count(module_id, topic)

    def topic_counts(self, module_id: int) -> dict[str, int]:
        """Question count for every topic the module defines, in structure order."""
        with self._lock:
            return {t: self._bank.count(module_id, t) for t in self._hierarchy.topic_identifiers(module_id)}

    def is_module_visible(self, module_id: int) -> bool:
        with self._lock:
            return self._visibility.is_module_visible(module_id)

    def is_sub_topic_visible(self, module_id: int, title: str) -> bool:
        with self._lock:
            return self._visibility.is_sub_topic_visible(module_id, title)

    def is_content_point_visible(self, module_id: int, title: str, point: str) -> bool:
        with self._lock:
            return self._visibility.is_content_point_visible(module_id, title, point)

    def unlocked_module_ids(self) -> list[int]:
        with self._lock:
            return self._progression.unlocked_module_ids

    def unlocked_sub_topic_keys(self) -> list[str]:
        with self._lock:
            return self._progression.unlocked_sub_topic_keys

    def is_module_unlocked(self, module_id: int) -> bool:
        with self._lock:
            return self._progression.is_module_unlocked(module_id)

    def is_sub_topic_unlocked(self, module_id: int, title: str) -> bool:
        with self._lock:
            return self._progression.is_sub_topic_unlocked(module_id, title)

    def history(self) -> list[QuizAttempt]:
        with self._lock:
            return [attempt.model_copy(deep=True) for attempt in self._history]

    def resources(self) -> list[StudyResource]:
        with self._lock:
            return [resource.model_copy() for resource in self._resources]

    # =========================================================================
    # Hierarchy editing
    # =========================================================================

    def add_exam(self, title: str, description: str) -> Exam:
        with self._lock:
            exam = self._hierarchy.add_exam(title, description)
            self._save_hierarchy()
            logger.info("Added exam {} ({})", exam.id, exam.title)
            return exam.model_copy(deep=True)

    def add_module(self, exam_id: int, title: str) -> Module:
        with self._lock:
            module = self._hierarchy.add_module(exam_id, title)
            self._visibility.mark_module_visible(module.id)
            self._save_hierarchy()
            self._save_visibility()
            logger.info("Added module {} ({}) to exam {}", module.id, module.title, exam_id)
            return module.model_copy(deep=True)

    def rename_module(self, module_id: int, new_title: str) -> Module:
        with self._lock:
            module = self._hierarchy.rename_module(module_id, new_title)
            self._save_hierarchy()
            return module.model_copy(deep=True)

    def delete_module(self, module_id: int, confirm: bool = False) -> Module:
        """Remove a module and purge its questions, visibility flags and unlocks."""
        if not confirm:
            raise ConfirmationRequiredError("Deleting a module requires confirmation")
        with self._lock:
            module = self._hierarchy.remove_module(module_id)
            self._bank.purge_module(module_id)
            self._visibility.purge_module(module_id)
            self._progression.purge_module(module_id, [st.title for st in module.sub_topics])
            self._save_hierarchy()
            self._save_bank()
            self._save_visibility()
            self._save_progression()
            logger.info("Deleted module {} ({})", module.id, module.title)
            return module

    def add_sub_topic(self, module_id: int, title: str) -> SubTopic:
        with self._lock:
            sub_topic = self._hierarchy.add_sub_topic(module_id, title)
            self._visibility.mark_sub_topic_visible(module_id, sub_topic.title)
            self._save_hierarchy()
            self._save_visibility(modules=False)
            return sub_topic.model_copy(deep=True)

    def rename_sub_topic(self, module_id: int, old_title: str, new_title: str) -> bool:
        """
        Rename a sub-topic and rewrite everything keyed by its title.

        Bank keys ``old`` and ``old::*``, both visibility subtrees and the
        progression key move to the new title.

        Returns:
            False when the title is unchanged
        """
        with self._lock:
            new_title = clean_title(new_title)
            if not self._hierarchy.rename_sub_topic(module_id, old_title, new_title):
                return False
            self._bank.rename_sub_topic(module_id, old_title, new_title)
            self._visibility.rename_sub_topic(module_id, old_title, new_title)
            self._progression.rename_sub_topic(module_id, old_title, new_title)
            self._save_hierarchy()
            self._save_bank()
            self._save_visibility(modules=False)
            self._save_progression()
            logger.info("Renamed sub-topic {!r} -> {!r} in module {}", old_title, new_title, module_id)
            return True

    def add_content_point(self, module_id: int, sub_topic: str, point: str) -> None:
        with self._lock:
            self._hierarchy.add_content_point(module_id, sub_topic, point)
            self._visibility.mark_content_point_visible(module_id, sub_topic, clean_title(point))
            self._save_hierarchy()
            self._save_visibility(modules=False, sub_topics=False)

    # =========================================================================
    # Visibility
    # =========================================================================

    def toggle_module_visibility(self, module_id: int) -> bool:
        with self._lock:
            self._hierarchy.get_module(module_id)
            visible = self._visibility.toggle_module(module_id)
            self._save_visibility(sub_topics=False, content_points=False)
            return visible

    def toggle_sub_topic_visibility(self, module_id: int, title: str) -> bool:
        with self._lock:
            self._hierarchy.get_sub_topic(module_id, title)
            visible = self._visibility.toggle_sub_topic(module_id, title)
            self._save_visibility(modules=False, content_points=False)
            return visible

    def toggle_content_point_visibility(self, module_id: int, title: str, point: str) -> bool:
        with self._lock:
            if point not in self._hierarchy.get_sub_topic(module_id, title).content:
                raise UnknownContentError(f"Unknown content point {point!r} in {title!r}")
            visible = self._visibility.toggle_content_point(module_id, title, point)
            self._save_visibility(modules=False, sub_topics=False)
            return visible

    # =========================================================================
    # Question editor
    # =========================================================================

    def _topic_for(self, module_id: int, sub_topic: str, content_point: str | None) -> str:
        sub = self._hierarchy.get_sub_topic(module_id, sub_topic)
        if content_point and content_point not in sub.content:
            raise UnknownContentError(f"Unknown content point {content_point!r} in {sub_topic!r}")
        return topic_identifier(sub_topic, content_point)

    @staticmethod
    def _to_question(item: Question | Mapping[str, Any]) -> Question:
        if isinstance(item, Question):
            return item.model_copy()
        data = dict(item)
        if not data.get("id"):
            data["id"] = next_question_id()
        try:
            return Question.model_validate(data)
        except ValidationError as e:
            first = e.errors()[0]
            raise BusinessRuleError(f"Invalid question: {first['msg']}") from e

    def save_topic_questions(
        self,
        module_id: int,
        sub_topic: str,
        content_point: str | None,
        questions: Iterable[Question | Mapping[str, Any]],
    ) -> list[Question]:
        """Replace a topic's question list (manual editor save)."""
        with self._lock:
            topic = self._topic_for(module_id, sub_topic, content_point)
            parsed = [self._to_question(item) for item in questions]
            self._bank.replace_topic(module_id, topic, parsed)
            self._save_bank()
            logger.info("Saved {} questions for module {} topic {!r}", len(parsed), module_id, topic)
            return [q.model_copy() for q in parsed]

    def add_question(
        self,
        module_id: int,
        sub_topic: str,
        content_point: str | None,
        question: Question | Mapping[str, Any],
    ) -> Question:
        with self._lock:
            topic = self._topic_for(module_id, sub_topic, content_point)
            parsed = self._to_question(question)
            self._bank.append_to_topic(module_id, topic, [parsed])
            self._save_bank()
            return parsed.model_copy()

    def delete_question(self, module_id: int, topic: str, question_id: str, confirm: bool = False) -> None:
        if not confirm:
            raise ConfirmationRequiredError("Deleting a question requires confirmation")
        with self._lock:
            if not self._bank.remove_question(module_id, topic, question_id):
                raise UnknownContentError(f"Question {question_id!r} not found in {topic!r}")
            self._save_bank()

    # =========================================================================
    # Quiz runtime
    # =========================================================================

    def start_quiz(
        self,
        module_id: int,
        sub_topic: str,
        content_point: str | None = None,
        config: QuizConfig | None = None,
        rng: random.Random | None = None,
    ) -> QuizSession:
        """
        Open a quiz on a topic.

        Raises:
            EmptyTopicError: the topic has no questions
        """
        config = config or QuizConfig(count=self.settings.questions_per_day)
        with self._lock:
            module = self._hierarchy.get_module(module_id)
            topic = self._topic_for(module_id, sub_topic, content_point)
            if self._bank.count(module_id, topic) == 0:
                raise EmptyTopicError(f"No questions available for {content_point or sub_topic!r} yet")
            questions = select_questions(self._bank, module_id, topic, config, rng=rng)
            return QuizSession(
                module_id=module_id,
                module_title=module.title,
                sub_topic=sub_topic,
                content_point=content_point,
                mode=config.mode,
                questions=[q.model_copy() for q in questions],
            )

    def complete_quiz(self, session: QuizSession, result: QuizResult) -> QuizCompletion:
        """Record the attempt and run the progression transition."""
        with self._lock:
            attempt = QuizAttempt(
                **result.model_dump(),
                module_id=session.module_id,
                module_title=session.module_title,
                topic_title=session.title,
            )
            self._history.insert(0, attempt)
            self._save_history()

            event = self._advancer.advance(
                self._hierarchy,
                self._progression,
                session.module_id,
                session.sub_topic,
                session.mode,
                result.score,
                session.content_point,
            )
            if event is not None:
                self._save_progression()
            return QuizCompletion(attempt=attempt.model_copy(deep=True), event=event)

    def history_stats(self) -> HistoryStats:
        with self._lock:
            return compute_history_stats(self._history)

    def module_performance(self) -> list[ModulePerformance]:
        with self._lock:
            return compute_module_performance(self._history, self._hierarchy.iter_modules())

    def clear_history(self, confirm: bool = False) -> int:
        if not confirm:
            raise ConfirmationRequiredError("Clearing quiz history requires confirmation")
        with self._lock:
            removed = len(self._history)
            self._history = []
            self._save_history()
            return removed

    # =========================================================================
    # Progression
    # =========================================================================

    def apply_unlock_code(self, code: str) -> UnlockResult:
        with self._lock:
            result = apply_unlock_code(self._hierarchy, self._progression, code, self.settings.unlock_codes)
            if result.changed:
                self._save_progression()
            return result

    # =========================================================================
    # Import / export
    # =========================================================================

    def import_snapshot(self, document: object, target_exam_id: int | None = None) -> ReconcileReport:
        """
        Merge a title-keyed snapshot (file import or remote sync).

        The merge runs on copies; state is swapped in and persisted only when
        the whole document has been applied.
        """
        with self._lock:
            hierarchy = self._hierarchy.copy()
            bank = self._bank.copy()
            visibility = self._visibility.copy()
            report = Reconciler(hierarchy, bank, visibility).merge(document, target_exam_id)

            self._hierarchy, self._bank, self._visibility = hierarchy, bank, visibility
            self._save_hierarchy()
            self._save_bank()
            self._save_visibility()
            if seed_default_unlocks(self._hierarchy, self._progression):
                self._save_progression()
            return report

    def import_snapshot_text(self, text: str, target_exam_id: int | None = None) -> ReconcileReport:
        return self.import_snapshot(transfer.load_json_text(text), target_exam_id)

    def export_all(self) -> dict[str, dict[str, list[dict]]]:
        with self._lock:
            return transfer.export_all(self._hierarchy, self._bank)

    def export_topic(self, module_id: int, sub_topic: str, content_point: str | None = None) -> list[dict]:
        with self._lock:
            topic = self._topic_for(module_id, sub_topic, content_point)
            return transfer.export_topic(self._bank, module_id, topic)

    def import_topic(
        self,
        module_id: int,
        sub_topic: str,
        content_point: str | None,
        document: object,
    ) -> int:
        """Replace one topic's questions with a bare question array."""
        with self._lock:
            topic = self._topic_for(module_id, sub_topic, content_point)
            questions = transfer.parse_topic_import(document)
            self._bank.replace_topic(module_id, topic, questions)
            self._save_bank()
            logger.info("Imported {} questions into module {} topic {!r}", len(questions), module_id, topic)
            return len(questions)

    # =========================================================================
    # Study resources
    # =========================================================================

    def add_resource(
        self,
        title: str,
        url: str,
        description: str = "",
        type: ResourceType = ResourceType.ARTICLE,
        category: str = "General",
    ) -> StudyResource:
        title, url = clean_title(title), clean_title(url)
        if not title or not url:
            raise EmptyFieldError("Resource title and URL are required")
        resource = StudyResource(
            id=next_resource_id(),
            title=title,
            url=url,
            description=description.strip(),
            type=type,
            category=clean_title(category) or "General",
        )
        with self._lock:
            self._resources.insert(0, resource)
            self._save_resources()
        return resource.model_copy()

    def delete_resource(self, resource_id: str, confirm: bool = False) -> None:
        if not confirm:
            raise ConfirmationRequiredError("Deleting a resource requires confirmation")
        with self._lock:
            kept = [r for r in self._resources if r.id != resource_id]
            if len(kept) == len(self._resources):
                raise UnknownContentError(f"Unknown resource {resource_id!r}")
            self._resources = kept
            self._save_resources()

    # =========================================================================
    # AI generation
    # =========================================================================

    @property
    def generator(self) -> QuestionGenerator:
        if self._generator is None:
            self._generator = get_question_generator(self.settings)
        return self._generator

    def generate_questions(
        self,
        module_id: int,
        sub_topic: str | None = None,
        content_point: str | None = None,
        count: int = 5,
        difficulty: Difficulty | None = None,
    ) -> list[Question]:
        """
        Ask the generator for questions on a topic.

        Returned questions carry fresh ids and are not saved. Records that
        fail validation are dropped.

        Raises:
            GenerationError: the backend failed or returned no usable question
        """
        with self._lock:
            module = self._hierarchy.get_module(module_id)
            if sub_topic is not None:
                self._topic_for(module_id, sub_topic, content_point)
            request = GenerationRequest(
                module_title=module.title,
                sub_topics=[st.model_copy(deep=True) for st in module.sub_topics],
                sub_topic=sub_topic,
                content_point=content_point,
                count=count,
                difficulty=difficulty,
            )

        records = self.generator.generate(request)
        questions = []
        for record in records:
            if not isinstance(record, Mapping):
                logger.warning("Dropping generated record that is not an object")
                continue
            data = {**record, "id": next_question_id()}
            if difficulty is not None and not data.get("difficulty"):
                data["difficulty"] = difficulty.value
            try:
                questions.append(Question.model_validate(data))
            except ValidationError as e:
                logger.warning("Dropping invalid generated question: {}", e.errors()[0]["msg"])
        if not questions:
            raise GenerationError(f"No valid questions generated for {request.focus!r}")
        return questions

    def bulk_generate_module(
        self,
        module_id: int,
        per_topic: int | None = None,
        difficulty: Difficulty = Difficulty.MEDIUM,
    ) -> BulkGenerationReport:
        """
        Generate and append questions for every sub-topic of a module.

        A failing sub-topic is recorded and skipped; the bank is persisted
        once after all sub-topics were tried.
        """
        per_topic = per_topic or self.settings.bulk_questions_per_topic
        module = self.get_module(module_id)
        report = BulkGenerationReport(module_id=module_id)

        generated: dict[str, list[Question]] = {}
        for sub_topic in module.sub_topics:
            try:
                generated[sub_topic.title] = self.generate_questions(
                    module_id, sub_topic.title, count=per_topic, difficulty=difficulty
                )
            except (GenerationError, UnknownContentError) as e:
                logger.warning("Bulk generation failed for {!r}: {}", sub_topic.title, e)
                report.failures[sub_topic.title] = str(e)

        if generated:
            with self._lock:
                live = self._hierarchy.get_module(module_id)
                for title, questions in generated.items():
                    if live.find_sub_topic(title) is None:
                        report.failures[title] = "sub-topic removed during generation"
                        continue
                    report.added[title] = self._bank.append_to_topic(module_id, topic_identifier(title), questions)
                self._save_bank()

        logger.info(
            "Bulk generation for module {}: {} questions added, {} sub-topics failed",
            module_id,
            report.total_added,
            len(report.failures),
        )
        return report
