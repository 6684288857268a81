"""
Progression advancer and bulk unlock.

Each exam is a track: sub-topics inside a module are ordered, modules inside
the exam are ordered. Passing an exam-mode quiz on a sub-topic unlocks the
next sub-topic, or, after the last sub-topic, the next module and its first
sub-topic. Study-mode runs and failing scores never change progression.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from loguru import logger

from certpath.content.hierarchy import ContentHierarchy
from certpath.progress.state import ProgressionState, sub_topic_key
from certpath.quiz.selector import QuizMode

DEFAULT_PASS_THRESHOLD = 80


class ProgressionEventType(str, Enum):
    """Notification emitted by a progression transition."""

    SUB_TOPIC_UNLOCKED = "sub_topic_unlocked"
    MODULE_COMPLETED = "module_completed"


@dataclass
class ProgressionEvent:
    """A state change caused by a qualifying quiz completion."""

    type: ProgressionEventType
    module_id: int
    module_title: str
    sub_topic: str | None = None

    @property
    def message(self) -> str:
        if self.type is ProgressionEventType.SUB_TOPIC_UNLOCKED:
            return f"Unlocked the next sub-topic: {self.sub_topic}"
        return f"Module completed - unlocked {self.module_title}"


class ProgressionAdvancer:
    """State machine transition run on quiz completion."""

    def __init__(self, pass_threshold: int = DEFAULT_PASS_THRESHOLD):
        self.pass_threshold = pass_threshold

    def qualifies(self, mode: QuizMode, score: int, content_point: str | None = None) -> bool:
        """Only passing exam-mode runs on a whole sub-topic advance the track."""
        return mode is QuizMode.EXAM and score >= self.pass_threshold and not content_point

    def advance(
        self,
        hierarchy: ContentHierarchy,
        state: ProgressionState,
        module_id: int,
        sub_topic: str,
        mode: QuizMode,
        score: int,
        content_point: str | None = None,
    ) -> ProgressionEvent | None:
        """
        Apply the transition for a completed quiz.

        Returns:
            The emitted event, or None when nothing changed (not qualifying,
            already unlocked, or the end of the track)
        """
        if not self.qualifies(mode, score, content_point):
            return None

        exam = hierarchy.exam_for_module(module_id)
        module = hierarchy.find_module(module_id)
        if exam is None or module is None:
            logger.warning("Quiz completed for unknown module {} - progression unchanged", module_id)
            return None

        sub_index = module.sub_topic_index(sub_topic)
        if sub_index == -1:
            logger.warning("Quiz completed for unknown sub-topic {!r} in module {}", sub_topic, module_id)
            return None

        if sub_index < len(module.sub_topics) - 1:
            next_sub_topic = module.sub_topics[sub_index + 1]
            if not state.unlock_sub_topic(module.id, next_sub_topic.title):
                return None
            logger.info("Unlocked sub-topic {!r} in module {}", next_sub_topic.title, module.id)
            return ProgressionEvent(
                ProgressionEventType.SUB_TOPIC_UNLOCKED, module.id, module.title, next_sub_topic.title
            )

        module_index = next((i for i, m in enumerate(exam.modules) if m.id == module.id), -1)
        if module_index == -1 or module_index >= len(exam.modules) - 1:
            logger.info("Track complete for exam {!r}", exam.title)
            return None

        next_module = exam.modules[module_index + 1]
        changed = state.unlock_module(next_module.id)
        first_sub_topic = next_module.sub_topics[0].title if next_module.sub_topics else None
        if first_sub_topic is not None:
            changed = state.unlock_sub_topic(next_module.id, first_sub_topic) or changed
        if not changed:
            return None
        logger.info("Module {} completed, unlocked module {}", module.id, next_module.id)
        return ProgressionEvent(
            ProgressionEventType.MODULE_COMPLETED, next_module.id, next_module.title, first_sub_topic
        )


# =============================================================================
# Default state and bulk unlock
# =============================================================================


def default_unlocks(hierarchy: ContentHierarchy) -> tuple[list[int], list[str]]:
    """First module and its first sub-topic of every exam."""
    module_ids: list[int] = []
    keys: list[str] = []
    for exam in hierarchy.exams:
        if not exam.modules:
            continue
        first = exam.modules[0]
        module_ids.append(first.id)
        if first.sub_topics:
            keys.append(sub_topic_key(first.id, first.sub_topics[0].title))
    return module_ids, keys


def seed_default_unlocks(hierarchy: ContentHierarchy, state: ProgressionState) -> bool:
    """Give a fresh learner the default starting points. Returns True when seeded."""
    if not state.is_empty():
        return False
    module_ids, keys = default_unlocks(hierarchy)
    if not module_ids:
        return False
    state.replace(module_ids, keys)
    return True


class UnlockOutcome(str, Enum):
    ALL_UNLOCKED = "all_unlocked"
    RESET = "reset"
    EXAM_UNLOCKED = "exam_unlocked"
    MODULE_UNLOCKED = "module_unlocked"
    NO_MATCH = "no_match"


@dataclass
class UnlockResult:
    outcome: UnlockOutcome
    matched_title: str | None = None
    changed: bool = False


def apply_unlock_code(
    hierarchy: ContentHierarchy,
    state: ProgressionState,
    code: str,
    reserved_codes: list[str],
) -> UnlockResult:
    """
    Bulk unlock by free-text code.

    A reserved code toggles between "everything unlocked" and the default
    state. Any other code unlocks the exam or module whose title matches,
    case-insensitively. Unmatched codes change nothing.
    """
    normalized = code.strip().casefold()
    if not normalized:
        return UnlockResult(UnlockOutcome.NO_MATCH)

    if normalized in {c.strip().casefold() for c in reserved_codes}:
        all_modules = list(hierarchy.iter_modules())
        if not all_modules:
            return UnlockResult(UnlockOutcome.NO_MATCH)
        if all(state.is_module_unlocked(m.id) for m in all_modules):
            state.replace(*default_unlocks(hierarchy))
            logger.info("Reserved unlock code: progression reset to defaults")
            return UnlockResult(UnlockOutcome.RESET, changed=True)
        state.replace(
            [m.id for m in all_modules],
            [sub_topic_key(m.id, st.title) for m in all_modules for st in m.sub_topics],
        )
        logger.info("Reserved unlock code: all {} modules unlocked", len(all_modules))
        return UnlockResult(UnlockOutcome.ALL_UNLOCKED, changed=True)

    for exam in hierarchy.exams:
        if exam.title.casefold() == normalized:
            changed = False
            for module in exam.modules:
                changed = _unlock_module_fully(state, module) or changed
            return UnlockResult(UnlockOutcome.EXAM_UNLOCKED, exam.title, changed)

    for module in hierarchy.iter_modules():
        if module.title.casefold() == normalized:
            return UnlockResult(UnlockOutcome.MODULE_UNLOCKED, module.title, _unlock_module_fully(state, module))

    return UnlockResult(UnlockOutcome.NO_MATCH)


def _unlock_module_fully(state: ProgressionState, module) -> bool:
    changed = state.unlock_module(module.id)
    for sub_topic in module.sub_topics:
        changed = state.unlock_sub_topic(module.id, sub_topic.title) or changed
    return changed
