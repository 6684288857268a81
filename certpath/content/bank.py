"""
Question bank: module id → topic identifier → ordered list of questions.

Insertion order inside a topic drives sequential (daily) quizzes and is kept
through persistence: documents are plain JSON objects/arrays, which preserve
order on both ends.
"""
from __future__ import annotations

from collections.abc import Iterable

from loguru import logger
from pydantic import TypeAdapter

from certpath.content.models import Question, rename_topic_identifier

_TOPIC_MAP_ADAPTER = TypeAdapter(dict[str, list[Question]])


class QuestionBank:
    """Topic-keyed question storage for every module."""

    def __init__(self, topics: dict[int, dict[str, list[Question]]] | None = None):
        self._topics: dict[int, dict[str, list[Question]]] = topics or {}

    # =========================================================================
    # Serialisation
    # =========================================================================

    @classmethod
    def from_document(cls, document: object) -> "QuestionBank":
        """
        Build from a persisted ``questionBank`` document.

        Keys are module ids as strings (JSON objects only have string keys).
        Raises ValueError/ValidationError on a bad shape.
        """
        if not isinstance(document, dict):
            raise ValueError("question bank document must be an object")
        topics: dict[int, dict[str, list[Question]]] = {}
        for module_key, topic_map in document.items():
            topics[int(module_key)] = _TOPIC_MAP_ADAPTER.validate_python(topic_map)
        return cls(topics)

    def to_document(self) -> dict[str, dict[str, list[dict]]]:
        return {
            str(module_id): {
                topic: [question.to_document() for question in questions]
                for topic, questions in topic_map.items()
            }
            for module_id, topic_map in self._topics.items()
        }

    def copy(self) -> "QuestionBank":
        return QuestionBank(
            {
                module_id: {topic: [q.model_copy() for q in questions] for topic, questions in topic_map.items()}
                for module_id, topic_map in self._topics.items()
            }
        )

    # =========================================================================
    # Reads
    # =========================================================================

    def module_ids(self) -> list[int]:
        return list(self._topics)

    def topics(self, module_id: int) -> dict[str, list[Question]]:
        """Shallow copy of a module's topic map (lists copied too)."""
        return {topic: list(questions) for topic, questions in self._topics.get(module_id, {}).items()}

    def questions(self, module_id: int, topic: str) -> list[Question]:
        return list(self._topics.get(module_id, {}).get(topic, []))

    def count(self, module_id: int, topic: str) -> int:
        return len(self._topics.get(module_id, {}).get(topic, []))

    def total(self) -> int:
        return sum(len(qs) for topic_map in self._topics.values() for qs in topic_map.values())

    # =========================================================================
    # Mutations
    # =========================================================================

    def replace_topic(self, module_id: int, topic: str, questions: Iterable[Question]) -> None:
        self._topics.setdefault(module_id, {})[topic] = list(questions)

    def append_to_topic(self, module_id: int, topic: str, questions: Iterable[Question]) -> int:
        bucket = self._topics.setdefault(module_id, {}).setdefault(topic, [])
        before = len(bucket)
        bucket.extend(questions)
        return len(bucket) - before

    def merge_topics(self, module_id: int, topic_map: dict[str, list[Question]]) -> None:
        """Shallow union; imported topics replace same-named topics wholesale."""
        existing = self._topics.setdefault(module_id, {})
        for topic, questions in topic_map.items():
            existing[topic] = list(questions)

    def remove_question(self, module_id: int, topic: str, question_id: str) -> bool:
        bucket = self._topics.get(module_id, {}).get(topic)
        if not bucket:
            return False
        kept = [q for q in bucket if q.id != question_id]
        if len(kept) == len(bucket):
            return False
        self._topics[module_id][topic] = kept
        return True

    def rename_sub_topic(self, module_id: int, old_title: str, new_title: str) -> int:
        """
        Rewrite every key ``old`` / ``old::*`` of a module to the new title.

        Key order is preserved. A key that already exists under the new title
        (an orphan left by an earlier edit) absorbs the renamed questions.
        Returns the number of rewritten keys.
        """
        topic_map = self._topics.get(module_id)
        if not topic_map:
            return 0
        renamed = 0
        rebuilt: dict[str, list[Question]] = {}
        for topic, questions in topic_map.items():
            new_topic = rename_topic_identifier(topic, old_title, new_title)
            if new_topic is None:
                rebuilt.setdefault(topic, []).extend(questions)
            else:
                rebuilt.setdefault(new_topic, []).extend(questions)
                renamed += 1
        self._topics[module_id] = rebuilt
        if renamed:
            logger.debug("Rewrote {} bank keys for module {}: {!r} -> {!r}", renamed, module_id, old_title, new_title)
        return renamed

    def purge_module(self, module_id: int) -> bool:
        return self._topics.pop(module_id, None) is not None
