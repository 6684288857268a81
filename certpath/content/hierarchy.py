"""
Content hierarchy: exams → modules → sub-topics → content points.

The hierarchy keeps an index of module id → module and module id → exam so
lookups do not walk every exam. All structural rules (unique module ids,
unique sub-topic titles within a module, non-empty titles) are checked here
before anything is changed.
"""
from __future__ import annotations

import json
from collections.abc import Iterator
from importlib import resources

from loguru import logger
from pydantic import TypeAdapter

from certpath.content.models import (
    DEFAULT_MODULE_COLOR,
    DEFAULT_MODULE_ICON,
    Exam,
    Module,
    SubTopic,
    clean_title,
    topic_identifier,
)
from certpath.core.errors import DuplicateTitleError, EmptyFieldError, UnknownContentError
from certpath.core.ids import next_exam_id, next_module_id

_EXAMS_ADAPTER = TypeAdapter(list[Exam])


def load_default_exams() -> list[Exam]:
    """Load the bundled default dataset (CEH v13 and CISSP)."""
    text = resources.files("certpath.data").joinpath("default_exams.json").read_text(encoding="utf-8")
    return _EXAMS_ADAPTER.validate_python(json.loads(text))


class ContentHierarchy:
    """
    Owner of the exam tree.

    Operations mutate in place; callers that need all-or-nothing semantics
    work on a :meth:`copy` and swap it in when done.
    """

    def __init__(self, exams: list[Exam] | None = None):
        self._exams: list[Exam] = list(exams or [])
        self._modules: dict[int, Module] = {}
        self._exam_of_module: dict[int, int] = {}
        self._reindex()

    def _reindex(self) -> None:
        self._modules.clear()
        self._exam_of_module.clear()
        for exam in self._exams:
            for module in exam.modules:
                self._modules[module.id] = module
                self._exam_of_module[module.id] = exam.id

    # =========================================================================
    # Serialisation
    # =========================================================================

    @classmethod
    def from_document(cls, document: object) -> "ContentHierarchy":
        """Build from a persisted ``exams`` document (raises on a bad shape)."""
        return cls(_EXAMS_ADAPTER.validate_python(document))

    def to_document(self) -> list[dict]:
        return [exam.to_document() for exam in self._exams]

    def copy(self) -> "ContentHierarchy":
        return ContentHierarchy([exam.model_copy(deep=True) for exam in self._exams])

    # =========================================================================
    # Lookups
    # =========================================================================

    @property
    def exams(self) -> list[Exam]:
        return self._exams

    def exam_ids(self) -> list[int]:
        return [exam.id for exam in self._exams]

    def module_ids(self) -> list[int]:
        return list(self._modules)

    def iter_modules(self) -> Iterator[Module]:
        for exam in self._exams:
            yield from exam.modules

    def find_exam(self, exam_id: int) -> Exam | None:
        for exam in self._exams:
            if exam.id == exam_id:
                return exam
        return None

    def get_exam(self, exam_id: int) -> Exam:
        exam = self.find_exam(exam_id)
        if exam is None:
            raise UnknownContentError(f"Unknown exam id {exam_id}")
        return exam

    def find_module(self, module_id: int) -> Module | None:
        return self._modules.get(module_id)

    def get_module(self, module_id: int) -> Module:
        module = self._modules.get(module_id)
        if module is None:
            raise UnknownContentError(f"Unknown module id {module_id}")
        return module

    def find_module_by_title(self, title: str) -> Module | None:
        """First module (in exam order) with exactly this title."""
        for module in self.iter_modules():
            if module.title == title:
                return module
        return None

    def exam_for_module(self, module_id: int) -> Exam | None:
        exam_id = self._exam_of_module.get(module_id)
        return None if exam_id is None else self.find_exam(exam_id)

    def get_sub_topic(self, module_id: int, title: str) -> SubTopic:
        sub_topic = self.get_module(module_id).find_sub_topic(title)
        if sub_topic is None:
            raise UnknownContentError(f"Unknown sub-topic {title!r} in module {module_id}")
        return sub_topic

    def topic_identifiers(self, module_id: int) -> list[str]:
        """Every topic identifier the module's structure defines, in order."""
        identifiers: list[str] = []
        for sub_topic in self.get_module(module_id).sub_topics:
            identifiers.append(topic_identifier(sub_topic.title))
            identifiers.extend(topic_identifier(sub_topic.title, point) for point in sub_topic.content)
        return identifiers

    # =========================================================================
    # Mutations
    # =========================================================================

    def add_exam(self, title: str, description: str) -> Exam:
        title, description = clean_title(title), clean_title(description)
        if not title or not description:
            raise EmptyFieldError("Exam title and description are required")
        exam = Exam(id=next_exam_id(self.exam_ids()), title=title, description=description)
        self._exams.append(exam)
        logger.debug("Added exam {} ({})", exam.id, exam.title)
        return exam

    def add_module(
        self,
        exam_id: int,
        title: str,
        icon: str = DEFAULT_MODULE_ICON,
        color: str = DEFAULT_MODULE_COLOR,
    ) -> Module:
        title = clean_title(title)
        if not title:
            raise EmptyFieldError("Module title is required")
        exam = self.get_exam(exam_id)
        module = Module(id=next_module_id(self._modules), title=title, icon=icon, color=color)
        exam.modules.append(module)
        self._modules[module.id] = module
        self._exam_of_module[module.id] = exam.id
        logger.debug("Added module {} ({}) to exam {}", module.id, module.title, exam.id)
        return module

    def rename_module(self, module_id: int, new_title: str) -> Module:
        new_title = clean_title(new_title)
        if not new_title:
            raise EmptyFieldError("Module title is required")
        module = self.get_module(module_id)
        module.title = new_title
        return module

    def remove_module(self, module_id: int) -> Module:
        module = self.get_module(module_id)
        exam = self.exam_for_module(module_id)
        if exam is not None:
            exam.modules = [m for m in exam.modules if m.id != module_id]
        del self._modules[module_id]
        self._exam_of_module.pop(module_id, None)
        return module

    def add_sub_topic(self, module_id: int, title: str) -> SubTopic:
        title = clean_title(title)
        if not title:
            raise EmptyFieldError("Sub-topic title is required")
        module = self.get_module(module_id)
        if module.find_sub_topic(title) is not None:
            raise DuplicateTitleError(f"Sub-topic {title!r} already exists in module {module.title!r}")
        sub_topic = SubTopic(title=title)
        module.sub_topics.append(sub_topic)
        return sub_topic

    def rename_sub_topic(self, module_id: int, old_title: str, new_title: str) -> bool:
        """
        Rename a sub-topic in place.

        Returns:
            False when the new title equals the old one (nothing to do)
        """
        new_title = clean_title(new_title)
        if not new_title:
            raise EmptyFieldError("Sub-topic title is required")
        if new_title == old_title:
            return False
        module = self.get_module(module_id)
        sub_topic = self.get_sub_topic(module_id, old_title)
        if module.find_sub_topic(new_title) is not None:
            raise DuplicateTitleError(f"Sub-topic {new_title!r} already exists in module {module.title!r}")
        sub_topic.title = new_title
        return True

    def add_content_point(self, module_id: int, sub_topic_title: str, point: str) -> None:
        point = clean_title(point)
        if not point:
            raise EmptyFieldError("Content point title is required")
        sub_topic = self.get_sub_topic(module_id, sub_topic_title)
        if point in sub_topic.content:
            raise DuplicateTitleError(f"Content point {point!r} already exists in {sub_topic_title!r}")
        sub_topic.content.append(point)

    def ensure_default_exam(self, title: str = "Imported Content") -> Exam:
        """Return the first exam, creating a holder exam when there is none."""
        if self._exams:
            return self._exams[0]
        return self.add_exam(title, "Content created by import")
