"""
Progression store.

Two ordered sets: unlocked module ids and unlocked sub-topic keys. A
sub-topic key is ``f"{module_id}-{sub_topic_title}"`` so it survives being
stored as a flat JSON string list.
"""
from __future__ import annotations

from collections.abc import Iterable


def sub_topic_key(module_id: int, title: str) -> str:
    return f"{module_id}-{title}"


class ProgressionState:
    """Unlocked modules and sub-topics (duplicate-free, insertion ordered)."""

    def __init__(self, module_ids: Iterable[int] = (), sub_topic_keys: Iterable[str] = ()):
        self._modules: dict[int, None] = dict.fromkeys(module_ids)
        self._sub_topics: dict[str, None] = dict.fromkeys(sub_topic_keys)

    @classmethod
    def from_documents(cls, modules_document: object, sub_topics_document: object) -> "ProgressionState":
        if not isinstance(modules_document, list) or not isinstance(sub_topics_document, list):
            raise ValueError("progression documents must be arrays")
        return cls((int(m) for m in modules_document), (str(k) for k in sub_topics_document))

    def to_documents(self) -> tuple[list[int], list[str]]:
        return list(self._modules), list(self._sub_topics)

    def copy(self) -> "ProgressionState":
        return ProgressionState(self._modules, self._sub_topics)

    @property
    def unlocked_module_ids(self) -> list[int]:
        return list(self._modules)

    @property
    def unlocked_sub_topic_keys(self) -> list[str]:
        return list(self._sub_topics)

    def is_empty(self) -> bool:
        return not self._modules and not self._sub_topics

    def is_module_unlocked(self, module_id: int) -> bool:
        return module_id in self._modules

    def is_sub_topic_unlocked(self, module_id: int, title: str) -> bool:
        return sub_topic_key(module_id, title) in self._sub_topics

    def unlock_module(self, module_id: int) -> bool:
        """Returns True when the module was not unlocked before."""
        if module_id in self._modules:
            return False
        self._modules[module_id] = None
        return True

    def unlock_sub_topic(self, module_id: int, title: str) -> bool:
        key = sub_topic_key(module_id, title)
        if key in self._sub_topics:
            return False
        self._sub_topics[key] = None
        return True

    def replace(self, module_ids: Iterable[int], sub_topic_keys: Iterable[str]) -> None:
        self._modules = dict.fromkeys(module_ids)
        self._sub_topics = dict.fromkeys(sub_topic_keys)

    def rename_sub_topic(self, module_id: int, old_title: str, new_title: str) -> bool:
        old_key = sub_topic_key(module_id, old_title)
        if old_key not in self._sub_topics:
            return False
        new_key = sub_topic_key(module_id, new_title)
        self._sub_topics = {(new_key if key == old_key else key): None for key in self._sub_topics}
        return True

    def purge_module(self, module_id: int, sub_topic_titles: Iterable[str]) -> None:
        self._modules.pop(module_id, None)
        for title in sub_topic_titles:
            self._sub_topics.pop(sub_topic_key(module_id, title), None)
