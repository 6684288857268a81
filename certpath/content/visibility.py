"""
Visibility overlay.

Three independent flag maps sit on top of the hierarchy without changing it:
module, sub-topic and content-point level. A missing flag means visible, so
new content shows up until an admin hides it.
"""
from __future__ import annotations

import copy

from loguru import logger

from certpath.content.hierarchy import ContentHierarchy

ModuleFlags = dict[int, bool]
SubTopicFlags = dict[int, dict[str, bool]]
ContentPointFlags = dict[int, dict[str, dict[str, bool]]]


def _int_keys(document: object) -> dict[int, object]:
    if not isinstance(document, dict):
        raise ValueError("visibility document must be an object")
    return {int(key): value for key, value in document.items()}


def _flags(flags: dict, where: str) -> dict[str, bool]:
    """Keep real booleans only; anything else is skipped."""
    kept = {}
    for name, flag in flags.items():
        if isinstance(flag, bool):
            kept[name] = flag
        else:
            logger.warning("Ignoring non-boolean visibility flag {!r}={!r} in {}", name, flag, where)
    return kept


class VisibilityOverlay:
    """Module, sub-topic and content-point visibility flags."""

    def __init__(
        self,
        modules: ModuleFlags | None = None,
        sub_topics: SubTopicFlags | None = None,
        content_points: ContentPointFlags | None = None,
    ):
        self.modules: ModuleFlags = modules or {}
        self.sub_topics: SubTopicFlags = sub_topics or {}
        self.content_points: ContentPointFlags = content_points or {}

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def all_visible(cls, hierarchy: ContentHierarchy) -> "VisibilityOverlay":
        """Flags for every existing node, all set to visible."""
        overlay = cls()
        for module in hierarchy.iter_modules():
            overlay.modules[module.id] = True
            overlay.sub_topics[module.id] = {st.title: True for st in module.sub_topics}
            overlay.content_points[module.id] = {
                st.title: {point: True for point in st.content} for st in module.sub_topics
            }
        return overlay

    def apply_saved_modules(self, document: object) -> None:
        for module_id, flag in _int_keys(document).items():
            if isinstance(flag, bool):
                self.modules[module_id] = flag
            else:
                logger.warning("Ignoring non-boolean visibility flag for module {}: {!r}", module_id, flag)

    def apply_saved_sub_topics(self, document: object) -> None:
        for module_id, flags in _int_keys(document).items():
            if isinstance(flags, dict):
                target = self.sub_topics.setdefault(module_id, {})
                target.update(_flags(flags, f"module {module_id}"))

    def apply_saved_content_points(self, document: object) -> None:
        for module_id, by_sub_topic in _int_keys(document).items():
            if not isinstance(by_sub_topic, dict):
                continue
            target = self.content_points.setdefault(module_id, {})
            for title, flags in by_sub_topic.items():
                if isinstance(flags, dict):
                    target.setdefault(title, {}).update(_flags(flags, f"module {module_id} / {title}"))

    def to_documents(self) -> tuple[dict, dict, dict]:
        return (
            {str(k): v for k, v in self.modules.items()},
            {str(k): dict(v) for k, v in self.sub_topics.items()},
            {str(k): copy.deepcopy(v) for k, v in self.content_points.items()},
        )

    def copy(self) -> "VisibilityOverlay":
        return VisibilityOverlay(
            dict(self.modules),
            copy.deepcopy(self.sub_topics),
            copy.deepcopy(self.content_points),
        )

    # =========================================================================
    # Queries
    # =========================================================================

    def is_module_visible(self, module_id: int) -> bool:
        return self.modules.get(module_id, True)

    def is_sub_topic_visible(self, module_id: int, title: str) -> bool:
        return self.sub_topics.get(module_id, {}).get(title, True)

    def is_content_point_visible(self, module_id: int, title: str, point: str) -> bool:
        return self.content_points.get(module_id, {}).get(title, {}).get(point, True)

    # =========================================================================
    # Toggles
    # =========================================================================

    def toggle_module(self, module_id: int) -> bool:
        flag = not self.is_module_visible(module_id)
        self.modules[module_id] = flag
        return flag

    def toggle_sub_topic(self, module_id: int, title: str) -> bool:
        flag = not self.is_sub_topic_visible(module_id, title)
        self.sub_topics.setdefault(module_id, {})[title] = flag
        return flag

    def toggle_content_point(self, module_id: int, title: str, point: str) -> bool:
        flag = not self.is_content_point_visible(module_id, title, point)
        self.content_points.setdefault(module_id, {}).setdefault(title, {})[point] = flag
        return flag

    # =========================================================================
    # Structure changes
    # =========================================================================

    def mark_module_visible(self, module_id: int) -> None:
        self.modules[module_id] = True
        self.sub_topics.setdefault(module_id, {})
        self.content_points.setdefault(module_id, {})

    def mark_sub_topic_visible(self, module_id: int, title: str) -> None:
        self.sub_topics.setdefault(module_id, {})[title] = True
        self.content_points.setdefault(module_id, {}).setdefault(title, {})

    def mark_content_point_visible(self, module_id: int, title: str, point: str) -> None:
        self.content_points.setdefault(module_id, {}).setdefault(title, {})[point] = True

    def rename_sub_topic(self, module_id: int, old_title: str, new_title: str) -> None:
        """Move (never duplicate) the sub-topic flag and its content-point flags."""
        sub_flags = self.sub_topics.get(module_id)
        if sub_flags is not None and old_title in sub_flags:
            sub_flags[new_title] = sub_flags.pop(old_title)
        point_flags = self.content_points.get(module_id)
        if point_flags is not None and old_title in point_flags:
            point_flags[new_title] = point_flags.pop(old_title)

    def purge_module(self, module_id: int) -> None:
        self.modules.pop(module_id, None)
        self.sub_topics.pop(module_id, None)
        self.content_points.pop(module_id, None)
