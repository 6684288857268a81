"""Names of the persisted documents (one blob per key)."""
from __future__ import annotations

from enum import Enum


class StoreKey(str, Enum):
    EXAMS = "exams"
    QUESTION_BANK = "questionBank"
    MODULE_VISIBILITY = "moduleVisibility"
    SUB_TOPIC_VISIBILITY = "subTopicVisibility"
    CONTENT_POINT_VISIBILITY = "contentPointVisibility"
    UNLOCKED_MODULES = "unlockedModules"
    UNLOCKED_SUB_TOPICS = "unlockedSubTopics"
    QUIZ_HISTORY = "quizHistory"
    STUDY_RESOURCES = "studyResources"
