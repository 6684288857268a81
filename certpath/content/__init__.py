"""
Content model: exam hierarchy, question bank and visibility overlay.
"""

from .bank import QuestionBank
from .hierarchy import ContentHierarchy, load_default_exams
from .models import (
    Difficulty,
    Exam,
    Module,
    Question,
    ResourceType,
    StudyResource,
    SubTopic,
    split_topic_identifier,
    topic_identifier,
)
from .visibility import VisibilityOverlay

__all__ = [
    "ContentHierarchy",
    "Difficulty",
    "Exam",
    "Module",
    "Question",
    "QuestionBank",
    "ResourceType",
    "StudyResource",
    "SubTopic",
    "VisibilityOverlay",
    "load_default_exams",
    "split_topic_identifier",
    "topic_identifier",
]
