"""
Content models for certpath.

Exams contain modules, modules contain sub-topics, sub-topics contain content
points (plain titles). Questions hang off the hierarchy through topic
identifiers: ``"<sub-topic>"`` for a sub-topic quiz or
``"<sub-topic>::<content point>"`` for a content-point quiz.

All models serialise with the camelCase field names used by persisted and
exported documents (``subTopics``, ``correctAnswer``).
"""
from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

TOPIC_SEPARATOR = "::"
OPTIONS_PER_QUESTION = 4

DEFAULT_MODULE_ICON = "book-open"
IMPORTED_MODULE_ICON = "folder"
DEFAULT_MODULE_COLOR = "bg-gray-100 text-gray-600"

IconName = Literal[
    "key", "shield", "mail", "smartphone", "lock", "alert", "users", "shield-check",
    "laptop", "database", "footprint", "scan", "bug", "wifi", "ban", "server",
    "code-bracket", "iot", "cloud", "chevron-down", "sparkles", "upload", "download",
    "eye", "eye-slash", "edit", "book-open", "folder", "folder-open", "github",
    "linkedin", "home", "lock-open", "ceh", "cissp", "cysa", "collection",
]


class Difficulty(str, Enum):
    """Question difficulty level."""

    LOW = "Low"
    MEDIUM = "Medium"
    ADVANCED = "Advanced"


class ResourceType(str, Enum):
    """Kind of study resource."""

    VIDEO = "video"
    ARTICLE = "article"
    PDF = "pdf"
    TOOL = "tool"


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_document(self) -> dict:
        """Serialise with wire (camelCase) field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# Questions
# =============================================================================


class Question(WireModel):
    """A four-option multiple choice question."""

    id: str = Field(min_length=1)
    question: str = Field(min_length=1)
    options: list[str]
    correct_answer: str = Field(alias="correctAnswer")
    explanation: str | None = None
    difficulty: Difficulty | None = None

    @field_validator("options")
    @classmethod
    def _exactly_four_options(cls, options: list[str]) -> list[str]:
        if len(options) != OPTIONS_PER_QUESTION:
            raise ValueError(f"expected {OPTIONS_PER_QUESTION} options, got {len(options)}")
        return options

    @model_validator(mode="after")
    def _answer_is_an_option(self) -> "Question":
        if self.correct_answer not in self.options:
            raise ValueError(f"correctAnswer {self.correct_answer!r} is not one of the options")
        return self


# =============================================================================
# Hierarchy
# =============================================================================


class SubTopic(WireModel):
    """A named subdivision of a module holding content point titles."""

    title: str
    content: list[str] = Field(default_factory=list)


class Module(WireModel):
    """A training unit. Ids are unique across every exam."""

    id: int
    title: str
    icon: IconName = DEFAULT_MODULE_ICON
    color: str = DEFAULT_MODULE_COLOR
    sub_topics: list[SubTopic] = Field(default_factory=list, alias="subTopics")

    def find_sub_topic(self, title: str) -> SubTopic | None:
        for sub_topic in self.sub_topics:
            if sub_topic.title == title:
                return sub_topic
        return None

    def sub_topic_index(self, title: str) -> int:
        """Position of a sub-topic in the module, -1 if absent."""
        for index, sub_topic in enumerate(self.sub_topics):
            if sub_topic.title == title:
                return index
        return -1


class Exam(WireModel):
    """Top-level content folder."""

    id: int
    title: str
    description: str = ""
    icon: IconName | None = None
    modules: list[Module] = Field(default_factory=list)


class StudyResource(WireModel):
    """An external study link shown in the learning hub."""

    id: str
    title: str
    description: str = ""
    url: str
    type: ResourceType = ResourceType.ARTICLE
    category: str = "General"


# =============================================================================
# Topic identifiers
# =============================================================================


def topic_identifier(sub_topic: str, content_point: str | None = None) -> str:
    """Join key between the hierarchy and the question bank."""
    return f"{sub_topic}{TOPIC_SEPARATOR}{content_point}" if content_point else sub_topic


def split_topic_identifier(identifier: str) -> tuple[str, str | None]:
    """Inverse of :func:`topic_identifier` (splits on the first separator)."""
    sub_topic, separator, content_point = identifier.partition(TOPIC_SEPARATOR)
    if not separator:
        return identifier, None
    return sub_topic, content_point or None


def rename_topic_identifier(identifier: str, old_sub_topic: str, new_sub_topic: str) -> str | None:
    """Rewrite an identifier owned by ``old_sub_topic``; None when not owned by it."""
    sub_topic, content_point = split_topic_identifier(identifier)
    if sub_topic != old_sub_topic:
        return None
    return topic_identifier(new_sub_topic, content_point)


def clean_title(value: str | None) -> str:
    """Trim a user supplied title; empty string when missing."""
    return (value or "").strip()
