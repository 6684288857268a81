"""
Quiz question selection.

Three ways to pick questions from a topic:

- exam mode: every question in the topic, freshly shuffled
- sequential (daily) mode: a fixed slice in stored order, so day N is the
  same on every run and never overlaps day N+1
- random study mode: shuffle, then take the first ``count``

Selection is read-only and never returns more questions than the topic has.
"""
from __future__ import annotations

import math
import random
from dataclasses import dataclass
from enum import Enum

from certpath.content.bank import QuestionBank
from certpath.content.models import Question

QUESTIONS_PER_DAY = 10


class QuizMode(str, Enum):
    """Study runs are practice; exam runs count towards progression."""

    STUDY = "study"
    EXAM = "exam"


@dataclass
class QuizConfig:
    """Requested quiz shape."""

    count: int
    mode: QuizMode = QuizMode.STUDY
    shuffle: bool = True
    start_index: int | None = None


def select_questions(
    bank: QuestionBank,
    module_id: int,
    topic_identifier: str,
    config: QuizConfig,
    rng: random.Random | None = None,
) -> list[Question]:
    """
    Compute the question subset for a quiz.

    Args:
        bank: Question bank to read from
        module_id: Module owning the topic
        topic_identifier: ``"Sub-topic"`` or ``"Sub-topic::Content point"``
        config: Requested count, mode and optional sequential start index
        rng: Random source (module-level ``random`` when omitted)

    Returns:
        ``min(requested, available)`` questions (all of them in exam mode)
    """
    if config.count < 1:
        raise ValueError("count must be at least 1")
    rng = rng or random.Random()
    available = bank.questions(module_id, topic_identifier)

    if config.mode is QuizMode.EXAM:
        rng.shuffle(available)
        return available

    if config.start_index is not None:
        if config.start_index < 0:
            raise ValueError("start_index must not be negative")
        end = min(config.start_index + config.count, len(available))
        return available[config.start_index:end]

    if config.shuffle:
        rng.shuffle(available)
    return available[: config.count]


# =============================================================================
# Daily plan helpers
# =============================================================================


def total_days(available: int, per_day: int = QUESTIONS_PER_DAY) -> int:
    return math.ceil(available / per_day) if available > 0 else 0


def daily_config(day: int, available: int, per_day: int = QUESTIONS_PER_DAY, mode: QuizMode = QuizMode.STUDY) -> QuizConfig:
    """
    Config for day ``day`` (1-based) of a sequential plan.

    Raises ValueError when the day lies beyond the questions available.
    """
    if day < 1:
        raise ValueError("day must be at least 1")
    start_index = (day - 1) * per_day
    remaining = available - start_index
    if remaining <= 0:
        raise ValueError(f"day {day} is beyond the {total_days(available, per_day)} available days")
    return QuizConfig(count=min(per_day, remaining), mode=mode, shuffle=False, start_index=start_index)
