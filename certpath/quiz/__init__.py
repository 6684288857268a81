"""
Quiz module: question selection, scoring and attempt history.

Modes:
- study: practice runs (random subset or sequential daily slice)
- exam: every question of the topic, shuffled; passing advances progression
"""

from .history import QuizAttempt, QuizResult, UserAnswer, score_answers
from .selector import QUESTIONS_PER_DAY, QuizConfig, QuizMode, daily_config, select_questions, total_days

__all__ = [
    "QUESTIONS_PER_DAY",
    "QuizAttempt",
    "QuizConfig",
    "QuizMode",
    "QuizResult",
    "UserAnswer",
    "daily_config",
    "score_answers",
    "select_questions",
    "total_days",
]
