"""
Quiz scoring and attempt history.

Attempts are stored newest first under the ``quizHistory`` key and feed the
progress report (overall numbers plus a per-module breakdown).
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import Field

from certpath.content.models import Module, Question, WireModel


class UserAnswer(WireModel):
    question_id: str = Field(alias="questionId")
    question_text: str = Field(alias="questionText")
    selected_answer: str = Field(alias="selectedAnswer")
    correct_answer: str = Field(alias="correctAnswer")
    is_correct: bool = Field(alias="isCorrect")
    explanation: str | None = None


class QuizResult(WireModel):
    score: int
    correct_count: int = Field(alias="correctCount")
    total_questions: int = Field(alias="totalQuestions")
    avg_time_per_question: float = Field(alias="avgTimePerQuestion")
    total_time: int = Field(alias="totalTime")
    user_answers: list[UserAnswer] = Field(default_factory=list, alias="userAnswers")


class QuizAttempt(QuizResult):
    module_id: int = Field(alias="moduleId")
    module_title: str = Field(alias="moduleTitle")
    topic_title: str = Field(alias="topicTitle")
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


def score_answers(
    questions: list[Question],
    answers: Mapping[str, str],
    elapsed_seconds: float = 0.0,
) -> QuizResult:
    """
    Grade a finished quiz.

    Args:
        questions: Questions in the order they were asked
        answers: question id → selected option (unanswered questions count as wrong)
        elapsed_seconds: Wall time spent on the quiz
    """
    user_answers = []
    for question in questions:
        selected = answers.get(question.id, "")
        user_answers.append(
            UserAnswer(
                question_id=question.id,
                question_text=question.question,
                selected_answer=selected,
                correct_answer=question.correct_answer,
                is_correct=selected == question.correct_answer,
                explanation=question.explanation,
            )
        )
    total = len(questions)
    correct = sum(1 for a in user_answers if a.is_correct)
    total_time = round(elapsed_seconds)
    return QuizResult(
        score=round(correct / total * 100) if total else 0,
        correct_count=correct,
        total_questions=total,
        avg_time_per_question=elapsed_seconds / total if total else 0.0,
        total_time=total_time,
        user_answers=user_answers,
    )


# =============================================================================
# Progress report
# =============================================================================


@dataclass
class HistoryStats:
    total_attempts: int = 0
    average_score: int = 0
    study_time: int = 0
    best_score: int = 0


@dataclass
class ModulePerformance:
    module_id: int
    title: str
    score: int
    correct: int
    total: int
    avg_time: float
    status: str


def compute_history_stats(history: list[QuizAttempt]) -> HistoryStats:
    if not history:
        return HistoryStats()
    return HistoryStats(
        total_attempts=len(history),
        average_score=round(sum(a.score for a in history) / len(history)),
        study_time=sum(a.total_time for a in history),
        best_score=max(a.score for a in history),
    )


def performance_status(score: int) -> str:
    if score < 50:
        return "Needs Practice"
    if score < 80:
        return "Good"
    return "Excellent"


def compute_module_performance(history: list[QuizAttempt], modules: Iterable[Module]) -> list[ModulePerformance]:
    """Aggregate attempts per module, in hierarchy order."""
    totals: dict[int, list[int]] = {}
    for attempt in history:
        bucket = totals.setdefault(attempt.module_id, [0, 0, 0])
        bucket[0] += attempt.correct_count
        bucket[1] += attempt.total_questions
        bucket[2] += attempt.total_time

    report = []
    for module in modules:
        if module.id not in totals:
            report.append(ModulePerformance(module.id, module.title, 0, 0, 0, 0.0, "Not Started"))
            continue
        correct, total, time_spent = totals[module.id]
        score = round(correct / total * 100) if total else 0
        report.append(
            ModulePerformance(
                module.id,
                module.title,
                score,
                correct,
                total,
                time_spent / total if total else 0.0,
                performance_status(score),
            )
        )
    return report
