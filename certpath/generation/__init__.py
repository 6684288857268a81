"""
AI question generation.
"""

from .generator import (
    GeminiQuestionGenerator,
    GenerationRequest,
    OfflineQuestionGenerator,
    QuestionGenerator,
    get_question_generator,
)

__all__ = [
    "GeminiQuestionGenerator",
    "GenerationRequest",
    "OfflineQuestionGenerator",
    "QuestionGenerator",
    "get_question_generator",
]
