"""
Question generation backends.

The engine only depends on the ``QuestionGenerator`` protocol: given a topic
request it returns raw question records (``question``, ``options``,
``correctAnswer``, optional ``explanation``/``difficulty``) or raises
``GenerationError``. Validation and id allocation happen in the engine.

Backends:
- GeminiQuestionGenerator: Google Generative AI (lazy import, JSON output)
- OfflineQuestionGenerator: canned sample questions, used when no API key
  is configured so the admin flow still works end to end
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Protocol

from loguru import logger

from certpath.config import Settings, get_settings
from certpath.content.models import Difficulty, SubTopic
from certpath.core.errors import GenerationError


@dataclass
class GenerationRequest:
    """Topic parameters for one generation call."""

    module_title: str
    sub_topics: list[SubTopic] = field(default_factory=list)
    sub_topic: str | None = None
    content_point: str | None = None
    count: int = 5
    difficulty: Difficulty | None = None

    @property
    def focus(self) -> str:
        return self.content_point or self.sub_topic or self.module_title


class QuestionGenerator(Protocol):
    def generate(self, request: GenerationRequest) -> list[dict[str, Any]]:
        ...


def build_prompt(request: GenerationRequest) -> str:
    """Prompt text for a generation request, narrowest scope first."""
    difficulty = f" at {request.difficulty.value} difficulty" if request.difficulty else ""

    if request.content_point and request.sub_topic:
        scope = (
            f'Generate {request.count} highly specific multiple-choice quiz questions{difficulty} '
            f'for the cybersecurity topic: "{request.content_point}".\n'
            f'This topic is part of the sub-topic "{request.sub_topic}" within the training module '
            f'"{request.module_title}".\n'
            f'Ensure the questions are laser-focused on "{request.content_point}".'
        )
    elif request.sub_topic:
        points = next((st.content for st in request.sub_topics if st.title == request.sub_topic), [])
        coverage = f"\nThe questions should cover these specific points: {', '.join(points)}." if points else ""
        scope = (
            f'Generate {request.count} multiple-choice quiz questions{difficulty} for the specific '
            f'cybersecurity sub-topic: "{request.sub_topic}".\n'
            f'This sub-topic is part of the broader training module titled "{request.module_title}".{coverage}'
        )
    else:
        titles = ", ".join(st.title for st in request.sub_topics)
        scope = (
            f'Generate {request.count} multiple-choice quiz questions{difficulty} for a cybersecurity '
            f'training module titled "{request.module_title}".\n'
            f"The questions should give a broad overview of these sub-topics: {titles}."
        )

    return (
        f"{scope}\n"
        "For each question, provide exactly 4 options and the single correct answer, copied verbatim "
        "from the options, plus a one-sentence explanation.\n"
        'Return only a JSON array of objects with keys "question", "options", "correctAnswer", "explanation".'
    )


def parse_response(text: str) -> list[dict[str, Any]]:
    """Extract the JSON array from a model response."""
    json_match = re.search(r"\[[\s\S]*\]", text)
    if json_match:
        json_str = json_match.group(0)
    else:
        code_match = re.search(r"```(?:json)?\s*([\s\S]*?)```", text)
        if not code_match:
            raise GenerationError("No JSON array found in the model response")
        json_str = code_match.group(1).strip()

    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise GenerationError(f"Model returned invalid JSON: {e}") from e

    if not isinstance(data, list):
        data = [data]
    if not data or not isinstance(data[0], dict) or not data[0].get("question"):
        raise GenerationError("Invalid format received from the model")
    return data


class GeminiQuestionGenerator:
    """Generate questions with Google Gemini."""

    def __init__(self, api_key: str | None = None, model_name: str | None = None):
        settings = get_settings()
        self.api_key = api_key or settings.gemini_api_key
        self.model_name = model_name or settings.ai_model

        if not self.api_key:
            raise ValueError("Gemini API key required")

        self._client = None

    @property
    def client(self):
        """Lazy-load Gemini client."""
        if self._client is None:
            import google.generativeai as genai

            genai.configure(api_key=self.api_key)
            self._client = genai.GenerativeModel(model_name=self.model_name)
        return self._client

    def generate(self, request: GenerationRequest) -> list[dict[str, Any]]:
        prompt = build_prompt(request)
        logger.debug("Requesting {} questions for {!r} from {}", request.count, request.focus, self.model_name)
        try:
            response = self.client.generate_content(
                prompt,
                generation_config={
                    "temperature": 0.4,
                    "response_mime_type": "application/json",
                },
            )
            text = response.text
        except Exception as e:
            logger.error("Gemini API error: {}", e)
            raise GenerationError(f"Question generation failed: {e}") from e

        if not text:
            raise GenerationError("Empty response from Gemini")
        return parse_response(text)


class OfflineQuestionGenerator:
    """Sample questions returned when no AI backend is configured."""

    def generate(self, request: GenerationRequest) -> list[dict[str, Any]]:
        topic = request.focus
        logger.warning("No AI API key configured - returning sample questions for {!r}", topic)
        return [
            {
                "question": f"What is the primary purpose of Multi-Factor Authentication (MFA) in the context of {topic}?",
                "options": [
                    "To make passwords longer",
                    "To add an extra layer of security beyond just a password",
                    "To share your account with a colleague safely",
                    "To automatically change your password every month",
                ],
                "correctAnswer": "To add an extra layer of security beyond just a password",
            },
            {
                "question": f"Which of these is the strongest password, based on the principles of {topic}?",
                "options": [
                    "Password123",
                    "MyDogFido!2024",
                    "!@#$%",
                    "th1s-Is-a-V3ry-L0ng-&-C0mpl3x-P@ssphr@se!",
                ],
                "correctAnswer": "th1s-Is-a-V3ry-L0ng-&-C0mpl3x-P@ssphr@se!",
            },
        ]


def get_question_generator(settings: Settings | None = None) -> QuestionGenerator:
    """Gemini when an API key is configured, the offline sampler otherwise."""
    settings = settings or get_settings()
    if settings.has_ai_configured():
        return GeminiQuestionGenerator(api_key=settings.gemini_api_key, model_name=settings.ai_model)
    return OfflineQuestionGenerator()
