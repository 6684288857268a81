"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from certpath.config import Settings  # noqa: E402
from certpath.content.bank import QuestionBank  # noqa: E402
from certpath.content.hierarchy import ContentHierarchy  # noqa: E402
from certpath.content.models import Exam, Module, Question, SubTopic  # noqa: E402
from certpath.content.visibility import VisibilityOverlay  # noqa: E402
from certpath.engine import ContentEngine  # noqa: E402
from certpath.generation.generator import OfflineQuestionGenerator  # noqa: E402
from certpath.store.blob_store import MemoryBlobStore  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


def make_question(qid: str = "q1", text: str = "What does TCP stand for?", **overrides) -> Question:
    """Build a valid question; the first option is the correct answer."""
    data = {
        "id": qid,
        "question": text,
        "options": ["Transmission Control Protocol", "Trivial Copy Protocol", "Token Control", "Transfer Code"],
        "correctAnswer": "Transmission Control Protocol",
    }
    data.update(overrides)
    return Question.model_validate(data)


def build_exams() -> list[Exam]:
    """
    Two small exams.

    Security+ (1): Networking (1) [Ports: TCP, UDP | Firewalls], Crypto (2) [Hashing | Symmetric]
    CISSP (2):     Risk (3) [Governance]
    """
    return [
        Exam(
            id=1,
            title="Security+",
            description="CompTIA Security+",
            modules=[
                Module(
                    id=1,
                    title="Networking",
                    icon="wifi",
                    sub_topics=[SubTopic(title="Ports", content=["TCP", "UDP"]), SubTopic(title="Firewalls")],
                ),
                Module(
                    id=2,
                    title="Crypto",
                    icon="key",
                    sub_topics=[SubTopic(title="Hashing"), SubTopic(title="Symmetric")],
                ),
            ],
        ),
        Exam(
            id=2,
            title="CISSP",
            description="Certified Information Systems Security Professional",
            modules=[Module(id=3, title="Risk", icon="shield", sub_topics=[SubTopic(title="Governance")])],
        ),
    ]


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def settings():
    """Settings isolated from the environment and any .env file."""
    return Settings(_env_file=None, store_url="memory://", gemini_api_key=None, sync_url=None)


@pytest.fixture
def sample_question():
    """Provide a sample question document for testing."""
    return {
        "id": "q1",
        "question": "Which hash function produces a 256-bit digest?",
        "options": ["MD5", "SHA-1", "SHA-256", "CRC32"],
        "correctAnswer": "SHA-256",
        "explanation": "SHA-256 is part of the SHA-2 family.",
        "difficulty": "Low",
    }


@pytest.fixture
def hierarchy():
    return ContentHierarchy(build_exams())


@pytest.fixture
def bank():
    return QuestionBank()


@pytest.fixture
def visibility(hierarchy):
    return VisibilityOverlay.all_visible(hierarchy)


@pytest.fixture
def memory_store():
    return MemoryBlobStore()


@pytest.fixture
def engine(memory_store, settings):
    """Engine over the two small exams with an in-memory store."""
    return ContentEngine(
        memory_store,
        settings=settings,
        generator=OfflineQuestionGenerator(),
        default_exams=build_exams,
    )


@pytest.fixture
def empty_engine(settings):
    """Engine for a platform without any exams."""
    return ContentEngine(
        MemoryBlobStore(),
        settings=settings,
        generator=OfflineQuestionGenerator(),
        default_exams=list,
    )
