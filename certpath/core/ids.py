"""
Identifier allocation.

Exam and module ids are small integers (``max + 1``); module ids are unique
across the whole platform, not per exam. Question and resource ids are
best-effort unique strings: a millisecond timestamp followed by a random
base-36 suffix. Collisions are not checked.
"""
from __future__ import annotations

import secrets
import time
from collections.abc import Iterable

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def _next_int(existing_ids: Iterable[int]) -> int:
    return max(existing_ids, default=0) + 1


def next_module_id(existing_ids: Iterable[int]) -> int:
    """Return an id strictly greater than every existing module id (1 if none)."""
    return _next_int(existing_ids)


def next_exam_id(existing_ids: Iterable[int]) -> int:
    """Return an id strictly greater than every existing exam id (1 if none)."""
    return _next_int(existing_ids)


def _random_suffix(length: int = 9) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def next_question_id() -> str:
    """Return a new question id, e.g. ``1718000000000k3j9x0q2a``."""
    return f"{int(time.time() * 1000)}{_random_suffix()}"


def next_resource_id() -> str:
    """Return a new study resource id."""
    return f"res-{int(time.time() * 1000)}{_random_suffix(6)}"
