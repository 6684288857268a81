"""
Progression: unlocked modules/sub-topics and the transitions that grow them.
"""

from .advancer import (
    ProgressionAdvancer,
    ProgressionEvent,
    ProgressionEventType,
    UnlockOutcome,
    UnlockResult,
    apply_unlock_code,
    default_unlocks,
    seed_default_unlocks,
)
from .state import ProgressionState, sub_topic_key

__all__ = [
    "ProgressionAdvancer",
    "ProgressionEvent",
    "ProgressionEventType",
    "ProgressionState",
    "UnlockOutcome",
    "UnlockResult",
    "apply_unlock_code",
    "default_unlocks",
    "seed_default_unlocks",
    "sub_topic_key",
]
