"""
Unit tests for progression: the advancer state machine, default unlocks and
bulk unlock codes.

Fixture layout (see conftest.build_exams):
    Security+ -> Networking [Ports, Firewalls], Crypto [Hashing, Symmetric]
    CISSP     -> Risk [Governance]
"""

import pytest

from certpath.progress import (
    ProgressionAdvancer,
    ProgressionEventType,
    ProgressionState,
    UnlockOutcome,
    apply_unlock_code,
    default_unlocks,
    seed_default_unlocks,
)
from certpath.quiz.selector import QuizMode

RESERVED = ["dqadm", "adm"]


@pytest.fixture
def state(hierarchy):
    state = ProgressionState()
    seed_default_unlocks(hierarchy, state)
    return state


@pytest.fixture
def advancer():
    return ProgressionAdvancer(pass_threshold=80)


class TestProgressionState:
    def test_keys_are_module_dash_title(self):
        state = ProgressionState()
        state.unlock_sub_topic(4, "Footprinting Concepts")
        assert state.unlocked_sub_topic_keys == ["4-Footprinting Concepts"]

    def test_sets_are_duplicate_free(self):
        state = ProgressionState([1, 1, 2], ["1-A", "1-A"])
        assert state.unlocked_module_ids == [1, 2]
        assert state.unlock_module(1) is False
        assert state.unlocked_sub_topic_keys == ["1-A"]

    def test_documents_round_trip(self):
        state = ProgressionState([1, 3], ["1-Ports", "3-Governance"])
        restored = ProgressionState.from_documents(*state.to_documents())
        assert restored.unlocked_module_ids == [1, 3]
        assert restored.is_sub_topic_unlocked(3, "Governance")

    def test_rejects_non_array_documents(self):
        with pytest.raises(ValueError):
            ProgressionState.from_documents({"1": True}, [])

    def test_rename_keeps_position(self):
        state = ProgressionState([1], ["1-Ports", "1-Firewalls"])
        assert state.rename_sub_topic(1, "Ports", "Protocols") is True
        assert state.unlocked_sub_topic_keys == ["1-Protocols", "1-Firewalls"]
        assert state.rename_sub_topic(1, "Missing", "Other") is False

    def test_purge_module(self):
        state = ProgressionState([1, 2], ["1-Ports", "2-Hashing"])
        state.purge_module(1, ["Ports", "Firewalls"])
        assert state.unlocked_module_ids == [2]
        assert state.unlocked_sub_topic_keys == ["2-Hashing"]


class TestDefaults:
    def test_first_module_and_sub_topic_of_each_exam(self, hierarchy):
        assert default_unlocks(hierarchy) == ([1, 3], ["1-Ports", "3-Governance"])

    def test_seed_only_when_empty(self, hierarchy):
        state = ProgressionState([2], [])
        assert seed_default_unlocks(hierarchy, state) is False
        assert state.unlocked_module_ids == [2]


class TestAdvancer:
    def test_pass_unlocks_next_sub_topic(self, hierarchy, state, advancer):
        event = advancer.advance(hierarchy, state, 1, "Ports", QuizMode.EXAM, 80)

        assert event.type is ProgressionEventType.SUB_TOPIC_UNLOCKED
        assert event.sub_topic == "Firewalls"
        assert state.is_sub_topic_unlocked(1, "Firewalls")

    def test_replaying_a_pass_is_idempotent(self, hierarchy, state, advancer):
        advancer.advance(hierarchy, state, 1, "Ports", QuizMode.EXAM, 100)
        before = state.to_documents()

        assert advancer.advance(hierarchy, state, 1, "Ports", QuizMode.EXAM, 100) is None
        assert state.to_documents() == before

    def test_study_mode_never_advances(self, hierarchy, state, advancer):
        before = state.to_documents()
        assert advancer.advance(hierarchy, state, 1, "Ports", QuizMode.STUDY, 100) is None
        assert state.to_documents() == before

    def test_below_threshold_never_advances(self, hierarchy, state, advancer):
        assert advancer.advance(hierarchy, state, 1, "Ports", QuizMode.EXAM, 79) is None
        assert not state.is_sub_topic_unlocked(1, "Firewalls")

    def test_content_point_quiz_never_advances(self, hierarchy, state, advancer):
        assert advancer.advance(hierarchy, state, 1, "Ports", QuizMode.EXAM, 100, content_point="TCP") is None
        assert not state.is_sub_topic_unlocked(1, "Firewalls")

    def test_last_sub_topic_completes_module(self, hierarchy, state, advancer):
        event = advancer.advance(hierarchy, state, 1, "Firewalls", QuizMode.EXAM, 90)

        assert event.type is ProgressionEventType.MODULE_COMPLETED
        assert event.module_id == 2
        assert state.is_module_unlocked(2)
        assert state.is_sub_topic_unlocked(2, "Hashing")
        assert not state.is_sub_topic_unlocked(2, "Symmetric")

    def test_end_of_track_is_a_noop(self, hierarchy, state, advancer):
        before = state.to_documents()
        assert advancer.advance(hierarchy, state, 2, "Symmetric", QuizMode.EXAM, 100) is None
        assert advancer.advance(hierarchy, state, 3, "Governance", QuizMode.EXAM, 100) is None
        assert state.to_documents() == before

    def test_tracks_do_not_cross_exams(self, hierarchy, state, advancer):
        advancer.advance(hierarchy, state, 2, "Symmetric", QuizMode.EXAM, 100)
        assert state.unlocked_module_ids == [1, 3]

    def test_unknown_sub_topic_is_ignored(self, hierarchy, state, advancer):
        assert advancer.advance(hierarchy, state, 1, "Nope", QuizMode.EXAM, 100) is None

    def test_custom_threshold(self, hierarchy, state):
        lenient = ProgressionAdvancer(pass_threshold=50)
        assert lenient.qualifies(QuizMode.EXAM, 50)
        assert lenient.advance(hierarchy, state, 1, "Ports", QuizMode.EXAM, 50) is not None


class TestUnlockCodes:
    def test_reserved_code_toggles(self, hierarchy, state):
        result = apply_unlock_code(hierarchy, state, "dqadm", RESERVED)
        assert result.outcome is UnlockOutcome.ALL_UNLOCKED
        assert state.unlocked_module_ids == [1, 2, 3]
        assert state.is_sub_topic_unlocked(2, "Symmetric")

        result = apply_unlock_code(hierarchy, state, "adm", RESERVED)
        assert result.outcome is UnlockOutcome.RESET
        assert state.to_documents() == ([1, 3], ["1-Ports", "3-Governance"])

    def test_reserved_code_is_case_insensitive(self, hierarchy, state):
        result = apply_unlock_code(hierarchy, state, "  DQADM ", RESERVED)
        assert result.outcome is UnlockOutcome.ALL_UNLOCKED

    def test_exam_title_unlocks_every_module(self, hierarchy, state):
        result = apply_unlock_code(hierarchy, state, "security+", RESERVED)

        assert result.outcome is UnlockOutcome.EXAM_UNLOCKED
        assert result.matched_title == "Security+"
        assert result.changed is True
        assert state.is_module_unlocked(2)
        assert state.is_sub_topic_unlocked(1, "Firewalls")
        assert state.is_sub_topic_unlocked(2, "Symmetric")

    def test_module_title_unlocks_one_module(self, hierarchy, state):
        result = apply_unlock_code(hierarchy, state, "Crypto", RESERVED)

        assert result.outcome is UnlockOutcome.MODULE_UNLOCKED
        assert state.is_sub_topic_unlocked(2, "Hashing")
        assert not state.is_sub_topic_unlocked(1, "Firewalls")

    def test_repeat_unlock_reports_no_change(self, hierarchy, state):
        apply_unlock_code(hierarchy, state, "Crypto", RESERVED)
        assert apply_unlock_code(hierarchy, state, "Crypto", RESERVED).changed is False

    def test_unmatched_code_changes_nothing(self, hierarchy, state):
        before = state.to_documents()
        assert apply_unlock_code(hierarchy, state, "letmein", RESERVED).outcome is UnlockOutcome.NO_MATCH
        assert apply_unlock_code(hierarchy, state, "   ", RESERVED).outcome is UnlockOutcome.NO_MATCH
        assert state.to_documents() == before
