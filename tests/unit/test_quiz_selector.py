"""
Unit tests for quiz question selection and the daily plan.
"""

import random

import pytest

from certpath.content.bank import QuestionBank
from certpath.quiz.selector import QuizConfig, QuizMode, daily_config, select_questions, total_days
from conftest import make_question


@pytest.fixture
def sql_injection_bank():
    """Twelve questions stored under 'Web Attacks::SQL Injection' in module 5."""
    bank = QuestionBank()
    bank.replace_topic(5, "Web Attacks::SQL Injection", [make_question(f"sqli-{i}") for i in range(1, 13)])
    return bank


TOPIC = "Web Attacks::SQL Injection"


class TestExamMode:
    def test_returns_every_question(self, sql_injection_bank):
        config = QuizConfig(count=10, mode=QuizMode.EXAM)
        selected = select_questions(sql_injection_bank, 5, TOPIC, config, random.Random(7))

        assert len(selected) == 12
        assert {q.id for q in selected} == {f"sqli-{i}" for i in range(1, 13)}

    def test_does_not_reorder_the_bank(self, sql_injection_bank):
        select_questions(sql_injection_bank, 5, TOPIC, QuizConfig(count=1, mode=QuizMode.EXAM))
        assert sql_injection_bank.questions(5, TOPIC)[0].id == "sqli-1"


class TestDailyPlan:
    def test_day_two_is_the_tail_in_order(self, sql_injection_bank):
        config = daily_config(2, 12)
        selected = select_questions(sql_injection_bank, 5, TOPIC, config)
        assert [q.id for q in selected] == ["sqli-11", "sqli-12"]

    def test_days_are_disjoint_and_stable(self, sql_injection_bank):
        day_one = [q.id for q in select_questions(sql_injection_bank, 5, TOPIC, daily_config(1, 12))]
        again = [q.id for q in select_questions(sql_injection_bank, 5, TOPIC, daily_config(1, 12))]
        day_two = [q.id for q in select_questions(sql_injection_bank, 5, TOPIC, daily_config(2, 12))]

        assert day_one == again == [f"sqli-{i}" for i in range(1, 11)]
        assert not set(day_one) & set(day_two)

    def test_total_days(self):
        assert total_days(12) == 2
        assert total_days(10) == 1
        assert total_days(0) == 0
        assert total_days(7, per_day=3) == 3

    def test_day_beyond_plan_rejected(self):
        with pytest.raises(ValueError):
            daily_config(3, 12)
        with pytest.raises(ValueError):
            daily_config(0, 12)


class TestRandomStudy:
    @pytest.mark.parametrize("count,expected", [(1, 1), (5, 5), (12, 12), (50, 12)])
    def test_length_is_min_of_requested_and_available(self, sql_injection_bank, count, expected):
        selected = select_questions(sql_injection_bank, 5, TOPIC, QuizConfig(count=count))
        assert len(selected) == expected
        assert len({q.id for q in selected}) == expected

    def test_unshuffled_takes_the_head(self, sql_injection_bank):
        selected = select_questions(sql_injection_bank, 5, TOPIC, QuizConfig(count=3, shuffle=False))
        assert [q.id for q in selected] == ["sqli-1", "sqli-2", "sqli-3"]

    def test_count_below_one_rejected(self, sql_injection_bank):
        with pytest.raises(ValueError):
            select_questions(sql_injection_bank, 5, TOPIC, QuizConfig(count=0))

    def test_empty_topic_gives_empty_selection(self, sql_injection_bank):
        assert select_questions(sql_injection_bank, 5, "Web Attacks", QuizConfig(count=5)) == []
