"""
Unit tests for the question bank.
"""

import pytest

from certpath.content.bank import QuestionBank
from conftest import make_question


class TestBankDocuments:
    def test_round_trip_preserves_order(self):
        bank = QuestionBank()
        bank.replace_topic(1, "Ports", [make_question(f"q{i}") for i in range(5)])
        bank.replace_topic(1, "Ports::TCP", [make_question("t1")])

        rebuilt = QuestionBank.from_document(bank.to_document())
        assert [q.id for q in rebuilt.questions(1, "Ports")] == ["q0", "q1", "q2", "q3", "q4"]
        assert list(rebuilt.topics(1)) == ["Ports", "Ports::TCP"]

    def test_module_keys_become_ints(self):
        bank = QuestionBank.from_document({"7": {"Hashing": []}})
        assert bank.module_ids() == [7]

    def test_rejects_non_object(self):
        with pytest.raises(ValueError):
            QuestionBank.from_document(["not", "a", "bank"])


class TestBankMutations:
    def test_reads_return_copies(self):
        bank = QuestionBank()
        bank.replace_topic(1, "Ports", [make_question("q1")])
        bank.questions(1, "Ports").clear()
        assert bank.count(1, "Ports") == 1

    def test_append(self):
        bank = QuestionBank()
        assert bank.append_to_topic(1, "Ports", [make_question("q1"), make_question("q2")]) == 2
        assert bank.append_to_topic(1, "Ports", [make_question("q3")]) == 1
        assert bank.count(1, "Ports") == 3

    def test_merge_overwrites_whole_topics(self):
        bank = QuestionBank()
        bank.replace_topic(1, "Ports", [make_question("old1"), make_question("old2")])
        bank.replace_topic(1, "Firewalls", [make_question("keep")])

        bank.merge_topics(1, {"Ports": [make_question("new")]})

        assert [q.id for q in bank.questions(1, "Ports")] == ["new"]
        assert [q.id for q in bank.questions(1, "Firewalls")] == ["keep"]

    def test_remove_question(self):
        bank = QuestionBank()
        bank.replace_topic(1, "Ports", [make_question("q1"), make_question("q2")])
        assert bank.remove_question(1, "Ports", "q1") is True
        assert bank.remove_question(1, "Ports", "missing") is False
        assert [q.id for q in bank.questions(1, "Ports")] == ["q2"]

    def test_rename_rewrites_owned_keys_only(self):
        bank = QuestionBank()
        bank.replace_topic(1, "Ports", [make_question("a")])
        bank.replace_topic(1, "Ports::TCP", [make_question("b")])
        bank.replace_topic(1, "Portsmouth", [make_question("c")])
        bank.replace_topic(2, "Ports", [make_question("d")])

        assert bank.rename_sub_topic(1, "Ports", "Protocols") == 2

        assert list(bank.topics(1)) == ["Protocols", "Protocols::TCP", "Portsmouth"]
        assert bank.questions(1, "Protocols::TCP")[0].id == "b"
        assert bank.count(2, "Ports") == 1

    def test_rename_onto_orphaned_key_merges(self):
        bank = QuestionBank()
        bank.replace_topic(1, "Protocols", [make_question("orphan")])
        bank.replace_topic(1, "Ports", [make_question("a"), make_question("b")])

        assert bank.rename_sub_topic(1, "Ports", "Protocols") == 1

        assert list(bank.topics(1)) == ["Protocols"]
        assert [q.id for q in bank.questions(1, "Protocols")] == ["orphan", "a", "b"]

    def test_purge_module(self):
        bank = QuestionBank()
        bank.replace_topic(1, "Ports", [make_question("a")])
        assert bank.purge_module(1) is True
        assert bank.purge_module(1) is False
        assert bank.total() == 0
