"""
Unit tests for content models and topic identifiers.
"""

import pytest
from pydantic import ValidationError

from certpath.content.models import (
    Difficulty,
    Module,
    Question,
    SubTopic,
    rename_topic_identifier,
    split_topic_identifier,
    topic_identifier,
)


class TestQuestion:
    def test_parses_wire_names(self, sample_question):
        question = Question.model_validate(sample_question)
        assert question.correct_answer == "SHA-256"
        assert question.difficulty is Difficulty.LOW

    def test_to_document_uses_camel_case(self, sample_question):
        document = Question.model_validate(sample_question).to_document()
        assert document["correctAnswer"] == "SHA-256"
        assert "correct_answer" not in document

    def test_optional_fields_omitted(self, sample_question):
        del sample_question["explanation"]
        del sample_question["difficulty"]
        document = Question.model_validate(sample_question).to_document()
        assert set(document) == {"id", "question", "options", "correctAnswer"}

    def test_requires_four_options(self, sample_question):
        sample_question["options"] = ["SHA-256", "MD5", "SHA-1"]
        with pytest.raises(ValidationError):
            Question.model_validate(sample_question)

    def test_answer_must_be_an_option(self, sample_question):
        sample_question["correctAnswer"] = "SHA-3"
        with pytest.raises(ValidationError):
            Question.model_validate(sample_question)

    def test_rejects_unknown_difficulty(self, sample_question):
        sample_question["difficulty"] = "Impossible"
        with pytest.raises(ValidationError):
            Question.model_validate(sample_question)


class TestModule:
    def test_sub_topic_lookup(self):
        module = Module(id=1, title="Crypto", sub_topics=[SubTopic(title="Hashing"), SubTopic(title="PKI")])
        assert module.find_sub_topic("PKI").title == "PKI"
        assert module.find_sub_topic("Nope") is None
        assert module.sub_topic_index("PKI") == 1
        assert module.sub_topic_index("Nope") == -1

    def test_defaults(self):
        module = Module(id=4, title="New")
        assert module.icon == "book-open"
        assert module.color == "bg-gray-100 text-gray-600"
        assert module.to_document()["subTopics"] == []


class TestTopicIdentifier:
    def test_sub_topic_only(self):
        assert topic_identifier("Hashing") == "Hashing"
        assert split_topic_identifier("Hashing") == ("Hashing", None)

    def test_with_content_point(self):
        assert topic_identifier("Hashing", "SHA-2") == "Hashing::SHA-2"
        assert split_topic_identifier("Hashing::SHA-2") == ("Hashing", "SHA-2")

    def test_split_on_first_separator(self):
        assert split_topic_identifier("A::B::C") == ("A", "B::C")

    def test_rename_owned_identifier(self):
        assert rename_topic_identifier("Old::Point", "Old", "New") == "New::Point"
        assert rename_topic_identifier("Old", "Old", "New") == "New"

    def test_rename_ignores_prefix_lookalikes(self):
        assert rename_topic_identifier("Older", "Old", "New") is None
        assert rename_topic_identifier("Other::Old", "Old", "New") is None
