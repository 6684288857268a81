"""
Unit tests for the snapshot reconciler.
"""

import pytest

from certpath.content.bank import QuestionBank
from certpath.content.hierarchy import ContentHierarchy
from certpath.content.visibility import VisibilityOverlay
from certpath.core.errors import ImportFormatError, UnknownContentError
from certpath.sync.reconciler import Reconciler, validate_snapshot


def _question(qid="c1", answer="SHA-256"):
    return {
        "id": qid,
        "question": "Which algorithm is a hash?",
        "options": ["AES", "RSA", "SHA-256", "DES"],
        "correctAnswer": answer,
    }


@pytest.fixture
def reconciler(hierarchy, bank, visibility):
    return Reconciler(hierarchy, bank, visibility)


class TestValidation:
    @pytest.mark.parametrize("document", [None, [], [{"a": 1}], "text", 42])
    def test_rejects_non_object_documents(self, document):
        with pytest.raises(ImportFormatError):
            validate_snapshot(document)

    def test_rejects_non_object_topic_map(self):
        with pytest.raises(ImportFormatError, match="Crypto"):
            validate_snapshot({"Crypto": [_question()]})

    def test_rejects_non_list_topic(self):
        with pytest.raises(ImportFormatError):
            validate_snapshot({"Crypto": {"Hashing": _question()}})

    def test_rejects_invalid_question_with_location(self):
        bad = _question(answer="MD5")
        with pytest.raises(ImportFormatError, match="question 2"):
            validate_snapshot({"Crypto": {"Hashing": [_question(), bad]}})

    def test_rejects_three_options(self):
        bad = _question()
        bad["options"] = ["AES", "RSA", "SHA-256"]
        with pytest.raises(ImportFormatError):
            validate_snapshot({"Crypto": {"Hashing": [bad]}})

    def test_rejects_empty_titles(self):
        with pytest.raises(ImportFormatError):
            validate_snapshot({"   ": {"Hashing": []}})
        with pytest.raises(ImportFormatError):
            validate_snapshot({"Crypto": {"::SHA-2": []}})

    def test_trims_keys(self):
        snapshot = validate_snapshot({" Crypto ": {" Hashing :: SHA-2 ": []}})
        assert snapshot == {"Crypto": {"Hashing::SHA-2": []}}


class TestMerge:
    def test_new_module_on_empty_platform(self):
        hierarchy, bank, visibility = ContentHierarchy(), QuestionBank(), VisibilityOverlay()
        report = Reconciler(hierarchy, bank, visibility).merge({"Cryptography": {"Hashing": [_question()]}})

        assert report.modules_added == 1
        assert report.sub_topics_added == 1
        assert report.content_points_added == 0
        exam = hierarchy.exams[0]
        assert exam.title == "Imported Content"
        module = exam.modules[0]
        assert module.title == "Cryptography"
        assert module.icon == "folder"
        assert [st.title for st in module.sub_topics] == ["Hashing"]
        assert bank.count(module.id, "Hashing") == 1
        assert visibility.is_module_visible(module.id)

    def test_merge_into_existing_module_by_title(self, reconciler, hierarchy, bank):
        report = reconciler.merge({"Crypto": {"Hashing::SHA-2": [_question()], "Asymmetric": []}})

        assert report.modules_added == 0
        assert report.sub_topics_added == 1
        assert report.content_points_added == 1
        module = hierarchy.get_module(2)
        assert [st.title for st in module.sub_topics] == ["Hashing", "Symmetric", "Asymmetric"]
        assert module.find_sub_topic("Hashing").content == ["SHA-2"]
        assert bank.count(2, "Hashing::SHA-2") == 1

    def test_merge_is_idempotent(self, reconciler, hierarchy, bank):
        document = {"Crypto": {"Hashing::SHA-2": [_question()]}, "PKI": {"Certificates": [_question("p1")]}}
        reconciler.merge(document)
        structure = hierarchy.to_document()
        questions = bank.to_document()

        second = reconciler.merge(document)

        assert not second.changed_structure
        assert hierarchy.to_document() == structure
        assert bank.to_document() == questions

    def test_merge_never_removes(self, reconciler, hierarchy, bank, visibility):
        bank.replace_topic(1, "Firewalls", [_question("fw")])
        visibility.toggle_sub_topic(1, "Firewalls")

        reconciler.merge({"Networking": {"Ports": [_question("p")]}})

        module = hierarchy.get_module(1)
        assert [st.title for st in module.sub_topics] == ["Ports", "Firewalls"]
        assert bank.count(1, "Firewalls") == 1
        assert not visibility.is_sub_topic_visible(1, "Firewalls")

    def test_imported_topic_replaces_existing_topic(self, reconciler, bank):
        bank.replace_topic(2, "Hashing", [_question("old1"), _question("old2")])
        reconciler.merge({"Crypto": {"Hashing": [_question("new")]}})
        assert [q.id for q in bank.questions(2, "Hashing")] == ["new"]

    def test_legacy_id_key_resolves_existing_module(self, reconciler, bank):
        report = reconciler.merge({"ID:3": {"Governance": [_question()]}})
        assert report.modules_added == 0
        assert bank.count(3, "Governance") == 1

    def test_legacy_id_key_for_missing_module(self, reconciler, hierarchy):
        reconciler.merge({"ID:77": {"Stuff": []}})
        module = hierarchy.find_module_by_title("Imported Module 77")
        assert module is not None

        again = reconciler.merge({"ID:77": {"Stuff": []}})
        assert again.modules_added == 0

    def test_numeric_key_resolves_module_id(self, reconciler, bank):
        reconciler.merge({"1": {"Ports": [_question()]}})
        assert bank.count(1, "Ports") == 1

    @pytest.mark.parametrize("key", ["\u00b2", "ID:\u0663", "\u0661\u0662"])
    def test_non_ascii_digit_keys_are_titles(self, reconciler, hierarchy, key):
        report = reconciler.merge({key: {"Stuff": []}})
        assert report.modules_added == 1
        assert hierarchy.find_module_by_title(key) is not None

    def test_target_exam_receives_new_modules(self, reconciler, hierarchy):
        report = reconciler.merge({"Asset Security": {"Classification": []}}, target_exam_id=2)
        assert hierarchy.exam_for_module(report.added_module_ids[0]).id == 2

    def test_unknown_target_exam(self, reconciler):
        with pytest.raises(UnknownContentError):
            reconciler.merge({"Asset Security": {}}, target_exam_id=99)

    def test_title_match_beats_target_exam(self, reconciler, hierarchy):
        reconciler.merge({"Networking": {"VPN": []}}, target_exam_id=2)
        assert hierarchy.get_module(1).find_sub_topic("VPN") is not None
        assert len(hierarchy.get_exam(2).modules) == 1
