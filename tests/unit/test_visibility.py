"""
Unit tests for the visibility overlay.
"""

import pytest

from certpath.content.visibility import VisibilityOverlay


class TestDefaults:
    def test_everything_visible_initially(self, visibility):
        assert visibility.is_module_visible(1)
        assert visibility.is_sub_topic_visible(1, "Ports")
        assert visibility.is_content_point_visible(1, "Ports", "TCP")

    def test_absent_flags_default_to_visible(self):
        overlay = VisibilityOverlay()
        assert overlay.is_module_visible(42)
        assert overlay.is_sub_topic_visible(42, "Anything")
        assert overlay.is_content_point_visible(42, "Anything", "Point")


class TestToggles:
    def test_toggle_flips_and_returns_flag(self, visibility):
        assert visibility.toggle_module(1) is False
        assert not visibility.is_module_visible(1)
        assert visibility.toggle_module(1) is True

    def test_levels_are_independent(self, visibility):
        visibility.toggle_sub_topic(1, "Ports")
        assert visibility.is_module_visible(1)
        assert visibility.is_content_point_visible(1, "Ports", "TCP")
        assert not visibility.is_sub_topic_visible(1, "Ports")

    def test_toggle_absent_flag_hides(self):
        overlay = VisibilityOverlay()
        assert overlay.toggle_content_point(5, "Sub", "Point") is False


class TestPersistence:
    def test_saved_flags_override_defaults(self, hierarchy):
        overlay = VisibilityOverlay.all_visible(hierarchy)
        overlay.apply_saved_modules({"2": False})
        overlay.apply_saved_sub_topics({"1": {"Firewalls": False}})
        overlay.apply_saved_content_points({"1": {"Ports": {"UDP": False}}})

        assert not overlay.is_module_visible(2)
        assert not overlay.is_sub_topic_visible(1, "Firewalls")
        assert not overlay.is_content_point_visible(1, "Ports", "UDP")
        assert overlay.is_content_point_visible(1, "Ports", "TCP")

    def test_documents_round_trip(self, visibility, hierarchy):
        visibility.toggle_sub_topic(1, "Ports")
        modules, sub_topics, points = visibility.to_documents()

        restored = VisibilityOverlay.all_visible(hierarchy)
        restored.apply_saved_modules(modules)
        restored.apply_saved_sub_topics(sub_topics)
        restored.apply_saved_content_points(points)
        assert not restored.is_sub_topic_visible(1, "Ports")

    def test_non_boolean_flags_are_ignored(self, hierarchy):
        overlay = VisibilityOverlay.all_visible(hierarchy)
        overlay.apply_saved_modules({"1": "false", "2": 0, "3": False})
        overlay.apply_saved_sub_topics({"1": {"Ports": "false", "Firewalls": False}})
        overlay.apply_saved_content_points({"1": {"Ports": {"TCP": None, "UDP": False}}})

        assert overlay.is_module_visible(1)
        assert overlay.is_module_visible(2)
        assert not overlay.is_module_visible(3)
        assert overlay.is_sub_topic_visible(1, "Ports")
        assert not overlay.is_sub_topic_visible(1, "Firewalls")
        assert overlay.is_content_point_visible(1, "Ports", "TCP")
        assert not overlay.is_content_point_visible(1, "Ports", "UDP")

    def test_rejects_non_object_document(self, visibility):
        with pytest.raises(ValueError):
            visibility.apply_saved_modules([True, False])


class TestStructureChanges:
    def test_rename_moves_flags(self, visibility):
        visibility.toggle_sub_topic(1, "Ports")
        visibility.toggle_content_point(1, "Ports", "UDP")

        visibility.rename_sub_topic(1, "Ports", "Protocols")

        assert "Ports" not in visibility.sub_topics[1]
        assert "Ports" not in visibility.content_points[1]
        assert not visibility.is_sub_topic_visible(1, "Protocols")
        assert not visibility.is_content_point_visible(1, "Protocols", "UDP")

    def test_purge_module(self, visibility):
        visibility.purge_module(1)
        assert 1 not in visibility.modules
        assert 1 not in visibility.sub_topics
        assert 1 not in visibility.content_points
