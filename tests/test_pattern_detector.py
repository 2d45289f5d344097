"""
Tests for the regex based emotion / parts / needs detector.
"""

import pytest

from detector.core.models import DetectedLists
from detector.core.patterns import clean_capture
from detector.pattern_detector import EmotionPartsDetector


@pytest.fixture
def detector():
    return EmotionPartsDetector()


class TestCleanCapture:
    """Normalization of captured phrases."""

    def test_capitalizes_and_truncates_to_two_words(self):
        assert clean_capture("  HELLO   World  again ") == "Hello world"

    def test_drops_stop_words(self):
        assert clean_capture("the") == ""
        assert clean_capture("THIS") == ""

    def test_drops_short_tokens(self):
        assert clean_capture("ok") == ""
        assert clean_capture("") == ""

    def test_keeps_two_word_phrases_starting_with_stop_word(self):
        assert clean_capture("the one") == "The one"


class TestEmotionDetection:

    def test_simple_feeling(self, detector):
        lists = detector.analyze_text("I feel sad.")

        assert lists.emotions == ["Sad"]
        assert lists.parts == []
        assert lists.needs == []

    def test_deduplicates_across_messages_and_case(self, detector):
        detector.analyze_text("I feel lonely.")
        lists = detector.analyze_text("i FEEL LONELY")

        assert lists.emotions == ["Lonely"]

    def test_collapses_whitespace(self, detector):
        lists = detector.analyze_text("I feel   very    tired")

        assert lists.emotions == ["Very tired"]

    def test_results_are_sorted(self, detector):
        lists = detector.analyze_text("I feel tired. I feel anxious.")

        assert lists.emotions == ["Anxious", "Tired"]

    def test_stop_words_and_short_captures_ignored(self, detector):
        lists = detector.analyze_text("I keep feeling this. I'm ok")

        assert lists.emotions == []


class TestPartsDetection:

    def test_part_of_me_phrase(self, detector):
        lists = detector.analyze_text("There is a part of me that wants to hide.")

        assert lists.parts == ["Wants to"]
        assert lists.needs == []

    def test_role_words_and_inner_parts(self, detector):
        lists = detector.analyze_text("My inner critic is loud and the manager takes over.")

        assert lists.parts == ["Critic", "Critic is", "Manager"]


class TestNeedsDetection:

    def test_need_phrase_limited_to_two_words(self, detector):
        lists = detector.analyze_text("I need to feel safe and loved")

        assert lists.needs == ["Feel safe"]

    def test_longing_and_desire(self, detector):
        lists = detector.analyze_text("Longing for connection. A desire for rest.")

        assert lists.needs == ["Connection", "Rest"]


class TestDetectorState:

    @pytest.mark.parametrize("value", [None, "", 42])
    def test_invalid_input_returns_current_totals(self, detector, value):
        detector.analyze_text("I feel sad.")

        lists = detector.analyze_text(value)

        assert lists == DetectedLists(emotions=["Sad"])

    def test_add_message_invokes_callback(self, detector):
        seen = []

        lists = detector.add_message("I feel calm.", on_detection_update=seen.append)

        assert seen == [lists]
        assert lists.emotions == ["Calm"]

    def test_reset_clears_everything(self, detector):
        detector.analyze_text("I feel sad. The part of me that hides. I need rest.")
        assert not detector.get_current_lists().is_empty()

        detector.reset()

        assert detector.get_current_lists().is_empty()

    def test_manual_add_and_remove(self, detector):
        detector.add_emotion("Grief")
        detector.add_part("Inner child")
        detector.add_need(" Rest ")

        assert detector.get_current_lists() == DetectedLists(
            emotions=["Grief"], parts=["Inner child"], needs=["Rest"]
        )

        detector.remove_emotion("Grief")
        detector.remove_part("Not there")

        lists = detector.get_current_lists()
        assert lists.emotions == []
        assert lists.parts == ["Inner child"]
