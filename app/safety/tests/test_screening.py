"""
Tests for manipulation screening of messages.
"""

import pytest

from accounts.tests.factories import UserFactory
from safety.models import SafetyEvent, SafetyScore
from safety.rules import MANIPULATION_PATTERNS, MessageContext
from safety.services import SafetyService
from safety.types import PatternSeverity, SafetyEventType


def _matched(text):
    return [hit.rule for hit in MANIPULATION_PATTERNS.evaluate(MessageContext(text=text))]


class TestManipulationPatterns:
    @pytest.mark.parametrize(
        ("text", "pattern"),
        [
            ("After everything I've done for you?", "GUILT_TRIP"),
            ("This is your last chance to answer", "FAKE_ULTIMATUM"),
            ("If you don't reply by tonight I'm done", "FAKE_ULTIMATUM"),
            ("I'll expose you to your followers", "REPUTATION_THREAT"),
            ("We have something special, admit it", "PARASOCIAL_LEVERAGE"),
            ("I know where you live", "FEAR_MANIPULATION"),
        ],
    )
    def test_detects_pattern(self, text, pattern):
        assert _matched(text) == [pattern]

    def test_clean_message_matches_nothing(self):
        assert _matched("Loved the stream yesterday, see you Friday!") == []

    def test_multiple_patterns_reported_in_order(self):
        text = "I thought you cared. You'll regret ignoring me."

        assert _matched(text) == ["GUILT_TRIP", "FEAR_MANIPULATION"]


class TestScreenMessage:
    @pytest.fixture
    def sender(self, db):
        return UserFactory()

    def test_clean_message_allowed(self, sender):
        screening = SafetyService.screen_message(sender, "Great call today, thanks!")

        assert screening.allowed is True
        assert screening.confidence == 0.0
        assert screening.patterns == []
        assert not SafetyEvent.objects.exists()

    def test_medium_pattern_allowed_but_reported(self, sender):
        """Should let a single medium pattern through (confidence 0.5)."""
        screening = SafetyService.screen_message(sender, "I thought you cared about me")

        assert screening.allowed is True
        assert screening.confidence == 0.5
        assert screening.patterns == ["GUILT_TRIP"]
        assert not SafetyEvent.objects.exists()

    def test_high_pattern_blocked(self, sender):
        screening = SafetyService.screen_message(sender, "Watch your back.")

        assert screening.allowed is False
        assert screening.confidence == 0.75
        assert screening.severity == PatternSeverity.HIGH
        assert screening.event.impact == -15
        assert screening.event.event_type == SafetyEventType.THREATS
        assert SafetyScore.objects.get(user=sender).platform_safety == 85

    def test_critical_pattern_doubles_penalty(self, sender):
        screening = SafetyService.screen_message(sender, "I will expose you")

        assert screening.allowed is False
        assert screening.event.impact == -20

    def test_mixed_patterns_use_mean_confidence(self, sender):
        """Should block at (0.5 + 0.75) / 2 and charge the first pattern's dimension."""
        screening = SafetyService.screen_message(
            sender, "I thought you cared. You'll regret this."
        )

        assert screening.allowed is False
        assert screening.confidence == 0.625
        assert screening.severity == PatternSeverity.HIGH
        assert screening.event.event_type == SafetyEventType.EMOTIONAL_FOR_TOKENS
        score = SafetyScore.objects.get(user=sender)
        assert score.tone_and_boundaries == 85
