"""
Tests for passphrase strength feedback and suggestions.
"""

from __future__ import annotations

import pytest

from credential_envelope import assess_passphrase, suggest_passphrase
from credential_envelope.passphrase import SUGGESTION_WORDS


class TestAssessPassphrase:
    def test_strong_passphrase(self):
        strength = assess_passphrase("Blue-Canyon-42!")
        assert strength.score == 6
        assert strength.is_valid
        assert strength.feedback == []

    def test_short_passphrase(self):
        strength = assess_passphrase("abc")
        assert strength.score == 1
        assert not strength.is_valid
        assert strength.feedback == [
            "Use at least 8 characters",
            "Include uppercase, lowercase, numbers, and symbols",
        ]

    def test_medium_length_scores_one(self):
        assert assess_passphrase("abcdefgh").score == 2
        assert assess_passphrase("Abcdefg1").score == 4

    def test_repeated_character_scores_zero(self):
        strength = assess_passphrase("aaaaaaaaaaaa")
        assert strength.score == 0
        assert "Avoid repeating characters" in strength.feedback

    @pytest.mark.parametrize("weak", ["Password123!", "QWERTY-long-phrase", "admin#2024xyz"])
    def test_common_prefix_scores_zero(self, weak):
        strength = assess_passphrase(weak)
        assert strength.score == 0
        assert not strength.is_valid
        assert "Avoid common passwords" in strength.feedback


class TestSuggestPassphrase:
    def test_shape(self):
        parts = suggest_passphrase().split("-")

        assert len(parts) == 4
        assert all(word in SUGGESTION_WORDS for word in parts[:3])
        assert len(set(parts[:3])) == 3
        assert 1000 <= int(parts[3]) <= 9999

    def test_suggestions_vary(self):
        assert len({suggest_passphrase() for _ in range(10)}) > 1

    def test_suggestion_passes_service_policy(self, service):
        suggestion = service.suggest_passphrase()
        service.check_passphrase(suggestion)
        assert service.assess_passphrase(suggestion).score >= 3
