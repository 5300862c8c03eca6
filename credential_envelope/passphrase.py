"""
Passphrase strength feedback and suggestions.

Advisory only: the service's minimum-length policy is what gates a save.
"""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass, field
from typing import List

SUGGESTION_WORDS = (
    "ocean", "mountain", "forest", "river", "valley", "desert", "meadow", "canyon",
    "sunrise", "sunset", "rainbow", "thunder", "lightning", "breeze", "shadow", "crystal",
    "diamond", "emerald", "sapphire", "ruby", "golden", "silver", "copper", "bronze",
    "swift", "brave", "wise", "noble", "gentle", "fierce", "calm", "bright",
)

_REPEATED = re.compile(r"^(.)\1+$", re.DOTALL)
_COMMON_PREFIX = re.compile(r"^(password|123456|qwerty|admin)", re.IGNORECASE)


@dataclass(frozen=True)
class PassphraseStrength:
    """Score (0-6) with human-readable hints."""

    score: int
    feedback: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.score >= 4


def assess_passphrase(passphrase: str) -> PassphraseStrength:
    """
    Score a passphrase on length and character variety.

    Repeating a single character or starting with a well-known password
    drops the score to zero.
    """
    feedback = []
    score = 0

    if len(passphrase) >= 12:
        score += 2
    elif len(passphrase) >= 8:
        score += 1
    else:
        feedback.append("Use at least 8 characters")

    for pattern in (r"[a-z]", r"[A-Z]", r"[0-9]", r"[^a-zA-Z0-9]"):
        if re.search(pattern, passphrase):
            score += 1

    if score < 3:
        feedback.append("Include uppercase, lowercase, numbers, and symbols")

    if _REPEATED.match(passphrase):
        feedback.append("Avoid repeating characters")
        score = 0

    if _COMMON_PREFIX.match(passphrase):
        feedback.append("Avoid common passwords")
        score = 0

    return PassphraseStrength(score=score, feedback=feedback)


def suggest_passphrase(word_count: int = 3) -> str:
    """Three distinct words and a four-digit number, joined by hyphens."""
    words = secrets.SystemRandom().sample(SUGGESTION_WORDS, word_count)
    number = 1000 + secrets.randbelow(9000)
    return "-".join([*words, str(number)])
