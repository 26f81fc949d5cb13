"""Letter grades derived from the review total."""

from __future__ import annotations

from typing import Tuple

# (minimum total, grade, verdict), highest threshold first
GRADE_THRESHOLDS: Tuple[Tuple[int, str, str], ...] = (
    (95, "A+", "Fine. I have no notes. Don't let it go to your head."),
    (90, "A", "Surprisingly competent. I'm almost disappointed."),
    (80, "B", "Decent, but I want to speak to whoever wrote the tests."),
    (70, "C", "It works, I guess. That's not the compliment you think it is."),
    (60, "D", "I've seen worse. Not often, but I have."),
    (0, "F", "I need to speak to the manager of this repository."),
)


def clamp_total(total: int) -> int:
    return max(0, min(100, total))


def grade_for(total: int) -> str:
    """Return the letter grade for a 0-100 total."""
    return _lookup(total)[1]


def verdict_for(total: int) -> str:
    """Return the one-line verdict that accompanies the grade."""
    return _lookup(total)[2]


def _lookup(total: int) -> Tuple[int, str, str]:
    clamped = clamp_total(total)
    for entry in GRADE_THRESHOLDS:
        if clamped >= entry[0]:
            return entry
    return GRADE_THRESHOLDS[-1]


__all__ = ["GRADE_THRESHOLDS", "clamp_total", "grade_for", "verdict_for"]
