"""Behaviour score bands. Lower scores are better."""

from typing import Optional

BEHAVIOR_BANDS = (
    (3, "Excellent"),
    (5, "Good"),
    (7, "Warning"),
    (9, "Concerning"),
)
WORST_BAND = "Critical"


def behavior_band(score: Optional[float]) -> str:
    score = score or 0
    for ceiling, label in BEHAVIOR_BANDS:
        if score <= ceiling:
            return label
    return WORST_BAND
