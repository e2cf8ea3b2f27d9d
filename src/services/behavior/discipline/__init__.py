"""
Discipline rules for behaviour services.
Offense escalation, sanction lookup, merit points and behaviour bands.
"""

from .sanction_resolver import (
    OFFENSE_KEYS,
    offense_key,
    find_previous_offenses,
    suggest_offense_number,
    resolve_sanction,
    build_sanction_preview,
    filter_misdemeanors_by_location
)
from .merit_tiers import MERIT_TIER_POINTS, merit_points
from .heat_score import behavior_band

__all__ = [
    'OFFENSE_KEYS',
    'offense_key',
    'find_previous_offenses',
    'suggest_offense_number',
    'resolve_sanction',
    'build_sanction_preview',
    'filter_misdemeanors_by_location',
    'MERIT_TIER_POINTS',
    'merit_points',
    'behavior_band'
]
