"""
Offense escalation and sanction lookup for new incidents.

A student's offense number for a misdemeanor is one more than the incidents
already on record for that student and misdemeanor. The sanction comes from
the misdemeanor's table for that offense, falling back to the first-offense
sanction.
"""

from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional

from ..base.validators import ValidationError

OFFENSE_KEYS = ("1st", "2nd", "3rd", "4th+")
PREVIEW_OFFENSE_COUNT = 3


def offense_key(offense_number: int) -> str:
    """Map an offense number onto its sanction table key."""
    if offense_number == 1:
        return "1st"
    if offense_number == 2:
        return "2nd"
    if offense_number == 3:
        return "3rd"
    return "4th+"


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _sort_key(record: Any) -> str:
    recorded_at = _field(record, "created_at") or _field(record, "timestamp")
    return str(recorded_at) if recorded_at is not None else ""


def find_previous_offenses(records: Iterable[Any], student_id: Any, misdemeanor_id: Any) -> List[Any]:
    """
    Incidents already recorded against a student for one misdemeanor,
    oldest first. Accepts ORM rows or dicts.
    """
    matches = [
        record for record in records
        if _field(record, "type") == "incident"
        and str(_field(record, "student_id")) == str(student_id)
        and str(_field(record, "misdemeanor_id")) == str(misdemeanor_id)
    ]
    return sorted(matches, key=_sort_key)


def suggest_offense_number(previous_offenses: List[Any]) -> int:
    return len(previous_offenses) + 1


def resolve_sanction(sanctions: Optional[Dict[str, str]], offense_number: int) -> str:
    """
    Look up the sanction for an offense number.

    Returns the first-offense sanction when the table has no entry for the
    offense, and an empty string when it has neither.
    """
    if not sanctions:
        return ""
    return sanctions.get(offense_key(offense_number)) or sanctions.get("1st") or ""


def recommendation_message(suggested: int, selected: int) -> Optional[str]:
    if suggested > 1 and selected != suggested:
        return f"Recommended: {suggested} offense based on student's history"
    return None


def build_sanction_preview(records: Iterable[Any], student_id: Any, misdemeanor: Any,
                           offense_number: Optional[int] = None) -> Dict[str, Any]:
    """
    Summarise what logging a new incident would mean for a student.

    Args:
        records: The student's behaviour records (other students' are ignored)
        student_id: Student being reported
        misdemeanor: Misdemeanor row or dict with `id` and `sanctions`
        offense_number: Offense number chosen by the reporter, defaults to the suggestion

    Returns:
        Dict: previous offenses, suggestion, resolved sanction and the full table
    """
    previous = find_previous_offenses(records, student_id, _field(misdemeanor, "id"))
    suggested = suggest_offense_number(previous)
    selected = offense_number if offense_number is not None else suggested
    if selected < 1:
        raise ValidationError(f"Offense number must be at least 1, got: {selected}")

    sanctions = _field(misdemeanor, "sanctions") or {}
    return {
        "student_id": student_id,
        "misdemeanor_id": _field(misdemeanor, "id"),
        "previous_offense_count": len(previous),
        "recent_offenses": [
            {
                "id": _field(record, "id"),
                "offense_number": _field(record, "offense_number"),
                "sanction": _field(record, "sanction"),
                "created_at": _field(record, "created_at") or _field(record, "timestamp"),
            }
            for record in previous[-PREVIEW_OFFENSE_COUNT:]
        ],
        "suggested_offense_number": suggested,
        "offense_number": selected,
        "offense_key": offense_key(selected),
        "sanction": resolve_sanction(sanctions, selected),
        "sanctions": dict(sanctions),
        "recommendation": recommendation_message(suggested, selected),
    }


def filter_misdemeanors_by_location(misdemeanors: Iterable[Any], location: Optional[str]) -> List[Any]:
    """Misdemeanors that apply at a location; every one when no location is given."""
    misdemeanors = list(misdemeanors)
    if not location:
        return misdemeanors
    return [m for m in misdemeanors if _field(m, "location") == location]
