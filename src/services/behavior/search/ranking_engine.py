"""
Relevance ranking over students, behaviour records and misdemeanors.

`rank_records` is a pure function: it reads the collections it is given,
never mutates them and keeps no state between calls. Every field match is a
case-insensitive substring test and the bonuses of all matching fields add up.
A filter violation drops the record whatever it scored.
"""

from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from ..base.validators import BehaviorValidator, RECORD_TYPES

STUDENT_NAME_BONUS = 100
STUDENT_CODE_BONUS = 80
STUDENT_GRADE_BONUS = 40

RECORD_DESCRIPTION_BONUS = 60
RECORD_MISDEMEANOR_BONUS = 80
RECORD_LOCATION_BONUS = 40
RECORD_STUDENT_BONUS = 50

MISDEMEANOR_NAME_BONUS = 100
MISDEMEANOR_LOCATION_BONUS = 60
MISDEMEANOR_CATEGORY_BONUS = 40

_validator = BehaviorValidator()


def is_searching(query: Any) -> bool:
    """True when the query holds anything besides whitespace."""
    return isinstance(query, str) and bool(query.strip())


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Turn a datetime, date or ISO-8601 string into an aware UTC datetime.

    Naive values are read as UTC and a bare date is midnight UTC.
    Returns None for missing or unparseable input.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _contains(value: Any, term: str) -> bool:
    if value is None or isinstance(value, (Mapping, list, tuple)):
        return False
    return term in str(value).lower()


def _nested(record: Mapping, key: str, field: str) -> Any:
    related = record.get(key)
    if isinstance(related, Mapping):
        return related.get(field)
    return None


def _outside_score_range(score: Any, min_score: Optional[float], max_score: Optional[float]) -> bool:
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        score = 0
    if min_score is not None and score < min_score:
        return True
    if max_score is not None and score > max_score:
        return True
    return False


def _outside_date_range(timestamp: Any, start: Optional[datetime], end: Optional[datetime]) -> bool:
    recorded_at = parse_timestamp(timestamp)
    if recorded_at is None:
        return False
    if start is not None and recorded_at < start:
        return True
    if end is not None and recorded_at > end:
        return True
    return False


def _score_student(student: Mapping, term: str, filters: Mapping) -> int:
    score = 0
    if _contains(student.get("name"), term):
        score += STUDENT_NAME_BONUS
    if _contains(student.get("student_id"), term):
        score += STUDENT_CODE_BONUS
    if _contains(student.get("grade"), term):
        score += STUDENT_GRADE_BONUS

    grades = filters.get("grades")
    if grades is not None and student.get("grade") not in grades:
        return 0
    if _outside_score_range(student.get("behavior_score"),
                            filters.get("min_score"), filters.get("max_score")):
        return 0
    return score


def _score_behavior_record(record: Mapping, term: str, filters: Mapping,
                           start: Optional[datetime], end: Optional[datetime]) -> int:
    score = 0
    if _contains(record.get("description"), term):
        score += RECORD_DESCRIPTION_BONUS
    if record.get("type") == "incident" and _contains(_nested(record, "misdemeanor", "name"), term):
        score += RECORD_MISDEMEANOR_BONUS
    if _contains(record.get("location"), term):
        score += RECORD_LOCATION_BONUS
    if _contains(_nested(record, "student", "name"), term):
        score += RECORD_STUDENT_BONUS

    # Records without a location are not subject to the location filter
    locations = filters.get("locations")
    location = record.get("location")
    if locations is not None and location and location not in locations:
        return 0
    if filters.get("date_range") is not None and _outside_date_range(record.get("timestamp"), start, end):
        return 0
    return score


def _score_misdemeanor(misdemeanor: Mapping, term: str, filters: Mapping) -> int:
    score = 0
    if _contains(misdemeanor.get("name"), term):
        score += MISDEMEANOR_NAME_BONUS
    if _contains(misdemeanor.get("location"), term):
        score += MISDEMEANOR_LOCATION_BONUS
    if _contains(misdemeanor.get("category"), term):
        score += MISDEMEANOR_CATEGORY_BONUS

    locations = filters.get("locations")
    if locations is not None and misdemeanor.get("location") not in locations:
        return 0
    return score


def _join(*parts: Any) -> str:
    return " • ".join(str(part) for part in parts if part not in (None, ""))


def _student_result(student: Mapping, score: int) -> Dict[str, Any]:
    behavior_score = student.get("behavior_score")
    if isinstance(behavior_score, (int, float)) and not isinstance(behavior_score, bool):
        description = f"Behavior Score: {behavior_score:.1f}"
    else:
        description = "Behavior Score: N/A"
    return {
        "id": student.get("id"),
        "type": "student",
        "title": student.get("name") or "",
        "subtitle": f"Grade {student.get('grade') or ''} • ID: {student.get('student_id') or ''}",
        "description": description,
        "score": score,
        "metadata": dict(student),
    }


def _behavior_record_result(record: Mapping, score: int) -> Dict[str, Any]:
    if record.get("type") == "incident":
        title = _nested(record, "misdemeanor", "name") or "Incident"
    else:
        tier = record.get("merit_tier")
        title = f"{tier} Merit" if tier else "Merit"
    return {
        "id": record.get("id"),
        "type": record.get("type"),
        "title": title,
        "subtitle": _join(_nested(record, "student", "name"), record.get("location")),
        "description": record.get("description") or "",
        "score": score,
        "metadata": dict(record),
    }


def _misdemeanor_result(misdemeanor: Mapping, score: int) -> Dict[str, Any]:
    return {
        "id": misdemeanor.get("id"),
        "type": "misdemeanor",
        "title": misdemeanor.get("name") or "",
        "subtitle": _join(misdemeanor.get("location"), f"Level {misdemeanor.get('severity_level') or 1}"),
        "description": misdemeanor.get("category") or "Misdemeanor policy",
        "score": score,
        "metadata": dict(misdemeanor),
    }


def rank_records(query: str, filters: Mapping,
                 students: Sequence[Mapping] = (),
                 behavior_records: Sequence[Mapping] = (),
                 misdemeanors: Sequence[Mapping] = ()) -> List[Dict[str, Any]]:
    """
    Score and rank every record against a query.

    Args:
        query: Free text; matched case-insensitively as a substring
        filters: Mapping with `types` and the optional `date_range`
            ({start, end}), `grades`, `locations`, `min_score`, `max_score`.
            A missing `types` means every type. A score bound of 0 is a
            real bound; only None leaves that side open.
        students: Student mappings
        behavior_records: Incident and merit mappings; `student` and
            `misdemeanor` may hold the joined rows
        misdemeanors: Misdemeanor policy mappings

    Returns:
        List[Dict]: Search results with a positive score, highest first.
        Equal scores keep source order: students, behaviour records, then
        misdemeanors, each in collection order.

    Raises:
        SearchInputError: If any argument has the wrong shape
    """
    _validator.validate_search_query(query)
    _validator.validate_search_filters(filters)
    _validator.validate_record_collection(students, "students")
    _validator.validate_record_collection(behavior_records, "behavior_records")
    _validator.validate_record_collection(misdemeanors, "misdemeanors")

    if not is_searching(query):
        return []

    term = query.lower()
    types = filters.get("types")
    types = set(RECORD_TYPES if types is None else types)

    date_range = filters.get("date_range") or {}
    start = parse_timestamp(date_range.get("start"))
    end = parse_timestamp(date_range.get("end"))

    results = []

    if "student" in types:
        for student in students:
            score = _score_student(student, term, filters)
            if score > 0:
                results.append(_student_result(student, score))

    for record in behavior_records:
        if record.get("type") not in ("incident", "merit") or record.get("type") not in types:
            continue
        score = _score_behavior_record(record, term, filters, start, end)
        if score > 0:
            results.append(_behavior_record_result(record, score))

    if "misdemeanor" in types:
        for misdemeanor in misdemeanors:
            score = _score_misdemeanor(misdemeanor, term, filters)
            if score > 0:
                results.append(_misdemeanor_result(misdemeanor, score))

    # sorted() is stable, so ties keep the order they were appended in
    return sorted(results, key=lambda result: -result["score"])
