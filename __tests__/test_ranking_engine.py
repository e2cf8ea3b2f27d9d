"""Tests for rank_records, the pure relevance ranking function."""

import copy
from datetime import date, datetime, timezone

import pytest

from src.services.behavior import SearchInputError, rank_records
from src.services.behavior.search.ranking_engine import is_searching, parse_timestamp

ALL_TYPES = ["student", "incident", "merit", "misdemeanor"]
ALICE = {"id": 1, "name": "Alice Smith", "student_id": "S001", "grade": "Form 2", "behavior_score": 3}


def test_student_name_match_scores_100():
    results = rank_records("ali", {"types": ALL_TYPES}, students=[ALICE])

    assert len(results) == 1
    assert results[0]["type"] == "student"
    assert results[0]["id"] == 1
    assert results[0]["score"] == 100


def test_score_range_filter_excludes_student():
    results = rank_records("ali", {"types": ["student"], "min_score": 5}, students=[ALICE])
    assert results == []


def test_zero_is_a_real_score_bound():
    results = rank_records("ali", {"types": ["student"], "max_score": 0}, students=[ALICE])
    assert results == []


def test_location_filter_excludes_matching_incident():
    incident = {
        "id": "r1",
        "type": "incident",
        "description": "fighting in hallway",
        "location": "Main School",
    }

    assert rank_records("hallway", {"types": ALL_TYPES}, behavior_records=[incident])
    assert rank_records("hallway", {"types": ALL_TYPES, "locations": ["Hostel"]},
                        behavior_records=[incident]) == []


@pytest.mark.parametrize("query", ["", "   ", "\t\n"])
def test_blank_query_returns_nothing(query, students, behavior_records, misdemeanors):
    assert rank_records(query, {"types": ALL_TYPES}, students, behavior_records, misdemeanors) == []
    assert rank_records(query, {}, students, behavior_records, misdemeanors) == []
    assert is_searching(query) is False


def test_additive_scoring():
    name_only = {"id": "a", "name": "Form Master", "student_id": "X1", "grade": "Form 3", "behavior_score": 1}
    name_and_grade = {"id": "b", "name": "Stanley", "student_id": "X2", "grade": "Form 1", "behavior_score": 1}

    results = rank_records("form 1", {"types": ["student"]}, students=[name_only, name_and_grade])
    assert [r["id"] for r in results] == ["b"]
    assert results[0]["score"] == 40

    results = rank_records("ali", {"types": ["student"]}, students=[
        {"id": "one", "name": "Alice", "student_id": "T1", "grade": "Form 1"},
        {"id": "both", "name": "Alice", "student_id": "ALI-7", "grade": "Form 1"},
    ])
    assert [(r["id"], r["score"]) for r in results] == [("both", 180), ("one", 100)]


def test_name_and_grade_match_scores_140():
    matched_by_both = {"id": "x", "name": "Form Two Prefect", "student_id": "P1", "grade": "Form Two"}
    matched_by_name = {"id": "y", "name": "Form Two Prefect", "student_id": "P2", "grade": "Form 3"}

    results = rank_records("form two", {"types": ["student"]}, students=[matched_by_name, matched_by_both])

    assert [(r["id"], r["score"]) for r in results] == [("x", 140), ("y", 100)]


def test_ties_keep_source_order():
    students = [
        {"id": i, "name": f"Ali {i}", "student_id": f"Z{i}", "grade": "Form 1"}
        for i in range(10)
    ]
    misdemeanor = {"id": "m", "name": "Ali's rule", "location": "Hostel"}

    results = rank_records("ali", {"types": ALL_TYPES}, students=students, misdemeanors=[misdemeanor])

    assert [r["id"] for r in results] == list(range(10)) + ["m"]


def test_sort_is_by_score_then_source_order():
    student = {"id": "s", "name": "Hostel", "student_id": "H", "grade": "Form 1"}
    record = {"id": "r", "type": "merit", "description": "x", "location": "Main", "student": {"name": "hostel"}}
    misdemeanor = {"id": "m", "name": "hostel", "location": "Main"}

    results = rank_records("hostel", {"types": ALL_TYPES}, [student], [record], [misdemeanor])

    assert [(r["type"], r["score"]) for r in results] == [
        ("student", 100), ("misdemeanor", 100), ("merit", 50)
    ]


def test_every_result_type_is_requested_and_positive(students, behavior_records, misdemeanors):
    for types in (["student"], ["incident"], ["merit", "misdemeanor"], ALL_TYPES):
        results = rank_records("i", {"types": types}, students, behavior_records, misdemeanors)
        assert all(r["type"] in types for r in results)
        assert all(r["score"] > 0 for r in results)


def test_narrowing_filters_never_adds_results(students, behavior_records, misdemeanors):
    wide = rank_records("i", {"types": ALL_TYPES}, students, behavior_records, misdemeanors)
    narrow = rank_records("i", {"types": ["student", "merit"]}, students, behavior_records, misdemeanors)
    assert len(narrow) <= len(wide)

    wide_range = rank_records("i", {"types": ALL_TYPES, "min_score": 0, "max_score": 10},
                              students, behavior_records, misdemeanors)
    narrow_range = rank_records("i", {"types": ALL_TYPES, "min_score": 2, "max_score": 5},
                                students, behavior_records, misdemeanors)
    assert len(narrow_range) <= len(wide_range)


def test_missing_types_means_every_type(students, behavior_records, misdemeanors):
    with_types = rank_records("i", {"types": ALL_TYPES}, students, behavior_records, misdemeanors)
    without_types = rank_records("i", {}, students, behavior_records, misdemeanors)
    assert with_types == without_types


def test_unknown_types_are_ignored(students):
    assert rank_records("ali", {"types": ["teacher", "parent"]}, students=students) == []
    assert len(rank_records("ali", {"types": ["teacher", "student"]}, students=students)) == 2


def test_same_id_across_types_gives_distinct_results():
    student = {"id": 7, "name": "Prep Keeper", "student_id": "S7", "grade": "Form 1"}
    misdemeanor = {"id": 7, "name": "Missing prep", "location": "Hostel"}

    results = rank_records("prep", {"types": ALL_TYPES}, students=[student], misdemeanors=[misdemeanor])

    assert {(r["type"], r["id"]) for r in results} == {("student", 7), ("misdemeanor", 7)}


def test_null_fields_do_not_match_or_raise():
    student = {"id": 1, "name": None, "student_id": None, "grade": None, "behavior_score": None}
    record = {"id": 2, "type": "incident", "description": None, "location": None,
              "student": None, "misdemeanor": None}
    misdemeanor = {"id": 3, "name": None, "location": None, "category": None}

    assert rank_records("x", {"types": ALL_TYPES}, [student], [record], [misdemeanor]) == []


def test_merits_ignore_misdemeanor_name():
    merit = {"id": "m", "type": "merit", "description": "", "misdemeanor": {"name": "Fighting"}}
    incident = {"id": "i", "type": "incident", "description": "", "misdemeanor": {"name": "Fighting"}}

    results = rank_records("fight", {"types": ALL_TYPES}, behavior_records=[merit, incident])

    assert [(r["id"], r["score"]) for r in results] == [("i", 80)]


def test_behavior_record_bonuses_add_up(behavior_records):
    results = rank_records("fighting", {"types": ["incident"]}, behavior_records=behavior_records)
    assert results[0]["score"] == 60 + 80

    results = rank_records("brian", {"types": ["incident"]}, behavior_records=behavior_records)
    assert results[0]["score"] == 50


def test_misdemeanors_always_obey_location_filter(misdemeanors):
    results = rank_records("i", {"types": ["misdemeanor"], "locations": ["Hostel"]}, misdemeanors=misdemeanors)
    assert [r["id"] for r in results] == ["m2"]


def test_record_without_location_skips_location_filter():
    record = {"id": "r", "type": "merit", "description": "Top of class", "location": None}
    results = rank_records("top", {"types": ALL_TYPES, "locations": ["Hostel"]}, behavior_records=[record])
    assert len(results) == 1


def test_empty_grade_list_excludes_every_student(students):
    assert rank_records("a", {"types": ["student"], "grades": []}, students=students) == []


def test_grade_filter(students):
    results = rank_records("ali", {"types": ["student"], "grades": ["Form 1"]}, students=students)
    assert [r["id"] for r in results] == ["s3"]


def test_date_range_with_open_bounds(behavior_records):
    march_only = {"types": ALL_TYPES, "date_range": {"start": "2024-03-01", "end": "2024-03-31"}}
    after_april = {"types": ALL_TYPES, "date_range": {"start": "2024-04-01", "end": None}}
    before_april = {"types": ALL_TYPES, "date_range": {"end": "2024-04-01"}}
    unbounded = {"types": ALL_TYPES, "date_range": {}}

    def ids(filters):
        return [r["id"] for r in rank_records("o", filters, behavior_records=behavior_records)]

    assert ids(march_only) == ["r1"]
    assert ids(after_april) == ["r2"]
    assert ids(before_april) == ["r1"]
    assert sorted(ids(unbounded)) == ["r1", "r2"]


def test_records_without_timestamp_pass_date_filter():
    record = {"id": "r", "type": "merit", "description": "Choir", "timestamp": None}
    filters = {"types": ALL_TYPES, "date_range": {"start": "2030-01-01", "end": "2030-12-31"}}
    assert len(rank_records("choir", filters, behavior_records=[record])) == 1


def test_unknown_record_types_are_skipped():
    record = {"id": "r", "type": "commendation", "description": "choir"}
    assert rank_records("choir", {"types": ALL_TYPES + ["commendation"]}, behavior_records=[record]) == []


def test_inputs_are_not_mutated(students, behavior_records, misdemeanors):
    filters = {"types": ALL_TYPES, "grades": ["Form 2", "Form 4"], "date_range": {"start": "2024-01-01"}}
    snapshot = copy.deepcopy((filters, students, behavior_records, misdemeanors))

    rank_records("a", filters, students, behavior_records, misdemeanors)

    assert (filters, students, behavior_records, misdemeanors) == snapshot


def test_result_display_fields(students, behavior_records, misdemeanors):
    results = rank_records("i", {"types": ALL_TYPES}, students, behavior_records, misdemeanors)
    by_id = {r["id"]: r for r in results}

    assert by_id["s1"]["title"] == "Alice Smith"
    assert by_id["s1"]["subtitle"] == "Grade Form 2 • ID: S001"
    assert by_id["s1"]["description"] == "Behavior Score: 3.0"
    assert by_id["s1"]["metadata"] == students[0]

    assert by_id["r1"]["title"] == "Fighting"
    assert by_id["r1"]["subtitle"] == "Brian Otieno • Main School"
    assert by_id["r2"]["title"] == "Gold Merit"

    assert by_id["m1"]["subtitle"] == "Main School • Level 3"
    assert by_id["m1"]["description"] == "Violence"


@pytest.mark.parametrize("kwargs", [
    {"query": None, "filters": {}},
    {"query": 42, "filters": {}},
    {"query": "a", "filters": None},
    {"query": "a", "filters": {"types": "student"}},
    {"query": "a", "filters": {"grades": [1, 2]}},
    {"query": "a", "filters": {"min_score": "5"}},
    {"query": "a", "filters": {"max_score": True}},
    {"query": "a", "filters": {"date_range": "2024-01-01"}},
    {"query": "a", "filters": {"date_range": {"start": 20240101}}},
    {"query": "a", "filters": {}, "students": "Alice"},
    {"query": "a", "filters": {}, "students": [ALICE, "Bob"]},
    {"query": "a", "filters": {}, "behavior_records": {"id": 1}},
    {"query": "a", "filters": {}, "misdemeanors": None},
])
def test_wrong_shapes_fail_fast(kwargs):
    with pytest.raises(SearchInputError):
        rank_records(**kwargs)


def test_blank_query_still_validates_shapes():
    with pytest.raises(SearchInputError):
        rank_records("", {}, students=[1, 2])


@pytest.mark.parametrize("value, expected", [
    ("2024-03-10T08:30:00Z", datetime(2024, 3, 10, 8, 30, tzinfo=timezone.utc)),
    ("2024-03-10T11:30:00+03:00", datetime(2024, 3, 10, 8, 30, tzinfo=timezone.utc)),
    ("2024-03-10", datetime(2024, 3, 10, tzinfo=timezone.utc)),
    (date(2024, 3, 10), datetime(2024, 3, 10, tzinfo=timezone.utc)),
    (datetime(2024, 3, 10, 8, 30), datetime(2024, 3, 10, 8, 30, tzinfo=timezone.utc)),
    ("not a date", None),
    ("", None),
    (None, None),
    (12345, None),
])
def test_parse_timestamp(value, expected):
    assert parse_timestamp(value) == expected
