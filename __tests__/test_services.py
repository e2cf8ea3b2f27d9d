"""Service tests against a mocked AsyncSession."""

import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi import HTTPException

from src.models.behavior_models import (
    BehaviorRecord, CounselingAlert, NotificationDeliveryLog, ShadowParentAssignment, Student
)
from src.schemas.behavior_schemas import (
    CounselingAlertCreate,
    DeliveryMethod,
    IncidentCreate,
    MeritCreate,
    NotificationSendRequest,
    ShadowParentAssignmentCreate,
    StudentCreate,
    StudentUpdate,
)
from src.services.behavior import ValidationError
from src.services.behavior_record_service import BehaviorRecordService
from src.services.counseling_service import CounselingService, sort_unresolved_alerts
from src.services.notification_service import NotificationService, delivery_allowed
from src.services.shadow_parent_service import ShadowParentService, shadow_capacity
from src.services.student_service import StudentService

SANCTIONS = {"1st": "Detention", "2nd": "Suspension", "3rd": "Parent meeting"}


def result_of(*rows):
    result = Mock()
    result.scalars.return_value.first.return_value = rows[0] if rows else None
    result.scalars.return_value.all.return_value = list(rows)
    result.scalar.return_value = rows[0] if rows else None
    return result


def mock_session(*results):
    db = Mock()
    db.execute = AsyncMock(side_effect=list(results))
    db.get = AsyncMock()
    db.commit = AsyncMock()
    db.flush = AsyncMock()
    db.add = Mock()
    db.refresh = AsyncMock()
    db.delete = AsyncMock()
    return db


def added(db, model):
    return [call.args[0] for call in db.add.call_args_list if isinstance(call.args[0], model)]


@pytest.fixture
def student():
    return SimpleNamespace(id=uuid.uuid4(), name="Brian Otieno", shadow_parent_id=None,
                           needs_counseling=False, counseling_reason=None, counseling_flagged_at=None)


@pytest.fixture
def fighting():
    return SimpleNamespace(id=uuid.uuid4(), name="Fighting", location="Main School", sanctions=SANCTIONS)


def previous_incident(student, misdemeanor, days_ago):
    return SimpleNamespace(
        id=uuid.uuid4(), type="incident", student_id=student.id, misdemeanor_id=misdemeanor.id,
        offense_number=None, sanction="Detention",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc) - timedelta(days=days_ago)
    )


# Behaviour records

async def test_incident_escalates_from_history(student, fighting, cache, fake_redis):
    history = [previous_incident(student, fighting, 3), previous_incident(student, fighting, 1)]
    db = mock_session(result_of(student), result_of(fighting), result_of(*history), result_of("saved"))
    await cache.set("search:stale", {"results": []})

    service = BehaviorRecordService(db, cache)
    saved = await service.create_incident(IncidentCreate(
        student_id=student.id, misdemeanor_id=fighting.id, location="Main School", description="Fought at lunch"
    ))

    record = added(db, BehaviorRecord)[0]
    assert saved == "saved"
    assert record.offense_number == 3
    assert record.sanction == "Parent meeting"
    assert record.status == "open"
    assert record.type == "incident"
    assert "test:search:stale" not in fake_redis.store


async def test_incident_keeps_explicit_offense_and_sanction(student, fighting):
    db = mock_session(result_of(student), result_of(fighting), result_of(), result_of("saved"))

    await BehaviorRecordService(db).create_incident(IncidentCreate(
        student_id=student.id, misdemeanor_id=fighting.id, location="Main School",
        offense_number=2, sanction="  Clean the dining hall  "
    ))

    record = added(db, BehaviorRecord)[0]
    assert record.offense_number == 2
    assert record.sanction == "Clean the dining hall"


async def test_incident_location_must_match_misdemeanor(student, fighting):
    db = mock_session(result_of(student), result_of(fighting))

    with pytest.raises(ValidationError):
        await BehaviorRecordService(db).create_incident(IncidentCreate(
            student_id=student.id, misdemeanor_id=fighting.id, location="Hostel"
        ))
    db.add.assert_not_called()


async def test_incident_without_any_sanction_is_rejected(student, fighting):
    fighting.sanctions = {}
    db = mock_session(result_of(student), result_of(fighting), result_of())

    with pytest.raises(ValidationError, match="Sanction is required"):
        await BehaviorRecordService(db).create_incident(IncidentCreate(
            student_id=student.id, misdemeanor_id=fighting.id, location="Main School"
        ))
    db.commit.assert_not_called()


async def test_incident_for_unknown_student_is_404(fighting):
    db = mock_session(result_of())

    with pytest.raises(HTTPException) as exc_info:
        await BehaviorRecordService(db).create_incident(IncidentCreate(
            student_id=uuid.uuid4(), misdemeanor_id=fighting.id, location="Main School"
        ))
    assert exc_info.value.status_code == 404


async def test_merit_points_follow_tier(student):
    db = mock_session(result_of(student), result_of("saved"))

    await BehaviorRecordService(db).create_merit(MeritCreate(
        student_id=student.id, merit_tier="Diamond", description="Won the county debate"
    ))

    record = added(db, BehaviorRecord)[0]
    assert record.points == 3.5
    assert record.merit_tier == "Diamond"
    assert record.location is None


async def test_closing_a_merit_is_rejected():
    merit = SimpleNamespace(id=uuid.uuid4(), type="merit", status=None)
    db = mock_session(result_of(merit))

    with pytest.raises(ValidationError):
        await BehaviorRecordService(db).close_incident(merit.id)


async def test_closing_a_closed_incident_conflicts():
    closed = SimpleNamespace(id=uuid.uuid4(), type="incident", status="closed")
    db = mock_session(result_of(closed))

    with pytest.raises(HTTPException) as exc_info:
        await BehaviorRecordService(db).close_incident(closed.id)
    assert exc_info.value.status_code == 409


async def test_close_incident(cache):
    incident = SimpleNamespace(id=uuid.uuid4(), type="incident", status="open", resolved_at=None)
    db = mock_session(result_of(incident), result_of(incident))

    closed = await BehaviorRecordService(db, cache).close_incident(incident.id)

    assert closed.status == "closed"
    assert closed.resolved_at is not None


async def test_sanction_preview(student, fighting):
    history = [previous_incident(student, fighting, 1)]
    db = mock_session(result_of(student), result_of(fighting), result_of(*history))

    preview = await BehaviorRecordService(db).preview_sanction(student.id, fighting.id)

    assert preview["suggested_offense_number"] == 2
    assert preview["sanction"] == "Suspension"


# Counseling

def alert(severity, hours_ago):
    return SimpleNamespace(
        id=f"{severity}-{hours_ago}",
        severity_level=severity,
        created_at=datetime(2024, 6, 1, 12, tzinfo=timezone.utc) - timedelta(hours=hours_ago)
    )


def test_unresolved_alerts_sort_by_severity_then_newest():
    alerts = [alert("low", 1), alert("critical", 5), alert("high", 2), alert("critical", 1), alert("medium", 0)]

    assert [a.id for a in sort_unresolved_alerts(alerts)] == [
        "critical-1", "critical-5", "high-2", "medium-0", "low-1"
    ]


async def test_creating_an_alert_flags_the_student(student):
    db = mock_session(result_of(student), result_of("alert"))

    await CounselingService(db).create_alert(CounselingAlertCreate(
        student_id=student.id, alert_type="repeat_offender", severity_level="high"
    ))

    assert added(db, CounselingAlert)[0].severity_level == "high"
    assert student.needs_counseling is True
    assert student.counseling_reason == "repeat_offender"
    assert student.counseling_flagged_at is not None


# Shadow parents

@pytest.mark.parametrize("assigned, remaining, can_assign", [(0, 5, True), (4, 1, True), (5, 0, False), (7, 0, False)])
def test_shadow_capacity(assigned, remaining, can_assign):
    assert shadow_capacity(assigned, max_children=5) == {
        "assigned_count": assigned,
        "remaining_capacity": remaining,
        "can_assign_more": can_assign,
    }


async def test_assigning_to_a_full_shadow_parent_conflicts(student, monkeypatch):
    from src.core.config import settings
    monkeypatch.setattr(settings, "max_shadow_children", 2)

    parent = SimpleNamespace(id=uuid.uuid4(), name="Mrs Achieng")
    db = mock_session(result_of(2))
    db.get.side_effect = [parent, student]

    with pytest.raises(HTTPException) as exc_info:
        await ShadowParentService(db).assign_student(
            ShadowParentAssignmentCreate(shadow_parent_id=parent.id, student_id=student.id)
        )
    assert exc_info.value.status_code == 409
    db.add.assert_not_called()


async def test_student_with_a_shadow_parent_cannot_get_another(student):
    parent = SimpleNamespace(id=uuid.uuid4(), name="Mr Kamau")
    db = mock_session(result_of(0), result_of("existing assignment"))
    db.get.side_effect = [parent, student]

    with pytest.raises(HTTPException) as exc_info:
        await ShadowParentService(db).assign_student(
            ShadowParentAssignmentCreate(shadow_parent_id=parent.id, student_id=student.id)
        )
    assert exc_info.value.status_code == 409


async def test_assign_student(student):
    parent = SimpleNamespace(id=uuid.uuid4(), name="Mr Kamau")
    db = mock_session(result_of(1), result_of(), result_of("assignment"))
    db.get.side_effect = [parent, student]

    assert await ShadowParentService(db).assign_student(
        ShadowParentAssignmentCreate(shadow_parent_id=parent.id, student_id=student.id)
    ) == "assignment"
    assert added(db, ShadowParentAssignment)[0].is_active is True
    assert student.shadow_parent_id == parent.id


async def test_removing_an_assignment_is_soft(student):
    parent_id = uuid.uuid4()
    student.shadow_parent_id = parent_id
    assignment = SimpleNamespace(id=uuid.uuid4(), is_active=True, student_id=student.id, shadow_parent_id=parent_id)
    db = mock_session(result_of(assignment))
    db.get.return_value = student

    assert await ShadowParentService(db).remove_assignment(assignment.id) is True
    assert assignment.is_active is False
    assert student.shadow_parent_id is None


# Notifications

@pytest.mark.parametrize("preferences, allowed", [
    (None, True),
    ({}, True),
    ({"email_incidents": True}, True),
    ({"email_incidents": False}, False),
    ({"sms_incidents": False}, True),
])
def test_delivery_allowed(preferences, allowed):
    assert delivery_allowed(preferences, "email", "incident") is allowed


async def test_notification_skips_opted_out_methods():
    recipient = SimpleNamespace(id=uuid.uuid4(), name="Parent", notification_preferences={"sms_incidents": False})
    db = mock_session(result_of("notification"))
    db.get.return_value = recipient

    await NotificationService(db).send_notification(NotificationSendRequest(
        user_id=recipient.id, type="incident", message="Brian was involved in an incident",
        delivery_methods=[DeliveryMethod.EMAIL, DeliveryMethod.SMS]
    ))

    deliveries = added(db, NotificationDeliveryLog)
    assert [d.delivery_method for d in deliveries] == ["email"]
    assert deliveries[0].delivery_status == "sent"
    assert deliveries[0].delivered_at is not None


async def test_notification_to_unknown_recipient_is_404():
    db = mock_session()
    db.get.return_value = None

    with pytest.raises(HTTPException) as exc_info:
        await NotificationService(db).send_notification(NotificationSendRequest(
            user_id=uuid.uuid4(), type="merit", message="Well done"
        ))
    assert exc_info.value.status_code == 404


# Students

async def test_duplicate_student_code_conflicts():
    db = mock_session(result_of("existing"))

    with pytest.raises(HTTPException) as exc_info:
        await StudentService(db).create_student(StudentCreate(name="Alice Smith", student_id="S001", grade="Form 2"))
    assert exc_info.value.status_code == 409
    db.add.assert_not_called()


async def test_create_student_clears_search_cache(cache, fake_redis):
    db = mock_session(result_of())
    await cache.set("search:stale", {"results": []})

    student = await StudentService(db, cache).create_student(
        StudentCreate(name="Alice Smith", student_id="S001", grade="Form 2")
    )

    assert isinstance(student, Student)
    assert student.grade == "Form 2"
    assert added(db, Student) == [student]
    assert "test:search:stale" not in fake_redis.store


async def test_flagging_a_student_for_counseling_stamps_the_time(student):
    db = mock_session(result_of(student))

    await StudentService(db).update_student(
        student.id, StudentUpdate(needs_counseling=True, counseling_reason="Withdrawn in class")
    )

    assert student.needs_counseling is True
    assert student.counseling_reason == "Withdrawn in class"
    assert student.counseling_flagged_at is not None


async def test_deleting_an_unknown_student_is_404():
    db = mock_session(result_of())

    with pytest.raises(HTTPException) as exc_info:
        await StudentService(db).delete_student(uuid.uuid4())
    assert exc_info.value.status_code == 404
    db.delete.assert_not_called()
