from typing import Optional, List, Dict, Any
import uuid
from datetime import datetime

# SQLAlchemy imports
from sqlalchemy import String, Integer, Boolean, ForeignKey, DateTime, Text, Float
from sqlalchemy.orm import relationship, Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID, JSONB

# Import the Base class from database module
from src.database import Base
from src.utils.custom_utils import utcnow

# Constants for repeated values
CASCADE_ALL_DELETE_ORPHAN = "all, delete-orphan"
PROFILES_ID_FK = "tbl_profiles.id"
STUDENTS_ID_FK = "tbl_students.id"
MISDEMEANORS_ID_FK = "tbl_misdemeanors.id"
BEHAVIOR_RECORDS_ID_FK = "tbl_behavior_records.id"
NOTIFICATIONS_ID_FK = "tbl_notifications.id"


class Profile(Base):
    """
    SQLAlchemy model representing a staff member or parent.
    """
    __tablename__ = "tbl_profiles"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    role: Mapped[str] = mapped_column(String(30), nullable=False)  # admin, teacher, counselor, parent
    gender: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    notification_preferences: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONB, nullable=True)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Student(Base):
    """
    SQLAlchemy model representing a student.
    Lower behaviour scores are better.
    """
    __tablename__ = "tbl_students"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    student_id: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    grade: Mapped[str] = mapped_column(String(20), nullable=False)
    behavior_score: Mapped[float] = mapped_column(Float, default=0.0)
    gender: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    boarding_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    needs_counseling: Mapped[bool] = mapped_column(Boolean, default=False)
    counseling_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    counseling_flagged_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    shadow_parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), ForeignKey(PROFILES_ID_FK, ondelete="SET NULL"), nullable=True)
    parent_contacts: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONB, nullable=True)
    profile_image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    behavior_records: Mapped[List["BehaviorRecord"]] = relationship(back_populates="student", cascade=CASCADE_ALL_DELETE_ORPHAN)
    counseling_alerts: Mapped[List["CounselingAlert"]] = relationship(back_populates="student", cascade=CASCADE_ALL_DELETE_ORPHAN)


class Misdemeanor(Base):
    """
    SQLAlchemy model representing a misdemeanor policy.
    `sanctions` maps offense ordinals ("1st", "2nd", "3rd", "4th+") to sanction text.
    """
    __tablename__ = "tbl_misdemeanors"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    location: Mapped[str] = mapped_column(String(50), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    severity_level: Mapped[int] = mapped_column(Integer, default=1)
    sanctions: Mapped[Dict[str, str]] = mapped_column(JSONB, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(String(20), default="active")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class BehaviorRecord(Base):
    """
    SQLAlchemy model representing an incident or a merit award.
    """
    __tablename__ = "tbl_behavior_records"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    type: Mapped[str] = mapped_column(String(20), nullable=False)  # "incident" or "merit"
    student_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey(STUDENTS_ID_FK, ondelete="CASCADE"), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    location: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    timestamp: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), default=utcnow)
    reported_by: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), ForeignKey(PROFILES_ID_FK, ondelete="SET NULL"), nullable=True)

    # Incident fields
    misdemeanor_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), ForeignKey(MISDEMEANORS_ID_FK, ondelete="SET NULL"), nullable=True)
    offense_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    sanction: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)  # "open" or "closed"
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Merit fields
    merit_tier: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    points: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    attachment_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    student: Mapped["Student"] = relationship(back_populates="behavior_records")
    misdemeanor: Mapped[Optional["Misdemeanor"]] = relationship()


class CounselingAlert(Base):
    """
    SQLAlchemy model representing a counseling alert raised for a student.
    """
    __tablename__ = "tbl_counseling_alerts"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey(STUDENTS_ID_FK, ondelete="CASCADE"), nullable=False)
    alert_type: Mapped[str] = mapped_column(String(50), nullable=False)
    severity_level: Mapped[str] = mapped_column(String(20), default="medium")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    triggered_by_record_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), ForeignKey(BEHAVIOR_RECORDS_ID_FK, ondelete="SET NULL"), nullable=True)
    is_resolved: Mapped[bool] = mapped_column(Boolean, default=False)
    resolved_by: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), ForeignKey(PROFILES_ID_FK, ondelete="SET NULL"), nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships
    student: Mapped["Student"] = relationship(back_populates="counseling_alerts")


class ShadowParentAssignment(Base):
    """
    SQLAlchemy model linking a staff member to a student they mentor.
    Removal is soft: the row is kept with is_active = False.
    """
    __tablename__ = "tbl_shadow_parent_assignments"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    shadow_parent_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey(PROFILES_ID_FK, ondelete="CASCADE"), nullable=False)
    student_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey(STUDENTS_ID_FK, ondelete="CASCADE"), nullable=False)
    assigned_by: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), ForeignKey(PROFILES_ID_FK, ondelete="SET NULL"), nullable=True)
    assignment_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    priority_score: Mapped[float] = mapped_column(Float, default=0.0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    assigned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships
    student: Mapped["Student"] = relationship()
    shadow_parent: Mapped["Profile"] = relationship(foreign_keys=[shadow_parent_id])


class Notification(Base):
    """
    SQLAlchemy model representing an in-app notification.
    """
    __tablename__ = "tbl_notifications"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey(PROFILES_ID_FK, ondelete="CASCADE"), nullable=False)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    reference_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    reference_type: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships
    deliveries: Mapped[List["NotificationDeliveryLog"]] = relationship(back_populates="notification", cascade=CASCADE_ALL_DELETE_ORPHAN)


class NotificationDeliveryLog(Base):
    """
    SQLAlchemy model tracking delivery of a notification over one method.
    """
    __tablename__ = "tbl_notification_delivery_log"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    notification_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey(NOTIFICATIONS_ID_FK, ondelete="CASCADE"), nullable=False)
    delivery_method: Mapped[str] = mapped_column(String(20), nullable=False)  # email, sms, push
    delivery_status: Mapped[str] = mapped_column(String(20), default="pending")
    delivery_attempt: Mapped[int] = mapped_column(Integer, default=1)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    notification: Mapped["Notification"] = relationship(back_populates="deliveries")
