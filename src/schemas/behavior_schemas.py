from typing import Optional, List, Dict, Any, Union
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator
import uuid
from enum import Enum


class RecordType(str, Enum):
    """Searchable record types"""
    STUDENT = "student"
    INCIDENT = "incident"
    MERIT = "merit"
    MISDEMEANOR = "misdemeanor"


class Grade(str, Enum):
    """Grade labels, in school order"""
    FORM_1 = "Form 1"
    FORM_2 = "Form 2"
    FORM_3 = "Form 3"
    FORM_4 = "Form 4"
    FORM_5 = "Form 5"
    FORM_6 = "Form 6"


class SchoolLocation(str, Enum):
    """Where an incident took place"""
    MAIN_SCHOOL = "Main School"
    HOSTEL = "Hostel"


class MeritTier(str, Enum):
    """Merit tier options"""
    BRONZE = "Bronze"
    SILVER = "Silver"
    GOLD = "Gold"
    DIAMOND = "Diamond"
    PLATINUM = "Platinum"


class IncidentStatus(str, Enum):
    """Incident status options"""
    OPEN = "open"
    CLOSED = "closed"


class AlertSeverity(str, Enum):
    """Counseling alert severity options"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class DeliveryMethod(str, Enum):
    """Notification delivery methods"""
    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Student Schemas
class StudentBase(BaseModel):
    """Base schema for student data"""
    name: str = Field(..., min_length=1, max_length=150)
    student_id: str = Field(..., min_length=1, max_length=30, description="School-issued student code")
    grade: Grade
    gender: Optional[str] = None
    boarding_status: Optional[str] = None
    parent_contacts: Optional[Dict[str, Any]] = None


class StudentCreate(StudentBase):
    """Schema for creating a student"""
    behavior_score: float = Field(0.0, ge=0)


class StudentUpdate(BaseModel):
    """Schema for updating a student, all fields optional"""
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    grade: Optional[Grade] = None
    behavior_score: Optional[float] = Field(None, ge=0)
    gender: Optional[str] = None
    boarding_status: Optional[str] = None
    needs_counseling: Optional[bool] = None
    counseling_reason: Optional[str] = None
    parent_contacts: Optional[Dict[str, Any]] = None


class StudentResponse(ORMModel):
    """Schema for student response"""
    id: uuid.UUID
    name: str
    student_id: str
    grade: str
    behavior_score: Optional[float] = 0.0
    gender: Optional[str] = None
    boarding_status: Optional[str] = None
    needs_counseling: Optional[bool] = False
    counseling_reason: Optional[str] = None
    shadow_parent_id: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class StudentSummary(ORMModel):
    """Student fields embedded in behaviour records"""
    id: uuid.UUID
    name: str
    student_id: str
    grade: str


# Misdemeanor Schemas
class MisdemeanorCreate(BaseModel):
    """Schema for creating a misdemeanor policy"""
    name: str = Field(..., min_length=1, max_length=200)
    location: SchoolLocation
    category: Optional[str] = None
    severity_level: int = Field(1, ge=1, le=5)
    sanctions: Dict[str, str] = Field(default_factory=dict)

    @field_validator('sanctions')
    @classmethod
    def validate_sanction_keys(cls, v):
        allowed = {"1st", "2nd", "3rd", "4th+"}
        unknown = set(v) - allowed
        if unknown:
            raise ValueError(f"Unknown offense keys: {', '.join(sorted(unknown))}")
        return v


class MisdemeanorResponse(ORMModel):
    """Schema for misdemeanor response"""
    id: uuid.UUID
    name: str
    location: str
    category: Optional[str] = None
    severity_level: Optional[int] = 1
    sanctions: Dict[str, str] = Field(default_factory=dict)
    status: Optional[str] = "active"


# Behaviour Record Schemas
class IncidentCreate(BaseModel):
    """Schema for logging an incident; sanction and offense number are derived when omitted"""
    student_id: uuid.UUID
    location: SchoolLocation
    misdemeanor_id: uuid.UUID
    offense_number: Optional[int] = Field(None, ge=1)
    sanction: Optional[str] = None
    description: str = ""
    reported_by: Optional[uuid.UUID] = None
    attachment_url: Optional[str] = None


class MeritCreate(BaseModel):
    """Schema for awarding a merit; points always follow the tier"""
    student_id: uuid.UUID
    merit_tier: MeritTier
    description: str = Field(..., min_length=1)
    location: Optional[SchoolLocation] = None
    reported_by: Optional[uuid.UUID] = None


class BehaviorRecordResponse(ORMModel):
    """Schema for behaviour record response"""
    id: uuid.UUID
    type: str
    student_id: uuid.UUID
    description: Optional[str] = None
    location: Optional[str] = None
    timestamp: Optional[datetime] = None
    reported_by: Optional[uuid.UUID] = None
    misdemeanor_id: Optional[uuid.UUID] = None
    offense_number: Optional[int] = None
    sanction: Optional[str] = None
    status: Optional[str] = None
    resolved_at: Optional[datetime] = None
    merit_tier: Optional[str] = None
    points: Optional[float] = None
    created_at: Optional[datetime] = None
    student: Optional[StudentSummary] = None
    misdemeanor: Optional[MisdemeanorResponse] = None


class SanctionPreviewRequest(BaseModel):
    """Schema for previewing the sanction of a prospective incident"""
    student_id: uuid.UUID
    misdemeanor_id: uuid.UUID
    offense_number: Optional[int] = Field(None, ge=1)


# Counseling Schemas
class CounselingAlertCreate(BaseModel):
    """Schema for raising a counseling alert"""
    student_id: uuid.UUID
    alert_type: str = Field(..., min_length=1, max_length=50)
    severity_level: AlertSeverity = AlertSeverity.MEDIUM
    description: Optional[str] = None
    triggered_by_record_id: Optional[uuid.UUID] = None


class CounselingAlertResolve(BaseModel):
    """Schema for resolving a counseling alert"""
    resolved_by: uuid.UUID


class CounselingAlertResponse(ORMModel):
    """Schema for counseling alert response"""
    id: uuid.UUID
    student_id: uuid.UUID
    alert_type: str
    severity_level: Optional[str] = None
    description: Optional[str] = None
    triggered_by_record_id: Optional[uuid.UUID] = None
    is_resolved: Optional[bool] = False
    resolved_by: Optional[uuid.UUID] = None
    resolved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    student: Optional[StudentSummary] = None


# Shadow Parent Schemas
class ShadowParentAssignmentCreate(BaseModel):
    """Schema for assigning a student to a shadow parent"""
    shadow_parent_id: uuid.UUID
    student_id: uuid.UUID
    assigned_by: Optional[uuid.UUID] = None
    assignment_notes: Optional[str] = None
    priority_score: float = 0.0


class ShadowParentAssignmentResponse(ORMModel):
    """Schema for shadow parent assignment response"""
    id: uuid.UUID
    shadow_parent_id: uuid.UUID
    student_id: uuid.UUID
    assigned_by: Optional[uuid.UUID] = None
    assignment_notes: Optional[str] = None
    priority_score: Optional[float] = 0.0
    is_active: Optional[bool] = True
    assigned_at: Optional[datetime] = None
    student: Optional[StudentSummary] = None


class ShadowCapacityResponse(BaseModel):
    """Schema for a shadow parent's remaining capacity"""
    assigned_count: int
    remaining_capacity: int
    can_assign_more: bool


# Notification Schemas
class NotificationSendRequest(BaseModel):
    """Schema for sending a notification"""
    user_id: uuid.UUID
    type: str = Field(..., min_length=1, max_length=30)
    message: str = Field(..., min_length=1)
    reference_id: Optional[str] = None
    reference_type: Optional[str] = None
    delivery_methods: List[DeliveryMethod] = Field(default_factory=lambda: [DeliveryMethod.PUSH])


class NotificationResponse(ORMModel):
    """Schema for notification response"""
    id: uuid.UUID
    user_id: uuid.UUID
    type: str
    message: str
    reference_id: Optional[str] = None
    reference_type: Optional[str] = None
    is_read: Optional[bool] = False
    created_at: Optional[datetime] = None


class NotificationDeliveryResponse(ORMModel):
    """Schema for a notification delivery log entry"""
    delivery_method: str
    delivery_status: str
    delivered_at: Optional[datetime] = None


class NotificationSentResponse(NotificationResponse):
    """Schema for a sent notification with its deliveries"""
    deliveries: List[NotificationDeliveryResponse] = Field(default_factory=list)


# Search Schemas
class SearchDateRange(BaseModel):
    """Inclusive date window; a missing side is open"""
    start: Optional[Union[datetime, str]] = None
    end: Optional[Union[datetime, str]] = None


class SearchFiltersRequest(BaseModel):
    """Filters accepted by the search endpoint, in snake_case or the web client's camelCase"""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    types: List[str] = Field(default_factory=lambda: [t.value for t in RecordType])
    date_range: Optional[SearchDateRange] = Field(None, alias="dateRange")
    grades: Optional[List[str]] = None
    locations: Optional[List[str]] = None
    min_score: Optional[float] = Field(None, alias="minScore")
    max_score: Optional[float] = Field(None, alias="maxScore")


class SearchRequest(BaseModel):
    """Schema for a search request"""
    query: str = ""
    filters: SearchFiltersRequest = Field(default_factory=SearchFiltersRequest)
    limit: Optional[int] = Field(20, ge=1, le=1000)
    offset: int = Field(0, ge=0)
    highlight: bool = False
    no_cache: bool = False
