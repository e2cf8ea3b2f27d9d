from fastapi import APIRouter, Depends, status, Request, Query
from typing import Dict, Any, Optional
import logging
import uuid

from src.middleware.logging_middleware import USER_ID_HEADER
from src.schemas.behavior_schemas import (
    IncidentCreate,
    MeritCreate,
    BehaviorRecordResponse,
    SanctionPreviewRequest
)
from src.services.behavior import ValidationError
from src.services.behavior_record_service import BehaviorRecordService
from src.services.service_factory import get_behavior_record_service
from src.utils.custom_utils import generate_response
from src.utils.exception_handlers import route_error_response

router = APIRouter(prefix="/behavior-records", tags=["Behaviour Records"])
logger = logging.getLogger(__name__)


def _reporter_id(request: Request) -> Optional[uuid.UUID]:
    header = request.headers.get(USER_ID_HEADER)
    if not header:
        return None
    try:
        return uuid.UUID(header)
    except ValueError:
        raise ValidationError(f"Invalid {USER_ID_HEADER} header: {header}")


@router.get("", response_model=Dict[str, Any])
async def list_behavior_records(
    student_id: Optional[uuid.UUID] = Query(None, description="Only this student's records"),
    record_type: Optional[str] = Query(None, alias="type", pattern="^(incident|merit)$"),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    record_service: BehaviorRecordService = Depends(get_behavior_record_service)
):
    """
    List behaviour records, latest first
    """
    try:
        records = await record_service.list_records(student_id, record_type, limit)

        return generate_response(
            status_code=status.HTTP_200_OK,
            response_message="Behaviour records retrieved successfully",
            customer_message="Behaviour records retrieved successfully",
            body=[BehaviorRecordResponse.model_validate(record).model_dump() for record in records]
        )
    except Exception as e:
        return route_error_response(e, "Failed to retrieve behaviour records", "Error listing behaviour records")


@router.post("/sanction-preview", response_model=Dict[str, Any])
async def preview_sanction(
    preview_request: SanctionPreviewRequest,
    record_service: BehaviorRecordService = Depends(get_behavior_record_service)
):
    """
    Preview the offense number and sanction a new incident would receive
    """
    try:
        preview = await record_service.preview_sanction(
            preview_request.student_id,
            preview_request.misdemeanor_id,
            preview_request.offense_number
        )

        return generate_response(
            status_code=status.HTTP_200_OK,
            response_message="Sanction preview generated successfully",
            customer_message="Sanction preview generated successfully",
            body=preview
        )
    except Exception as e:
        return route_error_response(e, "Failed to preview sanction", "Error previewing sanction")


@router.post("/incidents", response_model=Dict[str, Any])
async def create_incident(
    request: Request,
    incident_data: IncidentCreate,
    record_service: BehaviorRecordService = Depends(get_behavior_record_service)
):
    """
    Log an incident

    The offense number and sanction are filled in from the student's
    history and the misdemeanor's sanction table when omitted.
    """
    try:
        if incident_data.reported_by is None:
            incident_data.reported_by = _reporter_id(request)
        record = await record_service.create_incident(incident_data)

        return generate_response(
            status_code=status.HTTP_201_CREATED,
            response_message="Incident recorded successfully",
            customer_message="Incident has been recorded",
            body=BehaviorRecordResponse.model_validate(record).model_dump()
        )
    except Exception as e:
        return route_error_response(e, "Failed to record incident", "Error recording incident")


@router.post("/merits", response_model=Dict[str, Any])
async def create_merit(
    request: Request,
    merit_data: MeritCreate,
    record_service: BehaviorRecordService = Depends(get_behavior_record_service)
):
    """
    Award a merit; points follow the merit tier
    """
    try:
        if merit_data.reported_by is None:
            merit_data.reported_by = _reporter_id(request)
        record = await record_service.create_merit(merit_data)

        return generate_response(
            status_code=status.HTTP_201_CREATED,
            response_message="Merit awarded successfully",
            customer_message=f"{record.points} merit points awarded",
            body=BehaviorRecordResponse.model_validate(record).model_dump()
        )
    except Exception as e:
        return route_error_response(e, "Failed to award merit", "Error awarding merit")


@router.get("/{record_id}", response_model=Dict[str, Any])
async def get_behavior_record(
    record_id: uuid.UUID,
    record_service: BehaviorRecordService = Depends(get_behavior_record_service)
):
    """
    Get a behaviour record by ID
    """
    try:
        record = await record_service.get_record(record_id)

        return generate_response(
            status_code=status.HTTP_200_OK,
            response_message="Behaviour record retrieved successfully",
            customer_message="Behaviour record retrieved successfully",
            body=BehaviorRecordResponse.model_validate(record).model_dump()
        )
    except Exception as e:
        return route_error_response(e, "Failed to retrieve behaviour record", "Error retrieving behaviour record")


@router.patch("/{record_id}/close", response_model=Dict[str, Any])
async def close_incident(
    request: Request,
    record_id: uuid.UUID,
    record_service: BehaviorRecordService = Depends(get_behavior_record_service)
):
    """
    Close an open incident
    """
    try:
        record = await record_service.close_incident(record_id, acting_user=request.headers.get(USER_ID_HEADER))

        return generate_response(
            status_code=status.HTTP_200_OK,
            response_message="Incident closed successfully",
            customer_message="Incident has been closed",
            body=BehaviorRecordResponse.model_validate(record).model_dump()
        )
    except Exception as e:
        return route_error_response(e, "Failed to close incident", "Error closing incident")
