from fastapi import APIRouter, Depends, status, Request, Query
from typing import Dict, Any, Optional
import logging
import uuid

from src.middleware.logging_middleware import USER_ID_HEADER
from src.schemas.behavior_schemas import (
    CounselingAlertCreate,
    CounselingAlertResolve,
    CounselingAlertResponse
)
from src.services.counseling_service import CounselingService
from src.services.service_factory import get_counseling_service
from src.utils.custom_utils import generate_response
from src.utils.exception_handlers import route_error_response

router = APIRouter(prefix="/counseling-alerts", tags=["Counseling"])
logger = logging.getLogger(__name__)


@router.get("", response_model=Dict[str, Any])
async def list_counseling_alerts(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    counseling_service: CounselingService = Depends(get_counseling_service)
):
    """
    List every counseling alert, latest first
    """
    try:
        alerts = await counseling_service.list_alerts(limit)

        return generate_response(
            status_code=status.HTTP_200_OK,
            response_message="Counseling alerts retrieved successfully",
            customer_message="Counseling alerts retrieved successfully",
            body=[CounselingAlertResponse.model_validate(alert).model_dump() for alert in alerts]
        )
    except Exception as e:
        return route_error_response(e, "Failed to retrieve counseling alerts", "Error listing counseling alerts")


@router.get("/unresolved", response_model=Dict[str, Any])
async def list_unresolved_alerts(
    counseling_service: CounselingService = Depends(get_counseling_service)
):
    """
    List unresolved alerts, most severe first
    """
    try:
        alerts = await counseling_service.list_unresolved_alerts()

        return generate_response(
            status_code=status.HTTP_200_OK,
            response_message="Unresolved counseling alerts retrieved successfully",
            customer_message="Unresolved counseling alerts retrieved successfully",
            body=[CounselingAlertResponse.model_validate(alert).model_dump() for alert in alerts]
        )
    except Exception as e:
        return route_error_response(e, "Failed to retrieve counseling alerts", "Error listing unresolved counseling alerts")


@router.post("", response_model=Dict[str, Any])
async def create_counseling_alert(
    request: Request,
    alert_data: CounselingAlertCreate,
    counseling_service: CounselingService = Depends(get_counseling_service)
):
    """
    Raise a counseling alert for a student
    """
    try:
        alert = await counseling_service.create_alert(alert_data, acting_user=request.headers.get(USER_ID_HEADER))

        return generate_response(
            status_code=status.HTTP_201_CREATED,
            response_message="Counseling alert created successfully",
            customer_message="Counseling alert has been raised",
            body=CounselingAlertResponse.model_validate(alert).model_dump()
        )
    except Exception as e:
        return route_error_response(e, "Failed to raise counseling alert", "Error creating counseling alert")


@router.patch("/{alert_id}/resolve", response_model=Dict[str, Any])
async def resolve_counseling_alert(
    alert_id: uuid.UUID,
    resolve_data: CounselingAlertResolve,
    counseling_service: CounselingService = Depends(get_counseling_service)
):
    """
    Mark a counseling alert as resolved
    """
    try:
        alert = await counseling_service.resolve_alert(alert_id, resolve_data.resolved_by)

        return generate_response(
            status_code=status.HTTP_200_OK,
            response_message="Counseling alert resolved successfully",
            customer_message="Alert resolved successfully",
            body=CounselingAlertResponse.model_validate(alert).model_dump()
        )
    except Exception as e:
        return route_error_response(e, "Failed to resolve alert", "Error resolving counseling alert")
