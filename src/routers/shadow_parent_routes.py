from fastapi import APIRouter, Depends, status, Request, Query
from typing import Dict, Any, Optional
import logging
import uuid

from src.middleware.logging_middleware import USER_ID_HEADER
from src.schemas.behavior_schemas import (
    ShadowParentAssignmentCreate,
    ShadowParentAssignmentResponse,
    ShadowCapacityResponse
)
from src.services.shadow_parent_service import ShadowParentService
from src.services.service_factory import get_shadow_parent_service
from src.utils.custom_utils import generate_response
from src.utils.exception_handlers import route_error_response

router = APIRouter(prefix="/shadow-parents", tags=["Shadow Parents"])
logger = logging.getLogger(__name__)


@router.get("/assignments", response_model=Dict[str, Any])
async def list_assignments(
    shadow_parent_id: Optional[uuid.UUID] = Query(None, description="Only this shadow parent's students"),
    shadow_parent_service: ShadowParentService = Depends(get_shadow_parent_service)
):
    """
    List active shadow parent assignments, latest first
    """
    try:
        assignments = await shadow_parent_service.list_assignments(shadow_parent_id)

        return generate_response(
            status_code=status.HTTP_200_OK,
            response_message="Assignments retrieved successfully",
            customer_message="Assignments retrieved successfully",
            body=[ShadowParentAssignmentResponse.model_validate(a).model_dump() for a in assignments]
        )
    except Exception as e:
        return route_error_response(e, "Failed to retrieve assignments", "Error listing shadow parent assignments")


@router.get("/{shadow_parent_id}/capacity", response_model=Dict[str, Any])
async def get_capacity(
    shadow_parent_id: uuid.UUID,
    shadow_parent_service: ShadowParentService = Depends(get_shadow_parent_service)
):
    """
    How many more students a shadow parent can take
    """
    try:
        capacity = await shadow_parent_service.get_capacity(shadow_parent_id)

        return generate_response(
            status_code=status.HTTP_200_OK,
            response_message="Capacity retrieved successfully",
            customer_message="Capacity retrieved successfully",
            body=ShadowCapacityResponse(**capacity).model_dump()
        )
    except Exception as e:
        return route_error_response(e, "Failed to retrieve capacity", "Error retrieving shadow parent capacity")


@router.post("/assignments", response_model=Dict[str, Any])
async def assign_student(
    request: Request,
    assignment_data: ShadowParentAssignmentCreate,
    shadow_parent_service: ShadowParentService = Depends(get_shadow_parent_service)
):
    """
    Assign a student to a shadow parent
    """
    try:
        assignment = await shadow_parent_service.assign_student(assignment_data)

        return generate_response(
            status_code=status.HTTP_201_CREATED,
            response_message="Student assigned successfully",
            customer_message="Student has been assigned to the shadow parent",
            body=ShadowParentAssignmentResponse.model_validate(assignment).model_dump()
        )
    except Exception as e:
        return route_error_response(e, "Failed to assign student", "Error assigning shadow parent")


@router.delete("/assignments/{assignment_id}", response_model=Dict[str, Any])
async def remove_assignment(
    request: Request,
    assignment_id: uuid.UUID,
    shadow_parent_service: ShadowParentService = Depends(get_shadow_parent_service)
):
    """
    End a shadow parent assignment
    """
    try:
        await shadow_parent_service.remove_assignment(assignment_id, acting_user=request.headers.get(USER_ID_HEADER))

        return generate_response(
            status_code=status.HTTP_200_OK,
            response_message="Assignment removed successfully",
            customer_message="Student has been removed from the shadow parent",
            body={"id": assignment_id}
        )
    except Exception as e:
        return route_error_response(e, "Failed to remove assignment", "Error removing shadow parent assignment")
