from fastapi import APIRouter, Depends, status, Request, Query
from typing import Dict, Any, Optional
import logging
import uuid

from src.middleware.logging_middleware import USER_ID_HEADER
from src.schemas.behavior_schemas import MisdemeanorCreate, MisdemeanorResponse, SchoolLocation
from src.services.misdemeanor_service import MisdemeanorService
from src.services.service_factory import get_misdemeanor_service
from src.utils.custom_utils import generate_response
from src.utils.exception_handlers import route_error_response

router = APIRouter(prefix="/misdemeanors", tags=["Misdemeanors"])
logger = logging.getLogger(__name__)


@router.get("", response_model=Dict[str, Any])
async def list_misdemeanors(
    location: Optional[SchoolLocation] = Query(None, description="Only misdemeanors that apply here"),
    misdemeanor_service: MisdemeanorService = Depends(get_misdemeanor_service)
):
    """
    List active misdemeanors ordered by name
    """
    try:
        misdemeanors = await misdemeanor_service.list_misdemeanors(location.value if location else None)

        return generate_response(
            status_code=status.HTTP_200_OK,
            response_message="Misdemeanors retrieved successfully",
            customer_message="Misdemeanors retrieved successfully",
            body=[MisdemeanorResponse.model_validate(m).model_dump() for m in misdemeanors]
        )
    except Exception as e:
        return route_error_response(e, "Failed to retrieve misdemeanors", "Error listing misdemeanors")


@router.get("/{misdemeanor_id}", response_model=Dict[str, Any])
async def get_misdemeanor(
    misdemeanor_id: uuid.UUID,
    misdemeanor_service: MisdemeanorService = Depends(get_misdemeanor_service)
):
    """
    Get a misdemeanor and its sanction table
    """
    try:
        misdemeanor = await misdemeanor_service.get_misdemeanor(misdemeanor_id)

        return generate_response(
            status_code=status.HTTP_200_OK,
            response_message="Misdemeanor retrieved successfully",
            customer_message="Misdemeanor retrieved successfully",
            body=MisdemeanorResponse.model_validate(misdemeanor).model_dump()
        )
    except Exception as e:
        return route_error_response(e, "Failed to retrieve misdemeanor", "Error retrieving misdemeanor")


@router.post("", response_model=Dict[str, Any])
async def create_misdemeanor(
    request: Request,
    misdemeanor_data: MisdemeanorCreate,
    misdemeanor_service: MisdemeanorService = Depends(get_misdemeanor_service)
):
    """
    Add a misdemeanor to the policy catalogue
    """
    try:
        misdemeanor = await misdemeanor_service.create_misdemeanor(
            misdemeanor_data, acting_user=request.headers.get(USER_ID_HEADER)
        )

        return generate_response(
            status_code=status.HTTP_201_CREATED,
            response_message="Misdemeanor created successfully",
            customer_message=f"'{misdemeanor.name}' has been added",
            body=MisdemeanorResponse.model_validate(misdemeanor).model_dump()
        )
    except Exception as e:
        return route_error_response(e, "Failed to create misdemeanor", "Error creating misdemeanor")
