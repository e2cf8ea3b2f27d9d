from fastapi import APIRouter, Depends, HTTPException, status, Request, Query
from typing import Dict, Any, Optional
import logging
import uuid

from src.middleware.logging_middleware import USER_ID_HEADER
from src.models.behavior_models import Student
from src.schemas.behavior_schemas import StudentCreate, StudentUpdate, StudentResponse, Grade
from src.services.behavior.discipline import behavior_band
from src.services.student_service import StudentService
from src.services.service_factory import get_student_service
from src.utils.custom_utils import generate_response

router = APIRouter(prefix="/students", tags=["Students"])
logger = logging.getLogger(__name__)


def _student_body(student: Student) -> Dict[str, Any]:
    body = StudentResponse.model_validate(student).model_dump()
    body["behavior_band"] = behavior_band(student.behavior_score)
    return body


@router.get("", response_model=Dict[str, Any])
async def list_students(
    grade: Optional[Grade] = Query(None, description="Only students in this grade"),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    student_service: StudentService = Depends(get_student_service)
):
    """
    List students ordered by name
    """
    try:
        students = await student_service.list_students(grade.value if grade else None, limit, offset)

        return generate_response(
            status_code=status.HTTP_200_OK,
            response_message="Students retrieved successfully",
            customer_message="Students retrieved successfully",
            body=[_student_body(student) for student in students]
        )
    except Exception as e:
        logger.error(f"Error listing students: {e}")
        return generate_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            response_message=str(e),
            customer_message="An unexpected error occurred",
            body=None
        )


@router.get("/{student_id}", response_model=Dict[str, Any])
async def get_student(
    student_id: uuid.UUID,
    student_service: StudentService = Depends(get_student_service)
):
    """
    Get a student by ID
    """
    try:
        student = await student_service.get_student(student_id)

        return generate_response(
            status_code=status.HTTP_200_OK,
            response_message="Student retrieved successfully",
            customer_message="Student retrieved successfully",
            body=_student_body(student)
        )
    except HTTPException as e:
        return generate_response(
            status_code=e.status_code,
            response_message=e.detail,
            customer_message="Failed to retrieve student",
            body=None
        )
    except Exception as e:
        logger.error(f"Error retrieving student {student_id}: {e}")
        return generate_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            response_message=str(e),
            customer_message="An unexpected error occurred",
            body=None
        )


@router.post("", response_model=Dict[str, Any])
async def create_student(
    request: Request,
    student_data: StudentCreate,
    student_service: StudentService = Depends(get_student_service)
):
    """
    Register a student
    """
    try:
        student = await student_service.create_student(
            student_data, acting_user=request.headers.get(USER_ID_HEADER)
        )

        return generate_response(
            status_code=status.HTTP_201_CREATED,
            response_message="Student created successfully",
            customer_message=f"{student.name} has been registered",
            body=_student_body(student)
        )
    except HTTPException as e:
        return generate_response(
            status_code=e.status_code,
            response_message=e.detail,
            customer_message="Failed to register student",
            body=None
        )
    except Exception as e:
        logger.error(f"Error creating student: {e}")
        return generate_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            response_message=str(e),
            customer_message="An unexpected error occurred",
            body=None
        )


@router.patch("/{student_id}", response_model=Dict[str, Any])
async def update_student(
    request: Request,
    student_id: uuid.UUID,
    student_data: StudentUpdate,
    student_service: StudentService = Depends(get_student_service)
):
    """
    Update a student's details
    """
    try:
        student = await student_service.update_student(
            student_id, student_data, acting_user=request.headers.get(USER_ID_HEADER)
        )

        return generate_response(
            status_code=status.HTTP_200_OK,
            response_message="Student updated successfully",
            customer_message=f"{student.name}'s details have been updated",
            body=_student_body(student)
        )
    except HTTPException as e:
        return generate_response(
            status_code=e.status_code,
            response_message=e.detail,
            customer_message="Failed to update student",
            body=None
        )
    except Exception as e:
        logger.error(f"Error updating student {student_id}: {e}")
        return generate_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            response_message=str(e),
            customer_message="An unexpected error occurred",
            body=None
        )


@router.delete("/{student_id}", response_model=Dict[str, Any])
async def delete_student(
    request: Request,
    student_id: uuid.UUID,
    student_service: StudentService = Depends(get_student_service)
):
    """
    Delete a student and their records
    """
    try:
        await student_service.delete_student(student_id, acting_user=request.headers.get(USER_ID_HEADER))

        return generate_response(
            status_code=status.HTTP_200_OK,
            response_message="Student deleted successfully",
            customer_message="Student has been deleted",
            body={"id": student_id}
        )
    except HTTPException as e:
        return generate_response(
            status_code=e.status_code,
            response_message=e.detail,
            customer_message="Failed to delete student",
            body=None
        )
    except Exception as e:
        logger.error(f"Error deleting student {student_id}: {e}")
        return generate_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            response_message=str(e),
            customer_message="An unexpected error occurred",
            body=None
        )
