import logging

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from src.services.behavior.base.validators import ValidationError as BehaviorValidationError
from src.utils.custom_utils import generate_response

logger = logging.getLogger(__name__)


async def http_exception_handler(request: Request, exc: HTTPException):
    return generate_response(
        status_code=exc.status_code,
        response_message=str(exc.detail),
        customer_message=str(exc.detail),
        body=None
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Request validation failed for {request.url.path}: {exc.errors()}")
    return generate_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        response_message="Request validation failed",
        customer_message="Some of the submitted fields are invalid",
        body={"errors": exc.errors()}
    )


async def pydantic_validation_error_handler(request: Request, exc: ValidationError):
    logger.info(f"Payload validation failed for {request.url.path}: {exc.errors()}")
    return generate_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        response_message="Payload validation failed",
        customer_message="Some of the submitted fields are invalid",
        body={"errors": exc.errors()}
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.url.path}: {str(exc)}")
    return generate_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        response_message="A database error occurred",
        customer_message="An unexpected error occurred. Please try again later",
        body=None
    )


def route_error_response(error: Exception, customer_message: str, context: str):
    """
    Envelope for an exception caught inside a route.

    Validation errors become 400, HTTP exceptions keep their status and
    anything else is logged and reported as 500.
    """
    if isinstance(error, BehaviorValidationError):
        return generate_response(
            status_code=status.HTTP_400_BAD_REQUEST,
            response_message=str(error),
            customer_message=str(error),
            body=None
        )
    if isinstance(error, HTTPException):
        return generate_response(
            status_code=error.status_code,
            response_message=str(error.detail),
            customer_message=customer_message,
            body=None
        )
    logger.error(f"{context}: {str(error)}")
    return generate_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        response_message=f"{context}: {str(error)}",
        customer_message="An unexpected error occurred. Please try again later",
        body=None
    )


async def behavior_validation_error_handler(request: Request, exc: BehaviorValidationError):
    return route_error_response(exc, str(exc), f"Validation error on {request.url.path}")
