from datetime import datetime, timezone
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import ORJSONResponse


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def generate_response(
    status_code: int,
    response_message: str,
    customer_message: str,
    body: Optional[Any] = None
) -> ORJSONResponse:
    """
    Build the standard API response envelope.

    Args:
        status_code: HTTP status code
        response_message: Technical message for API consumers
        customer_message: Message suitable for end users
        body: Response payload

    Returns:
        ORJSONResponse: The enveloped response
    """
    return ORJSONResponse(
        status_code=status_code,
        content={
            "status_code": status_code,
            "response_message": response_message,
            "customer_message": customer_message,
            "body": jsonable_encoder(body)
        }
    )
