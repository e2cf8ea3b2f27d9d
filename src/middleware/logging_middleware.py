import time
import uuid
from typing import Callable, Dict, Any, Optional
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
from src.utils.logging.error_logger import error_logger
from src.utils.logging.activity_logger import logger_instance as activity_logger

# Header carrying the acting staff member, set by the calling frontend
USER_ID_HEADER = "X-User-ID"

SKIPPED_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware for adding a unique request ID to each request.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every request as a narrative activity line and every unhandled
    error with its request context.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as e:
            await error_logger.log_error(
                error=e,
                request=request,
                user_id=self._get_user_id(request),
                additional_context=self._get_additional_context(request)
            )
            # Re-raise the exception to be handled by exception handlers
            raise

        if not self._should_skip_logging(request.url.path):
            process_time = time.time() - start_time
            await self._log_activity(request, response, process_time)

        return response

    def _should_skip_logging(self, path: str) -> bool:
        """
        Determine if logging should be skipped for this path.

        Args:
            path: Request path

        Returns:
            True if logging should be skipped, False otherwise
        """
        return path.startswith("/static/") or path in SKIPPED_PATHS

    def _get_user_id(self, request: Request) -> Optional[str]:
        return request.headers.get(USER_ID_HEADER)

    def _get_additional_context(self, request: Request) -> Dict[str, Any]:
        return {
            "user_agent": request.headers.get("User-Agent"),
            "referer": request.headers.get("Referer"),
            "content_type": request.headers.get("Content-Type"),
            "request_id": getattr(request.state, "request_id", None)
        }

    async def _log_activity(
        self, request: Request, response: Response, process_time: float
    ) -> None:
        """
        Log the request activity.

        Args:
            request: The FastAPI request object
            response: The response object
            process_time: Request processing time in seconds
        """
        user_id = self._get_user_id(request)
        narrative = self._create_narrative(request, response, user_id)

        await activity_logger.log_activity(
            message=narrative,
            user_id=user_id,
            activity_type="api_request",
            metadata={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "process_time_ms": round(process_time * 1000, 2),
                "query_params": dict(request.query_params),
                "client_host": request.client.host if request.client else None,
                "request_id": getattr(request.state, "request_id", None)
            }
        )

    def _create_narrative(
        self, request: Request, response: Response, user_id: Optional[str]
    ) -> str:
        """
        Create a narrative description of the request.

        Args:
            request: The FastAPI request object
            response: The response object
            user_id: Acting staff member if known

        Returns:
            Narrative description
        """
        actor = f"User [{user_id}]" if user_id else "Anonymous caller"
        narrative = f"{actor} made a {request.method} request to {request.url.path}"

        if request.query_params:
            params_str = ", ".join(f"{k}={v}" for k, v in request.query_params.items())
            narrative += f" with parameters: {params_str}"

        if 200 <= response.status_code < 300:
            narrative += f" and received a successful response ({response.status_code})"
        elif 400 <= response.status_code < 500:
            narrative += f" but had a client error ({response.status_code})"
        elif 500 <= response.status_code < 600:
            narrative += f" but encountered a server error ({response.status_code})"
        else:
            narrative += f" and received a {response.status_code} response"

        return narrative
