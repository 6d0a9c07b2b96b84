"""Exception handlers for converting custom exceptions to HTTP responses."""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend.app.core.config import settings
from backend.app.core.exceptions import (
    SmartReportException,
    InputValidationError,
    DuplicateSubmissionError,
    AlreadyActedError,
    CommentsRequiredError,
    InvalidTransitionError,
    ItemInUseError,
    DuplicateNameError,
    ForbiddenActionError,
    AccountNotActiveError,
    UnauthenticatedError,
    ReportNotFoundError,
    StudentNotFoundError,
    ClassNotFoundError,
    ItemNotFoundError,
    PersistenceError,
    AggregationUnavailableError,
)
from backend.app.core.responses import error_response

logger = logging.getLogger(__name__)


def status_code_for(exc: SmartReportException) -> int:
    """Map an exception type to its HTTP status code."""
    if isinstance(exc, (ReportNotFoundError, StudentNotFoundError, ClassNotFoundError, ItemNotFoundError)):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, (ForbiddenActionError, AccountNotActiveError)):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, UnauthenticatedError):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, (
        InputValidationError,
        DuplicateSubmissionError,
        AlreadyActedError,
        CommentsRequiredError,
        InvalidTransitionError,
        ItemInUseError,
        DuplicateNameError,
    )):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, (PersistenceError, AggregationUnavailableError)):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def smart_report_exception_handler(request: Request, exc: SmartReportException) -> JSONResponse:
    """
    Handle all Smart Report custom exceptions and convert to the response envelope.

    Server-side failures hide their message outside debug mode.
    """
    status_code = status_code_for(exc)

    if status_code >= 500:
        logger.error(f"[ERROR] {request.method} {request.url.path}: {exc.message}")
        message = "Internal server error. Please try again."
        return JSONResponse(
            status_code=status_code,
            content=error_response(message, error=exc.message if settings.debug else None),
        )

    return JSONResponse(
        status_code=status_code,
        content=error_response(exc.message, error=exc.details if settings.debug else None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI body/query validation failures as 400 envelopes."""
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg', 'invalid input')}" if location else "Invalid input"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_response(message),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler for unexpected errors."""
    logger.exception(f"[ERROR] Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response(
            "Internal server error. Please try again.",
            error=str(exc) if settings.debug else None,
        ),
    )


def register_exception_handlers(app):
    """
    Register all custom exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(SmartReportException, smart_report_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
