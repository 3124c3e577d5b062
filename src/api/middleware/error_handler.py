"""Global exception handlers for the FastAPI application.

Every error leaving a route is converted here into an ``ErrorResponse``
and logged exactly once:

- ``ValidationError`` → 400 with the ordered error list, warning
- ``MalformedRequestError`` / unparsable JSON → 400, warning
- ``NotFoundError`` → 404, warning
- ``StorageError`` → 500 with a generic message, error (cause logged only)
- anything else → 500 ``Unhandled server error``, error with traceback
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response
from loguru import logger
from starlette.exceptions import HTTPException

from src.api.constants import (
    MALFORMED_JSON_MESSAGE,
    UNHANDLED_ERROR_MESSAGE,
    VALIDATION_FAILED_MESSAGE,
)
from src.api.schemas.errors import ErrorResponse
from src.api.utils.responses import ORJSONResponse
from src.core.context import RequestContext
from src.core.error_context import sanitize_error_context
from src.core.exceptions import (
    MalformedRequestError,
    NotFoundError,
    UserbaseError,
    ValidationError,
)
from src.core.logging import log_error, log_warning

JSON_DECODE_ERROR_TYPE = "json_invalid"


def _status_code_for(exc: UserbaseError) -> int:
    """Map exception types to HTTP status codes."""
    if isinstance(exc, ValidationError | MalformedRequestError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _log_userbase_error(request: Request, exc: UserbaseError, status_code: int) -> None:
    context = sanitize_error_context(
        exc,
        {
            "request_method": request.method,
            "request_path": str(request.url.path),
            "error_code": exc.error_code,
            "correlation_id": RequestContext.get_correlation_id(),
            **exc.context,
        },
    )
    if isinstance(exc, ValidationError):
        context["errors"] = exc.errors

    if exc.is_expected:
        log_warning(status_code, exc.message, **context)
        return

    if exc.cause is not None:
        context["cause_type"] = type(exc.cause).__name__
        context["cause_message"] = str(exc.cause)
    log_error(status_code, exc.message, **context)


async def userbase_error_handler(request: Request, exc: Exception) -> Response:
    """Handle UserbaseError exceptions.

    Args:
        request: The FastAPI request that caused the exception
        exc: The UserbaseError exception to handle

    Returns:
        Response: ORJSONResponse with error details

    Raises:
        TypeError: If exc is not a UserbaseError instance
    """
    if not isinstance(exc, UserbaseError):
        raise TypeError(f"Expected UserbaseError, got {type(exc).__name__}")

    status_code = _status_code_for(exc)
    _log_userbase_error(request, exc, status_code)

    error_response = ErrorResponse(
        error=exc.message,
        details=exc.errors if isinstance(exc, ValidationError) else None,
    )
    return ORJSONResponse(status_code=status_code, content=error_response.to_content())


async def validation_error_handler(request: Request, exc: Exception) -> Response:
    """Handle FastAPI RequestValidationError exceptions.

    An unparsable JSON body is reported as a malformed request before any
    route logic runs. Other request-shape errors are reported as a
    validation failure.

    Args:
        request: The FastAPI request that caused the exception
        exc: The RequestValidationError exception to handle

    Returns:
        Response: ORJSONResponse with error details

    Raises:
        TypeError: If exc is not a RequestValidationError instance
    """
    if not isinstance(exc, RequestValidationError):
        raise TypeError(f"Expected RequestValidationError, got {type(exc).__name__}")

    errors = list(exc.errors())

    if any(error.get("type") == JSON_DECODE_ERROR_TYPE for error in errors):
        malformed = MalformedRequestError(
            MALFORMED_JSON_MESSAGE, context={"event": "JSON_PARSE_ERROR"}
        )
        return await userbase_error_handler(request, malformed)

    messages = []
    for error in errors:
        field_path = error.get("loc", ())
        field_name = ".".join(str(loc) for loc in field_path[1:]) or "body"
        messages.append(f"{field_name}: {error.get('msg', 'Invalid value')}")

    invalid = ValidationError(
        VALIDATION_FAILED_MESSAGE,
        errors=messages,
        context={"event": "REQUEST_VALIDATION_FAILED"},
    )
    return await userbase_error_handler(request, invalid)


async def http_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle Starlette HTTPException (unknown routes, unsupported methods).

    Args:
        request: The FastAPI request that caused the exception
        exc: The HTTPException to handle

    Returns:
        Response: ORJSONResponse with error details

    Raises:
        TypeError: If exc is not an HTTPException instance
    """
    if not isinstance(exc, HTTPException):
        raise TypeError(f"Expected HTTPException, got {type(exc).__name__}")

    log_warning(
        exc.status_code,
        str(exc.detail),
        event="HTTP_EXCEPTION",
        request_method=request.method,
        request_path=str(request.url.path),
    )

    return ORJSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail)).to_content(),
        headers=exc.headers,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle any exception not handled elsewhere.

    The full exception is logged with its traceback; the client only
    receives a generic message.

    Args:
        request: The FastAPI request that caused the exception
        exc: The unhandled exception

    Returns:
        Response: ORJSONResponse with generic error message
    """
    context = sanitize_error_context(
        exc,
        {
            "event": "UNHANDLED_ERROR",
            "request_method": request.method,
            "request_path": str(request.url.path),
            "correlation_id": RequestContext.get_correlation_id(),
        },
    )
    logger.opt(exception=exc).bind(
        status=status.HTTP_500_INTERNAL_SERVER_ERROR, context=context
    ).error("Unhandled exception: {}", str(exc))

    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error=UNHANDLED_ERROR_MESSAGE).to_content(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(UserbaseError, userbase_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("Exception handlers registered")
