"""HTTP access logging with performance monitoring.

One access record is written per request to ``access.log``. The record's
message is ``"<METHOD> <path>"`` and its context carries the request body
(JSON-decoded when possible, sensitive keys redacted), the duration and
the correlation ID bound by the request context middleware.

Features:
- **Body capture**: JSON bodies are sanitized, other bodies truncated
- **Performance tracking**: Request duration and slow request detection
- **Exclusion patterns**: Configurable path exclusion (e.g., health checks)
- **Error handling**: Logs failures while preserving exception propagation
"""

import time
from collections.abc import Awaitable, Callable

import orjson
from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from src.api.constants import REQUEST_BODY_METHODS
from src.core.config import LogConfig
from src.core.constants import MILLISECONDS_PER_SECOND
from src.core.error_context import sanitize_value
from src.core.logging import log_access, log_warning
from src.core.types import JsonValue


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * MILLISECONDS_PER_SECOND, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware writing one access record per HTTP request.

    Args:
        app: The ASGI application.
        log_config: Logging configuration.
    """

    def __init__(self, app: ASGIApp, *, log_config: LogConfig) -> None:
        super().__init__(app)
        self.log_config = log_config
        self.excluded_paths = set(log_config.excluded_paths)

    async def _read_body(self, request: Request) -> JsonValue:
        """Read the request body in a form suitable for logging.

        Args:
            request: The incoming request.

        Returns:
            JsonValue: Sanitized JSON body, truncated raw text, or None.
        """
        if request.method not in REQUEST_BODY_METHODS:
            return None

        body = await request.body()
        if not body:
            return None

        try:
            return sanitize_value(orjson.loads(body))  # type: ignore[return-value]
        except orjson.JSONDecodeError:
            text = body.decode("utf-8", errors="replace")
            limit = self.log_config.max_body_log_length
            if len(text) > limit:
                return text[:limit] + "...[truncated]"
            return text

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process the request and write its access record.

        Args:
            request: The incoming request.
            call_next: The next middleware/endpoint.

        Returns:
            Response: The response from the application.

        Raises:
            Exception: Any exception raised by the application is re-raised
                after logging.
        """
        path = request.url.path
        if path in self.excluded_paths:
            return await call_next(request)

        message = f"{request.method} {path}"
        body = await self._read_body(request)
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = _elapsed_ms(start_time)
            log_access(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                message,
                body=body,
                duration_ms=duration_ms,
                error_type=type(exc).__name__,
            )
            raise

        duration_ms = _elapsed_ms(start_time)
        log_access(response.status_code, message, body=body, duration_ms=duration_ms)

        if duration_ms > self.log_config.slow_request_threshold_ms:
            log_warning(
                response.status_code,
                "Slow request detected",
                event="SLOW_REQUEST",
                method=request.method,
                path=path,
                duration_ms=duration_ms,
                threshold_ms=self.log_config.slow_request_threshold_ms,
            )

        return response
