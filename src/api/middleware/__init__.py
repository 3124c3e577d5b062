"""FastAPI middleware package for cross-cutting request/response concerns.

- **RequestContextMiddleware**: Manages correlation IDs and request context
- **RequestLoggingMiddleware**: Access log records with timing
- **error_handler**: Centralized exception handling with consistent error bodies

Middleware are executed in a specific order to ensure proper request processing:
1. Request context (sets up correlation IDs, outermost)
2. Request logging (logs with correlation context)
3. Exception handlers (catch and format all exceptions)
"""
