"""API-related constants."""

# Route prefix of the users resource
API_PREFIX = "/api"

# HTTP Headers
CORRELATION_ID_HEADER = "X-Correlation-ID"

# Request handling
REQUEST_BODY_METHODS = {"POST", "PUT", "PATCH"}

# Client-facing error messages
NOT_FOUND_MESSAGE = "User not found"
VALIDATION_FAILED_MESSAGE = "Validation failed"
MALFORMED_JSON_MESSAGE = "Malformed JSON"
UNHANDLED_ERROR_MESSAGE = "Unhandled server error"
