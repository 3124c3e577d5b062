"""HTTP API layer with FastAPI for the Userbase service.

Key components:
- **main**: Application factory, lifespan and the health endpoint
- **routes**: The ``/api/users`` resource
- **middleware**: Cross-cutting concerns for all requests
  - Request context with correlation ID tracking
  - Access logging with timing
  - Centralized error handling with consistent responses
- **schemas**: Pydantic response models and the error body
- **utils**: JSON serialization with orjson

The API layer translates between HTTP and the validation and storage
layers. It never formats error bodies itself; routes raise the
application exceptions and the registered handlers render them.
"""
