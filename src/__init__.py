"""Userbase - HTTP CRUD service for user records.

Userbase exposes a single ``users`` resource over a JSON API, backed by a
relational database, with structured logging and a health check.

Architecture Overview:
- **API Layer**: FastAPI routes, middleware and exception handlers
- **Core Layer**: Configuration, logging, exceptions and the startup state machine
- **Domain Layer**: Validation rules for user records
- **Infrastructure Layer**: Database handle, models and repositories
"""
