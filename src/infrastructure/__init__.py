"""Infrastructure layer for data persistence.

Key responsibilities:
- **Database access**: Async SQLAlchemy 2.0+ (PostgreSQL via asyncpg)
- **Repository pattern**: CRUD operations on the ``users`` table
- **Connection management**: Pooling, startup retries, health checks, lifecycle
"""
