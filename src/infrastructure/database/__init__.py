"""Database infrastructure with async SQLAlchemy and the repository pattern.

Core components:
- **base**: Declarative base and the UUID primary key
- **models**: The ``users`` table
- **session**: ``Database`` handle (pool, bootstrap, retries, sessions)
- **repository**: Repositories running CRUD operations through the handle
- **dependencies**: FastAPI dependency injection helpers

All database operations are async-first. Production runs on PostgreSQL
through asyncpg; the test-suite runs on SQLite through aiosqlite.
"""

from src.infrastructure.database.base import Base, BaseModel
from src.infrastructure.database.models import User
from src.infrastructure.database.repository import BaseRepository, UserRepository
from src.infrastructure.database.session import Database

__all__ = [
    "Base",
    "BaseModel",
    "BaseRepository",
    "Database",
    "User",
    "UserRepository",
]
