"""FastAPI dependency injection for the database handle and repositories.

The application factory stores its ``Database`` on ``app.state``; these
dependencies hand that instance to route handlers so that nothing reaches
for a module-level global.

Example:
    @router.get("/users")
    async def list_users(repository: UserRepositoryDep) -> list[UserResponse]:
        ...
"""

from typing import Annotated

from fastapi import Depends, Request

from src.infrastructure.database.repository import UserRepository
from src.infrastructure.database.session import Database


def get_database(request: Request) -> Database:
    """Provide the application's database handle.

    Args:
        request: The current request.

    Returns:
        Database: The handle owned by the application.
    """
    database: Database = request.app.state.database
    return database


def get_user_repository(
    database: Annotated[Database, Depends(get_database)],
) -> UserRepository:
    """Provide a user repository bound to the application's database.

    Args:
        database: The database handle.

    Returns:
        UserRepository: Repository borrowing the handle.
    """
    return UserRepository(database)


# Type aliases for cleaner dependency injection
DatabaseDep = Annotated[Database, Depends(get_database)]
UserRepositoryDep = Annotated[UserRepository, Depends(get_user_repository)]
