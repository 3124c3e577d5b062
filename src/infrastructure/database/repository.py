"""Repository pattern implementation for database operations.

Repositories borrow the application's ``Database`` handle and open one
session per operation, so every operation is committed (or rolled back)
before it returns. Database failures surface as ``StorageError``.
"""

from collections.abc import Mapping

from loguru import logger
from sqlalchemy import delete as sql_delete
from sqlalchemy import select

from src.infrastructure.database.base import BaseModel
from src.infrastructure.database.models import User
from src.infrastructure.database.session import Database


class BaseRepository[T: BaseModel]:
    """Base repository class providing common CRUD operations.

    Args:
        database: The database handle to run operations against.
        model_class: The SQLAlchemy model class this repository manages.

    Example:
        class UserRepository(BaseRepository[User]):
            def __init__(self, database: Database) -> None:
                super().__init__(database, User)
    """

    def __init__(self, database: Database, model_class: type[T]) -> None:
        self.database = database
        self.model_class = model_class

    async def get_by_id(self, entity_id: str) -> T | None:
        """Retrieve a model instance by its ID.

        Args:
            entity_id: The primary key ID of the model to retrieve.

        Returns:
            T | None: The model instance if found, None otherwise.
        """
        logger.debug("Fetching {} by ID: {}", self.model_class.__name__, entity_id)

        async with self.database.session() as session:
            stmt = select(self.model_class).where(self.model_class.id == entity_id)
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def get_all(self) -> list[T]:
        """Retrieve all model instances.

        Returns:
            list[T]: Every instance, ordered by ID.
        """
        async with self.database.session() as session:
            stmt = select(self.model_class).order_by(self.model_class.id)
            result = await session.execute(stmt)
            instances = list(result.scalars().all())

        logger.debug(
            "Retrieved {} {} instances", len(instances), self.model_class.__name__
        )
        return instances

    async def create(self, obj: T) -> T:
        """Insert a new model instance.

        Args:
            obj: The model instance to create.

        Returns:
            T: The created instance with its generated ID.
        """
        async with self.database.session() as session:
            session.add(obj)
            await session.flush()

        logger.debug("Created {} instance with ID: {}", self.model_class.__name__, obj.id)
        return obj

    async def update(self, entity_id: str, data: Mapping[str, object]) -> T | None:
        """Update a model instance by its ID.

        The instance is read first; a missing ID is reported as ``None``
        without issuing an UPDATE.

        Args:
            entity_id: The primary key ID of the model to update.
            data: Dictionary of fields to update.

        Returns:
            T | None: The updated model instance if found, None otherwise.
        """
        async with self.database.session() as session:
            stmt = select(self.model_class).where(self.model_class.id == entity_id)
            instance = (await session.execute(stmt)).scalar_one_or_none()
            if instance is None:
                return None

            for key, value in data.items():
                if hasattr(instance, key) and key != "id":
                    setattr(instance, key, value)
                else:
                    logger.warning(
                        "Attempted to update non-updatable field '{}' on {}",
                        key,
                        self.model_class.__name__,
                    )

            await session.flush()

        logger.debug(
            "Updated {} instance ID {} - fields: {}",
            self.model_class.__name__,
            entity_id,
            list(data.keys()),
        )
        return instance

    async def delete(self, entity_id: str) -> bool:
        """Delete a model instance by its ID.

        Relies on the affected-row count of the DELETE statement.

        Args:
            entity_id: The primary key ID of the model to delete.

        Returns:
            bool: True if the instance was deleted, False if not found.
        """
        stmt = (
            sql_delete(self.model_class)
            .where(self.model_class.id == entity_id)
            .execution_options(synchronize_session=False)
        )
        async with self.database.session() as session:
            result = await session.execute(stmt)
            deleted = bool(result.rowcount)

        logger.debug(
            "Delete {} ID {} - deleted: {}", self.model_class.__name__, entity_id, deleted
        )
        return deleted


class UserRepository(BaseRepository[User]):
    """Repository for user records."""

    def __init__(self, database: Database) -> None:
        super().__init__(database, User)
