"""SQLAlchemy declarative base and common model fields.

Key components:
- **Naming conventions**: Standardized constraint names
- **Base class**: Configured declarative base with metadata
- **BaseModel**: Abstract model with a server-generated UUID primary key

Identifiers are random UUID4 values rendered as canonical 36-character
strings. They are assigned when the row is first flushed and never change.
"""

import uuid

from sqlalchemy import MetaData, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.infrastructure.constants import NAMING_CONVENTION, UUID_LENGTH


def generate_id() -> str:
    """Generate a new record identifier.

    Returns:
        str: A canonical UUID4 string.
    """
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """SQLAlchemy declarative base with naming conventions."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class BaseModel(Base):
    """Abstract base model providing the ``id`` primary key."""

    __abstract__ = True

    id: Mapped[str] = mapped_column(
        String(UUID_LENGTH),
        primary_key=True,
        default=generate_id,
        doc="Primary key, canonical UUID4 string",
    )

    def __repr__(self) -> str:
        """Return a string representation of the model instance.

        Returns:
            str: A string showing the model class name and ID
        """
        return f"<{self.__class__.__name__}(id={self.id})>"
