"""Database models."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.base import BaseModel

NAME_COLUMN_LENGTH = 255


class User(BaseModel):
    """A user record, stored in the ``users`` table."""

    __tablename__ = "users"

    fullname: Mapped[str] = mapped_column(String(NAME_COLUMN_LENGTH), nullable=False)
    study_level: Mapped[str] = mapped_column(
        String(NAME_COLUMN_LENGTH), nullable=False
    )
    age: Mapped[int] = mapped_column(Integer, nullable=False)
