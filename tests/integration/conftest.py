"""Shared fixtures for integration tests.

Integration tests run the full application against a file-backed SQLite
database created in the test's temporary directory, so every test starts
from an empty ``users`` table.
"""

from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.main import create_app
from src.core.config import DatabaseConfig, Settings
from src.infrastructure.database.session import Database


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """SQLite URL of a fresh database file."""
    return f"sqlite+aiosqlite:///{tmp_path / 'users.db'}"


@pytest.fixture
def settings(tmp_path: Path, database_url: str) -> Settings:
    """Settings pointing at the test database and log directory."""
    return Settings(  # type: ignore[call-arg]
        _env_file=None,
        log_dir=tmp_path / "logs",
        database_config=DatabaseConfig(
            database_url=database_url,
            connect_max_retries=1,
            connect_retry_delay=0,
        ),
    )


@pytest.fixture
def database(settings: Settings) -> Database:
    """A database handle that the application lifespan will connect."""
    return Database.from_settings(settings)


@pytest.fixture
async def connected_database(database: Database) -> AsyncGenerator[Database]:
    """A database handle connected and bootstrapped for direct use."""
    await database.connect()
    yield database
    await database.close()


@pytest.fixture
def app(settings: Settings, database: Database) -> FastAPI:
    """Application wired to the test database."""
    return create_app(settings, database)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient]:
    """Test client running the application lifespan."""
    with TestClient(app) as test_client:
        yield test_client
