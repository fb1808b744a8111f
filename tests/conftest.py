"""Shared test fixtures and configuration."""
import os
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app
os.environ.setdefault("TWILIO_ACCOUNT_SID", "AC-test")
os.environ.setdefault("TWILIO_APPLICATION_SID", "AP-test")
os.environ.setdefault("TWILIO_PHONE_NUMBER", "+15550000000")
os.environ.setdefault("PRIMARY_PHONE_NUMBER", "+15559999999")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from doorman.main import app
from doorman.core.config import Settings
from doorman.core.dependencies import (
    get_call_persistence,
    get_script_repository,
    get_session_registry,
)
from doorman.db.database import Base
from doorman.services.persistence.calls import CallPersistenceService
from doorman.services.script.repository import ScriptRepository
from doorman.services.script.yaml_provider import YamlScriptProvider


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def build_settings(**overrides) -> Settings:
    values = dict(
        twilio_account_sid="AC-test",
        twilio_application_sid="AP-test",
        twilio_phone_number="+15550000000",
        primary_phone_number="+15559999999",
        environment="development",
        database_url=TEST_DATABASE_URL,
        admin_token="admin-secret",
    )
    values.update(overrides)
    return Settings(**values)


def _parse_twiml(document: str) -> List[ET.Element]:
    root = ET.fromstring(document.encode("utf-8"))
    assert root.tag == "Response"
    return list(root)


@pytest.fixture
def parse_twiml():
    """Return a parser yielding the verbs of a TwiML document."""
    return _parse_twiml


@pytest.fixture
def test_settings():
    """Override settings for testing."""
    return build_settings()


@pytest.fixture
def production_settings():
    """Settings with Twilio request validation enabled."""
    return build_settings(environment="production")


@pytest.fixture
async def test_db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def test_db(test_db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def test_scripts_path():
    """Return path to test scripts YAML file."""
    return Path(__file__).parent / "fixtures" / "test_scripts.yaml"


@pytest.fixture
def test_script_repository(test_scripts_path):
    """Create script repository with test scripts."""
    return ScriptRepository(YamlScriptProvider(scripts_file=str(test_scripts_path)))


@pytest.fixture
def mock_call_persistence():
    """Call log service that records calls without a database."""
    return AsyncMock(spec=CallPersistenceService)


@pytest.fixture
def session_registry():
    """The application's session registry, emptied around each test."""
    registry = get_session_registry()
    registry.clear()
    yield registry
    registry.clear()


def _client(settings, test_script_repository, mock_call_persistence, monkeypatch):
    app.dependency_overrides[get_script_repository] = lambda: test_script_repository
    app.dependency_overrides[get_call_persistence] = lambda: mock_call_persistence

    # Override settings in modules that use it
    monkeypatch.setattr("doorman.core.config.settings", settings)
    monkeypatch.setattr("doorman.core.dependencies.settings", settings)
    monkeypatch.setattr("doorman.api.webhooks.voice.settings", settings)
    monkeypatch.setattr("doorman.api.scripts.settings", settings)

    return TestClient(app)


@pytest.fixture
def test_client(
    test_settings, test_script_repository, mock_call_persistence, session_registry, monkeypatch
):
    """Create FastAPI test client with overrides (development mode)."""
    yield _client(test_settings, test_script_repository, mock_call_persistence, monkeypatch)
    app.dependency_overrides.clear()


@pytest.fixture
def production_client(
    production_settings, test_script_repository, mock_call_persistence, session_registry, monkeypatch
):
    """Create FastAPI test client that validates Twilio requests."""
    yield _client(production_settings, test_script_repository, mock_call_persistence, monkeypatch)
    app.dependency_overrides.clear()
