"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

# Set test environment before importing app modules
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["AI_PROVIDER"] = "stub"
os.environ["GOOGLE_AI_API_KEY"] = ""
os.environ["GEMINI_FORCE_FAILURE"] = ""
os.environ["RETRY_WORKER_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture(scope="session")
def test_client() -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    from blueprint_engine.main import app

    with TestClient(app) as client:
        yield client


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def repository():
    """Get an in-memory blueprint repository."""
    from blueprint_engine.adapters.store.memory import InMemoryBlueprintRepository

    return InMemoryBlueprintRepository()


@pytest.fixture
def sql_repository():
    """Get a SQLAlchemy repository on its own in-memory SQLite database."""
    from sqlalchemy.orm import sessionmaker

    from blueprint_engine.adapters.store.sql import SqlAlchemyBlueprintRepository
    from blueprint_engine.db.models import Base
    from blueprint_engine.db.session import build_engine

    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    yield SqlAlchemyBlueprintRepository(session_factory)

    engine.dispose()


@pytest.fixture
def stub_ai():
    """Get a stub AI provider."""
    from blueprint_engine.adapters.ai.stub import StubAIProvider

    return StubAIProvider()


@pytest.fixture
def scripted_ai():
    """Build an AI provider that replays the given outcomes in order.

    Strings are returned as model output, exceptions are raised.
    """
    from blueprint_engine.adapters.ai.base import AIProvider

    class ScriptedAIProvider(AIProvider):
        def __init__(self, outcomes) -> None:
            self.outcomes = list(outcomes)
            self.prompts: list[str] = []

        @property
        def name(self) -> str:
            return "scripted"

        async def generate(self, prompt: str) -> str:
            self.prompts.append(prompt)
            outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome

    return lambda *outcomes: ScriptedAIProvider(outcomes)


@pytest.fixture
def user():
    from blueprint_engine.domain.models import UserContext

    return UserContext(user_id="user-123")
