"""Test configuration and fixtures for GymTrack API."""

import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.config.database import Base, get_db
from src.core.clock import get_clock
from src.core.security import create_access_token
from src.domains.exercises.models import Exercise, ExerciseCategory
from src.domains.programs.models import ProgramExercise, ProgramSet, WorkoutProgram
from src.main import create_app

# Test database URL - use SQLite in-memory for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeClock:
    """Deterministic clock; time only moves when a test advances it."""

    def __init__(self, start: datetime):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for tests."""
    return "asyncio"


@pytest.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
    )

    # Import all models to register them
    from src.domains import models  # noqa: F401

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def fake_clock() -> FakeClock:
    """Clock pinned to a fixed morning."""
    return FakeClock(datetime(2025, 3, 3, 7, 0, tzinfo=timezone.utc))


@pytest.fixture(scope="function")
async def client(test_engine, db_session, fake_clock) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database session and clock overrides."""
    app = create_app()

    # Override the database dependency
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: fake_clock

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def sample_user_id() -> uuid.UUID:
    """Generate a sample user ID."""
    return uuid.uuid4()


@pytest.fixture
def other_user_id() -> uuid.UUID:
    """A second user who must never see the first user's data."""
    return uuid.uuid4()


@pytest.fixture
def auth_headers(sample_user_id: uuid.UUID) -> dict[str, str]:
    """Bearer header for the sample user."""
    token = create_access_token(str(sample_user_id))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def authenticated_client(
    client: AsyncClient,
    auth_headers: dict[str, str],
) -> AsyncClient:
    """Test client carrying the sample user's bearer token."""
    client.headers.update(auth_headers)
    return client


@pytest.fixture
async def catalog_exercises(db_session: AsyncSession) -> dict[str, Exercise]:
    """Seed a small exercise catalog."""
    exercises = {
        "bench": Exercise(
            name="Bench Press",
            category=ExerciseCategory.STRENGTH,
            primary_muscle="Chest",
            secondary_muscle="Triceps",
        ),
        "squat": Exercise(
            name="Back Squat",
            category=ExerciseCategory.STRENGTH,
            primary_muscle="Quadriceps",
        ),
        "row": Exercise(
            name="Rowing Machine",
            category=ExerciseCategory.CARDIO,
            primary_muscle="Back",
        ),
    }
    db_session.add_all(exercises.values())
    await db_session.commit()
    return exercises


async def create_program(
    db_session: AsyncSession,
    user_id: uuid.UUID,
    name: str,
    exercises: list[tuple[Exercise, list[dict[str, Any]]]],
) -> WorkoutProgram:
    """Persist a program whose exercises carry the given target sets."""
    program = WorkoutProgram(user_id=user_id, name=name)
    for display_order, (exercise, sets) in enumerate(exercises, start=1):
        program_exercise = ProgramExercise(
            exercise_id=exercise.id,
            display_order=display_order,
        )
        for sequence, targets in enumerate(sets, start=1):
            program_exercise.sets.append(ProgramSet(sequence=sequence, **targets))
        program.exercises.append(program_exercise)

    db_session.add(program)
    await db_session.commit()
    await db_session.refresh(program)
    return program


@pytest.fixture
async def sample_program(
    db_session: AsyncSession,
    sample_user_id: uuid.UUID,
    catalog_exercises: dict[str, Exercise],
) -> WorkoutProgram:
    """Two exercises with one target set each."""
    return await create_program(
        db_session,
        sample_user_id,
        "Full Body A",
        [
            (
                catalog_exercises["bench"],
                [{"target_weight": Decimal("60"), "target_reps": 8, "rest_seconds": 90}],
            ),
            (
                catalog_exercises["squat"],
                [{"target_weight": Decimal("80"), "target_reps": 5, "rest_seconds": 120}],
            ),
        ],
    )
