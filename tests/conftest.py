import tempfile
from collections.abc import AsyncGenerator
from datetime import date, datetime
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from fitprofile.backend.sql import SqlTableBackend
from fitprofile.database import Base
from fitprofile.main import create_app
from fitprofile.models import Goal, GoalWorkoutPlan, PhysicalStats, Profile, WorkoutTemplate

# File-backed so concurrent reads and writes each get their own connection.
TEST_DB_PATH = Path(tempfile.gettempdir()) / "fitprofile-tests.db"

test_engine = create_async_engine(
    f"sqlite+aiosqlite:///{TEST_DB_PATH}", echo=False, poolclass=NullPool
)
test_session = async_sessionmaker(test_engine, expire_on_commit=False)


@pytest.fixture(autouse=True)
async def setup_db() -> AsyncGenerator[None, None]:
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def backend() -> SqlTableBackend:
    return SqlTableBackend(test_session)


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    app = create_app(backend=SqlTableBackend(test_session))
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def seed_profile(
    user_id: str = "user-1",
    name: str | None = "Alice",
    available_equipment: str | None = '["Dumbbells"]',
) -> Profile:
    async with test_session() as session:
        profile = Profile(id=user_id, name=name, available_equipment=available_equipment)
        session.add(profile)
        await session.commit()
        return profile


async def seed_stats(user_id: str = "user-1", recorded_at: datetime | None = None, **kwargs: object) -> None:
    async with test_session() as session:
        session.add(
            PhysicalStats(
                user_id=user_id,
                height_cm=kwargs.get("height_cm", 170.0),
                weight_kg=kwargs.get("weight_kg", 70.0),
                age=kwargs.get("age", 30),
                gender=kwargs.get("gender", "female"),
                bmi=kwargs.get("bmi"),
                recorded_at=recorded_at or datetime(2024, 6, 1, 8, 0),
            )
        )
        await session.commit()


async def seed_goal(
    user_id: str = "user-1",
    goal_type: str = "weight_loss",
    created_at: datetime | None = None,
    plan_names: list[str | None] | None = None,
    **kwargs: object,
) -> int:
    async with test_session() as session:
        goal = Goal(
            user_id=user_id,
            goal_type=goal_type,
            status=kwargs.get("status", "active"),
            metric_type=kwargs.get("metric_type", "weight"),
            target_value=kwargs.get("target_value", 65.0),
            target_date=kwargs.get("target_date", date(2024, 12, 31)),
            created_at=created_at or datetime(2024, 6, 1),
        )
        session.add(goal)
        await session.flush()
        for plan_name in plan_names or []:
            template_id = None
            if plan_name is not None:
                template = WorkoutTemplate(name=plan_name)
                session.add(template)
                await session.flush()
                template_id = template.id
            session.add(GoalWorkoutPlan(goal_id=goal.id, template_id=template_id))
        await session.commit()
        return goal.id
