"""Table backend over a local SQLAlchemy database."""

import logging
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fitprofile.backend.base import Row, TableBackend
from fitprofile.errors import BackendError
from fitprofile.models.goal import Goal, GoalWorkoutPlan, WorkoutTemplate
from fitprofile.models.physical_stats import PhysicalStats
from fitprofile.models.profile import Profile

logger = logging.getLogger(__name__)

GOAL_COLUMNS = (
    "id",
    "goal_type",
    "status",
    "target_date",
    "metric_type",
    "current_value",
    "target_value",
    "frequency",
    "start_date",
)
STATS_COLUMNS = ("height_cm", "weight_kg", "age", "gender", "bmi", "recorded_at")


def _row(obj: Any, columns: tuple[str, ...]) -> Row:
    return {column: getattr(obj, column) for column in columns}


class SqlTableBackend(TableBackend):
    """Serves the profile tables from a SQLAlchemy database.

    Every call opens its own session, so concurrent calls never share one.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def fetch_profile(self, user_id: str) -> Row | None:
        try:
            async with self._session_factory() as session:
                profile = await session.get(Profile, user_id)
        except SQLAlchemyError as e:
            raise BackendError(str(e)) from e
        if profile is None:
            return None
        return _row(profile, ("id", "name", "photo_url", "available_equipment"))

    async def fetch_latest_stats(self, user_id: str) -> Row | None:
        stmt = (
            select(PhysicalStats)
            .where(PhysicalStats.user_id == user_id)
            .order_by(PhysicalStats.recorded_at.desc(), PhysicalStats.id.desc())
            .limit(1)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                stats = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise BackendError(str(e)) from e
        return _row(stats, STATS_COLUMNS) if stats is not None else None

    async def fetch_goals(self, user_id: str) -> list[Row]:
        goals_stmt = (
            select(Goal)
            .where(Goal.user_id == user_id)
            .order_by(Goal.created_at.desc(), Goal.id.desc())
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(goals_stmt)
                goals = list(result.scalars().all())
                if not goals:
                    return []

                plans_stmt = (
                    select(GoalWorkoutPlan.goal_id, GoalWorkoutPlan.template_id, WorkoutTemplate.name)
                    .outerjoin(WorkoutTemplate, GoalWorkoutPlan.template_id == WorkoutTemplate.id)
                    .where(GoalWorkoutPlan.goal_id.in_([g.id for g in goals]))
                    .order_by(GoalWorkoutPlan.id)
                )
                plan_rows = (await session.execute(plans_stmt)).all()
        except SQLAlchemyError as e:
            raise BackendError(str(e)) from e

        plans_by_goal: dict[int, list[Row]] = {}
        for goal_id, template_id, name in plan_rows:
            template = {"name": name} if name is not None else None
            plans_by_goal.setdefault(goal_id, []).append(
                {"template_id": template_id, "workout_templates": template}
            )

        rows = []
        for goal in goals:
            row = _row(goal, GOAL_COLUMNS)
            row["goal_workout_plans"] = plans_by_goal.get(goal.id, [])
            rows.append(row)
        return rows

    async def update_profile(self, user_id: str, values: Row) -> None:
        stmt = update(Profile).where(Profile.id == user_id).values(**values)
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            raise BackendError(str(e)) from e
        if result.rowcount == 0:
            raise BackendError(f"No profile row for user {user_id}")
        logger.debug("Updated profile %s: %s", user_id, sorted(values))

    async def insert_stats(self, values: Row) -> None:
        try:
            async with self._session_factory() as session:
                session.add(PhysicalStats(**values))
                await session.commit()
        except SQLAlchemyError as e:
            raise BackendError(str(e)) from e
        logger.debug("Inserted stats entry for user %s", values.get("user_id"))
