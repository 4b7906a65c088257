"""Data access for the settings page: one snapshot read, one combined write."""

import asyncio
import logging
from datetime import datetime

from pydantic import ValidationError

from fitprofile.backend.base import Row, TableBackend
from fitprofile.errors import BackendError, ProfileNotFoundError, SnapshotFetchError, WriteError
from fitprofile.schemas.goal import GoalRead
from fitprofile.schemas.profile import ProfileRead, ProfileUpdate
from fitprofile.schemas.settings import SettingsSnapshot
from fitprofile.schemas.stats import PhysicalStatsRead, StatsUpdate
from fitprofile.settings.bmi import compute_bmi
from fitprofile.settings.changes import parse_equipment, serialize_equipment

logger = logging.getLogger(__name__)


def _profile_from_row(row: Row) -> ProfileRead:
    data = dict(row)
    data["available_equipment"] = parse_equipment(row.get("available_equipment"))
    return ProfileRead.model_validate(data)


class ProfileRepository:
    """Reads and writes one user's profile, stats and goals.

    The repository only talks to the backend. Cache invalidation and global
    profile refreshes belong to the caller.
    """

    def __init__(self, backend: TableBackend) -> None:
        self.backend = backend

    async def fetch_profile(self, user_id: str) -> ProfileRead | None:
        row = await self.backend.fetch_profile(user_id)
        return _profile_from_row(row) if row is not None else None

    async def fetch_snapshot(self, user_id: str) -> SettingsSnapshot:
        """Fetch profile, latest stats and goals concurrently.

        A failed or missing profile raises SnapshotFetchError. Stats and goals
        are secondary: failed reads and invalid rows are logged and replaced
        with None / [].
        """
        profile_res, stats_res, goals_res = await asyncio.gather(
            self.backend.fetch_profile(user_id),
            self.backend.fetch_latest_stats(user_id),
            self.backend.fetch_goals(user_id),
            return_exceptions=True,
        )

        if isinstance(profile_res, BaseException):
            if not isinstance(profile_res, BackendError):
                raise profile_res
            raise SnapshotFetchError(profile_res.message) from profile_res
        if profile_res is None:
            raise ProfileNotFoundError(f"No profile found for user {user_id}")

        try:
            profile = _profile_from_row(profile_res)
        except ValidationError as e:
            raise SnapshotFetchError(f"Invalid profile row for user {user_id}") from e

        stats: PhysicalStatsRead | None = None
        if isinstance(stats_res, BackendError):
            logger.warning("Stats fetch failed for user %s: %s", user_id, stats_res.message)
        elif isinstance(stats_res, BaseException):
            raise stats_res
        elif stats_res is not None:
            try:
                stats = PhysicalStatsRead.model_validate(stats_res)
            except ValidationError as e:
                logger.warning("Ignoring invalid stats row for user %s: %s", user_id, e)

        goals: list[GoalRead] = []
        if isinstance(goals_res, BackendError):
            logger.warning("Goals fetch failed for user %s: %s", user_id, goals_res.message)
        elif isinstance(goals_res, BaseException):
            raise goals_res
        else:
            try:
                goals = [GoalRead.model_validate(row) for row in goals_res]
            except ValidationError as e:
                logger.warning("Ignoring invalid goal rows for user %s: %s", user_id, e)

        return SettingsSnapshot(profile=profile, stats=stats, goals=goals)

    async def _write_profile(self, user_id: str, updates: ProfileUpdate) -> None:
        values: Row = updates.model_dump(exclude_unset=True)
        if "available_equipment" in values:
            values["available_equipment"] = serialize_equipment(values["available_equipment"] or [])
        values["updated_at"] = datetime.utcnow()
        try:
            await self.backend.update_profile(user_id, values)
        except BackendError as e:
            raise WriteError(f"Profile update failed: {e.message}", failed=["profile"]) from e

    async def _write_stats(self, user_id: str, updates: StatsUpdate) -> None:
        values: Row = {
            "user_id": user_id,
            **updates.model_dump(),
            "bmi": compute_bmi(updates.height_cm, updates.weight_kg),
            "recorded_at": datetime.utcnow(),
        }
        try:
            await self.backend.insert_stats(values)
        except BackendError as e:
            raise WriteError(f"Stats update failed: {e.message}", failed=["stats"]) from e

    async def apply_update(
        self,
        user_id: str,
        profile_updates: ProfileUpdate | None = None,
        stats_updates: StatsUpdate | None = None,
    ) -> None:
        """Run the profile and stats sub-writes concurrently.

        The sub-writes are independent: if one fails the other is not rolled
        back. Raises WriteError naming every sub-write that failed.
        """
        if not user_id:
            raise ValueError("User ID is required for updates.")

        writes = []
        if profile_updates is not None and not profile_updates.is_empty:
            writes.append(self._write_profile(user_id, profile_updates))
        if stats_updates is not None:
            writes.append(self._write_stats(user_id, stats_updates))
        if not writes:
            return

        results = await asyncio.gather(*writes, return_exceptions=True)
        errors = [r for r in results if isinstance(r, BaseException)]
        for error in errors:
            if not isinstance(error, WriteError):
                raise error
        if errors:
            failed = [name for e in errors for name in e.failed]  # type: ignore[attr-defined]
            raise WriteError("; ".join(str(e) for e in errors), failed=failed)
        logger.info(
            "Saved settings for user %s (profile=%s, stats=%s)",
            user_id,
            profile_updates is not None and not profile_updates.is_empty,
            stats_updates is not None,
        )
