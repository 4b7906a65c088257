from abc import ABC, abstractmethod
from typing import Any

Row = dict[str, Any]


class TableBackend(ABC):
    """Abstract interface to the hosted table API holding profile data.

    Implementations return rows shaped the way the hosted API returns them
    (goals embed ``goal_workout_plans`` with ``workout_templates``) and raise
    ``BackendError`` when a call fails. Each call must be safe to run
    concurrently with the others.
    """

    @abstractmethod
    async def fetch_profile(self, user_id: str) -> Row | None:
        """Return the profile row (name, photo_url, available_equipment) or None."""
        ...

    @abstractmethod
    async def fetch_latest_stats(self, user_id: str) -> Row | None:
        """Return the most recent physical-stats row by recorded_at, or None."""
        ...

    @abstractmethod
    async def fetch_goals(self, user_id: str) -> list[Row]:
        """Return the user's goals, newest first, with linked plan names."""
        ...

    @abstractmethod
    async def update_profile(self, user_id: str, values: Row) -> None:
        ...

    @abstractmethod
    async def insert_stats(self, values: Row) -> None:
        ...

    async def aclose(self) -> None:
        """Release any held connections."""
        return None
