"""Global profile store shared by every view of the signed-in user."""

import logging

from fitprofile.errors import BackendError
from fitprofile.schemas.profile import ProfileRead
from fitprofile.settings.repository import ProfileRepository

logger = logging.getLogger(__name__)


class ProfileStore:
    """Holds the current profile per user id.

    ``refresh_profile`` is called after a successful settings write so every
    view reading from the store sees the new name and equipment.
    """

    def __init__(self, repository: ProfileRepository) -> None:
        self._repository = repository
        self._profiles: dict[str, ProfileRead] = {}

    def get_profile(self, user_id: str) -> ProfileRead | None:
        return self._profiles.get(user_id)

    async def refresh_profile(self, user_id: str) -> ProfileRead | None:
        """Reload the stored profile. Failures are logged and the old value kept."""
        if not user_id:
            return None
        try:
            profile = await self._repository.fetch_profile(user_id)
        except BackendError as e:
            logger.error("Error fetching profile for user %s: %s", user_id, e.message)
            return self._profiles.get(user_id)

        # A missing row is normal right after sign-up.
        self._profiles[user_id] = profile or ProfileRead(id=user_id)
        return self._profiles[user_id]

    def clear(self, user_id: str) -> None:
        self._profiles.pop(user_id, None)
