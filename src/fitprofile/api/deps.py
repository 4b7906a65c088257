"""Request dependencies: the signed-in user and their settings controller."""

import logging

from fastapi import Depends, Header, HTTPException, Request

from fitprofile.cache import QueryCache
from fitprofile.settings.controller import SettingsController
from fitprofile.settings.repository import ProfileRepository
from fitprofile.store import ProfileStore

logger = logging.getLogger(__name__)


class SettingsSessions:
    """One mounted settings controller per user."""

    def __init__(
        self, repository: ProfileRepository, cache: QueryCache, profile_store: ProfileStore
    ) -> None:
        self.repository = repository
        self.cache = cache
        self.profile_store = profile_store
        self._controllers: dict[str, SettingsController] = {}

    def get(self, user_id: str) -> SettingsController | None:
        controller = self._controllers.get(user_id)
        if controller is None or controller.closed:
            return None
        return controller

    async def open(self, user_id: str) -> SettingsController:
        """Return the user's controller, mounting and loading it on first use."""
        controller = self.get(user_id)
        if controller is not None:
            return controller
        controller = SettingsController(user_id, self.repository, self.cache, self.profile_store)
        self._controllers[user_id] = controller
        logger.info("Opened settings for user %s", user_id)
        await controller.load()
        return controller

    def close(self, user_id: str) -> bool:
        controller = self._controllers.pop(user_id, None)
        if controller is None:
            return False
        controller.close()
        return True


async def get_current_user_id(
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> str:
    """User id set by the authentication layer in front of this service."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Not signed in")
    return x_user_id.strip()


def get_sessions(request: Request) -> SettingsSessions:
    return request.app.state.settings_sessions  # type: ignore[no-any-return]


async def get_controller(
    user_id: str = Depends(get_current_user_id),
    sessions: SettingsSessions = Depends(get_sessions),
) -> SettingsController:
    return await sessions.open(user_id)
