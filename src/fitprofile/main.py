import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

import fitprofile.models  # noqa: F401 (register all models with Base.metadata)
from fitprofile.api.deps import SettingsSessions
from fitprofile.api.routes.settings import router as settings_router
from fitprofile.backend import RestTableBackend, SqlTableBackend, TableBackend
from fitprofile.cache import QueryCache
from fitprofile.config import Settings, get_settings
from fitprofile.database import Base, async_session, engine
from fitprofile.settings.repository import ProfileRepository
from fitprofile.store import ProfileStore

logger = logging.getLogger(__name__)


def build_backend(settings: Settings) -> TableBackend:
    if settings.backend == "rest":
        if not settings.rest_url:
            raise ValueError("FITPROFILE_REST_URL is required when backend is 'rest'")
        return RestTableBackend(settings.rest_url, settings.rest_api_key)
    if settings.backend == "sql":
        return SqlTableBackend(async_session)
    raise ValueError(f"Unknown backend {settings.backend!r} (expected 'sql' or 'rest')")


def create_app(backend: TableBackend | None = None) -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    backend = backend or build_backend(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # Create tables on startup when serving from the local database
        if isinstance(backend, SqlTableBackend):
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        yield
        await backend.aclose()
        await engine.dispose()

    app = FastAPI(
        title="FitProfile",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    repository = ProfileRepository(backend)
    app.state.settings_sessions = SettingsSessions(
        repository=repository,
        cache=QueryCache(),
        profile_store=ProfileStore(repository),
    )
    logger.info("Serving settings from the %s backend", type(backend).__name__)

    app.include_router(settings_router)

    @app.get("/api/system/status")
    async def system_status() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
