from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from userapi.core.config import STORE_SQL, Settings, get_settings
from userapi.core.log import RequestLogMiddleware, configure_logging
from userapi.repositories.base import UserRepository
from userapi.repositories.json_storage import load_users
from userapi.repositories.memory_repository import MemoryRepository
from userapi.repositories.sql_repository import SQLRepository
from userapi.routers import users as users_router
from userapi.services.user_service import UserService

logger = logging.getLogger(__name__)


def build_repository(settings: Settings) -> UserRepository:
    """Pick the storage backend named by USER_STORE."""
    if settings.user_store == STORE_SQL:
        logger.info("using SQL user store")
        return SQLRepository.from_url(settings.database_url, echo=settings.sql_echo)
    seed = load_users(settings.seed_file) if settings.seed_file else []
    logger.info("using in-memory user store (%d seed users)", len(seed))
    return MemoryRepository(seed)


def create_app(settings: Settings | None = None, repository: UserRepository | None = None) -> FastAPI:
    """Build a new application; each app owns its repository and closes it on shutdown."""
    settings = settings or get_settings()
    configure_logging(settings)
    repo = repository if repository is not None else build_repository(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            yield
        finally:
            app.state.user_service.close()

    app = FastAPI(title="User API", lifespan=lifespan)
    app.state.settings = settings
    app.state.user_service = UserService(repo)

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=sorted(settings.cors_origins),
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["*"],
        )
    app.add_middleware(RequestLogMiddleware)

    app.include_router(users_router.router)
    return app
