from __future__ import annotations

import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auth import router as auth_router
from core.db import Database
from core.errors import register_exception_handlers
from core.logging import configure_logging
from core.schema import apply_schema
from core.settings import Settings, load_env_file, load_settings, split_csv
from events import router as events_router
from events.repository import EventRepository
from holiday_sync.scheduler import HolidaySyncJob
from holiday_sync.service import sync_bank_holidays
from users import router as users_router
from users.repository import UserRepository


def build_holiday_sync_job(db: Database, settings: Settings) -> HolidaySyncJob:
    events = EventRepository(db)
    users = UserRepository(db)

    async def run() -> None:
        await sync_bank_holidays(
            events=events,
            users=users,
            feed_url=settings.holiday_feed_url,
            division=settings.holiday_division,
        )

    return HolidaySyncJob(run, interval_s=settings.holiday_sync_interval_hours * 3600)


def create_app(settings: Settings | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Settings, DB pool and the sync job are created once per process.
        resolved = settings or load_settings()
        configure_logging(resolved.log_level)
        app.state.settings = resolved

        db = Database(resolved.database_url)
        await db.connect()
        app.state.db = db

        job: HolidaySyncJob | None = None
        try:
            await apply_schema(db)
            if resolved.holiday_sync_enabled:
                job = build_holiday_sync_job(db, resolved)
                job.start()
            yield
        finally:
            if job is not None:
                await job.stop()
            await db.close()

    app = FastAPI(title="scheduler-api", lifespan=lifespan)
    if settings is not None:
        app.state.settings = settings

    origins = settings.allowed_origins if settings is not None else split_csv(os.environ.get("ALLOWED_ORIGINS", ""))
    # No configured origins means any origin may call the API.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(origins) or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(auth_router.router, tags=["auth"])
    app.include_router(events_router.router, tags=["events"])
    app.include_router(users_router.router, tags=["users"])

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


load_env_file()
app = create_app()


def run() -> None:
    host = os.environ.get("API_HOST", "127.0.0.1").strip() or "127.0.0.1"
    try:
        port = int(os.environ.get("API_PORT", "3000"))
    except ValueError:
        port = 3000
    uvicorn.run("main:app", host=host, port=port)


if __name__ == "__main__":
    run()
