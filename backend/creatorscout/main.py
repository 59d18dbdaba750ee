from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from creatorscout.api.routes import analysis, campaigns, creators, youtube
from creatorscout.config import Settings, get_settings
from creatorscout.db.database import Database
from creatorscout.db.store import CreatorStore


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = Database(settings.database_url)
        await database.init()
        app.state.store = CreatorStore(database)
        try:
            yield
        finally:
            await database.close()

    app = FastAPI(title=settings.app_name, version="1.0.0", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(creators.router)
    app.include_router(campaigns.router)
    app.include_router(youtube.router)
    app.include_router(analysis.router)

    app.mount("/avatars", StaticFiles(directory=settings.avatars_dir, check_dir=False), name="avatars")
    app.mount("/yt-avatars", StaticFiles(directory=settings.yt_avatars_dir, check_dir=False), name="yt-avatars")

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
