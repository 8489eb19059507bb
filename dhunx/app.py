# app.py
import logging
import random
from datetime import datetime
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dhunx.core.config import Settings, settings as default_settings
from dhunx.core.ytmusic_client import YTMusicCatalog
from dhunx.history.collector import HistoryCollector, build_collector
from dhunx.history.tracker import TrackerRegistry
from dhunx.models.schemas import HealthResponse
from dhunx.routes import history, recommend, search
from dhunx.store.client import KeyValueStore, connect_store

log = logging.getLogger(__name__)

def create_app(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStore] = None,
    catalog: Optional[YTMusicCatalog] = None,
    collector: Optional[HistoryCollector] = None,
    clock: Callable[[], datetime] = datetime.now,
    rng: Optional[random.Random] = None
) -> FastAPI:
    """Build the API. Collaborators left as None are created on startup."""
    settings = settings or default_settings
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    app = FastAPI(title=settings.app_name, version=settings.app_version)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(search.router)
    app.include_router(history.router)
    app.include_router(recommend.router)

    app.state.settings = settings
    app.state.rng = rng or random.Random()
    app.state.clock = clock

    @app.on_event("startup")
    async def startup_event():
        owned = []

        app.state.store = store
        if app.state.store is None:
            app.state.store = await connect_store(settings)
            owned.append(app.state.store)

        app.state.catalog = catalog
        if app.state.catalog is None:
            app.state.catalog = YTMusicCatalog(settings)
            app.state.catalog.init()

        app.state.collector = collector
        if app.state.collector is None:
            app.state.collector = build_collector(settings, app.state.store)
            owned.append(app.state.collector)

        app.state.registry = TrackerRegistry(
            app.state.store,
            app.state.collector,
            settings,
            clock=app.state.clock
        )
        app.state.owned = owned
        log.info(f"{settings.app_name} started (store: {app.state.store.backend})")

    @app.on_event("shutdown")
    async def shutdown_event():
        # Pending syncs go out before the collector closes
        await app.state.registry.close()
        for resource in reversed(app.state.owned):
            await resource.close()

    @app.get("/")
    async def root():
        return {
            "message": settings.app_name,
            "status": "running",
            "ytmusic_ready": app.state.catalog.ready,
        }

    @app.get("/health", response_model=HealthResponse)
    async def health():
        ready = app.state.catalog.ready
        return HealthResponse(
            status="healthy" if ready else "degraded",
            ytmusic_ready=ready,
            store_backend=app.state.store.backend,
            version=settings.app_version
        )

    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
