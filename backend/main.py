"""
Bitcoin Price Gauge API
FastAPI app factory: loads the bootstrap history at startup and mounts the
gauge and export routers under /api.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api.gauge import router as gauge_router
from api.export import router as export_router
from config import Settings
from core import IngestionEngine
from services import AnalysisService, PriceFeedService
from store import HistoryStore


logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(
    settings: Optional[Settings] = None,
    feed: Optional[PriceFeedService] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()

    engine = IngestionEngine()
    store = HistoryStore(settings.data_dir)
    feed = feed or PriceFeedService(settings)
    analysis = AnalysisService(engine, feed, store, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        result = engine.load_bootstrap(settings.bootstrap_path)
        logger.info(
            "Startup complete",
            extra={"bootstrap_samples": result.count, "precomputed": store.stats()},
        )
        yield

    app = FastAPI(
        title="Bitcoin Price Gauge API",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.store = store
    app.state.feed = feed
    app.state.analysis = analysis

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(gauge_router, prefix="/api")
    app.include_router(export_router, prefix="/api")

    @app.get("/")
    async def root():
        return {
            "name": "Bitcoin Price Gauge API",
            "version": "1.0.0",
            "docs": "/docs",
        }

    @app.get("/health")
    async def health(request: Request):
        engine_stats = request.app.state.engine.stats()
        return {
            "status": "healthy",
            "engine": {
                "samples_ingested": engine_stats["samples_ingested"],
                "bootstrap_samples": engine_stats["bootstrap_samples"],
                "latest_sample": engine_stats["latest_sample"],
                "aggregator": engine_stats["aggregator"],
                "uptime_seconds": round(engine_stats["uptime_seconds"], 2),
            },
            "price_feed": request.app.state.feed.stats.to_dict(),
            "precomputed": request.app.state.store.stats(),
        }

    return app


configure_logging()
app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=app.state.settings.host, port=app.state.settings.port, reload=True)
