"""Main entry point for the shot timing backend."""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from shottiming import __version__
from shottiming.api.routes import router
from shottiming.core.config import settings
from shottiming.core.database import close_db, get_database_stats, init_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    # Startup
    logger.info("Shot timing backend starting up...")
    logger.info(f"Sequential deltas: {settings.sequential_deltas}")
    logger.info(
        f"Comparison dead zone: {settings.comparison_dead_zone}s, "
        f"outlier factor: {settings.outlier_factor}"
    )

    await init_db()

    yield

    # Shutdown
    logger.info("Shot timing backend shutting down...")
    await close_db()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Shot Timing",
    description="Golf shot tracking latency analysis API",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    stats = await get_database_stats()

    return {
        "status": "healthy",
        "version": __version__,
        "total_matches": stats["total_matches"],
    }


def main():
    """Run the FastAPI server."""
    logger.info(f"Starting shot timing server on {settings.host}:{settings.port}")
    uvicorn.run(
        "shottiming.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
