"""
Momentum API - Main Application
Goal/task/habit tracking with statistical and narrative insights.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from momentum.api import analytics, habits, progress
from momentum.config import settings
from momentum.db import create_db_and_tables, verify_database_connection
from momentum.models import utcnow

logger = logging.getLogger("momentum")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.log_level)

    if settings.env != "prod":
        await create_db_and_tables()
        logger.info("database_initialized", extra={"env": settings.env})

    if not settings.openai_api_key:
        logger.warning("narrative_insights_disabled", extra={"reason": "no_openai_api_key"})

    yield

    logger.info("momentum_shutdown")


app = FastAPI(
    title="Momentum",
    description="Goal, task and habit tracking with a personal insight engine.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def read_root():
    return {
        "message": "Momentum insight engine is running",
        "docs": "/docs",
        "version": "1.0.0",
        "features": {
            "statistical_insights": True,
            "narrative_insights": bool(settings.openai_api_key),
        },
    }


@app.get("/health")
async def health_check():
    database = await verify_database_connection()
    return {
        "status": "ok" if database else "degraded",
        "database": database,
        "timestamp": utcnow().isoformat(),
    }


app.include_router(analytics.router, prefix="/api")
app.include_router(habits.router, prefix="/api")
app.include_router(progress.router, prefix="/api")
