"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from app.config import settings
from app.database import database, ensure_indexes
from app.logging_config import setup_logging
from app.routers import auth, categories, clients, export, reports, tasks, time_logs, users

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events."""
    # Startup
    setup_logging()
    await database.connect()
    await ensure_indexes(database.db)
    yield
    # Shutdown
    await database.disconnect()


app = FastAPI(
    title="Time Tracker API",
    description="Task management and time tracking with billing reports",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(clients.router)
app.include_router(categories.router)
app.include_router(tasks.router)
app.include_router(time_logs.router)
app.include_router(reports.router)
app.include_router(export.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {"status": "ok", "message": "Time Tracker API"}


@app.get("/health")
async def health():
    """Health check endpoint; pings the database."""
    body = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "database": "connected",
    }
    try:
        await database.ping()
    except (PyMongoError, RuntimeError) as e:
        logger.error("Database health check failed: %s", e)
        body.update(status="error", database="disconnected")
        return JSONResponse(status_code=503, content=body)
    return body
