"""Main FastAPI application."""
import asyncio
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, WebSocket, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError
import redis.asyncio as redis

from database.connection import DatabaseConnection, get_db, get_redis
from database.repositories.job_repo import JobRepository
from api.routes import jobs_router, report_types_router
from api.websocket import websocket_endpoint, redis_subscriber
from pipeline.report_specs import get_report_specs
from shared.config import settings

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Forwards the worker's progress channel to WebSocket clients
subscriber_task = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect stores, check the default catalogue and start the progress relay."""
    global subscriber_task

    # Unknown variant fails startup instead of every submission
    specs = get_report_specs(settings.pipeline_variant)
    logger.info(f"Default variant {settings.pipeline_variant}: {len(specs)} reports per job")

    await DatabaseConnection.init_mongo()
    await DatabaseConnection.init_redis()

    redis_client = await get_redis()
    subscriber_task = asyncio.create_task(redis_subscriber(redis_client))
    logger.info(f"Relaying progress from channel {settings.redis_progress_channel}")

    yield

    if subscriber_task:
        subscriber_task.cancel()
        try:
            await subscriber_task
        except asyncio.CancelledError:
            pass

    await DatabaseConnection.close_connections()


# Create FastAPI app
app = FastAPI(
    title="Assessment Report Pipeline",
    description="Queue and track multi-report generation for business assessments",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "detail": str(exc)}
    )


# Include routers
app.include_router(jobs_router)
app.include_router(report_types_router)


# WebSocket endpoints
@app.websocket("/ws")
async def websocket_all(websocket: WebSocket):
    """WebSocket endpoint for all job updates."""
    await websocket_endpoint(websocket)


@app.websocket("/ws/jobs/{job_id}")
async def websocket_job(websocket: WebSocket, job_id: str):
    """WebSocket endpoint for specific job updates."""
    await websocket_endpoint(websocket, job_id)


# Health check endpoint
@app.get("/health")
async def health_check(
    db: AsyncIOMotorDatabase = Depends(get_db),
    redis_client: redis.Redis = Depends(get_redis)
):
    """
    Report whether the job store and progress channel are reachable.

    Returns 503 when either is down, with the queue depth per status when
    the job store answers.
    """
    checks = {"mongo": "ok", "redis": "ok"}
    queue = None

    try:
        await db.command("ping")
        queue = await JobRepository(db).count_by_status()
    except PyMongoError as e:
        logger.warning(f"Health check: MongoDB unreachable: {e}")
        checks["mongo"] = "unreachable"

    try:
        await redis_client.ping()
    except redis.RedisError as e:
        logger.warning(f"Health check: Redis unreachable: {e}")
        checks["redis"] = "unreachable"

    healthy = all(value == "ok" for value in checks.values())
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={"status": "healthy" if healthy else "degraded", **checks, "queue": queue}
    )


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Assessment Report Pipeline",
        "version": "1.0.0",
        "variant": settings.pipeline_variant,
        "reports": len(get_report_specs(settings.pipeline_variant)),
        "progress_channel": settings.redis_progress_channel,
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug
    )
