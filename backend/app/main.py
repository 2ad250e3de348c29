"""
backend/app/main.py

Purpose:
    FastAPI application bootstrap: connection pool lifecycle, middleware and
    router wiring, and the mapping of the batch error taxonomy to HTTP codes.

Dependencies:
    - app.database
    - app.routers.batches
    - app.middleware.logging
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import ConnectionFailure, OperationFailure

from app.config import settings
from app.database import MongoConnectionPool
from app.errors import BatchNotFound, BatchValidationError, StorageUnavailable
from app.middleware.logging import StructuredLoggingMiddleware, setup_logging
from app.routers.batches import router as batches_router

logger = logging.getLogger("matchbatch")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    # Connects lazily on first request; startup never blocks on MongoDB.
    app.state.pool = MongoConnectionPool.from_settings()
    logger.info("Match batch API started (db=%s)", settings.MONGO_DB)

    yield

    await app.state.pool.close()


app = FastAPI(
    title="Match Batch API",
    description="Stores weekly match-result batches and flags repeated patterns",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS.split(","),
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

# Structured logging
app.add_middleware(StructuredLoggingMiddleware)

app.include_router(batches_router)


@app.exception_handler(BatchValidationError)
async def batch_validation_handler(request: Request, exc: BatchValidationError):
    return JSONResponse(status_code=400, content={"detail": exc.message, "error": exc.to_dict()})


@app.exception_handler(BatchNotFound)
async def batch_not_found_handler(request: Request, exc: BatchNotFound):
    return JSONResponse(status_code=404, content={"detail": "Batch not found.", "id": exc.batch_id})


@app.exception_handler(StorageUnavailable)
async def storage_unavailable_handler(request: Request, exc: StorageUnavailable):
    logger.error("Storage unavailable: %s %s (%s)", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Service temporarily unavailable.", "retryable": True},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Return clean validation errors without leaking internal field paths."""
    errors = []
    for err in exc.errors():
        loc = err.get("loc", ())
        # Strip the "body" / "query" prefix for cleaner messages
        field = ".".join(str(l) for l in loc[1:]) if len(loc) > 1 else str(loc[-1]) if loc else "unknown"
        errors.append({"field": field, "message": err.get("msg", "Invalid value.")})
    return JSONResponse(status_code=422, content={"detail": "Validation error.", "errors": errors})


@app.exception_handler(ConnectionFailure)
async def db_connection_handler(request: Request, exc: ConnectionFailure):
    logger.error("Database connection failure: %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=503,
        content={"detail": "Service temporarily unavailable.", "retryable": True},
    )


@app.exception_handler(OperationFailure)
async def db_operation_handler(request: Request, exc: OperationFailure):
    logger.error("Database operation error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "An internal error occurred."})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Catch-all: log the real error, return a safe generic message."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "An internal error occurred."})


@app.get("/health")
async def health(request: Request):
    """Health check -- pings MongoDB, reconnecting once if the client is stale."""
    try:
        await request.app.state.pool.ensure_healthy()
        db_ok = True
    except StorageUnavailable:
        db_ok = False

    return {
        "status": "healthy" if db_ok else "degraded",
        "db": "connected" if db_ok else "disconnected",
    }
