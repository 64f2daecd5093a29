"""
modon/main.py

FastAPI application for the MODON site backend.

create_app() builds the store once and injects it into PropertyService;
routes reach both through app.state. The module-level `app` is what
uvicorn serves (uvicorn modon.main:app).
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from modon.config import (
    CORS_ORIGINS,
    DATABASE_URL,
    IS_DEV,
    IS_PROD,
    LEAD_RATE_LIMIT,
    LEAD_RATE_WINDOW_MINUTES,
    STORAGE_BACKEND,
)
from modon.errors import InternalError, RateLimitedError, ValidationError
from modon.property_service import ErrorSink, PropertyService
from modon.rate_limit import RateLimiter
from modon.schemas_properties import validation_error_body
from modon.seed_data import seed_properties
from modon.store_memory import MemoryLeadStore, MemoryPropertyStore
from modon.stores import PropertyStore
from modon import routes_admin, routes_auth, routes_leads, routes_properties


def build_store() -> PropertyStore:
    """Store selected by STORAGE_BACKEND. The SQL store gets its schema (and dev seed data) here."""
    if STORAGE_BACKEND == "sql":
        from modon.store_sql import SqlPropertyStore

        store = SqlPropertyStore(DATABASE_URL)
        store.init_schema()
        if IS_DEV:
            store.seed_if_empty(seed_properties())
        return store

    print("[STORE] No database configured, serving seeded listings (simulation mode)")
    return MemoryPropertyStore.seeded()


def create_app(
    store: Optional[PropertyStore] = None,
    lead_store: Optional[MemoryLeadStore] = None,
    error_sink: Optional[ErrorSink] = None,
    lead_rate_limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    store = store if store is not None else build_store()
    service = PropertyService(store, error_sink)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # Let in-flight view increments finish before the loop closes
        await service.drain()

    app = FastAPI(title="MODON Backend", version="0.1", lifespan=lifespan)
    app.state.property_store = store
    app.state.property_service = service
    app.state.lead_store = lead_store if lead_store is not None else MemoryLeadStore()
    app.state.lead_rate_limiter = lead_rate_limiter or RateLimiter(
        LEAD_RATE_LIMIT, timedelta(minutes=LEAD_RATE_WINDOW_MINUTES)
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS if IS_PROD else ["*"],  # Restrict origins in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        if IS_DEV:
            print(f"[API] 400 {request.url.path}: {exc.message} {exc.details}")
        return JSONResponse(status_code=400, content=validation_error_body(exc.message, exc.details))

    @app.exception_handler(InternalError)
    async def handle_internal_error(request: Request, exc: InternalError) -> JSONResponse:
        # Details stay in the server log, never in the response
        print(f"[API] 500 {request.url.path}: operation={exc.operation}, cause={exc.__cause__!r}")
        return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})

    @app.exception_handler(RateLimitedError)
    async def handle_rate_limited(request: Request, exc: RateLimitedError) -> JSONResponse:
        print(f"[API] 429 {request.url.path}: retry_after={exc.retry_after}s")
        return JSONResponse(
            status_code=429,
            content={"success": False, "error": exc.message},
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"status": "ok", "storage": STORAGE_BACKEND}

    app.include_router(routes_properties.router)
    app.include_router(routes_auth.router)
    app.include_router(routes_leads.router)
    app.include_router(routes_admin.router)

    return app


app = create_app()
