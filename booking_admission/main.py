from __future__ import annotations

import logging
from collections import defaultdict
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from booking_admission.api.router import api_router
from booking_admission.core.config import get_settings
from booking_admission.core.exceptions import ConfigurationError, LockTimeout
from booking_admission.core.logging import add_audit_middleware, configure_logging
from booking_admission.db.session import SessionLocal
from booking_admission.repositories.sql import SqlReservationRepository
from booking_admission.services.conflict_index import ConflictIndex
from booking_admission.services.locks import ResourceLocks

logger = logging.getLogger(__name__)


def warm_conflict_index(index: ConflictIndex) -> int:
    db = SessionLocal()
    try:
        by_resource = defaultdict(list)
        for r in SqlReservationRepository(db).all_active():
            by_resource[r.resource_id].append(r)
        return sum(index.warm(resource_id, items) for resource_id, items in by_resource.items())
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if settings.warm_index_on_startup:
        loaded = warm_conflict_index(app.state.conflict_index)
        logger.info("conflict index warmed | reservations=%s", loaded)
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.conflict_index = ConflictIndex()
    app.state.resource_locks = ResourceLocks()

    add_audit_middleware(app)
    app.include_router(api_router, prefix=settings.api_prefix)

    @app.exception_handler(ConfigurationError)
    async def configuration_error(request: Request, exc: ConfigurationError):
        return JSONResponse(status_code=500, content={"detail": exc.message, "kind": exc.kind})

    @app.exception_handler(LockTimeout)
    async def lock_timeout(request: Request, exc: LockTimeout):
        return JSONResponse(status_code=503, content={"detail": exc.message, "kind": exc.kind})

    @app.get("/health")
    def health():
        return {"ok": True}

    return app


app = create_app()
