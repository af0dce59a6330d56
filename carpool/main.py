import logging
import uuid
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from carpool.config import settings
from carpool.logging_setup import TRACE_ID_CTX, setup_logging
from carpool.modules.carpools.router import router as carpools_router
from carpool.services.carpool_store import SqlCarpoolStore, build_store
from carpool.services.carpools import CarpoolService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not hasattr(app.state, "carpool_service"):
        app.state.carpool_service = CarpoolService(build_store())
    logger.info("carpool service started", extra={"store": type(app.state.carpool_service.store).__name__})
    yield


def create_app(service: CarpoolService = None) -> FastAPI:
    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    if service is not None:
        app.state.carpool_service = service

    @app.middleware("http")
    async def add_trace_id(request: Request, call_next):
        trace_id = request.headers.get("x-trace-id") or str(uuid.uuid4())
        TRACE_ID_CTX.set(trace_id)
        response = await call_next(request)
        response.headers["X-Trace-Id"] = trace_id
        return response

    app.include_router(carpools_router, prefix="/carpools")

    @app.get("/")
    async def root():
        return {"app": settings.APP_NAME, "status": "ok"}

    @app.get("/metrics")
    async def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/ready")
    async def ready(request: Request):
        store = request.app.state.carpool_service.store
        if isinstance(store, SqlCarpoolStore):
            try:
                async with store.session_factory() as db:
                    await db.execute(text("SELECT 1"))
            except (SQLAlchemyError, OSError):
                logger.exception("readiness check failed")
                return Response(status_code=503, content="database unavailable")
        return {"status": "ready"}

    return app


# initialize logging and Sentry
setup_logging(settings.LOG_LEVEL)
if settings.SENTRY_DSN:
    sentry_sdk.init(dsn=settings.SENTRY_DSN)

app = create_app()
