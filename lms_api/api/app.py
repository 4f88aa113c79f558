"""FastAPI application instance."""
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lms_api.api.routes import (
    admin_tools,
    attack_simulation_schedules,
    bundle_purchases,
    discounts,
    email_templates,
    scheduled_emails,
)
from lms_api.core.config import settings
from lms_api.core.errors import LMSError
from lms_api.db import models
from lms_api.db.session import engine
from lms_api.queue.scheduler import build_runtime
from lms_api.utils.logger import configure_logging, logger


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - startup hook
    configure_logging()
    # Ensure tables exist for local development. Alembic should manage in production.
    models.Base.metadata.create_all(bind=engine)
    app.state.scheduler = build_runtime()
    if settings.scheduler_enabled:
        app.state.scheduler.start()
    else:
        logger.info("Scheduler disabled; sweeps run only on manual trigger")
    yield
    app.state.scheduler.stop()


app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LMSError)
async def lms_error_handler(request: Request, exc: LMSError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.include_router(scheduled_emails.router)
app.include_router(email_templates.router)
app.include_router(discounts.router)
app.include_router(bundle_purchases.router)
app.include_router(attack_simulation_schedules.router)
app.include_router(admin_tools.router)


@app.get("/health", tags=["system"])
async def health() -> dict[str, str]:
    """Simple uptime check."""

    return {"status": "ok"}
