# aiready/main.py
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

from aiready import __version__
from aiready.core import config
from aiready.core.errors import register_exception_handlers
from aiready.core.logging import configure_logging
from aiready.db.session import engine
from aiready.middleware.request_logging import RequestLoggingMiddleware
from aiready.worker.scheduler import make_scheduler

# ---------------------------
# MODELS (registers every table on Base.metadata)
# ---------------------------
from aiready.models import Base

# ---------------------------
# ROUTERS
# ---------------------------
from aiready.api import health
from aiready.api.v1 import (
    analysis,
    auth,
    compliance,
    documents,
    expert_reviews,
    feedback,
    risk_assessments,
    risk_management,
    systems,
    training,
)

configure_logging()
log = logging.getLogger("aiready")

# ---------------------------
# CREATE TABLES (dev-only; guard with env)
# ---------------------------
if config.ENABLE_CREATE_ALL:
    Base.metadata.create_all(bind=engine)

# ---------------------------
# APP
# ---------------------------
app = FastAPI(title="AI Ready", version=__version__)
app.add_middleware(RequestLoggingMiddleware)
register_exception_handlers(app)

# ---------------------------
# ROUTER MOUNT
# ---------------------------
app.include_router(auth.router, prefix="/api/v1", tags=["auth"])
app.include_router(systems.router, prefix="/api/v1", tags=["systems"])
app.include_router(risk_assessments.router, prefix="/api/v1", tags=["risk_assessments"])
app.include_router(analysis.router, prefix="/api/v1", tags=["analysis"])
app.include_router(documents.router, prefix="/api/v1", tags=["documents"])
app.include_router(training.router, prefix="/api/v1", tags=["training"])
app.include_router(feedback.router, prefix="/api/v1", tags=["feedback"])
app.include_router(compliance.router, prefix="/api/v1", tags=["compliance"])
app.include_router(expert_reviews.router, prefix="/api/v1", tags=["expert_reviews"])
app.include_router(risk_management.router, prefix="/api/v1", tags=["risk_management"])
app.include_router(health.router, prefix="/api", tags=["health"])


# ---------------------------
# Scheduler (daily monitoring)
# ---------------------------
@app.on_event("startup")
def _start_scheduler():
    app.state.scheduler = None
    if not config.ENABLE_SCHEDULER:
        return
    try:
        app.state.scheduler = make_scheduler()
        app.state.scheduler.start()
        log.info("scheduler started (%s)", config.APP_TIMEZONE)
    except Exception:
        # the API keeps serving without the daily job
        log.exception("scheduler failed to start")
        app.state.scheduler = None


@app.on_event("shutdown")
def _stop_scheduler():
    sched = getattr(app.state, "scheduler", None)
    if sched:
        sched.shutdown(wait=False)


# ---------------------------
# OpenAPI (dedupe operationId)
# ---------------------------
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title="AI Ready",
        version=__version__,
        description="EU AI Act readiness API",
        routes=app.routes,
    )

    openapi_schema.setdefault("components", {}).setdefault("securitySchemes", {})
    openapi_schema["components"]["securitySchemes"]["OAuth2PasswordBearer"] = {
        "type": "oauth2",
        "flows": {"password": {"tokenUrl": "/api/v1/login", "scopes": {}}},
    }

    seen = {}
    for path, methods in openapi_schema.get("paths", {}).items():
        for method, operation in methods.items():
            m = method.lower()
            if m not in {"get", "post", "put", "patch", "delete", "options", "head"}:
                continue
            op_id = operation.get("operationId")
            if not op_id:
                continue
            if op_id in seen:
                tag = (operation.get("tags") or [""])[0]
                safe_tag = "".join(
                    c for c in tag.lower().replace(" ", "_") if c.isalnum() or c in {"_", "-"}
                )
                path_suffix = "".join(
                    ch for ch in path.replace("/", "_") if ch.isalnum() or ch in {"_", "-"}
                )
                new_id = f"{op_id}_{safe_tag}_{m}_{path_suffix}"
                n = 2
                while new_id in seen:
                    new_id = f"{op_id}_{safe_tag}_{m}_{path_suffix}_{n}"
                    n += 1
                operation["operationId"] = new_id
                seen[new_id] = (path, method)
            else:
                seen[op_id] = (path, method)

    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi
