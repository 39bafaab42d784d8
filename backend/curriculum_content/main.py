"""FastAPI application entry point."""
from __future__ import annotations
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from curriculum_content.api import auth, content, permissions, units, variants
from curriculum_content.api.errors import content_error_handler
from curriculum_content.core import config
from curriculum_content.core.logging import configure_logging, set_request_id
from curriculum_content.domain.common.errors import ContentError
from curriculum_content.persistence.db import init_db

# ------------------------------------------------------------------
# App creation
# ------------------------------------------------------------------
app = FastAPI(
    title="Curriculum Content API",
    description="Metadata, versioning, publishing workflow and learning-style variants for curriculum content",
    version="1.0.0",
)

# CORS — allow everything for local dev (restrict for production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(ContentError, content_error_handler)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    set_request_id(rid)
    try:
        response = await call_next(request)
    finally:
        set_request_id(None)
    response.headers["X-Request-ID"] = rid
    return response


# ------------------------------------------------------------------
# Startup: logging + DB schema
# ------------------------------------------------------------------
@app.on_event("startup")
def on_startup():
    configure_logging(config.LOG_LEVEL)
    init_db()


# ------------------------------------------------------------------
# Routers
# ------------------------------------------------------------------
app.include_router(auth.router)
app.include_router(content.router)
app.include_router(variants.router)
app.include_router(units.router)
app.include_router(permissions.router)
