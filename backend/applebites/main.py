"""
main.py — FastAPI Application Entrypoint

Purpose:
- Initialize application services (logging, config, DB tables).
- Register API routers.
- Define root-level health/status endpoints.
- Provide `app` object used by ASGI server (uvicorn).

This file should stay clean — no business logic here.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from applebites.api import assessments, reference, valuation
from applebites.core.config import settings
from applebites.core.database import init_db
from applebites.core.logging import configure_logging, get_logger

# -----------------------------------------------------------------------------
# App Initialization
# -----------------------------------------------------------------------------

configure_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI):
    init_db()
    logger.info("Database tables ready")
    yield


app = FastAPI(
    title="AppleBites Valuation Backend",
    description="Business valuation assessments for AppleBites",
    version="0.1.0",
    lifespan=lifespan,
)

# -----------------------------------------------------------------------------
# CORS (the web client is served from a different origin in development)
# -----------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"Request failed: {request.method} {request.url.path} Error: {str(e)}")
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})
    process_time = time.time() - start_time
    logger.info(
        f"{request.method} {request.url.path} "
        f"Status: {response.status_code} Time: {process_time:.4f}s"
    )
    return response


# -----------------------------------------------------------------------------
# Router Registration
# -----------------------------------------------------------------------------

app.include_router(assessments.router, prefix="/api")
app.include_router(valuation.router, prefix="/api")
app.include_router(reference.router, prefix="/api")

# -----------------------------------------------------------------------------
# Health Check
# -----------------------------------------------------------------------------

@app.get("/")
def root():
    return {"status": "ok", "message": "AppleBites backend running"}
