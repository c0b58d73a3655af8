import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from crdo.api.runs import router as runs_router
from crdo.api.stats import router as stats_router
from crdo.api.friends import router as friends_router
from crdo.api.health import router as health_router
from crdo.core.config import settings
from crdo.core.exceptions import CrdoError
from crdo.core.logging import setup_logging
from crdo.db import Base, engine
from crdo.services.engine_config import get_engine_config
from crdo.models import achievement, friend, run, streak, user  # noqa: F401  (import ensures tables are registered)

setup_logging(settings)
# A bad achievement catalog fails startup, not the first request
get_engine_config()
logger = logging.getLogger(__name__)

app = FastAPI(title="CRDO API")

# Mobile and web clients call from any origin
origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

# Create DB tables on startup
Base.metadata.create_all(bind=engine)

app.include_router(runs_router)
app.include_router(stats_router)
app.include_router(friends_router)
app.include_router(health_router)


@app.exception_handler(CrdoError)
async def handle_crdo_error(request: Request, exc: CrdoError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError):
    fields = ", ".join(".".join(str(p) for p in e["loc"] if p != "body") for e in exc.errors())
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": fields, "code": "VALIDATION_ERROR"},
    )


@app.exception_handler(Exception)
async def handle_unexpected(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "code": "INTERNAL_ERROR"},
    )


@app.get("/")
def root():
    return {"message": "CRDO backend is running"}
