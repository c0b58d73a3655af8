import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from crdo.core.constants import API_VERSION
from crdo.core.time_utils import utcnow
from crdo.db import get_db
from crdo.schemas.stats import HealthRead

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthRead)
def health(db: Session = Depends(get_db)):
    db_status = "disconnected"
    response_ms = None
    try:
        started = time.monotonic()
        db.execute(text("SELECT 1"))
        response_ms = round((time.monotonic() - started) * 1000)
        db_status = "connected"
    except SQLAlchemyError as exc:
        logger.error("Database health check failed: %s", exc)

    body = HealthRead(
        status="healthy" if db_status == "connected" else "unhealthy",
        timestamp=utcnow().isoformat(),
        version=API_VERSION,
        database={"status": db_status, "responseTime": response_ms},
    )
    return JSONResponse(
        content=body.model_dump(),
        status_code=200 if body.status == "healthy" else 503,
    )
