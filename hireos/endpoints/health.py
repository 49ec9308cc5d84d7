"""Liveness and readiness probes."""

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hireos.config.database import get_db
from hireos.config.settings import settings
from hireos.services.encryption import EncryptionKeyError, validate_encryption_key

logger = structlog.get_logger()
router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str
    database: str
    encryption: str


def database_status(db: Session) -> str:
    try:
        db.execute(text("SELECT 1")).scalar()
    except SQLAlchemyError as e:
        logger.error("Database probe failed", error=str(e))
        return "unreachable"
    return "ok"


def encryption_status() -> str:
    try:
        validate_encryption_key()
    except EncryptionKeyError as e:
        logger.error("Encryption probe failed", error=str(e))
        return "misconfigured"
    return "ok"


@router.get("", response_model=HealthResponse)
async def readiness(db: Session = Depends(get_db)):
    """Ready when the database answers and stored credentials can be decrypted. 503 otherwise."""
    report = HealthResponse(
        status="ok",
        version=settings.APP_VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
        database=database_status(db),
        encryption=encryption_status(),
    )
    if report.database != "ok" or report.encryption != "ok":
        report.status = "degraded"
        return JSONResponse(status_code=503, content=report.model_dump())
    return report


@router.get("/live")
async def liveness() -> dict:
    return {"alive": True}
