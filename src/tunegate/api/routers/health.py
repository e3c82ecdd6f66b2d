"""Health check endpoints for container probes."""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError

from tunegate.api.schemas import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter()


class ReadinessStatus(BaseModel):
    """Readiness probe response."""

    status: str = Field(description="ready or not_ready")
    timestamp: str = Field(description="ISO timestamp")
    database: bool = Field(description="Credential store reachable")


# Liveness only: no dependency checks, the process answering is the signal.
@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return {"status": "ok", "timestamp": ...}."""
    return HealthResponse(status="ok", timestamp=datetime.now(UTC).isoformat())


@router.get("/ready", response_model=ReadinessStatus)
async def readiness_probe(request: Request) -> JSONResponse:
    """Return 200 when the credential store answers, 503 otherwise."""
    db_ok = False
    db = getattr(request.app.state, "db", None)
    if db is not None:
        try:
            await db.ping()
            db_ok = True
        except SQLAlchemyError as e:
            logger.warning("Readiness check failed: %s", e)

    response = ReadinessStatus(
        status="ready" if db_ok else "not_ready",
        timestamp=datetime.now(UTC).isoformat(),
        database=db_ok,
    )
    status_code = status.HTTP_200_OK if db_ok else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(content=response.model_dump(), status_code=status_code)
