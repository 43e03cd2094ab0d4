"""Health check endpoints for liveness and readiness checks."""
import sqlite3
from typing import Literal

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from convosearch.storage.database import Storage

router = APIRouter(prefix="/health", tags=["health"])


class LivenessResponse(BaseModel):
    """Response model for liveness check.

    Attributes:
        status: Always 'alive' when process is running.
    """

    status: Literal["alive"]


class ReadinessCheck(BaseModel):
    """Individual dependency check result.

    Attributes:
        name: Identifier for the dependency being checked.
        status: Result of the check ('ok' or 'failed').
        message: Error details when status is 'failed'.
    """

    name: str
    status: Literal["ok", "failed"]
    message: str | None = None


class ReadinessResponse(BaseModel):
    """Response model for readiness check.

    Attributes:
        status: Overall readiness ('ready' or 'not_ready').
        checks: List of individual dependency check results.
    """

    status: Literal["ready", "not_ready"]
    checks: list[ReadinessCheck]


def _check_database(storage: Storage | None) -> ReadinessCheck:
    if storage is None:
        return ReadinessCheck(name="db", status="failed", message="Storage not open")
    try:
        storage.ping()
        return ReadinessCheck(name="db", status="ok")
    except (sqlite3.Error, RuntimeError) as e:
        return ReadinessCheck(name="db", status="failed", message=str(e))


def _check_search_index(storage: Storage | None, name: str) -> ReadinessCheck:
    if storage is not None and storage.is_registered(name):
        return ReadinessCheck(name=f"index:{name}", status="ok")
    return ReadinessCheck(
        name=f"index:{name}",
        status="failed",
        message="Search index not registered",
    )


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness check endpoint.

    Returns:
        Liveness status response.
    """
    return LivenessResponse(status="alive")


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> JSONResponse:
    """Readiness check endpoint.

    Returns 200 once the database answers and the search index is
    registered, 503 otherwise.

    Returns:
        Readiness status with individual check results.
    """
    storage: Storage | None = getattr(request.app.state, "storage", None)
    checks = [
        _check_database(storage),
        _check_search_index(storage, request.app.state.settings.extension_name),
    ]
    all_ok = all(c.status == "ok" for c in checks)
    response = ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        checks=checks,
    )
    code = status.HTTP_200_OK if all_ok else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(content=response.model_dump(), status_code=code)
