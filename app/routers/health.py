from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter

from app.reports import utc_timestamp


router = APIRouter()


@router.get("/health")
async def service_health() -> Dict[str, Any]:
    # Never touches DNS or the database
    return {
        "status": "healthy",
        "timestamp": utc_timestamp(),
    }
