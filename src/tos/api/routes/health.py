"""Liveness and store connectivity."""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from tos.config import APP_VERSION
from tos.api.deps import get_store
from tos.store.base import RecordStore

router = APIRouter()


@router.get("/health")
def health(store: RecordStore = Depends(get_store)):
    """Always 200 while the process is up; database.connected reports the store."""
    return {
        "success": True,
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": {"connected": store.ping()},
        "version": APP_VERSION,
    }


@router.get("/")
def root():
    return {
        "success": True,
        "message": "TOS Pile Status Management API",
        "version": APP_VERSION,
        "endpoints": {
            "health": "/health",
            "tos": "/tos",
            "search": "/tos/search",
            "contractors": "/tos/contractors",
            "statuses": "/tos/statuses",
        },
    }
