"""FastAPI dependencies."""
from fastapi import Request

from tos.store.base import RecordStore


def get_store(request: Request) -> RecordStore:
    """The record store injected into create_app()."""
    return request.app.state.store
