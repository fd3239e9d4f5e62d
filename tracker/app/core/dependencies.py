"""
Dependencies for FastAPI.

Wires the request-scoped database session into the parcel store and service.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from tracker.app.db.session import get_db
from tracker.app.repositories.parcel_store import ParcelStore
from tracker.app.services.parcel_service import ParcelService


def get_parcel_store(db: AsyncSession = Depends(get_db)) -> ParcelStore:
    """ParcelStore bound to the request's session."""
    return ParcelStore(db)


def get_parcel_service(store: ParcelStore = Depends(get_parcel_store)) -> ParcelService:
    """ParcelService over the request's store."""
    return ParcelService(store)
