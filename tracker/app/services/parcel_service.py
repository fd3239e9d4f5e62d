"""
Parcel lifecycle service.

Registers parcels, moves them along the delivery flow and applies
address changes and deletions through ParcelStore.
"""

import logging
from datetime import datetime, timezone
from typing import List

from tracker.app.core.exceptions import ParcelNotFoundError, StatusConflictError
from tracker.app.models.parcel_enums import ParcelStatus
from tracker.app.repositories.parcel_store import ParcelStore
from tracker.app.schemas.parcel import ParcelCreate, ParcelRead

logger = logging.getLogger("tracker")


def utc_timestamp() -> str:
    """Current UTC time as an RFC3339 string with second precision."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class ParcelService:
    """Parcel lifecycle operations on top of a ParcelStore."""

    def __init__(self, store: ParcelStore):
        self.store = store

    async def register(self, client: int, address: str) -> ParcelRead:
        """Create a parcel in the registered status."""
        parcel = ParcelCreate(
            client=client,
            status=ParcelStatus.REGISTERED,
            address=address,
            created_at=utc_timestamp(),
        )
        number = await self.store.add(parcel)
        logger.info("Parcel registered", extra={"number": number, "client": client})
        return ParcelRead(number=number, **parcel.model_dump())

    async def client_parcels(self, client: int) -> List[ParcelRead]:
        return await self.store.get_by_client(client)

    async def next_status(self, number: int) -> ParcelRead:
        """
        Advance a parcel one step: registered -> sent -> delivered.

        Delivered parcels and parcels with a status outside the known
        flow are returned unchanged. The new status is only written while
        the stored status is still the one that was read.
        """
        parcel = await self.store.get(number)
        current = ParcelStatus.parse(parcel.status)
        following = current.next() if current else None
        if following is None:
            logger.info("Parcel has no next status", extra={"number": number, "status": parcel.status})
            return parcel

        updated = await self.store.set_status(number, following, expected=parcel.status)
        if not updated:
            try:
                latest = await self.store.get(number)
            except ParcelNotFoundError as exc:
                raise ParcelNotFoundError(number, operation="next_status") from exc
            raise StatusConflictError(
                number,
                operation="next_status",
                expected_status=parcel.status,
                current_status=latest.status,
            )

        logger.info(
            "Parcel status changed",
            extra={"number": number, "from_status": parcel.status, "to_status": following.value},
        )
        return parcel.model_copy(update={"status": following.value})

    async def change_address(self, number: int, address: str) -> ParcelRead:
        await self.store.set_address(number, address)
        logger.info("Parcel address changed", extra={"number": number})
        return await self.store.get(number)

    async def delete(self, number: int) -> None:
        await self.store.delete(number)
        logger.info("Parcel deleted", extra={"number": number})
