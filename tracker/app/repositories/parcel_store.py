"""
Parcel storage gateway.

ParcelStore is the only component that talks SQL about parcels. It maps
rows to ParcelRead records, enforces the status gate on address changes
and deletes, and wraps every database error in a StorageFailureError
that names the operation and key.

The status gate is evaluated inside the mutating statement itself
(``... WHERE number = :n AND status = 'registered'``), so two callers
can never both pass it for the same parcel. When such a statement
touches no row, a follow-up read decides between "does not exist" and
"not registered".
"""

import logging
from typing import Any, List, Optional

from pydantic import ValidationError
from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.app.core.exceptions import (
    ParcelNotFoundError,
    StatusGateViolationError,
    StorageFailureError,
)
from tracker.app.models.parcel import Parcel
from tracker.app.models.parcel_enums import ParcelStatus
from tracker.app.schemas.parcel import ParcelCreate, ParcelRead, status_text

logger = logging.getLogger("tracker")

# Fixed projection shared by point and client lookups
PARCEL_COLUMNS = (
    Parcel.number,
    Parcel.client,
    Parcel.status,
    Parcel.address,
    Parcel.created_at,
)

REGISTERED = ParcelStatus.REGISTERED.value

# Drivers raise OverflowError for keys outside the 64-bit INTEGER range
STORAGE_ERRORS = (SQLAlchemyError, OverflowError)


def _to_record(row) -> ParcelRead:
    return ParcelRead(**row._mapping)


class ParcelStore:
    """
    Data access for the ``parcel`` table.

    Each mutating method commits its own unit of work. On a database
    error the session is rolled back and a StorageFailureError is raised
    from the original exception.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, parcel: ParcelCreate) -> int:
        """Insert a parcel and return the number assigned by the database."""
        stmt = insert(Parcel.__table__).values(
            client=parcel.client,
            status=status_text(parcel.status),
            address=parcel.address,
            created_at=parcel.created_at,
        )
        try:
            result = await self.session.execute(stmt)
            number = result.inserted_primary_key[0]
            await self.session.commit()
        except STORAGE_ERRORS as exc:
            raise await self._storage_failure(exc, "add", parcel.client) from exc

        if number is None:
            raise StorageFailureError("add", parcel.client, reason="no generated number returned")
        return int(number)

    async def get(self, number: int) -> ParcelRead:
        """Fetch one parcel by number."""
        stmt = select(*PARCEL_COLUMNS).where(Parcel.number == number)
        try:
            result = await self.session.execute(stmt)
            row = result.one_or_none()
            parcel = _to_record(row) if row is not None else None
        except STORAGE_ERRORS + (ValidationError,) as exc:
            raise await self._storage_failure(exc, "get", number) from exc

        if parcel is None:
            raise ParcelNotFoundError(number, operation="get")
        return parcel

    async def get_by_client(self, client: int) -> List[ParcelRead]:
        """
        All parcels of a client, in whatever order the database returns them.

        A client without parcels yields an empty list. A failure on any row
        fails the whole call; partial lists are never returned.
        """
        stmt = select(*PARCEL_COLUMNS).where(Parcel.client == client)
        try:
            result = await self.session.execute(stmt)
            return [_to_record(row) for row in result]
        except STORAGE_ERRORS + (ValidationError,) as exc:
            raise await self._storage_failure(exc, "get_by_client", client) from exc

    async def set_status(self, number: int, status: str, expected: Optional[str] = None) -> bool:
        """
        Overwrite the status of a parcel, whatever its current status.

        An unknown number is not an error; the return value tells whether
        a row was updated. With ``expected`` the update only applies while
        the stored status still equals it (compare-and-set).
        """
        stmt = update(Parcel).where(Parcel.number == number)
        if expected is not None:
            stmt = stmt.where(Parcel.status == status_text(expected))
        stmt = (
            stmt
            .values(status=status_text(status))
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except STORAGE_ERRORS as exc:
            raise await self._storage_failure(exc, "set_status", number) from exc
        return result.rowcount > 0

    async def set_address(self, number: int, address: str) -> None:
        """Change the address of a registered parcel."""
        stmt = (
            update(Parcel)
            .where(Parcel.number == number, Parcel.status == REGISTERED)
            .values(address=address)
            .execution_options(synchronize_session=False)
        )
        await self._gated(stmt, number, "set_address")

    async def delete(self, number: int) -> None:
        """Remove a registered parcel for good."""
        stmt = (
            delete(Parcel)
            .where(Parcel.number == number, Parcel.status == REGISTERED)
            .execution_options(synchronize_session=False)
        )
        await self._gated(stmt, number, "delete")

    async def _gated(self, stmt, number: int, operation: str) -> None:
        try:
            result = await self.session.execute(stmt)
            if result.rowcount > 0:
                await self.session.commit()
                return
            await self.session.rollback()
        except STORAGE_ERRORS as exc:
            raise await self._storage_failure(exc, operation, number) from exc

        current = await self._current_status(number, operation)
        if current is None:
            raise ParcelNotFoundError(number, operation=operation)
        raise StatusGateViolationError(number, operation=operation, current_status=current)

    async def _current_status(self, number: int, operation: str) -> Optional[str]:
        try:
            result = await self.session.execute(
                select(Parcel.status).where(Parcel.number == number)
            )
            return result.scalar_one_or_none()
        except STORAGE_ERRORS as exc:
            raise await self._storage_failure(exc, operation, number) from exc

    async def _storage_failure(self, exc: Exception, operation: str, key: Any) -> StorageFailureError:
        await self.session.rollback()
        reason = str(exc).splitlines()[0] if str(exc) else type(exc).__name__
        logger.error(
            "Parcel storage failure",
            extra={"operation": operation, "key": key, "error": type(exc).__name__},
        )
        return StorageFailureError(operation, key, reason=reason)
