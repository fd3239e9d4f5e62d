"""
ParcelService tests.

Registration timestamps and the registered -> sent -> delivered flow.
"""

from datetime import datetime

import pytest

from tracker.app.core.exceptions import (
    ParcelNotFoundError,
    StatusConflictError,
    StatusGateViolationError,
)
from tracker.app.models.parcel_enums import ParcelStatus
from tracker.app.services.parcel_service import ParcelService, utc_timestamp


@pytest.fixture
def service(store):
    return ParcelService(store)


def test_utc_timestamp_is_rfc3339():
    stamp = utc_timestamp()
    assert stamp.endswith("Z")
    assert datetime.strptime(stamp, "%Y-%m-%dT%H:%M:%SZ")


def test_status_flow():
    assert ParcelStatus.REGISTERED.next() is ParcelStatus.SENT
    assert ParcelStatus.SENT.next() is ParcelStatus.DELIVERED
    assert ParcelStatus.DELIVERED.next() is None
    assert ParcelStatus.parse("sent") is ParcelStatus.SENT
    assert ParcelStatus.parse("Delivered") is None


@pytest.mark.asyncio
async def test_register(service, store):
    parcel = await service.register(42, "Main St 1")

    assert parcel.status == "registered"
    assert parcel.client == 42
    assert await store.get(parcel.number) == parcel


@pytest.mark.asyncio
async def test_next_status_walks_the_flow(service, store):
    parcel = await service.register(42, "Main St 1")

    sent = await service.next_status(parcel.number)
    assert sent.status == "sent"

    delivered = await service.next_status(parcel.number)
    assert delivered.status == "delivered"

    # Delivered is final
    unchanged = await service.next_status(parcel.number)
    assert unchanged.status == "delivered"
    assert (await store.get(parcel.number)).status == "delivered"


@pytest.mark.asyncio
async def test_next_status_leaves_foreign_status(service, store, make_parcel):
    number = await store.add(make_parcel(status="lost"))

    parcel = await service.next_status(number)
    assert parcel.status == "lost"


@pytest.mark.asyncio
async def test_next_status_missing_parcel(service):
    with pytest.raises(ParcelNotFoundError):
        await service.next_status(999)


@pytest.mark.asyncio
async def test_change_address_only_while_registered(service):
    parcel = await service.register(7, "Old Road 2")

    moved = await service.change_address(parcel.number, "New Road 3")
    assert moved.address == "New Road 3"

    await service.next_status(parcel.number)
    with pytest.raises(StatusGateViolationError):
        await service.change_address(parcel.number, "Too Late 4")


@pytest.mark.asyncio
async def test_delete_and_client_parcels(service, random_client):
    kept = await service.register(random_client, "Keep Ave 1")
    dropped = await service.register(random_client, "Drop Ave 2")

    await service.delete(dropped.number)

    assert await service.client_parcels(random_client) == [kept]


def read_then(store, mocker, action):
    """Make the next store.get run ``action`` right after reading the parcel."""
    real_get = store.get
    pending = [action]

    async def get(number):
        parcel = await real_get(number)
        if pending:
            await pending.pop()(number)
        return parcel

    mocker.patch.object(store, "get", side_effect=get)


@pytest.mark.asyncio
async def test_next_status_on_parcel_deleted_after_read(service, store, mocker):
    parcel = await service.register(42, "Main St 1")
    read_then(store, mocker, store.delete)

    with pytest.raises(ParcelNotFoundError) as exc_info:
        await service.next_status(parcel.number)

    assert exc_info.value.operation == "next_status"
    assert await store.get_by_client(42) == []


@pytest.mark.asyncio
async def test_next_status_does_not_overwrite_concurrent_change(service, store, mocker):
    parcel = await service.register(42, "Main St 1")

    async def mark_lost(number):
        await store.set_status(number, "lost")

    read_then(store, mocker, mark_lost)

    with pytest.raises(StatusConflictError) as exc_info:
        await service.next_status(parcel.number)

    assert exc_info.value.details == {
        "operation": "next_status",
        "key": parcel.number,
        "expected_status": "registered",
        "status": "lost",
    }
    assert (await store.get_by_client(42))[0].status == "lost"
