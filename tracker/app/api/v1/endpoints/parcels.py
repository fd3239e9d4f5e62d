"""
Parcel API Endpoints.

Registration, lookup, status changes, address changes and deletion of
parcels. Address changes and deletion are only allowed while a parcel
is registered; violations surface as 409 responses.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Path, Response
from tracker.app.core.dependencies import get_parcel_service, get_parcel_store
from tracker.app.repositories.parcel_store import ParcelStore
from tracker.app.schemas.parcel import (
    AddressUpdate,
    MAX_KEY,
    MIN_KEY,
    ParcelListResponse,
    ParcelRead,
    ParcelRegister,
    StatusUpdate,
)
from tracker.app.services.parcel_service import ParcelService

router = APIRouter(tags=["Parcels"])


@router.post("/parcels", response_model=ParcelRead, status_code=status.HTTP_201_CREATED)
async def register_parcel(
    parcel_data: ParcelRegister,
    service: ParcelService = Depends(get_parcel_service),
):
    """
    Register a new parcel for a client.

    The parcel starts in the 'registered' status with the current UTC time.
    """
    return await service.register(parcel_data.client, parcel_data.address)


@router.get("/parcels/{number}", response_model=ParcelRead)
async def get_parcel(
    number: int = Path(..., ge=1, le=MAX_KEY, description="Parcel number"),
    store: ParcelStore = Depends(get_parcel_store),
):
    """Get a parcel by number."""
    return await store.get(number)


@router.get("/clients/{client}/parcels", response_model=ParcelListResponse)
async def list_client_parcels(
    client: int = Path(..., ge=MIN_KEY, le=MAX_KEY, description="Client identifier"),
    service: ParcelService = Depends(get_parcel_service),
):
    """List every parcel of a client. Order is not guaranteed."""
    parcels = await service.client_parcels(client)
    return ParcelListResponse(client=client, parcels=parcels, total=len(parcels))


@router.post("/parcels/{number}/next-status", response_model=ParcelRead)
async def advance_parcel_status(
    number: int = Path(..., ge=1, le=MAX_KEY, description="Parcel number"),
    service: ParcelService = Depends(get_parcel_service),
):
    """Move a parcel to the next status of the delivery flow."""
    return await service.next_status(number)


@router.put("/parcels/{number}/status", response_model=ParcelRead)
async def set_parcel_status(
    number: int = Path(..., ge=1, le=MAX_KEY, description="Parcel number"),
    status_data: StatusUpdate = ...,
    store: ParcelStore = Depends(get_parcel_store),
):
    """
    Overwrite the status of a parcel.

    Any status string is accepted, from any current status.
    """
    updated = await store.set_status(number, status_data.status)
    if not updated:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"parcel with number {number} does not exist"
        )
    return await store.get(number)


@router.patch("/parcels/{number}/address", response_model=ParcelRead)
async def change_parcel_address(
    number: int = Path(..., ge=1, le=MAX_KEY, description="Parcel number"),
    address_data: AddressUpdate = ...,
    service: ParcelService = Depends(get_parcel_service),
):
    """Change the delivery address of a registered parcel."""
    return await service.change_address(number, address_data.address)


@router.delete("/parcels/{number}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_parcel(
    number: int = Path(..., ge=1, le=MAX_KEY, description="Parcel number"),
    service: ParcelService = Depends(get_parcel_service),
):
    """Delete a registered parcel. Deletion is permanent."""
    await service.delete(number)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
