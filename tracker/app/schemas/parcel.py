"""
Parcel Pydantic schemas.

Defines the records exchanged with ParcelStore and the request and
response models of the parcel API.
"""

from pydantic import BaseModel, Field, field_validator
from typing import List
from tracker.app.models.parcel_enums import ParcelStatus

# Keys must fit a signed 64-bit INTEGER column
MAX_KEY = 2**63 - 1
MIN_KEY = -(2**63)


def status_text(value) -> str:
    """Plain text form of a status, whether enum member or foreign string."""
    if isinstance(value, ParcelStatus):
        return value.value
    return value


class ParcelCreate(BaseModel):
    """Fields supplied when adding a parcel; the number is assigned by storage."""
    client: int
    status: str = ParcelStatus.REGISTERED.value
    address: str
    created_at: str

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        return status_text(value)


class ParcelRead(BaseModel):
    """A stored parcel."""
    number: int
    client: int
    status: str
    address: str
    created_at: str

    class Config:
        from_attributes = True

    @property
    def is_registered(self) -> bool:
        return self.status == ParcelStatus.REGISTERED.value


class ParcelRegister(BaseModel):
    """Schema for registering a new parcel."""
    client: int = Field(..., ge=MIN_KEY, le=MAX_KEY, description="Client identifier")
    address: str = Field(..., min_length=1, description="Delivery address")


class AddressUpdate(BaseModel):
    """Schema for changing the delivery address."""
    address: str = Field(..., min_length=1)


class StatusUpdate(BaseModel):
    """Schema for overwriting the status. Any string is accepted."""
    status: str = Field(..., min_length=1)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        return status_text(value)


class ParcelListResponse(BaseModel):
    """Schema for the parcels of one client."""
    client: int
    parcels: List[ParcelRead]
    total: int
