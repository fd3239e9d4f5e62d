"""
Parcel Status Enumeration.
"""

import enum
from typing import Optional


class ParcelStatus(str, enum.Enum):
    """
    Known parcel statuses.

    Status flow:
        REGISTERED → SENT → DELIVERED
    Only REGISTERED parcels may change address or be deleted.
    The status column is plain text, so statuses outside this set are
    stored and returned as-is.
    """
    REGISTERED = "registered"
    SENT = "sent"
    DELIVERED = "delivered"

    @classmethod
    def parse(cls, value: str) -> Optional["ParcelStatus"]:
        """Return the known status for ``value``, or None for foreign statuses."""
        try:
            return cls(value)
        except ValueError:
            return None

    def next(self) -> Optional["ParcelStatus"]:
        """Successor in the delivery flow; None once delivered."""
        return _NEXT_STATUS.get(self)


_NEXT_STATUS = {
    ParcelStatus.REGISTERED: ParcelStatus.SENT,
    ParcelStatus.SENT: ParcelStatus.DELIVERED,
}
