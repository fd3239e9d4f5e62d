"""
Parcel database model.

One row per tracked shipment. Address changes and deletion are gated
on the status column (see ParcelStore).
"""

from sqlalchemy import Column, Integer, String
from tracker.app.db.session import Base
from tracker.app.models.parcel_enums import ParcelStatus


class Parcel(Base):
    """
    Parcel model for the tracker.

    ``number`` is generated by the database and never reused
    (AUTOINCREMENT on SQLite). ``created_at`` is an RFC3339 string
    written once on insert.
    """
    __tablename__ = "parcel"
    __table_args__ = {"sqlite_autoincrement": True}

    number = Column(Integer, primary_key=True, autoincrement=True)

    # Ownership - opaque client identifier, not a foreign key
    client = Column(Integer, nullable=False, index=True)

    # Status is stored as text so foreign statuses survive round trips
    status = Column(String, nullable=False, default=ParcelStatus.REGISTERED.value)
    address = Column(String, nullable=False)

    # Timestamps
    created_at = Column(String, nullable=False)

    def __repr__(self):
        return f"<Parcel(number={self.number}, client={self.client}, status='{self.status}')>"
