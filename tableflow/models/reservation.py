"""Reservation and reservation history models"""

import enum
import uuid
from datetime import datetime
from sqlalchemy import (
    Column,
    String,
    Integer,
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    JSON,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship

from tableflow.database import Base


class ReservationStatus(str, enum.Enum):
    """Reservation lifecycle states"""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    WAITLIST = "WAITLIST"
    SEATED = "SEATED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"
    REMINDED = "REMINDED"


class ReservationSource(str, enum.Enum):
    """Channel the booking came in through"""
    WALK_IN = "WALK_IN"
    ONLINE = "ONLINE"
    PHONE = "PHONE"


class HistoryAction(str, enum.Enum):
    """Kinds of entries in the reservation audit trail"""
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    STATUS_CHANGED = "STATUS_CHANGED"
    RESCHEDULED = "RESCHEDULED"
    TABLE_CHANGED = "TABLE_CHANGED"


class Reservation(Base):
    """Time-bound table reservation"""
    __tablename__ = "reservations"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid(as_uuid=True), ForeignKey("tenants.id"), nullable=False, index=True)
    table_id = Column(Uuid(as_uuid=True), ForeignKey("dining_tables.id"), index=True)
    guest_id = Column(Uuid(as_uuid=True), ForeignKey("guests.id"))

    # Guest information
    guest_name = Column(String(255), nullable=False)
    guest_email = Column(String(255))
    guest_phone = Column(String(20))

    # Booking window (restaurant-local, timezone-naive)
    party_size = Column(Integer, nullable=False)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    duration = Column(Integer, nullable=False, default=90)  # minutes

    # Status
    status = Column(Enum(ReservationStatus), nullable=False, default=ReservationStatus.PENDING)
    source = Column(Enum(ReservationSource), nullable=False, default=ReservationSource.WALK_IN)
    confirmation_code = Column(String(8), unique=True, nullable=False)

    # Guest requests
    special_requests = Column(Text)
    dietary_notes = Column(Text)
    celebration_note = Column(Text)
    internal_notes = Column(Text)
    is_vip = Column(Boolean, default=False)

    # Lifecycle timestamps
    confirmed_at = Column(DateTime)
    confirmed_by = Column(Uuid(as_uuid=True))
    seated_at = Column(DateTime)
    completed_at = Column(DateTime)
    cancelled_at = Column(DateTime)
    cancel_reason = Column(Text)
    no_show_at = Column(DateTime)

    # Set by the retention sweep
    is_archived = Column(Boolean, default=False, nullable=False)

    # Metadata
    created_by = Column(Uuid(as_uuid=True))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    tenant = relationship("Tenant", back_populates="reservations")


class ReservationHistory(Base):
    """Append-only audit trail of reservation changes.

    ``reservation_id`` carries no foreign key, so rows survive deletion of
    the reservation they describe.
    """
    __tablename__ = "reservation_history"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    reservation_id = Column(Uuid(as_uuid=True), nullable=False, index=True)

    action = Column(Enum(HistoryAction), nullable=False)
    previous_value = Column(JSON)
    new_value = Column(JSON)

    changed_by = Column(Uuid(as_uuid=True))  # User ID or null for guest/system
    notes = Column(Text)
    changed_at = Column(DateTime, default=datetime.utcnow, nullable=False)
