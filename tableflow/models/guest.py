"""Guest profile model"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Text, Uuid
from sqlalchemy.orm import relationship

from tableflow.database import Base


class Guest(Base):
    """Returning guest profile, optionally linked from reservations"""
    __tablename__ = "guests"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid(as_uuid=True), ForeignKey("tenants.id"), nullable=False, index=True)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100))
    email = Column(String(255))
    phone = Column(String(20))
    notes = Column(Text)
    is_vip = Column(Boolean, default=False)

    # Visit tracking
    total_visits = Column(Integer, default=0, nullable=False)
    last_visit_at = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    tenant = relationship("Tenant", back_populates="guests")
