"""Tenant (restaurant) model"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Uuid
from sqlalchemy.orm import relationship

from tableflow.database import Base


class Tenant(Base):
    """Restaurant tenant"""
    __tablename__ = "tenants"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    timezone = Column(String(50), default="America/New_York")
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    tables = relationship("DiningTable", back_populates="tenant")
    guests = relationship("Guest", back_populates="tenant")
    reservations = relationship("Reservation", back_populates="tenant")
    users = relationship("User", back_populates="tenant")
