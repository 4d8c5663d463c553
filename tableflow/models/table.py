"""Dining table model

Tables are maintained by floor-plan management; the scheduler only reads them.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, CheckConstraint, Uuid
from sqlalchemy.orm import relationship

from tableflow.database import Base


class DiningTable(Base):
    """A bookable table on the floor plan"""
    __tablename__ = "dining_tables"
    __table_args__ = (
        CheckConstraint("min_capacity <= max_capacity", name="ck_dining_tables_capacity"),
        CheckConstraint("min_capacity >= 1", name="ck_dining_tables_min_capacity"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid(as_uuid=True), ForeignKey("tenants.id"), nullable=False, index=True)

    name = Column(String(50), nullable=False)
    section = Column(String(100))  # patio, main, bar, private
    min_capacity = Column(Integer, nullable=False, default=1)
    max_capacity = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    tenant = relationship("Tenant", back_populates="tables")

    def can_seat(self, party_size: int) -> bool:
        """Check if the table is active and sized for the party"""
        return bool(self.is_active) and self.min_capacity <= party_size <= self.max_capacity
