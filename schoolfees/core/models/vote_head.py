"""Vote heads: fee accounting buckets (Tuition, R&MI, Activity). Tenant-scoped."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import relationship

from schoolfees.db.session import Base


class VoteHead(Base):
    """
    Fee category with a payment priority. Lower priority number is cleared first.
    Priorities need not be unique; ties are ordered by id. Soft delete via is_active.
    """

    __tablename__ = "vote_heads"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    priority = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant")
