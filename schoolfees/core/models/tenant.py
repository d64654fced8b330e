import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, String, Uuid

from schoolfees.db.session import Base


class Tenant(Base):
    """
    School (tenant) in the multi-tenant platform.

    mpesa_shortcode is the paybill/till number the school receives C2B payments on;
    inbound notifications are routed to a tenant by it.
    """

    __tablename__ = "tenants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    mpesa_shortcode = Column(String(20), unique=True, nullable=True, index=True)
    status = Column(String(20), nullable=False, default="ACTIVE")
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
