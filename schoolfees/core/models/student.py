import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from schoolfees.db.session import Base


class Student(Base):
    """
    Student within a school. enrollment_number is the admission number parents quote
    as the M-PESA account reference. class_id is null until the student is placed in a class.
    """

    __tablename__ = "students"
    __table_args__ = (
        UniqueConstraint("tenant_id", "enrollment_number", name="uq_student_tenant_enrollment"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    enrollment_number = Column(String(50), nullable=False, index=True)
    class_id = Column(Uuid, ForeignKey("classes.id", ondelete="SET NULL"), nullable=True)
    status = Column(String(20), nullable=False, default="ACTIVE")
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant")
    school_class = relationship("SchoolClass", foreign_keys=[class_id])
