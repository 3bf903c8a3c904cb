"""
Payment model. One row per provider transaction.
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime
from app.core.database import Base


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    transaction_id = Column(String(255), nullable=False, unique=True, index=True)  # Idempotency guard
    organization_id = Column(Integer, nullable=False, index=True)  # Provider metadata, recorded even when unknown
    package_id = Column(Integer, nullable=False)  # Provider metadata, recorded even when unknown
    amount = Column(Numeric(10, 2), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=False)
    capacity_applied_at = Column(DateTime(timezone=True), nullable=True)  # NULL until the package limit is applied
