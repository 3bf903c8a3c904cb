"""
Asset request model.
"""
import enum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.sql import func
from app.core.database import Base


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    RETURNED = "returned"


class AssetRequest(Base):
    __tablename__ = "asset_requests"

    id = Column(Integer, primary_key=True, index=True)
    asset_id = Column(Integer, ForeignKey('assets.id', ondelete='SET NULL'), nullable=True, index=True)
    asset_name = Column(String(255), nullable=False)  # Snapshot at submission
    asset_type = Column(String(20), nullable=False)  # Snapshot at submission
    requester_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    organization_id = Column(Integer, ForeignKey('organizations.id'), nullable=True, index=True)  # NULL until the requester is affiliated
    status = Column(String(20), nullable=False, default=RequestStatus.PENDING.value, index=True)
    note = Column(Text, nullable=False, default='')
    submitted_at = Column(DateTime(timezone=True), server_default=func.now())
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    resolved_by = Column(Integer, ForeignKey('users.id'), nullable=True)
