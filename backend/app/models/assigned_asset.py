"""
Assigned asset model (one held unit per approved request).
"""
import enum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from app.core.database import Base


class AssignmentStatus(str, enum.Enum):
    HELD = "held"
    RETURNED = "returned"


class AssignedAsset(Base):
    __tablename__ = "assigned_assets"

    id = Column(Integer, primary_key=True, index=True)
    request_id = Column(Integer, ForeignKey('asset_requests.id', ondelete='SET NULL'), nullable=True, unique=True, index=True)  # One assignment per request; kept if the request is deleted
    asset_id = Column(Integer, ForeignKey('assets.id', ondelete='SET NULL'), nullable=True, index=True)
    asset_name = Column(String(255), nullable=False)
    employee_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    organization_id = Column(Integer, ForeignKey('organizations.id'), nullable=False, index=True)
    unit_type = Column(String(20), nullable=False)  # Asset type at approval time
    status = Column(String(20), nullable=False, default=AssignmentStatus.HELD.value)
    assigned_at = Column(DateTime(timezone=True), server_default=func.now())
    returned_at = Column(DateTime(timezone=True), nullable=True)
