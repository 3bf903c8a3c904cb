"""
Asset model (inventory counts per asset).
"""
import enum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.core.database import Base


class AssetType(str, enum.Enum):
    RETURNABLE = "Returnable"
    NON_RETURNABLE = "NonReturnable"


class Asset(Base):
    __tablename__ = "assets"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    image = Column(String(500), nullable=True)
    asset_type = Column(String(20), nullable=False)  # 'Returnable' or 'NonReturnable'
    total_quantity = Column(Integer, nullable=False, default=0)
    available_quantity = Column(Integer, nullable=False, default=0)
    owner_organization_id = Column(Integer, ForeignKey('organizations.id'), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    owner_organization = relationship("Organization")

    __table_args__ = (
        CheckConstraint(
            'available_quantity >= 0 AND available_quantity <= total_quantity',
            name='ck_assets_available_within_total'
        ),
    )
