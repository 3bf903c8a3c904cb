"""
Organization and EmployeeAffiliation models.
"""
import enum
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint, CheckConstraint,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.core.database import Base


class AffiliationStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    logo = Column(String(500), nullable=True)
    admin_user_id = Column(Integer, ForeignKey('users.id'), nullable=True, unique=True, index=True)
    # Capacity: written only through the affiliation and subscription services
    employee_limit = Column(Integer, nullable=False, default=5)
    current_employee_count = Column(Integer, nullable=False, default=0)
    subscription_tier = Column(String(100), nullable=False, default='basic')
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    admin = relationship("User", foreign_keys=[admin_user_id])
    affiliations = relationship("EmployeeAffiliation", back_populates="organization")

    __table_args__ = (
        CheckConstraint(
            'current_employee_count >= 0 AND current_employee_count <= employee_limit',
            name='ck_organizations_employee_capacity'
        ),
    )


class EmployeeAffiliation(Base):
    __tablename__ = "employee_affiliations"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    organization_id = Column(Integer, ForeignKey('organizations.id'), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=AffiliationStatus.ACTIVE.value)
    # True while active, NULL afterwards; NULLs never collide in the unique key below
    is_current = Column(Boolean, nullable=True, default=True)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())
    deactivated_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    organization = relationship("Organization", back_populates="affiliations")
    employee = relationship("User", foreign_keys=[employee_id])

    __table_args__ = (
        UniqueConstraint(
            'employee_id', 'organization_id', 'is_current',
            name='uq_employee_affiliations_active_pair'
        ),
    )
