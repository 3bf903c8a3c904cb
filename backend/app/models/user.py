"""
User model. Credentials are owned by the external identity layer.
"""
import enum
from sqlalchemy import Column, Integer, String, Date, DateTime
from sqlalchemy.sql import func
from app.core.database import Base


class UserRole(str, enum.Enum):
    EMPLOYEE = "employee"
    ADMIN = "admin"  # Organization administrator (HR)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=True)  # Never leaves the identity layer
    full_name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.EMPLOYEE.value)
    profile_image = Column(String(500), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def is_admin(self) -> bool:
        """Check if user administers an organization."""
        return self.role == UserRole.ADMIN.value

    def is_employee(self) -> bool:
        return self.role == UserRole.EMPLOYEE.value
