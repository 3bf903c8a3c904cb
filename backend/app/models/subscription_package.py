"""
Subscription package catalogue (capacity tiers).
"""
from sqlalchemy import Column, Integer, String, Numeric, JSON
from app.core.database import Base


class SubscriptionPackage(Base):
    __tablename__ = "subscription_packages"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True)  # Becomes the organization's subscription_tier
    employee_limit = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    features = Column(JSON, nullable=True)  # List of feature descriptions
