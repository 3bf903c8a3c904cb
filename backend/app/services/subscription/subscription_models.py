"""
Subscription synchronizer model classes.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass
class PaymentCompletedEvent:
    """Validated payment-completed notification from the payment provider."""
    transaction_id: str
    organization_id: int
    package_id: int
    amount: Decimal
    completed_at: Optional[datetime] = None


@dataclass
class PackageRecord:
    """Subscription package data class."""
    id: int
    name: str
    employee_limit: int
    price: Decimal
    features: list = field(default_factory=list)

    @classmethod
    def from_db_row(cls, row) -> "PackageRecord":
        """Create PackageRecord from database row."""
        return cls(
            id=row.id,
            name=row.name,
            employee_limit=row.employee_limit,
            price=Decimal(str(row.price)),
            features=list(row.features or []),
        )


@dataclass
class PaymentRecord:
    """Payment data class."""
    id: int
    transaction_id: str
    organization_id: int
    package_id: int
    amount: Decimal
    completed_at: Optional[datetime]
    capacity_applied_at: Optional[datetime]

    @property
    def capacity_applied(self) -> bool:
        return self.capacity_applied_at is not None

    @classmethod
    def from_db_row(cls, row) -> "PaymentRecord":
        """Create PaymentRecord from database row."""
        return cls(
            id=row.id,
            transaction_id=row.transaction_id,
            organization_id=row.organization_id,
            package_id=row.package_id,
            amount=Decimal(str(row.amount)),
            completed_at=row.completed_at,
            capacity_applied_at=row.capacity_applied_at,
        )


@dataclass
class PaymentApplication:
    """Outcome of apply_payment_event."""
    transaction_id: str
    duplicate: bool  # Redelivery of an already recorded transaction; nothing was written
    capacity_applied: bool = False
    superseded: bool = False  # An already applied newer payment of the organization wins
    payment: Optional[PaymentRecord] = None
