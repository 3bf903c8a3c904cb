"""
Inventory model classes.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class AssetRecord:
    """Asset data class."""
    id: int
    name: str
    image: Optional[str]
    asset_type: str  # Returnable, NonReturnable
    total_quantity: int
    available_quantity: int
    owner_organization_id: int
    created_at: Optional[datetime]

    @property
    def is_returnable(self) -> bool:
        return self.asset_type == "Returnable"

    @classmethod
    def from_db_row(cls, row) -> "AssetRecord":
        """Create AssetRecord from database row."""
        return cls(
            id=row.id,
            name=row.name,
            image=row.image,
            asset_type=row.asset_type,
            total_quantity=row.total_quantity,
            available_quantity=row.available_quantity,
            owner_organization_id=row.owner_organization_id,
            created_at=row.created_at,
        )
