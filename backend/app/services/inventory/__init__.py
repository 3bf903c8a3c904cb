"""
Inventory ledger: per-asset total and available unit counts.
"""
from app.services.inventory.inventory_service import (
    create_asset,
    get_asset,
    list_assets,
    adjust_inventory,
    delete_asset,
    reserve_unit,
    release_unit,
)
from app.services.inventory.inventory_models import AssetRecord

__all__ = [
    "create_asset",
    "get_asset",
    "list_assets",
    "adjust_inventory",
    "delete_asset",
    "reserve_unit",
    "release_unit",
    "AssetRecord",
]
