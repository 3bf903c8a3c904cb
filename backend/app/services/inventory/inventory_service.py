"""
Inventory ledger service.

available_quantity only moves through the conditional writes below, so
0 <= available_quantity <= total_quantity holds without reading first.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Optional
from sqlalchemy.orm import Session
from sqlalchemy import text, update
from app.core.errors import NotFoundError, OutOfStockError, ValidationError
from app.models.asset import Asset, AssetType
from app.models.asset_request import AssetRequest, RequestStatus
from app.services.inventory.inventory_models import AssetRecord
from app.services.organization import require_organization_admin

logger = logging.getLogger(__name__)

ADJUSTABLE_FIELDS = {"name", "image", "asset_type", "total_quantity", "available_quantity"}
ASSET_TYPES = {t.value for t in AssetType}


def _validate_quantity(field: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer")
    if value < 0:
        raise ValidationError(f"{field} cannot be negative")
    return value


def _get_asset_row(db: Session, asset_id: int) -> Asset:
    asset = db.query(Asset).filter(Asset.id == asset_id).first()
    if not asset:
        raise NotFoundError("Asset", asset_id)
    return asset


def create_asset(
    db: Session,
    admin,
    name: str,
    asset_type: str,
    total_quantity: int,
    available_quantity: Optional[int] = None,
    image: Optional[str] = None,
) -> AssetRecord:
    """
    Add an asset to the administrator's organization.

    Args:
        db: Database session
        admin: CallerIdentity of an organization admin
        name: Product name
        asset_type: 'Returnable' or 'NonReturnable'
        total_quantity: Units owned
        available_quantity: Units currently available (defaults to total_quantity)
        image: Optional image URL

    Returns:
        Created AssetRecord
    """
    require_organization_admin(admin, admin.organization_id)

    if not name or not name.strip():
        raise ValidationError("Asset name is required")
    if asset_type not in ASSET_TYPES:
        raise ValidationError(f"asset_type must be one of {sorted(ASSET_TYPES)}")
    total_quantity = _validate_quantity("total_quantity", total_quantity)
    if available_quantity is None:
        available_quantity = total_quantity
    available_quantity = _validate_quantity("available_quantity", available_quantity)
    if available_quantity > total_quantity:
        raise ValidationError("available_quantity cannot exceed total_quantity")

    asset = Asset(
        name=name.strip(),
        image=image,
        asset_type=asset_type,
        total_quantity=total_quantity,
        available_quantity=available_quantity,
        owner_organization_id=admin.organization_id,
    )
    db.add(asset)
    db.commit()
    db.refresh(asset)

    logger.info(f"Asset {asset.id} added to organization {admin.organization_id} ({total_quantity} units)")
    return AssetRecord.from_db_row(asset)


def get_asset(db: Session, asset_id: int) -> AssetRecord:
    """Get asset by ID."""
    return AssetRecord.from_db_row(_get_asset_row(db, asset_id))


def list_assets(
    db: Session,
    organization_id: Optional[int] = None,
    available_only: bool = False,
) -> list[AssetRecord]:
    """
    List assets, optionally scoped to one organization and/or in-stock only.
    """
    query = db.query(Asset)
    if organization_id is not None:
        query = query.filter(Asset.owner_organization_id == organization_id)
    if available_only:
        query = query.filter(Asset.available_quantity > 0)
    return [AssetRecord.from_db_row(row) for row in query.order_by(Asset.id).all()]


def adjust_inventory(db: Session, asset_id: int, admin, fields: dict) -> AssetRecord:
    """
    Edit counts and metadata of an asset (admin operation).

    The bounding invariant is part of the UPDATE's WHERE clause, so a change
    racing with a return or an approval cannot push available_quantity out of
    [0, total_quantity].

    Args:
        db: Database session
        asset_id: Asset ID
        admin: CallerIdentity of the owning organization's admin
        fields: Subset of name, image, asset_type, total_quantity, available_quantity

    Returns:
        Updated AssetRecord
    """
    unknown = set(fields) - ADJUSTABLE_FIELDS
    if unknown:
        raise ValidationError(f"Cannot adjust fields: {', '.join(sorted(unknown))}")
    if not fields:
        raise ValidationError("No fields to adjust")

    asset = _get_asset_row(db, asset_id)
    require_organization_admin(admin, asset.owner_organization_id)

    values: dict[str, Any] = {}
    conditions = [Asset.id == asset_id]

    if "name" in fields:
        if not fields["name"] or not str(fields["name"]).strip():
            raise ValidationError("Asset name cannot be empty")
        values["name"] = str(fields["name"]).strip()
    if "image" in fields:
        values["image"] = fields["image"]
    if "asset_type" in fields:
        if fields["asset_type"] not in ASSET_TYPES:
            raise ValidationError(f"asset_type must be one of {sorted(ASSET_TYPES)}")
        values["asset_type"] = fields["asset_type"]

    total = fields.get("total_quantity")
    available = fields.get("available_quantity")
    if total is not None:
        total = _validate_quantity("total_quantity", total)
        values["total_quantity"] = total
    if available is not None:
        available = _validate_quantity("available_quantity", available)
        values["available_quantity"] = available

    if total is not None and available is not None:
        if available > total:
            raise ValidationError("available_quantity cannot exceed total_quantity")
    elif total is not None:
        conditions.append(Asset.available_quantity <= total)
    elif available is not None:
        conditions.append(Asset.total_quantity >= available)

    values["updated_at"] = datetime.now(timezone.utc)
    result = db.execute(
        update(Asset)
        .where(*conditions)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        raise ValidationError("Adjustment would put available_quantity outside [0, total_quantity]")

    db.commit()
    logger.info(f"Asset {asset_id} adjusted by user {admin.subject_id}: {sorted(values)}")
    return get_asset(db, asset_id)


def delete_asset(db: Session, asset_id: int, admin) -> None:
    """
    Remove an asset. Requests and assignments keep their name snapshot.

    Pending requests for the asset are rejected in the same transaction, and
    every request for it is stamped with the owning organization, so none is
    left unresolvable or hidden from the admin once asset_id is nulled.
    """
    asset = _get_asset_row(db, asset_id)
    require_organization_admin(admin, asset.owner_organization_id)
    organization_id = asset.owner_organization_id

    now = datetime.now(timezone.utc)
    rejected = db.execute(
        update(AssetRequest)
        .where(AssetRequest.asset_id == asset_id, AssetRequest.status == RequestStatus.PENDING.value)
        .values(
            status=RequestStatus.REJECTED.value,
            resolved_at=now,
            resolved_by=admin.subject_id,
            organization_id=organization_id,
        )
        .execution_options(synchronize_session=False)
    ).rowcount
    db.execute(
        update(AssetRequest)
        .where(AssetRequest.asset_id == asset_id, AssetRequest.organization_id.is_(None))
        .values(organization_id=organization_id)
        .execution_options(synchronize_session=False)
    )

    db.delete(asset)
    db.commit()
    logger.info(f"Asset {asset_id} deleted by user {admin.subject_id} ({rejected} pending requests rejected)")


def reserve_unit(db: Session, asset_id: int, commit: bool = True) -> None:
    """
    Take one unit out of available_quantity.

    Raises:
        OutOfStockError: available_quantity is already 0
        NotFoundError: asset does not exist
    """
    result = db.execute(
        text("""
            UPDATE assets
            SET available_quantity = available_quantity - 1,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = :asset_id AND available_quantity > 0
        """),
        {"asset_id": asset_id}
    )
    if result.rowcount == 0:
        if commit:
            db.rollback()
        exists = db.execute(
            text("SELECT id FROM assets WHERE id = :asset_id"),
            {"asset_id": asset_id}
        ).first()
        if not exists:
            raise NotFoundError("Asset", asset_id)
        raise OutOfStockError(asset_id)

    if commit:
        db.commit()


def release_unit(db: Session, asset_id: int, commit: bool = True) -> bool:
    """
    Put one unit back into available_quantity, clamped at total_quantity.

    Returns:
        True if a unit was released, False if the asset was already full
    """
    result = db.execute(
        text("""
            UPDATE assets
            SET available_quantity = available_quantity + 1,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = :asset_id AND available_quantity < total_quantity
        """),
        {"asset_id": asset_id}
    )
    released = result.rowcount > 0
    if not released:
        logger.warning(f"Release on asset {asset_id} skipped: asset missing or already at total_quantity")

    if commit:
        db.commit()
    return released
