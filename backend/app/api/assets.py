"""
Asset inventory API endpoints.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from app.core.database import get_db
from app.core.auth import CallerIdentity, get_current_identity_dependency, get_current_admin_dependency
from app.services.inventory import (
    create_asset,
    get_asset,
    list_assets,
    adjust_inventory,
    delete_asset,
)

router = APIRouter()


class CreateAssetRequest(BaseModel):
    name: str
    asset_type: str  # 'Returnable' or 'NonReturnable'
    total_quantity: int
    available_quantity: Optional[int] = None
    image: Optional[str] = None


class AdjustAssetRequest(BaseModel):
    name: Optional[str] = None
    image: Optional[str] = None
    asset_type: Optional[str] = None
    total_quantity: Optional[int] = None
    available_quantity: Optional[int] = None


class AssetResponse(BaseModel):
    id: int
    name: str
    image: Optional[str]
    asset_type: str
    total_quantity: int
    available_quantity: int
    owner_organization_id: int
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


@router.get("", response_model=List[AssetResponse])
def list_assets_endpoint(
    available_only: bool = False,
    db: Session = Depends(get_db),
    identity: CallerIdentity = Depends(get_current_identity_dependency),
):
    """
    List assets.

    Admins see their organization's inventory; employees browse every
    organization's assets to request from.
    """
    organization_id = identity.organization_id if identity.is_admin else None
    if identity.is_admin and organization_id is None:
        return []
    assets = list_assets(db, organization_id=organization_id, available_only=available_only)
    return [AssetResponse.model_validate(asset) for asset in assets]


@router.post("", response_model=AssetResponse, status_code=status.HTTP_201_CREATED)
def create_asset_endpoint(
    request: CreateAssetRequest,
    db: Session = Depends(get_db),
    admin: CallerIdentity = Depends(get_current_admin_dependency),
):
    """Add an asset to the caller's organization."""
    asset = create_asset(
        db,
        admin,
        name=request.name,
        asset_type=request.asset_type,
        total_quantity=request.total_quantity,
        available_quantity=request.available_quantity,
        image=request.image,
    )
    return AssetResponse.model_validate(asset)


@router.get("/{asset_id}", response_model=AssetResponse)
def get_asset_endpoint(
    asset_id: int,
    db: Session = Depends(get_db),
    identity: CallerIdentity = Depends(get_current_identity_dependency),
):
    return AssetResponse.model_validate(get_asset(db, asset_id))


@router.patch("/{asset_id}", response_model=AssetResponse)
def adjust_asset_endpoint(
    asset_id: int,
    request: AdjustAssetRequest,
    db: Session = Depends(get_db),
    admin: CallerIdentity = Depends(get_current_admin_dependency),
):
    """Edit asset metadata and counts. Only fields present in the body change."""
    fields = request.model_dump(exclude_unset=True)
    return AssetResponse.model_validate(adjust_inventory(db, asset_id, admin, fields))


@router.delete("/{asset_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_asset_endpoint(
    asset_id: int,
    db: Session = Depends(get_db),
    admin: CallerIdentity = Depends(get_current_admin_dependency),
):
    delete_asset(db, asset_id, admin)
