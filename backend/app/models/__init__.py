"""
Database models.
"""
from app.models.user import User, UserRole
from app.models.organization import Organization, EmployeeAffiliation, AffiliationStatus
from app.models.asset import Asset, AssetType
from app.models.asset_request import AssetRequest, RequestStatus
from app.models.assigned_asset import AssignedAsset, AssignmentStatus
from app.models.subscription_package import SubscriptionPackage
from app.models.payment import Payment

__all__ = [
    "User",
    "UserRole",
    "Organization",
    "EmployeeAffiliation",
    "AffiliationStatus",
    "Asset",
    "AssetType",
    "AssetRequest",
    "RequestStatus",
    "AssignedAsset",
    "AssignmentStatus",
    "SubscriptionPackage",
    "Payment",
]
