"""
Operator script to set an organization's employee limit by hand.
Use it for support cases (refunds, manual upgrades); paid upgrades go through
payment events instead.
"""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.database import SessionLocal
from app.core.errors import AssetVerseError
from app.services.affiliation import override_capacity


def override_organization_capacity(organization_id: int, employee_limit: int, tier: str = None):
    """Overwrite the limit (and optionally the tier) of one organization."""
    db = SessionLocal()
    try:
        capacity = override_capacity(db, organization_id, employee_limit, subscription_tier=tier)
        print(f"Organization {capacity.organization_id} updated")
        print(f"   Limit: {capacity.employee_limit}")
        print(f"   Employees: {capacity.current_employee_count}")
        print(f"   Tier: {capacity.subscription_tier}")
    except AssetVerseError as e:
        db.rollback()
        print(f"Could not override capacity: {e.message}")
        raise SystemExit(1)
    finally:
        db.close()


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description='Override organization capacity')
    parser.add_argument('organization_id', type=int, help='Organization ID')
    parser.add_argument('employee_limit', type=int, help='New employee limit')
    parser.add_argument('--tier', default=None, help='New subscription tier name')

    args = parser.parse_args()
    override_organization_capacity(args.organization_id, args.employee_limit, args.tier)
