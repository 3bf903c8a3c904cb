"""
Run one payment reconciliation pass now instead of waiting for the scheduler.
"""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.services.scheduler import run_payment_reconciliation


if __name__ == "__main__":
    counts = run_payment_reconciliation()
    print(
        f"Applied: {counts['applied']}, superseded: {counts['superseded']}, "
        f"still failing: {counts['failed']}"
    )
