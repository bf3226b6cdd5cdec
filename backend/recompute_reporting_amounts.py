"""
Recompute hub and reporting-currency amounts of every stored transaction.

Run this after editing exchange rates or changing REPORTING_CURRENCIES so the
denormalized columns used by the dashboard match the current rate table.
original_amount/original_currency are never modified.

Usage:
    python recompute_reporting_amounts.py
"""
import logging
import sys

from finca.db.session import SessionLocal
from finca.services.rate_table import RateLookupFailure
from finca.services.transaction_service import recompute_all


def run():
    """Recompute derived amounts in a single database transaction."""
    db = SessionLocal()
    try:
        print("Recomputing derived transaction amounts...")
        count = recompute_all(db)
        print(f"\n✅ Recomputed {count} transactions")
    except RateLookupFailure as e:
        db.rollback()
        print(f"\n❌ Could not load currency rates: {e}")
        sys.exit(1)
    except Exception as e:
        db.rollback()
        print(f"\n❌ Recompute failed: {e}")
        print("Transaction rolled back. Database state unchanged.")
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run()
