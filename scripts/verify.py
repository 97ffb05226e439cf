"""
Excel Ledger Verification Script

Verifies data integrity of the order ledger written by the Celery worker.
Run from project root: python scripts/verify.py [path/to/orders.xlsx]
"""

import os
import sys
from datetime import datetime

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pandas as pd

from app.core.config import get_settings

settings = get_settings()
EXCEL_FILE = os.path.join(settings.data_directory, settings.excel_filename)

REQUIRED_COLUMNS = ['order_id', 'res_id', 'customer_name', 'subtotal', 'tax', 'total', 'order_status']


def find_problems(df: pd.DataFrame) -> list[str]:
    """Return a description of every integrity problem in the ledger."""
    problems = []

    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        problems.append(f"Missing columns: {missing}")

    if 'order_id' in df.columns:
        duplicates = int(df['order_id'].duplicated().sum())
        if duplicates:
            problems.append(f"{duplicates} duplicate order IDs")

    if {'subtotal', 'tax', 'total'}.issubset(df.columns):
        expected = (df['subtotal'] + df['tax']).round(2)
        mismatched = df[(expected - df['total']).abs() > 0.01]
        for _, row in mismatched.iterrows():
            problems.append(
                f"Order {row.get('order_id')}: total {row['total']} != subtotal {row['subtotal']} + tax {row['tax']}"
            )

    return problems


def verify_excel(path: str = EXCEL_FILE) -> bool:
    """Verify Excel file integrity after simulation."""

    print("=" * 60)
    print("🔍 EXCEL VERIFICATION REPORT")
    print("=" * 60)
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"📄 File: {path}")
    print("=" * 60)

    # Check if file exists
    if not os.path.exists(path):
        print("\n❌ Excel file not found!")
        print("   Run the simulation first: python scripts/simulate.py")
        return False

    # Load Excel file
    try:
        df = pd.read_excel(path, engine='openpyxl')
        print(f"\n✅ File loaded successfully!")
    except (ValueError, OSError) as e:
        print(f"\n❌ Could not read Excel file: {e}")
        return False

    # Statistics
    print(f"\n📊 STATISTICS:")
    print(f"   Total Orders: {len(df)}")
    print(f"   Columns: {len(df.columns)}")
    if 'res_id' in df.columns and len(df) > 0:
        print(f"   Restaurants: {df['res_id'].nunique()}")

    problems = find_problems(df)
    if problems:
        print(f"\n⚠️ {len(problems)} problem(s) found:")
        for problem in problems[:20]:
            print(f"   - {problem}")
    else:
        print(f"\n✅ Columns present, no duplicate IDs, totals consistent")

    # Revenue
    if 'total' in df.columns and len(df) > 0:
        print(f"\n💰 REVENUE:")
        print(f"   Total: {df['total'].sum():.2f}")
        print(f"   Average: {df['total'].mean():.2f}")

    # Sample data
    print(f"\n📋 RECENT ORDERS:")
    print("-" * 60)
    if len(df) > 0:
        cols = ['order_id', 'table_number', 'customer_name', 'total', 'order_status']
        cols = [c for c in cols if c in df.columns]
        print(df[cols].tail(5).to_string(index=False))

    print("\n" + "=" * 60)
    print("✅ VERIFICATION COMPLETE" if not problems else "⚠️ VERIFICATION FINISHED WITH PROBLEMS")
    print("=" * 60)

    return not problems


if __name__ == "__main__":
    ok = verify_excel(sys.argv[1] if len(sys.argv) > 1 else EXCEL_FILE)
    sys.exit(0 if ok else 1)
