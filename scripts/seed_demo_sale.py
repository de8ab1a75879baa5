"""
Create the demo sale for local testing and demos.

Inserts sale S-0001 (two items, total 120.00) when the `sales` table is empty:
- Demo Product A: 3 x 10.00, no discount
- Demo Product B: 5 x 20.00, 10% discount
"""

import sys
from pathlib import Path

# Add parent directory to path so we can import from repositories
sys.path.insert(0, str(Path(__file__).parent.parent))

from decimal import Decimal

from domain.sale import NewItem, Sale
from domain.time import utc_now
from repositories.client import get_supabase_client
from repositories.sale_repository import SaleRepository


def build_demo_sale() -> Sale:
    return Sale.create(
        sale_number="S-0001",
        sale_date=utc_now(),
        customer_id="cust-1",
        customer_name="Demo Customer",
        branch_id="br-1",
        branch_name="Main Branch",
        items=[
            NewItem("p-1", "Demo Product A", 3, Decimal("10.00")),
            NewItem("p-2", "Demo Product B", 5, Decimal("20.00")),
        ],
    )


def seed_demo_sale(repository: SaleRepository) -> bool:
    """Insert the demo sale if no sales exist. Returns True when inserted."""

    if repository.list(page=1, page_size=1):
        print("Sales already exist; demo sale not created")
        return False

    sale = build_demo_sale()
    repository.add(sale)

    print(f"[SUCCESS] Demo sale created successfully!")
    print(f"  Sale ID: {sale.sale_id}")
    print(f"  Number: {sale.sale_number}")
    print(f"  Total: {sale.total_amount}")
    return True


if __name__ == "__main__":
    seed_demo_sale(SaleRepository(get_supabase_client()))
