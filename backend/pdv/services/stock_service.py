# Overview: Stock ledger; the only code path that changes products.stock.

"""
Stock Ledger Invariants (authoritative)

- products.stock moves only through apply_delta.
- apply_delta is one SQL expression (stock = stock + delta), so two
  concurrent sales against the same product cannot lose an update.
- Every call appends a stock_movements row in the same transaction.
- apply_delta flushes and never commits; the caller's transaction (sale,
  cancellation, stock entry) owns the commit boundary.
- Stock may go negative; sales are not blocked on stock.
"""

from __future__ import annotations

from sqlalchemy import update

from ..errors import NotFound
from ..extensions import db
from ..models import Product, StockMovement


REASON_SALE = "sale"
REASON_SALE_CANCEL = "sale_cancel"
REASON_ENTRY = "entry"
REASON_ENTRY_DELETE = "entry_delete"


def apply_delta(
    product_id: int,
    delta: int,
    *,
    reason: str,
    sale_id: int | None = None,
    entry_id: int | None = None,
) -> StockMovement:
    """Add delta (negative to take out) to a product's stock."""
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFound(f"Produto {product_id} não encontrado")

    db.session.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(stock=Product.stock + delta)
    )

    movement = StockMovement(
        product_id=product_id,
        delta=delta,
        reason=reason,
        sale_id=sale_id,
        entry_id=entry_id,
    )
    db.session.add(movement)
    db.session.flush()  # ensures movement.id is assigned without committing
    return movement


def get_stock(product_id: int) -> int:
    stock = db.session.query(Product.stock).filter(Product.id == product_id).scalar()
    if stock is None:
        raise NotFound(f"Produto {product_id} não encontrado")
    return stock


def list_movements(product_id: int, limit: int = 100) -> list[StockMovement]:
    return (
        db.session.query(StockMovement)
        .filter_by(product_id=product_id)
        .order_by(StockMovement.id.desc())
        .limit(limit)
        .all()
    )
