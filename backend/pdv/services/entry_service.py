"""
Stock Entry Service

Goods received from suppliers. An entry batch (several products in one
delivery) is one transaction: every entry row, its stock increase and any
price updates commit together.
"""

from __future__ import annotations

from ..errors import NotFound, ValidationError
from ..extensions import db
from ..models import Product, ProductEntry, Supplier
from ..validation import coerce_cents, coerce_int
from pdv.time_utils import end_of_day, parse_iso_datetime
from . import stock_service
from .concurrency import run_in_transaction


def _normalize_entry_items(items) -> list[dict]:
    if not items or not isinstance(items, list):
        raise ValidationError("Adicione pelo menos um produto à entrada.")

    normalized = []
    for index, raw in enumerate(items, start=1):
        if not isinstance(raw, dict):
            raise ValidationError(f"Item {index} inválido")
        if raw.get("product_id") in (None, ""):
            raise ValidationError(f"Item {index}: product_id é obrigatório")

        product_id = coerce_int(raw["product_id"], "product_id")
        quantity = coerce_int(raw.get("quantity"), "quantity")
        if quantity <= 0:
            raise ValidationError(f"Item {index}: a quantidade deve ser maior que zero")

        if db.session.get(Product, product_id) is None:
            raise NotFound(f"Produto {product_id} não encontrado")

        normalized.append({
            "product_id": product_id,
            "quantity": quantity,
            "cost_price_cents": coerce_cents(raw.get("cost_price_cents") or 0, "cost_price_cents"),
            "sale_price_cents": coerce_cents(raw.get("sale_price_cents") or 0, "sale_price_cents"),
        })
    return normalized


def create_entries(
    items,
    *,
    supplier_id=None,
    created_by: str | None = None,
    notes: str | None = None,
) -> list[ProductEntry]:
    """
    Record a delivery.

    Each item adds its quantity to stock. A cost or sale price above zero
    also becomes the product's current cost_price_cents / price_varejo_cents.
    """
    lines = _normalize_entry_items(items)

    if supplier_id not in (None, ""):
        supplier_id = coerce_int(supplier_id, "supplier_id")
        if db.session.get(Supplier, supplier_id) is None:
            raise NotFound("Fornecedor não encontrado")
    else:
        supplier_id = None

    def _op():
        entries = []
        for line in lines:
            entry = ProductEntry(
                supplier_id=supplier_id,
                notes=(notes or "").strip() or None,
                created_by=created_by,
                **line,
            )
            db.session.add(entry)
            db.session.flush()

            stock_service.apply_delta(
                line["product_id"],
                line["quantity"],
                reason=stock_service.REASON_ENTRY,
                entry_id=entry.id,
            )

            product = db.session.get(Product, line["product_id"])
            if line["cost_price_cents"] > 0:
                product.cost_price_cents = line["cost_price_cents"]
            if line["sale_price_cents"] > 0:
                product.price_varejo_cents = line["sale_price_cents"]

            entries.append(entry)
        return entries

    return run_in_transaction(_op)


def delete_entry(entry_id: int) -> None:
    """Remove an entry and take its quantity back out of stock. Prices are left as they are."""
    entry = db.session.get(ProductEntry, entry_id)
    if entry is None:
        raise NotFound("Entrada não encontrada")

    def _op():
        stock_service.apply_delta(
            entry.product_id,
            -entry.quantity,
            reason=stock_service.REASON_ENTRY_DELETE,
            entry_id=entry.id,
        )
        db.session.delete(entry)

    run_in_transaction(_op)


def list_entries(
    *,
    product_id: int | None = None,
    supplier_id: int | None = None,
    start: str | None = None,
    end: str | None = None,
) -> list[ProductEntry]:
    query = db.session.query(ProductEntry)
    if product_id is not None:
        query = query.filter(ProductEntry.product_id == product_id)
    if supplier_id is not None:
        query = query.filter(ProductEntry.supplier_id == supplier_id)

    try:
        start_dt = parse_iso_datetime(start) if start else None
        end_dt = parse_iso_datetime(end) if end else None
    except ValueError:
        raise ValidationError("Datas devem estar no formato ISO-8601")
    if start_dt:
        query = query.filter(ProductEntry.entry_date >= start_dt)
    if end_dt:
        if "T" not in end:
            end_dt = end_of_day(end_dt)
        query = query.filter(ProductEntry.entry_date <= end_dt)

    return query.order_by(ProductEntry.entry_date.desc(), ProductEntry.id.desc()).all()
