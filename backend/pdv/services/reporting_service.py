# Overview: Sales reports and CSV export.

from __future__ import annotations

import csv
import io

from ..extensions import db
from ..models import PAYMENT_METHODS, Product, SALE_STATUS_COMPLETED, Sale, SaleItem
from pdv.time_utils import to_utc_z
from .sales_service import query_sales


CSV_HEADER = ["Data", "Cliente", "Atendente", "Pagamento", "Subtotal", "Desconto", "Total"]

WALK_IN_CLIENT = "Consumidor Final"


def _report_sales(
    start: str | None,
    end: str | None,
    attendant: str | None,
    payment_method: str | None,
    include_cancelled: bool,
) -> list[Sale]:
    status = None if include_cancelled else SALE_STATUS_COMPLETED
    return query_sales(
        start=start,
        end=end,
        attendant=attendant,
        payment_method=payment_method,
        status=status,
    ).all()


def sales_summary(
    *,
    start: str | None = None,
    end: str | None = None,
    attendant: str | None = None,
    payment_method: str | None = None,
    include_cancelled: bool = False,
) -> dict:
    sales = _report_sales(start, end, attendant, payment_method, include_cancelled)

    total_sales = sum(s.total_cents for s in sales)
    total_discount = sum(s.discount_cents for s in sales)
    # line items, not units
    total_items = sum(len(s.items) for s in sales)

    breakdown: dict[str, dict] = {}
    for s in sales:
        bucket = breakdown.setdefault(
            s.payment_method,
            {"label": PAYMENT_METHODS.get(s.payment_method, s.payment_method), "count": 0, "total_cents": 0},
        )
        bucket["count"] += 1
        bucket["total_cents"] += s.total_cents

    return {
        "count": len(sales),
        "total_sales_cents": total_sales,
        "total_discount_cents": total_discount,
        "total_items": total_items,
        # integer cents, rounded down
        "average_ticket_cents": total_sales // len(sales) if sales else 0,
        "payment_breakdown": breakdown,
        "attendants": sorted({s.attendant_name for s in sales}),
    }


def sales_profit(
    *,
    start: str | None = None,
    end: str | None = None,
    attendant: str | None = None,
    payment_method: str | None = None,
) -> dict:
    """
    Per-sale profit: total - sum(quantity * product's cost price).

    The cost price is read at report time, not snapshotted at sale time, so
    a later stock entry with a new cost changes the profit of past sales.
    Products without a cost price count as zero cost.
    """
    sales = _report_sales(start, end, attendant, payment_method, include_cancelled=False)
    sale_ids = [s.id for s in sales]

    costs: dict[int, int] = {}
    if sale_ids:
        rows = (
            db.session.query(
                SaleItem.sale_id,
                db.func.coalesce(
                    db.func.sum(SaleItem.quantity * db.func.coalesce(Product.cost_price_cents, 0)), 0
                ),
            )
            .join(Product, Product.id == SaleItem.product_id)
            .filter(SaleItem.sale_id.in_(sale_ids))
            .group_by(SaleItem.sale_id)
            .all()
        )
        costs = {sale_id: int(cost) for sale_id, cost in rows}

    items = []
    for s in sales:
        cost = costs.get(s.id, 0)
        items.append({
            "sale_id": s.id,
            "created_at": to_utc_z(s.created_at),
            "total_cents": s.total_cents,
            "cost_cents": cost,
            "profit_cents": s.total_cents - cost,
        })

    return {
        "sales": items,
        "total_cents": sum(i["total_cents"] for i in items),
        "total_cost_cents": sum(i["cost_cents"] for i in items),
        "total_profit_cents": sum(i["profit_cents"] for i in items),
    }


def _csv_money(cents: int) -> str:
    return f"{cents / 100:.2f}"


def export_sales_csv(
    *,
    start: str | None = None,
    end: str | None = None,
    attendant: str | None = None,
    payment_method: str | None = None,
    include_cancelled: bool = False,
) -> str:
    sales = _report_sales(start, end, attendant, payment_method, include_cancelled)

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for s in sales:
        writer.writerow([
            s.created_at.strftime("%d/%m/%Y %H:%M") if s.created_at else "",
            s.client.empresa_nome if s.client else WALK_IN_CLIENT,
            s.attendant_name,
            PAYMENT_METHODS.get(s.payment_method, s.payment_method),
            _csv_money(s.subtotal_cents),
            _csv_money(s.discount_cents),
            _csv_money(s.total_cents),
        ])
    return buffer.getvalue()
