"""
Sales Service - sale creation, cancellation and edits

LIFECYCLE: completed -> cancelled. A cancelled sale is terminal.

INVARIANTS:
- total_cents == subtotal_cents - discount_cents after every mutation
- subtotal_cents == sum(item.total_cents) at creation; never edited
- items are immutable; they are only ever deleted, by cancellation
- every item insert/delete moves stock through the stock ledger in the
  same transaction
"""

from __future__ import annotations

from flask import current_app

from ..errors import NotFound, SaleError, ValidationError
from ..extensions import db
from ..models import (
    Client,
    PAYMENT_METHODS,
    Product,
    SALE_STATUS_CANCELLED,
    SALE_STATUS_COMPLETED,
    Sale,
    SaleItem,
)
from ..validation import coerce_cents, coerce_int
from pdv.time_utils import end_of_day, parse_iso_datetime, to_utc_z
from . import stock_service
from .concurrency import lock_for_update, run_in_transaction


EDITABLE_FIELDS = {"payment_method", "discount_cents", "notes", "client_id"}

ALREADY_CANCELLED_WARNING = "Esta venda já foi cancelada"

DEFAULT_ATTENDANT = "Sistema"


def _validate_payment_method(payment_method) -> str:
    if not payment_method:
        raise ValidationError("Selecione o método de pagamento.")
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"Método de pagamento inválido: {payment_method}")
    return payment_method


def _validate_discount(discount_cents, subtotal_cents: int) -> int:
    """Discounts are rejected (not clamped) outside 0..subtotal."""
    discount = coerce_cents(discount_cents or 0, "discount_cents")
    if discount > subtotal_cents:
        raise ValidationError("Desconto não pode ser maior que o subtotal")
    return discount


def _validate_client(client_id) -> int | None:
    if client_id in (None, ""):
        return None
    client_id = coerce_int(client_id, "client_id")
    if db.session.get(Client, client_id) is None:
        raise NotFound("Cliente não encontrado")
    return client_id


def _normalize_items(items) -> list[dict]:
    """
    Validate raw line input and resolve product snapshots.

    Each item: {product_id, quantity, unit_price_cents?, product_name?}.
    unit_price_cents defaults to the product's retail price and
    product_name to the product's current name.
    """
    if not items or not isinstance(items, list):
        raise ValidationError("Adicione pelo menos um produto à venda.")

    normalized = []
    for index, raw in enumerate(items, start=1):
        if not isinstance(raw, dict):
            raise ValidationError(f"Item {index} inválido")

        if raw.get("product_id") in (None, ""):
            raise ValidationError(f"Item {index}: product_id é obrigatório")
        product_id = coerce_int(raw.get("product_id"), "product_id")

        quantity = coerce_int(raw.get("quantity"), "quantity")
        if quantity <= 0:
            raise ValidationError(f"Item {index}: a quantidade deve ser maior que zero")

        product = db.session.get(Product, product_id)
        if product is None:
            raise NotFound(f"Produto {product_id} não encontrado")

        if raw.get("unit_price_cents") is None:
            unit_price = product.price_varejo_cents
        else:
            unit_price = coerce_cents(raw["unit_price_cents"], "unit_price_cents")

        product_name = str(raw.get("product_name") or product.name).strip()

        normalized.append({
            "product_id": product_id,
            "product_name": product_name,
            "quantity": quantity,
            "unit_price_cents": unit_price,
            "total_cents": quantity * unit_price,
        })

    return normalized


def create_sale(
    *,
    items,
    payment_method,
    attendant_name: str | None = None,
    discount_cents=0,
    notes: str | None = None,
    client_id=None,
) -> Sale:
    """
    Create a completed sale with its items.

    Sale row, item rows and stock decrements commit together or not at all.

    Raises:
        ValidationError: empty items, bad quantity/price/discount, missing or unknown payment method
        NotFound: product or client does not exist
        PersistenceError: storage failure (nothing is written)
    """
    payment_method = _validate_payment_method(payment_method)
    lines = _normalize_items(items)
    client_id = _validate_client(client_id)

    subtotal = sum(line["total_cents"] for line in lines)
    discount = _validate_discount(discount_cents, subtotal)

    def _op():
        sale = Sale(
            client_id=client_id,
            attendant_name=(attendant_name or "").strip() or DEFAULT_ATTENDANT,
            payment_method=payment_method,
            subtotal_cents=subtotal,
            discount_cents=discount,
            total_cents=subtotal - discount,
            notes=(notes or "").strip() or None,
            status=SALE_STATUS_COMPLETED,
        )
        db.session.add(sale)
        db.session.flush()

        for line in lines:
            db.session.add(SaleItem(sale_id=sale.id, **line))
            stock_service.apply_delta(
                line["product_id"],
                -line["quantity"],
                reason=stock_service.REASON_SALE,
                sale_id=sale.id,
            )

        return sale

    return run_in_transaction(_op)


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFound("Venda não encontrada")
    return sale


def _locked_sale(sale_id: int) -> Sale:
    sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id)).first()
    if sale is None:
        raise NotFound("Venda não encontrada")
    return sale


def cancel_sale(sale_id: int) -> tuple[Sale, str | None]:
    """
    Cancel a sale: return every item's quantity to stock, delete the items,
    and zero the monetary fields so revenue sums skip it.

    Cancelling an already-cancelled sale changes nothing and returns a
    warning instead of raising.

    Returns (sale, warning).
    """
    def _op():
        sale = _locked_sale(sale_id)

        if sale.status == SALE_STATUS_CANCELLED:
            return sale, ALREADY_CANCELLED_WARNING

        for item in list(sale.items):
            stock_service.apply_delta(
                item.product_id,
                item.quantity,
                reason=stock_service.REASON_SALE_CANCEL,
                sale_id=sale.id,
            )
            db.session.delete(item)

        sale.status = SALE_STATUS_CANCELLED
        sale.subtotal_cents = 0
        sale.discount_cents = 0
        sale.total_cents = 0
        return sale, None

    sale, warning = run_in_transaction(_op)
    if warning:
        current_app.logger.warning("Cancel requested for already cancelled sale %s", sale_id)
    return sale, warning


def edit_sale(sale_id: int, changes: dict) -> Sale:
    """
    Edit the mutable header fields of a completed sale.

    Only payment_method, discount_cents, notes and client_id may change.
    total_cents is recomputed from the original subtotal_cents; items are
    untouched.
    """
    if not isinstance(changes, dict) or not changes:
        raise ValidationError("Nenhuma alteração informada")

    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(sorted(unknown))}")

    def _op():
        sale = _locked_sale(sale_id)

        if sale.status == SALE_STATUS_CANCELLED:
            raise SaleError("Não é possível editar uma venda cancelada")

        if "payment_method" in changes:
            sale.payment_method = _validate_payment_method(changes["payment_method"])

        if "client_id" in changes:
            sale.client_id = _validate_client(changes["client_id"])

        if "notes" in changes:
            sale.notes = (changes["notes"] or "").strip() or None

        if "discount_cents" in changes:
            sale.discount_cents = _validate_discount(changes["discount_cents"], sale.subtotal_cents)

        sale.total_cents = sale.subtotal_cents - sale.discount_cents
        return sale

    return run_in_transaction(_op)


def query_sales(
    *,
    start: str | None = None,
    end: str | None = None,
    attendant: str | None = None,
    payment_method: str | None = None,
    status: str | None = None,
    client_id: int | None = None,
):
    """
    Filtered sales query, newest first.

    start/end are ISO dates or datetimes; a date-only end includes the
    whole day.
    """
    query = db.session.query(Sale)

    try:
        start_dt = parse_iso_datetime(start) if start else None
        end_dt = parse_iso_datetime(end) if end else None
    except ValueError:
        raise ValidationError("Datas devem estar no formato ISO-8601")

    if start_dt:
        query = query.filter(Sale.created_at >= start_dt)
    if end_dt:
        if end and "T" not in end:
            end_dt = end_of_day(end_dt)
        query = query.filter(Sale.created_at <= end_dt)
    if attendant:
        query = query.filter(Sale.attendant_name == attendant)
    if payment_method:
        query = query.filter(Sale.payment_method == _validate_payment_method(payment_method))
    if status:
        if status not in (SALE_STATUS_COMPLETED, SALE_STATUS_CANCELLED):
            raise ValidationError(f"Status inválido: {status}")
        query = query.filter(Sale.status == status)
    if client_id is not None:
        query = query.filter(Sale.client_id == client_id)

    return query.order_by(Sale.created_at.desc(), Sale.id.desc())


def list_sales(**filters) -> list[Sale]:
    return query_sales(**filters).all()


def format_brl(cents: int) -> str:
    """1234567 -> 'R$ 12.345,67'"""
    sign = "-" if cents < 0 else ""
    reais, centavos = divmod(abs(cents), 100)
    return f"{sign}R$ {reais:,}".replace(",", ".") + f",{centavos:02d}"


def render_receipt(sale: Sale, width: int = 40) -> str:
    """Plain-text receipt for a thermal printer."""
    store_name = current_app.config.get("STORE_NAME", "PDV")
    rule = "-" * width

    lines = [
        store_name.center(width),
        rule,
        f"Venda #{sale.id}",
        f"Data: {to_utc_z(sale.created_at)}",
        f"Atendente: {sale.attendant_name}",
        f"Cliente: {sale.client.empresa_nome if sale.client else 'Consumidor Final'}",
    ]
    if sale.status == SALE_STATUS_CANCELLED:
        lines.append("*** VENDA CANCELADA ***".center(width))
    lines.append(rule)

    for item in sale.items:
        lines.append(item.product_name[:width])
        detail = f"{item.quantity} x {format_brl(item.unit_price_cents)}"
        amount = format_brl(item.total_cents)
        lines.append(detail + amount.rjust(width - len(detail)))

    lines.append(rule)
    for label, cents in (
        ("Subtotal", sale.subtotal_cents),
        ("Desconto", -sale.discount_cents if sale.discount_cents else 0),
        ("Total", sale.total_cents),
    ):
        amount = format_brl(cents)
        lines.append(label + amount.rjust(width - len(label)))

    payment = PAYMENT_METHODS.get(sale.payment_method, sale.payment_method)
    lines.append(f"Pagamento: {payment}")
    if sale.notes:
        lines.append(f"Obs: {sale.notes}")
    lines.append(rule)

    return "\n".join(lines) + "\n"
