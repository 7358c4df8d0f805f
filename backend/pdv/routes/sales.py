# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""Sales API routes with permission enforcement"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..services import sales_service

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
@require_auth
@require_permission("sales.create")
def create_sale_route():
    """
    Create a completed sale.

    Body: {items: [{product_id, quantity, unit_price_cents?, product_name?}],
    payment_method, discount_cents?, client_id?, notes?, attendant_name?}

    attendant_name defaults to the logged-in user's full name.
    """
    data = request.get_json(silent=True) or {}
    sale = sales_service.create_sale(
        items=data.get("items"),
        payment_method=data.get("payment_method"),
        attendant_name=data.get("attendant_name") or g.current_user.full_name,
        discount_cents=data.get("discount_cents", 0),
        notes=data.get("notes"),
        client_id=data.get("client_id"),
    )
    return jsonify({"sale": sale.to_dict(include_items=True)}), 201


@sales_bp.get("")
@require_auth
@require_permission("sales.view")
def list_sales_route():
    """Query params: start, end, attendant, payment_method, status, client_id."""
    sales = sales_service.list_sales(
        start=request.args.get("start"),
        end=request.args.get("end"),
        attendant=request.args.get("attendant"),
        payment_method=request.args.get("payment_method"),
        status=request.args.get("status"),
        client_id=request.args.get("client_id", type=int),
    )
    return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)}), 200


@sales_bp.get("/<int:sale_id>")
@require_auth
@require_permission("sales.view")
def get_sale_route(sale_id: int):
    sale = sales_service.get_sale(sale_id)
    return jsonify({"sale": sale.to_dict(include_items=True)}), 200


@sales_bp.patch("/<int:sale_id>")
@require_auth
@require_permission("sales.edit")
def edit_sale_route(sale_id: int):
    """Only payment_method, discount_cents, notes and client_id are editable."""
    sale = sales_service.edit_sale(sale_id, request.get_json(silent=True) or {})
    return jsonify({"sale": sale.to_dict(include_items=True)}), 200


@sales_bp.post("/<int:sale_id>/cancel")
@require_auth
@require_permission("sales.cancel")
def cancel_sale_route(sale_id: int):
    sale, warning = sales_service.cancel_sale(sale_id)
    payload = {"sale": sale.to_dict(include_items=True)}
    if warning:
        payload["warning"] = warning
    else:
        current_app.logger.info("Sale %s cancelled by user %s", sale_id, g.current_user.id)
    return jsonify(payload), 200


@sales_bp.get("/<int:sale_id>/receipt")
@require_auth
@require_permission("sales.view")
def receipt_route(sale_id: int):
    sale = sales_service.get_sale(sale_id)
    return current_app.response_class(
        sales_service.render_receipt(sale),
        mimetype="text/plain",
    )
