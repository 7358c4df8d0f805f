# Overview: Flask API routes for products, stock entries and stock movements.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..services import catalog_service, entry_service, stock_service
from ..services.catalog_service import PRODUCTS

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _flag(name: str, default: str = "false") -> bool:
    return request.args.get(name, default).lower() == "true"


@products_bp.get("")
@require_auth
@require_permission("products.view")
def list_products():
    """Query params: search, include_inactive (default false)."""
    products = catalog_service.list_records(
        PRODUCTS,
        search=request.args.get("search"),
        include_inactive=_flag("include_inactive"),
    )
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)}), 200


@products_bp.get("/categories")
@require_auth
@require_permission("products.view")
def list_categories():
    categories = catalog_service.list_categories()
    return jsonify({"items": [c.to_dict() for c in categories], "count": len(categories)}), 200


@products_bp.post("/categories")
@require_auth
@require_permission("products.create")
def create_category():
    data = request.get_json(silent=True) or {}
    category = catalog_service.create_category(data.get("name"), data.get("description"))
    return jsonify({"category": category.to_dict()}), 201


@products_bp.get("/<int:product_id>")
@require_auth
@require_permission("products.view")
def get_product(product_id: int):
    return jsonify({"product": catalog_service.get_record(PRODUCTS, product_id).to_dict()}), 200


@products_bp.post("")
@require_auth
@require_permission("products.create")
def create_product():
    """Stock is not accepted here; it starts at zero and moves through entries and sales."""
    product = catalog_service.create_record(PRODUCTS, request.get_json(silent=True))
    return jsonify({"product": product.to_dict()}), 201


@products_bp.patch("/<int:product_id>")
@require_auth
@require_permission("products.edit")
def update_product(product_id: int):
    product = catalog_service.update_record(PRODUCTS, product_id, request.get_json(silent=True))
    return jsonify({"product": product.to_dict()}), 200


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission("products.delete")
def delete_product(product_id: int):
    deleted = catalog_service.delete_record(PRODUCTS, product_id)
    return jsonify({"success": True, "deactivated": not deleted}), 200


@products_bp.get("/<int:product_id>/movements")
@require_auth
@require_permission("products.view")
def list_product_movements(product_id: int):
    catalog_service.get_record(PRODUCTS, product_id)
    limit = min(request.args.get("limit", 100, type=int), 500)
    movements = stock_service.list_movements(product_id, limit=limit)
    return jsonify({
        "product_id": product_id,
        "stock": stock_service.get_stock(product_id),
        "movements": [m.to_dict() for m in movements],
    }), 200


# =============================================================================
# STOCK ENTRIES
# =============================================================================

@products_bp.get("/entries")
@require_auth
@require_permission("entries.view")
def list_entries():
    """Query params: product_id, supplier_id, start, end."""
    entries = entry_service.list_entries(
        product_id=request.args.get("product_id", type=int),
        supplier_id=request.args.get("supplier_id", type=int),
        start=request.args.get("start"),
        end=request.args.get("end"),
    )
    return jsonify({"items": [e.to_dict() for e in entries], "count": len(entries)}), 200


@products_bp.post("/entries")
@require_auth
@require_permission("entries.create")
def create_entries():
    """
    Record a delivery.

    Body: {supplier_id?, notes?, items: [{product_id, quantity,
    cost_price_cents?, sale_price_cents?}]}
    """
    data = request.get_json(silent=True) or {}
    entries = entry_service.create_entries(
        data.get("items"),
        supplier_id=data.get("supplier_id"),
        created_by=g.current_user.full_name,
        notes=data.get("notes"),
    )
    return jsonify({"items": [e.to_dict() for e in entries], "count": len(entries)}), 201


@products_bp.delete("/entries/<int:entry_id>")
@require_auth
@require_permission("entries.delete")
def delete_entry(entry_id: int):
    entry_service.delete_entry(entry_id)
    return jsonify({"success": True}), 200
