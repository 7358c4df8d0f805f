# Overview: Flask API routes for suppliers.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..services import catalog_service
from ..services.catalog_service import SUPPLIERS

suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
@require_auth
@require_permission("suppliers.view")
def list_suppliers():
    records = catalog_service.list_records(
        SUPPLIERS,
        search=request.args.get("search"),
        include_inactive=request.args.get("include_inactive", "false").lower() == "true",
    )
    return jsonify({"items": [r.to_dict() for r in records], "count": len(records)}), 200


@suppliers_bp.get("/<int:supplier_id>")
@require_auth
@require_permission("suppliers.view")
def get_supplier(supplier_id: int):
    return jsonify({"supplier": catalog_service.get_record(SUPPLIERS, supplier_id).to_dict()}), 200


@suppliers_bp.post("")
@require_auth
@require_permission("suppliers.create")
def create_supplier():
    record = catalog_service.create_record(SUPPLIERS, request.get_json(silent=True))
    return jsonify({"supplier": record.to_dict()}), 201


@suppliers_bp.patch("/<int:supplier_id>")
@require_auth
@require_permission("suppliers.edit")
def update_supplier(supplier_id: int):
    record = catalog_service.update_record(SUPPLIERS, supplier_id, request.get_json(silent=True))
    return jsonify({"supplier": record.to_dict()}), 200


@suppliers_bp.delete("/<int:supplier_id>")
@require_auth
@require_permission("suppliers.delete")
def delete_supplier(supplier_id: int):
    deleted = catalog_service.delete_record(SUPPLIERS, supplier_id)
    return jsonify({"success": True, "deactivated": not deleted}), 200
