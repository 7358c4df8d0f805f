# Overview: Flask API routes for clients; a sale without a client is "Consumidor Final".

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..services import catalog_service
from ..services.catalog_service import CLIENTS

clients_bp = Blueprint("clients", __name__, url_prefix="/api/clients")


@clients_bp.get("")
@require_auth
@require_permission("clients.view")
def list_clients():
    records = catalog_service.list_records(
        CLIENTS,
        search=request.args.get("search"),
        include_inactive=request.args.get("include_inactive", "false").lower() == "true",
    )
    return jsonify({"items": [r.to_dict() for r in records], "count": len(records)}), 200


@clients_bp.get("/<int:client_id>")
@require_auth
@require_permission("clients.view")
def get_client(client_id: int):
    return jsonify({"client": catalog_service.get_record(CLIENTS, client_id).to_dict()}), 200


@clients_bp.post("")
@require_auth
@require_permission("clients.create")
def create_client():
    record = catalog_service.create_record(CLIENTS, request.get_json(silent=True))
    return jsonify({"client": record.to_dict()}), 201


@clients_bp.patch("/<int:client_id>")
@require_auth
@require_permission("clients.edit")
def update_client(client_id: int):
    record = catalog_service.update_record(CLIENTS, client_id, request.get_json(silent=True))
    return jsonify({"client": record.to_dict()}), 200


@clients_bp.delete("/<int:client_id>")
@require_auth
@require_permission("clients.delete")
def delete_client(client_id: int):
    deleted = catalog_service.delete_record(CLIENTS, client_id)
    return jsonify({"success": True, "deactivated": not deleted}), 200
