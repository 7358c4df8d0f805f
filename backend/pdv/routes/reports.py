# Overview: Flask API routes for sales reports and CSV export.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_permission
from ..services import reporting_service

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _filters(include_cancelled: bool = True) -> dict:
    filters = {
        "start": request.args.get("start"),
        "end": request.args.get("end"),
        "attendant": request.args.get("attendant"),
        "payment_method": request.args.get("payment_method"),
    }
    if include_cancelled:
        filters["include_cancelled"] = request.args.get("include_cancelled", "false").lower() == "true"
    return filters


@reports_bp.get("/sales")
@require_auth
@require_permission("reports.view")
def sales_summary_route():
    return jsonify(reporting_service.sales_summary(**_filters())), 200


@reports_bp.get("/profit")
@require_auth
@require_permission("reports.view")
def sales_profit_route():
    return jsonify(reporting_service.sales_profit(**_filters(include_cancelled=False))), 200


@reports_bp.get("/sales.csv")
@require_auth
@require_permission("reports.view")
def sales_csv_route():
    response = current_app.response_class(
        reporting_service.export_sales_csv(**_filters()),
        mimetype="text/csv",
    )
    response.headers["Content-Disposition"] = "attachment; filename=vendas.csv"
    return response
