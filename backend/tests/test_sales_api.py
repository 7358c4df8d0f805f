"""
Sales API tests.

Verifies route wiring, permission gates and response shapes.
"""

import pytest

from conftest import stock_of


def _payload(products):
    shirt, cap = products
    return {
        "items": [
            {"product_id": shirt.id, "quantity": 2, "unit_price_cents": 10},
            {"product_id": cap.id, "quantity": 1, "unit_price_cents": 5},
        ],
        "payment_method": "cartao_debito",
        "discount_cents": 3,
    }


class TestUnauthenticatedAccess:

    @pytest.mark.parametrize("method,path", [
        ("GET", "/api/sales"),
        ("POST", "/api/sales"),
        ("GET", "/api/sales/1"),
        ("POST", "/api/sales/1/cancel"),
        ("GET", "/api/products"),
        ("GET", "/api/clients"),
        ("GET", "/api/suppliers"),
        ("GET", "/api/reports/sales"),
        ("GET", "/api/admin/users"),
    ])
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_bogus_token(self, client, db_session):
        resp = client.get("/api/sales", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401


class TestCashierSales:

    def test_create_sale(self, client, cashier_headers, products):
        shirt, _ = products

        resp = client.post("/api/sales", json=_payload(products), headers=cashier_headers)

        assert resp.status_code == 201
        sale = resp.json["sale"]
        assert sale["total_cents"] == 22
        assert sale["attendant_name"] == "Maria Caixa"
        assert len(sale["items"]) == 2
        assert stock_of(shirt.id) == 8

    def test_validation_error_shape(self, client, cashier_headers, products):
        resp = client.post("/api/sales", json={"items": [], "payment_method": "pix"}, headers=cashier_headers)

        assert resp.status_code == 400
        assert resp.json == {"error": "Adicione pelo menos um produto à venda."}

    def test_cashier_cannot_cancel(self, client, cashier_headers, products):
        sale_id = client.post("/api/sales", json=_payload(products), headers=cashier_headers).json["sale"]["id"]

        resp = client.post(f"/api/sales/{sale_id}/cancel", headers=cashier_headers)

        assert resp.status_code == 403
        assert resp.json["required_permission"] == "sales.cancel"

    def test_cashier_cannot_edit(self, client, cashier_headers, products):
        sale_id = client.post("/api/sales", json=_payload(products), headers=cashier_headers).json["sale"]["id"]

        resp = client.patch(f"/api/sales/{sale_id}", json={"discount_cents": 0}, headers=cashier_headers)

        assert resp.status_code == 403


class TestMasterSales:

    def test_cancel_twice(self, client, master_headers, products):
        shirt, _ = products
        sale_id = client.post("/api/sales", json=_payload(products), headers=master_headers).json["sale"]["id"]

        first = client.post(f"/api/sales/{sale_id}/cancel", headers=master_headers)
        second = client.post(f"/api/sales/{sale_id}/cancel", headers=master_headers)

        assert first.status_code == 200
        assert "warning" not in first.json
        assert first.json["sale"]["items"] == []
        assert second.status_code == 200
        assert second.json["warning"] == "Esta venda já foi cancelada"
        assert stock_of(shirt.id) == 10

    def test_edit_cancelled_sale_conflicts(self, client, master_headers, products):
        sale_id = client.post("/api/sales", json=_payload(products), headers=master_headers).json["sale"]["id"]
        client.post(f"/api/sales/{sale_id}/cancel", headers=master_headers)

        resp = client.patch(f"/api/sales/{sale_id}", json={"notes": "x"}, headers=master_headers)

        assert resp.status_code == 409

    def test_edit_discount(self, client, master_headers, products):
        sale_id = client.post("/api/sales", json=_payload(products), headers=master_headers).json["sale"]["id"]

        resp = client.patch(f"/api/sales/{sale_id}", json={"discount_cents": 5}, headers=master_headers)

        assert resp.status_code == 200
        assert resp.json["sale"]["subtotal_cents"] == 25
        assert resp.json["sale"]["total_cents"] == 20

    def test_get_missing_sale(self, client, master_headers):
        assert client.get("/api/sales/9999", headers=master_headers).status_code == 404

    def test_receipt(self, client, master_headers, products):
        sale_id = client.post("/api/sales", json=_payload(products), headers=master_headers).json["sale"]["id"]

        resp = client.get(f"/api/sales/{sale_id}/receipt", headers=master_headers)

        assert resp.status_code == 200
        assert resp.mimetype == "text/plain"
        assert "Cartão de Débito" in resp.get_data(as_text=True)

    def test_list_by_status(self, client, master_headers, products):
        client.post("/api/sales", json=_payload(products), headers=master_headers)

        resp = client.get("/api/sales?status=completed", headers=master_headers)

        assert resp.status_code == 200
        assert resp.json["count"] == 1
