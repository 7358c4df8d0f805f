"""
Catalog and stock entry tests.

Verifies:
- stock is never writable through the product surface
- entries add stock, update prices when given, and reverse on delete
- referenced records are deactivated instead of deleted
- categories: slugs, listing, product links and search
"""

import pytest

from conftest import stock_of
from pdv.errors import NotFound, ValidationError
from pdv.models import Product, ProductEntry, StockMovement, Supplier
from pdv.services import catalog_service, entry_service, sales_service
from pdv.services.catalog_service import CLIENTS, PRODUCTS, SUPPLIERS


class TestProducts:

    def test_create_product(self, db_session):
        product = catalog_service.create_record(PRODUCTS, {
            "name": " Caneca ",
            "sku": "CAN-001",
            "price_varejo_cents": 2500,
            "description": "",
        })

        assert product.name == "Caneca"
        assert product.stock == 0
        assert product.description is None

    def test_stock_is_not_writable(self, db_session, products):
        shirt, _ = products

        with pytest.raises(ValidationError, match="Field not allowed: stock"):
            catalog_service.update_record(PRODUCTS, shirt.id, {"stock": 999})

        assert stock_of(shirt.id) == 10

    def test_missing_required_fields(self, db_session):
        with pytest.raises(ValidationError, match="Missing required fields"):
            catalog_service.create_record(PRODUCTS, {"name": "Sem preço"})

    def test_duplicate_sku(self, db_session, products):
        with pytest.raises(ValidationError):
            catalog_service.create_record(PRODUCTS, {"name": "Outra", "sku": "CAM-001", "price_varejo_cents": 1})

    def test_price_must_be_integer_cents(self, db_session, products):
        shirt, _ = products

        with pytest.raises(ValidationError):
            catalog_service.update_record(PRODUCTS, shirt.id, {"price_varejo_cents": 10.5})

    def test_search(self, db_session, products):
        found = catalog_service.list_records(PRODUCTS, search="bon")
        assert [p.sku for p in found] == ["BON-001"]

    def test_unreferenced_product_is_deleted(self, db_session, products):
        shirt, _ = products

        assert catalog_service.delete_record(PRODUCTS, shirt.id) is True
        assert db_session.get(Product, shirt.id) is None

    def test_sold_product_is_deactivated(self, db_session, products):
        shirt, _ = products
        sales_service.create_sale(items=[{"product_id": shirt.id, "quantity": 1}], payment_method="pix")

        assert catalog_service.delete_record(PRODUCTS, shirt.id) is False
        db_session.expire_all()
        assert db_session.get(Product, shirt.id).is_active is False
        assert shirt.id not in [p.id for p in catalog_service.list_records(PRODUCTS)]

    def test_missing_product(self, db_session):
        with pytest.raises(NotFound):
            catalog_service.get_record(PRODUCTS, 9999)


class TestCategories:

    def test_create_category_builds_slug(self, db_session):
        category = catalog_service.create_category("  Cama & Banho ", "Toalhas e lençóis")

        assert category.name == "Cama & Banho"
        assert category.slug == "cama-banho"
        assert category.description == "Toalhas e lençóis"

    def test_duplicate_category(self, db_session):
        catalog_service.create_category("Vestuário")

        with pytest.raises(ValidationError, match="Categoria já cadastrada"):
            catalog_service.create_category("vestuário")

    @pytest.mark.parametrize("name", [None, "", "   ", 42])
    def test_category_name_required(self, db_session, name):
        with pytest.raises(ValidationError):
            catalog_service.create_category(name)

    def test_categories_listed_by_name(self, db_session):
        catalog_service.create_category("Utilidades")
        catalog_service.create_category("Acessórios")

        assert [c.name for c in catalog_service.list_categories()] == ["Acessórios", "Utilidades"]

    def test_product_with_category_and_image(self, db_session):
        category = catalog_service.create_category("Vestuário")

        product = catalog_service.create_record(PRODUCTS, {
            "name": "Jaqueta",
            "price_varejo_cents": 15000,
            "category_id": category.id,
            "image_url": "https://cdn.example.com/jaqueta.png",
        })

        data = product.to_dict()
        assert data["category_id"] == category.id
        assert data["category"] == {"id": category.id, "name": "Vestuário"}
        assert data["image_url"] == "https://cdn.example.com/jaqueta.png"

    def test_unknown_category(self, db_session, products):
        shirt, _ = products

        with pytest.raises(NotFound, match="Categoria não encontrada"):
            catalog_service.update_record(PRODUCTS, shirt.id, {"category_id": 9999})

    def test_category_can_be_cleared(self, db_session, products):
        shirt, _ = products
        category = catalog_service.create_category("Vestuário")
        catalog_service.update_record(PRODUCTS, shirt.id, {"category_id": category.id})

        product = catalog_service.update_record(PRODUCTS, shirt.id, {"category_id": None})

        assert product.category_id is None
        assert product.to_dict()["category"] is None

    def test_search_matches_category_name(self, db_session, products):
        shirt, _ = products
        category = catalog_service.create_category("Vestuário")
        catalog_service.update_record(PRODUCTS, shirt.id, {"category_id": category.id})

        found = catalog_service.list_records(PRODUCTS, search="vestu")

        assert [p.id for p in found] == [shirt.id]


class TestClientsAndSuppliers:

    def test_client_with_sales_is_deactivated(self, db_session, products, sample_client):
        shirt, _ = products
        sales_service.create_sale(
            items=[{"product_id": shirt.id, "quantity": 1}],
            payment_method="pix",
            client_id=sample_client.id,
        )

        assert catalog_service.delete_record(CLIENTS, sample_client.id) is False

    def test_supplier_crud(self, db_session):
        supplier = catalog_service.create_record(SUPPLIERS, {"name": "Têxtil Sul", "state": "RS"})
        updated = catalog_service.update_record(SUPPLIERS, supplier.id, {"phone": "51 3333-0000"})

        assert updated.phone == "51 3333-0000"
        assert catalog_service.delete_record(SUPPLIERS, supplier.id) is True

    def test_state_length_is_enforced(self, db_session):
        with pytest.raises(ValidationError, match="max length"):
            catalog_service.create_record(SUPPLIERS, {"name": "X", "state": "RSS"})


class TestEntries:

    def test_batch_adds_stock_and_updates_prices(self, db_session, products):
        shirt, cap = products
        supplier = Supplier(name="Têxtil Sul")
        db_session.add(supplier)
        db_session.commit()

        entries = entry_service.create_entries(
            [
                {"product_id": shirt.id, "quantity": 5, "cost_price_cents": 450, "sale_price_cents": 1100},
                {"product_id": cap.id, "quantity": 3},
            ],
            supplier_id=supplier.id,
            created_by="Administrador",
        )

        assert len(entries) == 2
        assert stock_of(shirt.id) == 15
        assert stock_of(cap.id) == 8
        shirt = db_session.get(Product, shirt.id)
        cap = db_session.get(Product, cap.id)
        assert (shirt.cost_price_cents, shirt.price_varejo_cents) == (450, 1100)
        assert (cap.cost_price_cents, cap.price_varejo_cents) == (200, 500)
        assert entries[0].to_dict()["supplier_name"] == "Têxtil Sul"

    def test_invalid_item_rejects_whole_batch(self, db_session, products):
        shirt, cap = products

        with pytest.raises(ValidationError):
            entry_service.create_entries([
                {"product_id": shirt.id, "quantity": 5},
                {"product_id": cap.id, "quantity": 0},
            ])

        assert db_session.query(ProductEntry).count() == 0
        assert stock_of(shirt.id) == 10

    def test_unknown_supplier(self, db_session, products):
        shirt, _ = products

        with pytest.raises(NotFound):
            entry_service.create_entries([{"product_id": shirt.id, "quantity": 1}], supplier_id=9999)

    def test_delete_entry_reverses_stock(self, db_session, products):
        shirt, _ = products
        entry = entry_service.create_entries([{"product_id": shirt.id, "quantity": 4}])[0]

        entry_service.delete_entry(entry.id)

        assert stock_of(shirt.id) == 10
        reasons = [m.reason for m in db_session.query(StockMovement).order_by(StockMovement.id)]
        assert reasons == ["entry", "entry_delete"]

    def test_list_entries(self, db_session, products):
        shirt, cap = products
        entry_service.create_entries([{"product_id": shirt.id, "quantity": 1}])
        entry_service.create_entries([{"product_id": cap.id, "quantity": 1}])

        assert len(entry_service.list_entries()) == 2
        assert [e.product_id for e in entry_service.list_entries(product_id=cap.id)] == [cap.id]


class TestProductRoutes:

    def test_cashier_can_view_but_not_create(self, client, cashier_headers, products):
        assert client.get("/api/products", headers=cashier_headers).status_code == 200

        resp = client.post("/api/products", json={"name": "X", "price_varejo_cents": 1}, headers=cashier_headers)
        assert resp.status_code == 403

    def test_master_records_entry(self, client, master_headers, products):
        shirt, _ = products

        resp = client.post(
            "/api/products/entries",
            json={"items": [{"product_id": shirt.id, "quantity": 2}]},
            headers=master_headers,
        )

        assert resp.status_code == 201
        assert resp.json["items"][0]["created_by"] == "Administrador"

        movements = client.get(f"/api/products/{shirt.id}/movements", headers=master_headers)
        assert movements.json["stock"] == 12
        assert movements.json["movements"][0]["delta"] == 2

    def test_categories_routes(self, client, master_headers, cashier_headers, db_session):
        created = client.post("/api/products/categories", json={"name": "Papelaria"}, headers=master_headers)

        assert created.status_code == 201
        assert created.json["category"]["slug"] == "papelaria"

        listed = client.get("/api/products/categories", headers=cashier_headers)
        assert listed.status_code == 200
        assert [c["name"] for c in listed.json["items"]] == ["Papelaria"]

        denied = client.post("/api/products/categories", json={"name": "Outra"}, headers=cashier_headers)
        assert denied.status_code == 403
