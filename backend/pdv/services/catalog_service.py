# Overview: CRUD for products, categories, suppliers and clients.

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass

from ..errors import NotFound, ValidationError
from ..extensions import db
from ..models import Category, Client, Product, ProductEntry, Sale, SaleItem, StockMovement, Supplier
from ..validation import ModelValidationPolicy, validate_payload
from .concurrency import run_in_transaction


@dataclass(frozen=True)
class CatalogKind:
    model: type
    policy: ModelValidationPolicy
    order_by: str
    not_found_message: str
    search_fields: tuple[str, ...]


# stock is deliberately absent: only the stock ledger writes it
PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "sku", "name", "description", "image_url", "category_id",
        "price_varejo_cents", "price_revenda_cents", "cost_price_cents",
        "is_active",
    },
    required_on_create={"name", "price_varejo_cents"},
    cents_fields={"price_varejo_cents", "price_revenda_cents", "cost_price_cents"},
)

SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "cnpj", "contact_name", "email", "phone",
        "address", "city", "state", "notes", "is_active",
    },
    required_on_create={"name"},
)

CLIENT_POLICY = ModelValidationPolicy(
    writable_fields={
        "empresa_nome", "cnpj_cpf", "insc_estadual_identidade", "contato",
        "telefone", "endereco", "bairro", "cidade_estado", "cep", "is_active",
    },
    required_on_create={"empresa_nome"},
)

PRODUCTS = CatalogKind(Product, PRODUCT_POLICY, "name", "Produto não encontrado", ("name", "sku"))
SUPPLIERS = CatalogKind(Supplier, SUPPLIER_POLICY, "name", "Fornecedor não encontrado", ("name", "cnpj"))
CLIENTS = CatalogKind(Client, CLIENT_POLICY, "empresa_nome", "Cliente não encontrado", ("empresa_nome", "cnpj_cpf"))


def list_records(kind: CatalogKind, *, search: str | None = None, include_inactive: bool = False) -> list:
    model = kind.model
    query = db.session.query(model)
    if not include_inactive:
        query = query.filter(model.is_active.is_(True))
    if search:
        pattern = f"%{search.strip()}%"
        conditions = [getattr(model, f).ilike(pattern) for f in kind.search_fields]
        if kind is PRODUCTS:
            query = query.outerjoin(Category, Product.category_id == Category.id)
            conditions.append(Category.name.ilike(pattern))
        query = query.filter(db.or_(*conditions))
    return query.order_by(getattr(model, kind.order_by).asc(), model.id.asc()).all()


def get_record(kind: CatalogKind, record_id: int):
    record = db.session.get(kind.model, record_id)
    if record is None:
        raise NotFound(kind.not_found_message)
    return record


def _check_unique_sku(sku: str | None, exclude_id: int | None = None) -> None:
    if not sku:
        return
    query = db.session.query(Product.id).filter(Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first() is not None:
        raise ValidationError(f"SKU já cadastrado: {sku}")


def _check_category(category_id: int | None) -> None:
    if category_id is not None and db.session.get(Category, category_id) is None:
        raise NotFound("Categoria não encontrada")


def create_record(kind: CatalogKind, payload: dict):
    patch = validate_payload(model=kind.model, payload=payload, policy=kind.policy, partial=False)
    if kind is PRODUCTS:
        _check_unique_sku(patch.get("sku"))
        _check_category(patch.get("category_id"))

    def _op():
        record = kind.model(**patch)
        db.session.add(record)
        db.session.flush()
        return record

    return run_in_transaction(_op)


def update_record(kind: CatalogKind, record_id: int, payload: dict):
    record = get_record(kind, record_id)
    patch = validate_payload(model=kind.model, payload=payload, policy=kind.policy, partial=True)
    if kind is PRODUCTS:
        if "sku" in patch:
            _check_unique_sku(patch["sku"], exclude_id=record.id)
        _check_category(patch.get("category_id"))

    def _op():
        for key, value in patch.items():
            setattr(record, key, value)
        return record

    return run_in_transaction(_op)


def _is_referenced(kind: CatalogKind, record_id: int) -> bool:
    if kind is PRODUCTS:
        checks = (
            db.session.query(SaleItem.id).filter_by(product_id=record_id),
            db.session.query(ProductEntry.id).filter_by(product_id=record_id),
            db.session.query(StockMovement.id).filter_by(product_id=record_id),
        )
    elif kind is CLIENTS:
        checks = (db.session.query(Sale.id).filter_by(client_id=record_id),)
    else:
        checks = (db.session.query(ProductEntry.id).filter_by(supplier_id=record_id),)
    return any(q.first() is not None for q in checks)


def delete_record(kind: CatalogKind, record_id: int) -> bool:
    """
    Delete a catalog record.

    Records still referenced by sales, entries or stock movements are
    deactivated instead. Returns True on a hard delete, False on a soft one.
    """
    record = get_record(kind, record_id)
    referenced = _is_referenced(kind, record_id)

    def _op():
        if referenced:
            record.is_active = False
        else:
            db.session.delete(record)
        return not referenced

    return run_in_transaction(_op)


# =============================================================================
# CATEGORIES
# =============================================================================

def slugify(value: str) -> str:
    """'Cama & Banho' -> 'cama-banho'"""
    normalized = unicodedata.normalize("NFKD", value or "").encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")


def list_categories() -> list[Category]:
    return db.session.query(Category).order_by(Category.name.asc()).all()


def create_category(name, description=None) -> Category:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Nome da categoria é obrigatório")
    name = name.strip()

    slug = slugify(name)
    if not slug:
        raise ValidationError(f"Nome de categoria inválido: {name}")

    duplicate = db.session.query(Category.id).filter(
        db.or_(db.func.lower(Category.name) == name.lower(), Category.slug == slug)
    ).first()
    if duplicate is not None:
        raise ValidationError(f"Categoria já cadastrada: {name}")

    def _op():
        category = Category(name=name, slug=slug, description=str(description or "").strip() or None)
        db.session.add(category)
        db.session.flush()
        return category

    return run_in_transaction(_op)
