"""
Pytest fixtures for PDV backend tests.

Provides the in-memory database, seeded master/cashier accounts, a small
product catalog and the test client.
"""

import pytest

from pdv import create_app
from pdv.extensions import db
from pdv.models import Client, InternalRole, Product
from pdv.services import auth_service, permission_service, role_service


MASTER_PASSWORD = "admin123"
CASHIER_PASSWORD = "caixa1"

CASHIER_PERMISSIONS = {
    "sales.view": True,
    "sales.create": True,
    "products.view": True,
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'STORE_NAME': 'Loja Teste',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def master_role(db_session):
    return role_service.create_master_role()


@pytest.fixture(scope='function')
def master_user(db_session, master_role):
    return auth_service.create_user(
        username="admin",
        password=MASTER_PASSWORD,
        full_name="Administrador",
        role_id=master_role.id,
    )


@pytest.fixture(scope='function')
def cashier_role(db_session):
    role = role_service.create_role("Caixa", description="Frente de caixa")
    permission_service.set_permissions(role.id, CASHIER_PERMISSIONS)
    return role


@pytest.fixture(scope='function')
def cashier_user(db_session, cashier_role):
    return auth_service.create_user(
        username="caixa",
        password=CASHIER_PASSWORD,
        full_name="Maria Caixa",
        role_id=cashier_role.id,
    )


@pytest.fixture(scope='function')
def products(db_session):
    """Two products with known stock and cost."""
    shirt = Product(
        sku="CAM-001",
        name="Camiseta",
        price_varejo_cents=1000,
        price_revenda_cents=800,
        cost_price_cents=400,
        stock=10,
    )
    cap = Product(
        sku="BON-001",
        name="Boné",
        price_varejo_cents=500,
        price_revenda_cents=400,
        cost_price_cents=200,
        stock=5,
    )
    db_session.add_all([shirt, cap])
    db_session.commit()
    return shirt, cap


@pytest.fixture(scope='function')
def sample_client(db_session):
    record = Client(empresa_nome="Mercado Central", cnpj_cpf="12.345.678/0001-90")
    db_session.add(record)
    db_session.commit()
    return record


def login(client, username: str, password: str):
    return client.post('/api/internal-auth', json={
        'action': 'login',
        'username': username,
        'password': password,
    })


def get_auth_token(client, username: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = login(client, username, password)
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def master_headers(client, master_user):
    return auth_headers(get_auth_token(client, "admin", MASTER_PASSWORD))


@pytest.fixture(scope='function')
def cashier_headers(client, cashier_user):
    return auth_headers(get_auth_token(client, "caixa", CASHIER_PASSWORD))


def stock_of(product_id: int) -> int:
    db.session.expire_all()
    return db.session.get(Product, product_id).stock


def role_named(name: str) -> InternalRole:
    return db.session.query(InternalRole).filter_by(name=name).first()
