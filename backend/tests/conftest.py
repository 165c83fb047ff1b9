"""
Pytest fixtures for stockledger backend tests.

Provides the Flask app on in-memory SQLite, a test client, and an
InventoryService over an isolated in-memory store for service tests.
"""

import pytest
from stockledger import create_app
from stockledger.extensions import db
from stockledger.services.inventory_service import InventoryService
from stockledger.services.key_value_store import MemoryKeyValueStore


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'ENFORCE_UNIQUE_SKU': False,
        'SEED_DEFAULTS_ON_INIT': True,
        'LOG_LEVEL': 'WARNING',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


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
def client(app, db_session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def alice_headers():
    return {"X-User-Id": "alice"}


@pytest.fixture(scope='function')
def bob_headers():
    return {"X-User-Id": "bob"}


@pytest.fixture(scope='function')
def kv_store():
    """Isolated in-memory key-value store."""
    return MemoryKeyValueStore()


@pytest.fixture(scope='function')
def service(kv_store):
    """InventoryService for user 'tester' with no starter data."""
    return InventoryService(kv_store, "tester", seed_defaults=False)


@pytest.fixture(scope='function')
def wh_main(service):
    """Warehouse WH-001."""
    return service.add_warehouse(name="Main Warehouse", code="WH-001", address="1 Dock Rd")


@pytest.fixture(scope='function')
def wh_second(service):
    """Warehouse WH-002."""
    return service.add_warehouse(name="Second Warehouse", code="WH-002")


@pytest.fixture(scope='function')
def product(service):
    """Product SKU1 with reorder level 10."""
    return service.add_product(sku="SKU1", name="Widget", category="Tools", reorder_level=10)


@pytest.fixture(scope='function')
def stocked(service, wh_main, product):
    """SKU1 with 20 units at WH-001, put there by a validated adjustment."""
    adjustment = service.add_adjustment(
        warehouse_id=wh_main.id,
        lines=[{"product_id": product.id, "difference": 20}],
    )
    service.validate_adjustment(adjustment.id)
    return adjustment
