"""
Pytest fixtures for promostock backend tests.

Provides test database setup, catalog fixtures, and test client.
"""

import pytest
from promostock import create_app
from promostock.extensions import db, notifier
from promostock.models import Employee
from promostock.services import catalog_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'LEDGER_RETRY_BACKOFF_SECONDS': 0,
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
        notifier.clear()

        yield db.session

        # Cleanup after test
        db.session.rollback()
        notifier.clear()


@pytest.fixture(scope='function')
def employee(db_session):
    """Active warehouse employee."""
    return catalog_service.create_employee("Wendy Warehouse", "WW")


@pytest.fixture(scope='function')
def inactive_employee(db_session):
    emp = Employee(full_name="Former Staff", initials="FS", is_active=False)
    db_session.add(emp)
    db_session.commit()
    return emp


@pytest.fixture(scope='function')
def brand_a(db_session, employee):
    return catalog_service.create_brand({"name": "Brand A"}, employee.id)


@pytest.fixture(scope='function')
def brand_b(db_session, employee):
    return catalog_service.create_brand({"name": "Brand B"}, employee.id)


@pytest.fixture(scope='function')
def promoter(db_session, employee):
    return catalog_service.create_promoter({"name": "Pat Promoter", "clothing_size": "M"}, employee.id)


@pytest.fixture(scope='function')
def other_promoter(db_session, employee):
    return catalog_service.create_promoter({"name": "Quinn Promoter"}, employee.id)


@pytest.fixture(scope='function')
def item(db_session, brand_a, employee):
    """T-shirt under Brand A with sizes M (10) and L (5)."""
    return catalog_service.create_item(
        brand_a.id,
        "Festival T-shirt",
        "TS-001",
        [("M", 10), ("L", 5)],
        employee.id,
    )


@pytest.fixture(scope='function')
def size_m(item):
    return next(s for s in item.sizes if s.size == "M")


@pytest.fixture(scope='function')
def size_l(item):
    return next(s for s in item.sizes if s.size == "L")


def employee_headers(employee_id) -> dict:
    """Helper to create acting-employee headers."""
    return {'X-Employee-Id': str(employee_id)}


@pytest.fixture(scope='function')
def headers(employee):
    return employee_headers(employee.id)
