"""
Pytest fixtures for salon POS backend tests.

Provides the in-memory application, a per-test table wipe, and small
factories for branches, people, catalog items and stock.
"""

from decimal import Decimal

import pytest

from salon_pos import create_app
from salon_pos.decorators import Actor
from salon_pos.extensions import db
from salon_pos.models import (
    Branch,
    Customer,
    Inventory,
    InventoryLocation,
    Product,
    Service,
    ServiceCategory,
    User,
)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'STRICT_SALE_INVENTORY': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
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
        db.session.expunge_all()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def branch(db_session):
    """Main branch with its shop-floor stock location."""
    branch = Branch(code="MAIN", name="Main Branch", timezone="UTC", is_active=True)
    db_session.add(branch)
    db_session.flush()
    db_session.add(InventoryLocation(branch_id=branch.id, name="Main Store", location_type="store", is_active=True))
    db_session.commit()
    return branch


@pytest.fixture(scope='function')
def other_branch(db_session):
    branch = Branch(code="NORTH", name="North Branch", timezone="UTC", is_active=True)
    db_session.add(branch)
    db_session.flush()
    db_session.add(InventoryLocation(branch_id=branch.id, name="North Store", location_type="store", is_active=True))
    db_session.commit()
    return branch


@pytest.fixture(scope='function')
def kolkata_branch(db_session):
    """Branch five and a half hours ahead of UTC."""
    branch = Branch(code="BLR", name="Bangalore Branch", timezone="Asia/Kolkata", is_active=True)
    db_session.add(branch)
    db_session.flush()
    db_session.add(InventoryLocation(branch_id=branch.id, name="Bangalore Store", location_type="store", is_active=True))
    db_session.commit()
    return branch


@pytest.fixture(scope='function')
def store_location(branch):
    return branch.active_location


@pytest.fixture(scope='function')
def warehouse(db_session, branch):
    location = InventoryLocation(branch_id=branch.id, name="Back Room", location_type="warehouse", is_active=True)
    db_session.add(location)
    db_session.commit()
    return location


@pytest.fixture(scope='function')
def owner(db_session):
    user = User(username="owner", full_name="Salon Owner", role="owner", is_active=True)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def owner_actor(owner):
    return Actor(user_id=owner.id, role="owner")


@pytest.fixture(scope='function')
def make_employee(db_session, branch):
    def make(full_name, username=None, role="employee", monthly_star_goal=None):
        user = User(
            username=username or full_name.lower().replace(" ", "_"),
            full_name=full_name,
            role=role,
            branch_id=branch.id,
            monthly_star_goal=monthly_star_goal,
            is_active=True,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return make


@pytest.fixture(scope='function')
def customer(db_session):
    customer = Customer(customer_name="Priya Sharma", phone="9876543210", gender="female")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def haircut(db_session):
    category = ServiceCategory(category_name="Hair")
    db_session.add(category)
    db_session.flush()
    service = Service(category_id=category.id, service_name="Haircut", price=Decimal("300"), star_points=10)
    db_session.add(service)
    db_session.commit()
    return service


@pytest.fixture(scope='function')
def shampoo(db_session):
    product = Product(
        product_name="Argan Shampoo",
        sku="SH-001",
        category="Hair Care",
        cost_price=Decimal("120"),
        selling_price=Decimal("250"),
        reorder_level=2,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def add_stock(db_session):
    def add(product, location, quantity, batch_number=None, expiry_date=None):
        row = Inventory(
            product_id=product.id,
            location_id=location.id,
            batch_number=batch_number,
            quantity=quantity,
            reserved_quantity=0,
            expiry_date=expiry_date,
        )
        db_session.add(row)
        db_session.commit()
        return row

    return add


@pytest.fixture(scope='function')
def bill_payload(branch, customer):
    """Builder for createBill payloads against the main branch and customer."""
    def build(items, payments, **extra):
        payload = {
            "customer_id": customer.id,
            "branch_id": branch.id,
            "items": items,
            "payments": payments,
        }
        payload.update(extra)
        return payload

    return build


@pytest.fixture(scope='function')
def owner_headers(owner):
    return {"X-User-Id": str(owner.id), "X-User-Role": "owner"}
