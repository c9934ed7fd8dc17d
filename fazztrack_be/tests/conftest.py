import os
import tempfile

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["MEDIA_ROOT"] = tempfile.mkdtemp(prefix="fazztrack-media-")
os.environ["PUBLIC_BASE_URL"] = "http://testserver"

from datetime import date, timedelta

import pytest
from fastapi.encoders import jsonable_encoder
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fazztrack.main import app
from fazztrack.models.user import Base, User, get_db
from fazztrack.models.order import Client, Product
import fazztrack.models.payment  # noqa: F401
import fazztrack.models.design  # noqa: F401
import fazztrack.models.job  # noqa: F401
from fazztrack.schemas.order import OrderCreate
from fazztrack.services import order_service
from fazztrack.services.job_scheduler import PHASE_ROLES
from fazztrack.utils.security import create_access_token


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def client(db):
    def _get_db():
        try:
            yield db
        finally:
            # drop whatever a failed request left uncommitted
            db.rollback()

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(department, production_role=None, name=None):
        counter["n"] += 1
        user = User(
            name=name or f"{department} {counter['n']}",
            email=f"user{counter['n']}@fazztrack.test",
            department=department,
            production_role=production_role,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def superadmin(make_user):
    return make_user("SuperAdmin")


@pytest.fixture
def admin(make_user):
    return make_user("Admin")


@pytest.fixture
def sales(make_user):
    return make_user("Sales")


@pytest.fixture
def designer(make_user):
    return make_user("Designer", "Designer")


@pytest.fixture
def crew(make_user, designer):
    """One user per phase holding the matching production role."""
    members = {"design": designer}
    for phase, role in PHASE_ROLES.items():
        if phase != "design":
            members[phase] = make_user("Production", role)
    return members


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.email)}"}

    return _headers


@pytest.fixture
def customer(db):
    c = Client(name="Acme Sports Club", email="club@acme.test", phone="0123456789", address="1 Stadium Road")
    db.add(c)
    db.commit()
    return c


@pytest.fixture
def products(db):
    shirt = Product(name="Jersey", price=15.99)
    sticker = Product(name="Sticker", price=0.05)
    db.add_all([shirt, sticker])
    db.commit()
    return shirt, sticker


def order_payload(customer, products, **overrides):
    today = date.today()
    shirt, _ = products
    data = {
        "client_id": customer.client_id,
        "job_name": "Club jerseys",
        "delivery_method": "self_collect",
        "due_date_design": today + timedelta(days=3),
        "due_date_production": today + timedelta(days=10),
        "estimated_delivery_date": today + timedelta(days=14),
        "items": [{"product_id": shirt.product_id, "quantity": 10, "price": 15.99}],
        "payments": [
            {
                "type": "deposit_design",
                "amount": 50,
                "payment_date": today,
                "payment_method": "cash",
            }
        ],
    }
    data.update(overrides)
    return data


@pytest.fixture
def order_data(customer, products):
    def _data(**overrides):
        return jsonable_encoder(order_payload(customer, products, **overrides))

    return _data


@pytest.fixture
def make_order(db, sales, customer, products):
    def _make(creator=None, **overrides):
        payload = OrderCreate(**order_payload(customer, products, **overrides))
        order = order_service.create_order(db, creator or sales, payload)
        db.commit()
        return order

    return _make
