"""Shared pytest fixtures: in-memory database, seeded records, authenticated client."""

from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlmodel import Session

from pos_backend.auth import create_access_token
from pos_backend.config import Settings
from pos_backend.db import build_engine, init_db
from pos_backend.main import create_app
from pos_backend.models import Customer, Item
from pos_backend.schemas import BillCreate

TEST_SECRET = "test-secret"


@pytest.fixture
def engine() -> Iterator[Engine]:
    eng = build_engine("sqlite://")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine) -> Iterator[Session]:
    with Session(engine) as s:
        yield s


def _add_item(session: Session, **overrides) -> Item:
    data = {
        "name": "Widget",
        "cost_price": 10.0,
        "selling_price": 20.0,
        "stock": 5,
        "tax_rate": 0.0,
    }
    data.update(overrides)
    item = Item(**data)
    session.add(item)
    session.commit()
    session.refresh(item)
    return item


_account_seq = iter(range(1, 10_000))


def _add_customer(session: Session, **overrides) -> Customer:
    data = {
        "name": "Asha Rao",
        "phone": "9876543210",
        "account_number": f"ACC-{next(_account_seq):04d}",
    }
    data.update(overrides)
    customer = Customer(**data)
    session.add(customer)
    session.commit()
    session.refresh(customer)
    return customer


@pytest.fixture
def make_item(session) -> Callable[..., Item]:
    return lambda **kw: _add_item(session, **kw)


@pytest.fixture
def make_customer(session) -> Callable[..., Customer]:
    return lambda **kw: _add_customer(session, **kw)


def bill_payload(customer_id: int, lines, markup: float = 0.0, discount: float = 0.0,
                 payment_type: str = "cash", partial_payment: float = 0.0, **overrides) -> dict:
    """
    Build a consistent bill request from ``(item_id, quantity, custom_price)``
    tuples; ``overrides`` replaces any computed field.
    """
    items = [
        {
            "item_id": item_id,
            "quantity": qty,
            "unit_price": price,
            "custom_price": price,
            "total": qty * price,
        }
        for item_id, qty, price in lines
    ]
    subtotal = sum(line["total"] for line in items)
    grand_total = round(subtotal * (1 + markup / 100) * (1 - discount / 100), 2)
    data = {
        "customer_id": customer_id,
        "items": items,
        "subtotal": subtotal,
        "markup": markup,
        "discount": discount,
        "grand_total": grand_total,
        "payment_type": payment_type,
        "partial_payment": partial_payment,
    }
    data.update(overrides)
    return data


@pytest.fixture
def bill_json() -> Callable[..., dict]:
    return bill_payload


@pytest.fixture
def bill_request() -> Callable[..., BillCreate]:
    return lambda *args, **kw: BillCreate(**bill_payload(*args, **kw))


# ---------------------------------------------------------------------------
# HTTP layer
# ---------------------------------------------------------------------------


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(database_url=f"sqlite:///{tmp_path / 'pos.db'}", jwt_secret=TEST_SECRET, log_level="WARNING")


@pytest.fixture
def anon_client(settings) -> Iterator[TestClient]:
    app = create_app(settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def client(anon_client, settings) -> TestClient:
    token = create_access_token(settings, user_id=1, role="admin")
    anon_client.headers.update({"Authorization": f"Bearer {token}"})
    return anon_client


@pytest.fixture
def api_session(anon_client) -> Iterator[Session]:
    """Session on the running app's database, for seeding and inspection."""
    with Session(anon_client.app.state.engine) as s:
        yield s


@pytest.fixture
def fresh(api_session) -> Callable:
    """Re-read a row after the app changed it through its own session."""

    def _get(model, pk):
        api_session.expire_all()
        return api_session.get(model, pk)

    return _get


@pytest.fixture
def api_item(api_session) -> Callable[..., Item]:
    return lambda **kw: _add_item(api_session, **kw)


@pytest.fixture
def api_customer(api_session) -> Callable[..., Customer]:
    return lambda **kw: _add_customer(api_session, **kw)
