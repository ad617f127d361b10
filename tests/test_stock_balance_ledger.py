"""Leaf writers: conditional stock updates, balance deltas and the append-only ledger."""

import pytest

from pos_backend.errors import InsufficientStock, NotFound, ValidationError
from pos_backend.models import Customer, Item, Transaction
from pos_backend.services import ledger, stock
from pos_backend.services.balance import adjust_balance


# ---------------------------------------------------------------------------
# Stock
# ---------------------------------------------------------------------------


def test_decrement_and_increment(session, make_item):
    item = make_item(stock=5)

    stock.decrement(session, item.id, 3)
    stock.increment(session, item.id, 1)
    session.commit()

    assert session.get(Item, item.id).stock == 3


def test_decrement_to_exactly_zero(session, make_item):
    item = make_item(stock=2)

    stock.decrement(session, item.id, 2)
    session.commit()

    assert session.get(Item, item.id).stock == 0


def test_decrement_fails_closed_below_zero(session, make_item):
    item = make_item(stock=1)

    with pytest.raises(InsufficientStock):
        stock.decrement(session, item.id, 2)
    session.rollback()

    assert session.get(Item, item.id).stock == 1


def test_decrement_unknown_item(session):
    with pytest.raises(NotFound):
        stock.decrement(session, 999, 1)


def test_increment_unknown_item(session):
    with pytest.raises(NotFound):
        stock.increment(session, 999, 1)


# ---------------------------------------------------------------------------
# Balance
# ---------------------------------------------------------------------------


def test_adjust_balance_returns_new_balance(session, make_customer):
    customer = make_customer()

    assert adjust_balance(session, customer.id, 100.0) == 100.0
    assert adjust_balance(session, customer.id, -30.5) == 69.5
    session.commit()

    assert session.get(Customer, customer.id).balance == 69.5


def test_adjust_balance_rounds_to_cents(session, make_customer):
    customer = make_customer()

    adjust_balance(session, customer.id, 0.1)
    assert adjust_balance(session, customer.id, 0.2) == 0.3


def test_adjust_balance_unknown_customer(session):
    with pytest.raises(NotFound):
        adjust_balance(session, 999, 10.0)


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


def test_append_persists_signed_amount(session, make_customer):
    customer = make_customer()

    tx = ledger.append(session, customer_id=customer.id, amount=-12.346, type="payment", description="cash")
    session.commit()

    stored = session.get(Transaction, tx.id)
    assert stored.amount == -12.35
    assert stored.type == "payment"
    assert stored.bill_id is None


def test_append_rejects_unknown_type(session, make_customer):
    customer = make_customer()

    with pytest.raises(ValidationError):
        ledger.append(session, customer_id=customer.id, amount=1, type="adjustment")


def test_list_entries_newest_first_and_filtered(session, make_customer):
    alice = make_customer(name="Alice")
    bob = make_customer(name="Bob")
    session.add(Transaction(customer_id=alice.id, amount=10, type="bill", created_at="2024-01-01T10:00:00"))
    session.add(Transaction(customer_id=alice.id, amount=-5, type="payment", created_at="2024-01-03T10:00:00"))
    session.add(Transaction(customer_id=alice.id, amount=7, type="bill", created_at="2024-01-05T10:00:00"))
    session.add(Transaction(customer_id=bob.id, amount=99, type="bill", created_at="2024-01-04T10:00:00"))
    session.commit()

    rows = ledger.list_entries(session, customer_id=alice.id)
    assert [r.amount for r in rows] == [7, -5, 10]

    ranged = ledger.list_entries(session, from_date="2024-01-03", to_date="2024-01-04")
    assert sorted(r.amount for r in ranged) == [-5, 99]


def test_list_entries_rejects_bad_date(session):
    with pytest.raises(ValidationError):
        ledger.list_entries(session, from_date="03/01/2024")


def test_replay_balance_sums_ledger(session, make_customer):
    customer = make_customer()
    assert ledger.replay_balance(session, customer.id) == 0.0

    ledger.append(session, customer_id=customer.id, amount=55, type="bill")
    ledger.append(session, customer_id=customer.id, amount=-20, type="payment")
    session.commit()

    assert ledger.replay_balance(session, customer.id) == 35.0
