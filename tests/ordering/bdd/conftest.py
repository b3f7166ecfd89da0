"""Shared BDD fixtures and step definitions for the Ordering domain."""

import pytest
from protean.exceptions import InvalidOperationError, InvalidStateError
from pytest_bdd import given, parsers, then, when


@pytest.fixture()
def error():
    """Container for the exception raised by a refused step."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the catalogue price of "{key}" is {price:d}'))
def _(catalogue, key, price):
    catalogue.update_price(key, price)


@given(
    parsers.cfparse('a customer "{phone}" ordered "{key}" for {duration:d} months'),
    target_fixture="order",
)
def _(lifecycle, phone, key, duration):
    return lifecycle.create_order(customer_phone=phone, package_key=key, duration=duration)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
def _attempt(error, action):
    try:
        action()
    except (InvalidStateError, InvalidOperationError) as exc:
        error["exc"] = exc


@given(parsers.cfparse('"{actor}" moves the order to "{status}"'), target_fixture="order")
@when(parsers.cfparse('"{actor}" moves the order to "{status}"'), target_fixture="order")
def _(lifecycle, order, actor, status):
    return lifecycle.transition(order.id, status, actor=actor)


@when(parsers.cfparse('"{actor}" tries to move the order to "{status}"'))
def _(lifecycle, order, error, actor, status):
    _attempt(error, lambda: lifecycle.transition(order.id, status, actor=actor))


@when(parsers.cfparse('"{actor}" tries to cancel the order'))
def _(lifecycle, order, error, actor):
    _attempt(error, lambda: lifecycle.cancel_order(order.id, actor=actor))


@when(parsers.cfparse('"{actor}" tries to delete the order'))
def _(lifecycle, order, error, actor):
    _attempt(error, lambda: lifecycle.delete_order(order.id, actor=actor))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(lifecycle, order, status):
    assert lifecycle.get_order(order.id).status == status


@then(parsers.cfparse("the order total is {total:d}"))
def _(lifecycle, order, total):
    assert lifecycle.get_order(order.id).total_amount == total


@then(parsers.cfparse('the history reads "{statuses}"'))
def _(lifecycle, order, statuses):
    expected = [status.strip() for status in statuses.split(",")]
    assert [entry.status for entry in lifecycle.get_order(order.id).history] == expected


@then(parsers.cfparse('the latest history note is "{note}"'))
def _(lifecycle, order, note):
    assert lifecycle.get_order(order.id).history[-1].note == note


@then("the change is refused")
def _(error):
    assert error["exc"] is not None
