from datetime import datetime, timezone

import pytest

from services.order_status import (
    CANCELLED,
    DELETABLE_STATUSES,
    DELIVERED,
    ON_THE_WAY,
    PREPARING,
    RECEIVED,
    can_transition,
    is_valid_status,
    transition_fields,
)


@pytest.mark.parametrize(
    "current,new",
    [
        (RECEIVED, PREPARING),
        (RECEIVED, DELIVERED),
        (PREPARING, ON_THE_WAY),
        (ON_THE_WAY, DELIVERED),
        (PREPARING, PREPARING),
    ],
)
def test_forward_and_same_status_moves_are_allowed(current, new):
    assert can_transition(current, new)


@pytest.mark.parametrize(
    "current,new",
    [
        (PREPARING, RECEIVED),
        (ON_THE_WAY, PREPARING),
        (DELIVERED, ON_THE_WAY),
        (DELIVERED, RECEIVED),
    ],
)
def test_backward_moves_are_rejected(current, new):
    assert not can_transition(current, new)


@pytest.mark.parametrize("current", [RECEIVED, PREPARING, ON_THE_WAY, DELIVERED])
def test_any_status_can_be_cancelled(current):
    assert can_transition(current, CANCELLED)


@pytest.mark.parametrize("new", [RECEIVED, PREPARING, ON_THE_WAY, DELIVERED, CANCELLED])
def test_cancelled_order_can_be_reopened(new):
    assert can_transition(CANCELLED, new)


def test_unknown_current_status_is_accepted_but_unknown_target_is_not():
    assert can_transition("PENDING", PREPARING)
    assert not can_transition(RECEIVED, "SHIPPED")
    assert not is_valid_status("received")


def test_transition_fields_stamp_delivery_and_cancellation():
    moment = datetime(2024, 5, 1, 20, 30, tzinfo=timezone.utc)

    delivered = transition_fields(DELIVERED, moment)
    assert delivered == {
        "status": DELIVERED,
        "updated_at": moment.isoformat(),
        "delivered_at": moment.isoformat(),
    }
    cancelled = transition_fields(CANCELLED, moment)
    assert cancelled["cancelled_at"] == moment.isoformat()
    assert "delivered_at" not in cancelled
    assert set(transition_fields(PREPARING, moment)) == {"status", "updated_at"}


def test_only_received_and_cancelled_orders_are_deletable():
    assert DELETABLE_STATUSES == {RECEIVED, CANCELLED}
