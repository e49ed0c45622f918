import asyncio

import pytest

from errors import ConflictError, InvalidRequestError
from factories import ADMIN_PROFILE, DRIVER_ID
from repositories import drivers_repository, orders_repository
from schemas import DriverCreate, DriverUpdate
from services import drivers_service

DRIVER_ROW = {"id": DRIVER_ID, "name": "Carlos", "status": "busy", "average_delivery_time": 30}


class DuplicateKey(Exception):
    code = "23505"


def test_statistics_count_each_status():
    rows = [
        {"status": "available", "average_delivery_time": 20},
        {"status": "busy", "average_delivery_time": 31},
        {"status": "busy", "average_delivery_time": None},
        {"status": "offline"},
    ]

    stats = drivers_service.compute_statistics(rows)

    assert (stats.total, stats.available, stats.busy, stats.offline) == (4, 1, 2, 1)
    assert stats.average_delivery_time == 13


def test_unknown_status_filter_is_rejected():
    with pytest.raises(InvalidRequestError):
        asyncio.run(drivers_service.list_drivers("sleeping"))


def test_busy_drivers_list_their_current_orders(client, login_as, monkeypatch):
    login_as(ADMIN_PROFILE)
    monkeypatch.setattr(drivers_repository, "fetch_drivers", lambda status=None: [DRIVER_ROW])
    monkeypatch.setattr(
        orders_repository, "fetch_driver_order_ids", lambda driver_id, statuses: ["order-1"]
    )

    response = client.get("/api/drivers", params={"status": "all"})

    assert response.status_code == 200
    body = response.json()
    assert body["drivers"][0]["current_orders"] == ["order-1"]
    assert body["statistics"]["busy"] == 1


def test_new_driver_starts_offline(monkeypatch):
    stored = {}

    def insert_driver(record):
        stored.update(record)
        return {**record, "id": DRIVER_ID}

    monkeypatch.setattr(drivers_repository, "insert_driver", insert_driver)
    payload = DriverCreate(name="Carlos", email="Carlos@Example.com", phone="11999990000", vehicle_type="moto")

    driver = asyncio.run(drivers_service.create_driver(payload))

    assert driver.status == "offline"
    assert stored["email"] == "carlos@example.com"
    assert stored["total_deliveries"] == 0


def test_duplicate_driver_email_is_conflict(monkeypatch):
    def insert_driver(record):
        raise DuplicateKey("duplicate key value violates unique constraint")

    monkeypatch.setattr(drivers_repository, "insert_driver", insert_driver)
    payload = DriverCreate(name="Carlos", email="carlos@example.com", phone="11999990000", vehicle_type="moto")

    with pytest.raises(ConflictError):
        asyncio.run(drivers_service.create_driver(payload))


def test_empty_update_is_rejected():
    with pytest.raises(InvalidRequestError):
        asyncio.run(drivers_service.update_driver(DRIVER_ID, DriverUpdate()))


def test_status_change_stamps_last_active(monkeypatch):
    changes_seen = {}
    monkeypatch.setattr(drivers_repository, "fetch_driver", lambda driver_id: dict(DRIVER_ROW))

    def update_driver(driver_id, changes):
        changes_seen.update(changes)
        return {**DRIVER_ROW, **changes}

    monkeypatch.setattr(drivers_repository, "update_driver", update_driver)

    driver = asyncio.run(drivers_service.update_driver(DRIVER_ID, DriverUpdate(status="offline")))

    assert driver.status == "offline"
    assert "last_active_at" in changes_seen


def _counts(monkeypatch, active, total):
    monkeypatch.setattr(drivers_repository, "fetch_driver", lambda driver_id: dict(DRIVER_ROW))
    monkeypatch.setattr(
        orders_repository,
        "count_driver_orders",
        lambda driver_id, statuses=None: active if statuses else total,
    )


def test_driver_with_active_orders_cannot_be_deleted(monkeypatch):
    _counts(monkeypatch, active=1, total=3)

    with pytest.raises(InvalidRequestError):
        asyncio.run(drivers_service.delete_driver(DRIVER_ID))


def test_driver_with_history_is_soft_deleted(monkeypatch):
    _counts(monkeypatch, active=0, total=3)
    updates = []
    monkeypatch.setattr(
        drivers_repository, "update_driver", lambda driver_id, changes: updates.append(changes) or changes
    )

    result = asyncio.run(drivers_service.delete_driver(DRIVER_ID))

    assert result["action"] == "soft_delete"
    assert result["total_orders"] == 3
    assert updates[0]["status"] == "offline"
    assert "deleted_at" in updates[0]


def test_driver_with_recorded_deliveries_is_soft_deleted(monkeypatch):
    _counts(monkeypatch, active=0, total=0)
    monkeypatch.setattr(
        drivers_repository, "fetch_driver", lambda driver_id: {**DRIVER_ROW, "total_deliveries": 37}
    )
    updates = []
    monkeypatch.setattr(
        drivers_repository, "update_driver", lambda driver_id, changes: updates.append(changes) or changes
    )

    def fail(driver_id):
        raise AssertionError("driver with deliveries must not be removed")

    monkeypatch.setattr(drivers_repository, "delete_driver", fail)

    result = asyncio.run(drivers_service.delete_driver(DRIVER_ID))

    assert result["action"] == "soft_delete"
    assert "deleted_at" in updates[0]


def test_driver_without_history_is_removed(monkeypatch):
    _counts(monkeypatch, active=0, total=0)
    deleted = []
    monkeypatch.setattr(
        drivers_repository, "delete_driver", lambda driver_id: deleted.append(driver_id) or True
    )

    result = asyncio.run(drivers_service.delete_driver(DRIVER_ID))

    assert result == {"message": "Driver removed", "action": "delete", "total_orders": 0}
    assert deleted == [DRIVER_ID]
