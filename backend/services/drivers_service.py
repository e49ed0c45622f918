import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from constants import DRIVER_AVAILABLE, DRIVER_BUSY, DRIVER_OFFLINE, DRIVER_STATUSES
from errors import BackendError, ConflictError, InvalidRequestError, NotFoundError
from repositories import drivers_repository, orders_repository
from schemas import DriverCreate, DriverStatistics, DriverUpdate, DriverView
from services.order_status import ACTIVE_DELIVERY_STATUSES, ON_THE_WAY
from validators import sanitize_string

logger = logging.getLogger("pizza-delivery")


def _is_duplicate(exc: Exception) -> bool:
    code = getattr(exc, "code", None)
    return code == "23505" or "duplicate key" in str(exc).lower()


def _format_driver(row: Dict[str, Any], current_orders: Optional[List[str]] = None) -> DriverView:
    return DriverView(
        id=row["id"],
        name=row.get("name") or "",
        email=row.get("email"),
        phone=row.get("phone"),
        vehicle_type=row.get("vehicle_type"),
        vehicle_plate=row.get("vehicle_plate"),
        status=row.get("status") or DRIVER_OFFLINE,
        current_location=row.get("current_location"),
        total_deliveries=row.get("total_deliveries") or 0,
        average_rating=float(row.get("average_rating") or 0),
        average_delivery_time=float(row.get("average_delivery_time") or 0),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
        last_active_at=row.get("last_active_at"),
        current_orders=current_orders or [],
    )


async def _current_orders(row: Dict[str, Any]) -> List[str]:
    if row.get("status") != DRIVER_BUSY:
        return []
    try:
        return await asyncio.to_thread(
            orders_repository.fetch_driver_order_ids, row["id"], [ON_THE_WAY]
        )
    except Exception:
        logger.warning("Failed to load current orders for driver %s", row["id"], exc_info=True)
        return []


def compute_statistics(rows: List[Dict[str, Any]]) -> DriverStatistics:
    counts = {status: 0 for status in DRIVER_STATUSES}
    for row in rows:
        if row.get("status") in counts:
            counts[row["status"]] += 1
    average = 0
    if rows:
        average = round(sum(float(row.get("average_delivery_time") or 0) for row in rows) / len(rows))
    return DriverStatistics(
        total=len(rows),
        available=counts[DRIVER_AVAILABLE],
        busy=counts[DRIVER_BUSY],
        offline=counts[DRIVER_OFFLINE],
        average_delivery_time=average,
    )


async def list_drivers(status: Optional[str] = None) -> Tuple[List[DriverView], DriverStatistics]:
    if status == "all":
        status = None
    if status and status not in DRIVER_STATUSES:
        raise InvalidRequestError(f"Status must be one of: {', '.join(DRIVER_STATUSES)}")
    rows = await asyncio.to_thread(drivers_repository.fetch_drivers, status)
    current = await asyncio.gather(*(_current_orders(row) for row in rows))
    drivers = [_format_driver(row, orders) for row, orders in zip(rows, current)]
    return drivers, compute_statistics(rows)


async def get_driver(driver_id: str) -> DriverView:
    row = await asyncio.to_thread(drivers_repository.fetch_driver, driver_id)
    if not row:
        raise NotFoundError("Driver not found")
    return _format_driver(row, await _current_orders(row))


async def create_driver(payload: DriverCreate) -> DriverView:
    record = {
        "name": sanitize_string(payload.name),
        "email": payload.email,
        "phone": payload.phone,
        "vehicle_type": payload.vehicle_type,
        "vehicle_plate": payload.vehicle_plate,
        "current_location": sanitize_string(payload.current_location),
        "status": DRIVER_OFFLINE,
        "total_deliveries": 0,
        "average_rating": 0,
        "average_delivery_time": 0,
    }
    try:
        row = await asyncio.to_thread(drivers_repository.insert_driver, record)
    except Exception as exc:
        if _is_duplicate(exc):
            raise ConflictError("This email is already used by another driver") from exc
        logger.exception("Failed to store driver")
        raise BackendError("Failed to create driver") from exc
    logger.info("Driver created id=%s", row.get("id"))
    return _format_driver(row)


async def update_driver(driver_id: str, payload: DriverUpdate) -> DriverView:
    values = payload.model_dump(exclude_unset=True)
    if not values:
        raise InvalidRequestError("Provide at least one field to update")
    existing = await asyncio.to_thread(drivers_repository.fetch_driver, driver_id)
    if not existing:
        raise NotFoundError("Driver not found")

    now = datetime.now(timezone.utc).isoformat()
    changes: Dict[str, Any] = dict(values)
    for key in ("name", "current_location"):
        if changes.get(key) is not None:
            changes[key] = sanitize_string(changes[key])
    if "status" in changes:
        changes["last_active_at"] = now
    changes["updated_at"] = now
    try:
        row = await asyncio.to_thread(drivers_repository.update_driver, driver_id, changes)
    except Exception as exc:
        if _is_duplicate(exc):
            raise ConflictError("Another driver already uses this email") from exc
        logger.exception("Failed to update driver %s", driver_id)
        raise BackendError("Failed to update driver") from exc
    if not row:
        raise NotFoundError("Driver not found")
    return _format_driver(row, await _current_orders(row))


async def delete_driver(driver_id: str) -> Dict[str, Any]:
    driver = await asyncio.to_thread(drivers_repository.fetch_driver, driver_id)
    if not driver:
        raise NotFoundError("Driver not found")

    active = await asyncio.to_thread(
        orders_repository.count_driver_orders, driver_id, ACTIVE_DELIVERY_STATUSES
    )
    if active:
        raise InvalidRequestError(
            f"Driver has {active} active order(s) and cannot be removed"
        )
    total = await asyncio.to_thread(orders_repository.count_driver_orders, driver_id)
    now = datetime.now(timezone.utc).isoformat()

    if total or (driver.get("total_deliveries") or 0) > 0:
        await asyncio.to_thread(
            drivers_repository.update_driver,
            driver_id,
            {"deleted_at": now, "status": DRIVER_OFFLINE, "updated_at": now},
        )
        logger.info("Driver %s deactivated; %s orders kept", driver_id, total)
        return {
            "message": "Driver deactivated; order history kept",
            "action": "soft_delete",
            "total_orders": total,
        }

    await asyncio.to_thread(drivers_repository.delete_driver, driver_id)
    logger.info("Driver %s deleted", driver_id)
    return {"message": "Driver removed", "action": "delete", "total_orders": 0}
