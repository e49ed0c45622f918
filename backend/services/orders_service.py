"""
Order workflows: checkout, admin listing and editing, status changes with
history, manual counter/phone orders and driver assignment.
"""

import asyncio
import json
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from constants import (
    DRIVER_AVAILABLE,
    DRIVER_BUSY,
    MANUAL_ORDER_ETA_MINUTES,
    ORDER_TYPE_COUNTER,
    ROLE_CUSTOMER,
    TOTAL_TOLERANCE,
)
from errors import BackendError, InvalidRequestError, NotFoundError, PermissionDeniedError
from repositories import drivers_repository, orders_repository
from repositories.profiles_repository import fetch_profile_by
from schemas import (
    ManualOrderCreate,
    ManualOrderResponse,
    OrderCreate,
    OrderCreated,
    OrderCustomer,
    OrderItemView,
    OrderUpdate,
    OrderView,
    StatusHistoryEntry,
)
from services import settings_service
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
from validators import is_uuid, sanitize_string

logger = logging.getLogger("pizza-delivery")

TRAILING_DASHES = re.compile(r"--+$")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _json_field(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            return value
    return value


def _format_item(row: Dict[str, Any]) -> OrderItemView:
    product = row.get("products") or {}
    return OrderItemView(
        id=row.get("id"),
        product_id=row.get("product_id"),
        name=row.get("name") or product.get("name") or "Produto",
        quantity=row.get("quantity") or 0,
        unit_price=row.get("unit_price"),
        total_price=row.get("total_price"),
        size=row.get("size"),
        toppings=_json_field(row.get("toppings")),
        special_instructions=row.get("special_instructions"),
        half_and_half=_json_field(row.get("half_and_half")),
    )


def format_order(row: Dict[str, Any]) -> OrderView:
    profile = row.get("profiles") or {}
    name = row.get("customer_name") or profile.get("full_name")
    customer = None
    if name or row.get("delivery_phone") or row.get("delivery_address"):
        customer = OrderCustomer(
            name=name or "Cliente",
            phone=row.get("delivery_phone") or profile.get("phone"),
            address=row.get("delivery_address"),
        )
    return OrderView(
        id=row["id"],
        status=row.get("status") or RECEIVED,
        user_id=row.get("user_id"),
        driver_id=row.get("driver_id"),
        total=row.get("total"),
        subtotal=row.get("subtotal"),
        delivery_fee=row.get("delivery_fee"),
        discount=row.get("discount"),
        payment_method=row.get("payment_method"),
        payment_status=row.get("payment_status"),
        customer_name=name,
        delivery_address=row.get("delivery_address"),
        delivery_phone=row.get("delivery_phone"),
        delivery_instructions=row.get("delivery_instructions"),
        estimated_delivery_time=row.get("estimated_delivery_time"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
        delivered_at=row.get("delivered_at"),
        cancelled_at=row.get("cancelled_at"),
        items=[_format_item(item) for item in row.get("order_items") or []],
        customer=customer,
    )


def compute_delivery_fee(subtotal: float, store: Dict[str, Any]) -> float:
    fee = float(store.get("delivery_fee") or 0)
    if store.get("freeDeliveryEnabled") and subtotal >= float(store.get("free_delivery_min") or 0):
        return 0.0
    return round(fee, 2)


def _item_records(order_id: str, payload: OrderCreate) -> List[Dict[str, Any]]:
    records = []
    for item in payload.items:
        records.append(
            {
                "order_id": order_id,
                "product_id": item.product_id,
                "name": sanitize_string(item.name) or "",
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "total_price": round(item.quantity * item.unit_price, 2),
                "size": item.size,
                "toppings": json.dumps(item.toppings),
                "special_instructions": sanitize_string(item.special_instructions),
                "half_and_half": (
                    json.dumps(item.half_and_half.model_dump()) if item.half_and_half else None
                ),
            }
        )
    return records


async def _insert_items_or_rollback(order_id: str, records: List[Dict[str, Any]]) -> None:
    try:
        await asyncio.to_thread(orders_repository.insert_order_items, records)
    except Exception as exc:
        logger.exception("Failed to store items for order %s; removing order", order_id)
        try:
            await asyncio.to_thread(orders_repository.delete_order, order_id)
        except Exception:  # pragma: no cover - network/database error
            logger.exception("Failed to remove order %s after item failure", order_id)
        raise BackendError("Failed to store order items") from exc


async def create_order(payload: OrderCreate, user_id: Optional[str] = None) -> OrderCreated:
    subtotal = round(sum(item.quantity * item.unit_price for item in payload.items), 2)
    if abs(subtotal - payload.total_amount) > TOTAL_TOLERANCE:
        raise InvalidRequestError(
            "Order total does not match items",
            details=[f"expected {subtotal:.2f}, received {payload.total_amount:.2f}"],
        )

    store = await settings_service.get_public_settings()
    if not store.get("acceptOrders", True) or not store.get("isOpen", True):
        raise InvalidRequestError("The restaurant is not accepting orders right now")
    min_order_value = float(store.get("min_order_value") or 0)
    if subtotal < min_order_value:
        raise InvalidRequestError(f"Minimum order value is {min_order_value:.2f}")

    delivery_fee = compute_delivery_fee(subtotal, store)
    eta_minutes = float(store.get("delivery_time") or MANUAL_ORDER_ETA_MINUTES)
    record = {
        "user_id": user_id,
        "status": RECEIVED,
        "subtotal": subtotal,
        "delivery_fee": delivery_fee,
        "discount": 0,
        "total": round(subtotal + delivery_fee, 2),
        "customer_name": sanitize_string(payload.customer_name),
        "delivery_address": sanitize_string(payload.delivery_address),
        "delivery_phone": payload.customer_phone,
        "delivery_instructions": sanitize_string(payload.special_instructions),
        "payment_method": payload.payment_method,
        "payment_status": "PENDING",
        "estimated_delivery_time": (_now() + timedelta(minutes=eta_minutes)).isoformat(),
    }
    try:
        order = await asyncio.to_thread(orders_repository.insert_order, record)
    except Exception as exc:
        logger.exception("Failed to store order")
        raise BackendError("Failed to create order") from exc

    await _insert_items_or_rollback(order["id"], _item_records(order["id"], payload))
    logger.info("Order created id=%s total=%s items=%s", order["id"], order.get("total"), len(payload.items))
    return OrderCreated(
        id=order["id"],
        status=order.get("status", RECEIVED),
        total_amount=float(order.get("total") or record["total"]),
        delivery_fee=delivery_fee,
        created_at=order.get("created_at"),
    )


async def list_orders(
    status: Optional[str] = None,
    user_id: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[OrderView]:
    if status == "all":
        status = None
    if status and not is_valid_status(status):
        raise InvalidRequestError("Invalid status")
    rows = await asyncio.to_thread(
        orders_repository.fetch_orders,
        status=status,
        user_id=user_id,
        limit=limit,
        offset=offset,
    )
    return [format_order(row) for row in rows]


async def _fetch_or_404(order_id: str, columns: str = "*") -> Dict[str, Any]:
    if not is_uuid(order_id):
        raise InvalidRequestError("Invalid order id")
    row = await asyncio.to_thread(orders_repository.fetch_order, order_id, columns)
    if not row:
        raise NotFoundError("Order not found")
    return row


async def get_order(order_id: str, user_id: Optional[str] = None, staff: bool = True) -> OrderView:
    row = await _fetch_or_404(order_id, orders_repository.ORDER_WITH_ITEMS)
    if not staff and row.get("user_id") != user_id:
        raise PermissionDeniedError("You can only view your own orders")
    return format_order(row)


async def update_order(order_id: str, payload: OrderUpdate) -> OrderView:
    values = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not values:
        raise InvalidRequestError("No fields to update")
    if "status" in values:
        return await update_status(order_id, values["status"], None, extra=values)
    current = await _fetch_or_404(order_id, "id")
    changes: Dict[str, Any] = {"updated_at": _now().isoformat()}
    if "delivery_instructions" in values:
        changes["delivery_instructions"] = sanitize_string(values["delivery_instructions"])
    if "estimated_delivery_time" in values:
        changes["estimated_delivery_time"] = values["estimated_delivery_time"].isoformat()
    row = await asyncio.to_thread(orders_repository.update_order, current["id"], changes)
    if not row:
        raise NotFoundError("Order not found")
    return format_order(row)


async def delete_order(order_id: str) -> None:
    current = await _fetch_or_404(order_id, "id, status")
    if current.get("status") not in DELETABLE_STATUSES:
        raise InvalidRequestError("Only received or cancelled orders can be deleted")
    await asyncio.to_thread(orders_repository.delete_order, order_id)
    logger.info("Deleted order id=%s status=%s", order_id, current.get("status"))


async def _record_history(order_id: str, old: Optional[str], new: str, notes: Optional[str]) -> None:
    record = {
        "order_id": order_id,
        "old_status": old,
        "new_status": new,
        "notes": sanitize_string(notes),
        "changed_at": _now().isoformat(),
    }
    try:
        await asyncio.to_thread(orders_repository.insert_status_history, record)
    except Exception:
        logger.warning("Failed to record status history for order %s", order_id, exc_info=True)


async def _release_driver(driver_id: str, order_id: str, delivered: bool) -> None:
    try:
        others = await asyncio.to_thread(
            orders_repository.fetch_driver_order_ids, driver_id, [ON_THE_WAY]
        )
        changes: Dict[str, Any] = {}
        if not [other for other in others if other != order_id]:
            changes["status"] = DRIVER_AVAILABLE
        if delivered:
            driver = await asyncio.to_thread(drivers_repository.fetch_driver, driver_id)
            if driver:
                changes["total_deliveries"] = (driver.get("total_deliveries") or 0) + 1
        if changes:
            changes["updated_at"] = _now().isoformat()
            await asyncio.to_thread(drivers_repository.update_driver, driver_id, changes)
    except Exception:
        logger.warning("Failed to release driver %s after order %s", driver_id, order_id, exc_info=True)


async def update_status(
    order_id: str,
    new_status: str,
    notes: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> OrderView:
    if not is_uuid(order_id):
        raise InvalidRequestError("Invalid order id")
    if not is_valid_status(new_status):
        raise InvalidRequestError("Invalid status")
    current = await _fetch_or_404(order_id, "id, status, driver_id")
    old_status = current.get("status")
    if not can_transition(old_status, new_status):
        raise InvalidRequestError(
            "Cannot move order status backwards",
            details=[f"{old_status} -> {new_status}"],
        )

    changes = transition_fields(new_status, _now())
    if extra:
        if extra.get("delivery_instructions") is not None:
            changes["delivery_instructions"] = sanitize_string(extra["delivery_instructions"])
        if extra.get("estimated_delivery_time") is not None:
            changes["estimated_delivery_time"] = extra["estimated_delivery_time"].isoformat()
    row = await asyncio.to_thread(orders_repository.update_order, order_id, changes)
    if not row:
        raise BackendError("Failed to update order status")

    await _record_history(order_id, old_status, new_status, notes)
    driver_id = current.get("driver_id")
    if driver_id and new_status in (DELIVERED, CANCELLED) and old_status != new_status:
        await _release_driver(driver_id, order_id, delivered=new_status == DELIVERED)
    logger.info("Order %s status %s -> %s", order_id, old_status, new_status)
    return format_order(row)


async def cancel_order(order_id: str, notes: Optional[str] = None) -> OrderView:
    return await update_status(order_id, CANCELLED, notes)


async def get_status_history(order_id: str) -> List[StatusHistoryEntry]:
    await _fetch_or_404(order_id, "id")
    rows = await asyncio.to_thread(orders_repository.fetch_status_history, order_id)
    return [StatusHistoryEntry(**row) for row in rows]


def _manual_item_records(order_id: str, payload: ManualOrderCreate) -> List[Dict[str, Any]]:
    records = []
    for index, item in enumerate(payload.items, start=1):
        product_id = item.product_id or item.id
        if product_id:
            product_id = TRAILING_DASHES.sub("", str(product_id)).strip()
        if not product_id:
            raise InvalidRequestError(f"Item {index} has no product id")
        if not is_uuid(product_id):
            raise InvalidRequestError(f"Item {index} has an invalid product id: {product_id}")
        unit_price = float(item.price or item.unit_price or 0)
        records.append(
            {
                "order_id": order_id,
                "product_id": product_id,
                "name": sanitize_string(item.name) or "",
                "quantity": item.quantity,
                "unit_price": unit_price,
                "total_price": round(item.quantity * unit_price, 2),
                "size": item.size,
                "toppings": json.dumps(item.toppings),
                "special_instructions": sanitize_string(item.notes),
                "half_and_half": (
                    json.dumps(item.half_and_half.model_dump()) if item.half_and_half else None
                ),
            }
        )
    return records


async def create_manual_order(payload: ManualOrderCreate) -> ManualOrderResponse:
    if not payload.customer_id.strip():
        raise InvalidRequestError("Customer id is required for manual orders")
    if not payload.name.strip():
        raise InvalidRequestError("Customer name is required for manual orders")
    if not payload.phone.strip():
        raise InvalidRequestError("Customer phone is required for manual orders")
    if not payload.items:
        raise InvalidRequestError("Order items are required")
    if payload.total <= 0:
        raise InvalidRequestError("Order total must be greater than zero")

    # Validate items before anything is written.
    _manual_item_records("", payload)

    customer = await asyncio.to_thread(
        fetch_profile_by, "id", payload.customer_id, role=ROLE_CUSTOMER
    )
    if not customer:
        raise NotFoundError("Customer not found")

    counter = payload.order_type == ORDER_TYPE_COUNTER
    address = payload.delivery_address or ("Manual (Balcão)" if counter else "Manual (Telefone)")
    record = {
        "user_id": payload.customer_id,
        "status": RECEIVED,
        "total": payload.total,
        "subtotal": payload.subtotal if payload.subtotal is not None else payload.total,
        "delivery_fee": payload.delivery_fee,
        "discount": 0,
        "payment_method": payload.payment_method,
        "payment_status": "PENDING",
        "delivery_address": sanitize_string(address),
        "delivery_phone": payload.phone,
        "delivery_instructions": sanitize_string(payload.notes) or None,
        "estimated_delivery_time": (
            _now() + timedelta(minutes=MANUAL_ORDER_ETA_MINUTES)
        ).isoformat(),
        "customer_name": sanitize_string(payload.name),
    }
    try:
        order = await asyncio.to_thread(orders_repository.insert_order, record)
    except Exception as exc:
        logger.exception("Failed to store manual order")
        raise BackendError("Failed to create manual order") from exc

    await _insert_items_or_rollback(order["id"], _manual_item_records(order["id"], payload))
    label = "(Balcão)" if counter else "(Telefone)"
    logger.info("Manual order created id=%s type=%s", order["id"], payload.order_type)
    return ManualOrderResponse(
        id=order["id"],
        status=order.get("status", RECEIVED),
        total=float(order.get("total") or payload.total),
        order_type=payload.order_type,
        customer_name=payload.name,
        customer_phone=payload.phone,
        customer_id=payload.customer_id,
        delivery_address=address,
        created_at=order.get("created_at"),
        message=f"Manual order {label} created",
    )


async def assign_driver(order_id: str, driver_id: str) -> Dict[str, Any]:
    if not is_uuid(driver_id):
        raise InvalidRequestError("Invalid driver id")
    driver = await asyncio.to_thread(drivers_repository.fetch_driver, driver_id)
    if not driver:
        raise NotFoundError("Driver not found")
    if driver.get("status") != DRIVER_AVAILABLE:
        raise InvalidRequestError("Driver is not available")

    order = await _fetch_or_404(order_id, "id, status, driver_id")
    if order.get("status") != PREPARING:
        raise InvalidRequestError("Only orders being prepared can be assigned to a driver")

    now = _now().isoformat()
    updated_order = await asyncio.to_thread(
        orders_repository.update_order,
        order_id,
        {"driver_id": driver_id, "status": ON_THE_WAY, "updated_at": now},
    )
    if not updated_order:
        raise BackendError("Failed to assign driver")

    try:
        updated_driver = await asyncio.to_thread(
            drivers_repository.update_driver,
            driver_id,
            {"status": DRIVER_BUSY, "last_active_at": now, "updated_at": now},
        )
        if not updated_driver:
            raise RuntimeError("Driver update returned no rows")
    except Exception as exc:
        logger.exception("Failed to mark driver %s busy; reverting order %s", driver_id, order_id)
        await asyncio.to_thread(
            orders_repository.update_order,
            order_id,
            {"driver_id": order.get("driver_id"), "status": order.get("status"), "updated_at": now},
        )
        raise BackendError("Failed to update driver status") from exc

    await _record_history(order_id, order.get("status"), ON_THE_WAY, "Driver assigned")
    logger.info("Driver %s assigned to order %s", driver_id, order_id)
    return {
        "message": "Driver assigned",
        "order": updated_order,
        "driver": updated_driver,
    }


async def unassign_driver(order_id: str) -> Dict[str, Any]:
    order = await _fetch_or_404(order_id, "id, status, driver_id")
    driver_id = order.get("driver_id")
    if not driver_id:
        raise InvalidRequestError("Order has no assigned driver")
    if order.get("status") == DELIVERED:
        raise InvalidRequestError("Delivered orders cannot be unassigned")

    updated_order = await asyncio.to_thread(
        orders_repository.update_order,
        order_id,
        {"driver_id": None, "status": PREPARING, "updated_at": _now().isoformat()},
    )
    if not updated_order:
        raise BackendError("Failed to unassign driver")
    await _release_driver(driver_id, order_id, delivered=False)
    logger.info("Driver %s removed from order %s", driver_id, order_id)
    return {"message": "Driver unassigned", "order": updated_order, "driver": None}
