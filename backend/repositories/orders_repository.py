from typing import Any, Dict, Iterable, List, Optional

from supabase_client import fetch_all, supabase

ORDERS_TABLE = "orders"
ORDER_ITEMS_TABLE = "order_items"
STATUS_HISTORY_TABLE = "order_status_history"

ORDER_WITH_ITEMS = (
    "*, order_items(id, product_id, name, quantity, unit_price, total_price, size, "
    "toppings, special_instructions, half_and_half, products(name, description, image)), "
    "profiles!orders_user_id_fkey(full_name, phone)"
)


def fetch_orders(
    *,
    status: Optional[str] = None,
    user_id: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[Dict[str, Any]]:
    query = supabase.table(ORDERS_TABLE).select(ORDER_WITH_ITEMS)
    if status:
        query = query.eq("status", status)
    if user_id:
        query = query.eq("user_id", user_id)
    response = (
        query.order("created_at", desc=True)
        .range(offset, offset + limit - 1)
        .execute()
    )
    return response.data or []


def fetch_order(order_id: str, columns: str = "*") -> Optional[Dict[str, Any]]:
    response = (
        supabase.table(ORDERS_TABLE)
        .select(columns)
        .eq("id", order_id)
        .limit(1)
        .execute()
    )
    items = response.data or []
    return items[0] if items else None


def fetch_orders_since(since_iso: str) -> List[Dict[str, Any]]:
    return fetch_all(
        lambda: supabase.table(ORDERS_TABLE)
        .select(
            "id, status, total, created_at, delivered_at, driver_id, "
            "order_items(product_id, name, quantity, total_price, products(name))"
        )
        .gte("created_at", since_iso)
        .order("created_at")
        .order("id")
    )


def fetch_user_order_totals(user_id: str) -> List[Dict[str, Any]]:
    response = (
        supabase.table(ORDERS_TABLE)
        .select("total, created_at")
        .eq("user_id", user_id)
        .execute()
    )
    return response.data or []


def insert_order(record: Dict[str, Any]) -> Dict[str, Any]:
    response = supabase.table(ORDERS_TABLE).insert(record).execute()
    if not response.data:
        raise RuntimeError("Failed to store order")
    return response.data[0]


def insert_order_items(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    response = supabase.table(ORDER_ITEMS_TABLE).insert(records).execute()
    if not response.data:
        raise RuntimeError("Failed to store order items")
    return response.data


def update_order(order_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    response = supabase.table(ORDERS_TABLE).update(changes).eq("id", order_id).execute()
    items = response.data or []
    return items[0] if items else None


def delete_order(order_id: str) -> bool:
    response = supabase.table(ORDERS_TABLE).delete().eq("id", order_id).execute()
    return bool(response.data)


def fetch_driver_order_ids(driver_id: str, statuses: Iterable[str]) -> List[str]:
    response = (
        supabase.table(ORDERS_TABLE)
        .select("id")
        .eq("driver_id", driver_id)
        .in_("status", list(statuses))
        .execute()
    )
    return [row["id"] for row in response.data or []]


def count_driver_orders(driver_id: str, statuses: Optional[Iterable[str]] = None) -> int:
    query = (
        supabase.table(ORDERS_TABLE)
        .select("id", count="exact")
        .eq("driver_id", driver_id)
    )
    if statuses is not None:
        query = query.in_("status", list(statuses))
    response = query.execute()
    return response.count or 0


def insert_status_history(record: Dict[str, Any]) -> None:
    supabase.table(STATUS_HISTORY_TABLE).insert(record).execute()


def fetch_status_history(order_id: str) -> List[Dict[str, Any]]:
    response = (
        supabase.table(STATUS_HISTORY_TABLE)
        .select("*")
        .eq("order_id", order_id)
        .order("changed_at")
        .execute()
    )
    return response.data or []
