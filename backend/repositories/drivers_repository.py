from typing import Any, Dict, List, Optional

from supabase_client import supabase

TABLE_NAME = "drivers"
COLUMNS = (
    "id, name, email, phone, vehicle_type, vehicle_plate, status, current_location, "
    "total_deliveries, average_rating, average_delivery_time, created_at, updated_at, "
    "last_active_at"
)


def fetch_drivers(status: Optional[str] = None) -> List[Dict[str, Any]]:
    query = supabase.table(TABLE_NAME).select(COLUMNS).is_("deleted_at", "null")
    if status:
        query = query.eq("status", status)
    response = query.order("status", desc=True).order("name").execute()
    return response.data or []


def fetch_driver(driver_id: str) -> Optional[Dict[str, Any]]:
    response = (
        supabase.table(TABLE_NAME)
        .select(COLUMNS)
        .eq("id", driver_id)
        .is_("deleted_at", "null")
        .limit(1)
        .execute()
    )
    items = response.data or []
    return items[0] if items else None


def insert_driver(record: Dict[str, Any]) -> Dict[str, Any]:
    response = supabase.table(TABLE_NAME).insert(record).execute()
    if not response.data:
        raise RuntimeError("Failed to store driver")
    return response.data[0]


def update_driver(driver_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    response = supabase.table(TABLE_NAME).update(changes).eq("id", driver_id).execute()
    items = response.data or []
    return items[0] if items else None


def delete_driver(driver_id: str) -> bool:
    response = supabase.table(TABLE_NAME).delete().eq("id", driver_id).execute()
    return bool(response.data)
