from typing import Any, Dict, List, Optional

from supabase_client import supabase

TABLE_NAME = "customer_addresses"


def fetch_user_addresses(user_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    query = (
        supabase.table(TABLE_NAME)
        .select("*")
        .eq("user_id", user_id)
        .order("is_default", desc=True)
        .order("created_at", desc=True)
    )
    if limit:
        query = query.limit(limit)
    response = query.execute()
    return response.data or []


def fetch_address(address_id: str) -> Optional[Dict[str, Any]]:
    response = (
        supabase.table(TABLE_NAME)
        .select("*")
        .eq("id", address_id)
        .limit(1)
        .execute()
    )
    items = response.data or []
    return items[0] if items else None


def clear_default(user_id: str, except_id: Optional[str] = None) -> None:
    query = supabase.table(TABLE_NAME).update({"is_default": False}).eq("user_id", user_id)
    if except_id:
        query = query.neq("id", except_id)
    query.execute()


def insert_address(record: Dict[str, Any]) -> Dict[str, Any]:
    response = supabase.table(TABLE_NAME).insert(record).execute()
    if not response.data:
        raise RuntimeError("Failed to store address")
    return response.data[0]


def update_address(address_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    response = supabase.table(TABLE_NAME).update(changes).eq("id", address_id).execute()
    items = response.data or []
    return items[0] if items else None


def delete_address(address_id: str) -> bool:
    response = supabase.table(TABLE_NAME).delete().eq("id", address_id).execute()
    return bool(response.data)
