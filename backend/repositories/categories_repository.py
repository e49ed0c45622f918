from typing import Any, Dict, List, Optional

from supabase_client import supabase

TABLE_NAME = "categories"
COLUMNS = "id, name, description, image, sort_order, active"


def fetch_active_categories() -> List[Dict[str, Any]]:
    response = (
        supabase.table(TABLE_NAME)
        .select(COLUMNS)
        .or_("active.eq.true,active.is.null")
        .order("sort_order")
        .order("name")
        .execute()
    )
    return response.data or []


def fetch_category(category_id: str) -> Optional[Dict[str, Any]]:
    response = (
        supabase.table(TABLE_NAME)
        .select(COLUMNS)
        .eq("id", category_id)
        .limit(1)
        .execute()
    )
    items = response.data or []
    return items[0] if items else None


def insert_category(record: Dict[str, Any]) -> Dict[str, Any]:
    response = supabase.table(TABLE_NAME).insert(record).execute()
    if not response.data:
        raise RuntimeError("Failed to store category")
    return response.data[0]


def update_category(category_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    response = supabase.table(TABLE_NAME).update(changes).eq("id", category_id).execute()
    items = response.data or []
    return items[0] if items else None


def delete_category(category_id: str) -> bool:
    response = supabase.table(TABLE_NAME).delete().eq("id", category_id).execute()
    return bool(response.data)
