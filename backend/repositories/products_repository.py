from typing import Any, Dict, List, Optional

from supabase_client import supabase

TABLE_NAME = "products"


def fetch_products(
    *,
    category_id: Optional[str] = None,
    available_only: bool = False,
) -> List[Dict[str, Any]]:
    query = supabase.table(TABLE_NAME).select("*")
    if category_id:
        query = query.eq("category_id", category_id)
    if available_only:
        query = query.eq("available", True)
    response = (
        query.order("product_number")
        .order("name")
        .execute()
    )
    return response.data or []


def fetch_product(product_id: str) -> Optional[Dict[str, Any]]:
    response = (
        supabase.table(TABLE_NAME)
        .select("*")
        .eq("id", product_id)
        .limit(1)
        .execute()
    )
    items = response.data or []
    return items[0] if items else None


def count_by_category(category_id: str) -> int:
    response = (
        supabase.table(TABLE_NAME)
        .select("id", count="exact")
        .eq("category_id", category_id)
        .execute()
    )
    return response.count or 0


def insert_product(record: Dict[str, Any]) -> Dict[str, Any]:
    response = supabase.table(TABLE_NAME).insert(record).execute()
    if not response.data:
        raise RuntimeError("Failed to store product")
    return response.data[0]


def update_product(product_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    response = supabase.table(TABLE_NAME).update(changes).eq("id", product_id).execute()
    items = response.data or []
    return items[0] if items else None


def delete_product(product_id: str) -> bool:
    response = supabase.table(TABLE_NAME).delete().eq("id", product_id).execute()
    return bool(response.data)
