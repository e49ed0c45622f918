from typing import Any, Dict, List, Optional

from supabase_client import fetch_all, supabase

TABLE_NAME = "profiles"
PUBLIC_COLUMNS = "id, email, full_name, phone, role, active, created_at, updated_at"


def fetch_profile(user_id: str) -> Optional[Dict[str, Any]]:
    response = (
        supabase.table(TABLE_NAME)
        .select("*")
        .eq("id", user_id)
        .limit(1)
        .execute()
    )
    items = response.data or []
    return items[0] if items else None


def fetch_profile_by(column: str, value: str, *, role: Optional[str] = None) -> Optional[Dict[str, Any]]:
    query = supabase.table(TABLE_NAME).select("id").eq(column, value)
    if role:
        query = query.eq("role", role)
    response = query.limit(1).execute()
    items = response.data or []
    return items[0] if items else None


def fetch_customers() -> List[Dict[str, Any]]:
    return fetch_all(
        lambda: supabase.table(TABLE_NAME)
        .select(PUBLIC_COLUMNS)
        .eq("role", "customer")
        .order("created_at", desc=True)
        .order("id")
    )


def _quoted_pattern(term: str) -> str:
    """Wrap a like-pattern in double quotes so commas and parentheses stay literal in `or` filters."""
    escaped = term.replace("\\", "\\\\").replace('"', '\\"')
    return f'"%{escaped}%"'


def search_customers(name_terms: List[str], phone_digits: str, limit: int) -> List[Dict[str, Any]]:
    filters = [f"full_name.ilike.{_quoted_pattern(term)}" for term in dict.fromkeys(name_terms) if term]
    if phone_digits:
        filters.append(f"phone.like.%{phone_digits}%")
    response = (
        supabase.table(TABLE_NAME)
        .select(
            "id, full_name, phone, email, created_at, "
            "customer_addresses(id, street, number, complement, neighborhood, city, "
            "state, zip_code, label, is_default), orders(count)"
        )
        .eq("role", "customer")
        .or_(",".join(filters))
        .limit(limit)
        .execute()
    )
    return response.data or []


def insert_profile(record: Dict[str, Any]) -> Dict[str, Any]:
    response = supabase.table(TABLE_NAME).insert(record).execute()
    if not response.data:
        raise RuntimeError("Failed to store profile")
    return response.data[0]


def update_profile(user_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    response = (
        supabase.table(TABLE_NAME)
        .update(changes)
        .eq("id", user_id)
        .execute()
    )
    items = response.data or []
    return items[0] if items else None
