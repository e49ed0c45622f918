from typing import Any, Dict, Optional

from supabase import AuthApiError

from supabase_client import supabase


def create_user(
    email: str,
    password: str,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    response = supabase.auth.admin.create_user(
        {
            "email": email,
            "password": password,
            "email_confirm": True,
            "user_metadata": metadata or {},
        }
    )
    if not response.user:
        raise RuntimeError("Failed to create auth user")
    return {"id": response.user.id, "email": response.user.email}


def get_user(user_id: str) -> Optional[Dict[str, Any]]:
    try:
        response = supabase.auth.admin.get_user_by_id(user_id)
    except AuthApiError as exc:
        if exc.status == 404:
            return None
        raise
    if not response or not response.user:
        return None
    return {"id": response.user.id, "email": response.user.email}


def update_user(user_id: str, attributes: Dict[str, Any]) -> None:
    supabase.auth.admin.update_user_by_id(user_id, attributes)


def delete_user(user_id: str) -> None:
    supabase.auth.admin.delete_user(user_id)
