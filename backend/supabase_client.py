from typing import Any, Callable, Dict, List, Optional

from supabase import Client, create_client

from config import settings

# PostgREST caps each response at its max-rows setting.
PAGE_SIZE = 1000

# Service-role client; never used for password sign-in so it holds no user session.
supabase: Client = create_client(
    settings.supabase_url,
    settings.supabase_service_role_key,
)


def fetch_all(build_query: Callable[[], Any], page_size: Optional[int] = None) -> List[Dict[str, Any]]:
    """Run a query page by page with ``.range`` until a short page comes back."""
    page_size = page_size or PAGE_SIZE
    rows: List[Dict[str, Any]] = []
    start = 0
    while True:
        response = build_query().range(start, start + page_size - 1).execute()
        batch = response.data or []
        rows.extend(batch)
        if len(batch) < page_size:
            return rows
        start += page_size
