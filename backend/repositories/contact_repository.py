from typing import Any, Dict

from supabase_client import supabase

TABLE_NAME = "contact_messages"


def insert_message(record: Dict[str, Any]) -> Dict[str, Any]:
    response = supabase.table(TABLE_NAME).insert(record).execute()
    if not response.data:
        raise RuntimeError("Failed to store contact message")
    return response.data[0]
