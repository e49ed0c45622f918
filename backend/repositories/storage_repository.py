from supabase_client import supabase


def upload_file(bucket: str, path: str, content: bytes, content_type: str) -> str:
    storage = supabase.storage.from_(bucket)
    storage.upload(path, content, {"content-type": content_type})
    return storage.get_public_url(path)
