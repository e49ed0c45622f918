import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent / ".env")


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


def _get_list(name: str, fallback: str = "") -> List[str]:
    raw_value = os.getenv(name, fallback)
    if not raw_value:
        return []
    return [item.strip() for item in raw_value.split(",") if item.strip()]


def _get_bool(name: str, fallback: str = "false") -> bool:
    return os.getenv(name, fallback).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    supabase_url: str = _require_env("SUPABASE_URL")
    supabase_service_role_key: str = _require_env("SUPABASE_SERVICE_ROLE_KEY")
    supabase_anon_key: str | None = os.getenv("SUPABASE_ANON_KEY")
    product_images_bucket: str = os.getenv("PRODUCT_IMAGES_BUCKET", "product-images")
    settings_cache_seconds: int = int(os.getenv("SETTINGS_CACHE_SECONDS", "60"))
    cookie_secure: bool = _get_bool("COOKIE_SECURE")
    rate_limit_enabled: bool = _get_bool("RATE_LIMIT_ENABLED", "true")
    viacep_url: str = os.getenv("VIACEP_URL", "https://viacep.com.br/ws")
    allowed_origins: List[str] = field(
        default_factory=lambda: _get_list("ALLOWED_ORIGINS", "*")
    )

    @property
    def public_auth_key(self) -> str:
        return self.supabase_anon_key or self.supabase_service_role_key


settings = Settings()
