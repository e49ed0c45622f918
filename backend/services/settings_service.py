import asyncio
import json
import logging
import time
from threading import Lock
from typing import Any, Dict, List, Optional, Tuple

from config import settings
from constants import DEFAULT_PUBLIC_SETTINGS, PUBLIC_SETTING_KEYS
from errors import BackendError
from repositories.settings_repository import (
    fetch_setting as repo_fetch_setting,
    fetch_settings as repo_fetch_settings,
    upsert_settings as repo_upsert_settings,
)

logger = logging.getLogger("pizza-delivery")


def convert_value(value: Any, setting_type: Optional[str]) -> Any:
    if setting_type == "number":
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0.0
    if setting_type == "boolean":
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() == "true"
    if setting_type == "json":
        if not isinstance(value, str):
            return value
        try:
            return json.loads(value)
        except ValueError:
            return value
    return "" if value is None else str(value)


def encode_value(value: Any) -> Tuple[str, str]:
    """Return ``(stored_value, setting_type)`` for an admin-supplied value."""
    if isinstance(value, bool):
        return ("true" if value else "false"), "boolean"
    if isinstance(value, (int, float)):
        return str(value), "number"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False), "json"
    return ("" if value is None else str(value)), "string"


class SettingsCache:
    def __init__(self, ttl_seconds: float, clock=time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._value: Optional[Dict[str, Any]] = None
        self._expires_at = 0.0
        self._lock = Lock()

    def get(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            if self._value is None or self._clock() >= self._expires_at:
                return None
            return dict(self._value)

    def set(self, value: Dict[str, Any]) -> None:
        with self._lock:
            self._value = dict(value)
            self._expires_at = self._clock() + self._ttl

    def invalidate(self) -> None:
        with self._lock:
            self._value = None
            self._expires_at = 0.0


public_settings_cache = SettingsCache(settings.settings_cache_seconds)


def _typed(rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        row["setting_key"]: convert_value(row.get("setting_value"), row.get("setting_type"))
        for row in rows
        if row.get("setting_key")
    }


async def _load_rows() -> List[Dict[str, Any]]:
    try:
        return await asyncio.to_thread(repo_fetch_settings)
    except Exception as exc:  # pragma: no cover - network/database error
        logger.exception("Failed to load settings")
        raise BackendError("Failed to load settings") from exc


async def get_public_settings() -> Dict[str, Any]:
    cached = public_settings_cache.get()
    if cached is not None:
        return cached
    stored = _typed(await _load_rows())
    result = dict(DEFAULT_PUBLIC_SETTINGS)
    result.update({key: value for key, value in stored.items() if key in PUBLIC_SETTING_KEYS})
    public_settings_cache.set(result)
    return result


async def get_all_settings() -> Dict[str, Any]:
    return _typed(await _load_rows())


async def get_setting(key: str, default: Any = None) -> Any:
    row = await asyncio.to_thread(repo_fetch_setting, key)
    if not row:
        return default
    return convert_value(row.get("setting_value"), row.get("setting_type"))


async def save_settings(values: Dict[str, Any]) -> int:
    records = []
    for key, value in values.items():
        if not key:
            continue
        stored, setting_type = encode_value(value)
        records.append(
            {"setting_key": key, "setting_value": stored, "setting_type": setting_type}
        )
    try:
        await asyncio.to_thread(repo_upsert_settings, records)
    except Exception as exc:  # pragma: no cover - network/database error
        logger.exception("Failed to save settings")
        raise BackendError("Failed to save settings") from exc
    public_settings_cache.invalidate()
    logger.info("Saved %s settings", len(records))
    return len(records)
