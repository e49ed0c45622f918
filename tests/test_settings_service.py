import asyncio

from constants import DEFAULT_PUBLIC_SETTINGS
from factories import CUSTOMER_PROFILE
from services import settings_service
from services.settings_service import SettingsCache, convert_value, encode_value


def test_convert_value_by_type():
    assert convert_value("5.50", "number") == 5.5
    assert convert_value("abc", "number") == 0.0
    assert convert_value("true", "boolean") is True
    assert convert_value("False", "boolean") is False
    assert convert_value('{"a": 1}', "json") == {"a": 1}
    assert convert_value("{broken", "json") == "{broken"
    assert convert_value(None, "string") == ""


def test_encode_value_records_type():
    assert encode_value(True) == ("true", "boolean")
    assert encode_value(7.5) == ("7.5", "number")
    assert encode_value({"title": "Sobre"}) == ('{"title": "Sobre"}', "json")
    assert encode_value("Pizzaria") == ("Pizzaria", "string")


def test_public_settings_are_filtered_typed_and_merged_over_defaults(monkeypatch):
    rows = [
        {"setting_key": "delivery_fee", "setting_value": "7.00", "setting_type": "number"},
        {"setting_key": "isOpen", "setting_value": "false", "setting_type": "boolean"},
        {"setting_key": "smtp_password", "setting_value": "secret", "setting_type": "string"},
    ]
    monkeypatch.setattr(settings_service, "repo_fetch_settings", lambda: rows)

    result = asyncio.run(settings_service.get_public_settings())

    assert result["delivery_fee"] == 7.0
    assert result["isOpen"] is False
    assert "smtp_password" not in result
    assert result["restaurant_name"] == DEFAULT_PUBLIC_SETTINGS["restaurant_name"]


def test_settings_cache_expires():
    now = [100.0]
    cache = SettingsCache(ttl_seconds=60, clock=lambda: now[0])
    cache.set({"isOpen": True})

    assert cache.get() == {"isOpen": True}
    now[0] += 60
    assert cache.get() is None


def test_save_settings_upserts_with_types_and_invalidates_cache(monkeypatch):
    saved = []
    monkeypatch.setattr(settings_service, "repo_upsert_settings", saved.extend)
    settings_service.public_settings_cache.set({"isOpen": True})

    count = asyncio.run(settings_service.save_settings({"isOpen": False, "delivery_fee": 6}))

    assert count == 2
    assert {"setting_key": "isOpen", "setting_value": "false", "setting_type": "boolean"} in saved
    assert {"setting_key": "delivery_fee", "setting_value": "6", "setting_type": "number"} in saved
    assert settings_service.public_settings_cache.get() is None


def test_public_settings_endpoint(client, monkeypatch):
    monkeypatch.setattr(settings_service, "repo_fetch_settings", lambda: [])

    response = client.get("/api/settings")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["settings"]["min_order_value"] == DEFAULT_PUBLIC_SETTINGS["min_order_value"]


def test_admin_settings_require_admin(client, login_as, monkeypatch):
    login_as(CUSTOMER_PROFILE)
    assert client.get("/api/admin/settings").status_code == 403
