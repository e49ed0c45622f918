import asyncio

import pytest

from errors import InvalidRequestError
from factories import ADMIN_PROFILE, CUSTOMER_PROFILE
from services import content_service, settings_service, upload_service


def test_storage_path_is_timestamped_and_safe():
    assert upload_service.storage_path("minha pizza (1).png", now_ms=1700000000000) == (
        "1700000000000-minha-pizza-1-.png"
    )
    assert upload_service.safe_file_name("../..") == "upload"


def test_upload_rejects_non_images_and_large_files():
    with pytest.raises(InvalidRequestError):
        asyncio.run(upload_service.upload_image("notes.txt", "text/plain", b"hello"))
    with pytest.raises(InvalidRequestError):
        asyncio.run(upload_service.upload_image("empty.png", "image/png", b""))
    with pytest.raises(InvalidRequestError):
        too_big = b"0" * (upload_service.MAX_UPLOAD_BYTES + 1)
        asyncio.run(upload_service.upload_image("big.png", "image/png", too_big))


def test_admin_uploads_image(client, login_as, monkeypatch):
    login_as(ADMIN_PROFILE)
    uploaded = {}

    def upload_file(bucket, path, content, content_type):
        uploaded.update(bucket=bucket, path=path, size=len(content), content_type=content_type)
        return f"https://cdn.example.com/{path}"

    monkeypatch.setattr(upload_service, "upload_file", upload_file)

    response = client.post(
        "/api/upload", files={"file": ("pizza.png", b"\x89PNG data", "image/png")}
    )

    assert response.status_code == 200
    assert response.json()["url"].endswith("-pizza.png")
    assert uploaded["content_type"] == "image/png"
    assert uploaded["size"] == 9


def test_oversized_upload_is_read_only_past_the_limit(client, login_as, monkeypatch):
    login_as(ADMIN_PROFILE)
    received = []
    original = upload_service.upload_image

    async def upload_image(file_name, content_type, content):
        received.append(len(content))
        return await original(file_name, content_type, content)

    monkeypatch.setattr(upload_service, "upload_image", upload_image)
    oversized = b"0" * (upload_service.MAX_UPLOAD_BYTES + 10)

    response = client.post("/api/upload", files={"file": ("big.png", oversized, "image/png")})

    assert response.status_code == 400
    assert received == [upload_service.MAX_UPLOAD_BYTES + 1]


def test_upload_requires_admin(client, login_as):
    login_as(CUSTOMER_PROFILE)

    response = client.post("/api/upload", files={"file": ("pizza.png", b"data", "image/png")})

    assert response.status_code == 403


def test_contact_message_is_stored_with_default_subject(client, monkeypatch):
    stored = {}

    def insert_message(record):
        stored.update(record)
        return {**record, "id": 1}

    monkeypatch.setattr(content_service, "insert_message", insert_message)

    response = client.post(
        "/api/contact",
        json={"name": "Ana", "email": "Ana@Example.com", "message": "<b>Oi</b>"},
    )

    assert response.status_code == 200
    assert stored["subject"] == content_service.DEFAULT_CONTACT_SUBJECT
    assert stored["email"] == "ana@example.com"
    assert stored["message"] == "&lt;b&gt;Oi&lt;/b&gt;"


def test_about_content_falls_back_to_default(client, monkeypatch):
    async def get_setting(key, default=None):
        return default

    monkeypatch.setattr(settings_service, "get_setting", get_setting)

    response = client.get("/api/about-content")

    assert response.status_code == 200
    assert response.json()["hero"]["title"] == content_service.DEFAULT_ABOUT_CONTENT["hero"]["title"]


def test_about_content_update_saves_setting(client, login_as, monkeypatch):
    login_as(ADMIN_PROFILE)
    saved = {}

    async def save_settings(values):
        saved.update(values)

    monkeypatch.setattr(settings_service, "save_settings", save_settings)

    response = client.put("/api/about-content", json={"hero": {"title": "Nova"}})

    assert response.status_code == 200
    assert saved == {"about_content": {"hero": {"title": "Nova"}}}
