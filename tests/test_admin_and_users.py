import asyncio
from types import SimpleNamespace

import pytest
from supabase import AuthApiError

from errors import (
    AuthenticationError,
    BackendError,
    InvalidRequestError,
    NotFoundError,
    PermissionDeniedError,
)
from factories import ADMIN_PROFILE, CUSTOMER_PROFILE
from repositories import auth_admin_repository
from schemas import AdminProfileUpdate, AdminRegisterRequest, UserUpdate
from services import admin_service, auth_service, settings_service, users_service


def _registration_setting(monkeypatch, value):
    async def get_setting(key, default=None):
        return value

    monkeypatch.setattr(settings_service, "get_setting", get_setting)


@pytest.mark.parametrize("value, expected", [(True, True), (False, False), ("false", False), ("true", True)])
def test_registration_setting_values(monkeypatch, value, expected):
    _registration_setting(monkeypatch, value)

    assert asyncio.run(admin_service.registration_allowed()) is expected


def test_admin_registration_can_be_disabled(monkeypatch):
    _registration_setting(monkeypatch, False)
    payload = AdminRegisterRequest(full_name="Novo Admin", email="novo@example.com", password="segredo")

    with pytest.raises(PermissionDeniedError):
        asyncio.run(admin_service.register_admin(payload))


def test_admin_registration_creates_admin_account(monkeypatch):
    _registration_setting(monkeypatch, True)
    created = []

    async def create_account(email, password, full_name, role, phone=None):
        created.append((email, role))
        return {"id": "a1", "full_name": full_name, "role": role}

    monkeypatch.setattr(auth_service, "create_account", create_account)
    payload = AdminRegisterRequest(full_name="Novo Admin", email="Novo@Example.com", password="segredo")

    user = asyncio.run(admin_service.register_admin(payload))

    assert created == [("novo@example.com", "admin")]
    assert user.role == "admin"
    assert user.email == "novo@example.com"


def test_profile_update_validates_phone():
    with pytest.raises(InvalidRequestError):
        asyncio.run(admin_service.update_admin_profile("a1", AdminProfileUpdate(phone="123")))


def test_wrong_current_password_is_bad_request(monkeypatch):
    async def password_sign_in(email, password):
        raise AuthenticationError("Invalid credentials")

    monkeypatch.setattr(auth_service, "password_sign_in", password_sign_in)

    with pytest.raises(InvalidRequestError):
        asyncio.run(admin_service.change_password(ADMIN_PROFILE, "errada", "novaSenha"))


def test_password_change_updates_auth_user(monkeypatch):
    updates = []

    async def password_sign_in(email, password):
        return {"access_token": "t"}

    monkeypatch.setattr(auth_service, "password_sign_in", password_sign_in)
    monkeypatch.setattr(
        auth_admin_repository, "update_user", lambda user_id, attributes: updates.append((user_id, attributes))
    )

    asyncio.run(admin_service.change_password(ADMIN_PROFILE, "atual", "novaSenha"))

    assert updates == [(ADMIN_PROFILE["id"], {"password": "novaSenha"})]


def test_user_update_changes_auth_email_only_when_different(monkeypatch):
    auth_updates = []
    monkeypatch.setattr(auth_admin_repository, "get_user", lambda user_id: {"id": user_id, "email": "old@example.com"})
    monkeypatch.setattr(
        auth_admin_repository, "update_user", lambda user_id, attributes: auth_updates.append(attributes)
    )
    monkeypatch.setattr(
        users_service, "update_profile", lambda user_id, changes: {"id": user_id, "role": "customer", **changes}
    )
    payload = UserUpdate(name=" Maria ", email="new@example.com", phone="11987654321")

    user = asyncio.run(users_service.update_user(CUSTOMER_PROFILE["id"], payload))

    assert auth_updates == [{"email": "new@example.com"}]
    assert user.name == "Maria"
    assert user.role == "customer"


def test_user_update_restores_email_when_profile_write_fails(monkeypatch):
    auth_updates = []
    monkeypatch.setattr(auth_admin_repository, "get_user", lambda user_id: {"id": user_id, "email": "old@example.com"})
    monkeypatch.setattr(
        auth_admin_repository, "update_user", lambda user_id, attributes: auth_updates.append(attributes)
    )

    def update_profile(user_id, changes):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(users_service, "update_profile", update_profile)
    payload = UserUpdate(name="Maria", email="new@example.com", phone="11987654321")

    with pytest.raises(BackendError):
        asyncio.run(users_service.update_user(CUSTOMER_PROFILE["id"], payload))

    assert auth_updates == [{"email": "new@example.com"}, {"email": "old@example.com"}]


def test_missing_auth_user_is_reported_as_absent(monkeypatch):
    def get_user_by_id(user_id):
        raise AuthApiError("User not found", 404, "user_not_found")

    admin = SimpleNamespace(get_user_by_id=get_user_by_id)
    monkeypatch.setattr(auth_admin_repository, "supabase", SimpleNamespace(auth=SimpleNamespace(admin=admin)))

    assert auth_admin_repository.get_user(CUSTOMER_PROFILE["id"]) is None


def test_auth_errors_other_than_not_found_propagate(monkeypatch):
    def get_user_by_id(user_id):
        raise AuthApiError("Service unavailable", 503, None)

    admin = SimpleNamespace(get_user_by_id=get_user_by_id)
    monkeypatch.setattr(auth_admin_repository, "supabase", SimpleNamespace(auth=SimpleNamespace(admin=admin)))

    with pytest.raises(AuthApiError):
        auth_admin_repository.get_user(CUSTOMER_PROFILE["id"])


def test_read_user_with_malformed_id_is_not_found(monkeypatch):
    def get_user(user_id):
        raise AssertionError("malformed id must not reach the auth api")

    monkeypatch.setattr(auth_admin_repository, "get_user", get_user)

    with pytest.raises(NotFoundError):
        asyncio.run(users_service.get_user("not-a-uuid"))


def test_read_user_without_auth_account_is_not_found(monkeypatch):
    monkeypatch.setattr(auth_admin_repository, "get_user", lambda user_id: None)

    with pytest.raises(NotFoundError):
        asyncio.run(users_service.get_user(CUSTOMER_PROFILE["id"]))


def test_customer_cannot_read_other_users(client, login_as):
    login_as(CUSTOMER_PROFILE)

    response = client.get(f"/api/users/{ADMIN_PROFILE['id']}")

    assert response.status_code == 403
