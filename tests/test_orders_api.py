from factories import ADMIN_PROFILE, CUSTOMER_PROFILE, KITCHEN_PROFILE, ORDER_ID, order_payload
from repositories import orders_repository


def _accept_inserts(monkeypatch):
    monkeypatch.setattr(
        orders_repository,
        "insert_order",
        lambda record: {**record, "id": ORDER_ID, "created_at": "2024-05-01T20:00:00+00:00"},
    )
    monkeypatch.setattr(orders_repository, "insert_order_items", lambda records: records)


def test_guest_checkout_returns_created_order(client, login_as, store_settings, monkeypatch):
    login_as(None)
    _accept_inserts(monkeypatch)

    response = client.post("/api/orders", json=order_payload())

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["order"]["id"] == ORDER_ID
    assert body["order"]["status"] == "RECEIVED"
    assert body["order"]["total_amount"] == 60.0


def test_checkout_validates_phone(client, login_as, store_settings):
    login_as(None)

    response = client.post("/api/orders", json=order_payload(customer_phone="123"))

    assert response.status_code == 422


def test_checkout_requires_items(client, login_as, store_settings):
    login_as(None)

    response = client.post("/api/orders", json=order_payload(items=[]))

    assert response.status_code == 422


def test_checkout_total_mismatch_is_bad_request(client, login_as, store_settings):
    login_as(None)

    response = client.post("/api/orders", json=order_payload(total_amount=10.0))

    assert response.status_code == 400
    assert response.json()["detail"] == "Order total does not match items"


def test_listing_orders_requires_token(client):
    response = client.get("/api/orders")

    assert response.status_code == 401


def test_listing_orders_requires_admin(client, login_as):
    login_as(CUSTOMER_PROFILE)

    response = client.get("/api/orders")

    assert response.status_code == 403


def test_admin_lists_orders_with_items_and_customer(client, login_as, monkeypatch):
    login_as(ADMIN_PROFILE)
    captured = {}

    def fetch_orders(**kwargs):
        captured.update(kwargs)
        return [
            {
                "id": ORDER_ID,
                "status": "PREPARING",
                "total": 60.0,
                "delivery_phone": "11987654321",
                "delivery_address": "Rua das Flores, 100",
                "profiles": {"full_name": "Maria Souza"},
                "order_items": [{"id": "item-1", "quantity": 2, "products": {"name": "Calabresa"}}],
            }
        ]

    monkeypatch.setattr(orders_repository, "fetch_orders", fetch_orders)

    response = client.get("/api/orders", params={"status": "all", "limit": 10})

    assert response.status_code == 200
    order = response.json()["orders"][0]
    assert order["customer"]["name"] == "Maria Souza"
    assert order["items"][0]["name"] == "Calabresa"
    assert captured["status"] is None
    assert captured["limit"] == 10


def test_kitchen_status_update_rejects_invalid_id(client, login_as):
    login_as(KITCHEN_PROFILE)

    response = client.patch("/api/orders/not-a-uuid/status", json={"status": "PREPARING"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid order id"


def test_customer_cannot_change_status(client, login_as):
    login_as(CUSTOMER_PROFILE)

    response = client.patch(f"/api/orders/{ORDER_ID}/status", json={"status": "PREPARING"})

    assert response.status_code == 403


def test_customer_cannot_read_another_customers_order(client, login_as, monkeypatch):
    login_as(CUSTOMER_PROFILE)
    monkeypatch.setattr(
        orders_repository,
        "fetch_order",
        lambda order_id, columns="*": {"id": order_id, "user_id": "someone-else", "status": "RECEIVED"},
    )

    response = client.get(f"/api/orders/{ORDER_ID}")

    assert response.status_code == 403


def _order_row(monkeypatch, **row):
    current = {"id": ORDER_ID, "status": "RECEIVED", "driver_id": None, **row}
    monkeypatch.setattr(orders_repository, "fetch_order", lambda order_id, columns="*": dict(current))
    updates = []

    def update_order(order_id, changes):
        updates.append(changes)
        return {**current, **changes}

    monkeypatch.setattr(orders_repository, "update_order", update_order)
    return updates


def test_order_update_without_fields_is_bad_request(client, login_as, monkeypatch):
    login_as(ADMIN_PROFILE)
    updates = _order_row(monkeypatch)

    response = client.put(f"/api/orders/{ORDER_ID}", json={})

    assert response.status_code == 400
    assert response.json()["detail"] == "No fields to update"
    assert updates == []


def test_order_update_status_goes_through_transition_rules(client, login_as, monkeypatch):
    login_as(ADMIN_PROFILE)
    _order_row(monkeypatch, status="DELIVERED")

    response = client.put(f"/api/orders/{ORDER_ID}", json={"status": "PREPARING"})

    assert response.status_code == 400
    assert response.json()["details"] == ["DELIVERED -> PREPARING"]


def test_order_update_moves_status_forward_with_instructions(client, login_as, monkeypatch):
    login_as(ADMIN_PROFILE)
    updates = _order_row(monkeypatch)
    monkeypatch.setattr(orders_repository, "insert_status_history", lambda record: None)

    response = client.put(
        f"/api/orders/{ORDER_ID}",
        json={"status": "PREPARING", "delivery_instructions": "Portão azul"},
    )

    assert response.status_code == 200
    assert response.json()["order"]["status"] == "PREPARING"
    assert updates[0]["delivery_instructions"] == "Portão azul"


def test_kitchen_reads_status_history(client, login_as, monkeypatch):
    login_as(KITCHEN_PROFILE)
    _order_row(monkeypatch)
    monkeypatch.setattr(
        orders_repository,
        "fetch_status_history",
        lambda order_id: [
            {"order_id": order_id, "old_status": None, "new_status": "RECEIVED"},
            {"order_id": order_id, "old_status": "RECEIVED", "new_status": "PREPARING", "notes": "Forno 2"},
        ],
    )

    response = client.get(f"/api/orders/{ORDER_ID}/history")

    assert response.status_code == 200
    history = response.json()["history"]
    assert [entry["new_status"] for entry in history] == ["RECEIVED", "PREPARING"]
    assert history[1]["notes"] == "Forno 2"


def test_kitchen_cancels_order_with_notes(client, login_as, monkeypatch):
    login_as(KITCHEN_PROFILE)
    updates = _order_row(monkeypatch, status="PREPARING")
    history = []
    monkeypatch.setattr(orders_repository, "insert_status_history", history.append)

    response = client.request(
        "DELETE", f"/api/orders/{ORDER_ID}/status", json={"notes": "Cliente desistiu"}
    )

    assert response.status_code == 200
    assert response.json()["order"]["status"] == "CANCELLED"
    assert "cancelled_at" in updates[0]
    assert history[0]["notes"] == "Cliente desistiu"
    assert history[0]["new_status"] == "CANCELLED"


def test_login_attempts_over_limit_get_retry_after(client, monkeypatch):
    import dataclasses

    import rate_limiter
    from errors import AuthenticationError
    from services import auth_service

    monkeypatch.setattr(
        rate_limiter, "settings", dataclasses.replace(rate_limiter.settings, rate_limit_enabled=True)
    )

    async def token_grant(grant_type, body):
        raise AuthenticationError("Invalid credentials")

    monkeypatch.setattr(auth_service, "_token_grant", token_grant)
    credentials = {"email": "maria@example.com", "password": "errada"}

    statuses = [client.post("/api/auth/login", json=credentials).status_code for _ in range(5)]
    blocked = client.post("/api/auth/login", json=credentials)

    assert statuses == [401] * 5
    assert blocked.status_code == 429
    retry_after = int(blocked.headers["Retry-After"])
    assert 0 < retry_after <= 15 * 60
    assert blocked.json()["retry_after"] == retry_after
