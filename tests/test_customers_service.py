import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from errors import ConflictError
from repositories import addresses_repository, profiles_repository
from schemas import CustomerCreate
from services import auth_service, customers_service

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "orders, spent, created_days_ago, expected",
    [
        (20, 100.0, 400, "vip"),
        (3, 500.0, 400, "vip"),
        (1, 40.0, 400, "active"),
        (0, 0.0, 10, "active"),
        (0, 0.0, 100, "inactive"),
    ],
)
def test_classify_customer(orders, spent, created_days_ago, expected):
    created_at = (NOW - timedelta(days=created_days_ago)).isoformat()

    assert customers_service.classify_customer(orders, spent, created_at, now=NOW) == expected


def test_full_address_skips_empty_parts():
    address = {
        "street": "Rua A",
        "number": "10",
        "neighborhood": "Centro",
        "city": "Santos",
        "state": "SP",
        "zip_code": "11010000",
    }

    assert customers_service.format_full_address(address) == "Rua A, 10 - Centro - Santos/SP - CEP: 11010000"
    assert customers_service.format_full_address(None) == customers_service.MISSING_ADDRESS


def _search_rows(monkeypatch):
    captured = {}

    def search(name_terms, phone_digits, limit):
        captured.update(name_terms=name_terms, phone_digits=phone_digits, limit=limit)
        return [
            {
                "id": "c1",
                "full_name": "José Antônio",
                "phone": "11999990000",
                "customer_addresses": [
                    {"id": "a1", "street": "Rua B", "label": "Casa", "is_default": False},
                    {"id": "a2", "street": "Rua C", "label": "Trabalho", "is_default": True},
                ],
                "orders": [{"count": 4}],
            },
            {"id": "c2", "full_name": "Maria Lima", "phone": "11988887777"},
        ]

    monkeypatch.setattr(profiles_repository, "search_customers", search)
    return captured


def test_search_ignores_accents(monkeypatch):
    captured = _search_rows(monkeypatch)

    results = asyncio.run(customers_service.search_customers("JOSE"))

    assert [result.id for result in results] == ["c1"]
    assert results[0].total_orders == 4
    assert results[0].primary_address.name == "Trabalho"
    assert captured["name_terms"] == ["jose", "jose"]
    assert captured["limit"] == 50


def test_search_matches_phone_digits(monkeypatch):
    _search_rows(monkeypatch)

    results = asyncio.run(customers_service.search_customers("98888-7777"))

    assert [result.id for result in results] == ["c2"]


def test_short_query_returns_nothing(monkeypatch):
    def fail(*args):
        raise AssertionError("repository should not be queried")

    monkeypatch.setattr(profiles_repository, "search_customers", fail)

    assert asyncio.run(customers_service.search_customers("a")) == []


def test_placeholder_email_uses_phone():
    assert customers_service.placeholder_email("11987654321").startswith("cliente_11987654321@")


def test_duplicate_phone_is_conflict(monkeypatch):
    monkeypatch.setattr(
        profiles_repository, "fetch_profile_by", lambda column, value, role=None: {"id": "c1"}
    )

    with pytest.raises(ConflictError):
        asyncio.run(customers_service.create_customer(CustomerCreate(name="Ana", phone="11987654321")))


def test_create_customer_with_address(monkeypatch):
    monkeypatch.setattr(profiles_repository, "fetch_profile_by", lambda column, value, role=None: None)
    accounts = []

    async def create_account(email, password, full_name, role, phone=None):
        accounts.append((email, role, phone))
        return {"id": "c9", "email": email, "full_name": full_name, "phone": phone}

    monkeypatch.setattr(auth_service, "create_account", create_account)
    monkeypatch.setattr(
        addresses_repository, "insert_address", lambda record: {**record, "id": "addr-1"}
    )
    payload = CustomerCreate(
        name="Ana Paula",
        phone="(11) 98765-4321",
        address={
            "street": "Rua A",
            "number": "1",
            "neighborhood": "Centro",
            "city": "Santos",
            "state": "sp",
            "zip_code": "11010-000",
        },
    )

    customer = asyncio.run(customers_service.create_customer(payload))

    assert accounts == [(customers_service.placeholder_email("11987654321"), "customer", "11987654321")]
    assert customer.primary_address.is_default is True
    assert customer.primary_address.state == "SP"
    assert customer.primary_address.zip_code == "11010000"
