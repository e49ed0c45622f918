"""
Customer directory for the admin console: listing with activity status,
accent-insensitive search and quick registration of phone customers.
"""

import asyncio
import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from unidecode import unidecode

from constants import PLACEHOLDER_EMAIL_DOMAIN, ROLE_CUSTOMER
from errors import BackendError, ConflictError
from repositories import addresses_repository, orders_repository, profiles_repository
from schemas import CustomerCreate, CustomerSearchResult, CustomerSummary, OrderView
from services import auth_service, orders_service
from services.addresses_service import format_address
from validators import digits_only, parse_timestamp, sanitize_string

logger = logging.getLogger("pizza-delivery")

VIP_MIN_ORDERS = 20
VIP_MIN_SPENT = 500.0
NEW_CUSTOMER_DAYS = 30
MISSING_ADDRESS = "Endereço não cadastrado"


def normalize_text(value: Optional[str]) -> str:
    return unidecode(value or "").lower().strip()


def classify_customer(
    total_orders: int,
    total_spent: float,
    created_at: Any,
    last_order_at: Any = None,
    now: Optional[datetime] = None,
) -> str:
    if total_orders >= VIP_MIN_ORDERS or total_spent >= VIP_MIN_SPENT:
        return "vip"
    if total_orders > 0:
        return "active"
    now = now or datetime.now(timezone.utc)
    moments = [moment for moment in (parse_timestamp(created_at), parse_timestamp(last_order_at)) if moment]
    if moments and (now - max(moments)).days < NEW_CUSTOMER_DAYS:
        return "active"
    return "inactive"


def format_full_address(address: Optional[Dict[str, Any]]) -> str:
    if not address or not address.get("street"):
        return MISSING_ADDRESS
    parts = [
        f"{address.get('street')}, {address.get('number') or ''}".strip(),
        f"({address['complement']})" if address.get("complement") else "",
        address.get("neighborhood") or "",
        f"{address.get('city') or ''}/{address.get('state') or ''}",
        f"CEP: {address['zip_code']}" if address.get("zip_code") else "",
    ]
    return " - ".join(part for part in parts if part)


def _summarize(
    customer: Dict[str, Any],
    address: Optional[Dict[str, Any]],
    orders: List[Dict[str, Any]],
) -> CustomerSummary:
    total_spent = round(sum(float(order.get("total") or 0) for order in orders), 2)
    order_dates = [parse_timestamp(order.get("created_at")) for order in orders]
    order_dates = [moment for moment in order_dates if moment]
    last_order_at = max(order_dates) if order_dates else None
    address = address or {}
    return CustomerSummary(
        id=customer["id"],
        name=customer.get("full_name") or "Nome não informado",
        email=customer.get("email") or "Email não informado",
        phone=customer.get("phone") or "Telefone não informado",
        address=format_full_address(address),
        street=address.get("street") or "",
        number=address.get("number") or "",
        complement=address.get("complement") or "",
        neighborhood=address.get("neighborhood") or "",
        city=address.get("city") or "",
        state=address.get("state") or "",
        zip_code=address.get("zip_code") or "",
        created_at=customer.get("created_at"),
        last_order_at=last_order_at,
        total_orders=len(orders),
        total_spent=total_spent,
        status=classify_customer(len(orders), total_spent, customer.get("created_at"), last_order_at),
    )


async def _customer_details(customer: Dict[str, Any]) -> CustomerSummary:
    try:
        addresses = await asyncio.to_thread(
            addresses_repository.fetch_user_addresses, customer["id"], 1
        )
        orders = await asyncio.to_thread(
            orders_repository.fetch_user_order_totals, customer["id"]
        )
    except Exception:
        logger.warning("Failed to load details for customer %s", customer["id"], exc_info=True)
        return _summarize(customer, None, [])
    return _summarize(customer, addresses[0] if addresses else None, orders)


async def list_customers() -> List[CustomerSummary]:
    customers = await asyncio.to_thread(profiles_repository.fetch_customers)
    return list(await asyncio.gather(*(_customer_details(customer) for customer in customers)))


def _search_result(row: Dict[str, Any]) -> CustomerSearchResult:
    addresses = row.get("customer_addresses") or []
    primary = next((address for address in addresses if address.get("is_default")), None)
    if primary is None and addresses:
        primary = addresses[0]
    order_counts = row.get("orders") or []
    return CustomerSearchResult(
        id=row["id"],
        name=row.get("full_name") or "Nome não informado",
        phone=row.get("phone") or "",
        email=row.get("email") or "",
        primary_address=format_address(primary) if primary else None,
        total_orders=order_counts[0].get("count", 0) if order_counts else 0,
        created_at=row.get("created_at"),
    )


def matches_search(result: CustomerSearchResult, term: str, phone_digits: str) -> bool:
    if term and term in normalize_text(result.name):
        return True
    return bool(phone_digits) and phone_digits in digits_only(result.phone)


async def search_customers(query: Optional[str], limit: int = 10) -> List[CustomerSearchResult]:
    raw = (query or "").strip()
    if len(raw) < 2:
        return []
    term = normalize_text(raw)
    phone_digits = digits_only(raw)
    rows = await asyncio.to_thread(
        profiles_repository.search_customers,
        [raw.lower(), term],
        phone_digits,
        max(limit * 5, 50),
    )
    results = [_search_result(row) for row in rows]
    return [result for result in results if matches_search(result, term, phone_digits)][:limit]


def placeholder_email(phone_digits: str) -> str:
    return f"cliente_{phone_digits}@{PLACEHOLDER_EMAIL_DOMAIN}"


async def create_customer(payload: CustomerCreate) -> CustomerSearchResult:
    existing = await asyncio.to_thread(
        profiles_repository.fetch_profile_by, "phone", payload.phone, role=ROLE_CUSTOMER
    )
    if existing:
        raise ConflictError("A customer with this phone already exists")
    email = payload.email or placeholder_email(payload.phone)
    profile = await auth_service.create_account(
        email,
        secrets.token_urlsafe(16),
        sanitize_string(payload.name),
        ROLE_CUSTOMER,
        payload.phone,
    )

    primary = None
    if payload.address:
        record = {
            "user_id": profile["id"],
            "label": "Principal",
            "street": sanitize_string(payload.address.street),
            "number": sanitize_string(payload.address.number),
            "complement": sanitize_string(payload.address.complement),
            "neighborhood": sanitize_string(payload.address.neighborhood),
            "city": sanitize_string(payload.address.city),
            "state": payload.address.state,
            "zip_code": payload.address.zip_code,
            "is_default": True,
        }
        try:
            primary = await asyncio.to_thread(addresses_repository.insert_address, record)
        except Exception as exc:
            logger.exception("Failed to store address for new customer %s", profile["id"])
            raise BackendError("Customer created but the address could not be stored") from exc

    logger.info("Customer created id=%s", profile["id"])
    return CustomerSearchResult(
        id=profile["id"],
        name=profile.get("full_name") or payload.name,
        phone=profile.get("phone") or payload.phone,
        email=profile.get("email") or email,
        primary_address=format_address(primary) if primary else None,
        total_orders=0,
        created_at=profile.get("created_at"),
    )


async def get_customer_orders(customer_id: str, limit: int = 50) -> List[OrderView]:
    return await orders_service.list_orders(user_id=customer_id, limit=limit)
