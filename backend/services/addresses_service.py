import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from config import settings
from errors import BackendError, InvalidRequestError, NotFoundError, PermissionDeniedError
from repositories import addresses_repository
from schemas import AddressInput, AddressView, CepLookupResponse
from validators import digits_only, sanitize_string

logger = logging.getLogger("pizza-delivery")

TEXT_FIELDS = ("street", "number", "complement", "neighborhood", "city")


def format_address(row: Dict[str, Any]) -> AddressView:
    return AddressView(
        id=row["id"],
        user_id=row.get("user_id"),
        name=row.get("label") or row.get("name") or "Endereço",
        street=row.get("street") or "",
        number=row.get("number") or "",
        complement=row.get("complement"),
        neighborhood=row.get("neighborhood") or "",
        city=row.get("city") or "",
        state=row.get("state") or "",
        zip_code=row.get("zip_code") or "",
        is_default=bool(row.get("is_default")),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _record(payload: AddressInput) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "label": sanitize_string(payload.name) or "Endereço",
        "state": payload.state,
        "zip_code": payload.zip_code,
        "is_default": payload.is_default,
    }
    for key in TEXT_FIELDS:
        record[key] = sanitize_string(getattr(payload, key))
    return record


async def _owned_address(address_id: str, user_id: str, admin: bool) -> Dict[str, Any]:
    row = await asyncio.to_thread(addresses_repository.fetch_address, address_id)
    if not row:
        raise NotFoundError("Address not found")
    if not admin and row.get("user_id") != user_id:
        raise PermissionDeniedError("You can only manage your own addresses")
    return row


async def list_addresses(user_id: str) -> List[AddressView]:
    rows = await asyncio.to_thread(addresses_repository.fetch_user_addresses, user_id)
    return [format_address(row) for row in rows]


async def get_address(address_id: str, user_id: str, admin: bool = False) -> AddressView:
    return format_address(await _owned_address(address_id, user_id, admin))


async def create_address(owner_id: str, payload: AddressInput) -> AddressView:
    record = _record(payload)
    record["user_id"] = owner_id
    if payload.is_default:
        await asyncio.to_thread(addresses_repository.clear_default, owner_id)
    try:
        row = await asyncio.to_thread(addresses_repository.insert_address, record)
    except Exception as exc:
        logger.exception("Failed to store address user=%s", owner_id)
        raise BackendError("Failed to store address") from exc
    return format_address(row)


async def update_address(
    address_id: str,
    user_id: str,
    payload: AddressInput,
    admin: bool = False,
) -> AddressView:
    current = await _owned_address(address_id, user_id, admin)
    changes = _record(payload)
    changes["updated_at"] = datetime.now(timezone.utc).isoformat()
    if payload.is_default:
        await asyncio.to_thread(
            addresses_repository.clear_default, current["user_id"], address_id
        )
    row = await asyncio.to_thread(addresses_repository.update_address, address_id, changes)
    if not row:
        raise NotFoundError("Address not found")
    return format_address(row)


async def set_default(
    address_id: str,
    user_id: str,
    is_default: bool,
    admin: bool = False,
) -> AddressView:
    current = await _owned_address(address_id, user_id, admin)
    if is_default:
        await asyncio.to_thread(
            addresses_repository.clear_default, current["user_id"], address_id
        )
    row = await asyncio.to_thread(
        addresses_repository.update_address,
        address_id,
        {"is_default": is_default, "updated_at": datetime.now(timezone.utc).isoformat()},
    )
    if not row:
        raise NotFoundError("Address not found")
    return format_address(row)


async def delete_address(address_id: str, user_id: str, admin: bool = False) -> None:
    await _owned_address(address_id, user_id, admin)
    await asyncio.to_thread(addresses_repository.delete_address, address_id)


def _fetch_cep(cep: str) -> Dict[str, Any]:
    response = requests.get(f"{settings.viacep_url}/{cep}/json/", timeout=10)
    response.raise_for_status()
    return response.json()


async def lookup_cep(raw_cep: str) -> CepLookupResponse:
    cep = digits_only(raw_cep)
    if len(cep) != 8:
        raise InvalidRequestError("Zip code (CEP) must have 8 digits")
    try:
        data: Optional[Dict[str, Any]] = await asyncio.to_thread(_fetch_cep, cep)
    except requests.RequestException as exc:
        logger.warning("CEP lookup failed cep=%s", cep, exc_info=True)
        raise BackendError("Zip code lookup unavailable") from exc
    if not data or data.get("erro"):
        raise NotFoundError("Zip code not found")
    return CepLookupResponse(
        zip_code=cep,
        street=data.get("logradouro") or "",
        neighborhood=data.get("bairro") or "",
        city=data.get("localidade") or "",
        state=data.get("uf") or "",
    )
