from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from auth import ensure_self_or_admin, get_current_profile, is_admin
from schemas import (
    AddressDefaultUpdate,
    AddressInput,
    AddressListResponse,
    AddressResponse,
    CepLookupResponse,
)
from services import addresses_service

router = APIRouter(prefix="/api/addresses", tags=["addresses"])


@router.get("", response_model=AddressListResponse)
async def list_addresses(
    user_id: Optional[str] = Query(default=None),
    profile: Dict[str, Any] = Depends(get_current_profile),
) -> AddressListResponse:
    owner_id = user_id or profile["id"]
    ensure_self_or_admin(profile, owner_id)
    return AddressListResponse(addresses=await addresses_service.list_addresses(owner_id))


@router.post("", response_model=AddressResponse, status_code=status.HTTP_201_CREATED)
async def create_address(
    payload: AddressInput,
    profile: Dict[str, Any] = Depends(get_current_profile),
) -> AddressResponse:
    owner_id = payload.user_id or profile["id"]
    ensure_self_or_admin(profile, owner_id)
    return AddressResponse(address=await addresses_service.create_address(owner_id, payload))


@router.get("/cep/{cep}", response_model=CepLookupResponse)
async def lookup_cep(cep: str) -> CepLookupResponse:
    return await addresses_service.lookup_cep(cep)


@router.get("/{address_id}", response_model=AddressResponse)
async def read_address(
    address_id: str,
    profile: Dict[str, Any] = Depends(get_current_profile),
) -> AddressResponse:
    address = await addresses_service.get_address(address_id, profile["id"], is_admin(profile))
    return AddressResponse(address=address)


@router.put("/{address_id}", response_model=AddressResponse)
async def update_address(
    address_id: str,
    payload: AddressInput,
    profile: Dict[str, Any] = Depends(get_current_profile),
) -> AddressResponse:
    address = await addresses_service.update_address(
        address_id, profile["id"], payload, is_admin(profile)
    )
    return AddressResponse(address=address)


@router.patch("/{address_id}", response_model=AddressResponse)
async def set_default_address(
    address_id: str,
    payload: AddressDefaultUpdate,
    profile: Dict[str, Any] = Depends(get_current_profile),
) -> AddressResponse:
    address = await addresses_service.set_default(
        address_id, profile["id"], payload.is_default, is_admin(profile)
    )
    return AddressResponse(address=address)


@router.delete("/{address_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_address(
    address_id: str,
    profile: Dict[str, Any] = Depends(get_current_profile),
) -> Response:
    await addresses_service.delete_address(address_id, profile["id"], is_admin(profile))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
