from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from auth import require_admin
from schemas import (
    DriverCreate,
    DriverDeleteResponse,
    DriverListResponse,
    DriverResponse,
    DriverUpdate,
)
from services import drivers_service

router = APIRouter(prefix="/api/drivers", tags=["drivers"], dependencies=[Depends(require_admin)])


@router.get("", response_model=DriverListResponse)
async def list_drivers(
    driver_status: Optional[str] = Query(default=None, alias="status"),
) -> DriverListResponse:
    drivers, statistics = await drivers_service.list_drivers(driver_status)
    return DriverListResponse(drivers=drivers, statistics=statistics)


@router.post("", response_model=DriverResponse, status_code=status.HTTP_201_CREATED)
async def create_driver(payload: DriverCreate) -> DriverResponse:
    driver = await drivers_service.create_driver(payload)
    return DriverResponse(driver=driver, message="Driver created")


@router.get("/{driver_id}", response_model=DriverResponse)
async def read_driver(driver_id: str) -> DriverResponse:
    return DriverResponse(driver=await drivers_service.get_driver(driver_id))


@router.patch("/{driver_id}", response_model=DriverResponse)
async def update_driver(driver_id: str, payload: DriverUpdate) -> DriverResponse:
    driver = await drivers_service.update_driver(driver_id, payload)
    return DriverResponse(driver=driver, message="Driver updated")


@router.delete("/{driver_id}", response_model=DriverDeleteResponse)
async def delete_driver(driver_id: str) -> DriverDeleteResponse:
    return DriverDeleteResponse(**await drivers_service.delete_driver(driver_id))
