from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status

from auth import get_current_profile, get_optional_user_id, is_staff, require_admin, require_staff
from rate_limiter import rate_limit
from schemas import (
    AssignDriverRequest,
    AssignDriverResponse,
    ManualOrderCreate,
    ManualOrderResponse,
    MessageResponse,
    OrderCancelRequest,
    OrderCreate,
    OrderCreateResponse,
    OrderListResponse,
    OrderMutationResponse,
    OrderStatusUpdate,
    OrderUpdate,
    OrderView,
    StatusHistoryResponse,
)
from services import orders_service

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post(
    "",
    response_model=OrderCreateResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("orders"))],
)
async def create_order(
    payload: OrderCreate,
    user_id: Optional[str] = Depends(get_optional_user_id),
) -> OrderCreateResponse:
    order = await orders_service.create_order(payload, user_id)
    return OrderCreateResponse(success=True, order=order)


@router.get("", response_model=OrderListResponse, dependencies=[Depends(require_admin)])
async def list_orders(
    order_status: Optional[str] = Query(default=None, alias="status"),
    user_id: Optional[str] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> OrderListResponse:
    orders = await orders_service.list_orders(order_status, user_id, limit, offset)
    return OrderListResponse(orders=orders)


@router.get("/mine", response_model=OrderListResponse)
async def list_my_orders(
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    profile: Dict[str, Any] = Depends(get_current_profile),
) -> OrderListResponse:
    orders = await orders_service.list_orders(user_id=profile["id"], limit=limit, offset=offset)
    return OrderListResponse(orders=orders)


@router.post(
    "/manual",
    response_model=ManualOrderResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_manual_order(payload: ManualOrderCreate) -> ManualOrderResponse:
    return await orders_service.create_manual_order(payload)


@router.get("/{order_id}", response_model=OrderView)
async def read_order(
    order_id: str,
    profile: Dict[str, Any] = Depends(get_current_profile),
) -> OrderView:
    return await orders_service.get_order(order_id, profile["id"], staff=is_staff(profile))


@router.put("/{order_id}", response_model=OrderMutationResponse, dependencies=[Depends(require_admin)])
async def update_order(order_id: str, payload: OrderUpdate) -> OrderMutationResponse:
    order = await orders_service.update_order(order_id, payload)
    return OrderMutationResponse(message="Order updated", order=order)


@router.delete("/{order_id}", response_model=MessageResponse, dependencies=[Depends(require_admin)])
async def delete_order(order_id: str) -> MessageResponse:
    await orders_service.delete_order(order_id)
    return MessageResponse(message="Order deleted")


@router.patch(
    "/{order_id}/status",
    response_model=OrderMutationResponse,
    dependencies=[Depends(require_staff)],
)
async def update_order_status(order_id: str, payload: OrderStatusUpdate) -> OrderMutationResponse:
    order = await orders_service.update_status(order_id, payload.status, payload.notes)
    return OrderMutationResponse(message="Order status updated", order=order)


@router.delete(
    "/{order_id}/status",
    response_model=OrderMutationResponse,
    dependencies=[Depends(require_staff)],
)
async def cancel_order(
    order_id: str,
    payload: Optional[OrderCancelRequest] = None,
) -> OrderMutationResponse:
    order = await orders_service.cancel_order(order_id, payload.notes if payload else None)
    return OrderMutationResponse(message="Order cancelled", order=order)


@router.get(
    "/{order_id}/history",
    response_model=StatusHistoryResponse,
    dependencies=[Depends(require_staff)],
)
async def read_status_history(order_id: str) -> StatusHistoryResponse:
    history = await orders_service.get_status_history(order_id)
    return StatusHistoryResponse(history=history)


@router.patch(
    "/{order_id}/assign-driver",
    response_model=AssignDriverResponse,
    dependencies=[Depends(require_admin)],
)
async def assign_driver(order_id: str, payload: AssignDriverRequest) -> AssignDriverResponse:
    result = await orders_service.assign_driver(order_id, payload.driver_id)
    return AssignDriverResponse(**result)


@router.delete(
    "/{order_id}/assign-driver",
    response_model=AssignDriverResponse,
    dependencies=[Depends(require_admin)],
)
async def unassign_driver(order_id: str) -> AssignDriverResponse:
    result = await orders_service.unassign_driver(order_id)
    return AssignDriverResponse(**result)
