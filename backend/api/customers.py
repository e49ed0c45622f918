from fastapi import APIRouter, Depends, Query, status

from auth import require_admin
from rate_limiter import rate_limit
from schemas import (
    CustomerCreate,
    CustomerCreateResponse,
    CustomerListResponse,
    CustomerSearchResponse,
    OrderListResponse,
)
from services import customers_service

router = APIRouter(
    prefix="/api/customers",
    tags=["customers"],
    dependencies=[Depends(require_admin), Depends(rate_limit("customers"))],
)


@router.get("", response_model=CustomerListResponse)
async def list_customers() -> CustomerListResponse:
    customers = await customers_service.list_customers()
    return CustomerListResponse(customers=customers, total=len(customers))


@router.get("/search", response_model=CustomerSearchResponse)
async def search_customers(
    q: str = Query(default=""),
    limit: int = Query(default=10, ge=1, le=50),
) -> CustomerSearchResponse:
    return CustomerSearchResponse(customers=await customers_service.search_customers(q, limit))


@router.post("", response_model=CustomerCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(payload: CustomerCreate) -> CustomerCreateResponse:
    customer = await customers_service.create_customer(payload)
    return CustomerCreateResponse(message="Customer created", customer=customer)


@router.get("/{customer_id}/orders", response_model=OrderListResponse)
async def list_customer_orders(
    customer_id: str,
    limit: int = Query(default=50, ge=1, le=100),
) -> OrderListResponse:
    return OrderListResponse(orders=await customers_service.get_customer_orders(customer_id, limit))
