from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from auth import require_admin
from rate_limiter import rate_limit
from schemas import ProductCreate, ProductResponse, ProductUpdate
from services import catalog_service

router = APIRouter(
    prefix="/api/products",
    tags=["products"],
    dependencies=[Depends(rate_limit("products"))],
)


@router.get("", response_model=List[ProductResponse])
async def list_products(
    category_id: Optional[str] = Query(default=None),
    available_only: bool = Query(default=False),
) -> List[ProductResponse]:
    return await catalog_service.list_products(category_id, available_only)


@router.get("/{product_id}", response_model=ProductResponse)
async def read_product(product_id: str) -> ProductResponse:
    return await catalog_service.get_product(product_id)


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_product(payload: ProductCreate) -> ProductResponse:
    return await catalog_service.create_product(payload)


@router.put("/{product_id}", response_model=ProductResponse, dependencies=[Depends(require_admin)])
@router.patch("/{product_id}", response_model=ProductResponse, dependencies=[Depends(require_admin)])
async def update_product(product_id: str, payload: ProductUpdate) -> ProductResponse:
    return await catalog_service.update_product(product_id, payload)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def delete_product(product_id: str) -> Response:
    await catalog_service.delete_product(product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
