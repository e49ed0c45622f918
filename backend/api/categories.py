from fastapi import APIRouter, Depends, Response, status

from auth import require_admin
from schemas import (
    CategoryCreate,
    CategoryListResponse,
    CategoryOrderRequest,
    CategoryResponse,
    CategoryUpdate,
    MessageResponse,
)
from services import catalog_service

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("", response_model=CategoryListResponse)
async def list_categories() -> CategoryListResponse:
    categories = await catalog_service.list_categories()
    return CategoryListResponse(categories=categories)


@router.put("/order", response_model=MessageResponse, dependencies=[Depends(require_admin)])
async def reorder_categories(payload: CategoryOrderRequest) -> MessageResponse:
    count = await catalog_service.reorder_categories(payload.category_orders)
    return MessageResponse(message=f"{count} categories reordered")


@router.get("/{category_id}", response_model=CategoryResponse)
async def read_category(category_id: str) -> CategoryResponse:
    return await catalog_service.get_category(category_id)


@router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_category(payload: CategoryCreate) -> CategoryResponse:
    return await catalog_service.create_category(payload)


@router.put("/{category_id}", response_model=CategoryResponse, dependencies=[Depends(require_admin)])
async def update_category(category_id: str, payload: CategoryUpdate) -> CategoryResponse:
    return await catalog_service.update_category(category_id, payload)


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def delete_category(category_id: str) -> Response:
    await catalog_service.delete_category(category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
