import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from errors import ConflictError, InvalidRequestError, NotFoundError
from repositories import categories_repository, products_repository
from schemas import (
    CategoryCreate,
    CategoryOrderItem,
    CategoryResponse,
    CategoryUpdate,
    ProductCreate,
    ProductOption,
    ProductResponse,
    ProductUpdate,
)
from validators import sanitize_string

logger = logging.getLogger("pizza-delivery")


def _options(raw: Any) -> List[ProductOption]:
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return []
    if not isinstance(raw, list):
        return []
    options = []
    for item in raw:
        if isinstance(item, dict) and item.get("name"):
            options.append(ProductOption(name=item["name"], price=float(item.get("price") or 0)))
    return options


def _format_product(row: Dict[str, Any]) -> ProductResponse:
    return ProductResponse(
        id=row["id"],
        name=row.get("name") or "",
        description=row.get("description") or "",
        price=float(row.get("price") or 0),
        image=row.get("image") or "",
        category_id=row.get("category_id"),
        available=row.get("available") is not False,
        show_image=row.get("show_image") is not False,
        product_number=row.get("product_number"),
        sizes=_options(row.get("sizes")),
        toppings=_options(row.get("toppings")),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _format_category(row: Dict[str, Any]) -> CategoryResponse:
    return CategoryResponse(
        id=row["id"],
        name=row.get("name") or "",
        description=row.get("description") or "",
        image=row.get("image") or "",
        sort_order=row.get("sort_order") or 0,
        active=row.get("active") is not False,
    )


def _product_record(values: Dict[str, Any]) -> Dict[str, Any]:
    record = dict(values)
    for key in ("name", "description"):
        if key in record:
            record[key] = sanitize_string(record[key])
    for key in ("sizes", "toppings"):
        if record.get(key) is not None:
            record[key] = [dict(option) for option in record[key]]
    return record


async def list_products(
    category_id: Optional[str] = None,
    available_only: bool = False,
) -> List[ProductResponse]:
    rows = await asyncio.to_thread(
        products_repository.fetch_products,
        category_id=category_id,
        available_only=available_only,
    )
    return [_format_product(row) for row in rows]


async def get_product(product_id: str) -> ProductResponse:
    row = await asyncio.to_thread(products_repository.fetch_product, product_id)
    if not row:
        raise NotFoundError("Product not found")
    return _format_product(row)


async def create_product(payload: ProductCreate) -> ProductResponse:
    category = await asyncio.to_thread(categories_repository.fetch_category, payload.category_id)
    if not category:
        raise InvalidRequestError("Category not found")
    record = _product_record(payload.model_dump())
    row = await asyncio.to_thread(products_repository.insert_product, record)
    logger.info("Created product id=%s", row.get("id"))
    return _format_product(row)


async def update_product(product_id: str, payload: ProductUpdate) -> ProductResponse:
    changes = _product_record(payload.model_dump(exclude_unset=True))
    if not changes:
        raise InvalidRequestError("No fields to update")
    existing = await asyncio.to_thread(products_repository.fetch_product, product_id)
    if not existing:
        raise NotFoundError("Product not found")
    if changes.get("category_id"):
        category = await asyncio.to_thread(
            categories_repository.fetch_category, changes["category_id"]
        )
        if not category:
            raise InvalidRequestError("Category not found")
    changes["updated_at"] = datetime.now(timezone.utc).isoformat()
    row = await asyncio.to_thread(products_repository.update_product, product_id, changes)
    if not row:
        raise NotFoundError("Product not found")
    return _format_product(row)


async def delete_product(product_id: str) -> None:
    deleted = await asyncio.to_thread(products_repository.delete_product, product_id)
    if not deleted:
        raise NotFoundError("Product not found")
    logger.info("Deleted product id=%s", product_id)


async def list_categories() -> List[CategoryResponse]:
    rows = await asyncio.to_thread(categories_repository.fetch_active_categories)
    return [_format_category(row) for row in rows]


async def get_category(category_id: str) -> CategoryResponse:
    row = await asyncio.to_thread(categories_repository.fetch_category, category_id)
    if not row:
        raise NotFoundError("Category not found")
    return _format_category(row)


async def create_category(payload: CategoryCreate) -> CategoryResponse:
    sort_order = payload.sort_order
    if sort_order is None:
        existing = await asyncio.to_thread(categories_repository.fetch_active_categories)
        sort_order = max((row.get("sort_order") or 0 for row in existing), default=0) + 1
    record = {
        "name": sanitize_string(payload.name),
        "description": sanitize_string(payload.description) or "",
        "image": payload.image or "",
        "sort_order": sort_order,
        "active": True,
    }
    row = await asyncio.to_thread(categories_repository.insert_category, record)
    return _format_category(row)


async def update_category(category_id: str, payload: CategoryUpdate) -> CategoryResponse:
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise InvalidRequestError("No fields to update")
    for key in ("name", "description"):
        if key in changes:
            changes[key] = sanitize_string(changes[key])
    row = await asyncio.to_thread(categories_repository.update_category, category_id, changes)
    if not row:
        raise NotFoundError("Category not found")
    return _format_category(row)


async def delete_category(category_id: str) -> None:
    in_use = await asyncio.to_thread(products_repository.count_by_category, category_id)
    if in_use:
        raise ConflictError(f"Category has {in_use} product(s) and cannot be deleted")
    deleted = await asyncio.to_thread(categories_repository.delete_category, category_id)
    if not deleted:
        raise NotFoundError("Category not found")


async def reorder_categories(items: List[CategoryOrderItem]) -> int:
    if not items:
        raise InvalidRequestError("No categories to reorder")
    for item in items:
        row = await asyncio.to_thread(
            categories_repository.update_category, item.id, {"sort_order": item.sort_order}
        )
        if not row:
            raise NotFoundError(f"Category not found: {item.id}")
    return len(items)
