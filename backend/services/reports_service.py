"""
Sales and delivery summaries for the admin reports screen.

Everything is computed from one read of the orders created inside the
requested window; cancelled orders count towards the status breakdown but
not towards revenue, tickets or product rankings.
"""

import asyncio
import logging
from collections import Counter, defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import numpy as np

from repositories import drivers_repository, orders_repository
from schemas import DailySales, DriverPerformance, ReportSummary, TopProduct
from services.order_status import CANCELLED, DELIVERED, ORDER_STATUSES
from validators import parse_timestamp

logger = logging.getLogger("pizza-delivery")

TOP_PRODUCTS_LIMIT = 10


def _daily_series(orders: List[Dict[str, Any]], since: datetime, now: datetime) -> List[DailySales]:
    buckets: Dict[Any, List[float]] = defaultdict(list)
    for order in orders:
        created = parse_timestamp(order.get("created_at"))
        if created:
            buckets[created.date()].append(float(order.get("total") or 0))
    series = []
    day = since.date()
    while day <= now.date():
        totals = buckets.get(day, [])
        series.append(DailySales(date=day, orders=len(totals), revenue=round(float(np.sum(totals)), 2)))
        day += timedelta(days=1)
    return series


def _top_products(orders: List[Dict[str, Any]]) -> List[TopProduct]:
    quantities: Counter = Counter()
    revenue: Dict[str, float] = defaultdict(float)
    for order in orders:
        for item in order.get("order_items") or []:
            product = item.get("products") or {}
            name = item.get("name") or product.get("name") or "Produto"
            quantities[name] += int(item.get("quantity") or 0)
            revenue[name] += float(item.get("total_price") or 0)
    return [
        TopProduct(name=name, quantity=quantity, revenue=round(revenue[name], 2))
        for name, quantity in quantities.most_common(TOP_PRODUCTS_LIMIT)
    ]


def _delivery_minutes(order: Dict[str, Any]) -> Optional[float]:
    created = parse_timestamp(order.get("created_at"))
    delivered = parse_timestamp(order.get("delivered_at"))
    if not created or not delivered or delivered < created:
        return None
    return (delivered - created).total_seconds() / 60


def _delivery_performance(
    orders: List[Dict[str, Any]],
    driver_names: Dict[str, str],
) -> List[DriverPerformance]:
    minutes_by_driver: Dict[str, List[float]] = defaultdict(list)
    deliveries: Counter = Counter()
    for order in orders:
        driver_id = order.get("driver_id")
        if not driver_id or order.get("status") != DELIVERED:
            continue
        deliveries[driver_id] += 1
        minutes = _delivery_minutes(order)
        if minutes is not None:
            minutes_by_driver[driver_id].append(minutes)

    performance = []
    for driver_id, count in deliveries.most_common():
        samples = np.array(minutes_by_driver.get(driver_id, []), dtype=float)
        performance.append(
            DriverPerformance(
                driver_id=driver_id,
                name=driver_names.get(driver_id),
                deliveries=count,
                average_minutes=round(float(samples.mean()), 1) if samples.size else None,
                p90_minutes=round(float(np.percentile(samples, 90)), 1) if samples.size else None,
            )
        )
    return performance


def build_summary(
    orders: List[Dict[str, Any]],
    driver_names: Dict[str, str],
    days: int,
    now: datetime,
) -> ReportSummary:
    since = now - timedelta(days=days)
    billable = [order for order in orders if order.get("status") != CANCELLED]
    totals = np.array([float(order.get("total") or 0) for order in billable], dtype=float)
    revenue = float(totals.sum()) if totals.size else 0.0
    by_status = {status: 0 for status in ORDER_STATUSES}
    for order in orders:
        status = order.get("status")
        by_status[status] = by_status.get(status, 0) + 1
    return ReportSummary(
        days=days,
        since=since,
        total_orders=len(orders),
        revenue=round(revenue, 2),
        average_ticket=round(float(totals.mean()), 2) if totals.size else 0.0,
        orders_by_status=by_status,
        daily_sales=_daily_series(billable, since, now),
        top_products=_top_products(billable),
        delivery_performance=_delivery_performance(orders, driver_names),
    )


async def get_summary(days: int = 30) -> ReportSummary:
    now = datetime.now(timezone.utc)
    since = now - timedelta(days=days)
    orders = await asyncio.to_thread(orders_repository.fetch_orders_since, since.isoformat())
    drivers = await asyncio.to_thread(drivers_repository.fetch_drivers)
    driver_names = {driver["id"]: driver.get("name") for driver in drivers}
    logger.info("Report summary days=%s orders=%s", days, len(orders))
    return build_summary(orders, driver_names, days, now)
