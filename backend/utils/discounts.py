import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

DISCOUNT_FIELDS = ("discount", "discount_days", "discount_start_date")


def _as_datetime(value) -> Optional[datetime]:
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None

    # compared against naive UTC
    if value.tzinfo is not None:
        value = value.replace(tzinfo=None) - value.utcoffset()
    return value


def discount_expires_at(product: dict) -> Optional[datetime]:
    """None unless discount, discount_days and discount_start_date are all set."""
    if not product.get("discount") or not product.get("discount_days"):
        return None

    start = _as_datetime(product.get("discount_start_date"))
    if start is None:
        return None

    return start + timedelta(days=int(product["discount_days"]))


def is_discount_expired(product: dict, now: Optional[datetime] = None) -> bool:
    expires_at = discount_expires_at(product)
    if expires_at is None:
        return False
    return (now or datetime.utcnow()) > expires_at


def apply_discount_expiry(product: dict, now: Optional[datetime] = None) -> dict:
    """Copy of `product` with the discount cleared if it has run out; never writes."""
    if not is_discount_expired(product, now):
        return product

    cleared = dict(product)
    for field in DISCOUNT_FIELDS:
        cleared[field] = None
    return cleared


async def check_and_clear_expired_discount(db, product_id, now: Optional[datetime] = None) -> bool:
    product = await db.products.find_one(
        {"_id": product_id},
        {field: 1 for field in DISCOUNT_FIELDS},
    )
    if not product:
        return False

    cleared = apply_discount_expiry(product, now)
    if cleared is product:
        return False

    await db.products.update_one(
        {"_id": product_id},
        {"$set": {field: cleared[field] for field in DISCOUNT_FIELDS}},
    )
    logger.info("DISCOUNT_EXPIRED product=%s", product_id)
    return True


async def check_and_clear_expired_discounts(db, product_ids: Iterable, now: Optional[datetime] = None) -> int:
    cleared = 0
    for product_id in product_ids:
        if await check_and_clear_expired_discount(db, product_id, now):
            cleared += 1
    return cleared


async def sweep_expired_discounts(db, now: Optional[datetime] = None) -> int:
    """Batch clear over every product that currently carries a discount."""
    product_ids = []
    async for p in db.products.find(
        {"discount": {"$ne": None}, "discount_start_date": {"$ne": None}},
        {"_id": 1},
    ):
        product_ids.append(p["_id"])

    return await check_and_clear_expired_discounts(db, product_ids, now)
