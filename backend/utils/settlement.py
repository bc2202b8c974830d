import logging
from datetime import datetime
from typing import Dict, Iterable, Tuple

from pymongo.errors import DuplicateKeyError

from config.constants import TRANSACTION_RENT, TRANSACTION_SALE
from utils.product_removal import remove_purchased_products
from utils.revenue import check_and_block_seller

logger = logging.getLogger(__name__)


# ==============================
# Aggregation (pure)
# ==============================

def aggregate_seller_totals(items: Iterable[dict], product_owners: Dict) -> Dict[Tuple, float]:
    """
    Sum price * quantity per (seller_id, transaction type).

    A detached item falls back to the seller id stamped on it at removal.
    Items with no seller either way are skipped, as are items with a
    non-positive total.
    """
    totals: Dict[Tuple, float] = {}

    for item in items:
        seller_id = product_owners.get(item.get("product_id")) or item.get("seller_id")
        if not seller_id:
            continue

        tx_type = TRANSACTION_RENT if item.get("is_rental") else TRANSACTION_SALE
        item_total = (item.get("price") or 0) * (item.get("quantity") or 1)
        if item_total <= 0:
            continue

        key = (seller_id, tx_type)
        totals[key] = totals.get(key, 0) + item_total

    return totals


# ==============================
# Ledger write (idempotent)
# ==============================

async def record_seller_transaction(db, *, order_id, seller_id, tx_type: str, total: float) -> bool:
    """Returns True if a new ledger row was written, False if one already existed."""
    key = {"order_id": order_id, "user_id": seller_id, "type": tx_type}

    if await db.transactions.find_one(key, {"_id": 1}):
        return False

    try:
        await db.transactions.insert_one({
            **key,
            "total": total,
            "created_at": datetime.utcnow(),
        })
    except DuplicateKeyError:
        # concurrent settlement of the same order got there first
        return False

    return True


async def _load_product_owners(db, items) -> Dict:
    product_ids = list({i["product_id"] for i in items if i.get("product_id") is not None})
    if not product_ids:
        return {}

    owners = {}
    async for p in db.products.find({"_id": {"$in": product_ids}}, {"seller_id": 1}):
        owners[p["_id"]] = p.get("seller_id")
    return owners


# ==============================
# Settlement (order became PAID)
# ==============================

async def settle_order(db, order_id) -> dict:
    order = await db.orders.find_one({"_id": order_id})
    if not order:
        logger.warning("SETTLEMENT_ORDER_NOT_FOUND order=%s", order_id)
        return {"order_id": order_id, "created": [], "blocked": [], "removed": []}

    # must finish before new rows are recorded
    buyer_id = order.get("buyer_id")
    if buyer_id:
        await db.transactions.delete_many({"order_id": order_id, "user_id": buyer_id})

    items = await db.order_items.find({"order_id": order_id}).to_list(None)
    owners = await _load_product_owners(db, items)

    created = []
    blocked = []
    for (seller_id, tx_type), total in aggregate_seller_totals(items, owners).items():
        is_new = await record_seller_transaction(
            db,
            order_id=order_id,
            seller_id=seller_id,
            tx_type=tx_type,
            total=total,
        )
        if not is_new:
            continue

        created.append({"seller_id": seller_id, "type": tx_type, "total": total})

        try:
            if await check_and_block_seller(db, seller_id):
                blocked.append(seller_id)
        except Exception:
            logger.exception("SELLER_BLOCK_CHECK_ERROR seller=%s order=%s", seller_id, order_id)

    sold_product_ids = [
        i["product_id"]
        for i in items
        if not i.get("is_rental") and i.get("product_id") is not None
    ]
    removed = await remove_purchased_products(db, sold_product_ids, order_id=order_id)

    logger.info(
        "SETTLEMENT_DONE order=%s transactions=%s blocked=%s removed=%s",
        order_id, len(created), len(blocked), len(removed),
    )
    return {"order_id": order_id, "created": created, "blocked": blocked, "removed": removed}
