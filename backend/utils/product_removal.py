import logging
from typing import Iterable, List

logger = logging.getLogger(__name__)


async def remove_purchased_product(db, product_id) -> bool:
    """
    Take one sold product out of circulation.

    Order: detach order items (all orders), drop it from every cart, delete the
    product document (tiers are embedded and go with it). Detached items keep
    the seller id so a later settlement can still credit them. Every step is
    safe to repeat, so a retried settlement finishes a half-done removal.
    Returns False when the product was already gone.
    """
    product = await db.products.find_one({"_id": product_id}, {"seller_id": 1})

    detach = {"product_id": None}
    if product and product.get("seller_id") is not None:
        detach["seller_id"] = product["seller_id"]

    await db.order_items.update_many(
        {"product_id": product_id},
        {"$set": detach},
    )

    await db.users.update_many(
        {"cart.product_id": product_id},
        {"$pull": {"cart": {"product_id": product_id}}},
    )

    result = await db.products.delete_one({"_id": product_id})
    return result.deleted_count == 1


async def remove_purchased_products(db, product_ids: Iterable, *, order_id=None) -> List:
    removed = []

    # de-duplicated, first-seen order
    for product_id in dict.fromkeys(p for p in product_ids if p is not None):
        try:
            if await remove_purchased_product(db, product_id):
                removed.append(product_id)
            else:
                logger.warning("PRODUCT_ALREADY_REMOVED product=%s order=%s", product_id, order_id)
        except Exception:
            logger.exception("PRODUCT_REMOVAL_ERROR product=%s order=%s", product_id, order_id)

    return removed
