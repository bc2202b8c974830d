import logging
from datetime import datetime
from typing import Dict, Optional

from config.constants import ENTREPRENEUR_APPROVED, TRANSACTION_RENT, TRANSACTION_SALE
from config.env import REVENUE_BLOCK_THRESHOLD
from utils.audit import log_audit

logger = logging.getLogger(__name__)

# ============================================================
# SELLER REVENUE (DERIVED FROM LEDGER ONLY)
# ============================================================

async def get_revenue_breakdown(db, seller_id) -> Dict[str, float]:
    pipeline = [
        {"$match": {"user_id": seller_id}},
        {"$group": {
            "_id": "$type",
            "total": {"$sum": "$total"},
        }},
    ]

    rows = await db.transactions.aggregate(pipeline).to_list(None)
    summary = {r["_id"]: r["total"] for r in rows}

    sale = summary.get(TRANSACTION_SALE, 0)
    rent = summary.get(TRANSACTION_RENT, 0)
    return {
        "sale": sale,
        "rent": rent,
        "total": sum(summary.values()),
    }


async def calculate_seller_revenue(db, seller_id) -> float:
    breakdown = await get_revenue_breakdown(db, seller_id)
    return breakdown["total"]


# ============================================================
# AUTO BLOCK (UNVERIFIED SELLER REVENUE TRIPWIRE)
# ============================================================
# Unverified sellers who start earning must finish identity or
# entrepreneur verification before they can keep selling.

def is_block_eligible(seller: Optional[dict]) -> bool:
    if not seller:
        return False
    if seller.get("verified") or seller.get("blocked"):
        return False

    entrepreneur_status = (seller.get("verification") or {}).get("entrepreneur_status")
    return entrepreneur_status != ENTREPRENEUR_APPROVED


async def check_and_block_seller(db, seller_id, threshold: Optional[float] = None) -> bool:
    """
    Block `seller_id` if they are still unverified and their lifetime ledger total
    has reached `threshold`. Returns True only when the block happened on this call.
    Once blocked, only a manual unblock re-arms the check.
    """
    if threshold is None:
        threshold = REVENUE_BLOCK_THRESHOLD

    seller = await db.users.find_one({"_id": seller_id})
    if not is_block_eligible(seller):
        return False

    owns_product = await db.products.find_one({"seller_id": seller_id}, {"_id": 1})
    if not owns_product:
        return False

    revenue = await calculate_seller_revenue(db, seller_id)
    if revenue < threshold:
        return False

    now = datetime.utcnow()
    result = await db.users.update_one(
        {"_id": seller_id, "blocked": {"$ne": True}},
        {
            "$set": {
                "blocked": True,
                "blocked_reason": "REVENUE_THRESHOLD_UNVERIFIED",
                "blocked_at": now,
                "updated_at": now,
            }
        },
    )
    if result.modified_count != 1:
        return False

    await log_audit(
        db,
        action="SELLER_AUTO_BLOCKED",
        target_user_id=seller_id,
        metadata={"revenue": revenue, "threshold": threshold},
    )
    logger.warning("SELLER_AUTO_BLOCKED seller=%s revenue=%s threshold=%s", seller_id, revenue, threshold)
    return True
