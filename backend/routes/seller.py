from fastapi import APIRouter, Depends, Query

from config.env import REVENUE_BLOCK_THRESHOLD
from database import get_db
from utils.mongo import serialize_docs
from utils.revenue import get_revenue_breakdown
from utils.security import get_current_seller

router = APIRouter(prefix="/seller", tags=["Seller"])


# ======================================================
# SELLER REVENUE (READ ONLY)
# ======================================================

@router.get("/revenue")
async def get_seller_revenue(
    seller=Depends(get_current_seller),
    db=Depends(get_db),
):
    breakdown = await get_revenue_breakdown(db, seller["_id"])
    verification = seller.get("verification") or {}

    return {
        "success": True,
        "revenue": breakdown,
        "blocked": bool(seller.get("blocked")),
        "verified": bool(seller.get("verified")),
        "entrepreneur_status": verification.get("entrepreneur_status"),
        "block_threshold": REVENUE_BLOCK_THRESHOLD,
    }


@router.get("/transactions")
async def get_seller_transactions(
    limit: int = Query(50, ge=1, le=200),
    seller=Depends(get_current_seller),
    db=Depends(get_db),
):
    ledger = (
        await db.transactions
        .find({"user_id": seller["_id"]})
        .sort("created_at", -1)
        .limit(limit)
        .to_list(limit)
    )

    return {"success": True, "count": len(ledger), "transactions": serialize_docs(ledger)}
