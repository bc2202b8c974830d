from fastapi import APIRouter, Depends, HTTPException
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel
import logging

from config.constants import ORDER_PAID, TIMELINE_ADMIN_STATUS_CHANGE
from database import get_db
from models.order import OrderStatusUpdate
from models.user import BlockedUpdate, EntrepreneurDecision, EntrepreneurStatus
from utils.audit import log_audit
from utils.discounts import check_and_clear_expired_discounts, sweep_expired_discounts
from utils.guards import parse_object_id
from utils.mongo import serialize_doc
from utils.order_timeline import record_status_change
from utils.security import require_role
from utils.settlement import settle_order


router = APIRouter(prefix="/admin", tags=["Admin"])
logger = logging.getLogger(__name__)


# =====================================================
# SCHEMAS
# =====================================================

class DiscountExpiryRequest(BaseModel):
    product_ids: Optional[List[str]] = None


# =====================================================
# ORDER STATUS (MANUAL)
# =====================================================

@router.put("/orders/{order_id}/status")
async def update_order_status(
    order_id: str,
    data: OrderStatusUpdate,
    admin=Depends(require_role("admin", "support")),
    db=Depends(get_db),
):
    oid = parse_object_id(order_id, "order id")

    order = await db.orders.find_one({"_id": oid})
    if not order:
        raise HTTPException(404, "Order not found")

    previous = order.get("status")
    new_status = data.status.value

    await db.orders.update_one(
        {"_id": oid},
        {"$set": {"status": new_status, "updated_at": datetime.utcnow()}},
    )

    await record_status_change(
        db,
        order_id=oid,
        event=TIMELINE_ADMIN_STATUS_CHANGE,
        previous_status=previous,
        status=new_status,
        actor_role=admin.get("role"),
        actor_id=admin["_id"],
    )

    settlement = None
    if new_status == ORDER_PAID and previous != ORDER_PAID:
        settlement = await settle_order(db, oid)

    updated = await db.orders.find_one({"_id": oid})
    return {
        "success": True,
        "message": "Order status updated",
        "order": serialize_doc(updated),
        "transactions_created": len(settlement["created"]) if settlement else 0,
    }


# =====================================================
# SELLER BLOCK LATCH (MANUAL OVERRIDE)
# =====================================================

@router.put("/users/{user_id}/blocked")
async def set_user_blocked(
    user_id: str,
    data: BlockedUpdate,
    admin=Depends(require_role("admin", "support")),
    db=Depends(get_db),
):
    uid = parse_object_id(user_id, "user id")

    user = await db.users.find_one({"_id": uid}, {"_id": 1})
    if not user:
        raise HTTPException(404, "User not found")

    now = datetime.utcnow()
    if data.blocked:
        update = {
            "$set": {
                "blocked": True,
                "blocked_reason": data.reason or "MANUAL",
                "blocked_at": now,
                "updated_at": now,
            }
        }
    else:
        update = {
            "$set": {"blocked": False, "updated_at": now},
            "$unset": {"blocked_reason": "", "blocked_at": ""},
        }

    await db.users.update_one({"_id": uid}, update)

    await log_audit(
        db,
        action="USER_BLOCKED" if data.blocked else "USER_UNBLOCKED",
        target_user_id=uid,
        actor_id=admin["_id"],
        actor_role=admin.get("role"),
        metadata={"reason": data.reason},
    )

    return {"success": True, "user_id": user_id, "blocked": data.blocked}


# =====================================================
# ENTREPRENEUR VERIFICATION
# =====================================================

@router.patch("/users/{user_id}/entrepreneur")
async def decide_entrepreneur_status(
    user_id: str,
    data: EntrepreneurDecision,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    if data.status == EntrepreneurStatus.PENDING:
        raise HTTPException(400, "Invalid status. Must be APPROVED or REJECTED")

    uid = parse_object_id(user_id, "user id")

    user = await db.users.find_one({"_id": uid}, {"verification": 1})
    if not user:
        raise HTTPException(404, "User not found")
    if not user.get("verification"):
        raise HTTPException(404, "Verification not found")

    approved = data.status == EntrepreneurStatus.APPROVED
    now = datetime.utcnow()

    fields = {
        "verification.entrepreneur_status": data.status.value,
        "verification.entrepreneur_comment": None if approved else data.comment,
        "verification.decided_at": now,
        "updated_at": now,
    }
    if approved:
        fields["blocked"] = False

    await db.users.update_one({"_id": uid}, {"$set": fields})

    await log_audit(
        db,
        action=f"ENTREPRENEUR_{data.status.value}",
        target_user_id=uid,
        actor_id=admin["_id"],
        actor_role="admin",
        metadata={"comment": data.comment},
    )

    updated = await db.users.find_one({"_id": uid}, {"verification": 1, "blocked": 1})
    return {
        "success": True,
        "verification": serialize_doc(updated.get("verification")),
        "blocked": updated.get("blocked", False),
    }


# =====================================================
# DISCOUNT EXPIRY (BATCH)
# =====================================================

@router.post("/discounts/expire")
async def expire_discounts(
    data: DiscountExpiryRequest,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    if data.product_ids:
        product_ids = [parse_object_id(p, "product id") for p in data.product_ids]
        cleared = await check_and_clear_expired_discounts(db, product_ids)
    else:
        cleared = await sweep_expired_discounts(db)

    logger.info("DISCOUNT_EXPIRY_BATCH admin=%s cleared=%s", admin["_id"], cleared)
    return {"success": True, "cleared": cleared}
