import logging
from datetime import datetime

from config.constants import TIMELINE_ADMIN_STATUS_CHANGE, TIMELINE_PAYMENT_CALLBACK

logger = logging.getLogger(__name__)

TIMELINE_EVENTS = {TIMELINE_PAYMENT_CALLBACK, TIMELINE_ADMIN_STATUS_CHANGE}


async def record_status_change(
    db,
    *,
    order_id,
    event: str,
    previous_status: str | None,
    status: str,
    actor_role: str = "system",
    actor_id=None,
    **details,
):
    """
    Append one order status transition to `order_timeline`.

    Entries are never updated; a retried callback that lands on the same
    status still gets its own entry.
    """
    if event not in TIMELINE_EVENTS:
        raise ValueError(f"Unknown timeline event {event}")

    entry = {
        "order_id": order_id,
        "event": event,
        "previous_status": previous_status,
        "status": status,
        "changed": previous_status != status,
        "actor_role": actor_role,
        "actor_id": actor_id,
        "details": details,
        "created_at": datetime.utcnow(),
    }
    await db.order_timeline.insert_one(entry)

    logger.info(
        "ORDER_STATUS_%s order=%s %s->%s",
        "CHANGED" if entry["changed"] else "REPEATED", order_id, previous_status, status,
    )
    return entry
