from datetime import datetime


async def log_audit(
    db,
    *,
    action: str,
    target_user_id,
    actor_role: str = "system",
    actor_id=None,
    metadata: dict | None = None,
):
    """Seller moderation trail: automatic blocks, manual (un)blocks, verification decisions."""
    await db.audit_logs.insert_one({
        "action": action,
        "target_user_id": target_user_id,
        "actor_id": actor_id,
        "actor_role": actor_role,
        "metadata": metadata or {},
        "created_at": datetime.utcnow(),
    })
