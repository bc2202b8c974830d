import base64
import binascii
import logging
from datetime import datetime
from typing import Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding
from fastapi import HTTPException

from config.constants import GATEWAY_STATUS_MAP, ORDER_PAID, ORDER_PENDING, TIMELINE_PAYMENT_CALLBACK
from config.env import PAYMENT_CALLBACK_PUBLIC_KEY
from utils.order_timeline import record_status_change
from utils.settlement import settle_order

logger = logging.getLogger(__name__)

# Bank of Georgia callback signing key (RSA, SHA256)
BOG_PUBLIC_KEY = """-----BEGIN PUBLIC KEY-----
MIIBIjANBgkqhkiG9w0BAQEFAAOCAQ8AMIIBCgKCAQEAu4RUyAw3+CdkS3ZNILQh
zHI9Hemo+vKB9U2BSabppkKjzjjkf+0Sm76hSMiu/HFtYhqWOESryoCDJoqffY0Q
1VNt25aTxbj068QNUtnxQ7KQVLA+pG0smf+EBWlS1vBEAFbIas9d8c9b9sSEkTrr
TYQ90WIM8bGB6S/KLVoT1a7SnzabjoLc5Qf/SLDG5fu8dH8zckyeYKdRKSBJKvhx
tcBuHV4f7qsynQT+f2UYbESX/TLHwT5qFWZDHZ0YUOUIvb8n7JujVSGZO9/+ll/g
4ZIWhC1MlJgPObDwRkRd8NFOopgxMcMsDIZIoLbWKhHVq67hdbwpAq9K9WMmEhPn
PwIDAQAB
-----END PUBLIC KEY-----"""

CALLBACK_PUBLIC_KEY_PEM = PAYMENT_CALLBACK_PUBLIC_KEY or BOG_PUBLIC_KEY


def _load_callback_public_key():
    try:
        return serialization.load_pem_public_key(CALLBACK_PUBLIC_KEY_PEM.encode("utf-8"))
    except ValueError:
        logger.exception("PAYMENT_CALLBACK_KEY_INVALID")
        raise HTTPException(status_code=500, detail="Payment callback key is not configured")


def verify_callback_signature(*, raw_body: bytes, received_signature: str) -> bool:
    public_key = _load_callback_public_key()

    try:
        signature = base64.b64decode(received_signature, validate=True)
    except (binascii.Error, ValueError):
        return False

    try:
        public_key.verify(signature, raw_body, padding.PKCS1v15(), hashes.SHA256())
    except InvalidSignature:
        return False
    return True


def map_gateway_status(gateway_status: Optional[str]) -> str:
    """Gateway order_status.key -> internal order status; unknown keys stay PENDING."""
    normalized = (gateway_status or "").strip().lower()
    mapped = GATEWAY_STATUS_MAP.get(normalized)
    if mapped is None:
        logger.warning("PAYMENT_STATUS_UNMAPPED status=%s", gateway_status)
        return ORDER_PENDING
    return mapped


async def apply_gateway_status(db, *, payment_id: str, gateway_status: str) -> dict:
    """
    Reconcile one order_payment callback.

    PENDING mappings leave the order untouched. PAID settles the order before
    returning; other statuses only update the order.
    """
    order_status = map_gateway_status(gateway_status)

    order = await db.orders.find_one({"payment_id": payment_id})
    if not order:
        logger.warning("PAYMENT_CALLBACK_ORDER_NOT_FOUND payment=%s", payment_id)
        return {"order": "not_found", "status": order_status}

    if order_status == ORDER_PENDING:
        logger.info(
            "PAYMENT_CALLBACK_NO_TRANSITION order=%s payment=%s gateway_status=%s",
            order["_id"], payment_id, gateway_status,
        )
        return {"order": str(order["_id"]), "status": order.get("status"), "updated": False}

    now = datetime.utcnow()
    await db.orders.update_one(
        {"_id": order["_id"]},
        {"$set": {"status": order_status, "updated_at": now}},
    )

    await record_status_change(
        db,
        order_id=order["_id"],
        event=TIMELINE_PAYMENT_CALLBACK,
        previous_status=order.get("status"),
        status=order_status,
        payment_id=payment_id,
        gateway_status=gateway_status,
    )

    response = {"order": str(order["_id"]), "status": order_status, "updated": True}

    if order_status == ORDER_PAID:
        settlement = await settle_order(db, order["_id"])
        response["transactions_created"] = len(settlement["created"])

    logger.info("PAYMENT_CALLBACK_APPLIED order=%s status=%s", order["_id"], order_status)
    return response
