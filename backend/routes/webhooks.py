from fastapi import APIRouter, Depends, Request, HTTPException
from pydantic import ValidationError
import json
import logging

from config.constants import CALLBACK_EVENT_ORDER_PAYMENT, CALLBACK_EVENT_SPLIT_PAYMENT
from database import get_db
from models.payment_callback import SplitPaymentEvent, parse_payment_callback
from utils.payment_gateway import verify_callback_signature, apply_gateway_status

router = APIRouter(tags=["Webhooks"])
logger = logging.getLogger(__name__)

CALLBACK_EVENTS = {CALLBACK_EVENT_ORDER_PAYMENT, CALLBACK_EVENT_SPLIT_PAYMENT}


def _log_split(order_id: str, split) -> None:
    if not split:
        return

    logger.info(
        "SPLIT_STATUS order=%s status=%s currency=%s channel=%s",
        order_id, split.split_status, split.currency, split.request_channel,
    )
    if split.split_status == "rejected":
        logger.error("SPLIT_REJECTED order=%s reason=%s", order_id, split.split_reject_reason or "unknown")

    for line in split.split_payments:
        # IBAN prefix only
        logger.info(
            "SPLIT_LINE order=%s iban=%s... amount=%s percent=%s status=%s",
            order_id, line.iban[:8], line.amount, line.percent, line.status,
        )
        if line.status == "rejected" and line.reject_reason:
            logger.error("SPLIT_LINE_REJECTED order=%s reason=%s", order_id, line.reject_reason)


# =========================================================
# PAYMENT GATEWAY CALLBACK (SIGNED, RETRY-SAFE)
# =========================================================

@router.post("/payment-callback")
async def payment_callback(request: Request, db=Depends(get_db)):
    """
    Payment gateway callback.

    Guarantees:
    - Signature verified before any field is read
    - Unknown payment ids are acknowledged, not retried
    - Settlement is idempotent, so gateway retries never double-credit
    - Once authenticated, internal failures still answer 200
    """

    signature = request.headers.get("Callback-Signature")
    if not signature:
        raise HTTPException(400, "Missing signature")

    raw_body = await request.body()
    if not verify_callback_signature(raw_body=raw_body, received_signature=signature):
        logger.warning("PAYMENT_CALLBACK_BAD_SIGNATURE")
        raise HTTPException(401, "Invalid signature")

    try:
        payload = json.loads(raw_body.decode("utf-8"))
    except ValueError:
        logger.exception("PAYMENT_CALLBACK_INVALID_JSON")
        return {"success": False, "error": "Invalid JSON payload"}

    event = payload.get("event") if isinstance(payload, dict) else None
    if not isinstance(event, str) or event not in CALLBACK_EVENTS:
        logger.error("PAYMENT_CALLBACK_UNKNOWN_EVENT event=%s", event)
        raise HTTPException(400, "Invalid event type")

    body = payload.get("body")
    if not isinstance(body, dict) or body.get("order_id") in (None, ""):
        raise HTTPException(400, "Missing order_id")

    try:
        callback = parse_payment_callback(payload)
    except ValidationError:
        logger.exception("PAYMENT_CALLBACK_INVALID_SHAPE")
        return {"success": False, "error": "Invalid callback payload"}

    order_id = callback.body.order_id
    split = callback.body.split

    # -----------------------------------------------------
    # SPLIT PAYMENT: LOG + ACK ONLY
    # -----------------------------------------------------
    if isinstance(callback, SplitPaymentEvent):
        logger.info("SPLIT_PAYMENT_CALLBACK order=%s", order_id)
        _log_split(order_id, split)
        return {
            "success": True,
            "message": "Split payment callback received",
            "order_id": order_id,
            "split_status": split.split_status if split else None,
        }

    # -----------------------------------------------------
    # ORDER PAYMENT: STATUS MAPPING + SETTLEMENT
    # -----------------------------------------------------
    gateway_status = callback.body.gateway_status
    logger.info(
        "PAYMENT_CALLBACK order=%s status=%s at=%s",
        order_id, gateway_status, callback.zoned_request_time,
    )
    _log_split(order_id, split)

    try:
        result = await apply_gateway_status(db, payment_id=order_id, gateway_status=gateway_status)
    except Exception:
        logger.exception("PAYMENT_CALLBACK_PROCESSING_ERROR payment=%s", order_id)
        return {
            "success": False,
            "error": "Error processing callback",
            "order_id": order_id,
        }

    return {
        "success": True,
        "message": "Callback received and processed",
        "order_id": order_id,
        "status": gateway_status,
        "split_status": split.split_status if split else None,
        "result": result,
    }
