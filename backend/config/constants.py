# backend/config/constants.py

# -----------------------------
# ORDER STATUSES
# -----------------------------

ORDER_PENDING = "PENDING"
ORDER_PAID = "PAID"
ORDER_CANCELED = "CANCELED"
ORDER_REFUNDED = "REFUNDED"

# order_timeline events
TIMELINE_PAYMENT_CALLBACK = "PAYMENT_CALLBACK"
TIMELINE_ADMIN_STATUS_CHANGE = "ADMIN_STATUS_CHANGE"

# -----------------------------
# SELLER LEDGER
# -----------------------------

TRANSACTION_SALE = "SALE"
TRANSACTION_RENT = "RENT"

# -----------------------------
# PAYMENT GATEWAY (BOG) STATUS MAP
# -----------------------------
# order_status.key values sent by the gateway

GATEWAY_STATUS_MAP = {
    "completed": ORDER_PAID,
    "partial_completed": ORDER_PAID,
    "rejected": ORDER_CANCELED,
    "blocked": ORDER_CANCELED,
    "refunded": ORDER_REFUNDED,
    "refunded_partially": ORDER_REFUNDED,
    "created": ORDER_PENDING,
    "processing": ORDER_PENDING,
    "auth_requested": ORDER_PENDING,
    "refund_requested": ORDER_PENDING,
}

CALLBACK_EVENT_ORDER_PAYMENT = "order_payment"
CALLBACK_EVENT_SPLIT_PAYMENT = "split_payment"

# -----------------------------
# SELLER VERIFICATION
# -----------------------------

ENTREPRENEUR_APPROVED = "APPROVED"
