import os
from dotenv import load_dotenv

load_dotenv()

# =====================================================
# ENV
# =====================================================
ENV = os.getenv("ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# =====================================================
# DATABASE
# =====================================================
MONGO_URI = os.getenv("MONGO_URI") or os.getenv("MONGODB_URI")

# =====================================================
# JWT
# =====================================================
JWT_SECRET = os.getenv("JWT_SECRET")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# =====================================================
# PAYMENT GATEWAY
# =====================================================
# PEM override for the gateway callback key (escaped newlines allowed)
PAYMENT_CALLBACK_PUBLIC_KEY = (os.getenv("PAYMENT_CALLBACK_PUBLIC_KEY") or "").replace("\\n", "\n")

# =====================================================
# SELLER RISK
# =====================================================
REVENUE_BLOCK_THRESHOLD = float(os.getenv("REVENUE_BLOCK_THRESHOLD", 2))

# =====================================================
# DISCOUNTS
# =====================================================
DISCOUNT_SWEEP_ENABLED = os.getenv("DISCOUNT_SWEEP_ENABLED", "true").lower() in {"1", "true", "yes"}
DISCOUNT_SWEEP_INTERVAL_SECONDS = int(os.getenv("DISCOUNT_SWEEP_INTERVAL_SECONDS", 60 * 60))

# =====================================================
# CORS
# =====================================================
CORS_ALLOWED_ORIGINS = os.getenv("CORS_ALLOWED_ORIGINS", "").split(",")


def validate_production_env() -> None:
    if (ENV or "").lower() != "production":
        return

    required = {
        "JWT_SECRET": JWT_SECRET,
        "MONGODB_URI": MONGO_URI,
    }

    invalid = []
    for key, value in required.items():
        val = (value or "").strip()
        if not val or val.startswith("CHANGE_THIS"):
            invalid.append(key)

    if invalid:
        raise RuntimeError(f"Production env misconfigured. Invalid keys: {', '.join(sorted(invalid))}")
