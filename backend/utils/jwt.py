from jose import jwt, JWTError
from config.env import JWT_SECRET, JWT_ALGORITHM


def _require_jwt_secret() -> str:
    secret = (JWT_SECRET or "").strip()
    if not secret:
        raise RuntimeError("JWT_SECRET is not configured")
    return secret


def decode_token(token: str) -> dict:
    """Raises jose.JWTError on a bad signature, expiry or malformed token."""
    return jwt.decode(token, _require_jwt_secret(), algorithms=[JWT_ALGORITHM])


__all__ = ["decode_token", "JWTError"]
