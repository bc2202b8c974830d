import base64
import os
from datetime import datetime

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DISCOUNT_SWEEP_ENABLED", "false")

import httpx
import pytest
from bson import ObjectId
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from mongomock_motor import AsyncMongoMockClient


@pytest.fixture
def db():
    return AsyncMongoMockClient()["rental_marketplace_test"]


@pytest.fixture
def app(db):
    from main import app as fastapi_app
    from database import get_db

    fastapi_app.dependency_overrides[get_db] = lambda: db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def login(app):
    """Make `user` the authenticated caller for subsequent requests."""
    from utils.security import get_current_user

    def _login(user: dict):
        app.dependency_overrides[get_current_user] = lambda: user
        return user

    return _login


# -----------------------------
# GATEWAY SIGNING KEY
# -----------------------------

@pytest.fixture(scope="session")
def gateway_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def sign(gateway_private_key, monkeypatch):
    import utils.payment_gateway as payment_gateway

    public_pem = gateway_private_key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("utf-8")
    monkeypatch.setattr(payment_gateway, "CALLBACK_PUBLIC_KEY_PEM", public_pem)

    def _sign(body: bytes) -> str:
        signature = gateway_private_key.sign(body, padding.PKCS1v15(), hashes.SHA256())
        return base64.b64encode(signature).decode("ascii")

    return _sign


# -----------------------------
# DOCUMENT FACTORIES
# -----------------------------

@pytest.fixture
def make_user(db):
    async def _make(role="seller", **fields):
        doc = {
            "_id": ObjectId(),
            "role": role,
            "blocked": False,
            "verified": False,
            "verification": {"entrepreneur_status": "PENDING"},
            "cart": [],
            "created_at": datetime.utcnow(),
        }
        doc.update(fields)
        await db.users.insert_one(doc)
        return doc

    return _make


@pytest.fixture
def make_product(db):
    async def _make(seller_id, **fields):
        doc = {
            "_id": ObjectId(),
            "seller_id": seller_id,
            "title": "Silk evening dress",
            "status": "AVAILABLE",
            "discount": None,
            "discount_days": None,
            "discount_start_date": None,
            "rental_price_tiers": [],
        }
        doc.update(fields)
        await db.products.insert_one(doc)
        return doc

    return _make


@pytest.fixture
def make_order(db):
    async def _make(buyer_id, items, status="PENDING", payment_id=None):
        order = {
            "_id": ObjectId(),
            "buyer_id": buyer_id,
            "status": status,
            "payment_id": payment_id or f"bog-{ObjectId()}",
            "total": sum(i.get("price", 0) * i.get("quantity", 1) for i in items),
            "created_at": datetime.utcnow(),
        }
        await db.orders.insert_one(order)
        for item in items:
            await db.order_items.insert_one({
                "_id": ObjectId(),
                "order_id": order["_id"],
                "is_rental": False,
                "quantity": 1,
                **item,
            })
        return order

    return _make
