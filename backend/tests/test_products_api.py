from datetime import datetime, timedelta

from bson import ObjectId
from jose import jwt

TIERS = [
    {"min_days": 4, "price_per_day": 20},
    {"min_days": 28, "price_per_day": 8},
    {"min_days": 7, "price_per_day": 12},
]


async def test_rental_price_by_query(client, make_product):
    product = await make_product(ObjectId(), rental_price_tiers=TIERS)

    response = await client.get(f"/api/products/{product['_id']}/rental-price", params={"days": 10})

    assert response.status_code == 200
    calculation = response.json()["calculation"]
    assert calculation["tier"] == {"min_days": 7, "price_per_day": 12.0}
    assert calculation["total_price"] == 120


async def test_rental_price_by_body_uses_fallback_tier(client, make_product):
    product = await make_product(ObjectId(), rental_price_tiers=TIERS)

    response = await client.post(f"/api/products/{product['_id']}/rental-price", json={"days": 3})

    calculation = response.json()["calculation"]
    assert calculation["tier"]["min_days"] == 4
    assert calculation["total_price"] == 60
    assert calculation["note"] == "Using minimum tier (4+ days)"


async def test_rental_price_without_tiers_is_404(client, make_product):
    product = await make_product(ObjectId())

    response = await client.get(f"/api/products/{product['_id']}/rental-price", params={"days": 2})
    assert response.status_code == 404
    assert response.json()["success"] is False

    missing = await client.get(f"/api/products/{ObjectId()}/rental-price", params={"days": 2})
    assert missing.status_code == 404


async def test_rental_price_rejects_bad_days(client, make_product):
    product = await make_product(ObjectId(), rental_price_tiers=TIERS)
    url = f"/api/products/{product['_id']}/rental-price"

    for days in ("0", "-1", "abc"):
        response = await client.get(url, params={"days": days})
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "days"

    for days in (0, "3", 3.0, True):
        response = await client.post(url, json={"days": days})
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "days"


async def test_invalid_product_id_is_400(client):
    response = await client.get("/api/products/not-an-id/rental-price", params={"days": 2})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid product id"


async def test_tier_replace_round_trip(client, login, make_user, make_product):
    login(await make_user(role="admin"))
    product = await make_product(ObjectId(), rental_price_tiers=[{"min_days": 1, "price_per_day": 99}])
    url = f"/api/products/{product['_id']}/rental-prices"

    response = await client.post(url, json={"tiers": TIERS})
    assert response.status_code == 200

    read_back = (await client.get(url)).json()["price_tiers"]
    assert [t["min_days"] for t in read_back] == [4, 7, 28]
    assert {(t["min_days"], t["price_per_day"]) for t in read_back} == {
        (t["min_days"], t["price_per_day"]) for t in TIERS
    }


async def test_tier_payload_is_validated(client, login, make_user, make_product):
    login(await make_user(role="admin"))
    product = await make_product(ObjectId())
    url = f"/api/products/{product['_id']}/rental-prices"

    assert (await client.post(url, json={"tiers": []})).status_code == 400
    assert (await client.post(url, json={"tiers": [{"min_days": 0, "price_per_day": 5}]})).status_code == 400
    assert (await client.post(url, json={"tiers": [{"min_days": 2, "price_per_day": -5}]})).status_code == 400

    duplicate = [{"min_days": 2, "price_per_day": 5}, {"min_days": 2, "price_per_day": 4}]
    assert (await client.post(url, json={"tiers": duplicate})).status_code == 400


async def test_tier_mutation_requires_admin(client, login, make_user, make_product):
    login(await make_user(role="seller"))
    product = await make_product(ObjectId())
    url = f"/api/products/{product['_id']}/rental-prices"

    assert (await client.post(url, json={"tiers": TIERS})).status_code == 403
    assert (await client.delete(url)).status_code == 403


async def test_tier_replace_on_missing_product_is_404(client, login, make_user):
    login(await make_user(role="admin"))
    response = await client.post(f"/api/products/{ObjectId()}/rental-prices", json={"tiers": TIERS})
    assert response.status_code == 404


async def test_delete_tiers(client, db, login, make_user, make_product):
    login(await make_user(role="admin"))
    product = await make_product(ObjectId(), rental_price_tiers=TIERS)
    url = f"/api/products/{product['_id']}/rental-prices"

    assert (await client.delete(url)).status_code == 200
    assert (await client.get(url)).json()["price_tiers"] == []
    price_url = f"/api/products/{product['_id']}/rental-price"
    assert (await client.get(price_url, params={"days": 5})).status_code == 404


async def test_product_read_hides_expired_discount_without_writing(client, db, make_product):
    product = await make_product(
        ObjectId(),
        discount=15,
        discount_days=7,
        discount_start_date=datetime.utcnow() - timedelta(days=10),
    )

    response = await client.get(f"/api/products/{product['_id']}")

    data = response.json()["product"]
    assert data["discount"] is None
    assert data["discount_start_date"] is None
    assert data["id"] == str(product["_id"])
    assert (await db.products.find_one({"_id": product["_id"]}))["discount"] == 15


async def test_bearer_token_resolves_admin(client, make_user, make_product):
    admin = await make_user(role="admin")
    product = await make_product(ObjectId())
    token = jwt.encode({"sub": str(admin["_id"])}, "test-secret", algorithm="HS256")

    response = await client.post(
        f"/api/products/{product['_id']}/rental-prices",
        json={"tiers": TIERS},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 200

    forged = jwt.encode({"sub": str(admin["_id"])}, "wrong-secret", algorithm="HS256")
    response = await client.delete(
        f"/api/products/{product['_id']}/rental-prices",
        headers={"Authorization": f"Bearer {forged}"},
    )
    assert response.status_code == 401
