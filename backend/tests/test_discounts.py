from datetime import datetime, timedelta

from utils.discounts import (
    apply_discount_expiry,
    check_and_clear_expired_discount,
    check_and_clear_expired_discounts,
    sweep_expired_discounts,
)

NOW = datetime(2026, 3, 1, 12, 0, 0)


def _product(discount_days, started_days_ago=10, **extra):
    return {
        "title": "Linen suit",
        "discount": 20,
        "discount_days": discount_days,
        "discount_start_date": NOW - timedelta(days=started_days_ago),
        **extra,
    }


def test_expired_discount_is_cleared_in_copy():
    product = _product(7)

    result = apply_discount_expiry(product, now=NOW)

    assert result["discount"] is None
    assert result["discount_days"] is None
    assert result["discount_start_date"] is None
    assert result["title"] == "Linen suit"
    # input untouched
    assert product["discount"] == 20


def test_active_discount_is_returned_unchanged():
    product = _product(14)
    assert apply_discount_expiry(product, now=NOW) is product


def test_partial_configuration_never_expires():
    product = _product(7)
    product["discount_start_date"] = None
    assert apply_discount_expiry(product, now=NOW) is product

    no_days = _product(None)
    assert apply_discount_expiry(no_days, now=NOW) is no_days


def test_iso_string_start_date_is_understood():
    product = _product(7)
    product["discount_start_date"] = (NOW - timedelta(days=10)).isoformat() + "Z"
    assert apply_discount_expiry(product, now=NOW)["discount"] is None


async def test_check_and_clear_persists_all_three_fields(db, make_product):
    expired = await make_product(None, **_product(7))
    active = await make_product(None, **_product(14))

    assert await check_and_clear_expired_discount(db, expired["_id"], now=NOW) is True
    assert await check_and_clear_expired_discount(db, active["_id"], now=NOW) is False

    stored = await db.products.find_one({"_id": expired["_id"]})
    assert stored["discount"] is None
    assert stored["discount_days"] is None
    assert stored["discount_start_date"] is None

    untouched = await db.products.find_one({"_id": active["_id"]})
    assert untouched["discount"] == 20


async def test_missing_product_is_not_cleared(db):
    from bson import ObjectId

    assert await check_and_clear_expired_discount(db, ObjectId(), now=NOW) is False


async def test_batch_counts_cleared_products(db, make_product):
    a = await make_product(None, **_product(3))
    b = await make_product(None, **_product(5))
    c = await make_product(None, **_product(30))

    cleared = await check_and_clear_expired_discounts(db, [a["_id"], b["_id"], c["_id"]], now=NOW)
    assert cleared == 2


async def test_sweep_covers_every_discounted_product(db, make_product):
    await make_product(None, **_product(3))
    await make_product(None, **_product(30))
    await make_product(None)

    assert await sweep_expired_discounts(db, now=NOW) == 1
    assert await sweep_expired_discounts(db, now=NOW) == 0
