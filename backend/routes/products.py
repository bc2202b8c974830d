from fastapi import APIRouter, Depends, HTTPException, Query
from datetime import datetime

from database import get_db
from models.product import RentalPriceRequest, RentalPriceTiersUpdate
from utils.discounts import apply_discount_expiry
from utils.guards import parse_object_id
from utils.mongo import serialize_doc
from utils.pricing import normalize_tiers, resolve_rental_price
from utils.security import require_role

router = APIRouter(prefix="/products", tags=["Products"])


async def _get_product_or_404(db, product_id):
    product = await db.products.find_one({"_id": product_id})
    if not product:
        raise HTTPException(404, "Product not found")
    return product


async def _calculate(db, product_id: str, days: int) -> dict:
    pid = parse_object_id(product_id, "product id")

    product = await db.products.find_one({"_id": pid}, {"rental_price_tiers": 1})
    tiers = (product or {}).get("rental_price_tiers") or []
    if not tiers:
        raise HTTPException(404, "No rental price tiers found for this product")

    calculation = resolve_rental_price(tiers, days)
    return {"success": True, "calculation": calculation}


# =========================
# PRODUCT READ (DISCOUNT EXPIRY APPLIED)
# =========================

@router.get("/{product_id}")
async def get_product(product_id: str, db=Depends(get_db)):
    product = await _get_product_or_404(db, parse_object_id(product_id, "product id"))

    product = apply_discount_expiry(product)
    product["rental_price_tiers"] = normalize_tiers(product.get("rental_price_tiers") or [])

    return {"success": True, "product": serialize_doc(product)}


# =========================
# RENTAL PRICE CALCULATION
# =========================

@router.get("/{product_id}/rental-price")
async def rental_price(
    product_id: str,
    days: int = Query(..., ge=1),
    db=Depends(get_db),
):
    return await _calculate(db, product_id, days)


@router.post("/{product_id}/rental-price")
async def rental_price_from_body(
    product_id: str,
    data: RentalPriceRequest,
    db=Depends(get_db),
):
    return await _calculate(db, product_id, data.days)


# =========================
# RENTAL PRICE TIERS (ADMIN)
# =========================

@router.get("/{product_id}/rental-prices")
async def get_rental_prices(product_id: str, db=Depends(get_db)):
    product = await _get_product_or_404(db, parse_object_id(product_id, "product id"))
    return {
        "success": True,
        "price_tiers": normalize_tiers(product.get("rental_price_tiers") or []),
    }


@router.post("/{product_id}/rental-prices")
async def replace_rental_prices(
    product_id: str,
    data: RentalPriceTiersUpdate,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    pid = parse_object_id(product_id, "product id")
    tiers = normalize_tiers(data.tiers)

    # single document write: old set out, new set in
    result = await db.products.update_one(
        {"_id": pid},
        {"$set": {"rental_price_tiers": tiers, "updated_at": datetime.utcnow()}},
    )
    if result.matched_count == 0:
        raise HTTPException(404, "Product not found")

    product = await _get_product_or_404(db, pid)
    return {
        "success": True,
        "message": "Rental price tiers updated",
        "price_tiers": normalize_tiers(product.get("rental_price_tiers") or []),
    }


@router.delete("/{product_id}/rental-prices")
async def delete_rental_prices(
    product_id: str,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    pid = parse_object_id(product_id, "product id")

    result = await db.products.update_one(
        {"_id": pid},
        {"$set": {"rental_price_tiers": [], "updated_at": datetime.utcnow()}},
    )
    if result.matched_count == 0:
        raise HTTPException(404, "Product not found")

    return {"success": True, "message": "Rental price tiers deleted"}
