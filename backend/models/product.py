from pydantic import BaseModel, Field, field_validator
from typing import List


class RentalPriceTier(BaseModel):
    min_days: int = Field(..., ge=1)
    price_per_day: float = Field(..., gt=0)


class RentalPriceTiersUpdate(BaseModel):
    tiers: List[RentalPriceTier] = Field(..., min_length=1)

    @field_validator("tiers")
    @classmethod
    def unique_min_days(cls, tiers: List[RentalPriceTier]):
        seen = set()
        for tier in tiers:
            if tier.min_days in seen:
                raise ValueError(f"Duplicate min_days {tier.min_days}")
            seen.add(tier.min_days)
        return tiers


class RentalPriceRequest(BaseModel):
    days: int = Field(..., ge=1, strict=True)
