from typing import Any, Dict, Iterable, List


def _tier_value(tier, field: str):
    if isinstance(tier, dict):
        return tier[field]
    return getattr(tier, field)


def normalize_tiers(tiers: Iterable) -> List[Dict[str, Any]]:
    """Plain dicts sorted ascending by min_days (storage order is not guaranteed)."""
    normalized = [
        {
            "min_days": int(_tier_value(t, "min_days")),
            "price_per_day": float(_tier_value(t, "price_per_day")),
        }
        for t in tiers
    ]
    return sorted(normalized, key=lambda t: t["min_days"])


def resolve_rental_price(tiers: Iterable, days: int) -> Dict[str, Any]:
    """
    Pick the rental tier for a duration.

    The tier with the largest min_days not exceeding `days` wins and its rate
    applies to the whole duration. When every tier starts above `days`, the
    smallest tier is used and the result is flagged as a fallback.
    """
    if isinstance(days, bool) or not isinstance(days, int) or days < 1:
        raise ValueError("days must be a positive integer")

    ordered = normalize_tiers(tiers)
    if not ordered:
        raise ValueError("at least one price tier is required")

    applied = next(
        (t for t in reversed(ordered) if t["min_days"] <= days),
        None,
    )
    fallback = applied is None
    if fallback:
        applied = ordered[0]

    if fallback:
        note = f"Using minimum tier ({applied['min_days']}+ days)"
    else:
        note = f"{days} days qualifies for {applied['min_days']}+ day tier"

    return {
        "days": days,
        "price_per_day": applied["price_per_day"],
        "total_price": days * applied["price_per_day"],
        "tier": dict(applied),
        "fallback": fallback,
        "note": note,
    }
