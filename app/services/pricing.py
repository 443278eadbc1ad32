from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal

from app.canonical.v1.listing import PricingV1


PriceSource = Literal["OFFER", "MRP", "NONE", "RATE_TIMES_WEIGHT"]


@dataclass(frozen=True)
class PriceQuote:
    base_price: int
    public_price: int
    source: PriceSource
    margin_pct: float


def round_half_up(value: Decimal | float | int) -> int:
    # float -> str -> Decimal keeps 0.5 boundaries exact (2.675 stays 2.675)
    d = value if isinstance(value, Decimal) else Decimal(str(value))
    return int(d.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _positive(v: float | None) -> bool:
    return v is not None and v > 0


def compute_price(pricing: PricingV1, margin_pct: float) -> PriceQuote:
    """
    Base price from supplier cost inputs, public price = base marked up by margin.

    RATE_TIMES_WEIGHT: base = rate * weight when both are positive, else 0.
    FLAT: offer price, then MRP, then 0; `source` names the input used.
    A zero base yields a zero public price (price on request).
    """
    if pricing.price_mode == "RATE_TIMES_WEIGHT":
        source: PriceSource = "RATE_TIMES_WEIGHT"
        if _positive(pricing.rate_per_unit) and _positive(pricing.weight):
            base = round_half_up(Decimal(str(pricing.rate_per_unit)) * Decimal(str(pricing.weight)))
        else:
            base = 0
    elif _positive(pricing.offer_price):
        source = "OFFER"
        base = round_half_up(pricing.offer_price)
    elif _positive(pricing.mrp):
        source = "MRP"
        base = round_half_up(pricing.mrp)
    else:
        source = "NONE"
        base = 0

    if base > 0:
        factor = Decimal(1) + Decimal(str(margin_pct)) / Decimal(100)
        public = round_half_up(Decimal(base) * factor)
    else:
        public = 0

    return PriceQuote(base_price=base, public_price=public, source=source, margin_pct=float(margin_pct))
