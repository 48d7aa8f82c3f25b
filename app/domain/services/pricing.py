# app/domain/services/pricing.py
from typing import Dict, Mapping, Optional

from app.domain.services.constants import MIN_DIMENSION_CM, VOLUMETRIC_DIVISOR

TARGET_CURRENCIES = ("USD", "COP")


def convert_currency(amount_cny: float, rates: Mapping[str, float]) -> Dict[str, float]:
    """
    CNY amount -> {"USD": ..., "COP": ...} with rates expressed as 1 CNY = rate units.
    No rounding here; a missing or zero rate gives 0.
    """
    return {code: amount_cny * (rates.get(code) or 0.0) for code in TARGET_CURRENCIES}


def volumetric_weight(
    length: Optional[float], width: Optional[float], height: Optional[float]
) -> Optional[float]:
    """Air-freight dimensional weight in kg, (L*W*H)/6000 rounded to 2 decimals."""
    sides = (length, width, height)
    if any(s is None or s < MIN_DIMENSION_CM for s in sides):
        return None
    return round(length * width * height / VOLUMETRIC_DIVISOR, 2)
