# app/domain/services/parsing.py
"""
Tolerant numeric/unit parsing shared by every field extractor.

Nothing here raises on malformed input: unparseable values come back as None
so the extractors can move on to their next source.
"""
from __future__ import annotations
import math
import re
from typing import Any, Optional, Tuple

MAX_COUNT_DIGITS = 15

_NUMBER_RE = re.compile(r"-?\d[\d.,]*")
_THOUSANDS_COMMA_RE = re.compile(r"^-?\d{1,3}(,\d{3})+$")
_THOUSANDS_DOT_RE = re.compile(r"^-?\d{1,3}(\.\d{3}){2,}$")

# "500g", "500 g", "500gr", "500 gramos" -- never "kg" since a digit must precede the g
_GRAM_RE = re.compile(r"\d\s?(?:g|gr|grs|grams?|gramos?)\b", re.IGNORECASE)
_MEASURE_VALUE_RE = re.compile(
    r"^\s*\d+(?:[.,]\d+)?\s*(?:kg|kgs|kilos?|g|gr|grs|grams?|gramos?)\s*$", re.IGNORECASE
)
_MM_RE = re.compile(r"\d\s?mm\b", re.IGNORECASE)
_METER_RE = re.compile(r"\d\s?(?:m|mt|mts|metros?|meters?)\b", re.IGNORECASE)
_TRIPLET_RE = re.compile(
    r"(\d+(?:[.,]\d+)?)\s*[x×*]\s*(\d+(?:[.,]\d+)?)\s*[x×*]\s*(\d+(?:[.,]\d+)?)",
    re.IGNORECASE,
)
_BARE_NUMBER_RE = re.compile(r"^\s*\d+(?:[.,]\d+)?\s*(?:cm|mm|m)?\s*$", re.IGNORECASE)


def _normalize_separators(chunk: str) -> str:
    chunk = chunk.rstrip(".,")
    has_comma, has_dot = "," in chunk, "." in chunk
    if has_comma and has_dot:
        # the right-most separator is the decimal one
        if chunk.rfind(",") > chunk.rfind("."):
            return chunk.replace(".", "").replace(",", ".")
        return chunk.replace(",", "")
    if has_comma:
        if _THOUSANDS_COMMA_RE.match(chunk):
            return chunk.replace(",", "")
        head, _, tail = chunk.rpartition(",")
        return head.replace(",", "") + "." + tail
    if has_dot and _THOUSANDS_DOT_RE.match(chunk):
        return chunk.replace(".", "")
    return chunk


def to_float(value: Any) -> Optional[float]:
    """
    Number from an int/float or from the first number inside a string.
    Handles thousands separators and decimal commas ("1,234.5", "1.234,5", "12,5").
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        num = float(value)
    elif isinstance(value, str):
        match = _NUMBER_RE.search(value.replace(" ", ""))
        if not match:
            return None
        try:
            num = float(_normalize_separators(match.group(0)))
        except ValueError:
            return None
    else:
        return None
    return num if math.isfinite(num) else None


def to_int(value: Any) -> Optional[int]:
    num = to_float(value)
    return int(num) if num is not None else None


def digits_int(value: Any) -> Optional[int]:
    """Keep only the digits ("1.2k+ sold" -> 12). None when there are none."""
    if value is None or isinstance(value, bool):
        return None
    digits = re.sub(r"\D", "", str(value))
    # a run this long is not a count; int() also refuses very long strings
    if not digits or len(digits) > MAX_COUNT_DIGITS:
        return None
    return int(digits)


def positive(value: Optional[float]) -> Optional[float]:
    return value if value is not None and value > 0 else None


def is_gram_text(text: Any) -> bool:
    return isinstance(text, str) and bool(_GRAM_RE.search(text))


def looks_like_weight_value(text: Any) -> bool:
    return isinstance(text, str) and bool(_MEASURE_VALUE_RE.match(text))


def parse_weight(value: Any, unit: Any = None) -> Optional[Tuple[float, str]]:
    """(amount, "kg"|"g"); kg unless the unit hint or the text says grams."""
    amount = positive(to_float(value))
    if amount is None:
        return None
    if isinstance(unit, str) and unit.strip():
        return amount, ("g" if unit.strip().lower() in {"g", "gr", "grs", "gram", "grams", "gramo", "gramos"} else "kg")
    return amount, ("g" if is_gram_text(value) else "kg")


def _length_to_cm(amount: float, text: Any) -> float:
    if isinstance(text, str):
        if _MM_RE.search(text):
            return amount / 10
        if "cm" not in text.lower() and _METER_RE.search(text):
            return amount * 100
    return amount


def parse_length_cm(value: Any) -> Optional[float]:
    amount = positive(to_float(value))
    if amount is None:
        return None
    return _length_to_cm(amount, value)


def is_bare_length(text: Any) -> bool:
    if isinstance(text, bool):
        return False
    if isinstance(text, (int, float)):
        return True
    return isinstance(text, str) and bool(_BARE_NUMBER_RE.match(text))


def find_dimension_triplet(text: Any) -> Optional[Tuple[float, float, float]]:
    """"30x20x10 cm", "30 × 20 × 10", "30*20*10mm" -> (L, W, H) in cm."""
    if not isinstance(text, str):
        return None
    match = _TRIPLET_RE.search(text)
    if not match:
        return None
    parts = [to_float(g) for g in match.groups()]
    if any(p is None for p in parts):
        return None
    l, w, h = (_length_to_cm(p, text) for p in parts)
    return l, w, h
