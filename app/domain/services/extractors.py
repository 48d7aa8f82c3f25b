# app/domain/services/extractors.py
"""
Field extractors for raw upstream product records.

Each extractor walks a fixed priority list of source locations and returns
the first usable value. Upstream shapes vary by provider type, so every
access is defensive: a malformed sub-field only sends the extractor to the
next source, it never raises.
"""
from __future__ import annotations
import re
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Tuple

from app.domain.models.product import RawProduct
from app.domain.services.constants import MIN_DIMENSION_CM
from app.domain.services.parsing import (
    digits_int,
    find_dimension_triplet,
    is_bare_length,
    looks_like_weight_value,
    parse_length_cm,
    parse_weight,
    positive,
    to_float,
    to_int,
)

PUBLISH_DATE_FIELDS = ("listTime", "publishTime", "createdTime", "listingTime")
# looser match for other date/time names; "deliveryTime" or "updateDate" must not qualify
PUBLISH_DATE_KEYWORDS = ("publish", "list", "creat", "onsale", "上架", "发布")
REVIEW_COUNT_FIELDS = ("ReviewCount", "ReviewsCount", "CommentCount", "FeedbackCount")
DIRECT_WEIGHT_FIELDS = ("Weight", "GrossWeight", "ItemWeight")
SELLER_RATING_FIELDS = ("VendorScore", "VendorRating")

WEIGHT_KEYWORDS = ("weight", "peso", "重量")
AXIS_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "length": ("length", "largo", "longitud", "长度"),
    "width": ("width", "ancho", "anchura", "宽度"),
    "height": ("height", "altura", "alto", "高度"),
}
DIMENSION_KEYWORDS = ("dimension", "dimensión", "dimensiones", "medida", "tamaño", "尺寸", "体积")
PACKAGE_KEYWORDS = ("package", "paquete", "embalaje", "包装")

# apparel size charts: "S", "XL", "2XL", "26 inch", "[M] 160/84A".
# A letter right after a number is a unit ("1.2 m"), not a size code.
_SIZE_LABEL_RE = re.compile(
    r"inch|英寸|[\[(（【].*?[\])）】]"
    r"|(?<![\d.,])(?<![\d.,]\s)\b(?:XXS|XS|S|M|L|XL|XXL|XXXL|[2-6]XL)\b",
    re.IGNORECASE,
)


class Dimensions(NamedTuple):
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None

    @property
    def complete(self) -> bool:
        return None not in (self.length, self.width, self.height)


# ---------- Raw record accessors ---------------------------------------------

def _dicts(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, dict)]


def promotions(raw: RawProduct) -> List[Dict[str, Any]]:
    return _dicts(raw.get("Promotions"))


def configurations(raw: RawProduct) -> List[Dict[str, Any]]:
    return _dicts(raw.get("ConfiguredItems")) or _dicts(raw.get("ItemConfigurations"))


def featured_values(container: Dict[str, Any]) -> List[Dict[str, Any]]:
    return _dicts(container.get("FeaturedValues"))


def _name(entry: Dict[str, Any]) -> str:
    name = entry.get("Name")
    return name if isinstance(name, str) else ""


def _find(entries: Iterable[Dict[str, Any]], predicate: Callable[[str], bool]) -> Optional[Dict[str, Any]]:
    return next((e for e in entries if predicate(_name(e))), None)


def _is_sales_name(name: str) -> bool:
    return "sales" in name.lower()


def _is_rating_name(name: str) -> bool:
    return "rating" in name.lower() or name == "normalizedRating"


def _money(value: Any) -> Optional[float]:
    """Positive amount from a bare number or a money object."""
    if isinstance(value, dict):
        return positive(to_float(value.get("OriginalPrice"))) or positive(to_float(value.get("MarginPrice")))
    return positive(to_float(value))


# ---------- Scales ------------------------------------------------------------

def normalize_rating(value: Optional[float], *, fraction: bool = False) -> Optional[float]:
    """
    Bring a rating onto 0-5. `fraction` marks sources that publish 0-1 values.
    """
    if value is None or value <= 0:
        return None
    if fraction and value <= 1:
        value = value * 5
    elif value > 5:
        value = value / 20 if value <= 100 else 5.0
    return round(min(value, 5.0), 2)


def normalize_seller_rating(value: Optional[float]) -> Optional[float]:
    """Scores above 5 are 0-100 scores: 80 -> 4.0, 4.2 stays 4.2."""
    if value is None or value <= 0:
        return None
    if value > 5:
        value = round(value / 20, 1)
    return min(value, 5.0)


# ---------- Extractors --------------------------------------------------------

def extract_price(raw: RawProduct) -> float:
    """
    Price in CNY: promotion price -> cheapest configuration -> base price -> 0.
    """
    for promo in promotions(raw):
        if price := _money(promo.get("Price")):
            return price

    config_prices = [
        price
        for cfg in configurations(raw)
        if (price := _money(cfg.get("Price")) or _money(cfg.get("PriceRmb")))
    ]
    if config_prices:
        return min(config_prices)

    return _money(raw.get("Price")) or 0.0


def extract_sales_count(raw: RawProduct) -> int:
    for promo in promotions(raw):
        sales = to_int(promo.get("SalesCount"))
        if sales and sales > 0:
            return sales
        if feature := _find(featured_values(promo), _is_sales_name):
            sales = digits_int(feature.get("Value"))
            if sales and sales > 0:
                return sales

    # top-level featured value is trusted even when it says 0
    if feature := _find(featured_values(raw), _is_sales_name):
        sales = digits_int(feature.get("Value"))
        if sales is not None:
            return sales

    configs = configurations(raw)
    if configs:
        total = sum(
            max(to_int(cfg.get("SalesCount")) or to_int(cfg.get("Volume")) or 0, 0)
            for cfg in configs
        )
        if total > 0:
            return total

    for key in ("SalesCount", "Volume"):
        sales = to_int(raw.get(key))
        if sales and sales > 0:
            return sales
    return 0


def extract_rating(raw: RawProduct) -> Optional[float]:
    for promo in promotions(raw):
        if rating := normalize_rating(to_float(promo.get("Rating"))):
            return rating
        if feature := _find(featured_values(promo), _is_rating_name):
            if rating := normalize_rating(to_float(feature.get("Value")), fraction=True):
                return rating

    if feature := _find(featured_values(raw), _is_rating_name):
        if rating := normalize_rating(to_float(feature.get("Value")), fraction=True):
            return rating

    return normalize_rating(to_float(raw.get("Rating")))


def extract_review_count(raw: RawProduct) -> Optional[int]:
    for key in REVIEW_COUNT_FIELDS:
        count = to_int(raw.get(key))
        if count is not None and count >= 0:
            return count
    feature = _find(featured_values(raw), lambda n: "review" in n.lower() or "comment" in n.lower())
    if feature:
        return digits_int(feature.get("Value"))
    return None


def _is_publish_date_name(name: str) -> bool:
    lowered = name.lower()
    if not any(k in lowered for k in ("date", "time", "日期", "时间")):
        return False
    return any(k in lowered for k in PUBLISH_DATE_KEYWORDS)


def extract_publish_date(raw: RawProduct) -> Optional[str]:
    """Upstream date string, format untouched."""
    for key in ("PublishDate", "ListTime", "PublishTime"):
        value = raw.get(key)
        if isinstance(value, str) and value.strip():
            return value
    fvs = featured_values(raw)
    for field_name in PUBLISH_DATE_FIELDS:
        feature = _find(fvs, lambda n: n == field_name)
        if feature and feature.get("Value"):
            return str(feature["Value"])
    feature = _find(fvs, _is_publish_date_name)
    if feature and feature.get("Value"):
        return str(feature["Value"])
    return None


def _weight_from_info(info: Dict[str, Any]) -> Optional[Tuple[float, str]]:
    value = info.get("Weight", info.get("Value"))
    return parse_weight(value, info.get("Unit") or info.get("WeightUnit"))


def extract_weight(raw: RawProduct) -> Optional[Tuple[float, str]]:
    """(value, "kg"|"g") from weight info objects, direct fields, then featured values."""
    info = raw.get("ActualWeightInfo")
    if isinstance(info, dict):
        if weight := _weight_from_info(info):
            return weight

    infos = _dicts(raw.get("WeightInfos"))
    if infos:
        if weight := _weight_from_info(infos[0]):
            return weight

    for key in DIRECT_WEIGHT_FIELDS:
        if weight := parse_weight(raw.get(key)):
            return weight

    for feature in featured_values(raw):
        name, value = _name(feature).lower(), feature.get("Value")
        if any(k in name for k in WEIGHT_KEYWORDS) or looks_like_weight_value(value):
            if weight := parse_weight(value):
                return weight
    return None


def extract_seller_rating(raw: RawProduct) -> Optional[float]:
    for key in SELLER_RATING_FIELDS:
        if rating := normalize_seller_rating(to_float(raw.get(key))):
            return rating
    fvs = featured_values(raw)
    feature = _find(fvs, lambda n: "vendor" in n.lower() and "rating" in n.lower()) or _find(
        fvs, lambda n: n.lower() == "sellerrating"
    )
    if feature:
        return normalize_seller_rating(to_float(feature.get("Value")))
    return None


# ---------- Dimensions --------------------------------------------------------

def _axis_for(name: str) -> Optional[str]:
    lowered = name.lower()
    for axis, keywords in AXIS_KEYWORDS.items():
        if any(k in lowered for k in keywords):
            return axis
    return None


def _looks_like_size_label(value: Any) -> bool:
    return isinstance(value, str) and bool(_SIZE_LABEL_RE.search(value))


class _DimensionCollector:
    """Fills each axis once; later sources only fill what is still missing."""

    def __init__(self):
        self.values: Dict[str, float] = {}

    def fill(self, axis: str, value: Optional[float]) -> None:
        if axis not in self.values and value is not None and value > 0:
            self.values[axis] = value

    def fill_triplet(self, triplet: Tuple[float, float, float]) -> None:
        for axis, value in zip(("length", "width", "height"), triplet):
            self.fill(axis, value)

    def result(self) -> Optional[Dimensions]:
        valid = {axis: v for axis, v in self.values.items() if v >= MIN_DIMENSION_CM}
        return Dimensions(**valid) if valid else None


def _physical_parameters(raw: RawProduct, dims: _DimensionCollector) -> None:
    params = raw.get("PhysicalParameters")
    if isinstance(params, dict):
        for key, value in params.items():
            if axis := _axis_for(str(key)):
                dims.fill(axis, parse_length_cm(value))
    for entry in _dicts(params):
        if axis := _axis_for(_name(entry)):
            dims.fill(axis, parse_length_cm(entry.get("Value")))


def _flat_keys(raw: RawProduct, dims: _DimensionCollector) -> None:
    # "Length", "length", "ItemLength", "Item-Length", "package_length" ...
    flat = {re.sub(r"[^a-z]", "", str(k).lower()): v for k, v in raw.items()}
    for axis in ("length", "width", "height"):
        for prefix in ("", "item", "package"):
            dims.fill(axis, parse_length_cm(flat.get(prefix + axis)))


def _featured_dimensions(raw: RawProduct, dims: _DimensionCollector) -> None:
    for feature in featured_values(raw):
        name, value = _name(feature), feature.get("Value")
        # a combined value wins over the axis word in its name ("Largo x Ancho x Alto")
        if triplet := find_dimension_triplet(value):
            dims.fill_triplet(triplet)
            continue
        if axis := _axis_for(name):
            dims.fill(axis, parse_length_cm(value))
            continue
        lowered = name.lower()
        if any(k in lowered for k in DIMENSION_KEYWORDS) and not dims.values and is_bare_length(value):
            side = parse_length_cm(value)
            dims.fill_triplet((side, side, side))


def _attribute_dimensions(raw: RawProduct, dims: _DimensionCollector) -> None:
    for attr in _dicts(raw.get("Attributes")):
        names = " ".join(
            str(attr.get(k) or "") for k in ("PropertyName", "OriginalPropertyName", "Name")
        )
        value = attr.get("Value") or attr.get("OriginalValue")
        if not names.strip() or _looks_like_size_label(value):
            continue
        axis = _axis_for(names)
        lowered = names.lower()
        if axis or any(k in lowered for k in DIMENSION_KEYWORDS + PACKAGE_KEYWORDS):
            if triplet := find_dimension_triplet(value):
                dims.fill_triplet(triplet)
                continue
        if axis:
            dims.fill(axis, parse_length_cm(value))


def extract_dimensions(raw: RawProduct) -> Optional[Dimensions]:
    """
    Length/width/height in cm. Any value under 3 cm is dropped as a misparse;
    None when no axis survives.
    """
    dims = _DimensionCollector()
    for source in (_physical_parameters, _flat_keys, _featured_dimensions, _attribute_dimensions):
        source(raw, dims)
        if len(dims.values) == 3:
            break
    return dims.result()
