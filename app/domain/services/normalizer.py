# app/domain/services/normalizer.py
from typing import Any, Dict, List, Optional

from app.domain.models.product import CanonicalProduct, RateTable, RawProduct
from app.domain.services.constants import PLACEHOLDER_TITLE
from app.domain.services.extractors import (
    configurations,
    extract_dimensions,
    extract_price,
    extract_publish_date,
    extract_rating,
    extract_review_count,
    extract_sales_count,
    extract_seller_rating,
    extract_weight,
)
from app.domain.services.pricing import convert_currency, volumetric_weight

DEFAULT_ITEM_URL_TEMPLATE = "https://item.taobao.com/item.htm?id={item_id}"


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _image_url(raw: RawProduct) -> str:
    if main := _text(raw.get("MainPictureUrl")):
        return main
    pictures = raw.get("Pictures")
    if isinstance(pictures, list) and pictures and isinstance(pictures[0], dict):
        return _text(pictures[0].get("Url")) or ""
    return ""


def normalize_product(
    raw: RawProduct,
    rates: RateTable,
    *,
    item_url_template: str = DEFAULT_ITEM_URL_TEMPLATE,
) -> CanonicalProduct:
    """
    Raw upstream record -> CanonicalProduct. Pure: same input, same output.
    """
    item_id = str(raw.get("Id") or raw.get("ItemId") or "")

    price_rmb = extract_price(raw)
    converted = convert_currency(price_rmb, rates.rates)

    weight = extract_weight(raw)
    dims = extract_dimensions(raw)
    variants = len(configurations(raw))

    fields: Dict[str, Any] = dict(
        item_id=item_id,
        title=_text(raw.get("Title")) or _text(raw.get("OriginalTitle")) or PLACEHOLDER_TITLE,
        image_url=_image_url(raw),
        item_url=_text(raw.get("ExternalItemUrl")) or item_url_template.format(item_id=item_id),
        price_rmb=price_rmb,
        price_usd=converted["USD"],
        price_cop=converted["COP"],
        sales_count=extract_sales_count(raw),
        rating=extract_rating(raw),
        review_count=extract_review_count(raw),
        shop_name=_text(raw.get("VendorDisplayName")) or _text(raw.get("VendorName")) or _text(raw.get("BrandName")),
        provider_type=_text(raw.get("ProviderType")),
        publish_date=extract_publish_date(raw),
        seller_rating=extract_seller_rating(raw),
        variant_count=variants if variants > 0 else None,
    )
    if weight:
        fields["weight"], fields["weight_unit"] = weight
    if dims:
        fields.update(length=dims.length, width=dims.width, height=dims.height, dimension_unit="cm")
        fields["volumetric_weight"] = volumetric_weight(dims.length, dims.width, dims.height)

    return CanonicalProduct(**fields)


def normalize_products(
    raws: List[RawProduct],
    rates: RateTable,
    *,
    item_url_template: str = DEFAULT_ITEM_URL_TEMPLATE,
) -> List[CanonicalProduct]:
    return [normalize_product(r, rates, item_url_template=item_url_template) for r in raws]
