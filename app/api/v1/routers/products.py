# app/api/v1/routers/products.py
import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import access_key, http_dep, rates_dep, settings_dep
from app.api.v1.schemas.catalog import ErrorOut
from app.core.errors import ItemNotFound
from app.domain.models.product import CanonicalProduct, ListingEnvelope
from app.domain.services.constants import SORT_BEST_SELLERS
from app.domain.services.listing_svc import get_single_item_detail, list_category_products

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/otapi", tags=["products"])

ERROR_RESPONSES = {code: {"model": ErrorOut} for code in (400, 404, 502, 503)}


@router.get("/category-products", response_model=ListingEnvelope, responses=ERROR_RESPONSES)
async def category_products(
    category_id: Optional[str] = Query(None, alias="categoryId"),
    sort_type: str = Query(SORT_BEST_SELLERS, alias="sortType", description="Ranksales | Rankprice_asc | Rankprice_desc | Ranknew"),
    frame_size: Optional[int] = Query(None, alias="frameSize", ge=1, le=200, description="Page size"),
    instance_key: Optional[str] = Query(None, alias="instanceKey"),
    language: Optional[str] = Query(None),
    http = Depends(http_dep),
    rates = Depends(rates_dep),
    settings = Depends(settings_dep),
):
    """
    Enriched, currency-converted product page for a category.
    Pipeline: rates → paged search (1.5x page, max 200) → per-item full info → normalize → sort → page.
    """
    logger.info(
        "Request: category_products category_id=%s sort_type=%s frame_size=%s language=%s",
        category_id, sort_type, frame_size, language,
    )
    start_time = time.perf_counter()

    envelope = await list_category_products(
        category_id,
        sort_type,
        frame_size or settings.default_page_size,
        access_key(instance_key, settings),
        language,
        http=http,
        rates_service=rates,
        settings=settings,
    )

    logger.info(
        "Response: category_products category_id=%s count=%s total_count=%s elapsed_time=%.4fs",
        category_id, len(envelope.content), envelope.total_count, time.perf_counter() - start_time,
    )
    return envelope


@router.get("/item-full-info", response_model=CanonicalProduct, responses=ERROR_RESPONSES)
async def item_full_info(
    item_id: Optional[str] = Query(None, alias="itemId"),
    instance_key: Optional[str] = Query(None, alias="instanceKey"),
    language: Optional[str] = Query(None),
    http = Depends(http_dep),
    rates = Depends(rates_dep),
    settings = Depends(settings_dep),
):
    logger.info("Request: item_full_info item_id=%s", item_id)
    item = await get_single_item_detail(
        item_id,
        access_key(instance_key, settings),
        language,
        http=http,
        rates_service=rates,
        settings=settings,
    )
    if item is None:
        raise ItemNotFound("Item not found or failed to fetch full info")
    return item
