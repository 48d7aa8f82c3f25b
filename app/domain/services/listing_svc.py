# app/domain/services/listing_svc.py
import logging
import time
import uuid
from typing import List, Optional

import httpx

from app.core.config import Settings, get_settings
from app.core.errors import ClientInputError
from app.domain.models.product import CanonicalProduct, ListingEnvelope
from app.domain.repositories.otapi_repo import OtapiRepo
from app.domain.services.constants import SORT_BEST_SELLERS
from app.domain.services.currency_svc import CurrencyRatesService
from app.domain.services.normalizer import normalize_product, normalize_products
from app.domain.services.search_svc import search_category_products

logger = logging.getLogger(__name__)


def _request_meta() -> dict:
    return {"request_id": f"req-{uuid.uuid4().hex[:16]}", "request_time": int(time.time() * 1000)}


def make_repo(http: httpx.AsyncClient, access_key: str, language: Optional[str], settings: Settings) -> OtapiRepo:
    return OtapiRepo(
        http,
        base_url=settings.OTAPI_BASE_URL,
        instance_key=access_key,
        language=language or settings.DEFAULT_LANGUAGE,
        default_timeout=settings.search_timeout_s,
    )


def sort_for_mode(products: List[CanonicalProduct], sort_mode: Optional[str]) -> List[CanonicalProduct]:
    """
    Best-sellers is re-sorted by resolved sales (enrichment may have changed the counts);
    every other mode keeps the upstream order.
    """
    if sort_mode == SORT_BEST_SELLERS:
        return sorted(products, key=lambda p: p.sales_count, reverse=True)
    return list(products)


async def list_category_products(
    category_id: Optional[str],
    sort_mode: Optional[str],
    page_size: int,
    access_key: Optional[str],
    language: Optional[str],
    *,
    http: httpx.AsyncClient,
    rates_service: CurrencyRatesService,
    settings: Optional[Settings] = None,
) -> ListingEnvelope:
    if not access_key or not category_id:
        raise ClientInputError("Instance key and category ID are required")

    settings = settings or get_settings()
    sort_mode = sort_mode or SORT_BEST_SELLERS
    page_size = max(1, min(page_size, settings.max_page_size))
    t0 = time.perf_counter()

    rates = await rates_service.get_rates()
    repo = make_repo(http, access_key, language, settings)

    result = await search_category_products(
        repo,
        category_id,
        sort_mode,
        page_size,
        batch_size=settings.search_batch_size,
        hard_cap=settings.search_fetch_cap,
        enrich_batch_size=settings.enrich_batch_size,
        search_timeout=settings.search_timeout_s,
        detail_timeout=settings.detail_timeout_s,
    )

    if not result.products:
        logger.info("listing empty category_id=%s", category_id)
        return ListingEnvelope(error_code="Ok", content=[], total_count=0, **_request_meta())

    products = normalize_products(result.products, rates, item_url_template=settings.item_url_template)
    page = sort_for_mode(products, sort_mode)[:page_size]

    logger.info(
        "listing done category_id=%s sort=%s returned=%s of=%s total_count=%s time=%.3fs",
        category_id, sort_mode, len(page), len(products), result.total_count, time.perf_counter() - t0,
    )
    return ListingEnvelope(error_code="Ok", content=page, total_count=result.total_count, **_request_meta())


async def get_single_item_detail(
    item_id: Optional[str],
    access_key: Optional[str],
    language: Optional[str],
    *,
    http: httpx.AsyncClient,
    rates_service: CurrencyRatesService,
    settings: Optional[Settings] = None,
) -> Optional[CanonicalProduct]:
    """Normalized full-info record for one item; None when upstream has no such item."""
    item_id = (item_id or "").strip()
    if not access_key or not item_id:
        raise ClientInputError("instanceKey and itemId are required")

    settings = settings or get_settings()
    rates = await rates_service.get_rates()
    repo = make_repo(http, access_key, language, settings)

    raw = await repo.get_item_full_info(item_id, timeout=settings.search_timeout_s)
    if raw is None:
        logger.info("item detail not found item_id=%s", item_id)
        return None
    return normalize_product(raw, rates, item_url_template=settings.item_url_template)
