# app/domain/services/search_svc.py
import asyncio
import logging
import math
import time
from typing import List, Optional

from app.domain.models.product import RawProduct, SearchResult
from app.domain.repositories.otapi_repo import OtapiRepo, is_ok
from app.domain.services.constants import DEFAULT_ORDER_BY, FETCH_OVERSAMPLE, ORDER_BY

logger = logging.getLogger(__name__)


def order_by_for(sort_mode: Optional[str]) -> str:
    """Sort mode -> upstream OrderBy; unknown modes sort by volume."""
    return ORDER_BY.get(sort_mode or "", DEFAULT_ORDER_BY)


def fetch_cap_for(page_size: int, hard_cap: int = 200) -> int:
    return min(math.ceil(page_size * FETCH_OVERSAMPLE), hard_cap)


async def _fetch_candidates(
    repo: OtapiRepo,
    category_id: str,
    order_by: str,
    cap: int,
    *,
    batch_size: int,
    timeout: Optional[float],
) -> tuple[List[RawProduct], int]:
    """
    Page through SearchItemsFrame until the cap, a short/empty batch or an error.
    Only a failure of the very first batch propagates; later failures keep what was collected.
    """
    collected: List[RawProduct] = []
    total_count = 0
    position = 0
    while position < cap:
        try:
            batch = await repo.search_items_frame(category_id, order_by, position, batch_size, timeout=timeout)
        except Exception as e:
            if position == 0:
                raise
            logger.warning("search batch failed position=%s err=%s, keeping %s items", position, e, len(collected))
            break

        if not is_ok(batch.error_code):
            logger.warning(
                "search batch rejected position=%s error_code=%s desc=%s",
                position, batch.error_code, batch.error_description,
            )
            break

        total_count = batch.total_count
        if not batch.items:
            break
        collected.extend(batch.items)
        logger.debug("search batch position=%s got=%s collected=%s", position, len(batch.items), len(collected))
        if len(collected) >= cap or len(batch.items) < batch_size:
            break
        position += batch_size

    return collected[:cap], total_count


async def _enrich_one(repo: OtapiRepo, product: RawProduct, timeout: Optional[float]) -> RawProduct:
    item_id = product.get("Id")
    if not item_id:
        return product
    try:
        full = await repo.get_item_full_info(str(item_id), timeout=timeout)
    except Exception as e:
        logger.debug("enrich failed item_id=%s err=%s", item_id, e)
        return product
    return full if full else product


async def enrich_products(
    repo: OtapiRepo,
    products: List[RawProduct],
    *,
    batch_size: int = 50,
    timeout: Optional[float] = None,
) -> List[RawProduct]:
    """
    Replace each summary record by its full-info record, `batch_size` requests in flight at a time.
    Output keeps input length and order; failed lookups keep the summary record.
    """
    enriched: List[RawProduct] = []
    for start in range(0, len(products), batch_size):
        chunk = products[start:start + batch_size]
        enriched.extend(await asyncio.gather(*(_enrich_one(repo, p, timeout) for p in chunk)))
    return enriched


async def search_category_products(
    repo: OtapiRepo,
    category_id: str,
    sort_mode: Optional[str],
    page_size: int,
    *,
    batch_size: int = 100,
    hard_cap: int = 200,
    enrich_batch_size: int = 50,
    search_timeout: Optional[float] = None,
    detail_timeout: Optional[float] = None,
) -> SearchResult:
    t0 = time.perf_counter()
    order_by = order_by_for(sort_mode)
    cap = fetch_cap_for(page_size, hard_cap)
    logger.info("search start category_id=%s order_by=%s cap=%s", category_id, order_by, cap)

    candidates, total_count = await _fetch_candidates(
        repo, category_id, order_by, cap, batch_size=batch_size, timeout=search_timeout
    )
    fetched_dt = time.perf_counter() - t0

    products = await enrich_products(repo, candidates, batch_size=enrich_batch_size, timeout=detail_timeout)
    replaced = sum(1 for before, after in zip(candidates, products) if after is not before)
    logger.info(
        "search done category_id=%s candidates=%s enriched=%s total_count=%s fetch_time=%.3fs total_time=%.3fs",
        category_id, len(candidates), replaced, total_count, fetched_dt, time.perf_counter() - t0,
    )
    return SearchResult(products=products, total_count=total_count)
