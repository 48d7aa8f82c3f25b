# app/domain/services/currency_svc.py
import logging
import time
from datetime import datetime, timezone
from typing import Optional

import httpx
from redis.asyncio import Redis

from app.core.config import Settings
from app.domain.models.product import RateTable
from app.domain.repositories.rates_cache_repo import RatesCacheRepo

logger = logging.getLogger(__name__)

# A failed fetch is retried after this many seconds instead of pinning the fallback for a whole day
FALLBACK_RETRY_TTL = 5 * 60


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class CurrencyRatesService:
    """
    CNY -> USD/COP rate table with a TTL cache.
    Redis (when configured) shares the table across workers; the instance keeps its own copy too.
    get_rates() never raises: fetch failures yield the configured reference rates.
    """

    def __init__(self, http: httpx.AsyncClient, settings: Settings, redis: Optional[Redis] = None):
        self.http = http
        self.settings = settings
        self.redis = redis
        self._cached: Optional[RateTable] = None
        self._expires_at: float = 0.0

    def fallback_table(self) -> RateTable:
        return RateTable(
            rates={"CNY": 1.0, "USD": self.settings.fallback_rate_usd, "COP": self.settings.fallback_rate_cop},
            as_of=_now_iso(),
            fallback=True,
        )

    def _remember(self, table: RateTable, ttl: float) -> None:
        self._cached = table
        self._expires_at = time.monotonic() + ttl

    async def _fetch(self) -> RateTable:
        try:
            resp = await self.http.get(self.settings.CURRENCY_API_URL, timeout=self.settings.currency_timeout_s)
            resp.raise_for_status()
            upstream = resp.json().get("rates") or {}
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.warning("currency fetch failed, using fallback rates: %s", e)
            return self.fallback_table()

        usd = upstream.get("USD")
        cop = upstream.get("COP")
        table = RateTable(
            rates={
                "CNY": 1.0,
                "USD": usd if isinstance(usd, (int, float)) and usd > 0 else self.settings.fallback_rate_usd,
                "COP": cop if isinstance(cop, (int, float)) and cop > 0 else self.settings.fallback_rate_cop,
            },
            as_of=_now_iso(),
        )
        logger.info("currency rates fetched USD=%s COP=%s", table.usd, table.cop)
        return table

    async def get_rates(self) -> RateTable:
        if self._cached and time.monotonic() < self._expires_at:
            logger.debug("currency cache_hit(memory)")
            return self._cached

        repo = RatesCacheRepo(self.redis, key=self.settings.currency_cache_key) if self.redis else None
        if repo:
            try:
                if shared := await repo.get():
                    logger.info("currency cache_hit(redis) as_of=%s", shared.as_of)
                    self._remember(shared, self.settings.currency_cache_ttl)
                    return shared
            except Exception as e:
                logger.warning("currency redis.get error err=%s", e)

        logger.info("currency cache_miss, fetching fresh rates")
        table = await self._fetch()
        if table.fallback:
            self._remember(table, FALLBACK_RETRY_TTL)
            return table

        self._remember(table, self.settings.currency_cache_ttl)
        if repo:
            try:
                await repo.set(table, ttl=self.settings.currency_cache_ttl)
            except Exception as e:
                logger.warning("currency redis.set error err=%s", e)
        return table
