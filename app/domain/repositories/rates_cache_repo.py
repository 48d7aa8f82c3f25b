# app/domain/repositories/rates_cache_repo.py
from __future__ import annotations
from typing import Optional
from redis.asyncio import Redis

from app.domain.models.product import RateTable


class RatesCacheRepo:
    """
    Adapter for sharing the currency rate table across workers through Redis.
    No business logic here, just cache access (get/set/invalidate).
    """
    def __init__(self, redis: Redis, key: str = "fx:CNY"):
        self.redis = redis
        self.key = key

    async def get(self) -> Optional[RateTable]:
        if raw := await self.redis.get(self.key):
            return RateTable.model_validate_json(raw)
        return None

    async def set(self, table: RateTable, ttl: int) -> None:
        await self.redis.set(self.key, table.model_dump_json(), ex=ttl)

    async def invalidate(self) -> int:
        return await self.redis.delete(self.key)
