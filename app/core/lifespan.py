# app/core/lifespan.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from app.core.config import get_settings
from app.db import http, redis as r
from app.domain.services.currency_svc import CurrencyRatesService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- Startup ---
    # Upstream HTTP client is mandatory
    await http.connect()

    # Redis optional (connect() never raises)
    await r.connect()

    # One rate service per app: its in-memory cache must outlive a single request
    app.state.rates_service = CurrencyRatesService(http.get_http_client(), get_settings(), r.get_redis())

    yield

    # --- Shutdown ---
    app.state.rates_service = None
    try:
        await r.disconnect()
    except Exception as e:
        logger.warning("Redis disconnect failed: %s", e)

    await http.disconnect()
