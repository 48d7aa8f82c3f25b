# app/api/deps.py
from typing import Optional
from fastapi import Request
from app.core.config import Settings, get_settings
from app.db.http import get_http_client
from app.domain.services.currency_svc import CurrencyRatesService


# Dependency for injecting the shared upstream HTTP client into endpoints/services
def http_dep():
    return get_http_client()


def settings_dep() -> Settings:
    return get_settings()


# Rate service created in the lifespan and held on app.state
def rates_dep(request: Request) -> CurrencyRatesService:
    rates_service = getattr(request.app.state, "rates_service", None)
    assert rates_service is not None, "Rate service not initialized"
    return rates_service


def access_key(instance_key: Optional[str], settings: Settings) -> Optional[str]:
    """Caller's instanceKey, else the configured default (may be empty)."""
    return instance_key or settings.OTAPI_INSTANCE_KEY or None
