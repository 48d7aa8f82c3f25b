# app/api/v1/routers/currency.py
from fastapi import APIRouter, Depends

from app.api.deps import rates_dep
from app.api.v1.schemas.catalog import RatesOut

router = APIRouter(tags=["currency"])


@router.get("/currency", response_model=RatesOut)
async def currency(rates = Depends(rates_dep)):
    """Current CNY rate table (cached ~24h, reference rates when the source is down)."""
    table = await rates.get_rates()
    return RatesOut(base=table.base, rates=table.rates, timestamp=table.as_of)
