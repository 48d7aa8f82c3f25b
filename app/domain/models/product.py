from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional

# Upstream records are open-ended mappings whose shape varies by provider.
RawProduct = Dict[str, Any]

class CanonicalProduct(BaseModel):
    item_id: str
    title: str
    image_url: str = ""
    item_url: str
    price_rmb: float = Field(ge=0)
    price_usd: float = Field(ge=0)
    price_cop: float = Field(ge=0)
    currency: Literal["CNY"] = "CNY"
    sales_count: int = Field(ge=0)
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    review_count: Optional[int] = None
    shop_name: Optional[str] = None
    provider_type: Optional[str] = None
    publish_date: Optional[str] = None
    weight: Optional[float] = None
    weight_unit: Optional[Literal["kg", "g"]] = None
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    dimension_unit: Optional[Literal["cm"]] = None
    volumetric_weight: Optional[float] = None   # kg
    seller_rating: Optional[float] = Field(default=None, ge=0, le=5)
    variant_count: Optional[int] = None

    model_config = {"frozen": True}  # immuable = safe

class RateTable(BaseModel):
    """1 CNY = rates[code] units of code."""
    base: Literal["CNY"] = "CNY"
    rates: Dict[str, float]
    as_of: str
    fallback: bool = False

    model_config = {"frozen": True}

    @property
    def usd(self) -> float:
        return self.rates.get("USD") or 0.0

    @property
    def cop(self) -> float:
        return self.rates.get("COP") or 0.0

class ListingEnvelope(BaseModel):
    error_code: str = "Ok"
    content: List[CanonicalProduct]
    total_count: int = 0
    request_id: str
    request_time: int   # epoch milliseconds

    model_config = {"frozen": True}

class SearchBatch(BaseModel):
    """One SearchItemsFrame page as returned by upstream."""
    items: List[RawProduct] = []
    total_count: int = 0
    error_code: Any = "Ok"
    error_description: Optional[str] = None

class SearchResult(BaseModel):
    products: List[RawProduct]
    total_count: int
