# api/v1/schemas/catalog.py
from pydantic import BaseModel, Field
from typing import Dict, List, Optional, Union

from app.domain.models.category import Category

ErrorCode = Union[int, str, None]


class CategoryListOut(BaseModel):
    error_code: ErrorCode = None
    error_description: Optional[str] = None
    content: List[Category] = Field(default_factory=list)
    request_id: Optional[str] = None
    request_time: Optional[int] = None


class CategoryTreeOut(CategoryListOut):
    subcategories_by_parent_id: Dict[str, List[Category]] = Field(default_factory=dict)


class RatesOut(BaseModel):
    base: str
    rates: Dict[str, float]
    timestamp: str


class TokenIn(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    base_url: Optional[str] = Field(default=None, alias="baseUrl")

    model_config = {"populate_by_name": True}


class TokenOut(BaseModel):
    token: str


class ErrorOut(BaseModel):
    error: str
    details: Optional[str] = None
