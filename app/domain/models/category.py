from pydantic import BaseModel
from typing import Optional

class Category(BaseModel):
    category_id: str
    name: str
    external_id: Optional[str] = None
    is_parent: Optional[bool] = None
    provider_type: Optional[str] = None

    model_config = {"frozen": True}
