# app/domain/repositories/otapi_repo.py
from __future__ import annotations
import logging
from typing import Any, Dict, Optional
from xml.sax.saxutils import escape

import httpx

from app.core.errors import UpstreamHTTPError, UpstreamUnavailable
from app.domain.models.product import RawProduct, SearchBatch
from app.domain.services.constants import OK_ERROR_CODES
from app.domain.services.parsing import to_int

logger = logging.getLogger(__name__)

"""
Note:
    - Adapter over the upstream marketplace JSON API (service-json/<Method>).
    - No business logic here: requests out, decoded payloads back.
    - HTTP error statuses become UpstreamHTTPError, no response at all becomes UpstreamUnavailable.
"""


def is_ok(error_code: Any) -> bool:
    return error_code in OK_ERROR_CODES


def build_search_xml(category_id: str, order_by: str) -> str:
    return (
        "<SearchItemsParameters>"
        f"<CategoryId>{escape(category_id)}</CategoryId>"
        f"<OrderBy>{escape(order_by)}</OrderBy>"
        "<OutputMode>Full</OutputMode>"
        "</SearchItemsParameters>"
    )


def _error_description(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    return body.get("ErrorDescription") if isinstance(body, dict) else None


class OtapiRepo:
    """
    One instance per caller access key / language.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        base_url: str,
        instance_key: str,
        language: str = "es",
        default_timeout: float = 30,
    ):
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.instance_key = instance_key
        self.language = language
        self.default_timeout = default_timeout

    async def _get(self, method: str, params: Dict[str, Any], *, timeout: Optional[float] = None) -> Dict[str, Any]:
        url = f"{self.base_url}/{method}"
        query = {"instanceKey": self.instance_key, "language": self.language, **params}
        logger.debug("otapi GET %s params=%s", method, params)
        try:
            resp = await self.http.get(url, params=query, timeout=timeout or self.default_timeout)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise UpstreamHTTPError(
                _error_description(e.response) or f"Upstream {method} failed",
                status_code=status,
                detail=str(e),
            ) from e
        except httpx.TransportError as e:
            raise UpstreamUnavailable(
                "No response from upstream service. Please check your network connection.",
                detail=f"{method}: {e!r}",
            ) from e

        try:
            body = resp.json()
        except ValueError as e:
            raise UpstreamHTTPError(f"Upstream {method} returned invalid JSON", status_code=502) from e
        if not isinstance(body, dict):
            raise UpstreamHTTPError(f"Upstream {method} returned an unexpected payload", status_code=502)
        return body

    # ----- Products -----------------------------------------------------------

    async def search_items_frame(
        self, category_id: str, order_by: str, position: int, size: int, *, timeout: Optional[float] = None
    ) -> SearchBatch:
        body = await self._get(
            "SearchItemsFrame",
            {
                "xmlParameters": build_search_xml(category_id, order_by),
                "framePosition": position,
                "frameSize": size,
            },
            timeout=timeout,
        )
        result = body.get("Result")
        items = result.get("Items") if isinstance(result, dict) else None
        if not isinstance(items, dict):
            items = {}
        content = items.get("Content")
        return SearchBatch(
            items=[i for i in content if isinstance(i, dict)] if isinstance(content, list) else [],
            total_count=max(to_int(items.get("TotalCount")) or 0, 0),
            error_code=body.get("ErrorCode"),
            error_description=body.get("ErrorDescription"),
        )

    async def get_item_full_info(self, item_id: str, *, timeout: Optional[float] = None) -> Optional[RawProduct]:
        """Detail record, or None when upstream answers with a non-success code."""
        body = await self._get("GetItemFullInfo", {"itemId": item_id}, timeout=timeout)
        if not is_ok(body.get("ErrorCode")):
            logger.debug("GetItemFullInfo item_id=%s error_code=%s", item_id, body.get("ErrorCode"))
            return None
        item = body.get("OtapiItemFullInfo")
        return item if isinstance(item, dict) else None

    # ----- Categories ---------------------------------------------------------

    async def get_root_categories(self) -> Dict[str, Any]:
        return await self._get("GetRootCategoryInfoList", {})

    async def get_two_level_root_categories(self) -> Dict[str, Any]:
        return await self._get("GetTwoLevelRootCategoryInfoList", {})

    async def get_subcategories(self, parent_category_id: str) -> Dict[str, Any]:
        return await self._get("GetCategorySubcategoryInfoList", {"parentCategoryId": parent_category_id})

    async def get_category_root_path(self, category_id: str, *, timeout: Optional[float] = None) -> Dict[str, Any]:
        return await self._get("GetCategoryRootPath", {"categoryId": category_id}, timeout=timeout)

    async def get_item_root_path(
        self, item_id: str, taobao_category_id: Optional[str] = None, *, timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"itemId": item_id}
        if taobao_category_id:
            params["taoBaoCategoryId"] = taobao_category_id
        return await self._get("GetItemRootPath", params, timeout=timeout)
