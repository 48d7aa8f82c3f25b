# app/api/v1/routers/categories.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import access_key, http_dep, settings_dep
from app.api.v1.schemas.catalog import CategoryListOut, CategoryTreeOut
from app.core.errors import ClientInputError
from app.domain.services import category_svc
from app.domain.services.listing_svc import make_repo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/otapi", tags=["categories"])


def _require_key(instance_key: Optional[str], settings) -> str:
    key = access_key(instance_key, settings)
    if not key:
        raise ClientInputError("Instance key is required")
    return key


@router.get("/root-categories", response_model=CategoryListOut)
async def root_categories(
    instance_key: Optional[str] = Query(None, alias="instanceKey"),
    language: Optional[str] = Query(None),
    http = Depends(http_dep),
    settings = Depends(settings_dep),
):
    repo = make_repo(http, _require_key(instance_key, settings), language, settings)
    return await category_svc.get_root_categories(repo)


@router.get("/categories-tree", response_model=CategoryTreeOut)
async def categories_tree(
    instance_key: Optional[str] = Query(None, alias="instanceKey"),
    language: Optional[str] = Query(None),
    http = Depends(http_dep),
    settings = Depends(settings_dep),
):
    """Roots plus first-level children from a single upstream call."""
    repo = make_repo(http, _require_key(instance_key, settings), language, settings)
    return await category_svc.get_categories_tree(repo)


@router.get("/subcategories", response_model=CategoryListOut)
async def subcategories(
    parent_category_id: Optional[str] = Query(None, alias="parentCategoryId"),
    instance_key: Optional[str] = Query(None, alias="instanceKey"),
    language: Optional[str] = Query(None),
    http = Depends(http_dep),
    settings = Depends(settings_dep),
):
    key = _require_key(instance_key, settings)
    if not parent_category_id:
        raise ClientInputError("Parent category ID is required")
    repo = make_repo(http, key, language, settings)
    return await category_svc.get_subcategories(repo, parent_category_id)


@router.get("/category-root-path", response_model=CategoryListOut)
async def category_root_path(
    category_id: Optional[str] = Query(None, alias="categoryId"),
    instance_key: Optional[str] = Query(None, alias="instanceKey"),
    language: Optional[str] = Query(None),
    http = Depends(http_dep),
    settings = Depends(settings_dep),
):
    """Breadcrumb (root → category) for a category."""
    key = _require_key(instance_key, settings)
    category_id = (category_id or "").strip()
    if not category_id:
        raise ClientInputError("categoryId is required")
    repo = make_repo(http, key, language, settings)
    return await category_svc.get_category_root_path(repo, category_id, timeout=settings.path_timeout_s)


@router.get("/item-root-path", response_model=CategoryListOut)
async def item_root_path(
    item_id: Optional[str] = Query(None, alias="itemId"),
    taobao_category_id: Optional[str] = Query(None, alias="taoBaoCategoryId"),
    instance_key: Optional[str] = Query(None, alias="instanceKey"),
    language: Optional[str] = Query(None),
    http = Depends(http_dep),
    settings = Depends(settings_dep),
):
    key = _require_key(instance_key, settings)
    item_id = (item_id or "").strip()
    if not item_id:
        raise ClientInputError("itemId is required")
    repo = make_repo(http, key, language, settings)
    return await category_svc.get_item_root_path(
        repo, item_id, (taobao_category_id or "").strip() or None, timeout=settings.path_timeout_s
    )
