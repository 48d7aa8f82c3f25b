# app/domain/services/category_svc.py
import logging
from typing import Any, Dict, List, Optional

from app.domain.models.category import Category
from app.domain.repositories.otapi_repo import OtapiRepo, is_ok

logger = logging.getLogger(__name__)


def to_category(raw: Dict[str, Any]) -> Category:
    return Category(
        category_id=str(raw.get("Id") or ""),
        name=str(raw.get("Name") or ""),
        external_id=raw.get("ExternalId"),
        is_parent=raw.get("IsParent"),
        provider_type=raw.get("ProviderType"),
    )


def _visible(raws: Any) -> List[Dict[str, Any]]:
    if not isinstance(raws, list):
        return []
    return [c for c in raws if isinstance(c, dict) and not c.get("IsHidden")]


def _category_list(body: Dict[str, Any]) -> List[Dict[str, Any]]:
    info = body.get("CategoryInfoList")
    if isinstance(info, dict) and info.get("Content"):
        return info["Content"]
    return body.get("Content") or []


def _envelope(body: Dict[str, Any], content: Any, **extra) -> Dict[str, Any]:
    return {
        "error_code": body.get("ErrorCode"),
        "error_description": body.get("ErrorDescription"),
        "content": content,
        "request_id": body.get("RequestId"),
        "request_time": body.get("RequestTime"),
        **extra,
    }


async def get_root_categories(repo: OtapiRepo) -> Dict[str, Any]:
    body = await repo.get_root_categories()
    roots = [to_category(c) for c in _visible(_category_list(body))]
    logger.info("root_categories count=%s", len(roots))
    return _envelope(body, roots)


async def get_subcategories(repo: OtapiRepo, parent_category_id: str) -> Dict[str, Any]:
    body = await repo.get_subcategories(parent_category_id)
    info = body.get("CategoryInfoList") or {}
    subs = [to_category(c) for c in _visible(info.get("Content"))]
    logger.info("subcategories parent=%s count=%s", parent_category_id, len(subs))
    return _envelope(body, subs)


def _parent_id(raw: Dict[str, Any]) -> Optional[str]:
    pid = raw.get("ParentId", raw.get("ParentCategoryId"))
    if pid is None or str(pid).strip() == "":
        return None
    return str(pid)


def build_category_tree(raw_list: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Two shapes come back from the two-level call: roots carrying their children
    (Subcategories/Children), or one flat list linked by ParentId.
    """
    roots: List[Category] = []
    children: Dict[str, List[Category]] = {}
    entries = [c for c in raw_list if isinstance(c, dict)]

    first = entries[0] if entries else None
    nested_key = None
    if first:
        nested_key = next((k for k in ("Subcategories", "Children") if isinstance(first.get(k), list)), None)

    if nested_key:
        for root in _visible(entries):
            roots.append(to_category(root))
            subs = [to_category(c) for c in _visible(root.get(nested_key))]
            if subs:
                children[str(root.get("Id"))] = subs
    else:
        for cat in _visible(entries):
            pid = _parent_id(cat)
            if pid is None or cat.get("Level") == 0:
                roots.append(to_category(cat))
            if pid is not None:
                children.setdefault(pid, []).append(to_category(cat))

    return {"content": roots, "subcategories_by_parent_id": children}


async def get_categories_tree(repo: OtapiRepo) -> Dict[str, Any]:
    body = await repo.get_two_level_root_categories()
    if not is_ok(body.get("ErrorCode")):
        return _envelope(body, [], subcategories_by_parent_id={})

    tree = build_category_tree(_category_list(body))
    logger.info(
        "categories_tree roots=%s parents_with_children=%s",
        len(tree["content"]), len(tree["subcategories_by_parent_id"]),
    )
    return _envelope(body, tree["content"], subcategories_by_parent_id=tree["subcategories_by_parent_id"])


def _path(body: Dict[str, Any]) -> List[Category]:
    raw_list = body.get("Content") or body.get("CategoryPath") or []
    if not isinstance(raw_list, list):
        return []
    return [to_category(c) for c in raw_list if isinstance(c, dict)]


async def get_category_root_path(repo: OtapiRepo, category_id: str, *, timeout: Optional[float] = None) -> Dict[str, Any]:
    body = await repo.get_category_root_path(category_id, timeout=timeout)
    if not is_ok(body.get("ErrorCode")):
        return _envelope(body, [])
    return _envelope(body, _path(body))


async def get_item_root_path(
    repo: OtapiRepo, item_id: str, taobao_category_id: Optional[str] = None, *, timeout: Optional[float] = None
) -> Dict[str, Any]:
    body = await repo.get_item_root_path(item_id, taobao_category_id, timeout=timeout)
    if not is_ok(body.get("ErrorCode")):
        return _envelope(body, [])
    return _envelope(body, _path(body))
