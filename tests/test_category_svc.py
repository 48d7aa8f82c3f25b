import httpx
import pytest

from app.core.errors import UpstreamHTTPError
from app.domain.repositories.otapi_repo import OtapiRepo, build_search_xml
from app.domain.services import category_svc

BASE = "http://otapi.test/service-json"


def repo_for(make_http, responses):
    """OtapiRepo whose upstream answers each method with a canned body."""
    def handler(request):
        method = request.url.path.rsplit("/", 1)[-1]
        body = responses.get(method)
        if body is None:
            return httpx.Response(404)
        return httpx.Response(200, json=body)

    http = make_http(handler)
    return OtapiRepo(http, base_url=BASE + "/", instance_key="key", language="es"), http


def cat(cid, name, **extra):
    return {"Id": cid, "Name": name, **extra}


async def test_root_categories_hide_hidden(make_http):
    repo, http = repo_for(make_http, {
        "GetRootCategoryInfoList": {
            "ErrorCode": "Ok",
            "RequestId": "r1",
            "CategoryInfoList": {"Content": [
                cat("1", "Ropa", IsParent=True, ExternalId="x1", ProviderType="Taobao"),
                cat("2", "Oculta", IsHidden=True),
            ]},
        }
    })

    env = await category_svc.get_root_categories(repo)

    assert env["error_code"] == "Ok"
    assert env["request_id"] == "r1"
    assert [c.category_id for c in env["content"]] == ["1"]
    first = env["content"][0]
    assert (first.name, first.is_parent, first.external_id, first.provider_type) == ("Ropa", True, "x1", "Taobao")
    assert http.transport_log[0].url.params["instanceKey"] == "key"


async def test_subcategories(make_http):
    repo, http = repo_for(make_http, {
        "GetCategorySubcategoryInfoList": {
            "ErrorCode": "Ok",
            "CategoryInfoList": {"Content": [cat("11", "Camisas"), cat("12", "Pantalones")]},
        }
    })
    env = await category_svc.get_subcategories(repo, "1")
    assert [c.name for c in env["content"]] == ["Camisas", "Pantalones"]
    assert http.transport_log[0].url.params["parentCategoryId"] == "1"


def test_tree_from_nested_children():
    raw = [
        cat("1", "Ropa", Subcategories=[cat("11", "Camisas"), cat("12", "Oculta", IsHidden=True)]),
        cat("2", "Hogar", Subcategories=[]),
    ]
    tree = category_svc.build_category_tree(raw)
    assert [c.category_id for c in tree["content"]] == ["1", "2"]
    assert {k: [c.category_id for c in v] for k, v in tree["subcategories_by_parent_id"].items()} == {"1": ["11"]}


def test_tree_from_flat_list():
    raw = [
        cat("1", "Ropa"),
        cat("11", "Camisas", ParentId="1"),
        cat("12", "Pantalones", ParentId="1"),
        cat("2", "Hogar", ParentId="", Level=0),
        cat("21", "Cocina", ParentId="2", IsHidden=True),
    ]
    tree = category_svc.build_category_tree(raw)
    assert [c.category_id for c in tree["content"]] == ["1", "2"]
    assert {k: [c.category_id for c in v] for k, v in tree["subcategories_by_parent_id"].items()} == {"1": ["11", "12"]}


def test_tree_of_nothing():
    assert category_svc.build_category_tree([]) == {"content": [], "subcategories_by_parent_id": {}}


async def test_categories_tree_envelope(make_http):
    repo, _ = repo_for(make_http, {
        "GetTwoLevelRootCategoryInfoList": {
            "ErrorCode": "Ok",
            "CategoryInfoList": {"Content": [cat("1", "Ropa", Children=[cat("11", "Camisas")])]},
        }
    })
    env = await category_svc.get_categories_tree(repo)
    assert [c.category_id for c in env["content"]] == ["1"]
    assert list(env["subcategories_by_parent_id"]) == ["1"]


async def test_categories_tree_error_code(make_http):
    repo, _ = repo_for(make_http, {
        "GetTwoLevelRootCategoryInfoList": {"ErrorCode": "SessionExpired", "ErrorDescription": "bad key"}
    })
    env = await category_svc.get_categories_tree(repo)
    assert env["error_code"] == "SessionExpired"
    assert env["error_description"] == "bad key"
    assert env["content"] == []
    assert env["subcategories_by_parent_id"] == {}


async def test_category_root_path(make_http):
    repo, http = repo_for(make_http, {
        "GetCategoryRootPath": {"ErrorCode": "Ok", "Content": [cat("1", "Ropa"), cat("11", "Camisas")]}
    })
    env = await category_svc.get_category_root_path(repo, "11")
    assert [c.name for c in env["content"]] == ["Ropa", "Camisas"]
    assert http.transport_log[0].url.params["categoryId"] == "11"


async def test_item_root_path_passes_optional_category(make_http):
    repo, http = repo_for(make_http, {
        "GetItemRootPath": {"ErrorCode": 0, "CategoryPath": [cat("1", "Ropa")]}
    })
    env = await category_svc.get_item_root_path(repo, "abc", "tb-9")
    assert [c.category_id for c in env["content"]] == ["1"]
    params = http.transport_log[0].url.params
    assert params["itemId"] == "abc"
    assert params["taoBaoCategoryId"] == "tb-9"

    await category_svc.get_item_root_path(repo, "abc")
    assert "taoBaoCategoryId" not in http.transport_log[1].url.params


async def test_root_path_error_code_is_empty(make_http):
    repo, _ = repo_for(make_http, {"GetCategoryRootPath": {"ErrorCode": "NotFound", "Content": [cat("1", "x")]}})
    env = await category_svc.get_category_root_path(repo, "zz")
    assert env["content"] == []
    assert env["error_code"] == "NotFound"


async def test_repo_rejects_non_object_payload(make_http):
    repo, _ = repo_for(make_http, {"GetRootCategoryInfoList": ["not", "an", "object"]})
    with pytest.raises(UpstreamHTTPError):
        await category_svc.get_root_categories(repo)


def test_search_xml_is_escaped():
    xml = build_search_xml("a&b<c>", "Price:Asc")
    assert "<CategoryId>a&amp;b&lt;c&gt;</CategoryId>" in xml
    assert "<OrderBy>Price:Asc</OrderBy>" in xml
