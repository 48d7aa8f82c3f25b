from unittest.mock import AsyncMock

import httpx
import pytest

from app.core.errors import ClientInputError, UpstreamHTTPError, UpstreamUnavailable
from app.domain.repositories.otapi_repo import OtapiRepo
from app.domain.services.listing_svc import get_single_item_detail, list_category_products, sort_for_mode
from app.domain.services.normalizer import normalize_products


def otapi_handler(catalog, *, search_error_code="Ok", search_status=200, missing_details=()):
    """Fake upstream serving SearchItemsFrame and GetItemFullInfo from `catalog`."""
    by_id = {item["Id"]: item for item in catalog}

    def handler(request: httpx.Request) -> httpx.Response:
        method = request.url.path.rsplit("/", 1)[-1]
        params = request.url.params
        if method == "SearchItemsFrame":
            if search_status != 200:
                return httpx.Response(search_status, json={"ErrorDescription": "upstream exploded"})
            pos, size = int(params["framePosition"]), int(params["frameSize"])
            return httpx.Response(200, json={
                "ErrorCode": search_error_code,
                "Result": {"Items": {"Content": catalog[pos:pos + size], "TotalCount": len(catalog)}},
            })
        if method == "GetItemFullInfo":
            item_id = params["itemId"]
            if item_id in missing_details or item_id not in by_id:
                return httpx.Response(200, json={"ErrorCode": "NotFound", "ErrorDescription": "no item"})
            return httpx.Response(200, json={"ErrorCode": "Ok", "OtapiItemFullInfo": by_id[item_id]})
        return httpx.Response(404)

    return handler


@pytest.fixture
def rates_service(rates):
    svc = AsyncMock()
    svc.get_rates.return_value = rates
    return svc


async def test_requires_key_and_category(make_http, rates_service, settings):
    http = make_http(otapi_handler([]))
    with pytest.raises(ClientInputError, match="Instance key and category ID are required"):
        await list_category_products("", "Ranksales", 20, "key", "es", http=http, rates_service=rates_service, settings=settings)
    with pytest.raises(ClientInputError):
        await list_category_products("c1", "Ranksales", 20, None, "es", http=http, rates_service=rates_service, settings=settings)
    assert http.transport_log == []


async def test_best_sellers_sorted_by_resolved_sales(make_http, rates_service, settings):
    catalog = [{"Id": "a", "Volume": 5}, {"Id": "b", "Volume": 50}, {"Id": "c", "Volume": 20}]
    http = make_http(otapi_handler(catalog))

    env = await list_category_products("c1", "Ranksales", 20, "key", "en", http=http, rates_service=rates_service, settings=settings)

    assert env.error_code == "Ok"
    assert [p.sales_count for p in env.content] == [50, 20, 5]
    assert env.total_count == 3
    assert env.request_id.startswith("req-")
    assert env.request_time > 0

    search = http.transport_log[0]
    assert search.url.path.endswith("/SearchItemsFrame")
    assert search.url.params["instanceKey"] == "key"
    assert search.url.params["language"] == "en"
    assert "<CategoryId>c1</CategoryId>" in search.url.params["xmlParameters"]
    assert "<OrderBy>Volume:Desc</OrderBy>" in search.url.params["xmlParameters"]


async def test_other_modes_keep_upstream_order(make_http, rates_service, settings):
    catalog = [{"Id": "a", "Volume": 5}, {"Id": "b", "Volume": 50}, {"Id": "c", "Volume": 20}]
    http = make_http(otapi_handler(catalog))

    env = await list_category_products("c1", "Ranknew", 20, "key", None, http=http, rates_service=rates_service, settings=settings)

    assert [p.item_id for p in env.content] == ["a", "b", "c"]
    assert "<OrderBy>CreatedTime:Desc</OrderBy>" in http.transport_log[0].url.params["xmlParameters"]
    assert http.transport_log[0].url.params["language"] == settings.DEFAULT_LANGUAGE


async def test_page_is_truncated_to_page_size(make_http, rates_service, settings):
    catalog = [{"Id": f"i{n}", "Volume": n} for n in range(30)]
    http = make_http(otapi_handler(catalog))

    env = await list_category_products("c1", "Ranksales", 10, "key", "es", http=http, rates_service=rates_service, settings=settings)

    assert len(env.content) == 10
    assert env.total_count == 30
    # cap = 15 candidates, one detail lookup each
    details = [r for r in http.transport_log if r.url.path.endswith("/GetItemFullInfo")]
    assert len(details) == 15


async def test_enrichment_failure_keeps_summary(make_http, rates_service, settings):
    catalog = [{"Id": "a", "Title": "summary a"}, {"Id": "b", "Title": "summary b"}]
    full = [{"Id": "a", "Title": "full a"}, {"Id": "b", "Title": "full b"}]
    by_id = {i["Id"]: i for i in full}

    def handler(request):
        if request.url.path.endswith("/SearchItemsFrame"):
            return httpx.Response(200, json={"ErrorCode": 0, "Result": {"Items": {"Content": catalog, "TotalCount": 2}}})
        if request.url.params["itemId"] == "b":
            return httpx.Response(500)
        return httpx.Response(200, json={"ErrorCode": "0", "OtapiItemFullInfo": by_id["a"]})

    env = await list_category_products("c1", "Ranknew", 20, "key", "es", http=make_http(handler), rates_service=rates_service, settings=settings)
    assert [p.title for p in env.content] == ["full a", "summary b"]


async def test_empty_category_is_ok_envelope(make_http, rates_service, settings):
    http = make_http(otapi_handler([]))
    env = await list_category_products("c1", "Ranksales", 20, "key", "es", http=http, rates_service=rates_service, settings=settings)
    assert env.error_code == "Ok"
    assert env.content == []
    assert env.total_count == 0


async def test_upstream_error_code_is_empty_success(make_http, rates_service, settings):
    http = make_http(otapi_handler([{"Id": "a"}], search_error_code="AccessDenied"))
    env = await list_category_products("c1", "Ranksales", 20, "key", "es", http=http, rates_service=rates_service, settings=settings)
    assert env.content == []


async def test_upstream_http_error_mirrors_status(make_http, rates_service, settings):
    http = make_http(otapi_handler([], search_status=500))
    with pytest.raises(UpstreamHTTPError) as exc:
        await list_category_products("c1", "Ranksales", 20, "key", "es", http=http, rates_service=rates_service, settings=settings)
    assert exc.value.status_code == 500
    assert exc.value.message == "upstream exploded"


async def test_upstream_unreachable(make_http, rates_service, settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamUnavailable) as exc:
        await list_category_products("c1", "Ranksales", 20, "key", "es", http=make_http(handler), rates_service=rates_service, settings=settings)
    assert exc.value.status_code == 503


async def test_single_item_detail(make_http, rates_service, settings, rates):
    http = make_http(otapi_handler([{"Id": "x1", "Title": "Lamp", "Price": 10}]))

    product = await get_single_item_detail("x1", "key", "es", http=http, rates_service=rates_service, settings=settings)

    assert product.item_id == "x1"
    assert product.title == "Lamp"
    assert product.price_usd == pytest.approx(10 * rates.usd)


async def test_single_item_detail_not_found(make_http, rates_service, settings):
    http = make_http(otapi_handler([]))
    assert await get_single_item_detail("nope", "key", "es", http=http, rates_service=rates_service, settings=settings) is None


async def test_single_item_detail_requires_id(make_http, rates_service, settings):
    with pytest.raises(ClientInputError):
        await get_single_item_detail("  ", "key", "es", http=make_http(otapi_handler([])), rates_service=rates_service, settings=settings)


def test_sort_for_mode_is_stable(rates):
    products = normalize_products(
        [{"Id": "a", "Volume": 5}, {"Id": "b", "Volume": 9}, {"Id": "c", "Volume": 5}], rates
    )
    assert [p.item_id for p in sort_for_mode(products, "Ranksales")] == ["b", "a", "c"]
    assert [p.item_id for p in sort_for_mode(products, "Rankprice_asc")] == ["a", "b", "c"]


@pytest.mark.parametrize(
    "body",
    [
        {"ErrorCode": "Ok", "Result": "unavailable"},
        {"ErrorCode": "Ok", "Result": {"Items": ["a", "b"]}},
        {"ErrorCode": "Ok", "Result": {"Items": {"Content": "none", "TotalCount": "n/a"}}},
    ],
)
async def test_malformed_search_payload_is_an_empty_batch(make_http, body):
    repo = OtapiRepo(make_http(lambda request: httpx.Response(200, json=body)), base_url="http://otapi.test", instance_key="key")
    batch = await repo.search_items_frame("c1", "Volume:Desc", 0, 100)
    assert batch.items == []
    assert batch.total_count == 0


async def test_non_numeric_total_count_keeps_items(make_http, rates_service, settings):
    body = {"ErrorCode": "Ok", "Result": {"Items": {"Content": [{"Id": "a"}], "TotalCount": "many"}}}

    def handler(request):
        if request.url.path.endswith("/SearchItemsFrame"):
            return httpx.Response(200, json=body)
        return httpx.Response(200, json={"ErrorCode": "NotFound"})

    env = await list_category_products("c1", "Ranknew", 20, "key", "es", http=make_http(handler), rates_service=rates_service, settings=settings)
    assert [p.item_id for p in env.content] == ["a"]
    assert env.total_count == 0
