"""Tests for the listing API client against an ``httpx.MockTransport``."""

import httpx
import pytest

from listing_feed.clients import ListingApiClient, extract_image_urls
from listing_feed.errors import ContractViolationError, DataSourceError
from listing_feed.schemas.listings import SearchFilters, TransactionType

BASE_URL = "http://localhost:3000/public"


def make_client(handler) -> ListingApiClient:
    return ListingApiClient(BASE_URL, transport=httpx.MockTransport(handler))


SEARCH_BODY = {
    "properties": [
        {
            "id": 7,
            "code": "AP-007",
            "title": "Apartamento no Batel",
            "type": "apartment",
            "city": "Curitiba",
            "state": "PR",
            "salePrice": "450000.00",
            "rentPrice": "",
            "imageCount": 3,
            "mainImage": {"id": "img-1", "url": "https://cdn.example.com/7/main.jpg"},
            "isFeatured": True,
            "unknownField": "ignored",
        }
    ],
    "total": 1,
    "page": 1,
    "limit": 12,
    "totalPages": 1,
}


# ---------------------------------------------------------------------------
# search
# ---------------------------------------------------------------------------


async def test_search_sends_filters_as_query_params():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=SEARCH_BODY)

    filters = SearchFilters(
        city="Curitiba",
        state="PR",
        type="apartment",
        min_price=200000.0,
        is_featured=True,
        parking_spaces=1,
        search=TransactionType.SALE,
    )
    async with make_client(handler) as client:
        await client.search(filters, page=2, limit=12)

    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == "/public/properties"
    assert dict(request.url.params) == {
        "city": "Curitiba",
        "state": "PR",
        "type": "apartment",
        "minPrice": "200000",
        "isFeatured": "true",
        "parkingSpaces": "1",
        "page": "2",
        "limit": "12",
    }


async def test_search_parses_listing_payload():
    async with make_client(lambda request: httpx.Response(200, json=SEARCH_BODY)) as client:
        result = await client.search(SearchFilters(), page=1, limit=12)

    assert result.total == 1
    assert result.total_pages == 1
    listing = result.items[0]
    assert listing.id == "7"
    assert listing.sale_price == 450000.0
    assert listing.rent_price is None
    assert listing.has_sale_price and not listing.has_rent_price
    assert listing.image_count == 3
    assert listing.main_image_url == "https://cdn.example.com/7/main.jpg"


async def test_search_accepts_items_key():
    body = {"items": [{"id": "a"}], "total": 1, "page": 1, "limit": 12, "total_pages": 1}
    async with make_client(lambda request: httpx.Response(200, json=body)) as client:
        result = await client.search(SearchFilters(), page=1, limit=12)

    assert [item.id for item in result.items] == ["a"]


async def test_server_error_raises_data_source_error():
    async with make_client(lambda request: httpx.Response(503, text="unavailable")) as client:
        with pytest.raises(DataSourceError) as exc_info:
            await client.search(SearchFilters(), page=1, limit=12)

    assert exc_info.value.status_code == 503
    assert exc_info.value.service == "listing-api"


async def test_not_found_raises_data_source_error():
    async with make_client(lambda request: httpx.Response(404, json={"message": "no"})) as client:
        with pytest.raises(DataSourceError) as exc_info:
            await client.get_images_for("missing")

    assert exc_info.value.status_code == 404


async def test_network_failure_raises_data_source_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as client:
        with pytest.raises(DataSourceError) as exc_info:
            await client.search(SearchFilters(), page=1, limit=12)

    assert exc_info.value.status_code is None
    assert "ConnectError" in exc_info.value.detail


async def test_malformed_page_raises_contract_violation():
    body = {"properties": [{"title": "no id"}], "page": 0, "total": -1}
    async with make_client(lambda request: httpx.Response(200, json=body)) as client:
        with pytest.raises(ContractViolationError):
            await client.search(SearchFilters(), page=1, limit=12)


async def test_non_json_body_raises_contract_violation():
    async with make_client(lambda request: httpx.Response(200, text="<html>oops</html>")) as client:
        with pytest.raises(ContractViolationError):
            await client.search(SearchFilters(), page=1, limit=12)


# ---------------------------------------------------------------------------
# images
# ---------------------------------------------------------------------------


async def test_get_images_for_hits_listing_images_path():
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return httpx.Response(200, json={"images": [{"url": "a.jpg"}, {"thumbnailUrl": "b.jpg"}]})

    async with make_client(handler) as client:
        urls = await client.get_images_for("42")

    assert seen == ["/public/properties/42/images"]
    assert urls == ["a.jpg", "b.jpg"]


class TestExtractImageUrls:
    def test_bare_list_of_strings(self):
        assert extract_image_urls(["a.jpg", "b.jpg"]) == ["a.jpg", "b.jpg"]

    def test_url_preferred_over_thumbnail(self):
        payload = [{"url": "full.jpg", "thumbnailUrl": "thumb.jpg"}]
        assert extract_image_urls(payload) == ["full.jpg"]

    def test_blank_entries_skipped_and_duplicates_kept(self):
        payload = {"images": [{"url": ""}, "  ", {"url": "a.jpg"}, "a.jpg", {"other": 1}, 5]}
        assert extract_image_urls(payload) == ["a.jpg", "a.jpg"]

    def test_empty_payloads(self):
        assert extract_image_urls([]) == []
        assert extract_image_urls({"images": []}) == []

    @pytest.mark.parametrize("payload", [None, "a.jpg", {"data": []}, {"images": "a.jpg"}])
    def test_unrecognized_shape_raises(self, payload):
        with pytest.raises(ContractViolationError):
            extract_image_urls(payload)
