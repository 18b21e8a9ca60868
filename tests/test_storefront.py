"""
Tests for the WooCommerce storefront adapter over a mocked transport.
"""
import json

import httpx
import pytest

from autoresponder.errors import StorefrontError
from autoresponder.options import ProductFieldOptions
from autoresponder.services.storefront import WooCommerceStorefront, format_product_summary

REVIEW_PAYLOAD = {
    "id": 22,
    "product_id": 10,
    "reviewer": "Jane Doe",
    "review": "<p>Lovely &amp; sturdy</p>",
    "rating": 4,
    "status": "approved",
    "date_created_gmt": "2026-02-01T10:00:00",
}


def _storefront(handler) -> WooCommerceStorefront:
    client = httpx.Client(
        base_url="https://shop.example.com/wp-json",
        transport=httpx.MockTransport(handler),
    )
    return WooCommerceStorefront("https://shop.example.com", author_name="Test Shop", http_client=client)


class TestReads:
    def test_get_review(self):
        def handler(request):
            assert request.url.path == "/wp-json/wc/v3/products/reviews/22"
            return httpx.Response(200, json=REVIEW_PAYLOAD)

        review = _storefront(handler).get_review(22)
        assert review.body == "Lovely & sturdy"
        assert review.author == "Jane Doe"
        assert review.approved is True
        assert review.rating == 4

    def test_missing_review(self):
        assert _storefront(lambda r: httpx.Response(404, json={"code": "not_found"})).get_review(22) is None

    def test_server_error(self):
        with pytest.raises(StorefrontError) as exc_info:
            _storefront(lambda r: httpx.Response(500)).get_review(22)
        assert exc_info.value.status_code == 500

    def test_pending_reviews_query(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=[{**REVIEW_PAYLOAD, "status": "hold"}])

        reviews = _storefront(handler).list_pending_reviews(500)
        assert seen["params"]["status"] == "hold"
        assert seen["params"]["per_page"] == "100"
        assert reviews[0].approved is False


class TestWrites:
    def test_create_reply(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"id": 501})

        assert _storefront(handler).create_reply(10, 22, "Thanks!", approved=False) == 501
        assert seen["path"] == "/wp-json/wp/v2/comments"
        assert seen["body"] == {
            "post": 10,
            "parent": 22,
            "content": "Thanks!",
            "author_name": "Test Shop",
            "status": "hold",
        }

    def test_set_status_on_missing_reply(self):
        with pytest.raises(StorefrontError):
            _storefront(lambda r: httpx.Response(404)).set_reply_status(501, True)


class TestProductSummary:
    def test_respects_field_switches(self):
        product = {
            "name": "Kettle",
            "description": "<p>Steel kettle</p>",
            "sku": "K-1",
            "price": "20.00",
            "categories": [{"name": "Kitchen"}],
        }
        summary = format_product_summary(product, ProductFieldOptions(categories=False))
        assert summary == "Product: Kettle\nDescription: Steel kettle"
