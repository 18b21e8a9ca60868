"""
Storefront adapter: reads reviews and products, writes threaded replies.

``Storefront`` is the interface the pipeline depends on.
``WooCommerceStorefront`` implements it over the WooCommerce (``wc/v3``) and
WordPress (``wp/v2``) REST APIs.
"""
from abc import ABC, abstractmethod
from typing import Any, Optional
import logging

import httpx

from autoresponder.errors import StorefrontError
from autoresponder.options import ProductFieldOptions
from autoresponder.providers.base import strip_markup
from autoresponder.schemas.review import Review

logger = logging.getLogger(__name__)


class Storefront(ABC):
    @abstractmethod
    def get_review(self, review_id: int) -> Optional[Review]:
        """Return the review, or None when the storefront does not know it."""

    @abstractmethod
    def get_product_summary(self, product_id: int, fields: ProductFieldOptions) -> str:
        """Product data as ``Label: value`` lines, limited to the enabled fields."""

    @abstractmethod
    def get_recent_reviews(self, product_id: int, limit: int) -> list[Review]:
        """Most recent approved reviews of a product, newest first."""

    @abstractmethod
    def list_pending_reviews(self, limit: int) -> list[Review]:
        """Reviews held for moderation, oldest first."""

    @abstractmethod
    def create_reply(
        self,
        product_id: int,
        parent_review_id: int,
        text: str,
        approved: bool,
    ) -> int:
        """Create a threaded reply under the review and return its id."""

    @abstractmethod
    def set_reply_status(self, reply_id: int, approved: bool) -> None:
        ...

    @abstractmethod
    def update_reply_text(self, reply_id: int, text: str) -> None:
        ...


def format_product_summary(product: dict[str, Any], fields: ProductFieldOptions) -> str:
    """Render a WooCommerce product payload as ``Label: value`` lines."""
    lines = []
    if fields.title and product.get("name"):
        lines.append(f"Product: {strip_markup(product['name']).strip()}")
    if fields.description and product.get("description"):
        lines.append(f"Description: {strip_markup(product['description']).strip()}")
    if fields.short_description and product.get("short_description"):
        lines.append(f"Short Description: {strip_markup(product['short_description']).strip()}")
    if fields.attributes and product.get("attributes"):
        attributes = "; ".join(
            f"{a.get('name', '')}: {', '.join(a.get('options', []))}"
            for a in product["attributes"]
        )
        lines.append(f"Attributes: {attributes}")
    if fields.sku and product.get("sku"):
        lines.append(f"SKU: {product['sku']}")
    if fields.price and product.get("price"):
        lines.append(f"Price: {product['price']}")
    if fields.categories and product.get("categories"):
        lines.append("Categories: " + ", ".join(c.get("name", "") for c in product["categories"]))
    if fields.tags and product.get("tags"):
        lines.append("Tags: " + ", ".join(t.get("name", "") for t in product["tags"]))
    return "\n".join(line for line in lines if line.split(":", 1)[1].strip())


def review_from_payload(payload: dict[str, Any]) -> Review:
    return Review(
        id=payload["id"],
        product_id=payload.get("product_id", 0),
        author=payload.get("reviewer", ""),
        body=strip_markup(payload.get("review", "")).strip(),
        rating=payload.get("rating") or 0,
        approved=payload.get("status") == "approved",
        created_at=payload.get("date_created_gmt") or payload.get("date_created"),
    )


class WooCommerceStorefront(Storefront):
    def __init__(
        self,
        base_url: str,
        username: str = "",
        password: str = "",
        author_name: str = "",
        timeout: float = 15.0,
        http_client: Optional[httpx.Client] = None,
    ):
        self.author_name = author_name
        auth = httpx.BasicAuth(username, password) if username else None
        self._client = http_client or httpx.Client(
            base_url=f"{base_url.rstrip('/')}/wp-json",
            auth=auth,
            timeout=timeout,
        )

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise StorefrontError(f"Storefront request failed: {e}") from e
        if response.status_code == 404:
            return None
        if not response.is_success:
            raise StorefrontError(
                f"Storefront returned {response.status_code} for {method} {path}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise StorefrontError(f"Storefront returned invalid JSON for {method} {path}") from e

    def get_review(self, review_id: int) -> Optional[Review]:
        payload = self._request("GET", f"/wc/v3/products/reviews/{review_id}")
        if payload is None:
            return None
        return review_from_payload(payload)

    def get_product_summary(self, product_id: int, fields: ProductFieldOptions) -> str:
        product = self._request("GET", f"/wc/v3/products/{product_id}")
        if not product:
            logger.warning(f"Product {product_id} not found in storefront")
            return ""
        return format_product_summary(product, fields)

    def get_recent_reviews(self, product_id: int, limit: int) -> list[Review]:
        payload = self._request(
            "GET",
            "/wc/v3/products/reviews",
            params={"product": product_id, "per_page": limit, "status": "approved", "order": "desc"},
        )
        return [review_from_payload(item) for item in payload or []]

    def list_pending_reviews(self, limit: int) -> list[Review]:
        payload = self._request(
            "GET",
            "/wc/v3/products/reviews",
            params={"status": "hold", "per_page": min(limit, 100), "order": "asc"},
        )
        return [review_from_payload(item) for item in payload or []]

    def create_reply(
        self,
        product_id: int,
        parent_review_id: int,
        text: str,
        approved: bool,
    ) -> int:
        payload = self._request(
            "POST",
            "/wp/v2/comments",
            json={
                "post": product_id,
                "parent": parent_review_id,
                "content": text,
                "author_name": self.author_name,
                "status": "approved" if approved else "hold",
            },
        )
        if not payload or "id" not in payload:
            raise StorefrontError(f"Storefront did not return a reply id for review {parent_review_id}")
        return int(payload["id"])

    def set_reply_status(self, reply_id: int, approved: bool) -> None:
        payload = self._request(
            "POST",
            f"/wp/v2/comments/{reply_id}",
            json={"status": "approved" if approved else "hold"},
        )
        if payload is None:
            raise StorefrontError(f"Reply {reply_id} not found", status_code=404)

    def update_reply_text(self, reply_id: int, text: str) -> None:
        payload = self._request("POST", f"/wp/v2/comments/{reply_id}", json={"content": text})
        if payload is None:
            raise StorefrontError(f"Reply {reply_id} not found", status_code=404)
