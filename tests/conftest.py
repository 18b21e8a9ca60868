"""
Shared fixtures: in-memory SQLite store, fakeredis, and in-process doubles for
the storefront and the text-generation providers.
"""
import os

# Must be set before autoresponder.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("RATE_LIMIT_STORAGE_URI", "memory://")
os.environ["ENVIRONMENT"] = "test"
os.environ["API_KEY"] = ""

from datetime import datetime, timezone
from typing import Optional

import fakeredis
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import autoresponder.models  # noqa: F401
from autoresponder.config import Settings
from autoresponder.db.session import Base
from autoresponder.errors import StorefrontError
from autoresponder.options import ProductFieldOptions, ResponderOptions
from autoresponder.schemas.review import Review
from autoresponder.services.responder import build_responder
from autoresponder.services.store import ResponseStore
from autoresponder.services.storefront import Storefront, format_product_summary


class FakeStorefront(Storefront):
    """In-memory storefront recording every reply written."""

    def __init__(self):
        self.reviews: dict[int, Review] = {}
        self.products: dict[int, dict] = {}
        self.replies: dict[int, dict] = {}
        self.fail_writes = False
        self._next_reply_id = 1000

    def add_review(self, review_id: int, body: str, rating: int = 5, product_id: int = 10,
                   author: str = "Jane Doe", approved: bool = True,
                   created_at: Optional[datetime] = None) -> Review:
        review = Review(
            id=review_id,
            product_id=product_id,
            author=author,
            body=body,
            rating=rating,
            approved=approved,
            created_at=created_at or datetime(2026, 1, review_id % 28 + 1, tzinfo=timezone.utc),
        )
        self.reviews[review_id] = review
        return review

    def get_review(self, review_id):
        return self.reviews.get(review_id)

    def get_product_summary(self, product_id, fields: ProductFieldOptions):
        product = self.products.get(product_id)
        return format_product_summary(product, fields) if product else ""

    def get_recent_reviews(self, product_id, limit):
        matching = [r for r in self.reviews.values() if r.product_id == product_id and r.approved]
        matching.sort(key=lambda r: r.created_at, reverse=True)
        return matching[:limit]

    def list_pending_reviews(self, limit):
        held = [r for r in self.reviews.values() if not r.approved]
        held.sort(key=lambda r: r.created_at)
        return held[:limit]

    def create_reply(self, product_id, parent_review_id, text, approved):
        if self.fail_writes:
            raise StorefrontError("Storefront returned 500 for POST /wp/v2/comments", status_code=500)
        reply_id = self._next_reply_id
        self._next_reply_id += 1
        self.replies[reply_id] = {
            "product_id": product_id,
            "parent": parent_review_id,
            "text": text,
            "approved": approved,
        }
        return reply_id

    def set_reply_status(self, reply_id, approved):
        if self.fail_writes:
            raise StorefrontError("Storefront returned 500", status_code=500)
        self.replies[reply_id]["approved"] = approved

    def update_reply_text(self, reply_id, text):
        if self.fail_writes:
            raise StorefrontError("Storefront returned 500", status_code=500)
        self.replies[reply_id]["text"] = text


class FakeProvider:
    """Provider double returning canned text and recording prompts."""

    def __init__(self, name: str, model: str, text: str = "Thank you so much for your review",
                 available: bool = True, error: Optional[Exception] = None):
        self.name = name
        self.model = model
        self.text = text
        self.available = available
        self.error = error
        self.prompts: list[str] = []

    def generate(self, prompt, context=None):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.text

    def is_available(self):
        return self.available

    def model_name(self):
        return self.model


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return ResponseStore(session_factory)


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis()


@pytest.fixture
def options():
    return ResponderOptions(api_keys={"openai": "sk-test", "gemini": "g-test", "openrouter": "or-test"})


@pytest.fixture
def storefront():
    return FakeStorefront()


@pytest.fixture
def providers():
    return {
        "openai": FakeProvider("openai", "gpt-3.5-turbo"),
        "gemini": FakeProvider("gemini", "gemini-pro"),
        "openrouter": FakeProvider("openrouter", "openai/gpt-3.5-turbo"),
    }


@pytest.fixture
def test_settings():
    return Settings(
        openai_api_key="sk-test",
        gemini_api_key="g-test",
        openrouter_api_key="or-test",
        site_name="Test Shop",
    )


@pytest.fixture
def responder(test_settings, redis_client, session_factory, storefront, providers):
    return build_responder(
        test_settings,
        redis_client,
        session_factory,
        storefront=storefront,
        providers=providers,
    )
